"""Tests for the YAML configuration layer."""

import argparse
from pathlib import Path

import pytest
import yaml

from euler2d.config import (
    SimulationConfig,
    SolverSettings,
    apply_cli_overrides,
    from_dict,
    load_yaml,
    save_yaml,
)
from euler2d.config.loader import _coerce_type
from euler2d.errors import ConfigError


class TestDefaults:
    """Built-in defaults describe the GAMM channel case."""

    def test_flow_defaults(self):
        flow = SimulationConfig().flow
        assert flow.gamma == 1.4
        assert flow.p2 == 0.656
        assert flow.alpha == 1.25
        assert (flow.rho_init, flow.u_init, flow.v_init, flow.p_init) == (1.0, 0.65, 0.0, 0.75)

    def test_solver_defaults(self):
        solver = SimulationConfig().solver
        assert solver.tol == -8.0
        assert solver.scheme == "hllc"
        assert not solver.use_global_dt

    def test_defaults_validate(self):
        SimulationConfig().validate()


class TestFromDict:
    """Dictionary to dataclass conversion."""

    def test_sections(self):
        config = from_dict({
            'grid': {'nx': 40, 'ny': 12},
            'solver': {'scheme': 'hll', 'cfl': 0.5},
        })
        assert config.grid.nx == 40
        assert config.grid.ny == 12
        assert config.solver.scheme == 'hll'
        assert config.solver.cfl == 0.5
        assert config.flow.p2 == 0.656

    def test_preset(self):
        config = from_dict({'preset': 'coarse'})
        assert (config.grid.nx, config.grid.ny) == (30, 10)

    def test_preset_with_override(self):
        config = from_dict({'preset': 'fine', 'grid': {'bump_height': 0.0}})
        assert config.grid.nx == 180
        assert config.grid.bump_height == 0.0

    def test_unknown_preset(self):
        with pytest.raises(ConfigError):
            from_dict({'preset': 'huge'})

    def test_unknown_keys_ignored(self):
        config = from_dict({'solver': {'cfl': 0.6, 'unused': 3}})
        assert config.solver.cfl == 0.6

    def test_string_numbers(self):
        config = from_dict({'solver': {'tol': '-6.5', 'max_iter': '100'}})
        assert config.solver.tol == -6.5
        assert config.solver.max_iter == 100

    @pytest.mark.parametrize("data", [
        {'solver': {'cfl': -1.0}},
        {'solver': {'scheme': 'roe'}},
        {'solver': {'backend': 'cuda'}},
        {'grid': {'nx': 0}},
        {'grid': {'bump_height': 0.7}},
        {'flow': {'p2': 0.0}},
        {'flow': {'gamma': 1.0}},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            from_dict(data)


class TestCoercion:
    """Type coercion of YAML scalars."""

    def test_float_from_string(self):
        assert _coerce_type("1e-3", float) == 1e-3

    def test_float_from_int(self):
        value = _coerce_type(2, float)
        assert value == 2.0
        assert isinstance(value, float)

    @pytest.mark.parametrize("text, expected", [("true", True), ("No", False), ("1", True)])
    def test_bool_from_string(self, text, expected):
        assert _coerce_type(text, bool) is expected

    def test_bool_type_string(self):
        settings = from_dict({'solver': {'use_global_dt': 'yes'}}).solver
        assert settings.use_global_dt is True


class TestYamlFiles:
    """Loading and saving YAML files."""

    def test_load(self, tmp_path):
        path = tmp_path / "case.yaml"
        path.write_text(yaml.dump({
            'preset': 'coarse',
            'flow': {'alpha': 0.0},
            'output': {'case_name': 'flat'},
        }))
        config = load_yaml(path)
        assert config.grid.nx == 30
        assert config.flow.alpha == 0.0
        assert config.output.case_name == 'flat'

    def test_load_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == SimulationConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_save_and_reload(self, tmp_path):
        config = SimulationConfig(solver=SolverSettings(cfl=0.5, scheme='hll'))
        path = tmp_path / "nested" / "saved.yaml"
        save_yaml(config, path)
        assert load_yaml(path) == config

    def test_example_config_loads(self):
        example = Path(__file__).parent.parent / "config" / "examples" / "gamm_channel.yaml"
        config = load_yaml(example)
        assert config.grid.nx == 90
        assert config.solver.max_iter == 20000


class TestCliOverrides:
    """argparse overrides on top of a configuration."""

    def test_only_set_values_override(self):
        args = argparse.Namespace(nx=12, ny=None, cfl=0.4, scheme=None,
                                  global_dt=True, output_dir='results')
        config = apply_cli_overrides(SimulationConfig(), args)

        assert config.grid.nx == 12
        assert config.grid.ny == 30
        assert config.solver.cfl == 0.4
        assert config.solver.scheme == 'hllc'
        assert config.solver.use_global_dt is True
        assert config.output.directory == 'results'

    def test_override_is_validated(self):
        args = argparse.Namespace(cfl=-0.1)
        with pytest.raises(ConfigError):
            apply_cli_overrides(SimulationConfig(), args)
