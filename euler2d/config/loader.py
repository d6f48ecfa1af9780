"""
YAML configuration loader with validation.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Union
from dataclasses import fields, is_dataclass

from euler2d.errors import ConfigError
from .schema import (
    SimulationConfig, GridConfig, FlowConfig, SolverSettings, OutputConfig,
    coarse_preset, medium_preset, fine_preset,
)

_PRESETS = {
    'coarse': coarse_preset,
    'medium': medium_preset,
    'fine': fine_preset,
}

_SECTIONS = {
    'grid': GridConfig,
    'flow': FlowConfig,
    'solver': SolverSettings,
    'output': OutputConfig,
}


def _merge_dict(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def _coerce_type(value, field_type):
    """Coerce value to the expected field type."""
    # Handle string representations of numbers (e.g., "1e-3") and flags
    if isinstance(value, str):
        if field_type in (float, 'float'):
            try:
                return float(value)
            except ValueError:
                return value
        if field_type in (int, 'int'):
            try:
                return int(value)
            except ValueError:
                return value
        if field_type in (bool, 'bool'):
            lowered = value.strip().lower()
            if lowered in ('true', 'yes', 'on', '1'):
                return True
            if lowered in ('false', 'no', 'off', '0'):
                return False
    if field_type in (float, 'float') and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def _dict_to_dataclass(cls, data: dict):
    """Convert a nested dictionary to a dataclass instance."""
    if not is_dataclass(cls):
        return data

    field_types = {f.name: f.type for f in fields(cls)}
    kwargs = {}

    for key, value in data.items():
        if key not in field_types:
            continue  # Skip unknown fields

        field_type = field_types[key]

        # Handle nested dataclasses
        if is_dataclass(field_type) and isinstance(value, dict):
            kwargs[key] = _dict_to_dataclass(field_type, value)
        else:
            kwargs[key] = _coerce_type(value, field_type)

    return cls(**kwargs)


def load_yaml(path: Union[str, Path]) -> SimulationConfig:
    """
    Load simulation configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        SimulationConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ConfigError: If a value is out of range
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    return from_dict(data)


def from_dict(data: Dict[str, Any]) -> SimulationConfig:
    """
    Create SimulationConfig from a dictionary.

    Handles nested structures, applies grid presets and defaults for
    missing values, then validates the result.
    """
    data = dict(data)

    # Check for preset
    preset = data.pop('preset', None)
    if preset:
        if preset not in _PRESETS:
            raise ConfigError(f"Unknown preset '{preset}'. Use one of {sorted(_PRESETS)}")
        grid_preset = _PRESETS[preset]()
        preset_dict = {f.name: getattr(grid_preset, f.name) for f in fields(GridConfig)}
        data['grid'] = _merge_dict(preset_dict, data.get('grid') or {})

    config_dict = {}
    for section, cls in _SECTIONS.items():
        if data.get(section):
            config_dict[section] = _dict_to_dataclass(cls, data[section])

    return SimulationConfig(**config_dict).validate()


def apply_cli_overrides(config: SimulationConfig, args) -> SimulationConfig:
    """
    Apply command-line argument overrides to a configuration.

    Only overrides values that were explicitly set (not None).

    Args:
        config: Base configuration
        args: argparse.Namespace with CLI arguments

    Returns:
        Updated SimulationConfig
    """
    config_dict = config.to_dict()

    # Map CLI args to config paths
    cli_mapping = {
        # Grid
        'nx': ('grid', 'nx'),
        'ny': ('grid', 'ny'),
        'bump_height': ('grid', 'bump_height'),

        # Flow conditions
        'alpha': ('flow', 'alpha'),
        'p2': ('flow', 'p2'),

        # Solver
        'max_iter': ('solver', 'max_iter'),
        'tol': ('solver', 'tol'),
        'print_freq': ('solver', 'print_freq'),
        'cfl': ('solver', 'cfl'),
        'scheme': ('solver', 'scheme'),
        'backend': ('solver', 'backend'),
        'global_dt': ('solver', 'use_global_dt'),

        # Output
        'output_dir': ('output', 'directory'),
        'case_name': ('output', 'case_name'),
    }

    for cli_name, config_path in cli_mapping.items():
        value = getattr(args, cli_name, None)
        if value is not None:
            target = config_dict
            for key in config_path[:-1]:
                target = target[key]
            target[config_path[-1]] = value

    return from_dict(config_dict)


def save_yaml(config: SimulationConfig, path: Union[str, Path]) -> None:
    """Save configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
