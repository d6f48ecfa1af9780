"""Tests for the CFL time step (local and global modes)."""

import numpy as np
import pytest

from euler2d.errors import RealizabilityError
from euler2d.physics.state import conservative_from_primitive
from euler2d.solvers.time_stepping import (
    apply_time_step_mode,
    compute_wave_speeds,
    update_cell_dt,
)


class TestTimeStepMode:
    """Local vs global time stepping."""

    def test_global_takes_minimum(self):
        dt = apply_time_step_mode(np.array([0.1, 0.05, 0.2]), use_global_dt=True)
        np.testing.assert_array_equal(dt, [0.05, 0.05, 0.05])

    def test_local_unchanged(self):
        dt = apply_time_step_mode(np.array([0.1, 0.05, 0.2]), use_global_dt=False)
        np.testing.assert_array_equal(dt, [0.1, 0.05, 0.2])


class TestUpdateCellDt:
    """Time step stored into the mesh."""

    def test_flat_mesh_formula(self, flat_mesh, freestream_state):
        flat_mesh.cells.w[:] = freestream_state
        dt = update_cell_dt(flat_mesh, cfl=0.8)

        c = np.sqrt(1.4 * 0.75)
        expected = 0.8 / ((0.65 + c) / 0.5 + c / 0.5)
        np.testing.assert_allclose(dt, expected, rtol=1e-12)
        assert dt is flat_mesh.cells.dt

    def test_direction_of_motion(self, flat_mesh):
        """Flow along eta shortens the step like flow along xi does."""
        flat_mesh.cells.w[:] = conservative_from_primitive(1.0, 0.0, 0.65, 0.75)
        along_eta = update_cell_dt(flat_mesh, cfl=0.8).copy()
        flat_mesh.cells.w[:] = conservative_from_primitive(1.0, 0.65, 0.0, 0.75)
        along_xi = update_cell_dt(flat_mesh, cfl=0.8).copy()
        np.testing.assert_allclose(along_eta, along_xi, rtol=1e-12)

    def test_scales_with_cfl(self, bump_mesh, make_states):
        bump_mesh.cells.w[:] = make_states(len(bump_mesh.cells))
        dt_a = update_cell_dt(bump_mesh, cfl=0.4).copy()
        dt_b = update_cell_dt(bump_mesh, cfl=0.8).copy()
        np.testing.assert_allclose(dt_b, 2.0 * dt_a, rtol=1e-12)

    def test_local_steps_vary(self, bump_mesh, make_states):
        bump_mesh.cells.w[:] = make_states(len(bump_mesh.cells))
        dt = update_cell_dt(bump_mesh, cfl=0.8)
        assert np.all(dt > 0.0)
        assert np.ptp(dt) > 0.0

    def test_global_mode(self, bump_mesh, make_states):
        bump_mesh.cells.w[:] = make_states(len(bump_mesh.cells))
        local_min = update_cell_dt(bump_mesh, cfl=0.8).min()
        dt = update_cell_dt(bump_mesh, cfl=0.8, use_global_time_step=True)
        np.testing.assert_array_equal(dt, local_min)

    def test_wave_speeds_positive(self, bump_mesh, make_states):
        cells = bump_mesh.cells
        speeds = compute_wave_speeds(make_states(len(cells)), cells.xi, cells.xi_length,
                                     cells.eta, cells.eta_length)
        assert np.all(speeds.d_xi > 0.0)
        assert np.all(speeds.d_eta > 0.0)

    @pytest.mark.parametrize("cfl", [0.0, -0.5])
    def test_invalid_cfl(self, flat_mesh, freestream_state, cfl):
        flat_mesh.cells.w[:] = freestream_state
        with pytest.raises(ValueError):
            update_cell_dt(flat_mesh, cfl=cfl)

    def test_unknown_backend(self, flat_mesh, freestream_state):
        flat_mesh.cells.w[:] = freestream_state
        with pytest.raises(ValueError):
            update_cell_dt(flat_mesh, cfl=0.8, backend='fortran')

    @pytest.mark.parametrize("backend", ["numpy", "jax"])
    def test_non_realizable_cell(self, flat_mesh, freestream_state, backend):
        flat_mesh.cells.w[:] = freestream_state
        flat_mesh.cells.w[9, 3] = -1.0
        with pytest.raises(RealizabilityError) as excinfo:
            update_cell_dt(flat_mesh, cfl=0.8, backend=backend)
        np.testing.assert_array_equal(excinfo.value.indices, [9])

    def test_backends_agree(self, bump_mesh, make_states):
        bump_mesh.cells.w[:] = make_states(len(bump_mesh.cells), seed=9)
        ref = update_cell_dt(bump_mesh, cfl=0.8).copy()
        out = update_cell_dt(bump_mesh, cfl=0.8, backend='jax')
        np.testing.assert_allclose(out, ref, rtol=1e-12)
