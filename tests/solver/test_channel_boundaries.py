"""
Unit tests for the channel boundary conditions.

Tests cover:
    - Free-stream state from total conditions
    - Slip walls (flat and curved)
    - Subsonic inlet
    - Static-pressure outlet, including supersonic extrapolation
    - State initialization
"""

import numpy as np
import pytest

from euler2d.constants import GAMMA
from euler2d.errors import RealizabilityError
from euler2d.grid import StructuredMesh, channel_nodes
from euler2d.physics.state import compute_pv, conservative_from_primitive
from euler2d.solvers.boundary_conditions import (
    ChannelBoundaryConditions,
    FreestreamConditions,
    initialize_state,
)


def total_pressure(prim, gamma=GAMMA):
    mach2 = prim.U**2 / prim.c**2
    return prim.p * (1.0 + 0.5 * (gamma - 1.0) * mach2)**(gamma / (gamma - 1.0))


class TestFreestreamConditions:
    """Reference state construction."""

    def test_defaults(self):
        fs = FreestreamConditions()
        assert fs.velocity_magnitude == pytest.approx(0.65)
        assert fs.dynamic_pressure == pytest.approx(0.5 * 0.65**2)
        assert fs.mach == pytest.approx(0.65 / np.sqrt(GAMMA * 0.75))

    def test_from_total_conditions(self):
        fs = FreestreamConditions.from_total_conditions(1.0, 1.0, 0.656, alpha_deg=1.25)

        expected_m2 = 2.0 / (GAMMA - 1.0) * ((1.0 / 0.656)**((GAMMA - 1.0) / GAMMA) - 1.0)
        assert fs.mach**2 == pytest.approx(expected_m2)
        assert fs.p_inf == pytest.approx(0.656)
        assert fs.rho_inf == pytest.approx(0.656**(1.0 / GAMMA))
        assert np.degrees(np.arctan2(fs.v_inf, fs.u_inf)) == pytest.approx(1.25)

    def test_static_above_total_is_at_rest(self):
        fs = FreestreamConditions.from_total_conditions(1.0, 1.0, 1.2)
        assert fs.velocity_magnitude == 0.0

    def test_conservative(self):
        w = FreestreamConditions().conservative()
        np.testing.assert_allclose(w, conservative_from_primitive(1.0, 0.65, 0.0, 0.75))


class TestWalls:
    """Slip-wall ghost cells."""

    def test_flat_wall_reflects_normal_velocity(self, flat_mesh):
        initialize_state(flat_mesh, 1.0, 0.5, 0.2, 0.8)
        bc = ChannelBoundaryConditions(flat_mesh)
        bc.apply_walls(flat_mesh)

        index = flat_mesh.index
        g = index.nghost
        for k in range(g):
            lower = index.cell_index(np.arange(g, g + index.nx), g - 1 - k)
            upper = index.cell_index(np.arange(g, g + index.nx), g + index.ny + k)
            for ghosts in (lower, upper):
                prim = compute_pv(flat_mesh.cells.w[ghosts])
                np.testing.assert_allclose(prim.rho, 1.0)
                np.testing.assert_allclose(prim.u, 0.5)
                np.testing.assert_allclose(prim.v, -0.2)
                np.testing.assert_allclose(prim.p, 0.8)

    def test_mirror_order(self, flat_mesh):
        """Ghost layer k copies interior row k."""
        initialize_state(flat_mesh)
        index = flat_mesh.index
        g = index.nghost
        cols = np.arange(g, g + index.nx)
        flat_mesh.cells.w[index.cell_index(cols, g + 1)] = conservative_from_primitive(
            2.0, 0.65, 0.0, 0.75)

        ChannelBoundaryConditions(flat_mesh).apply_walls(flat_mesh)

        rho = flat_mesh.cells.w[:, 0]
        np.testing.assert_allclose(rho[index.cell_index(cols, g - 2)], 2.0)
        np.testing.assert_allclose(rho[index.cell_index(cols, g - 1)], 1.0)

    def test_curved_wall_zero_normal_flux(self, bump_mesh):
        """Average of interior and ghost velocity is tangent to the wall."""
        initialize_state(bump_mesh, 1.0, 0.65, 0.0, 0.75)
        bc = ChannelBoundaryConditions(bump_mesh)
        bc.apply_walls(bump_mesh)

        source, ghosts = bc.lower_pairs[0]
        w_in = bump_mesh.cells.w[source]
        w_gh = bump_mesh.cells.w[ghosts]
        mean_momentum = 0.5 * (w_in[:, 1:3] + w_gh[:, 1:3])
        normal_momentum = np.sum(mean_momentum * bc.lower_normal, axis=1)
        np.testing.assert_allclose(normal_momentum, 0.0, atol=1e-14)

        # The bump actually tilts some wall normals
        assert np.any(np.abs(bc.lower_normal[:, 0]) > 1e-3)


class TestInletOutlet:
    """Inflow and outflow ghost cells."""

    def test_inlet_total_conditions(self, flat_mesh):
        initialize_state(flat_mesh)
        bc = ChannelBoundaryConditions(flat_mesh, p0=1.0, rho0=1.0, alpha_deg=1.25)
        bc.apply_inlet(flat_mesh)

        for ghosts in bc.inlet_ghosts:
            prim = compute_pv(flat_mesh.cells.w[ghosts])
            np.testing.assert_allclose(prim.p, 0.75)
            np.testing.assert_allclose(total_pressure(prim), 1.0, rtol=1e-12)
            np.testing.assert_allclose(prim.p / prim.rho**GAMMA, 1.0, rtol=1e-12)
            np.testing.assert_allclose(np.degrees(np.arctan2(prim.v, prim.u)), 1.25)

    def test_outlet_imposes_pressure(self, flat_mesh):
        initialize_state(flat_mesh)
        bc = ChannelBoundaryConditions(flat_mesh, p2=0.656)
        bc.apply_outlet(flat_mesh)

        for ghosts in bc.outlet_ghosts:
            prim = compute_pv(flat_mesh.cells.w[ghosts])
            np.testing.assert_allclose(prim.p, 0.656)
            np.testing.assert_allclose(prim.rho, 1.0)
            np.testing.assert_allclose(prim.u, 0.65)

    def test_supersonic_outlet_extrapolates(self, flat_mesh):
        initialize_state(flat_mesh, 1.0, 2.0, 0.0, 0.75)
        bc = ChannelBoundaryConditions(flat_mesh, p2=0.656)
        bc.apply_outlet(flat_mesh)

        for ghosts in bc.outlet_ghosts:
            np.testing.assert_allclose(flat_mesh.cells.w[ghosts],
                                       flat_mesh.cells.w[bc.outlet_source])

    def test_apply_touches_only_ghosts(self, bump_mesh):
        initialize_state(bump_mesh)
        before = bump_mesh.cells.w.copy()
        ChannelBoundaryConditions(bump_mesh).apply(bump_mesh)

        inner = bump_mesh.interior
        np.testing.assert_array_equal(bump_mesh.cells.w[inner], before[inner])

    def test_non_realizable_source_reports_cell(self, flat_mesh):
        initialize_state(flat_mesh)
        bc = ChannelBoundaryConditions(flat_mesh)
        bad = bc.inlet_source[1]
        flat_mesh.cells.w[bad, 0] = -1.0

        with pytest.raises(RealizabilityError) as excinfo:
            bc.apply_inlet(flat_mesh)
        np.testing.assert_array_equal(excinfo.value.indices, [bad])

    def test_requires_ghost_layer(self):
        X, Y = channel_nodes(4, 3, nghost=0, bump_height=0.0)
        mesh = StructuredMesh.from_nodes(X, Y, nghost=0)
        with pytest.raises(ValueError):
            ChannelBoundaryConditions(mesh)


class TestInitializeState:
    """Uniform initial state."""

    def test_all_cells_filled(self, bump_mesh):
        bump_mesh.cells.rezi[:] = 1.0
        initialize_state(bump_mesh, 1.0, 0.65, 0.0, 0.75)

        expected = conservative_from_primitive(1.0, 0.65, 0.0, 0.75)
        np.testing.assert_allclose(bump_mesh.cells.w, np.tile(expected, (len(bump_mesh.cells), 1)))
        np.testing.assert_array_equal(bump_mesh.cells.rezi, 0.0)
