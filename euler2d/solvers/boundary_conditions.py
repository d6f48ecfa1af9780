"""
Boundary Conditions for the 2D Euler Solver in a Channel.

The channel is an H-grid with ghost layers of depth g on every side:
    - I-direction: streamwise, inlet at i < g, outlet at i >= g + nx
    - J-direction: wall-normal, lower wall at j < g, upper wall at j >= g + ny

Boundary Conditions:
    1. Inlet (subsonic): total pressure p0, total density ρ0 and flow angle α
       imposed; static pressure extrapolated from the first interior column.
    2. Outlet: static pressure p2 imposed, ρ, u, v extrapolated. Supersonic
       outflow extrapolates the whole state.
    3. Walls (slip): ghost rows mirror the interior rows with the velocity
       reflected about the wall-face normal.

Ghost Cell Convention:
    - Layer k of a boundary (k = 0 closest to the domain) mirrors the k-th
      interior row for walls and copies the boundary state for inlet/outlet
    - Corner ghost cells keep their initial state; no interface touches them
"""

import numpy as np
from dataclasses import dataclass

from euler2d.constants import GAMMA
from euler2d.errors import RealizabilityError
from euler2d.grid.mesh import StructuredMesh
from euler2d.physics.state import Primitive, compute_pv, conservative_from_primitive


@dataclass
class FreestreamConditions:
    """Reference free-stream state."""

    rho_inf: float = 1.0
    u_inf: float = 0.65
    v_inf: float = 0.0
    p_inf: float = 0.75
    gamma: float = GAMMA

    @classmethod
    def from_total_conditions(cls, p0: float, rho0: float, p_ref: float,
                              alpha_deg: float = 0.0,
                              gamma: float = GAMMA) -> 'FreestreamConditions':
        """
        Isentropic free-stream state from total conditions and a static pressure.

        Parameters
        ----------
        p0, rho0 : float
            Total pressure and total density.
        p_ref : float
            Reference static pressure (the outlet pressure for a channel).
        alpha_deg : float
            Flow angle in degrees.
        gamma : float
            Ratio of specific heats.
        """
        rho, u, v = _isentropic_state(p_ref, p0, rho0, np.radians(alpha_deg), gamma)
        return cls(rho_inf=float(rho), u_inf=float(u), v_inf=float(v),
                   p_inf=float(p_ref), gamma=gamma)

    @property
    def velocity_magnitude(self) -> float:
        return float(np.hypot(self.u_inf, self.v_inf))

    @property
    def mach(self) -> float:
        c = np.sqrt(self.gamma * self.p_inf / self.rho_inf)
        return float(self.velocity_magnitude / c)

    @property
    def dynamic_pressure(self) -> float:
        return 0.5 * self.rho_inf * self.velocity_magnitude**2

    def conservative(self) -> np.ndarray:
        return conservative_from_primitive(self.rho_inf, self.u_inf, self.v_inf,
                                           self.p_inf, self.gamma)


def _isentropic_state(p, p0, rho0, alpha, gamma):
    """Density and velocity from total conditions at static pressure p.

    M² = 2/(γ-1) ((p0/p)^((γ-1)/γ) - 1), clamped at zero for p > p0.
    """
    p = np.asarray(p, dtype=np.float64)
    mach2 = 2.0 / (gamma - 1.0) * ((p0 / p)**((gamma - 1.0) / gamma) - 1.0)
    mach2 = np.maximum(mach2, 0.0)
    rho = rho0 * (p / p0)**(1.0 / gamma)
    c = np.sqrt(gamma * p / rho)
    speed = np.sqrt(mach2) * c
    return rho, speed * np.cos(alpha), speed * np.sin(alpha)


class ChannelBoundaryConditions:
    """
    Ghost-cell injection for inlet, outlet and slip walls of a channel.

    Grid Layout (channel, g = 2):

        j = ny+g+1 ─────────────────────────  (ghost, upper wall)
        j = ny+g   ─────────────────────────  (ghost, upper wall)
                   ╔═════════════════════════╗ upper wall
          inlet    ║                         ║  outlet
          ghosts   ║        INTERIOR         ║  ghosts
          i=0,1    ║                         ║  i=nx+2,nx+3
                   ╚═════════════════════════╝ lower wall (bump)
        j = 1      ─────────────────────────  (ghost, lower wall)
        j = 0      ─────────────────────────  (ghost, lower wall)
    """

    def __init__(self, mesh: StructuredMesh,
                 p0: float = 1.0, rho0: float = 1.0, p2: float = 0.656,
                 alpha_deg: float = 1.25, gamma: float = GAMMA):
        """
        Initialize boundary conditions and precompute ghost/source index maps.

        Parameters
        ----------
        mesh : StructuredMesh
            Channel mesh (ghost depth >= 1).
        p0, rho0 : float
            Inlet total pressure and total density.
        p2 : float
            Outlet static pressure.
        alpha_deg : float
            Inlet flow angle in degrees.
        gamma : float
            Ratio of specific heats.
        """
        if mesh.index.nghost < 1:
            raise ValueError("Channel boundary conditions need at least one ghost layer")

        self.p0 = p0
        self.rho0 = rho0
        self.p2 = p2
        self.alpha = np.radians(alpha_deg)
        self.gamma = gamma

        index = mesh.index
        g, nx, ny = index.nghost, index.nx, index.ny
        cols = np.arange(g, g + nx)
        rows = np.arange(g, g + ny)

        # Inlet / outlet: source column and the g ghost columns it feeds
        self.inlet_source = index.cell_index(g, rows)
        self.inlet_ghosts = [index.cell_index(g - 1 - k, rows) for k in range(g)]
        self.outlet_source = index.cell_index(g + nx - 1, rows)
        self.outlet_ghosts = [index.cell_index(g + nx + k, rows) for k in range(g)]

        # Walls: ghost row k mirrors interior row k
        self.lower_pairs = [(index.cell_index(cols, g + k), index.cell_index(cols, g - 1 - k))
                            for k in range(g)]
        self.upper_pairs = [(index.cell_index(cols, g + ny - 1 - k), index.cell_index(cols, g + ny + k))
                            for k in range(g)]
        self.lower_normal = _wall_normals(mesh.X, mesh.Y, g, cols)
        self.upper_normal = _wall_normals(mesh.X, mesh.Y, g + ny, cols)

    def _primitives(self, mesh: StructuredMesh, k: np.ndarray) -> Primitive:
        """Primitive state of cells ``k``; errors report cell indices."""
        try:
            return compute_pv(mesh.cells.w[k], self.gamma)
        except RealizabilityError as err:
            raise RealizabilityError(str(err), indices=k[err.indices]) from err

    def apply(self, mesh: StructuredMesh) -> None:
        """Refresh all ghost-cell states in place."""
        self.apply_walls(mesh)
        self.apply_inlet(mesh)
        self.apply_outlet(mesh)

    def apply_inlet(self, mesh: StructuredMesh) -> None:
        """Subsonic inlet from total conditions and extrapolated pressure."""
        prim = self._primitives(mesh, self.inlet_source)
        rho, u, v = _isentropic_state(prim.p, self.p0, self.rho0, self.alpha, self.gamma)
        w = conservative_from_primitive(rho, u, v, prim.p, self.gamma)
        for ghosts in self.inlet_ghosts:
            mesh.cells.w[ghosts] = w

    def apply_outlet(self, mesh: StructuredMesh) -> None:
        """Static-pressure outlet; supersonic outflow is fully extrapolated."""
        w_int = mesh.cells.w[self.outlet_source]
        prim = self._primitives(mesh, self.outlet_source)
        w = conservative_from_primitive(prim.rho, prim.u, prim.v, self.p2, self.gamma)
        supersonic = prim.u >= prim.c
        w = np.where(supersonic[:, np.newaxis], w_int, w)
        for ghosts in self.outlet_ghosts:
            mesh.cells.w[ghosts] = w

    def apply_walls(self, mesh: StructuredMesh) -> None:
        """Slip walls: mirror state, reflect velocity about the wall normal."""
        for pairs, normal in ((self.lower_pairs, self.lower_normal),
                              (self.upper_pairs, self.upper_normal)):
            for source, ghosts in pairs:
                prim = self._primitives(mesh, source)
                un = prim.u * normal[:, 0] + prim.v * normal[:, 1]
                u = prim.u - 2.0 * un * normal[:, 0]
                v = prim.v - 2.0 * un * normal[:, 1]
                mesh.cells.w[ghosts] = conservative_from_primitive(
                    prim.rho, u, v, prim.p, self.gamma)


def _wall_normals(X: np.ndarray, Y: np.ndarray, j: int, cols: np.ndarray) -> np.ndarray:
    """Unit normals of the j-faces at node row ``j`` for the given columns."""
    dx = X[cols + 1, j] - X[cols, j]
    dy = Y[cols + 1, j] - Y[cols, j]
    length = np.hypot(dx, dy)
    return np.stack([-dy / length, dx / length], axis=-1)


def initialize_state(mesh: StructuredMesh, rho: float = 1.0, u: float = 0.65,
                     v: float = 0.0, p: float = 0.75, gamma: float = GAMMA) -> None:
    """
    Fill every cell (ghosts included) with a uniform state and clear residuals.

    Parameters
    ----------
    mesh : StructuredMesh
    rho, u, v, p : float
        Initial density, velocity and pressure.
    gamma : float
        Ratio of specific heats.
    """
    mesh.cells.w[:] = conservative_from_primitive(rho, u, v, p, gamma)
    mesh.cells.rezi.fill(0.0)
