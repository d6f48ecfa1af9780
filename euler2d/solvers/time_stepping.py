"""
CFL time stepping for the explicit Euler solver.

Δt_k = CFL / (d_ξ + d_η),   d_ξ = (|u·ξ̂| + c) / L_ξ,   d_η = (|u·η̂| + c) / L_η

where ξ̂, η̂ are the unit vectors across the cell in the two mesh directions
and L_ξ, L_η the corresponding cell extents.

Local mode keeps one Δt per cell (steady-state acceleration); global mode
assigns the minimum over all cells to every cell (time-accurate runs).

Both NumPy and JAX implementations provided.
"""

import numpy as np
import numpy.typing as npt
from typing import NamedTuple

from euler2d.constants import GAMMA, RHO_IDX, MX_IDX, MY_IDX, E_IDX
from euler2d.errors import RealizabilityError
from euler2d.grid.mesh import StructuredMesh
from euler2d.physics.state import compute_pv, realizability_mask
from euler2d.physics.jax_config import jax, jnp

NDArrayFloat = npt.NDArray[np.floating]


class DirectionalWaveSpeeds(NamedTuple):
    """Inverse wave transit times across the cell in each mesh direction."""
    d_xi: NDArrayFloat
    d_eta: NDArrayFloat


def compute_wave_speeds(w: NDArrayFloat,
                        xi: NDArrayFloat, xi_length: NDArrayFloat,
                        eta: NDArrayFloat, eta_length: NDArrayFloat,
                        gamma: float = GAMMA) -> DirectionalWaveSpeeds:
    """Compute d = (|u·ê| + c) / L along ξ and η for every cell."""
    prim = compute_pv(w, gamma)
    u_xi = np.abs(prim.u * xi[:, 0] + prim.v * xi[:, 1])
    u_eta = np.abs(prim.u * eta[:, 0] + prim.v * eta[:, 1])
    return DirectionalWaveSpeeds(
        d_xi=(u_xi + prim.c) / xi_length,
        d_eta=(u_eta + prim.c) / eta_length,
    )


def compute_cell_dt(w: NDArrayFloat,
                    xi: NDArrayFloat, xi_length: NDArrayFloat,
                    eta: NDArrayFloat, eta_length: NDArrayFloat,
                    cfl: float, gamma: float = GAMMA) -> NDArrayFloat:
    """CFL-limited local time step of every cell."""
    speeds = compute_wave_speeds(w, xi, xi_length, eta, eta_length, gamma)
    return cfl / (speeds.d_xi + speeds.d_eta)


def apply_time_step_mode(dt: NDArrayFloat, use_global_dt: bool) -> NDArrayFloat:
    """Return ``dt`` unchanged (local) or filled with its minimum (global)."""
    dt = np.asarray(dt, dtype=np.float64)
    if use_global_dt:
        dt_global: float = float(np.min(dt))
        return np.full_like(dt, dt_global)
    return dt


def update_cell_dt(mesh: StructuredMesh, cfl: float,
                   use_global_time_step: bool = False,
                   gamma: float = GAMMA,
                   backend: str = 'numpy') -> NDArrayFloat:
    """
    Store the CFL-limited time step of every cell (ghosts included) in the mesh.

    Parameters
    ----------
    mesh : StructuredMesh
    cfl : float
        CFL number, must be positive.
    use_global_time_step : bool
        Broadcast the minimum Δt to all cells.
    gamma : float
        Ratio of specific heats.
    backend : str
        "numpy" or "jax".

    Returns
    -------
    dt : ndarray
        The updated ``mesh.cells.dt`` array.

    Raises
    ------
    RealizabilityError
        If any cell state is non-physical; ``indices`` are cell indices.
    """
    if cfl <= 0.0:
        raise ValueError(f"CFL number must be positive, got {cfl}")

    cells = mesh.cells
    if backend == 'numpy':
        dt = compute_cell_dt(cells.w, cells.xi, cells.xi_length,
                             cells.eta, cells.eta_length, cfl, gamma)
    elif backend == 'jax':
        dt = compute_cell_dt_jax(cells.w, cells.xi, cells.xi_length,
                                 cells.eta, cells.eta_length, cfl, gamma)
    else:
        raise ValueError(f"Unknown backend '{backend}'")

    cells.dt[:] = apply_time_step_mode(dt, use_global_time_step)
    return cells.dt


# =============================================================================
# JAX Implementations
# =============================================================================

@jax.jit
def _cell_dt_jax_kernel(w, xi, xi_length, eta, eta_length, cfl, gamma):
    """JIT-compiled kernel for the local time step."""
    rho = w[:, RHO_IDX]
    u = w[:, MX_IDX] / rho
    v = w[:, MY_IDX] / rho
    p = (gamma - 1.0) * (w[:, E_IDX] - 0.5 * rho * (u**2 + v**2))
    c = jnp.sqrt(gamma * p / rho)

    d_xi = (jnp.abs(u * xi[:, 0] + v * xi[:, 1]) + c) / xi_length
    d_eta = (jnp.abs(u * eta[:, 0] + v * eta[:, 1]) + c) / eta_length
    return cfl / (d_xi + d_eta)


def compute_cell_dt_jax(w, xi, xi_length, eta, eta_length, cfl, gamma=GAMMA):
    """
    JAX: CFL-limited local time step of every cell.

    Realizability is checked on the host before the kernel runs, so the
    kernel never sees a state that would produce NaN.
    """
    valid = realizability_mask(w, gamma)
    if not np.all(valid):
        bad = np.flatnonzero(~valid)
        raise RealizabilityError(
            f"Non-realizable state in {bad.size} cell(s), first cell {int(bad[0])}",
            indices=bad,
        )
    dt = _cell_dt_jax_kernel(jnp.asarray(w), jnp.asarray(xi), jnp.asarray(xi_length),
                             jnp.asarray(eta), jnp.asarray(eta_length), cfl, gamma)
    return np.asarray(dt)
