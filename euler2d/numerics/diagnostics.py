"""Diagnostic quantities for Euler solution analysis."""

import numpy as np
import numpy.typing as npt
from typing import Any, Dict

from euler2d.constants import GAMMA, MX_IDX, MY_IDX
from euler2d.grid.mesh import StructuredMesh
from euler2d.physics.state import compute_pv

NDArrayFloat = npt.NDArray[np.floating]


def compute_pressure_coefficient(p: NDArrayFloat, freestream) -> NDArrayFloat:
    """
    Pressure coefficient Cp = (p - p_inf) / (½ ρ_inf (u_inf² + v_inf²)).

    Parameters
    ----------
    p : ndarray
        Static pressure.
    freestream : FreestreamConditions
        Reference state with rho_inf, u_inf, v_inf, p_inf.
    """
    q_inf = 0.5 * freestream.rho_inf * (freestream.u_inf**2 + freestream.v_inf**2)
    if q_inf < 1e-12:
        raise ValueError("Reference dynamic pressure is zero; Cp is undefined")
    return (np.asarray(p) - freestream.p_inf) / q_inf


def compute_solution_bounds(mesh: StructuredMesh, gamma: float = GAMMA) -> Dict[str, Any]:
    """Check interior solution for physical bounds and anomalies."""
    w = mesh.cells.w[mesh.interior]
    has_nan = bool(np.any(np.isnan(w)))
    has_inf = bool(np.any(np.isinf(w)))
    bounds: Dict[str, Any] = {'has_nan': has_nan, 'has_inf': has_inf}
    if has_nan or has_inf:
        return bounds

    prim = compute_pv(w, gamma)
    mach = prim.U / prim.c
    k_max = int(np.argmax(mach))
    bounds.update({
        'rho_min': float(prim.rho.min()),
        'rho_max': float(prim.rho.max()),
        'p_min': float(prim.p.min()),
        'p_max': float(prim.p.max()),
        'mach_max': float(mach[k_max]),
        'mach_max_loc': (float(mesh.cells.xc[mesh.interior[k_max]]),
                         float(mesh.cells.yc[mesh.interior[k_max]])),
    })
    return bounds


def compute_mass_flow(mesh: StructuredMesh, column: int) -> float:
    """Mass flow rate through the interior cells of one raster column.

    Uses cell-centered ρu integrated over the column height; for a converged
    channel flow it is the same at every column.
    """
    g = mesh.index.nghost
    rows = np.arange(g, g + mesh.index.ny)
    k = mesh.index.cell_index(column, rows)
    cells = mesh.cells
    momentum = cells.w[k, MX_IDX] * cells.xi[k, 0] + cells.w[k, MY_IDX] * cells.xi[k, 1]
    return float(np.sum(momentum * cells.eta_length[k]))
