"""
Conservative and primitive state model for the 2D Euler equations.

Conservative state: W = [ρ, ρu, ρv, ρE], stored as arrays with a trailing
axis of length N_VARS. Array arithmetic provides the closure (+, -, scalar
multiply/divide) used by the flux blending formulas.

Primitive state (derived on demand, never stored):
    u = ρu/ρ,  v = ρv/ρ
    p = (γ-1)(ρE - ½ρ(u²+v²))
    c = sqrt(γp/ρ),  h = (ρE + p)/ρ,  U = sqrt(u²+v²)

Realizability (ρ > 0, p > 0, finite components) is checked before any square
root is taken.
"""

import numpy as np
import numpy.typing as npt
from typing import NamedTuple, Tuple

from euler2d.constants import GAMMA, RHO_IDX, MX_IDX, MY_IDX, E_IDX, N_VARS
from euler2d.errors import RealizabilityError

NDArrayFloat = npt.NDArray[np.floating]
NDArrayBool = npt.NDArray[np.bool_]


class Primitive(NamedTuple):
    """Primitive variables derived from a conservative state."""
    rho: NDArrayFloat   # Density
    u: NDArrayFloat     # x-velocity
    v: NDArrayFloat     # y-velocity
    p: NDArrayFloat     # Static pressure
    c: NDArrayFloat     # Speed of sound
    h: NDArrayFloat     # Specific total enthalpy
    U: NDArrayFloat     # Speed magnitude


def conservative_from_primitive(rho, u, v, p, gamma: float = GAMMA) -> NDArrayFloat:
    """
    Build conservative state(s) from density, velocity and pressure.

    Parameters
    ----------
    rho, u, v, p : float or array_like
        Primitive values; broadcast against each other.
    gamma : float
        Ratio of specific heats.

    Returns
    -------
    w : ndarray, shape (..., 4)
        Conservative state [ρ, ρu, ρv, ρE].
    """
    rho, u, v, p = np.broadcast_arrays(*(np.asarray(a, dtype=np.float64)
                                         for a in (rho, u, v, p)))
    w = np.empty(rho.shape + (N_VARS,))
    w[..., RHO_IDX] = rho
    w[..., MX_IDX] = rho * u
    w[..., MY_IDX] = rho * v
    w[..., E_IDX] = p / (gamma - 1.0) + 0.5 * rho * (u**2 + v**2)
    return w


def realizability_mask(w: NDArrayFloat, gamma: float = GAMMA) -> NDArrayBool:
    """Return True where the state has finite components, ρ > 0 and p > 0."""
    w = np.asarray(w, dtype=np.float64)
    rho = w[..., RHO_IDX]
    finite = np.all(np.isfinite(w), axis=-1)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        kinetic = 0.5 * (w[..., MX_IDX]**2 + w[..., MY_IDX]**2) / rho
        p = (gamma - 1.0) * (w[..., E_IDX] - kinetic)
        valid = finite & (rho > 0.0) & (p > 0.0)

    return valid


def _primitive_from_valid(w: NDArrayFloat, gamma: float) -> Primitive:
    """Primitive conversion for states already known to be realizable."""
    rho = w[..., RHO_IDX]
    u = w[..., MX_IDX] / rho
    v = w[..., MY_IDX] / rho
    p = (gamma - 1.0) * (w[..., E_IDX] - 0.5 * rho * (u**2 + v**2))
    c = np.sqrt(gamma * p / rho)
    h = (w[..., E_IDX] + p) / rho
    U = np.sqrt(u**2 + v**2)
    return Primitive(rho=rho, u=u, v=v, p=p, c=c, h=h, U=U)


def compute_pv(w: NDArrayFloat, gamma: float = GAMMA) -> Primitive:
    """
    Convert conservative state(s) to primitive variables.

    Parameters
    ----------
    w : ndarray, shape (4,) or (..., 4)
        Conservative state(s).
    gamma : float
        Ratio of specific heats.

    Returns
    -------
    Primitive
        Named tuple of arrays with the batch shape of ``w``.

    Raises
    ------
    RealizabilityError
        If any state has ρ <= 0, a non-positive pressure bracket, or
        non-finite components. ``indices`` holds the flat batch positions.
    """
    w = np.asarray(w, dtype=np.float64)
    if w.shape[-1] != N_VARS:
        raise ValueError(f"Expected trailing dimension {N_VARS}, got shape {w.shape}")

    valid = realizability_mask(w, gamma)
    if not np.all(valid):
        bad = np.flatnonzero(~valid)
        raise RealizabilityError(
            f"Non-realizable state in {bad.size} of {valid.size} entries "
            f"(first at {int(bad[0])})",
            indices=bad,
        )

    return _primitive_from_valid(w, gamma)


def primitive_with_mask(w: NDArrayFloat, gamma: float = GAMMA) -> Tuple[Primitive, NDArrayBool]:
    """
    Non-raising primitive conversion used by the flux kernels.

    Non-realizable entries are replaced by a quiescent placeholder state
    (ρ=1, u=v=0, p=1) before any square root, so the returned arrays are
    always finite. Callers must consult the mask.

    Returns
    -------
    prim : Primitive
    valid : ndarray of bool
        True where the original state was realizable.
    """
    w = np.asarray(w, dtype=np.float64)
    valid = realizability_mask(w, gamma)
    placeholder = np.array([1.0, 0.0, 0.0, 1.0 / (gamma - 1.0)])
    safe = np.where(valid[..., np.newaxis], w, placeholder)
    return _primitive_from_valid(safe, gamma), valid


def mach_number(w: NDArrayFloat, gamma: float = GAMMA) -> NDArrayFloat:
    """Local Mach number U/c."""
    prim = compute_pv(w, gamma)
    return prim.U / prim.c
