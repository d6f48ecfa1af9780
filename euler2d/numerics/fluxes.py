"""
Approximate Riemann solvers (HLL and HLLC) for the 2D Euler equations.

Physical normal flux for state W, normal velocity q = u·n, pressure p:

    F(W) = [ρq, ρu q + p nx, ρv q + p ny, (ρE + p) q]

HLL (Davis wave speeds):
    S_L = min(q_L - c_L, q_R - c_R),  S_R = max(q_L + c_L, q_R + c_R)
    F*  = (S_R F_L - S_L F_R + S_R S_L (W_R - W_L)) / (S_R - S_L)

HLLC (Roe-averaged outer waves, contact wave S_M, star pressure p*):
    S_M = [ρ_R q_R (S_R-q_R) - ρ_L q_L (S_L-q_L) + p_L - p_R]
          / [ρ_R (S_R-q_R) - ρ_L (S_L-q_L)]
    p*  = ρ_L (q_L-S_L)(q_L-S_M) + p_L

The case selection is expressed as a wave-region enumeration computed once
per face and dispatched with ``np.select``. Failed faces (non-realizable
input or unresolved wave ordering) get a zero flux and a non-OK status; no
NaN ever leaves this module.

Reference: Toro, "Riemann Solvers and Numerical Methods for Fluid Dynamics",
3rd ed., Ch. 10.

Both NumPy and JAX implementations provided.
"""

from enum import IntEnum
from functools import partial
from typing import NamedTuple, Tuple

import numpy as np
import numpy.typing as npt

from euler2d.constants import GAMMA, RHO_IDX, MX_IDX, MY_IDX, E_IDX, N_VARS
from euler2d.physics.state import primitive_with_mask
from euler2d.physics.jax_config import jax, jnp

NDArrayFloat = npt.NDArray[np.floating]

SCHEMES = ('hll', 'hllc')
BACKENDS = ('numpy', 'jax')


class FluxStatus(IntEnum):
    """Per-face outcome of a flux evaluation."""
    OK = 0
    NON_REALIZABLE = 1   # A side state was rejected by the state model
    WAVE_ORDERING = 2    # No wave-region branch matched


class WaveRegion(IntEnum):
    """Location of the interface (x/t = 0) within the wave fan."""
    LEFT_SUPERSONIC = 0    # S_L > 0
    LEFT_STAR = 1          # S_L <= 0 < S_M
    RIGHT_STAR = 2         # S_M <= 0 <= S_R
    RIGHT_SUPERSONIC = 3   # S_R < 0
    UNRESOLVED = 4         # none of the above (NaN wave speeds)


class WaveSpeeds(NamedTuple):
    """Wave speed estimates at each face."""
    SL: NDArrayFloat
    SM: NDArrayFloat
    SR: NDArrayFloat


class FluxResult(NamedTuple):
    """Numerical flux and per-face status."""
    flux: NDArrayFloat
    status: np.ndarray

    @property
    def ok(self) -> bool:
        return bool(np.all(np.asarray(self.status) == FluxStatus.OK))


# =============================================================================
# Building blocks
# =============================================================================

def normal_flux(w: NDArrayFloat, q: NDArrayFloat, p: NDArrayFloat,
                nx: NDArrayFloat, ny: NDArrayFloat) -> NDArrayFloat:
    """Physical Euler flux through a face with unit normal (nx, ny)."""
    F = np.empty(np.broadcast_shapes(w.shape, np.shape(q) + (N_VARS,)))
    F[..., RHO_IDX] = w[..., RHO_IDX] * q
    F[..., MX_IDX] = w[..., MX_IDX] * q + p * nx
    F[..., MY_IDX] = w[..., MY_IDX] * q + p * ny
    F[..., E_IDX] = (w[..., E_IDX] + p) * q
    return F


def star_state(w: NDArrayFloat, q: NDArrayFloat, p: NDArrayFloat,
               S: NDArrayFloat, SM: NDArrayFloat, p_star: NDArrayFloat,
               nx: NDArrayFloat, ny: NDArrayFloat) -> NDArrayFloat:
    """HLLC intermediate state between the outer wave S and the contact S_M."""
    s = S - q
    W = np.empty_like(w)
    W[..., RHO_IDX] = w[..., RHO_IDX] * s
    W[..., MX_IDX] = w[..., MX_IDX] * s + (p_star - p) * nx
    W[..., MY_IDX] = w[..., MY_IDX] * s + (p_star - p) * ny
    W[..., E_IDX] = w[..., E_IDX] * s + p_star * SM - p * q
    return W / (S - SM)[..., np.newaxis]


def classify_waves(SL: NDArrayFloat, SM: NDArrayFloat, SR: NDArrayFloat) -> np.ndarray:
    """
    Wave region of every face, computed once.

    For HLL (no contact wave) pass ``SM = SR``: both star regions then
    denote the single HLL state.
    """
    SL, SM, SR = np.broadcast_arrays(SL, SM, SR)
    conditions = [
        SL > 0.0,
        (SL <= 0.0) & (0.0 < SM),
        (SM <= 0.0) & (0.0 <= SR),
        SR < 0.0,
    ]
    choices = [
        int(WaveRegion.LEFT_SUPERSONIC),
        int(WaveRegion.LEFT_STAR),
        int(WaveRegion.RIGHT_STAR),
        int(WaveRegion.RIGHT_SUPERSONIC),
    ]
    return np.select(conditions, choices, default=int(WaveRegion.UNRESOLVED)).astype(np.int8)


def _dispatch(region: np.ndarray, candidates) -> NDArrayFloat:
    """Pick one candidate flux per face according to its wave region."""
    conditions = [(region == r)[..., np.newaxis] for r in (
        WaveRegion.LEFT_SUPERSONIC,
        WaveRegion.LEFT_STAR,
        WaveRegion.RIGHT_STAR,
        WaveRegion.RIGHT_SUPERSONIC,
    )]
    return np.select(conditions, candidates, default=0.0)


def _finalize(flux: NDArrayFloat, region: np.ndarray,
              realizable: np.ndarray, single: bool) -> FluxResult:
    """Fold region and realizability into statuses; zero the failed faces."""
    region = np.asarray(region)
    realizable = np.asarray(realizable, dtype=bool)
    flux = np.asarray(flux, dtype=np.float64)

    status = np.full(region.shape, FluxStatus.OK, dtype=np.int8)
    unresolved = (region == WaveRegion.UNRESOLVED) | ~np.all(np.isfinite(flux), axis=-1)
    status[unresolved] = FluxStatus.WAVE_ORDERING
    status[~realizable] = FluxStatus.NON_REALIZABLE

    flux = np.where((status == FluxStatus.OK)[..., np.newaxis], flux, 0.0)

    if single:
        return FluxResult(flux=flux[0], status=FluxStatus(int(status[0])))
    return FluxResult(flux=flux, status=status)


def _as_batch(wl, wr, nx, ny):
    """Promote a single face to a batch of one."""
    wl = np.asarray(wl, dtype=np.float64)
    wr = np.asarray(wr, dtype=np.float64)
    single = wl.ndim == 1
    wl = np.atleast_2d(wl)
    wr = np.atleast_2d(wr)
    nx = np.broadcast_to(np.asarray(nx, dtype=np.float64), wl.shape[:-1])
    ny = np.broadcast_to(np.asarray(ny, dtype=np.float64), wl.shape[:-1])
    return wl, wr, nx, ny, single


# =============================================================================
# NumPy implementations
# =============================================================================

def _hll_speeds(left, right, ql, qr) -> Tuple[NDArrayFloat, NDArrayFloat]:
    SL = np.minimum(ql - left.c, qr - right.c)
    SR = np.maximum(ql + left.c, qr + right.c)
    return SL, SR


def _hllc_speeds(left, right, ql, qr, gamma: float):
    """Roe-averaged HLLC wave speeds; returns (SL, SM, SR, roe_ok)."""
    sl = np.sqrt(left.rho)
    sr = np.sqrt(right.rho)

    def roe(a, b):
        return (sl * a + sr * b) / (sl + sr)

    q_bar = roe(ql, qr)
    h_bar = roe(left.h, right.h)
    u_bar = roe(left.u, right.u)
    v_bar = roe(left.v, right.v)
    c2_bar = (gamma - 1.0) * (h_bar - 0.5 * (u_bar**2 + v_bar**2))
    roe_ok = c2_bar > 0.0
    c_bar = np.sqrt(np.where(roe_ok, c2_bar, 0.0))

    SL = np.minimum(ql - left.c, q_bar - c_bar)
    SR = np.maximum(qr + right.c, q_bar + c_bar)

    rl, rr = left.rho, right.rho
    SM = ((rr * qr * (SR - qr) - rl * ql * (SL - ql) + left.p - right.p)
          / (rr * (SR - qr) - rl * (SL - ql)))
    return SL, SM, SR, roe_ok


def wave_speeds(wl, wr, nx, ny, scheme: str = 'hllc', gamma: float = GAMMA) -> WaveSpeeds:
    """
    Wave speed estimates used by the selected scheme.

    For HLL the contact speed is reported equal to ``SR``. Non-realizable
    faces carry the placeholder-state speeds; check the flux status.
    """
    _check_scheme(scheme)
    wl, wr, nx, ny, _ = _as_batch(wl, wr, nx, ny)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        left, _ = primitive_with_mask(wl, gamma)
        right, _ = primitive_with_mask(wr, gamma)
        ql = left.u * nx + left.v * ny
        qr = right.u * nx + right.v * ny
        if scheme == 'hll':
            SL, SR = _hll_speeds(left, right, ql, qr)
            return WaveSpeeds(SL=SL, SM=SR, SR=SR)
        SL, SM, SR, _ = _hllc_speeds(left, right, ql, qr, gamma)
    return WaveSpeeds(SL=SL, SM=SM, SR=SR)


def hll_flux(wl, wr, nx, ny, gamma: float = GAMMA) -> FluxResult:
    """
    HLL numerical flux.

    Parameters
    ----------
    wl, wr : ndarray, shape (4,) or (n, 4)
        Conservative states left and right of the face(s).
    nx, ny : float or ndarray, shape (n,)
        Unit normal pointing from left to right.
    gamma : float
        Ratio of specific heats.

    Returns
    -------
    FluxResult
        ``flux`` with the shape of ``wl``; ``status`` per face (a single
        FluxStatus for a single face).
    """
    wl, wr, nx, ny, single = _as_batch(wl, wr, nx, ny)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        left, valid_l = primitive_with_mask(wl, gamma)
        right, valid_r = primitive_with_mask(wr, gamma)
        ql = left.u * nx + left.v * ny
        qr = right.u * nx + right.v * ny

        SL, SR = _hll_speeds(left, right, ql, qr)
        FL = normal_flux(wl, ql, left.p, nx, ny)
        FR = normal_flux(wr, qr, right.p, nx, ny)
        F_hll = ((SR[:, None] * FL - SL[:, None] * FR + (SR * SL)[:, None] * (wr - wl))
                 / (SR - SL)[:, None])

        region = classify_waves(SL, SR, SR)
        flux = _dispatch(region, [FL, F_hll, F_hll, FR])

    return _finalize(flux, region, valid_l & valid_r, single)


def hllc_flux(wl, wr, nx, ny, gamma: float = GAMMA) -> FluxResult:
    """
    HLLC numerical flux (restores the contact and shear waves).

    Parameters and return value as for :func:`hll_flux`.
    """
    wl, wr, nx, ny, single = _as_batch(wl, wr, nx, ny)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        left, valid_l = primitive_with_mask(wl, gamma)
        right, valid_r = primitive_with_mask(wr, gamma)
        ql = left.u * nx + left.v * ny
        qr = right.u * nx + right.v * ny

        SL, SM, SR, roe_ok = _hllc_speeds(left, right, ql, qr, gamma)
        p_star = left.rho * (ql - SL) * (ql - SM) + left.p

        FL = normal_flux(wl, ql, left.p, nx, ny)
        FR = normal_flux(wr, qr, right.p, nx, ny)
        WL_star = star_state(wl, ql, left.p, SL, SM, p_star, nx, ny)
        WR_star = star_state(wr, qr, right.p, SR, SM, p_star, nx, ny)
        FL_star = normal_flux(WL_star, SM, p_star, nx, ny)
        FR_star = normal_flux(WR_star, SM, p_star, nx, ny)

        region = classify_waves(SL, SM, SR)
        flux = _dispatch(region, [FL, FL_star, FR_star, FR])

    return _finalize(flux, region, valid_l & valid_r & roe_ok, single)


def _check_scheme(scheme: str) -> None:
    if scheme not in SCHEMES:
        raise ValueError(f"Unknown flux scheme '{scheme}'. Use one of {SCHEMES}")


def compute_flux(wl, wr, nx, ny, scheme: str = 'hllc', gamma: float = GAMMA,
                 backend: str = 'numpy') -> FluxResult:
    """Evaluate the selected Riemann solver on the selected backend."""
    _check_scheme(scheme)
    if backend == 'numpy':
        solver = hll_flux if scheme == 'hll' else hllc_flux
        return solver(wl, wr, nx, ny, gamma)
    if backend == 'jax':
        solver = hll_flux_jax if scheme == 'hll' else hllc_flux_jax
        return solver(wl, wr, nx, ny, gamma)
    raise ValueError(f"Unknown backend '{backend}'. Use one of {BACKENDS}")


# =============================================================================
# JAX Implementations
# =============================================================================

def _primitive_jax(w, gamma):
    """Masked primitive conversion (see primitive_with_mask)."""
    rho = w[:, RHO_IDX]
    finite = jnp.all(jnp.isfinite(w), axis=-1)
    rho_safe = jnp.where(rho > 0.0, rho, 1.0)
    p_raw = (gamma - 1.0) * (w[:, E_IDX] - 0.5 * (w[:, MX_IDX]**2 + w[:, MY_IDX]**2) / rho_safe)
    valid = finite & (rho > 0.0) & (p_raw > 0.0)

    placeholder = jnp.array([1.0, 0.0, 0.0, 1.0 / (gamma - 1.0)])
    w = jnp.where(valid[:, None], w, placeholder)
    rho = w[:, RHO_IDX]
    u = w[:, MX_IDX] / rho
    v = w[:, MY_IDX] / rho
    p = (gamma - 1.0) * (w[:, E_IDX] - 0.5 * rho * (u**2 + v**2))
    c = jnp.sqrt(gamma * p / rho)
    h = (w[:, E_IDX] + p) / rho
    return w, rho, u, v, p, c, h, valid


def _normal_flux_jax(w, q, p, nx, ny):
    return jnp.stack([
        w[:, RHO_IDX] * q,
        w[:, MX_IDX] * q + p * nx,
        w[:, MY_IDX] * q + p * ny,
        (w[:, E_IDX] + p) * q,
    ], axis=-1)


def _classify_waves_jax(SL, SM, SR):
    return jnp.where(
        SL > 0.0, int(WaveRegion.LEFT_SUPERSONIC),
        jnp.where((SL <= 0.0) & (0.0 < SM), int(WaveRegion.LEFT_STAR),
                  jnp.where((SM <= 0.0) & (0.0 <= SR), int(WaveRegion.RIGHT_STAR),
                            jnp.where(SR < 0.0, int(WaveRegion.RIGHT_SUPERSONIC),
                                      int(WaveRegion.UNRESOLVED)))))


def _dispatch_jax(region, FL, FLs, FRs, FR):
    r = region[:, None]
    return jnp.where(r == int(WaveRegion.LEFT_SUPERSONIC), FL,
                     jnp.where(r == int(WaveRegion.LEFT_STAR), FLs,
                               jnp.where(r == int(WaveRegion.RIGHT_STAR), FRs,
                                         jnp.where(r == int(WaveRegion.RIGHT_SUPERSONIC), FR, 0.0))))


@partial(jax.jit, static_argnames=("gamma",))
def _hll_kernel_jax(wl, wr, nx, ny, gamma):
    """JIT-compiled HLL kernel; returns (flux, region, realizable)."""
    wl, _, ul, vl, pl, cl, _, valid_l = _primitive_jax(wl, gamma)
    wr, _, ur, vr, pr, cr, _, valid_r = _primitive_jax(wr, gamma)
    ql = ul * nx + vl * ny
    qr = ur * nx + vr * ny

    SL = jnp.minimum(ql - cl, qr - cr)
    SR = jnp.maximum(ql + cl, qr + cr)
    FL = _normal_flux_jax(wl, ql, pl, nx, ny)
    FR = _normal_flux_jax(wr, qr, pr, nx, ny)
    F_hll = ((SR[:, None] * FL - SL[:, None] * FR + (SR * SL)[:, None] * (wr - wl))
             / (SR - SL)[:, None])

    region = _classify_waves_jax(SL, SR, SR)
    return _dispatch_jax(region, FL, F_hll, F_hll, FR), region, valid_l & valid_r


@partial(jax.jit, static_argnames=("gamma",))
def _hllc_kernel_jax(wl, wr, nx, ny, gamma):
    """JIT-compiled HLLC kernel; returns (flux, region, realizable)."""
    wl, rl, ul, vl, pl, cl, hl, valid_l = _primitive_jax(wl, gamma)
    wr, rr, ur, vr, pr, cr, hr, valid_r = _primitive_jax(wr, gamma)
    ql = ul * nx + vl * ny
    qr = ur * nx + vr * ny

    sl = jnp.sqrt(rl)
    sr = jnp.sqrt(rr)
    q_bar = (sl * ql + sr * qr) / (sl + sr)
    h_bar = (sl * hl + sr * hr) / (sl + sr)
    u_bar = (sl * ul + sr * ur) / (sl + sr)
    v_bar = (sl * vl + sr * vr) / (sl + sr)
    c2_bar = (gamma - 1.0) * (h_bar - 0.5 * (u_bar**2 + v_bar**2))
    roe_ok = c2_bar > 0.0
    c_bar = jnp.sqrt(jnp.where(roe_ok, c2_bar, 0.0))

    SL = jnp.minimum(ql - cl, q_bar - c_bar)
    SR = jnp.maximum(qr + cr, q_bar + c_bar)
    SM = ((rr * qr * (SR - qr) - rl * ql * (SL - ql) + pl - pr)
          / (rr * (SR - qr) - rl * (SL - ql)))
    p_star = rl * (ql - SL) * (ql - SM) + pl

    def star(w, q, p, S):
        s = S - q
        W = jnp.stack([
            w[:, RHO_IDX] * s,
            w[:, MX_IDX] * s + (p_star - p) * nx,
            w[:, MY_IDX] * s + (p_star - p) * ny,
            w[:, E_IDX] * s + p_star * SM - p * q,
        ], axis=-1)
        return W / (S - SM)[:, None]

    FL = _normal_flux_jax(wl, ql, pl, nx, ny)
    FR = _normal_flux_jax(wr, qr, pr, nx, ny)
    FL_star = _normal_flux_jax(star(wl, ql, pl, SL), SM, p_star, nx, ny)
    FR_star = _normal_flux_jax(star(wr, qr, pr, SR), SM, p_star, nx, ny)

    region = _classify_waves_jax(SL, SM, SR)
    flux = _dispatch_jax(region, FL, FL_star, FR_star, FR)
    return flux, region, valid_l & valid_r & roe_ok


def _run_jax_kernel(kernel, wl, wr, nx, ny, gamma) -> FluxResult:
    wl, wr, nx, ny, single = _as_batch(wl, wr, nx, ny)
    flux, region, realizable = kernel(jnp.asarray(wl), jnp.asarray(wr),
                                      jnp.asarray(nx), jnp.asarray(ny), gamma)
    return _finalize(np.asarray(flux), np.asarray(region), np.asarray(realizable), single)


def hll_flux_jax(wl, wr, nx, ny, gamma: float = GAMMA) -> FluxResult:
    """JAX: HLL numerical flux, same contract as :func:`hll_flux`."""
    return _run_jax_kernel(_hll_kernel_jax, wl, wr, nx, ny, gamma)


def hllc_flux_jax(wl, wr, nx, ny, gamma: float = GAMMA) -> FluxResult:
    """JAX: HLLC numerical flux, same contract as :func:`hllc_flux`."""
    return _run_jax_kernel(_hllc_kernel_jax, wl, wr, nx, ny, gamma)
