"""
Numerical methods for the 2D Euler solver.

This module provides:
- HLL and HLLC approximate Riemann solvers (NumPy and JAX)
- Residual accumulation and the convergence metric
- Explicit state update
- Solution diagnostics
"""

from .fluxes import (
    FluxStatus,
    WaveRegion,
    WaveSpeeds,
    FluxResult,
    normal_flux,
    classify_waves,
    wave_speeds,
    hll_flux,
    hllc_flux,
    hll_flux_jax,
    hllc_flux_jax,
    compute_flux,
)

from .residual import (
    SweepResult,
    compute_scheme,
    compute_rezi,
    face_contributions,
)

from .updates import update_cells

from .diagnostics import (
    compute_pressure_coefficient,
    compute_solution_bounds,
    compute_mass_flow,
)

__all__ = [
    'FluxStatus',
    'WaveRegion',
    'WaveSpeeds',
    'FluxResult',
    'normal_flux',
    'classify_waves',
    'wave_speeds',
    'hll_flux',
    'hllc_flux',
    'hll_flux_jax',
    'hllc_flux_jax',
    'compute_flux',
    'SweepResult',
    'compute_scheme',
    'compute_rezi',
    'face_contributions',
    'update_cells',
    'compute_pressure_coefficient',
    'compute_solution_bounds',
    'compute_mass_flow',
]
