"""
Visualization utilities for Euler solutions.

This module provides functions for plotting the residual history and the
Mach number field of a channel solution.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
from loguru import logger

from euler2d.constants import GAMMA
from euler2d.grid.mesh import StructuredMesh
from euler2d.physics.state import compute_pv

# Lazy import matplotlib to keep the solver importable without a display
_plt = None


def _ensure_matplotlib():
    """Ensure matplotlib is available and configured."""
    global _plt
    if _plt is None:
        import matplotlib
        matplotlib.use('Agg')  # Non-interactive backend
        import matplotlib.pyplot as plt
        _plt = plt
    return _plt


def plot_convergence(history: Sequence[float], path: Union[str, Path],
                     tol: Optional[float] = None) -> Path:
    """
    Plot log-residual against iteration.

    Parameters
    ----------
    history : sequence of float
        Convergence metric per iteration.
    path : str or Path
        Output image path.
    tol : float, optional
        Convergence threshold drawn as a horizontal line.
    """
    plt = _ensure_matplotlib()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 5))
    iterations = np.arange(1, len(history) + 1)
    ax.plot(iterations, history, 'b-', linewidth=1.2, label='log residual')
    if tol is not None:
        ax.axhline(tol, color='r', linestyle='--', linewidth=1.0, label='tolerance')
    ax.set_xlabel('Iteration')
    ax.set_ylabel(r'$\log\,\|R\|$')
    ax.set_title('Convergence History')
    ax.grid(True, alpha=0.3)
    ax.legend()

    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info(f"Saved convergence plot to: {path}")
    return path


def plot_mach_field(mesh: StructuredMesh, path: Union[str, Path],
                    gamma: float = GAMMA, iteration: int = 0) -> Path:
    """Filled-cell plot of the interior Mach number."""
    plt = _ensure_matplotlib()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    g, nx, ny = mesh.index.nghost, mesh.index.nx, mesh.index.ny
    prim = compute_pv(mesh.cells.w, gamma)
    mach = mesh.field(prim.U / prim.c)[g:g + nx, g:g + ny]
    X = mesh.X[g:g + nx + 1, g:g + ny + 1]
    Y = mesh.Y[g:g + nx + 1, g:g + ny + 1]

    fig, ax = plt.subplots(figsize=(10, 4))
    pc = ax.pcolormesh(X, Y, mach, cmap='jet', shading='flat')
    fig.colorbar(pc, ax=ax, label='Mach number')
    ax.set_aspect('equal')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(f'Mach Number - Iteration {iteration}')

    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info(f"Saved Mach field plot to: {path}")
    return path
