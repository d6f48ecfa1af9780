"""
Channel mesh generator.

Builds an algebraic H-grid for a straight channel [x_min, x_max] x [0, height]
with an optional circular-arc bump on the lower wall (GAMM channel). Nodes
are extended into the ghost layers with the boundary spacing so that ghost
cells have valid geometry.
"""

import numpy as np
from loguru import logger
from typing import Tuple

from euler2d.constants import NGHOST
from euler2d.grid.mesh import StructuredMesh


def bump_profile(x: np.ndarray, start: float, end: float, thickness: float) -> np.ndarray:
    """
    Lower-wall height of a circular-arc bump.

    Parameters
    ----------
    x : ndarray
        Streamwise coordinates.
    start, end : float
        Bump extent.
    thickness : float
        Bump height relative to its chord (0 for a flat wall).
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.zeros_like(x)
    chord = end - start
    t = thickness * chord
    if t <= 0.0 or chord <= 0.0:
        return y

    radius = (t**2 + (0.5 * chord)**2) / (2.0 * t)
    x_mid = 0.5 * (start + end)
    inside = (x > start) & (x < end)
    y[inside] = (t - radius) + np.sqrt(radius**2 - (x[inside] - x_mid)**2)
    return y


def channel_nodes(nx: int, ny: int,
                  x_min: float = 0.0, x_max: float = 3.0,
                  height: float = 1.0,
                  bump_start: float = 1.0, bump_end: float = 2.0,
                  bump_height: float = 0.1,
                  nghost: int = NGHOST) -> Tuple[np.ndarray, np.ndarray]:
    """
    Node coordinates for the channel, ghost layers included.

    Returns
    -------
    X, Y : ndarray, shape (nx + 2*nghost + 1, ny + 2*nghost + 1)
    """
    dx = (x_max - x_min) / nx
    x = x_min + np.arange(-nghost, nx + nghost + 1) * dx
    s = np.arange(-nghost, ny + nghost + 1) / ny

    y_low = bump_profile(x, bump_start, bump_end, bump_height)
    X, S = np.meshgrid(x, s, indexing='ij')
    Y = y_low[:, np.newaxis] + (height - y_low[:, np.newaxis]) * S
    return X, Y


def build_channel_mesh(grid_cfg) -> StructuredMesh:
    """Generate the channel mesh described by a GridConfig."""
    X, Y = channel_nodes(
        grid_cfg.nx, grid_cfg.ny,
        x_min=grid_cfg.x_min, x_max=grid_cfg.x_max,
        height=grid_cfg.height,
        bump_start=grid_cfg.bump_start, bump_end=grid_cfg.bump_end,
        bump_height=grid_cfg.bump_height,
        nghost=grid_cfg.nghost,
    )
    mesh = StructuredMesh.from_nodes(X, Y, nghost=grid_cfg.nghost)
    logger.info(f"Channel mesh: {grid_cfg.nx} x {grid_cfg.ny} cells "
                f"({mesh.index.n_cells} with ghosts, {len(mesh.faces)} faces)")
    return mesh
