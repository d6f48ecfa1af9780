"""
Grid generation and topology module.

This module provides tools for:
- Index arithmetic on the ghost-padded cell and vertex rasters
- Cell and interface arenas with FVM geometry (areas, directions, normals)
- Algebraic channel grids with an optional lower-wall bump
"""

from .topology import GridIndex

from .mesh import (
    StructuredMesh,
    Cells,
    Interfaces,
)

from .channel import (
    build_channel_mesh,
    channel_nodes,
    bump_profile,
)

__all__ = [
    'GridIndex',
    'StructuredMesh',
    'Cells',
    'Interfaces',
    'build_channel_mesh',
    'channel_nodes',
    'bump_profile',
]
