"""
Index arithmetic for the ghost-padded structured grid.

Cells and vertices are stored in flat row-major rasters (x fastest) that
include ``nghost`` ghost layers on every side:

        row ny+2g-1  ┌───┬───┬───────────┬───┬───┐
                     │ g │ g │    ...    │ g │ g │   ghost rows
                     ├───┼───╔═══════════╗───┼───┤
                     │ g │ g ║  INTERIOR ║ g │ g │
                     │ g │ g ║  nx x ny  ║ g │ g │
                     ├───┼───╚═══════════╝───┼───┤
        row 0        │ g │ g │    ...    │ g │ g │   ghost rows
                     └───┴───┴───────────┴───┴───┘
                     col 0                  col nx+2g-1

Flat cell index:   k = col + row * cell_stride,    cell_stride = nx + 2g
Flat vertex index: k = col + row * point_stride,   point_stride = nx + 2g + 1

"Inner" ordinals enumerate only the physical (non-ghost) cells or vertices,
row by row.
"""

from dataclasses import dataclass

import numpy as np

from euler2d.constants import NGHOST


@dataclass(frozen=True)
class GridIndex:
    """Cell and vertex index mapping for an nx x ny grid with ghost layers."""

    nx: int
    ny: int
    nghost: int = NGHOST

    def __post_init__(self):
        if self.nx < 1 or self.ny < 1:
            raise ValueError(f"Grid needs at least one interior cell, got {self.nx} x {self.ny}")
        if self.nghost < 0:
            raise ValueError(f"Ghost depth must be non-negative, got {self.nghost}")

    # ----- raster sizes -----

    @property
    def cell_stride(self) -> int:
        return self.nx + 2 * self.nghost

    @property
    def cell_rows(self) -> int:
        return self.ny + 2 * self.nghost

    @property
    def point_stride(self) -> int:
        return self.cell_stride + 1

    @property
    def point_rows(self) -> int:
        return self.cell_rows + 1

    @property
    def n_cells(self) -> int:
        return self.cell_stride * self.cell_rows

    @property
    def n_points(self) -> int:
        return self.point_stride * self.point_rows

    @property
    def n_inner(self) -> int:
        return self.nx * self.ny

    @property
    def n_inner_points(self) -> int:
        return (self.nx + 1) * (self.ny + 1)

    @property
    def first_inner(self) -> int:
        """Flat index of the lower-left interior cell."""
        return self.nghost * self.cell_stride + self.nghost

    @property
    def first_inner_point(self) -> int:
        """Flat index of the lower-left interior vertex."""
        return self.nghost * self.point_stride + self.nghost

    # ----- mappings -----

    @staticmethod
    def _check_ordinal(i, upper: int):
        arr = np.asarray(i)
        if not np.issubdtype(arr.dtype, np.integer):
            raise TypeError(f"Ordinals must be integers, got {arr.dtype}")
        if np.any((arr < 0) | (arr >= upper)):
            raise IndexError(f"Ordinal out of range [0, {upper})")

    def inner_index(self, i):
        """Map inner cell ordinal(s) 0..nx*ny-1 to flat cell index(es)."""
        self._check_ordinal(i, self.n_inner)
        return self.first_inner + i % self.nx + (i // self.nx) * self.cell_stride

    def inner_point_index(self, i):
        """Map inner vertex ordinal(s) 0..(nx+1)*(ny+1)-1 to flat vertex index(es)."""
        self._check_ordinal(i, self.n_inner_points)
        row_len = self.nx + 1
        return self.first_inner_point + i % row_len + (i // row_len) * self.point_stride

    def cell_index(self, col, row):
        """Flat cell index from raster column and row (ghosts included)."""
        return col + row * self.cell_stride

    def cell_coords(self, k):
        """Raster (column, row) of flat cell index(es)."""
        return k % self.cell_stride, k // self.cell_stride

    def is_ghost(self, k):
        """True where the flat cell index lies in the ghost layer."""
        col, row = self.cell_coords(np.asarray(k))
        g = self.nghost
        return (col < g) | (col >= g + self.nx) | (row < g) | (row >= g + self.ny)

    def inner_cells(self) -> np.ndarray:
        """Flat indices of all interior cells in inner-ordinal order."""
        return self.inner_index(np.arange(self.n_inner))

    def inner_points(self) -> np.ndarray:
        """Flat indices of all interior vertices in inner-ordinal order."""
        return self.inner_point_index(np.arange(self.n_inner_points))
