"""
Structured finite-volume mesh: cell and interface arenas.

Coordinate System:
    - i: x-direction (streamwise in a channel), raster column
    - j: y-direction (wall-normal in a channel), raster row

Grid Layout:
    - Node coordinates X, Y have shape (NI+1, NJ+1) where NI, NJ count
      every cell including the ghost layers
    - Cell (i,j) is bounded by nodes (i,j), (i+1,j), (i+1,j+1), (i,j+1)
    - Cells are stored flat in raster order, k = i + j * NI (see GridIndex)

Interfaces join two adjacent cells of which at least one is interior. The
left cell always has the lower flat index and the unit normal points from
left to right, which fixes the sign of the flux.
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import numpy.typing as npt

from euler2d.constants import NGHOST, N_VARS
from euler2d.errors import MeshError
from euler2d.grid.topology import GridIndex

NDArrayFloat = npt.NDArray[np.floating]
NDArrayInt = npt.NDArray[np.integer]


@dataclass
class Cells:
    """Per-cell arrays (structure of arrays), indexed by flat cell index."""

    w: NDArrayFloat           # (n, 4) conservative state
    rezi: NDArrayFloat        # (n, 4) residual accumulator
    dt: NDArrayFloat          # (n,) time step
    area: NDArrayFloat        # (n,) cell area
    xi: NDArrayFloat          # (n, 2) unit vector across the cell in i
    xi_length: NDArrayFloat   # (n,) cell extent in i
    eta: NDArrayFloat         # (n, 2) unit vector across the cell in j
    eta_length: NDArrayFloat  # (n,) cell extent in j
    xc: NDArrayFloat          # (n,) cell center x
    yc: NDArrayFloat          # (n,) cell center y

    def __len__(self) -> int:
        return self.area.shape[0]


@dataclass
class Interfaces:
    """Per-face arrays (structure of arrays), indexed by face number."""

    left: NDArrayInt          # (m,) left cell index
    right: NDArrayInt         # (m,) right cell index
    nx: NDArrayFloat          # (m,) unit normal x, left -> right
    ny: NDArrayFloat          # (m,) unit normal y, left -> right
    length: NDArrayFloat      # (m,) face length

    def __len__(self) -> int:
        return self.left.shape[0]


@dataclass
class StructuredMesh:
    """Single owner of cells, interfaces and node coordinates for a run."""

    index: GridIndex
    X: NDArrayFloat
    Y: NDArrayFloat
    cells: Cells
    faces: Interfaces
    interior: NDArrayInt = field(init=False, repr=False)

    def __post_init__(self):
        self.interior = self.index.inner_cells()
        n_cells = self.index.n_cells
        if len(self.cells) != n_cells:
            raise MeshError(f"Expected {n_cells} cells, got {len(self.cells)}")
        if len(self.faces) and (
            self.faces.left.min() < 0 or self.faces.right.max() >= n_cells
        ):
            raise MeshError("Interface references a cell outside the mesh")

    @classmethod
    def from_nodes(cls, X: NDArrayFloat, Y: NDArrayFloat,
                   nghost: int = NGHOST) -> 'StructuredMesh':
        """
        Build the mesh from node coordinates that include the ghost layers.

        Parameters
        ----------
        X, Y : ndarray, shape (nx + 2*nghost + 1, ny + 2*nghost + 1)
            Node coordinates, indexed [i, j].
        nghost : int
            Ghost layer depth.
        """
        X = np.asarray(X, dtype=np.float64)
        Y = np.asarray(Y, dtype=np.float64)
        if X.shape != Y.shape or X.ndim != 2:
            raise MeshError(f"X and Y must be matching 2D arrays, got {X.shape} and {Y.shape}")

        nx = X.shape[0] - 1 - 2 * nghost
        ny = X.shape[1] - 1 - 2 * nghost
        if nx < 1 or ny < 1:
            raise MeshError(f"Node array {X.shape} too small for ghost depth {nghost}")
        index = GridIndex(nx, ny, nghost)

        cells = _compute_cells(X, Y)
        faces = _compute_faces(X, Y, index)
        return cls(index=index, X=X, Y=Y, cells=cells, faces=faces)

    @property
    def shape(self) -> Tuple[int, int]:
        """(NI, NJ) cell counts including ghosts."""
        return self.index.cell_stride, self.index.cell_rows

    def field(self, values: np.ndarray) -> np.ndarray:
        """(i, j, ...) view of a flat per-cell array; writes go through."""
        NI, NJ = self.shape
        return values.reshape((NJ, NI) + values.shape[1:]).swapaxes(0, 1)

    def point_coordinates(self) -> Tuple[NDArrayFloat, NDArrayFloat]:
        """Node coordinates flattened in vertex raster order."""
        return self.X.T.ravel(), self.Y.T.ravel()


def _flatten(a: np.ndarray) -> np.ndarray:
    """(i, j, ...) array -> flat raster order (i fastest)."""
    return np.ascontiguousarray(a.swapaxes(0, 1)).reshape((-1,) + a.shape[2:])


def _unit_and_length(dx: np.ndarray, dy: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    length = np.hypot(dx, dy)
    if np.any(length <= 0.0):
        raise MeshError("Degenerate geometry: zero-length cell extent or face")
    return np.stack([dx / length, dy / length], axis=-1), length


def _compute_cells(X: NDArrayFloat, Y: NDArrayFloat) -> Cells:
    """Cell areas, centers and direction vectors for every cell."""
    # Cell centers: average of four corner nodes
    xc = 0.25 * (X[:-1, :-1] + X[1:, :-1] + X[1:, 1:] + X[:-1, 1:])
    yc = 0.25 * (Y[:-1, :-1] + Y[1:, :-1] + Y[1:, 1:] + Y[:-1, 1:])

    # Signed area from the diagonals AC x BD, A=(i,j), B=(i+1,j), C=(i+1,j+1), D=(i,j+1)
    dx_ac = X[1:, 1:] - X[:-1, :-1]
    dy_ac = Y[1:, 1:] - Y[:-1, :-1]
    dx_bd = X[:-1, 1:] - X[1:, :-1]
    dy_bd = Y[:-1, 1:] - Y[1:, :-1]
    area = 0.5 * (dx_ac * dy_bd - dy_ac * dx_bd)
    if np.any(area <= 0.0):
        bad = np.argwhere(area <= 0.0)[0]
        raise MeshError(f"Non-positive cell area at (i={bad[0]}, j={bad[1]})")

    # xi: west face midpoint -> east face midpoint
    xw = 0.5 * (X[:-1, :-1] + X[:-1, 1:])
    yw = 0.5 * (Y[:-1, :-1] + Y[:-1, 1:])
    xe = 0.5 * (X[1:, :-1] + X[1:, 1:])
    ye = 0.5 * (Y[1:, :-1] + Y[1:, 1:])
    xi, xi_length = _unit_and_length(xe - xw, ye - yw)

    # eta: south face midpoint -> north face midpoint
    xs = 0.5 * (X[:-1, :-1] + X[1:, :-1])
    ys = 0.5 * (Y[:-1, :-1] + Y[1:, :-1])
    xn = 0.5 * (X[:-1, 1:] + X[1:, 1:])
    yn = 0.5 * (Y[:-1, 1:] + Y[1:, 1:])
    eta, eta_length = _unit_and_length(xn - xs, yn - ys)

    n = area.size
    return Cells(
        w=np.zeros((n, N_VARS)),
        rezi=np.zeros((n, N_VARS)),
        dt=np.zeros(n),
        area=_flatten(area),
        xi=_flatten(xi),
        xi_length=_flatten(xi_length),
        eta=_flatten(eta),
        eta_length=_flatten(eta_length),
        xc=_flatten(xc),
        yc=_flatten(yc),
    )


def _compute_faces(X: NDArrayFloat, Y: NDArrayFloat, index: GridIndex) -> Interfaces:
    """Interfaces adjacent to at least one interior cell."""
    NI, NJ = index.cell_stride, index.cell_rows

    # I-faces: node column i, between cells (i-1, j) and (i, j)
    ii, jj = np.meshgrid(np.arange(1, NI), np.arange(NJ), indexing='ij')
    dx = X[1:-1, 1:] - X[1:-1, :-1]
    dy = Y[1:-1, 1:] - Y[1:-1, :-1]
    i_left = index.cell_index(ii - 1, jj)
    i_right = index.cell_index(ii, jj)
    i_nx, i_ny = dy, -dx

    # J-faces: node row j, between cells (i, j-1) and (i, j)
    ii, jj = np.meshgrid(np.arange(NI), np.arange(1, NJ), indexing='ij')
    dx = X[1:, 1:-1] - X[:-1, 1:-1]
    dy = Y[1:, 1:-1] - Y[:-1, 1:-1]
    j_left = index.cell_index(ii, jj - 1)
    j_right = index.cell_index(ii, jj)
    j_nx, j_ny = -dy, dx

    left = np.concatenate([i_left.ravel(), j_left.ravel()])
    right = np.concatenate([i_right.ravel(), j_right.ravel()])
    sx = np.concatenate([i_nx.ravel(), j_nx.ravel()])
    sy = np.concatenate([i_ny.ravel(), j_ny.ravel()])

    keep = ~(index.is_ghost(left) & index.is_ghost(right))
    left, right, sx, sy = left[keep], right[keep], sx[keep], sy[keep]

    normal, length = _unit_and_length(sx, sy)
    return Interfaces(
        left=left.astype(np.int64),
        right=right.astype(np.int64),
        nx=normal[:, 0],
        ny=normal[:, 1],
        length=length,
    )
