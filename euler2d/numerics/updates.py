"""
Explicit Euler update of the conservative state.

The residual accumulated by ``compute_scheme`` already carries the Δt/area
scaling, so the update is a plain addition:

    W_inner += rezi_inner,  rezi := 0

Ghost-cell states are owned by the boundary conditions and are never
updated here.
"""

from euler2d.grid.mesh import StructuredMesh


def update_cells(mesh: StructuredMesh) -> None:
    """Apply accumulated residuals to interior cells and reset all residuals.

    Residuals gathered on ghost cells are discarded together with the
    interior ones, so every residual is exactly zero afterwards.
    """
    cells = mesh.cells
    inner = mesh.interior
    cells.w[inner] += cells.rezi[inner]
    cells.rezi.fill(0.0)
