"""
Input/Output module for the Euler solver.

Provides:
- CSV, DAT and VTK export of cell and vertex data
- Residual history files
- Matplotlib convergence and Mach field plots
"""

from .output import (
    solution_filename,
    cell_fields,
    vertex_fields,
    write_cells_csv,
    write_points_csv,
    write_wall_dat,
    write_vtk,
    write_residual_history,
    write_failure_report,
)

__all__ = [
    'solution_filename',
    'cell_fields',
    'vertex_fields',
    'write_cells_csv',
    'write_points_csv',
    'write_wall_dat',
    'write_vtk',
    'write_residual_history',
    'write_failure_report',
]
