"""
Solution export for the Euler solver.

Supports:
- Cell-centered CSV ("X", "Y", "Z", "MACH_NUMBER", "PRESSURE"[, "CP"])
- Vertex CSV with cell values averaged onto the interior vertices
- DAT profiles along the lower wall (first interior row)
- Legacy VTK ASCII format (structured grid, cell data)
- Residual history and failure reports

File names follow ``<case>_<HHhMMm>_<iteration>.<ext>``.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
from loguru import logger
from numba import njit

from euler2d.constants import GAMMA
from euler2d.grid.mesh import StructuredMesh
from euler2d.numerics.diagnostics import compute_pressure_coefficient
from euler2d.physics.state import compute_pv

PathLike = Union[str, Path]

CSV_HEADER = '"X", "Y", "Z", "MACH_NUMBER", "PRESSURE"'


def solution_filename(directory: PathLike, case_name: str, iteration: int,
                      suffix: str, stamp: Optional[datetime] = None) -> Path:
    """Output path ``directory/case_HHhMMm_iteration.suffix``."""
    stamp = stamp or datetime.now()
    return Path(directory) / f"{case_name}_{stamp:%Hh%Mm}_{iteration}.{suffix.lstrip('.')}"


def cell_fields(mesh: StructuredMesh, gamma: float = GAMMA,
                freestream=None) -> Dict[str, np.ndarray]:
    """
    Interior cell-centered fields in inner-ordinal order.

    Returns
    -------
    dict
        x, y, rho, u, v, p, mach (and cp when ``freestream`` is given).
    """
    inner = mesh.interior
    prim = compute_pv(mesh.cells.w[inner], gamma)
    fields = {
        'x': mesh.cells.xc[inner],
        'y': mesh.cells.yc[inner],
        'rho': prim.rho,
        'u': prim.u,
        'v': prim.v,
        'p': prim.p,
        'mach': prim.U / prim.c,
    }
    if freestream is not None:
        fields['cp'] = compute_pressure_coefficient(prim.p, freestream)
    return fields


@njit(cache=True)
def _vertex_average_kernel(values: np.ndarray, nx: int, ny: int) -> np.ndarray:
    """
    Average cell values onto the (nx+1) x (ny+1) interior vertices.

    Parameters
    ----------
    values : ndarray, shape (nx*ny, n_fields)
        Cell values in inner-ordinal order.

    Returns
    -------
    ndarray, shape ((nx+1)*(ny+1), n_fields)
        Vertex values in inner-vertex-ordinal order; each vertex holds the
        mean over the cells that share it.
    """
    n_fields = values.shape[1]
    row_len = nx + 1
    sums = np.zeros(((nx + 1) * (ny + 1), n_fields))
    counts = np.zeros((nx + 1) * (ny + 1))

    for i in range(nx * ny):
        col = i % nx
        row = i // nx
        base = col + row * row_len
        for c in range(4):
            corner = base + (c % 2) + (c // 2) * row_len
            counts[corner] += 1.0
            for f in range(n_fields):
                sums[corner, f] += values[i, f]

    for k in range(sums.shape[0]):
        if counts[k] > 0.0:
            for f in range(n_fields):
                sums[k, f] /= counts[k]
    return sums


def vertex_fields(mesh: StructuredMesh, gamma: float = GAMMA,
                  freestream=None) -> Dict[str, np.ndarray]:
    """Interior vertex coordinates and vertex-averaged Mach/pressure (and Cp)."""
    cells = cell_fields(mesh, gamma, freestream)
    names = ['mach', 'p'] + (['cp'] if 'cp' in cells else [])
    values = np.ascontiguousarray(np.stack([cells[n] for n in names], axis=-1))
    averaged = _vertex_average_kernel(values, mesh.index.nx, mesh.index.ny)

    px, py = mesh.point_coordinates()
    points = mesh.index.inner_points()
    fields = {'x': px[points], 'y': py[points]}
    for n, name in enumerate(names):
        fields[name] = averaged[:, n]
    return fields


def _write_csv(path: Path, fields: Dict[str, np.ndarray]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    extra = 'cp' in fields
    with open(path, 'w') as f:
        f.write(CSV_HEADER + (', "CP"' if extra else '') + "\n")
        for n in range(fields['x'].size):
            line = (f"{fields['x'][n]:.10e}, {fields['y'][n]:.10e}, 1, "
                    f"{fields['mach'][n]:.10e}, {fields['p'][n]:.10e}")
            if extra:
                line += f", {fields['cp'][n]:.10e}"
            f.write(line + "\n")
    return path


def write_cells_csv(path: PathLike, mesh: StructuredMesh, gamma: float = GAMMA,
                    freestream=None) -> Path:
    """Write interior cell-centered Mach number and pressure to CSV."""
    path = _write_csv(Path(path), cell_fields(mesh, gamma, freestream))
    logger.info(f"Saved cell CSV to: {path}")
    return path


def write_points_csv(path: PathLike, mesh: StructuredMesh, gamma: float = GAMMA,
                     freestream=None) -> Path:
    """Write vertex-averaged Mach number and pressure to CSV."""
    path = _write_csv(Path(path), vertex_fields(mesh, gamma, freestream))
    logger.info(f"Saved vertex CSV to: {path}")
    return path


def write_wall_dat(path: PathLike, mesh: StructuredMesh, gamma: float = GAMMA,
                   freestream=None, points: bool = False) -> Path:
    """
    Write the lower-wall profile: ``x y mach p [cp]`` per line.

    Parameters
    ----------
    points : bool
        Use the first row of interior vertices (``x y 1 mach p``) instead of
        the first row of interior cells.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    nx = mesh.index.nx
    if points:
        fields = vertex_fields(mesh, gamma, freestream)
        n_row = nx + 1
    else:
        fields = cell_fields(mesh, gamma, freestream)
        n_row = nx

    with open(path, 'w') as f:
        for n in range(n_row):
            line = f"{fields['x'][n]:.10e} {fields['y'][n]:.10e}"
            if points:
                line += " 1"
            line += f" {fields['mach'][n]:.10e} {fields['p'][n]:.10e}"
            if 'cp' in fields:
                line += f" {fields['cp'][n]:.10e}"
            f.write(line + "\n")

    logger.info(f"Saved wall profile to: {path}")
    return path


def write_residual_history(path: PathLike, history: Sequence[float]) -> Path:
    """Write ``iteration log-residual`` pairs."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write("# Iteration  log(||R||)\n")
        for i, res in enumerate(history):
            f.write(f"{i + 1:8d}  {res:.10e}\n")
    logger.info(f"Residual history saved to: {path}")
    return path


def write_failure_report(path: PathLike, report) -> Path:
    """Write the recorded failure of a run as ``key: value`` lines."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(f"kind: {report.kind}\n")
        f.write(f"iteration: {report.iteration}\n")
        f.write(f"message: {report.message}\n")
        f.write("faces: " + " ".join(str(int(k)) for k in report.faces) + "\n")
        f.write("cells: " + " ".join(str(int(k)) for k in report.cells) + "\n")
    logger.info(f"Failure report saved to: {path}")
    return path


def write_vtk(filename: PathLike, mesh: StructuredMesh, gamma: float = GAMMA,
              freestream=None, iteration: int = 0) -> Path:
    """
    Write the interior solution to VTK legacy format (structured grid).

    Points are the interior mesh vertices; fields are written as CELL_DATA.

    Parameters
    ----------
    filename : str or Path
        Output VTK file path (``.vtk`` added if missing).
    mesh : StructuredMesh
    gamma : float
    freestream : FreestreamConditions, optional
        Adds the pressure coefficient field when given.
    iteration : int
        Iteration number recorded in the header.
    """
    filename = Path(filename)
    if filename.suffix != '.vtk':
        filename = filename.with_suffix('.vtk')
    filename.parent.mkdir(parents=True, exist_ok=True)

    nx, ny = mesh.index.nx, mesh.index.ny
    fields = cell_fields(mesh, gamma, freestream)
    px, py = mesh.point_coordinates()
    points = mesh.index.inner_points()

    with open(filename, 'w') as f:
        f.write("# vtk DataFile Version 3.0\n")
        f.write(f"Euler Solution - Iteration {iteration}\n")
        f.write("ASCII\n")
        f.write("DATASET STRUCTURED_GRID\n")
        f.write(f"DIMENSIONS {nx + 1} {ny + 1} 1\n")

        f.write(f"POINTS {points.size} double\n")
        for k in points:
            f.write(f"{px[k]:.10e} {py[k]:.10e} 0.0\n")

        f.write(f"\nCELL_DATA {nx * ny}\n")
        _write_scalar_field(f, "density", fields['rho'])
        _write_scalar_field(f, "pressure", fields['p'])
        _write_scalar_field(f, "mach", fields['mach'])
        if 'cp' in fields:
            _write_scalar_field(f, "cp", fields['cp'])

        f.write("\nVECTORS velocity double\n")
        for u, v in zip(fields['u'], fields['v']):
            f.write(f"{u:.10e} {v:.10e} 0.0\n")

    logger.info(f"Saved VTK file to: {filename}")
    return filename


def _write_scalar_field(f, name: str, data: np.ndarray) -> None:
    """Write a scalar field to VTK file."""
    f.write(f"\nSCALARS {name} double 1\n")
    f.write("LOOKUP_TABLE default\n")
    for value in data:
        f.write(f"{value:.10e}\n")
