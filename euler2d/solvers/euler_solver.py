"""
Explicit finite-volume solver for the 2D compressible Euler equations.

State vector: W = [ρ, ρu, ρv, ρE]

One iteration:
    1. Refresh ghost cells (boundary conditions)
    2. CFL time step for every cell
    3. Riemann flux at every interface, accumulated into cell residuals
    4. Convergence metric from the residual field
    5. Residual applied to interior cells, residuals reset

The first failure (non-realizable state or unresolved wave ordering) is
recorded in the run outcome, reported with the failing faces and cells,
and halts time integration for good.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

import numpy as np
from loguru import logger

from ..config.schema import SimulationConfig
from ..errors import Euler2DError, RealizabilityError, SolverHaltedError
from ..grid.channel import build_channel_mesh
from ..grid.mesh import StructuredMesh
from ..numerics.diagnostics import compute_solution_bounds
from ..numerics.fluxes import FluxStatus
from ..numerics.residual import SweepResult, compute_rezi, compute_scheme
from ..numerics.updates import update_cells
from ..physics.jax_config import get_device_info
from ..io import output
from ..io.plotting import plot_convergence, plot_mach_field
from .boundary_conditions import (
    ChannelBoundaryConditions,
    FreestreamConditions,
    initialize_state,
)
from .time_stepping import update_cell_dt

# Failing faces/cells listed individually in the log
_MAX_REPORTED = 10


class SweepOutcome(NamedTuple):
    """Result of one solver iteration."""
    iteration: int
    rezi: float
    sweep: SweepResult


@dataclass
class FailureReport:
    """
    First failure of a run.

    A sweep with both non-realizable and wave-ordering faces is reported as
    ``non_realizable``; the message carries the count of each.
    """
    iteration: int
    kind: str                      # non_realizable, wave_ordering, diverged, error
    message: str
    faces: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    cells: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))


@dataclass
class RunOutcome:
    """Per-run outcome; ``error`` is set once and never cleared."""
    iterations: int = 0
    converged: bool = False
    residual_history: List[float] = field(default_factory=list)
    error: Optional[FailureReport] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def record_failure(self, report: FailureReport) -> None:
        if self.error is None:
            self.error = report


class EulerSolver:
    """
    Explicit Euler solver for channel flow.
    """

    def __init__(self,
                 config: Optional[SimulationConfig] = None,
                 mesh: Optional[StructuredMesh] = None):
        """Initialize mesh, boundary conditions and the uniform initial state."""
        self.config = (config if config is not None else SimulationConfig()).validate()
        flow = self.config.flow

        self.mesh = mesh if mesh is not None else build_channel_mesh(self.config.grid)
        self.freestream = FreestreamConditions.from_total_conditions(
            flow.p0, flow.rho0, flow.p2, flow.alpha, flow.gamma)
        self.bc = ChannelBoundaryConditions(
            self.mesh, p0=flow.p0, rho0=flow.rho0, p2=flow.p2,
            alpha_deg=flow.alpha, gamma=flow.gamma)
        initialize_state(self.mesh, flow.rho_init, flow.u_init, flow.v_init,
                         flow.p_init, flow.gamma)

        self.iteration = 0
        self.outcome = RunOutcome()

        solver = self.config.solver
        logger.info(f"{'='*60}")
        logger.info("Euler Solver Initialized")
        logger.info(f"{'='*60}")
        logger.info(f"Grid size: {self.mesh.index.nx} x {self.mesh.index.ny} cells")
        logger.info(f"Scheme: {solver.scheme.upper()} ({solver.backend})")
        if solver.backend == 'jax':
            logger.info(get_device_info())
        logger.info(f"CFL: {solver.cfl} ({'global' if solver.use_global_dt else 'local'} time step)")
        logger.info(f"Inlet: p0={flow.p0}, rho0={flow.rho0}, alpha={flow.alpha}°")
        logger.info(f"Outlet: p2={flow.p2} (isentropic Mach {self.freestream.mach:.4f})")
        logger.info(f"Max iterations: {solver.max_iter}")
        logger.info(f"Convergence tolerance: log residual < {solver.tol}")
        logger.info(f"{'='*60}")

    def step(self) -> SweepOutcome:
        """
        Advance one explicit iteration.

        The interior state is only updated when every face flux succeeded.
        A failed sweep discards its residuals and is recorded in
        ``self.outcome``.

        Raises
        ------
        SolverHaltedError
            If the run already recorded a failure.
        RealizabilityError
            If a cell state is non-physical before fluxes are evaluated
            (also recorded in ``self.outcome``).
        """
        if self.outcome.failed:
            raise SolverHaltedError(f"Run halted at iteration {self.outcome.error.iteration}: "
                                    f"{self.outcome.error.message}")

        solver = self.config.solver
        gamma = self.config.flow.gamma

        try:
            self.bc.apply(self.mesh)
            update_cell_dt(self.mesh, solver.cfl, solver.use_global_dt, gamma,
                           backend=solver.backend)
        except RealizabilityError as err:
            self.outcome.record_failure(self._report_state_failure(err))
            raise

        sweep = compute_scheme(self.mesh, solver.scheme, gamma, backend=solver.backend)
        rezi = compute_rezi(self.mesh)

        self.iteration += 1
        result = SweepOutcome(iteration=self.iteration, rezi=rezi, sweep=sweep)
        if sweep.ok:
            update_cells(self.mesh)
        else:
            self.mesh.cells.rezi.fill(0.0)
            self.outcome.record_failure(self._report_sweep_failure(result))
        return result

    def _report_sweep_failure(self, result: SweepOutcome) -> FailureReport:
        """Log the failing faces with their cells; build the failure report."""
        faces = self.mesh.faces
        cells = self.mesh.cells
        status = result.sweep.status
        failed = result.sweep.failed_faces
        n_state = result.sweep.non_realizable_faces.size
        n_wave = result.sweep.wave_ordering_faces.size

        kind = "non_realizable" if n_state else "wave_ordering"
        message = (f"Flux failure ({kind}) at {failed.size} face(s) in iteration "
                   f"{result.iteration}: {n_state} non-realizable, {n_wave} wave ordering")
        logger.error(message)
        for f in failed[:_MAX_REPORTED]:
            l, r = faces.left[f], faces.right[f]
            logger.error(f"  face {f} [{FluxStatus(int(status[f])).name}]: "
                         f"left cell {l} ({cells.xc[l]:.4f}, {cells.yc[l]:.4f}) "
                         f"right cell {r} ({cells.xc[r]:.4f}, {cells.yc[r]:.4f})")
        if failed.size > _MAX_REPORTED:
            logger.error(f"  ... and {failed.size - _MAX_REPORTED} more")

        involved = np.unique(np.concatenate([faces.left[failed], faces.right[failed]]))
        return FailureReport(iteration=result.iteration, kind=kind, message=message,
                             faces=failed, cells=involved)

    def _report_state_failure(self, err: RealizabilityError) -> FailureReport:
        cells = self.mesh.cells
        bad = err.indices
        message = f"Non-realizable cell state in iteration {self.iteration + 1}: {err}"
        logger.error(message)
        for k in bad[:_MAX_REPORTED]:
            logger.error(f"  cell {k} ({cells.xc[k]:.4f}, {cells.yc[k]:.4f}) "
                         f"w = {np.array2string(cells.w[k], precision=5)}")
        if bad.size > _MAX_REPORTED:
            logger.error(f"  ... and {bad.size - _MAX_REPORTED} more")
        return FailureReport(iteration=self.iteration + 1, kind="non_realizable",
                             message=message, cells=bad)

    def run(self) -> RunOutcome:
        """Iterate until convergence, failure or the iteration limit."""
        solver = self.config.solver
        outcome = self.outcome

        if outcome.failed:
            logger.error(f"Run halted at iteration {outcome.error.iteration}: "
                         f"{outcome.error.message}")
            return outcome

        logger.info(f"{'='*60}")
        logger.info("Starting Iteration")
        logger.info(f"{'='*60}")
        logger.info(f"{'Iter':>8} {'log(Res)':>14} {'min dt':>12}")
        logger.info(f"{'-'*36}")

        for _ in range(solver.max_iter):
            try:
                result = self.step()
            except RealizabilityError:
                # Recorded by step()
                break
            except Euler2DError as err:
                logger.error(f"Error during iteration {self.iteration + 1}: {err}")
                outcome.record_failure(FailureReport(
                    iteration=self.iteration + 1, kind="error", message=str(err)))
                break

            outcome.iterations = result.iteration
            outcome.residual_history.append(result.rezi)

            if not result.sweep.ok:
                break

            if result.iteration % solver.print_freq == 0 or result.iteration == 1:
                logger.info(f"{result.iteration:>8d} {result.rezi:>14.6f} "
                            f"{float(np.min(self.mesh.cells.dt)):>12.4e}")

            if result.rezi < solver.tol:
                outcome.converged = True
                logger.info(f"{'='*60}")
                logger.info(f"CONVERGED at iteration {result.iteration}")
                logger.info(f"Final log residual: {result.rezi:.6f}")
                logger.info(f"{'='*60}")
                break

            if not np.isfinite(result.rezi):
                message = f"Residual {result.rezi} is not finite"
                logger.warning(f"{'='*60}")
                logger.warning(f"DIVERGED at iteration {result.iteration}: {message}")
                logger.warning(f"{'='*60}")
                outcome.record_failure(FailureReport(
                    iteration=result.iteration, kind="diverged", message=message))
                break
        else:
            logger.info(f"{'='*60}")
            logger.info(f"Maximum iterations ({solver.max_iter}) reached")
            if outcome.residual_history:
                logger.info(f"Final log residual: {outcome.residual_history[-1]:.6f}")
            logger.info(f"{'='*60}")

        return outcome

    def solution_bounds(self) -> Dict:
        """Interior density, pressure and Mach extrema."""
        return compute_solution_bounds(self.mesh, self.config.flow.gamma)

    def save_results(self, stamp: Optional[datetime] = None) -> List[Path]:
        """
        Write the configured output files; returns the written paths.

        After a failed run the state may be non-physical, so only the
        residual history, the convergence plot and a failure report are
        written.
        """
        out_cfg = self.config.output
        gamma = self.config.flow.gamma
        directory = Path(out_cfg.directory)
        stamp = stamp or datetime.now()
        failed = self.outcome.failed

        def name(suffix, tag=""):
            return output.solution_filename(directory, out_cfg.case_name + tag,
                                            self.iteration, suffix, stamp)

        written = []
        if failed:
            written.append(output.write_failure_report(
                directory / f"{out_cfg.case_name}_failure.txt", self.outcome.error))
            logger.warning("Run failed; solution fields not exported")
        else:
            if out_cfg.write_csv:
                written.append(output.write_cells_csv(name("csv"), self.mesh, gamma,
                                                      self.freestream))
            if out_cfg.write_points:
                written.append(output.write_points_csv(name("csv", "_points"), self.mesh,
                                                       gamma, self.freestream))
            if out_cfg.write_dat:
                written.append(output.write_wall_dat(name("dat"), self.mesh, gamma,
                                                     self.freestream))
            if out_cfg.write_vtk:
                written.append(output.write_vtk(name("vtk"), self.mesh, gamma, self.freestream,
                                                iteration=self.iteration))
        if self.outcome.residual_history:
            written.append(output.write_residual_history(
                directory / f"{out_cfg.case_name}_residual_history.dat",
                self.outcome.residual_history))
        if out_cfg.write_plots:
            if self.outcome.residual_history:
                written.append(plot_convergence(self.outcome.residual_history,
                                                directory / f"{out_cfg.case_name}_convergence.png",
                                                tol=self.config.solver.tol))
            if not failed:
                written.append(plot_mach_field(self.mesh,
                                               directory / f"{out_cfg.case_name}_mach.png",
                                               gamma, self.iteration))
        return written
