"""
Solvers module: time stepping, boundary conditions and the iteration driver.
"""

from .time_stepping import (
    update_cell_dt,
    compute_cell_dt,
    apply_time_step_mode,
)

from .boundary_conditions import (
    FreestreamConditions,
    ChannelBoundaryConditions,
    initialize_state,
)

from .euler_solver import (
    EulerSolver,
    RunOutcome,
    FailureReport,
    SweepOutcome,
)

__all__ = [
    'update_cell_dt',
    'compute_cell_dt',
    'apply_time_step_mode',
    'FreestreamConditions',
    'ChannelBoundaryConditions',
    'initialize_state',
    'EulerSolver',
    'RunOutcome',
    'FailureReport',
    'SweepOutcome',
]
