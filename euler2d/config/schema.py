"""
Configuration schema for the Euler solver.

Dataclass-based configuration that can be loaded from YAML or constructed programmatically.
"""

from dataclasses import dataclass, field, asdict

from euler2d.constants import NGHOST, GAMMA
from euler2d.errors import ConfigError


@dataclass
class GridConfig:
    """Channel grid configuration."""

    nx: int = 90               # Interior cells along the channel
    ny: int = 30               # Interior cells across the channel
    nghost: int = NGHOST       # Ghost layers on every side
    x_min: float = 0.0
    x_max: float = 3.0
    height: float = 1.0
    bump_start: float = 1.0    # Lower-wall bump extent
    bump_end: float = 2.0
    bump_height: float = 0.1   # Bump thickness relative to its chord (0 = flat)


@dataclass
class FlowConfig:
    """Flow conditions configuration."""

    gamma: float = GAMMA

    # Inlet total conditions and flow angle (degrees)
    p0: float = 1.0
    rho0: float = 1.0
    alpha: float = 1.25

    # Outlet static pressure
    p2: float = 0.656

    # Uniform initial state
    rho_init: float = 1.0
    u_init: float = 0.65
    v_init: float = 0.0
    p_init: float = 0.75


@dataclass
class SolverSettings:
    """Solver iteration settings."""

    max_iter: int = 5000
    tol: float = -8.0          # Convergence threshold on log(residual norm)
    print_freq: int = 100
    cfl: float = 0.8
    use_global_dt: bool = False

    # Riemann solver: "hllc" or "hll"
    scheme: str = "hllc"

    # Kernel backend: "numpy" or "jax"
    backend: str = "numpy"


@dataclass
class OutputConfig:
    """Output configuration."""

    directory: str = "output/channel"
    case_name: str = "channel"
    write_csv: bool = True
    write_points: bool = True
    write_dat: bool = True
    write_vtk: bool = True
    write_plots: bool = True


@dataclass
class SimulationConfig:
    """Complete simulation configuration."""

    grid: GridConfig = field(default_factory=GridConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)
    solver: SolverSettings = field(default_factory=SolverSettings)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> 'SimulationConfig':
        """Raise ConfigError on values the solver cannot run with."""
        if self.grid.nx < 1 or self.grid.ny < 1:
            raise ConfigError(f"Grid needs positive cell counts, got {self.grid.nx} x {self.grid.ny}")
        if self.grid.nghost < 1:
            raise ConfigError(f"Channel boundaries need nghost >= 1, got {self.grid.nghost}")
        if self.grid.x_max <= self.grid.x_min or self.grid.height <= 0.0:
            raise ConfigError("Channel extent must be positive")
        if not 0.0 <= self.grid.bump_height < 0.5:
            raise ConfigError(f"bump_height must be in [0, 0.5), got {self.grid.bump_height}")
        if self.flow.gamma <= 1.0:
            raise ConfigError(f"gamma must exceed 1, got {self.flow.gamma}")
        for name in ('p0', 'rho0', 'p2', 'rho_init', 'p_init'):
            if getattr(self.flow, name) <= 0.0:
                raise ConfigError(f"flow.{name} must be positive")
        if self.solver.cfl <= 0.0:
            raise ConfigError(f"CFL must be positive, got {self.solver.cfl}")
        if self.solver.max_iter < 0 or self.solver.print_freq < 1:
            raise ConfigError("max_iter must be >= 0 and print_freq >= 1")
        if self.solver.scheme not in ('hll', 'hllc'):
            raise ConfigError(f"Unknown scheme '{self.solver.scheme}'")
        if self.solver.backend not in ('numpy', 'jax'):
            raise ConfigError(f"Unknown backend '{self.solver.backend}'")
        return self

    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)


# Preset grid configurations
def coarse_preset() -> GridConfig:
    """Coarse grid for debugging and tests."""
    return GridConfig(nx=30, ny=10)


def medium_preset() -> GridConfig:
    """Default resolution."""
    return GridConfig(nx=90, ny=30)


def fine_preset() -> GridConfig:
    """Fine grid for accurate results."""
    return GridConfig(nx=180, ny=60)
