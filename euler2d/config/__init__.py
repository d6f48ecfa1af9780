"""
Configuration module for the Euler solver.

Provides YAML-based configuration with dataclass schema.
"""

from .schema import (
    SimulationConfig,
    GridConfig,
    FlowConfig,
    SolverSettings,
    OutputConfig,
    coarse_preset,
    medium_preset,
    fine_preset,
)

from .loader import (
    load_yaml,
    from_dict,
    apply_cli_overrides,
    save_yaml,
)

__all__ = [
    # Schema classes
    'SimulationConfig',
    'GridConfig',
    'FlowConfig',
    'SolverSettings',
    'OutputConfig',
    # Presets
    'coarse_preset',
    'medium_preset',
    'fine_preset',
    # Loader functions
    'load_yaml',
    'from_dict',
    'apply_cli_overrides',
    'save_yaml',
]
