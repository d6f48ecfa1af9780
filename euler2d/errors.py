"""
Exception hierarchy for the Euler solver.

Flux evaluation itself never raises: it reports per-face statuses that the
sweep driver folds into a run outcome. These exceptions are raised by the
state model, mesh construction and configuration validation, and by
``SweepResult.raise_for_status`` for callers that prefer exceptions.
"""

from typing import Optional, Sequence

import numpy as np


class Euler2DError(Exception):
    """Base class for all solver errors."""


class RealizabilityError(Euler2DError):
    """Non-physical state: density or pressure not strictly positive, or non-finite.

    Attributes
    ----------
    indices : ndarray of int
        Positions of the offending states. For a batch of cell states these
        are cell indices; for a sweep they are face indices.
    """

    def __init__(self, message: str, indices: Optional[Sequence[int]] = None):
        super().__init__(message)
        self.indices = np.asarray(indices if indices is not None else [], dtype=np.int64)


class SolverLogicError(Euler2DError):
    """A Riemann solver reached a wave configuration with no matching branch."""

    def __init__(self, message: str, faces: Optional[Sequence[int]] = None):
        super().__init__(message)
        self.faces = np.asarray(faces if faces is not None else [], dtype=np.int64)


class MeshError(Euler2DError):
    """Invalid mesh geometry or topology."""


class ConfigError(Euler2DError):
    """Invalid configuration value."""


class SolverHaltedError(Euler2DError):
    """Iteration requested after the run recorded a failure."""
