"""
euler2d: explicit finite-volume solver for the 2D compressible Euler equations.
"""

__version__ = "0.1.0"
