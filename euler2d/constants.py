"""
Global constants for the Euler solver.

This module defines constants used throughout the codebase to ensure
consistency in array shapes, component indexing and gas properties.
"""

# Number of ghost cell layers on every side of the structured grid
NGHOST = 2

# Conservative state vector components
RHO_IDX = 0  # Density
MX_IDX = 1   # x-momentum
MY_IDX = 2   # y-momentum
E_IDX = 3    # Total energy density
N_VARS = 4   # Total number of state variables

# Ratio of specific heats for air
GAMMA = 1.4
