"""
Shared pytest fixtures for the test suite.

Meshes are tiny channels (ghost layers included) so every test runs in well
under a second; the solver fixtures write into pytest's tmp_path.
"""

import pytest
import numpy as np

from euler2d.config import SimulationConfig, GridConfig, SolverSettings, OutputConfig
from euler2d.grid import StructuredMesh, channel_nodes
from euler2d.physics.state import conservative_from_primitive
from euler2d.utils.logging import setup_logging

setup_logging("WARNING")


# =============================================================================
# Mesh Fixtures
# =============================================================================

@pytest.fixture
def flat_mesh():
    """
    Flat channel, 4 x 3 interior cells of size 0.5 x 0.5.

    Node array shape: (4 + 2*2 + 1, 3 + 2*2 + 1) = (9, 8)
    """
    X, Y = channel_nodes(4, 3, x_max=2.0, height=1.5, bump_height=0.0)
    return StructuredMesh.from_nodes(X, Y)


@pytest.fixture
def bump_mesh():
    """Channel with the 10% circular-arc bump, 12 x 6 interior cells."""
    X, Y = channel_nodes(12, 6)
    return StructuredMesh.from_nodes(X, Y)


# =============================================================================
# State Fixtures
# =============================================================================

@pytest.fixture
def freestream_state():
    """Default initial state: rho=1, u=0.65, v=0, p=0.75."""
    return conservative_from_primitive(1.0, 0.65, 0.0, 0.75)


def random_states(n, seed=42):
    """Realizable states with moderate density, velocity and pressure."""
    rng = np.random.default_rng(seed)
    rho = rng.uniform(0.1, 2.0, n)
    u = rng.uniform(-1.0, 1.0, n)
    v = rng.uniform(-1.0, 1.0, n)
    p = rng.uniform(0.1, 2.0, n)
    return conservative_from_primitive(rho, u, v, p)


def random_normals(n, seed=7):
    """Random unit normals."""
    theta = np.random.default_rng(seed).uniform(0.0, 2.0 * np.pi, n)
    return np.cos(theta), np.sin(theta)


# =============================================================================
# Solver Fixtures
# =============================================================================

@pytest.fixture
def small_config(tmp_path):
    """15 x 5 GAMM channel, short run, output into tmp_path."""
    return SimulationConfig(
        grid=GridConfig(nx=15, ny=5),
        solver=SolverSettings(max_iter=20, print_freq=10),
        output=OutputConfig(directory=str(tmp_path / "out"), case_name="test",
                            write_plots=False),
    )


@pytest.fixture
def make_states():
    """Factory for random realizable states: make_states(n, seed=42)."""
    return random_states


@pytest.fixture
def make_normals():
    """Factory for random unit normals: make_normals(n, seed=7)."""
    return random_normals
