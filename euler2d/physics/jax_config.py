"""JAX configuration for the compiled kernels: 64-bit precision and platform selection."""

import os
from typing import Optional

from loguru import logger

_VALID_PLATFORMS = ('cpu', 'gpu', 'cuda', 'tpu')


def select_platform(platform: Optional[str] = None) -> Optional[str]:
    """Select the JAX platform before JAX initialization.

    Parameters
    ----------
    platform : str, optional
        "cpu", "gpu"/"cuda" or "tpu". None or "auto" leaves the choice to JAX
        (or to an already exported ``JAX_PLATFORMS``).

    Returns
    -------
    str or None
        The platform that was requested, or None for automatic selection.

    Notes
    -----
    Only effective when called before the first JAX computation.
    """
    if platform is None or platform == "auto":
        return os.environ.get('JAX_PLATFORMS') or None

    name = platform.lower()
    if name not in _VALID_PLATFORMS:
        raise ValueError(f"Invalid JAX platform: {platform}. "
                         f"Use 'auto' or one of {_VALID_PLATFORMS}")
    if name == 'gpu':
        name = 'cuda'
    os.environ['JAX_PLATFORMS'] = name
    logger.debug(f"JAX platform forced to '{name}'")
    return name


select_platform(os.environ.get('EULER2D_JAX_PLATFORM'))

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)


def get_device_info() -> str:
    """Get available JAX devices as string."""
    devices = jax.devices()
    device_strs = [f"{d.platform}:{d.id}" for d in devices]
    return f"JAX devices: {device_strs}"


__all__ = ['jax', 'jnp', 'get_device_info', 'select_platform']
