"""
Utility functions for ampsim.

Includes logging setup and seeded random sampling.
"""

from .logging_setup import setup_logger, get_logger
from .rng import (
    RNGManager,
    UniformSampler,
    initialize_global_rng,
    get_global_rng_manager,
    get_rng,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "RNGManager",
    "UniformSampler",
    "initialize_global_rng",
    "get_global_rng_manager",
    "get_rng",
]
