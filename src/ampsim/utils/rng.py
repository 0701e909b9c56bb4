"""
Seedable random number generation for reproducible measurement.

Measurement sampling only ever needs one thing from randomness: a uniform
float in [0, 1). ``UniformSampler`` provides exactly that on top of a numpy
``Generator``; ``RNGManager`` hands out independent, reproducible generators
to several engines (or other consumers) from one master seed.
"""

import numpy as np
from typing import Optional, Dict
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass
class RNGState:
    """Container for RNG state and metadata."""

    seed: int
    generator: np.random.Generator
    call_count: int = 0

    def increment(self) -> None:
        """Increment call counter for tracking."""
        self.call_count += 1


class UniformSampler:
    """
    Uniform sampler returning floats in [0, 1).

    Usage:
        >>> sampler = UniformSampler(seed=7)
        >>> threshold = sampler()
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        generator: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            seed: Seed for a fresh generator (ignored if ``generator`` is given)
            generator: Existing numpy generator to draw from
        """
        self.seed = seed
        self.generator = generator if generator is not None else np.random.default_rng(seed)

    def __call__(self) -> float:
        return float(self.generator.random())

    def reseed(self, seed: int) -> None:
        """Replace the generator with a freshly seeded one."""
        self.seed = seed
        self.generator = np.random.default_rng(seed)

    def __repr__(self) -> str:
        return f"UniformSampler(seed={self.seed})"


class RNGManager:
    """
    Centralized random number generator manager.

    Manages seeded numpy random generators for named consumers so that several
    engines can sample independently while a single master seed keeps a whole
    run reproducible.

    Usage:
        >>> rng_mgr = RNGManager(global_seed=42)
        >>> sampler_a = rng_mgr.get_sampler("engine_a")
        >>> sampler_b = rng_mgr.get_sampler("engine_b")
    """

    def __init__(self, global_seed: Optional[int] = None):
        """
        Initialize RNG manager with global seed.

        Args:
            global_seed: Master seed for all RNGs. If None, uses system entropy.
        """
        self.global_seed = global_seed
        self._rngs: Dict[str, RNGState] = {}
        self._seed_generator = np.random.default_rng(global_seed)

        logger.debug(f"RNGManager initialized with global_seed={global_seed}")

    def get_rng(self, name: str) -> np.random.Generator:
        """
        Get or create a seeded RNG for a named consumer.

        Args:
            name: Consumer identifier (e.g., "engine", "circuits")

        Returns:
            Numpy random generator with consumer-specific seed
        """
        if name not in self._rngs:
            sub_seed = int(self._seed_generator.integers(0, 2**31 - 1))
            self._rngs[name] = RNGState(
                seed=sub_seed,
                generator=np.random.default_rng(sub_seed),
            )
            logger.debug(f"Created RNG for '{name}' with seed={sub_seed}")

        self._rngs[name].increment()
        return self._rngs[name].generator

    def get_sampler(self, name: str) -> UniformSampler:
        """Uniform [0, 1) sampler drawing from the named generator."""
        generator = self.get_rng(name)
        return UniformSampler(seed=self._rngs[name].seed, generator=generator)

    def reset(self, global_seed: Optional[int] = None) -> None:
        """
        Reset all RNGs with a new global seed.

        Args:
            global_seed: New master seed. If None, uses original seed.
        """
        if global_seed is not None:
            self.global_seed = global_seed

        self._rngs.clear()
        self._seed_generator = np.random.default_rng(self.global_seed)

        logger.debug(f"RNGManager reset with global_seed={self.global_seed}")

    def get_state_summary(self) -> Dict[str, Dict]:
        """
        Get summary of all RNG states for logging/debugging.

        Returns:
            Dictionary mapping consumer names to their seed and call count
        """
        return {
            name: {"seed": state.seed, "call_count": state.call_count}
            for name, state in self._rngs.items()
        }

    def seed_sequence(self, name: str, n: int) -> np.ndarray:
        """
        Generate a sequence of seeds, e.g. one per engine in a batch.

        Args:
            name: Consumer identifier
            n: Number of seeds to generate

        Returns:
            Array of n independent seeds
        """
        rng = self.get_rng(name)
        return rng.integers(0, 2**31 - 1, size=n)


_global_rng_manager: Optional[RNGManager] = None


def initialize_global_rng(seed: Optional[int] = None) -> RNGManager:
    """
    Initialize the global RNG manager.

    Args:
        seed: Global seed for reproducibility

    Returns:
        Global RNG manager instance
    """
    global _global_rng_manager
    _global_rng_manager = RNGManager(global_seed=seed)
    return _global_rng_manager


def get_global_rng_manager() -> RNGManager:
    """Get the global RNG manager, creating one if needed."""
    global _global_rng_manager
    if _global_rng_manager is None:
        _global_rng_manager = RNGManager()
    return _global_rng_manager


def get_rng(name: str = "default") -> np.random.Generator:
    """Convenience function to get RNG from global manager."""
    return get_global_rng_manager().get_rng(name)
