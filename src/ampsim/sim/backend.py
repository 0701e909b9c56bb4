"""
Abstract amplitude container.

Defines the interface every amplitude storage variant (dense array, sparse
map) implements so the engine can read, write and bulk-transfer amplitudes
without caring how they are held.
"""

from abc import ABC, abstractmethod
import numpy as np


class StateVector(ABC):
    """
    Abstract base class for amplitude containers.

    Maps a permutation index in [0, capacity) to a complex amplitude.
    Indices outside that range are a precondition violation; implementations
    do not check them on the single-element paths.
    """

    def __init__(self, capacity: int, dtype=np.complex128):
        """
        Args:
            capacity: Number of permutation indices (2^n for n qubits)
            dtype: Complex dtype of the stored amplitudes
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.dtype = np.dtype(dtype)
        self.real_dtype = np.dtype(self.dtype.type(0).real.dtype)

    @abstractmethod
    def read(self, i: int) -> complex:
        """Return the amplitude at permutation index ``i``."""
        pass

    @abstractmethod
    def write(self, i: int, c: complex) -> None:
        """Set the amplitude at permutation index ``i``."""
        pass

    @abstractmethod
    def write2(self, i1: int, c1: complex, i2: int, c2: complex) -> None:
        """
        Write the two amplitudes produced by one 2x2 application.

        Only guaranteed to write if either amplitude is nonzero; callers must
        not rely on a write happening when both values are zero.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Zero every amplitude."""
        pass

    @abstractmethod
    def copy_in(self, in_array: np.ndarray) -> None:
        """Replace all amplitudes from a flat buffer of length ``capacity``."""
        pass

    @abstractmethod
    def copy_out(self, out_array: np.ndarray) -> None:
        """Fill a flat buffer of length ``capacity`` with all amplitudes."""
        pass

    @abstractmethod
    def copy(self, to_copy: "StateVector") -> None:
        """Replace all amplitudes with those of another container of equal capacity."""
        pass

    @abstractmethod
    def get_probs(self, out_array: np.ndarray) -> None:
        """Fill ``out_array`` with squared magnitudes in index order."""
        pass

    @abstractmethod
    def is_sparse(self) -> bool:
        """True for the sparse (map-backed) variant."""
        pass

    def _check_buffer(self, array: np.ndarray) -> None:
        if array.shape != (self.capacity,):
            raise ValueError(
                f"Buffer shape {array.shape} does not match container capacity ({self.capacity},)"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(capacity={self.capacity}, dtype={self.dtype})"
