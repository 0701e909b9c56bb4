"""
Dense and sparse amplitude containers.

- ``DenseStateVector``: contiguous NumPy buffer with one slot per permutation.
  Memory requirement: 2^n complex values (16 * 2^n bytes in double precision).
- ``SparseStateVector``: dict holding only the nonzero amplitudes. Cheap for
  states with few occupied permutations, e.g. freshly prepared basis states.
"""

import logging
import threading
from typing import Dict, Iterator, List, Tuple
import numpy as np

from ampsim.sim.backend import StateVector

logger = logging.getLogger(__name__)


class DenseStateVector(StateVector):
    """Amplitude container backed by a contiguous NumPy array."""

    def __init__(self, capacity: int, dtype=np.complex128):
        super().__init__(capacity, dtype)
        self.amplitudes = np.zeros(capacity, dtype=self.dtype)
        logger.debug(f"Allocated dense state vector: capacity={capacity}, dtype={self.dtype}")

    def read(self, i: int) -> complex:
        return complex(self.amplitudes[i])

    def write(self, i: int, c: complex) -> None:
        self.amplitudes[i] = c

    def write2(self, i1: int, c1: complex, i2: int, c2: complex) -> None:
        self.amplitudes[i1] = c1
        self.amplitudes[i2] = c2

    def clear(self) -> None:
        self.amplitudes.fill(0)

    def copy_in(self, in_array: np.ndarray) -> None:
        in_array = np.asarray(in_array)
        self._check_buffer(in_array)
        self.amplitudes[:] = in_array

    def copy_out(self, out_array: np.ndarray) -> None:
        self._check_buffer(out_array)
        out_array[:] = self.amplitudes

    def copy(self, to_copy: StateVector) -> None:
        if to_copy.capacity != self.capacity:
            raise ValueError(
                f"Cannot copy a container of capacity {to_copy.capacity} into {self.capacity}"
            )
        to_copy.copy_out(self.amplitudes)

    def get_probs(self, out_array: np.ndarray) -> None:
        self._check_buffer(out_array)
        out_array[:] = self.amplitudes.real ** 2 + self.amplitudes.imag ** 2

    def is_sparse(self) -> bool:
        return False


class SparseStateVector(StateVector):
    """
    Amplitude container holding only nonzero entries in a dict.

    Mutations are serialised by a lock so that disjoint workers of one
    parallel pass can write concurrently.
    """

    def __init__(self, capacity: int, dtype=np.complex128):
        super().__init__(capacity, dtype)
        self._amplitudes: Dict[int, complex] = {}
        self._lock = threading.Lock()
        logger.debug(f"Allocated sparse state vector: capacity={capacity}, dtype={self.dtype}")

    def read(self, i: int) -> complex:
        return complex(self._amplitudes.get(i, 0j))

    def write(self, i: int, c: complex) -> None:
        with self._lock:
            if c == 0:
                self._amplitudes.pop(i, None)
            else:
                self._amplitudes[i] = self.dtype.type(c)

    def write2(self, i1: int, c1: complex, i2: int, c2: complex) -> None:
        if c1 == 0 and c2 == 0:
            # Nothing to store unless a stale nonzero would otherwise survive
            if i1 not in self._amplitudes and i2 not in self._amplitudes:
                return
        with self._lock:
            for i, c in ((i1, c1), (i2, c2)):
                if c == 0:
                    self._amplitudes.pop(i, None)
                else:
                    self._amplitudes[i] = self.dtype.type(c)

    def discard(self, i: int) -> None:
        """Drop the entry at ``i`` (set it to zero)."""
        with self._lock:
            self._amplitudes.pop(i, None)

    def clear(self) -> None:
        with self._lock:
            self._amplitudes.clear()

    def copy_in(self, in_array: np.ndarray) -> None:
        in_array = np.asarray(in_array)
        self._check_buffer(in_array)
        nonzero = np.flatnonzero(in_array)
        with self._lock:
            self._amplitudes = {
                int(i): self.dtype.type(in_array[i]) for i in nonzero
            }

    def copy_out(self, out_array: np.ndarray) -> None:
        self._check_buffer(out_array)
        out_array.fill(0)
        for i, c in self.nonzero_items():
            out_array[i] = c

    def copy(self, to_copy: StateVector) -> None:
        if to_copy.capacity != self.capacity:
            raise ValueError(
                f"Cannot copy a container of capacity {to_copy.capacity} into {self.capacity}"
            )
        if isinstance(to_copy, SparseStateVector):
            items = dict(to_copy.nonzero_items())
            with self._lock:
                self._amplitudes = {i: self.dtype.type(c) for i, c in items.items()}
        else:
            buffer = np.empty(self.capacity, dtype=self.dtype)
            to_copy.copy_out(buffer)
            self.copy_in(buffer)

    def get_probs(self, out_array: np.ndarray) -> None:
        self._check_buffer(out_array)
        out_array.fill(0)
        for i, c in self.nonzero_items():
            out_array[i] = c.real ** 2 + c.imag ** 2

    def is_sparse(self) -> bool:
        return True

    def nonzero_items(self) -> List[Tuple[int, complex]]:
        """Snapshot of (index, amplitude) pairs for all stored entries."""
        with self._lock:
            return list(self._amplitudes.items())

    def nonzero_indices(self) -> List[int]:
        """Snapshot of stored indices."""
        with self._lock:
            return list(self._amplitudes.keys())

    def __len__(self) -> int:
        return len(self._amplitudes)

    def __iter__(self) -> Iterator[int]:
        return iter(self.nonzero_indices())


def create_state_vector(capacity: int, config) -> StateVector:
    """
    Build the container variant selected by an ``EngineConfig``.

    Args:
        capacity: Number of permutation indices
        config: EngineConfig with ``storage`` and ``complex_dtype``

    Returns:
        Empty (all-zero) container
    """
    if config.storage == "sparse":
        return SparseStateVector(capacity, config.complex_dtype)
    if capacity > np.iinfo(np.int64).max // 2:
        raise ValueError(
            f"Dense storage cannot index {capacity} amplitudes; use storage='sparse'"
        )
    return DenseStateVector(capacity, config.complex_dtype)
