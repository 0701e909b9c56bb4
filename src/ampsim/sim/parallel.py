"""
Thread-pool dispatch over disjoint spans of an index space.

A pass over ``count`` indices is cut into spans of ``chunk_size``; every span
is handed to one worker and the pass joins before returning. Spans never
overlap, so kernels whose index map is injective can write without locks.
NumPy releases the GIL inside its array loops, which is what lets threads
(rather than processes) share the amplitude buffer.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ParallelFor:
    """
    Partition-and-join executor for kernel passes.

    Usage:
        >>> par = ParallelFor(n_workers=4, chunk_size=1 << 14)
        >>> partial_sums = par.run(count, lambda begin, end: ...)
    """

    def __init__(self, n_workers: int = 1, chunk_size: int = 16384):
        """
        Args:
            n_workers: Maximum number of worker threads
            chunk_size: Number of indices handled by one work item
        """
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.n_workers = n_workers
        self.chunk_size = chunk_size
        self._executor: Optional[ThreadPoolExecutor] = None

    def spans(self, count: int, chunk_size: Optional[int] = None) -> List[Tuple[int, int]]:
        """Disjoint [begin, end) spans covering [0, count)."""
        step = chunk_size or self.chunk_size
        return [(begin, min(begin + step, count)) for begin in range(0, count, step)]

    def run(
        self,
        count: int,
        fn: Callable[[int, int], T],
        chunk_size: Optional[int] = None,
    ) -> List[T]:
        """
        Call ``fn(begin, end)`` for every span of [0, count) and join.

        Returns:
            Per-span results in span order
        """
        spans = self.spans(count, chunk_size)
        if self.n_workers == 1 or len(spans) <= 1:
            return [fn(begin, end) for begin, end in spans]

        executor = self._get_executor()
        logger.debug(f"Dispatching {len(spans)} spans to {self.n_workers} workers")
        futures = [executor.submit(fn, begin, end) for begin, end in spans]
        return [future.result() for future in futures]

    def par_sum(
        self,
        count: int,
        fn: Callable[[int, int], float],
        chunk_size: Optional[int] = None,
    ) -> float:
        """Sum of per-span partial results (partitioned-then-summed reduction)."""
        return float(sum(self.run(count, fn, chunk_size)))

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.n_workers, thread_name_prefix="ampsim"
            )
        return self._executor

    def close(self) -> None:
        """Shut down the worker threads, if any were started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "ParallelFor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"ParallelFor(n_workers={self.n_workers}, chunk_size={self.chunk_size})"
