"""Thread pool backend for shared-memory parallelism."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .base import ParallelBackend


class ThreadPoolBackend(ParallelBackend):
    """
    Thread pool backend for shared-memory parallelism.

    Workers share the particle arrays with the caller, so tasks may update
    disjoint rows in place. The heavy lifting inside tasks is vectorized
    numpy, which releases the GIL.

    The executor is created lazily and kept until ``close()``.
    """

    def __init__(self, n_workers: int | None = None) -> None:
        """
        Initialize thread pool backend.

        Args:
            n_workers: Number of worker threads. Defaults to CPU count.
        """
        if n_workers is None:
            n_workers = os.cpu_count() or 1
        self._n_workers = n_workers
        if self._n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        self._executor: ThreadPoolExecutor | None = None

    @property
    def name(self) -> str:
        """Return backend name."""
        return "threads"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return self._n_workers

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: Sequence[Any],
    ) -> list[Any]:
        """
        Apply function to items in parallel using the thread pool.

        Exceptions raised by a task propagate to the caller after the join.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item, in item order.
        """
        if len(items) == 0:
            return []
        if len(items) == 1:
            return [func(items[0])]

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._n_workers, thread_name_prefix="pairmd-worker"
            )
        return list(self._executor.map(func, items))

    def close(self) -> None:
        """Shut down the executor."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
