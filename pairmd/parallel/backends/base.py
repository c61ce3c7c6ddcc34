"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np


class ParallelBackend(ABC):
    """
    Abstract base class for fork-join parallel backends.

    All data-parallel phases of a step go through this interface, allowing
    transparent switching between serial and threaded execution. A call to
    ``parallel_map`` is one fork; its return is the join.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    @abstractmethod
    def parallel_map(
        self,
        func: Callable[..., Any],
        items: Sequence[Any],
    ) -> list[Any]:
        """
        Apply function to items in parallel and wait for all results.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item, in item order.
        """
        ...

    def close(self) -> None:
        """Release worker resources."""
        pass

    def __enter__(self) -> ParallelBackend:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def partition(
        self,
        n_items: int,
        weights: Sequence[float] | np.ndarray | None = None,
    ) -> list[tuple[int, int]]:
        """
        Split ``range(n_items)`` into contiguous blocks, one per worker.

        Without weights the blocks differ in size by at most one item. With
        weights the boundaries are placed so that every block carries roughly
        the same total weight. Empty blocks are dropped.

        Args:
            n_items: Number of items.
            weights: Optional per-item cost, shape (n_items,).

        Returns:
            List of (start_index, end_index) tuples covering all items.
        """
        n_blocks = min(self.n_workers, n_items)
        if n_blocks <= 0:
            return []

        if weights is None:
            per_block = n_items // n_blocks
            remainder = n_items % n_blocks
            bounds = [0]
            for rank in range(n_blocks):
                bounds.append(bounds[-1] + per_block + (1 if rank < remainder else 0))
        else:
            cumulative = np.cumsum(np.asarray(weights, dtype=np.float64))
            total = cumulative[-1]
            targets = total * np.arange(1, n_blocks) / n_blocks
            inner = np.searchsorted(cumulative, targets, side="left") + 1
            bounds = [0, *(int(b) for b in inner), n_items]

        return [
            (start, end)
            for start, end in zip(bounds[:-1], bounds[1:])
            if end > start
        ]
