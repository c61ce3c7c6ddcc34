"""Per-worker force accumulation buffers."""

from __future__ import annotations

import threading

import numpy as np
from numpy.typing import NDArray


class ForceAccumulator:
    """
    Isolated per-worker force buffers combined by element-wise reduction.

    Each worker slot owns one (N, d) scratch array. Workers record force
    contributions for arbitrary particle indices into their own buffer
    without any synchronization on the shared force array; after the join,
    ``reduce()`` sums all buffers once.

    The accumulator is single use: ``reduce()`` consumes it.

    Note:
        Floating-point addition is not associative, so reduced forces can
        differ in the last bits between runs with different worker counts.

    Example:
        >>> acc = ForceAccumulator(n_particles=2, dimensions=3)
        >>> acc.acquire_local(0)[1] += 1.0
        >>> acc.reduce()[1]
        array([1., 1., 1.])
    """

    def __init__(self, n_particles: int, dimensions: int = 3) -> None:
        """
        Initialize an empty accumulator.

        Args:
            n_particles: Number of particles N.
            dimensions: Spatial dimensionality d.
        """
        self._shape = (n_particles, dimensions)
        self._buffers: dict[int, NDArray[np.floating]] = {}
        self._lock = threading.Lock()
        self._consumed = False

    @property
    def shape(self) -> tuple[int, int]:
        """Return the shape of every buffer."""
        return self._shape

    @property
    def n_buffers(self) -> int:
        """Return number of allocated worker buffers."""
        return len(self._buffers)

    def acquire_local(self, worker: int) -> NDArray[np.floating]:
        """
        Return the buffer of a worker slot, creating it zeroed on first use.

        Args:
            worker: Worker slot index handed out by the parallel-for.

        Returns:
            Mutable (N, d) array owned by that worker until ``reduce()``.

        Raises:
            RuntimeError: If the accumulator was already reduced.
        """
        if self._consumed:
            raise RuntimeError("ForceAccumulator already reduced")
        buffer = self._buffers.get(worker)
        if buffer is None:
            # Only the registry is shared; the buffer itself is not.
            with self._lock:
                buffer = self._buffers.setdefault(
                    worker, np.zeros(self._shape, dtype=np.float64)
                )
        return buffer

    def reduce(self) -> NDArray[np.floating]:
        """
        Sum all worker buffers element-wise, consuming the accumulator.

        Returns:
            Total (N, d) force array. Zeros if no buffer was acquired.

        Raises:
            RuntimeError: If called more than once.
        """
        if self._consumed:
            raise RuntimeError("ForceAccumulator already reduced")
        self._consumed = True

        total = np.zeros(self._shape, dtype=np.float64)
        for worker in sorted(self._buffers):
            total += self._buffers[worker]
        self._buffers.clear()
        return total
