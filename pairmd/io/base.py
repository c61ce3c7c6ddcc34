"""Base classes for trajectory output."""

from __future__ import annotations

import gzip
import logging
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..system import Particles

LOGGER = logging.getLogger(__name__)

# Queue sentinel telling the background writer to finish
_CLOSE = None


class TrajectoryWriter(ABC):
    """
    Abstract base class for asynchronous trajectory writers.

    ``write_frame`` snapshots the particle arrays and hands them to a
    background thread that formats, compresses and writes them, so the
    simulation step never waits on I/O. ``close`` drains the queue, flushes
    and closes the file. Paths ending in ``.gz`` are gzip-compressed.

    An error on the background thread is re-raised by the next
    ``write_frame`` or by ``close``.

    Example:
        with XYZWriter("trajectory.xyz.gz") as writer:
            for step in simulation:
                writer.write_frame(particles)
    """

    def __init__(self, filename: str | Path, max_pending: int = 64) -> None:
        """
        Initialize trajectory writer.

        Args:
            filename: Output file path.
            max_pending: Frames that may wait for the background thread.
                ``write_frame`` blocks while the queue is full.
        """
        if max_pending < 1:
            raise ValueError(f"max_pending must be >= 1, got {max_pending}")
        self.filename = Path(filename)
        self._file: TextIO | None = None
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None
        self._n_frames = 0

    @property
    def compressed(self) -> bool:
        """Whether output is gzip-compressed."""
        return self.filename.suffix == ".gz"

    @property
    def is_open(self) -> bool:
        """Whether the writer accepts frames."""
        return self._file is not None

    @property
    def n_frames(self) -> int:
        """Number of frames submitted."""
        return self._n_frames

    @abstractmethod
    def format_frame(
        self,
        positions: NDArray[np.floating],
        velocities: NDArray[np.floating],
    ) -> str:
        """
        Render one frame as text.

        Args:
            positions: Positions snapshot, shape (N, d).
            velocities: Velocities snapshot, shape (N, d).

        Returns:
            Frame text including trailing newline.
        """
        ...

    def open(self) -> None:
        """
        Open the output file and start the background writer.

        Raises:
            OSError: If the file cannot be created.
        """
        if self._file is not None:
            return
        open_func = gzip.open if self.compressed else open
        self._file = open_func(self.filename, "wt")
        self._error = None
        self._thread = threading.Thread(
            target=self._drain, name=f"writer-{self.filename.name}", daemon=True
        )
        self._thread.start()
        LOGGER.debug("Opened trajectory %s", self.filename)

    def write_frame(self, particles: Particles) -> None:
        """
        Queue one frame for writing.

        Blocks while ``max_pending`` frames are already queued.

        Args:
            particles: Particles to snapshot. Not modified or retained.

        Raises:
            RuntimeError: If the writer is not open.
            OSError: If a previous frame failed to write.
        """
        if self._file is None:
            raise RuntimeError("File not open. Use context manager or call open().")
        self._raise_pending()

        self._queue.put(
            (particles.positions.copy(), particles.velocities.copy())
        )
        self._n_frames += 1

    def close(self) -> None:
        """
        Flush all queued frames and close the file.

        Raises:
            OSError: If any queued frame failed to write.
        """
        if self._file is None:
            return
        try:
            self._queue.put(_CLOSE)
            if self._thread is not None:
                self._thread.join()
        finally:
            self._thread = None
            self._file.close()
            self._file = None
            LOGGER.debug(
                "Closed trajectory %s after %d frames", self.filename, self._n_frames
            )
        self._raise_pending()

    def _drain(self) -> None:
        """Background loop: format and write frames until closed."""
        while True:
            item = self._queue.get()
            if item is _CLOSE:
                break
            if self._error is not None:
                # Discard frames after a failure; close() reports it.
                continue
            try:
                self._file.write(self.format_frame(*item))
            except Exception as exc:  # reported on the simulation thread
                self._error = exc
        if self._error is None:
            try:
                self._file.flush()
            except Exception as exc:
                self._error = exc

    def _raise_pending(self) -> None:
        """Re-raise a background failure on the calling thread."""
        if self._error is not None:
            error, self._error = self._error, None
            raise error

    def __enter__(self) -> TrajectoryWriter:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
