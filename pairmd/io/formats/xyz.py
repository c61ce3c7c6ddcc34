"""Tab-separated XYZ-style trajectory format."""

from __future__ import annotations

import gzip
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from ..base import TrajectoryWriter


class XYZWriter(TrajectoryWriter):
    """
    Plain-text trajectory writer.

    Each frame is:
        N
        index  x  y  z  vx  vy  vz
        ...

    with tab-separated columns and fixed decimal precision (2D frames have
    two position and two velocity columns).
    """

    def __init__(
        self, filename: str | Path, precision: int = 3, max_pending: int = 64
    ) -> None:
        """
        Initialize XYZ writer.

        Args:
            filename: Output file path (``.gz`` for compression).
            precision: Decimal places for positions and velocities.
            max_pending: Frames that may wait for the background thread.
        """
        super().__init__(filename, max_pending=max_pending)
        self.precision = precision

    def format_frame(
        self,
        positions: NDArray[np.floating],
        velocities: NDArray[np.floating],
    ) -> str:
        """Render header line and one line per particle."""
        n_particles, dimensions = positions.shape
        value = f"{{:.{self.precision}f}}"
        fmt = "\t".join(["{}"] + [value] * (2 * dimensions)) + "\n"

        lines = [f"{n_particles}\n"]
        for i in range(n_particles):
            lines.append(fmt.format(i, *positions[i], *velocities[i]))
        return "".join(lines)


def read_frames(filename: str | Path) -> list[dict[str, NDArray[np.floating]]]:
    """
    Read all frames written by ``XYZWriter``.

    Args:
        filename: Trajectory path (``.gz`` handled transparently).

    Returns:
        List of dicts with 'positions' and 'velocities' arrays.
    """
    path = Path(filename)
    open_func = gzip.open if path.suffix == ".gz" else open

    frames = []
    with open_func(path, "rt") as handle:
        while True:
            header = handle.readline()
            if not header.strip():
                break
            n_particles = int(header)
            rows = np.array(
                [
                    [float(x) for x in handle.readline().split("\t")[1:]]
                    for _ in range(n_particles)
                ],
                dtype=np.float64,
            )
            if n_particles == 0:
                rows = np.zeros((0, 0))
            half = rows.shape[1] // 2
            frames.append(
                {"positions": rows[:, :half], "velocities": rows[:, half:]}
            )
    return frames
