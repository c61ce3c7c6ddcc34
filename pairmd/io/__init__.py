"""I/O layer for trajectory output."""

from .base import TrajectoryWriter
from .formats.xyz import XYZWriter, read_frames

__all__ = [
    "TrajectoryWriter",
    "XYZWriter",
    "read_frames",
]
