"""Trajectory file formats."""

from .xyz import XYZWriter, read_frames

__all__ = ["XYZWriter", "read_frames"]
