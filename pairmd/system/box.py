"""Cubic periodic simulation cell."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..config import ConfigurationError


@dataclass(frozen=True)
class Box:
    """
    Cubic simulation box with periodic boundaries on every axis.

    Attributes:
        length: Edge length L, applied uniformly on all axes.
        dimensions: Number of spatial axes (2 or 3).
    """

    length: float
    dimensions: int = 3

    def __post_init__(self) -> None:
        """Validate box parameters."""
        if self.length <= 0:
            raise ConfigurationError(f"Box length must be positive, got {self.length}")
        if self.dimensions not in (2, 3):
            raise ConfigurationError(
                f"Box dimensions must be 2 or 3, got {self.dimensions}"
            )
        object.__setattr__(self, "length", float(self.length))

    @classmethod
    def cubic(cls, length: float, dimensions: int = 3) -> Box:
        """Create a cubic box with given side length."""
        return cls(length, dimensions)

    @property
    def lengths(self) -> NDArray[np.floating]:
        """Return per-axis box lengths."""
        return np.full(self.dimensions, self.length)

    @property
    def volume(self) -> float:
        """Return box volume (area in 2D)."""
        return self.length**self.dimensions

    def image(self, positions: ArrayLike) -> NDArray[np.floating]:
        """
        Return the periodic image index of each position.

        Args:
            positions: Position(s), shape (d,) or (N, d).

        Returns:
            Integer-valued array ``floor(positions / L)`` of the same shape.
        """
        return np.floor(np.asarray(positions, dtype=np.float64) / self.length)

    def minimum_image(self, displacements: ArrayLike) -> NDArray[np.floating]:
        """
        Return the number of box lengths to subtract from raw displacements.

        Args:
            displacements: Raw displacement(s), shape (d,) or (N, d).

        Returns:
            Integer-valued array ``round(displacements / L)``.
        """
        return np.round(np.asarray(displacements, dtype=np.float64) / self.length)

    def fold(
        self, positions: ArrayLike
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """
        Fold positions into the primary cell and report the shift applied.

        Args:
            positions: Position(s), shape (d,) or (N, d).

        Returns:
            Tuple of (wrapped positions in ``[0, L)``, image index subtracted).
        """
        positions = np.asarray(positions, dtype=np.float64)
        image = self.image(positions)
        wrapped = positions - self.length * image
        # floor(x / L) and the shift can disagree by one ulp at the cell faces
        overflow = wrapped >= self.length
        if np.any(overflow):
            image = image + overflow
            wrapped = positions - self.length * image
        # x a hair below zero: x + L rounds to L, so keep the image and clamp
        wrapped = np.where(wrapped < 0.0, 0.0, wrapped)
        return wrapped, image

    def wrap(self, positions: ArrayLike) -> NDArray[np.floating]:
        """
        Fold positions into the primary cell ``[0, L)``.

        Args:
            positions: Position(s), shape (d,) or (N, d).

        Returns:
            Wrapped positions of the same shape.
        """
        return self.fold(positions)[0]

    def displacement(self, r1: ArrayLike, r2: ArrayLike) -> NDArray[np.floating]:
        """
        Compute the minimum image displacement ``r1 - r2``.

        Args:
            r1: First position(s), shape (d,) or (N, d).
            r2: Second position(s), shape (d,) or (N, d).

        Returns:
            Shortest displacement vector(s) under periodic wrap.
        """
        dr = np.asarray(r1, dtype=np.float64) - np.asarray(r2, dtype=np.float64)
        return dr - self.length * self.minimum_image(dr)

    def distance(self, r1: ArrayLike, r2: ArrayLike) -> float | NDArray[np.floating]:
        """Compute minimum image distance(s) between positions."""
        return np.linalg.norm(self.displacement(r1, r2), axis=-1)
