"""Lennard-Jones pair potential."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ...config import ConfigurationError
from ..base import PairPotential


class LennardJones(PairPotential):
    """
    Lennard-Jones 12-6 potential.

    V(r) = 4 * epsilon * [(sigma/r)^12 - (sigma/r)^6]
    f(r) = 48 * epsilon / sigma * [-(sigma/r)^13 + 0.5 * (sigma/r)^7]

    With the defaults (reduced units) these reduce to 4(r^-12 - r^-6) and
    48(-r^-13 + 0.5 r^-7).

    Attributes:
        epsilon: Well depth.
        sigma: Size parameter.
    """

    def __init__(self, epsilon: float = 1.0, sigma: float = 1.0) -> None:
        """
        Initialize Lennard-Jones potential.

        Args:
            epsilon: Well depth.
            sigma: Size parameter.
        """
        if epsilon <= 0:
            raise ConfigurationError(f"epsilon must be positive, got {epsilon}")
        if sigma <= 0:
            raise ConfigurationError(f"sigma must be positive, got {sigma}")
        self.epsilon = float(epsilon)
        self.sigma = float(sigma)

    def energy(self, r: ArrayLike) -> float | NDArray[np.floating]:
        """Compute 4 * epsilon * [(sigma/r)^12 - (sigma/r)^6]."""
        s = self.sigma / np.asarray(r, dtype=np.float64)
        return 4.0 * self.epsilon * (s**12 - s**6)

    def force_magnitude(self, r: ArrayLike) -> float | NDArray[np.floating]:
        """Compute 48 * epsilon / sigma * [-(sigma/r)^13 + 0.5 * (sigma/r)^7]."""
        s = self.sigma / np.asarray(r, dtype=np.float64)
        return 48.0 * self.epsilon / self.sigma * (-(s**13) + 0.5 * s**7)

    def __repr__(self) -> str:
        return f"LennardJones(epsilon={self.epsilon}, sigma={self.sigma})"
