"""Base interface for pair potentials."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import ArrayLike, NDArray


class PairPotential(ABC):
    """
    Abstract base class for radial pair interaction laws.

    A pair potential is a stateless pair of functions of the separation r
    between two particles. Both methods must be pure and accept either a
    scalar or an array of separations (evaluated element-wise), since the
    force engine evaluates a whole row of pairs at once.

    Any law implementing this interface can be handed to
    ``PairInteractionEngine`` without touching the engine.
    """

    @abstractmethod
    def energy(self, r: ArrayLike) -> float | NDArray[np.floating]:
        """
        Pair energy at separation r.

        Args:
            r: Separation(s), strictly positive.

        Returns:
            Energy, same shape as ``r``.
        """
        ...

    @abstractmethod
    def force_magnitude(self, r: ArrayLike) -> float | NDArray[np.floating]:
        """
        Signed radial pair force at separation r.

        This is dV/dr: the engine applies ``-f * (r_i - r_j) / r`` to particle
        i and the opposite to particle j, so a negative value pushes the pair
        apart.

        Args:
            r: Separation(s), strictly positive.

        Returns:
            Force magnitude, same shape as ``r``.
        """
        ...
