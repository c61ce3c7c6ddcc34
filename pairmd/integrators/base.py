"""Base interfaces for integrators and thermostats."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..config import ConfigurationError

if TYPE_CHECKING:
    from ..system import Box, Particles


class Integrator(ABC):
    """
    Abstract base class for two-phase time integration schemes.

    Each step of the simulation loop calls ``phase_a`` on every particle,
    recomputes forces, then calls ``phase_b`` on every particle. Both
    operate in place on a ``Particles`` block (a view of the full system)
    and receive an explicit random generator, so blocks can run on
    different workers without sharing generator state.

    ``phase_b`` always leaves positions folded into the primary cell.
    """

    #: Whether the scheme draws random numbers.
    is_stochastic: bool = False

    def __init__(self, dt: float, box: Box) -> None:
        """
        Initialize integrator.

        Args:
            dt: Integration timestep.
            box: Periodic simulation box.
        """
        if dt <= 0:
            raise ConfigurationError(f"timestep must be positive, got {dt}")
        self._dt = float(dt)
        self._box = box

    @property
    def timestep(self) -> float:
        """Return the integration timestep."""
        return self._dt

    @property
    def box(self) -> Box:
        """Return the simulation box."""
        return self._box

    @abstractmethod
    def phase_a(self, particles: Particles, rng: np.random.Generator) -> None:
        """
        Update applied before new forces are computed.

        Args:
            particles: Particles to update in place.
            rng: Random generator for this block.
        """
        ...

    @abstractmethod
    def phase_b(
        self,
        particles: Particles,
        rng: np.random.Generator,
        speed_limit: float | None = None,
    ) -> None:
        """
        Update applied after new forces are computed.

        Args:
            particles: Particles to update in place.
            rng: Random generator for this block.
            speed_limit: Optional maximum speed.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dt={self._dt})"


class StochasticIntegrator(Integrator):
    """
    Base class for schemes coupled to a heat bath.

    Attributes:
        damping: Damping coefficient gamma.
        temperature: Bath temperature T.
    """

    is_stochastic = True

    def __init__(
        self,
        dt: float,
        box: Box,
        damping: float,
        temperature: float,
    ) -> None:
        """
        Initialize stochastic integrator.

        Args:
            dt: Integration timestep.
            box: Periodic simulation box.
            damping: Damping coefficient gamma.
            temperature: Bath temperature T.
        """
        super().__init__(dt, box)
        if damping <= 0:
            raise ConfigurationError(f"damping must be positive, got {damping}")
        if temperature < 0:
            raise ConfigurationError(
                f"temperature must be non-negative, got {temperature}"
            )
        self._damping = float(damping)
        self._temperature = float(temperature)
        self._update_coefficients()

    @abstractmethod
    def _update_coefficients(self) -> None:
        """Precompute integration coefficients."""
        ...

    @property
    def damping(self) -> float:
        """Return damping coefficient."""
        return self._damping

    @property
    def temperature(self) -> float:
        """Return bath temperature."""
        return self._temperature

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dt={self._dt}, damping={self._damping}, "
            f"temperature={self._temperature})"
        )


class Thermostat(ABC):
    """
    Abstract base class for per-particle velocity thermostats.

    Applied to every particle once per step after ``phase_b``.
    """

    @abstractmethod
    def run(self, particles: Particles, rng: np.random.Generator) -> None:
        """
        Perturb velocities in place.

        Args:
            particles: Particles to update.
            rng: Random generator for this block.
        """
        ...

    @property
    @abstractmethod
    def target_temperature(self) -> float:
        """Return target temperature."""
        ...


def clamp_speed(velocities: NDArray[np.floating], limit: float) -> NDArray[np.bool_]:
    """
    Rescale velocities faster than ``limit`` to exactly ``limit``.

    The direction of each clamped velocity is unchanged.

    Args:
        velocities: Velocities, shape (N, d). Modified in place.
        limit: Maximum speed.

    Returns:
        Boolean mask of the rows that were clamped.
    """
    speed_sq = np.einsum("ij,ij->i", velocities, velocities)
    clamped = speed_sq > limit * limit
    if np.any(clamped):
        scale = limit / np.sqrt(speed_sq[clamped])
        velocities[clamped] *= scale[:, np.newaxis]
    return clamped
