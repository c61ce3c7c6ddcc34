"""Thermostat implementations applied after each step."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from ..config import ConfigurationError
from .base import Thermostat

if TYPE_CHECKING:
    from ..system import Particles


class AndersenThermostat(Thermostat):
    """
    Andersen stochastic collision thermostat.

    Each particle independently collides with the heat bath with probability
    ``collision_frequency * dt`` per step; a colliding particle gets a fresh
    velocity from the Maxwell-Boltzmann distribution (unit mass, k_B = 1).
    Produces the canonical ensemble but disrupts dynamics.

    Attributes:
        temperature: Target temperature.
        collision_frequency: Average collision rate (1/time).
        dt: Integration timestep.
    """

    def __init__(
        self,
        temperature: float,
        dt: float,
        collision_frequency: float = 1.0,
    ) -> None:
        """
        Initialize Andersen thermostat.

        Args:
            temperature: Target temperature.
            dt: Integration timestep.
            collision_frequency: Average collision rate (1/time units).
        """
        if temperature <= 0:
            raise ConfigurationError(
                f"temperature must be positive, got {temperature}"
            )
        if collision_frequency < 0:
            raise ConfigurationError(
                f"collision_frequency must be >= 0, got {collision_frequency}"
            )
        self._temperature = float(temperature)
        self._collision_freq = float(collision_frequency)
        self._dt = float(dt)

        # Probability of collision per timestep
        self._collision_prob = collision_frequency * dt
        self._sigma = np.sqrt(self._temperature)

    @property
    def target_temperature(self) -> float:
        return self._temperature

    @property
    def collision_probability(self) -> float:
        """Return per-step collision probability."""
        return self._collision_prob

    def run(self, particles: Particles, rng: np.random.Generator) -> None:
        """
        Apply Andersen collisions in place.

        Args:
            particles: Particles to update.
            rng: Random generator for this block.
        """
        collide = rng.random(particles.n_particles) < self._collision_prob
        n_collide = int(np.count_nonzero(collide))
        if n_collide == 0:
            return

        particles.velocities[collide] = self._sigma * rng.standard_normal(
            (n_collide, particles.dimensions)
        )
