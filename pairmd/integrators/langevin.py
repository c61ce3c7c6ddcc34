"""Langevin dynamics integrator implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .base import StochasticIntegrator, clamp_speed

if TYPE_CHECKING:
    from ..system import Particles


class LangevinIntegrator(StochasticIntegrator):
    """
    Langevin dynamics integrator (velocity form).

    Adds friction and random forces to simulate coupling to a heat bath,
    giving natural temperature control (NVT ensemble):

        dv = F dt - gamma v dt + sqrt(2 gamma T) dW

    Splitting (unit mass):
        phase_a:
            v += dt/2 F + sqrt(gamma T dt) xi
            r += v * 2 dt / (2 + gamma dt)
        phase_b:
            v = (2 - gamma dt) / (2 + gamma dt) v + sqrt(gamma T dt) xi' + dt/2 F

    where xi, xi' are independent standard normal vectors drawn fresh in
    each phase.

    Attributes:
        dt: Integration timestep.
        damping: Friction coefficient gamma.
        temperature: Bath temperature T.
    """

    def _update_coefficients(self) -> None:
        """Precompute integration coefficients."""
        gamma_dt = self._damping * self._dt

        # Random kick amplitude per phase
        self._noise = np.sqrt(self._damping * self._temperature * self._dt)
        # Effective drift time
        self._drift = 2.0 * self._dt / (2.0 + gamma_dt)
        # Velocity decay across the step
        self._decay = (2.0 - gamma_dt) / (2.0 + gamma_dt)

    def phase_a(self, particles: Particles, rng: np.random.Generator) -> None:
        """
        Half kick plus stochastic half step, then drift.

        Args:
            particles: Particles to update in place.
            rng: Random generator for this block.
        """
        xi = rng.standard_normal(particles.velocities.shape)
        particles.velocities += 0.5 * self._dt * particles.forces + self._noise * xi
        particles.positions += self._drift * particles.velocities

    def phase_b(
        self,
        particles: Particles,
        rng: np.random.Generator,
        speed_limit: float | None = None,
    ) -> None:
        """
        Damped velocity update with new forces and noise, then fold positions.

        Args:
            particles: Particles to update in place.
            rng: Random generator for this block.
            speed_limit: Optional maximum speed.
        """
        xi = rng.standard_normal(particles.velocities.shape)
        particles.velocities[:] = (
            self._decay * particles.velocities
            + self._noise * xi
            + 0.5 * self._dt * particles.forces
        )

        if speed_limit is not None:
            clamp_speed(particles.velocities, speed_limit)

        particles.positions[:] = self._box.wrap(particles.positions)
