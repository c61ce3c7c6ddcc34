"""Verlet-family integrators."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .base import Integrator, clamp_speed

if TYPE_CHECKING:
    from ..system import Particles


class StormerVerletIntegrator(Integrator):
    """
    Stormer-Verlet integrator (position history form).

    Algorithm:
        r(t + dt) = 2 r(t) - r(t - dt) + dt^2 * F(t)
        v(t) ~ (r(t) - r(t - dt)) / (2 dt)

    The velocity estimate uses the positions before the update. When a speed
    limit clamps the velocity, the new position is rebuilt from it as
    r(t - dt) + 2 dt v so that position and velocity stay consistent.

    Everything happens in ``phase_b``; ``phase_a`` is a no-op.
    """

    def phase_a(self, particles: Particles, rng: np.random.Generator) -> None:
        """No pre-force update for a position-history scheme."""

    def phase_b(
        self,
        particles: Particles,
        rng: np.random.Generator,
        speed_limit: float | None = None,
    ) -> None:
        """
        Advance positions one step from the position history and new forces.

        Args:
            particles: Particles to update in place.
            rng: Unused.
            speed_limit: Optional maximum speed.
        """
        dt = self._dt
        positions = particles.positions
        old_positions = particles.old_positions

        new_positions = 2.0 * positions - old_positions + particles.forces * dt * dt
        particles.velocities[:] = (positions - old_positions) / (2.0 * dt)

        if speed_limit is not None:
            clamped = clamp_speed(particles.velocities, speed_limit)
            new_positions[clamped] = (
                old_positions[clamped] + 2.0 * dt * particles.velocities[clamped]
            )

        # Advance a timestep
        old_positions[:] = positions
        wrapped, image = self._box.fold(new_positions)
        positions[:] = wrapped
        old_positions -= self._box.length * image


class VelocityVerletIntegrator(Integrator):
    """
    Velocity Verlet integrator (kick-drift-kick formulation).

    Algorithm:
        v(t + dt/2) = v(t) + 0.5 * dt * F(t)          # phase_a: first kick
        r(t + dt) = r(t) + dt * v(t + dt/2)           # phase_a: drift
        v(t + dt) = v(t + dt/2) + 0.5 * dt * F(t+dt)  # phase_b: second kick

    Properties:
    - Symplectic, time-reversible
    - Second-order accurate in positions and velocities
    """

    def phase_a(self, particles: Particles, rng: np.random.Generator) -> None:
        """
        First half kick with the previous forces, then drift.

        Args:
            particles: Particles to update in place.
            rng: Unused.
        """
        dt = self._dt
        particles.velocities += 0.5 * dt * particles.forces
        particles.positions += dt * particles.velocities

    def phase_b(
        self,
        particles: Particles,
        rng: np.random.Generator,
        speed_limit: float | None = None,
    ) -> None:
        """
        Second half kick with the new forces, then fold positions.

        Args:
            particles: Particles to update in place.
            rng: Unused.
            speed_limit: Optional maximum speed.
        """
        particles.velocities += 0.5 * self._dt * particles.forces

        if speed_limit is not None:
            clamp_speed(particles.velocities, speed_limit)

        particles.positions[:] = self._box.wrap(particles.positions)
