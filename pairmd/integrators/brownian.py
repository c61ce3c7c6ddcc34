"""Brownian (overdamped Langevin) integrators."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import StochasticIntegrator

if TYPE_CHECKING:
    from ..system import Particles


class BrownianIntegrator(StochasticIntegrator):
    """
    Base class for Brownian dynamics schemes.

    Overdamped motion has no inertia, so the whole update happens after the
    force computation:

        r += F dt / gamma + noise

    Velocities are left untouched and ``speed_limit`` is ignored. The
    previous position is recorded in ``old_positions`` before the move.
    """

    def phase_a(self, particles: Particles, rng: np.random.Generator) -> None:
        """No pre-force update; Brownian schemes are single phase."""

    def phase_b(
        self,
        particles: Particles,
        rng: np.random.Generator,
        speed_limit: float | None = None,
    ) -> None:
        """
        Drift along the force plus a random displacement, then fold.

        Args:
            particles: Particles to update in place.
            rng: Random generator for this block.
            speed_limit: Ignored.
        """
        particles.old_positions[:] = particles.positions
        particles.positions += particles.forces * (
            self._dt / self._damping
        ) + self._random_displacement(particles.positions.shape, rng)
        particles.positions[:] = self._box.wrap(particles.positions)

    @abstractmethod
    def _random_displacement(
        self, shape: tuple[int, ...], rng: np.random.Generator
    ) -> NDArray[np.floating]:
        """Draw the stochastic part of one step."""
        ...


class EulerMaruyamaIntegrator(BrownianIntegrator):
    """
    Brownian dynamics by Euler-Maruyama.

    r(t + dt) = r(t) + F dt / gamma + sqrt(2 T dt / gamma) xi
    """

    def _update_coefficients(self) -> None:
        """Precompute noise amplitude."""
        self._noise = np.sqrt(2.0 * self._temperature * self._dt / self._damping)

    def _random_displacement(
        self, shape: tuple[int, ...], rng: np.random.Generator
    ) -> NDArray[np.floating]:
        return self._noise * rng.standard_normal(shape)


class BAOABIntegrator(BrownianIntegrator):
    """
    Brownian dynamics by the high-friction limit of BAOAB.

    r(t + dt) = r(t) + F dt / gamma + sqrt(T dt / (2 gamma)) (xi_1 + xi_2)

    Two fresh kicks are drawn per step, giving a per-axis displacement
    variance of T dt / gamma, half that of Euler-Maruyama.

    Reference:
    Leimkuhler & Matthews, "Molecular Dynamics" (2015)
    """

    def _update_coefficients(self) -> None:
        """Precompute noise amplitude."""
        self._noise = np.sqrt(self._temperature * self._dt / (2.0 * self._damping))

    def _random_displacement(
        self, shape: tuple[int, ...], rng: np.random.Generator
    ) -> NDArray[np.floating]:
        xi_1 = rng.standard_normal(shape)
        xi_2 = rng.standard_normal(shape)
        return self._noise * (xi_1 + xi_2)
