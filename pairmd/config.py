"""Simulation-wide configuration."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path

INTEGRATOR_NAMES = (
    "verlet",
    "velocity-verlet",
    "langevin",
    "euler-maruyama",
    "baoab",
)


class ConfigurationError(ValueError):
    """Raised when simulation parameters are invalid."""


def integrator_names() -> tuple[str, ...]:
    """Return the accepted integrator names."""
    return INTEGRATOR_NAMES


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable set of simulation constants.

    All values are fixed for the duration of a run. Quantities are in reduced
    Lennard-Jones units (sigma = epsilon = m = k_B = 1).

    Attributes:
        n_particles: Number of mobile particles.
        box_size: Edge length L of the cubic periodic cell.
        cutoff: Interaction cutoff radius.
        timestep: Integration timestep.
        n_steps: Total number of steps to run.
        temperature: Bath temperature (initial velocities, stochastic
            integrators and thermostat).
        damping: Damping coefficient gamma for Langevin/Brownian schemes.
        speed_limit: Maximum particle speed during warm-up. None disables.
        speed_limit_steps: Number of initial steps with the speed limit active.
        output_interval: Steps between trajectory frames and energy samples.
            Zero disables both.
        output_path: Trajectory file. None disables writing.
        dimensions: Spatial dimensionality (2 or 3).
        integrator: Integration scheme name, see ``integrator_names()``.
        thermostat: Apply the Andersen thermostat after each step.
        collision_frequency: Andersen collision rate.
        seed: Root random seed. None draws fresh entropy.
        n_workers: Size of the worker pool.
        log_interval: Steps between energy log lines. Zero disables.
    """

    n_particles: int = 1000
    box_size: float = 20.0
    cutoff: float = 2.5
    timestep: float = 0.001
    n_steps: int = 1_000_000
    temperature: float = 0.5
    damping: float = 1.0
    speed_limit: float | None = 1.0
    speed_limit_steps: int = 5000
    output_interval: int = 100
    output_path: Path | None = None
    dimensions: int = 3
    integrator: str = "verlet"
    thermostat: bool = False
    collision_frequency: float = 1.0
    seed: int | None = None
    n_workers: int = 1
    log_interval: int = 100

    def __post_init__(self) -> None:
        """Normalize paths and validate."""
        if self.output_path is not None:
            object.__setattr__(self, "output_path", Path(self.output_path))
        self.validate()

    def validate(self) -> None:
        """
        Check every parameter.

        Raises:
            ConfigurationError: On the first invalid parameter.
        """
        if self.n_particles < 1:
            raise ConfigurationError(
                f"n_particles must be positive, got {self.n_particles}"
            )
        if self.box_size <= 0:
            raise ConfigurationError(f"box_size must be positive, got {self.box_size}")
        if self.cutoff <= 0:
            raise ConfigurationError(f"cutoff must be positive, got {self.cutoff}")
        if self.cutoff > 0.5 * self.box_size:
            raise ConfigurationError(
                f"cutoff {self.cutoff} exceeds half the box size {self.box_size}"
            )
        if self.timestep <= 0:
            raise ConfigurationError(f"timestep must be positive, got {self.timestep}")
        if self.n_steps < 0:
            raise ConfigurationError(f"n_steps must be >= 0, got {self.n_steps}")
        if self.temperature <= 0:
            raise ConfigurationError(
                f"temperature must be positive, got {self.temperature}"
            )
        if self.damping <= 0:
            raise ConfigurationError(f"damping must be positive, got {self.damping}")
        if self.speed_limit is not None and self.speed_limit <= 0:
            raise ConfigurationError(
                f"speed_limit must be positive, got {self.speed_limit}"
            )
        if self.speed_limit_steps < 0:
            raise ConfigurationError(
                f"speed_limit_steps must be >= 0, got {self.speed_limit_steps}"
            )
        if self.output_interval < 0:
            raise ConfigurationError(
                f"output_interval must be >= 0, got {self.output_interval}"
            )
        if self.log_interval < 0:
            raise ConfigurationError(
                f"log_interval must be >= 0, got {self.log_interval}"
            )
        if self.dimensions not in (2, 3):
            raise ConfigurationError(
                f"dimensions must be 2 or 3, got {self.dimensions}"
            )
        if self.integrator not in INTEGRATOR_NAMES:
            raise ConfigurationError(
                f"Unknown integrator: {self.integrator}. "
                f"Available: {', '.join(INTEGRATOR_NAMES)}"
            )
        if self.collision_frequency < 0:
            raise ConfigurationError(
                f"collision_frequency must be >= 0, got {self.collision_frequency}"
            )
        if self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")

    def replace(self, **changes) -> SimulationConfig:
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)
