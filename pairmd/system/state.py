"""Particle state representation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .box import Box


@dataclass
class Particles:
    """
    Struct-of-arrays container for the mobile particles.

    Pure data, no dynamics. Every array has shape (N, d). Particles have unit
    mass. A ``view`` shares memory with its parent, so integrators and the
    force engine can update a block of rows in place.

    Attributes:
        old_positions: Positions at the previous step (Verlet history).
        positions: Current positions.
        velocities: Current velocities.
        forces: Forces from the latest force computation.
    """

    old_positions: NDArray[np.floating]
    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    forces: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate shapes."""
        shape = np.shape(self.positions)
        if len(shape) != 2 or shape[1] not in (2, 3):
            raise ValueError(f"positions must have shape (N, 2) or (N, 3), got {shape}")
        for name in ("old_positions", "velocities", "forces"):
            other = np.shape(getattr(self, name))
            if other != shape:
                raise ValueError(f"{name} shape {other} incompatible with {shape}")

    @classmethod
    def create(
        cls,
        positions: ArrayLike,
        velocities: ArrayLike | None = None,
        old_positions: ArrayLike | None = None,
        forces: ArrayLike | None = None,
    ) -> Particles:
        """
        Create particles with optional velocity/history/force initialization.

        Args:
            positions: Positions, shape (N, d).
            velocities: Velocities, shape (N, d). Defaults to zeros.
            old_positions: Previous positions. Defaults to ``positions``.
            forces: Forces, shape (N, d). Defaults to zeros.

        Returns:
            New Particles instance owning copies of the inputs.
        """
        positions = np.array(positions, dtype=np.float64)
        zeros = np.zeros_like(positions)
        return cls(
            old_positions=(
                positions.copy()
                if old_positions is None
                else np.array(old_positions, dtype=np.float64)
            ),
            positions=positions,
            velocities=(
                zeros.copy()
                if velocities is None
                else np.array(velocities, dtype=np.float64)
            ),
            forces=zeros if forces is None else np.array(forces, dtype=np.float64),
        )

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def n_particles(self) -> int:
        """Return number of particles."""
        return len(self.positions)

    @property
    def dimensions(self) -> int:
        """Return spatial dimensionality."""
        return self.positions.shape[1]

    def view(self, start: int, stop: int) -> Particles:
        """Return particles ``start:stop`` sharing memory with this instance."""
        return Particles(
            old_positions=self.old_positions[start:stop],
            positions=self.positions[start:stop],
            velocities=self.velocities[start:stop],
            forces=self.forces[start:stop],
        )

    def copy(self) -> Particles:
        """Create a deep copy."""
        return Particles(
            old_positions=self.old_positions.copy(),
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            forces=self.forces.copy(),
        )

    @property
    def kinetic_energy(self) -> float:
        """Compute total kinetic energy: sum(0.5 * v^2)."""
        return float(0.5 * np.sum(self.velocities**2))

    @property
    def temperature(self) -> float:
        """
        Compute the instantaneous temperature by equipartition.

        Uses T = 2 * KE / (d * N) with k_B = 1. Returns 0 for no particles.
        """
        if self.n_particles == 0:
            return 0.0
        return 2.0 * self.kinetic_energy / (self.dimensions * self.n_particles)


def random_particles(
    n_particles: int,
    box: Box,
    temperature: float,
    timestep: float,
    rng: np.random.Generator,
) -> Particles:
    """
    Place particles uniformly in the box with Maxwell-Boltzmann velocities.

    Velocity components are drawn from N(0, sqrt(T)). The history position is
    the sampled point and the current position is advanced by ``v * dt``, so
    the Stormer-Verlet scheme starts from a consistent trajectory.

    Args:
        n_particles: Number of particles.
        box: Simulation box.
        temperature: Temperature setting the velocity spread.
        timestep: Integration timestep.
        rng: Random generator.

    Returns:
        Freshly initialized particles, folded into the box.
    """
    shape = (n_particles, box.dimensions)
    old_positions = rng.uniform(0.0, box.length, shape)
    velocities = rng.normal(0.0, np.sqrt(temperature), shape)
    positions, image = box.fold(old_positions + velocities * timestep)
    return Particles.create(
        positions=positions,
        velocities=velocities,
        old_positions=old_positions - box.length * image,
    )
