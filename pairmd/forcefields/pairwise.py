"""All-pairs interaction engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..config import ConfigurationError
from ..parallel import ForceAccumulator, ParallelBackend, get_backend

if TYPE_CHECKING:
    from ..system import Box, Particles
    from .base import PairPotential

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RowBlock:
    """Contiguous range of outer pair indices handled by one worker."""

    worker: int
    start: int
    stop: int


class PairInteractionEngine:
    """
    Brute-force O(N^2) pair force computation under periodic boundaries.

    The outer particle index is split into contiguous row blocks, one per
    worker. Each worker visits the strictly lower triangle of its rows
    (every unordered pair exactly once), applies the minimum image
    convention, and records forces into its own ForceAccumulator slot.
    The slots are summed after the join.

    Attributes:
        potential: Pair interaction law.
        box: Periodic simulation box.
        cutoff: Interaction cutoff; pairs at r >= cutoff are ignored.
        backend: Fork-join backend running the row blocks.
    """

    def __init__(
        self,
        potential: PairPotential,
        box: Box,
        cutoff: float,
        backend: ParallelBackend | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            potential: Pair interaction law.
            box: Periodic simulation box.
            cutoff: Interaction cutoff distance.
            backend: Parallel backend. Defaults to serial.
        """
        if cutoff <= 0:
            raise ConfigurationError(f"cutoff must be positive, got {cutoff}")
        self.potential = potential
        self.box = box
        self.cutoff = float(cutoff)
        self.backend = get_backend(backend)
        self._last_potential_energy = 0.0
        LOGGER.debug(
            "Pair engine: %r, cutoff=%g, box=%g, backend=%s x%d",
            potential,
            self.cutoff,
            box.length,
            self.backend.name,
            self.backend.n_workers,
        )

    @property
    def last_potential_energy(self) -> float:
        """Return potential energy from the latest computation."""
        return self._last_potential_energy

    def compute_forces(self, particles: Particles) -> float:
        """
        Compute pair forces and store them in ``particles.forces``.

        Args:
            particles: Particles to evaluate. Positions are read, forces are
                overwritten.

        Returns:
            Total potential energy.
        """
        n_particles = particles.n_particles
        positions = particles.positions
        accumulator = ForceAccumulator(n_particles, particles.dimensions)

        # Row i owns i pairs
        row_weights = np.arange(n_particles, dtype=np.float64)
        blocks = [
            _RowBlock(worker, start, stop)
            for worker, (start, stop) in enumerate(
                self.backend.partition(n_particles, row_weights)
            )
        ]

        def run_block(block: _RowBlock) -> float:
            local = accumulator.acquire_local(block.worker)
            return self._accumulate_rows(positions, local, block.start, block.stop)

        energies = self.backend.parallel_map(run_block, blocks)

        particles.forces[:] = accumulator.reduce()
        self._last_potential_energy = float(sum(energies))
        return self._last_potential_energy

    def _accumulate_rows(
        self,
        positions: NDArray[np.floating],
        forces: NDArray[np.floating],
        start: int,
        stop: int,
    ) -> float:
        """
        Accumulate forces of all pairs (i, j < i) for rows ``start:stop``.

        Args:
            positions: All particle positions, shape (N, d). Read only.
            forces: Worker-local force buffer, shape (N, d).
            start: First row.
            stop: One past the last row.

        Returns:
            Potential energy of the visited pairs.
        """
        cutoff_sq = self.cutoff * self.cutoff
        energy = 0.0

        for i in range(max(start, 1), stop):
            dr = self.box.displacement(positions[i], positions[:i])
            r_sq = np.einsum("ij,ij->i", dr, dr)

            neighbors = np.flatnonzero(r_sq < cutoff_sq)
            if neighbors.size == 0:
                continue

            dr = dr[neighbors]
            r = np.sqrt(r_sq[neighbors])
            f = self.potential.force_magnitude(r)
            pair_forces = (f / r)[:, np.newaxis] * dr

            # Newton's third law
            forces[i] -= pair_forces.sum(axis=0)
            np.add.at(forces, neighbors, pair_forces)

            energy += float(np.sum(self.potential.energy(r)))

        return energy
