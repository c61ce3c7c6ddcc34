"""MD simulation engine implementation."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from ..parallel import ParallelBackend, get_backend
from .reporters import Reporter, ReporterGroup

if TYPE_CHECKING:
    from ..forcefields import PairInteractionEngine
    from ..integrators import Integrator, Thermostat
    from ..system import Particles

LOGGER = logging.getLogger(__name__)


class MDEngine:
    """
    Molecular dynamics simulation engine.

    Orchestrates the main simulation loop. Every step is a fixed pipeline of
    fork-join phases with an implicit join between them:

        1. integrator.phase_a over particle blocks
        2. pair forces over the outer pair index
        3. integrator.phase_b over particle blocks (speed limit, PBC fold)
        4. thermostat over particle blocks (optional)
        5. reporters

    Each fork gets one fresh random generator per block, spawned from the
    engine's root seed sequence, so a fixed seed and worker count reproduce
    a run exactly.

    Example usage:
        engine = MDEngine(
            particles=particles,
            integrator=StormerVerletIntegrator(dt=0.001, box=box),
            pair_engine=PairInteractionEngine(LennardJones(), box, cutoff=2.5),
            seed=42,
        )
        engine.add_reporter(EnergyReporter(frequency=100))
        engine.run(nsteps=10000)

    Attributes:
        particles: Current particle state (mutated in place).
        integrator: Time integration scheme.
        pair_engine: Pair force computation.
        thermostat: Optional velocity thermostat.
    """

    def __init__(
        self,
        particles: Particles,
        integrator: Integrator,
        pair_engine: PairInteractionEngine,
        thermostat: Thermostat | None = None,
        backend: ParallelBackend | None = None,
        seed: int | None = None,
        speed_limit: float | None = None,
        speed_limit_steps: int = 0,
        log_interval: int = 0,
        stop_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize MD engine.

        Args:
            particles: Initial particles. The engine owns and mutates them.
            integrator: Time integrator.
            pair_engine: Pair force computation.
            thermostat: Optional thermostat.
            backend: Backend for the per-particle phases. Defaults to the
                pair engine's backend.
            seed: Root random seed.
            speed_limit: Maximum speed during warm-up. None disables.
            speed_limit_steps: Number of initial steps with the limit active.
            log_interval: Steps between energy log lines. Zero disables.
            stop_event: Event polled once per step; setting it ends the run
                at the next step boundary.
        """
        self._particles = particles
        self._integrator = integrator
        self._pair_engine = pair_engine
        self._thermostat = thermostat
        self._backend = get_backend(
            backend if backend is not None else pair_engine.backend
        )
        self._seed_sequence = np.random.SeedSequence(seed)
        self._speed_limit = speed_limit
        self._speed_limit_steps = speed_limit_steps
        self._log_interval = log_interval
        self._stop_event = stop_event if stop_event is not None else threading.Event()

        self._reporters = ReporterGroup()
        self._blocks = [
            particles.view(start, stop)
            for start, stop in self._backend.partition(particles.n_particles)
        ]

        # Tracking
        self._step = 0
        self._time = 0.0
        self._total_steps = 0
        self._wall_time = 0.0
        self._kinetic_energy = particles.kinetic_energy

        # Compute initial forces
        self._potential_energy = self._pair_engine.compute_forces(self._particles)

    @property
    def particles(self) -> Particles:
        """Return current particles."""
        return self._particles

    @property
    def integrator(self) -> Integrator:
        """Return integrator."""
        return self._integrator

    @property
    def pair_engine(self) -> PairInteractionEngine:
        """Return pair force engine."""
        return self._pair_engine

    @property
    def thermostat(self) -> Thermostat | None:
        """Return thermostat."""
        return self._thermostat

    @property
    def backend(self) -> ParallelBackend:
        """Return parallel backend."""
        return self._backend

    @property
    def step_count(self) -> int:
        """Return number of completed steps."""
        return self._step

    @property
    def time(self) -> float:
        """Return simulation time."""
        return self._time

    @property
    def potential_energy(self) -> float:
        """Return last computed potential energy."""
        return self._potential_energy

    @property
    def kinetic_energy(self) -> float:
        """Return kinetic energy after the last step."""
        return self._kinetic_energy

    @property
    def total_energy(self) -> float:
        """Return total energy."""
        return self.kinetic_energy + self.potential_energy

    @property
    def temperature(self) -> float:
        """Return current temperature."""
        return self._particles.temperature

    @property
    def stop_event(self) -> threading.Event:
        """Return the event that cancels the run."""
        return self._stop_event

    @property
    def performance(self) -> dict[str, float]:
        """Return performance statistics."""
        if self._wall_time == 0:
            return {"steps_per_second": 0.0, "wall_time": 0.0, "total_steps": 0}

        return {
            "steps_per_second": self._total_steps / self._wall_time,
            "wall_time": self._wall_time,
            "total_steps": self._total_steps,
        }

    def add_reporter(self, reporter: Reporter) -> None:
        """Add a reporter."""
        self._reporters.add(reporter)

    def remove_reporter(self, reporter: Reporter) -> None:
        """Remove a reporter."""
        self._reporters.remove(reporter)

    def speed_limit_at(self, step: int) -> float | None:
        """Return the speed limit active at ``step``, or None."""
        if self._speed_limit is not None and step < self._speed_limit_steps:
            return self._speed_limit
        return None

    def _fork(self, func: Callable[[Particles, np.random.Generator], Any]) -> None:
        """Run ``func(block, rng)`` over all particle blocks and join."""
        rngs = [
            np.random.default_rng(child)
            for child in self._seed_sequence.spawn(len(self._blocks))
        ]
        self._backend.parallel_map(
            lambda args: func(*args), list(zip(self._blocks, rngs))
        )

    def step(self) -> None:
        """
        Perform a single simulation step.

        This is the core MD loop:
        1. Pre-force integration (phase A)
        2. Compute forces
        3. Post-force integration (phase B)
        4. Apply thermostat
        5. Report
        """
        integrator = self._integrator
        limit = self.speed_limit_at(self._step)

        self._fork(integrator.phase_a)

        self._potential_energy = self._pair_engine.compute_forces(self._particles)

        self._fork(lambda block, rng: integrator.phase_b(block, rng, limit))

        if self._thermostat is not None:
            self._fork(self._thermostat.run)

        self._step += 1
        self._time += integrator.timestep
        self._kinetic_energy = self._particles.kinetic_energy

        if self._speed_limit is not None and self._step == self._speed_limit_steps:
            LOGGER.debug("Speed limit released after step %d", self._step)

        if self._log_interval > 0 and self._step % self._log_interval == 0:
            LOGGER.info(
                "Step %d: E=%.6f E_kin=%.6f E_pot=%.6f T=%.4f",
                self._step,
                self.total_energy,
                self._kinetic_energy,
                self._potential_energy,
                self.temperature,
            )

        self._reporters.report(
            self._particles,
            self._step,
            time=self._time,
            potential_energy=self._potential_energy,
            kinetic_energy=self._kinetic_energy,
        )

    def run(
        self,
        nsteps: int,
        callback: Callable[[MDEngine], bool] | None = None,
    ) -> Particles:
        """
        Run simulation for specified number of steps.

        The stop event is polled before every step. Reporters are finalized
        on every exit path, including cancellation and errors.

        Args:
            nsteps: Number of steps to run.
            callback: Optional callback called each step.
                     Return True to stop simulation early.

        Returns:
            Final particles.
        """
        LOGGER.info(
            "Running %d steps: %d particles, %r, backend=%s x%d",
            nsteps,
            self._particles.n_particles,
            self._integrator,
            self._backend.name,
            self._backend.n_workers,
        )
        self._reporters.initialize(self._particles)

        start_time = time.perf_counter()
        completed = 0

        try:
            for _ in range(nsteps):
                if self._stop_event.is_set():
                    LOGGER.warning(
                        "Stop requested; ending run after step %d", self._step
                    )
                    break

                self.step()
                self._total_steps += 1
                completed += 1

                if callback is not None and callback(self):
                    break
        finally:
            elapsed = time.perf_counter() - start_time
            self._wall_time += elapsed
            self._reporters.finalize(self._particles)

        LOGGER.info(
            "Finished %d steps in %.2f s (E=%.6f, T=%.4f)",
            completed,
            elapsed,
            self.total_energy,
            self.temperature,
        )
        return self._particles

    def stop(self) -> None:
        """Signal simulation to stop at the next step boundary."""
        self._stop_event.set()


