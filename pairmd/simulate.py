"""
High-level simulation API.

Builds every component from one ``SimulationConfig`` and runs it.

Example:
    >>> from pairmd import SimulationConfig, simulate
    >>> config = SimulationConfig(n_particles=64, box_size=8.0, n_steps=1000, seed=1)
    >>> result = simulate.run(config)
    >>> print(result.mean_temperature)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from .config import SimulationConfig
from .engines import EnergyReporter, MDEngine, TrajectoryReporter
from .forcefields import LennardJones, PairInteractionEngine, PairPotential
from .integrators import (
    AndersenThermostat,
    BAOABIntegrator,
    EulerMaruyamaIntegrator,
    Integrator,
    LangevinIntegrator,
    StormerVerletIntegrator,
    VelocityVerletIntegrator,
)
from .io import XYZWriter
from .parallel import ParallelBackend, get_backend
from .system import Box, Particles, random_particles

LOGGER = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Results from a simulation run."""

    # Final state
    particles: Particles | None = None

    # Energy time series, sampled every output interval
    steps: NDArray[np.integer] = field(default_factory=lambda: np.array([], dtype=int))
    kinetic_energy: NDArray[np.floating] = field(default_factory=lambda: np.array([]))
    potential_energy: NDArray[np.floating] = field(default_factory=lambda: np.array([]))
    total_energy: NDArray[np.floating] = field(default_factory=lambda: np.array([]))
    temperature: NDArray[np.floating] = field(default_factory=lambda: np.array([]))

    # Summary statistics
    mean_temperature: float = 0.0
    mean_potential_energy: float = 0.0
    mean_kinetic_energy: float = 0.0
    energy_drift: float = 0.0
    energy_fluctuation: float = 0.0

    # Metadata
    n_particles: int = 0
    n_steps: int = 0
    completed_steps: int = 0
    timestep: float = 0.0
    box_size: float = 0.0
    cancelled: bool = False


def create_integrator(config: SimulationConfig, box: Box) -> Integrator:
    """
    Create the integrator named by ``config.integrator``.

    Args:
        config: Simulation configuration.
        box: Simulation box.

    Returns:
        Integrator instance.
    """
    dt = config.timestep
    if config.integrator == "verlet":
        return StormerVerletIntegrator(dt, box)
    elif config.integrator == "velocity-verlet":
        return VelocityVerletIntegrator(dt, box)
    elif config.integrator == "langevin":
        return LangevinIntegrator(dt, box, config.damping, config.temperature)
    elif config.integrator == "euler-maruyama":
        return EulerMaruyamaIntegrator(dt, box, config.damping, config.temperature)
    else:
        return BAOABIntegrator(dt, box, config.damping, config.temperature)


def build_engine(
    config: SimulationConfig,
    backend: ParallelBackend,
    potential: PairPotential | None = None,
    particles: Particles | None = None,
    stop_event: threading.Event | None = None,
) -> MDEngine:
    """
    Wire particles, potential, integrator and thermostat into an engine.

    Args:
        config: Simulation configuration.
        backend: Worker pool shared by every phase.
        potential: Pair potential. Defaults to reduced-unit Lennard-Jones.
        particles: Initial particles. Defaults to a random gas drawn from
            the config seed.
        stop_event: Event that cancels the run.

    Returns:
        Engine with initial forces computed and no reporters attached.
    """
    box = Box.cubic(config.box_size, config.dimensions)
    seed_sequence = np.random.SeedSequence(config.seed)
    init_seed, run_seed = seed_sequence.spawn(2)

    if particles is None:
        particles = random_particles(
            config.n_particles,
            box,
            config.temperature,
            config.timestep,
            np.random.default_rng(init_seed),
        )

    pair_engine = PairInteractionEngine(
        potential if potential is not None else LennardJones(),
        box,
        config.cutoff,
        backend=backend,
    )
    thermostat = (
        AndersenThermostat(
            config.temperature, config.timestep, config.collision_frequency
        )
        if config.thermostat
        else None
    )

    return MDEngine(
        particles=particles,
        integrator=create_integrator(config, box),
        pair_engine=pair_engine,
        thermostat=thermostat,
        backend=backend,
        seed=int(run_seed.generate_state(1)[0]),
        speed_limit=config.speed_limit,
        speed_limit_steps=config.speed_limit_steps,
        log_interval=config.log_interval,
        stop_event=stop_event,
    )


def run(
    config: SimulationConfig,
    potential: PairPotential | None = None,
    particles: Particles | None = None,
    stop_event: threading.Event | None = None,
) -> SimulationResult:
    """
    Run a complete simulation described by ``config``.

    The worker pool and trajectory file are released on every exit path,
    including cancellation through ``stop_event``.

    Args:
        config: Simulation configuration.
        potential: Pair potential. Defaults to Lennard-Jones.
        particles: Initial particles. Defaults to a random gas.
        stop_event: Event that ends the run at the next step boundary.

    Returns:
        SimulationResult with energy time series and final particles.

    Raises:
        OSError: If the trajectory cannot be written.
    """
    LOGGER.debug("Simulation config: %r", config)
    with get_backend(n_workers=config.n_workers) as backend:
        engine = build_engine(config, backend, potential, particles, stop_event)

        energies = EnergyReporter(frequency=config.output_interval)
        engine.add_reporter(energies)
        if config.output_path is not None and config.output_interval > 0:
            engine.add_reporter(
                TrajectoryReporter(
                    XYZWriter(config.output_path), frequency=config.output_interval
                )
            )

        engine.run(config.n_steps)

    ke = energies.kinetic_energy
    pe = energies.potential_energy
    total = energies.total_energy
    temp = energies.temperature

    # Drift per completed step and relative fluctuation of the total energy
    energy_drift = 0.0
    energy_fluctuation = 0.0
    if len(total) > 1:
        energy_drift = float((total[-1] - total[0]) / engine.step_count)
        mean_total = np.mean(total)
        if mean_total != 0:
            energy_fluctuation = float(np.std(total) / abs(mean_total))

    return SimulationResult(
        particles=engine.particles,
        steps=energies.steps,
        kinetic_energy=ke,
        potential_energy=pe,
        total_energy=total,
        temperature=temp,
        mean_temperature=float(np.mean(temp)) if len(temp) else 0.0,
        mean_potential_energy=float(np.mean(pe)) if len(pe) else 0.0,
        mean_kinetic_energy=float(np.mean(ke)) if len(ke) else 0.0,
        energy_drift=energy_drift,
        energy_fluctuation=energy_fluctuation,
        n_particles=engine.particles.n_particles,
        n_steps=config.n_steps,
        completed_steps=engine.step_count,
        timestep=config.timestep,
        box_size=config.box_size,
        cancelled=engine.step_count < config.n_steps,
    )
