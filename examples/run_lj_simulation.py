#!/usr/bin/env python
"""
Example: Running an LJ gas with the low-level engine API.

This script demonstrates how to:
1. Create particles in a periodic box
2. Equilibrate with the Andersen thermostat on several worker threads
3. Run production NVE dynamics and write a gzipped XYZ trajectory
4. Check energy conservation

Reduced LJ units (epsilon = sigma = m = kB = 1).

Usage:
    python examples/run_lj_simulation.py
"""

import numpy as np

from pairmd.engines import EnergyReporter, MDEngine, TrajectoryReporter
from pairmd.forcefields import LennardJones, PairInteractionEngine
from pairmd.integrators import AndersenThermostat, VelocityVerletIntegrator
from pairmd.io import XYZWriter
from pairmd.parallel import get_backend
from pairmd.system import Box, Particles


def create_lattice(n_side: int, spacing: float, temperature: float, seed: int):
    """Jittered cubic lattice with zero-momentum Maxwell-Boltzmann velocities."""
    rng = np.random.default_rng(seed)
    axis = (np.arange(n_side) + 0.5) * spacing
    grid = np.stack(np.meshgrid(axis, axis, axis, indexing="ij"), -1).reshape(-1, 3)
    positions = grid + rng.uniform(-0.05, 0.05, grid.shape)
    velocities = rng.normal(0.0, np.sqrt(temperature), grid.shape)
    velocities -= velocities.mean(axis=0)
    return Particles.create(positions, velocities), Box.cubic(n_side * spacing)


def run_simulation(
    n_side: int = 5,
    spacing: float = 1.6,
    temperature: float = 1.0,
    dt: float = 0.002,
    n_equil: int = 1000,
    n_prod: int = 4000,
    n_workers: int = 4,
    seed: int = 42,
):
    particles, box = create_lattice(n_side, spacing, temperature, seed)
    print(f"N = {particles.n_particles}, box = {box.length:.2f}, T* = {temperature}")

    with get_backend(n_workers=n_workers) as backend:
        pair_engine = PairInteractionEngine(
            LennardJones(), box, cutoff=2.5, backend=backend
        )

        # Equilibration: thermostat couples velocities to the bath
        equil = MDEngine(
            particles,
            VelocityVerletIntegrator(dt, box),
            pair_engine,
            thermostat=AndersenThermostat(temperature, dt, collision_frequency=5.0),
            seed=seed,
        )
        equil.run(n_equil)
        print(f"Equilibrated: T = {equil.temperature:.3f}")

        # Production: plain NVE
        prod = MDEngine(particles, VelocityVerletIntegrator(dt, box), pair_engine)
        energies = EnergyReporter(frequency=10)
        prod.add_reporter(energies)
        prod.add_reporter(TrajectoryReporter(XYZWriter("lj.xyz.gz"), frequency=100))
        prod.run(n_prod)

    total = energies.total_energy
    drift = (total[-1] - total[0]) / n_prod
    fluctuation = np.std(total) / abs(np.mean(total))
    print(f"<T>        = {np.mean(energies.temperature):.3f}")
    print(f"drift/step = {drift:.2e}")
    print(f"rel fluct  = {fluctuation:.2e}")
    print(f"throughput = {prod.performance['steps_per_second']:.0f} steps/s")


if __name__ == "__main__":
    run_simulation()
