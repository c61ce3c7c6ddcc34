#!/usr/bin/env python
"""
Quick start example - the simplest way to run a simulation.

Runs a small Lennard-Jones gas from a configuration and plots the energy
and temperature series.

Usage:
    python examples/quickstart.py
"""

import logging

from pairmd import SimulationConfig, plotting, simulate


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # 1. Default Stormer-Verlet run with the warm-up speed limit
    config = SimulationConfig(
        n_particles=125,
        box_size=8.0,
        n_steps=2000,
        output_interval=20,
        speed_limit_steps=500,
        seed=7,
    )
    result = simulate.run(config)
    print(f"Verlet:  <T> = {result.mean_temperature:.3f}")
    print(f"         drift/step = {result.energy_drift:.2e}")

    # 2. Same system held at the bath temperature by Langevin dynamics
    result = simulate.run(config.replace(integrator="langevin", damping=1.0))
    print(f"Langevin: <T> = {result.mean_temperature:.3f} (bath {config.temperature})")

    plotting.energy(result, show=False)
    plotting.temperature(result, target=config.temperature, show=False)
    plotting.show()


if __name__ == "__main__":
    main()
