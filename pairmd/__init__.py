"""
pairmd - A parallel pairwise molecular dynamics core.

Design Principles:
- Point particles under a pluggable pair potential
- Periodic cubic cell with minimum-image interactions
- Two-phase integrators (deterministic and stochastic)
- Fork-join parallelism with per-worker force buffers
- Deterministic + reproducible for a fixed seed and worker count

Quick Start:
    >>> from pairmd import SimulationConfig, simulate
    >>> config = SimulationConfig(n_particles=64, box_size=8.0, n_steps=1000, seed=1)
    >>> result = simulate.run(config)
    >>> print(f"Mean temperature: {result.mean_temperature:.3f}")
"""

__version__ = "0.1.0"

# High-level APIs
from . import simulate
from .config import ConfigurationError, SimulationConfig
from .engines import MDEngine
from .forcefields import LennardJones, PairInteractionEngine, PairPotential
from .integrators import (
    AndersenThermostat,
    BAOABIntegrator,
    EulerMaruyamaIntegrator,
    LangevinIntegrator,
    StormerVerletIntegrator,
    VelocityVerletIntegrator,
)

# Core components for advanced users
from .system import Box, Particles

__all__ = [
    "simulate",
    "SimulationConfig",
    "ConfigurationError",
    "MDEngine",
    "Box",
    "Particles",
    "PairPotential",
    "LennardJones",
    "PairInteractionEngine",
    "StormerVerletIntegrator",
    "VelocityVerletIntegrator",
    "LangevinIntegrator",
    "EulerMaruyamaIntegrator",
    "BAOABIntegrator",
    "AndersenThermostat",
]
