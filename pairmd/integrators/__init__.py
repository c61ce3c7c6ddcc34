"""Integrator implementations."""

from .base import Integrator, StochasticIntegrator, Thermostat, clamp_speed
from .brownian import BAOABIntegrator, BrownianIntegrator, EulerMaruyamaIntegrator
from .langevin import LangevinIntegrator
from .thermostats import AndersenThermostat
from .velocity_verlet import StormerVerletIntegrator, VelocityVerletIntegrator

__all__ = [
    # Base classes
    "Integrator",
    "StochasticIntegrator",
    "Thermostat",
    "clamp_speed",
    # Integrators
    "StormerVerletIntegrator",
    "VelocityVerletIntegrator",
    "LangevinIntegrator",
    "BrownianIntegrator",
    "EulerMaruyamaIntegrator",
    "BAOABIntegrator",
    # Thermostats
    "AndersenThermostat",
]
