"""Simulation engine implementations."""

from .engine import MDEngine
from .reporters import (
    CallbackReporter,
    EnergyReporter,
    Reporter,
    ReporterGroup,
    TrajectoryReporter,
)

__all__ = [
    "MDEngine",
    "Reporter",
    "ReporterGroup",
    "TrajectoryReporter",
    "CallbackReporter",
    "EnergyReporter",
]
