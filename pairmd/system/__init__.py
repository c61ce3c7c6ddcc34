"""System state and box management."""

from .box import Box
from .state import Particles, random_particles

__all__ = ["Box", "Particles", "random_particles"]
