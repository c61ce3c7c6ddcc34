"""Pair potentials and the pairwise force engine."""

from .base import PairPotential
from .nonbonded import LennardJones
from .pairwise import PairInteractionEngine

__all__ = ["PairPotential", "LennardJones", "PairInteractionEngine"]
