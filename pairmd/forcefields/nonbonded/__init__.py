"""Nonbonded pair interaction laws."""

from .lj import LennardJones

__all__ = ["LennardJones"]
