"""Parallelization infrastructure for MD simulations."""

from .accumulator import ForceAccumulator
from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threaded import ThreadPoolBackend
from .dispatcher import create_backend, get_backend

__all__ = [
    "ForceAccumulator",
    "ParallelBackend",
    "SerialBackend",
    "ThreadPoolBackend",
    "create_backend",
    "get_backend",
]
