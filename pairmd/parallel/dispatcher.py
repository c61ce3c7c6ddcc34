"""Backend dispatcher for selecting parallel backends."""

from __future__ import annotations

from typing import Literal

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threaded import ThreadPoolBackend

BackendType = Literal["serial", "threads"]


def get_backend(
    backend: BackendType | ParallelBackend | None = None,
    n_workers: int | None = None,
) -> ParallelBackend:
    """
    Get a parallel backend instance.

    Args:
        backend: Backend specification. Can be:
            - None: serial for one worker, threads otherwise
            - String: Create backend by name
            - ParallelBackend: Use provided instance directly
        n_workers: Worker count for the threaded backend.

    Returns:
        ParallelBackend instance.

    Examples:
        >>> backend = get_backend()  # serial
        >>> backend = get_backend(n_workers=4)  # threads
        >>> backend = get_backend("threads", n_workers=2)
    """
    if isinstance(backend, ParallelBackend):
        return backend

    if backend is None:
        backend = "serial" if n_workers is None or n_workers <= 1 else "threads"

    return create_backend(backend, n_workers=n_workers)


def create_backend(name: BackendType, n_workers: int | None = None) -> ParallelBackend:
    """
    Create a parallel backend by name.

    Args:
        name: Backend name.
        n_workers: Worker count (threads only).

    Returns:
        ParallelBackend instance.

    Raises:
        ValueError: If backend name is unknown.
    """
    if name == "serial":
        return SerialBackend()

    elif name == "threads":
        return ThreadPoolBackend(n_workers=n_workers)

    else:
        raise ValueError(f"Unknown backend: {name}. Available: serial, threads")
