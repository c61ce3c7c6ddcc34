"""Reporter implementations for simulation output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from ..io import TrajectoryWriter
    from ..system import Particles


class Reporter(ABC):
    """
    Abstract base class for simulation reporters.

    Reporters are called after every step whose number is a multiple of
    ``frequency``. ``finalize`` is called on every exit path of a run.
    """

    @abstractmethod
    def report(self, particles: Particles, step: int, **kwargs: Any) -> None:
        """
        Generate report for the current state.

        Args:
            particles: Current particles (read only).
            step: Number of completed steps.
            **kwargs: Additional information (time, energies).
        """
        ...

    @property
    @abstractmethod
    def frequency(self) -> int:
        """Return reporting frequency (every N steps). Zero disables."""
        ...

    def should_report(self, step: int) -> bool:
        """Check if reporter should run at this step."""
        return self.frequency > 0 and step % self.frequency == 0

    def initialize(self, particles: Particles) -> None:
        """Initialize reporter (called before simulation)."""
        pass

    def finalize(self, particles: Particles) -> None:
        """Finalize reporter (called after simulation)."""
        pass


class ReporterGroup:
    """
    Collection of reporters with automatic frequency handling.
    """

    def __init__(self, reporters: list[Reporter] | None = None) -> None:
        """
        Initialize reporter group.

        Args:
            reporters: List of reporters to manage.
        """
        self._reporters: list[Reporter] = reporters if reporters else []

    def __len__(self) -> int:
        return len(self._reporters)

    def add(self, reporter: Reporter) -> None:
        """Add a reporter to the group."""
        self._reporters.append(reporter)

    def remove(self, reporter: Reporter) -> None:
        """Remove a reporter from the group."""
        self._reporters.remove(reporter)

    def initialize(self, particles: Particles) -> None:
        """Initialize all reporters."""
        for reporter in self._reporters:
            reporter.initialize(particles)

    def report(self, particles: Particles, step: int, **kwargs: Any) -> None:
        """Run all reporters that should fire at this step."""
        for reporter in self._reporters:
            if reporter.should_report(step):
                reporter.report(particles, step, **kwargs)

    def finalize(self, particles: Particles) -> None:
        """
        Finalize all reporters.

        Every reporter is finalized even if an earlier one fails; the first
        failure is re-raised afterwards.
        """
        error: BaseException | None = None
        for reporter in self._reporters:
            try:
                reporter.finalize(particles)
            except Exception as exc:
                if error is None:
                    error = exc
        if error is not None:
            raise error


class TrajectoryReporter(Reporter):
    """
    Reporter that streams frames to a trajectory writer.

    The writer is opened by ``initialize`` and closed by ``finalize``, so a
    run that stops early still flushes every queued frame.
    """

    def __init__(self, writer: TrajectoryWriter, frequency: int = 100) -> None:
        """
        Initialize trajectory reporter.

        Args:
            writer: Trajectory writer to feed.
            frequency: Reporting frequency.
        """
        self._writer = writer
        self._frequency = frequency

    @property
    def frequency(self) -> int:
        return self._frequency

    @property
    def writer(self) -> TrajectoryWriter:
        """Return the underlying writer."""
        return self._writer

    def initialize(self, particles: Particles) -> None:
        """Open the writer."""
        self._writer.open()

    def report(self, particles: Particles, step: int, **kwargs: Any) -> None:
        """Queue the current frame."""
        self._writer.write_frame(particles)

    def finalize(self, particles: Particles) -> None:
        """Flush and close the writer."""
        self._writer.close()


class CallbackReporter(Reporter):
    """
    Reporter that calls a user-defined function.

    Allows arbitrary custom reporting logic.
    """

    def __init__(
        self,
        callback: Callable[[Particles, int, dict[str, Any]], None],
        frequency: int = 1,
    ) -> None:
        """
        Initialize callback reporter.

        Args:
            callback: Function to call with (particles, step, kwargs).
            frequency: Reporting frequency.
        """
        self._callback = callback
        self._frequency = frequency

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(self, particles: Particles, step: int, **kwargs: Any) -> None:
        """Call the callback function."""
        self._callback(particles, step, kwargs)


class EnergyReporter(Reporter):
    """
    Reporter that tracks energy components over time.
    """

    def __init__(self, frequency: int = 100) -> None:
        """
        Initialize energy reporter.

        Args:
            frequency: Reporting frequency.
        """
        self._frequency = frequency
        self._steps: list[int] = []
        self._times: list[float] = []
        self._kinetic: list[float] = []
        self._potential: list[float] = []
        self._temperature: list[float] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(self, particles: Particles, step: int, **kwargs: Any) -> None:
        """Record energies."""
        ke = kwargs.get("kinetic_energy", particles.kinetic_energy)
        self._steps.append(step)
        self._times.append(kwargs.get("time", 0.0))
        self._kinetic.append(ke)
        self._potential.append(kwargs.get("potential_energy", 0.0))
        self._temperature.append(particles.temperature)

    @property
    def steps(self) -> np.ndarray:
        """Return sampled step numbers."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def kinetic_energy(self) -> np.ndarray:
        """Return kinetic energy time series."""
        return np.array(self._kinetic)

    @property
    def potential_energy(self) -> np.ndarray:
        """Return potential energy time series."""
        return np.array(self._potential)

    @property
    def total_energy(self) -> np.ndarray:
        """Return total energy time series."""
        return self.kinetic_energy + self.potential_energy

    @property
    def temperature(self) -> np.ndarray:
        """Return temperature time series."""
        return np.array(self._temperature)

    @property
    def times(self) -> np.ndarray:
        """Return times array."""
        return np.array(self._times)

    def clear(self) -> None:
        """Clear stored data."""
        self._steps.clear()
        self._times.clear()
        self._kinetic.clear()
        self._potential.clear()
        self._temperature.clear()
