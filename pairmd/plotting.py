"""
Matplotlib figures for a finished run.

Example:
    >>> from pairmd import SimulationConfig, simulate, plotting
    >>> result = simulate.run(SimulationConfig(n_particles=64, box_size=8.0))
    >>> plotting.energy(result, show=False)
    >>> plotting.save("lj_energy.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from matplotlib.figure import Figure

    from .simulate import SimulationResult

LOGGER = logging.getLogger(__name__)


def _times(result: SimulationResult) -> np.ndarray:
    """Return sample times of the energy series."""
    return np.asarray(result.steps, dtype=float) * result.timestep


def _per_particle(series: np.ndarray, result: SimulationResult) -> np.ndarray:
    return np.asarray(series, dtype=float) / max(result.n_particles, 1)


def _finish(fig: Figure, show: bool) -> None:
    fig.tight_layout()
    if show:
        plt.show()


def energy(
    result: SimulationResult,
    show: bool = True,
    figsize: tuple[float, float] = (11, 4.5),
) -> None:
    """
    Plot the per-particle energy series and the deviation of the total.

    The left panel shows E_kin/N, E_pot/N and E/N. The right panel shows
    ``(E - E_0)/N`` together with the straight line implied by the reported
    drift per step, so secular drift and bounded oscillation are easy to
    tell apart.

    Args:
        result: Finished run.
        show: Whether to display the figure immediately.
        figsize: Figure size (width, height) in inches.
    """
    fig, (series_ax, drift_ax) = plt.subplots(1, 2, figsize=figsize)
    times = _times(result)

    for values, style, name in (
        (result.kinetic_energy, "tab:orange", "E_kin / N"),
        (result.potential_energy, "tab:blue", "E_pot / N"),
        (result.total_energy, "k", "E / N"),
    ):
        series_ax.plot(times, _per_particle(values, result), color=style, label=name)
    series_ax.set_xlabel("t (τ)")
    series_ax.set_ylabel("energy per particle (ε)")
    series_ax.legend(loc="best")

    if len(result.total_energy):
        total = _per_particle(result.total_energy, result)
        drift_ax.plot(times, total - total[0], "k-", lw=1, label="E - E_0")
        fitted = (
            (np.asarray(result.steps) - result.steps[0])
            * result.energy_drift
            / max(result.n_particles, 1)
        )
        drift_ax.plot(times, fitted, "r--", lw=1, label="drift fit")
        drift_ax.legend(loc="best")
    drift_ax.set_xlabel("t (τ)")
    drift_ax.set_ylabel("(E - E_0) / N (ε)")
    drift_ax.set_title(f"relative fluctuation {result.energy_fluctuation:.1e}")

    _finish(fig, show)


def temperature(
    result: SimulationResult,
    target: float | None = None,
    show: bool = True,
    figsize: tuple[float, float] = (8, 4),
) -> None:
    """
    Plot the instantaneous and running-mean temperature.

    Args:
        result: Finished run.
        target: Bath temperature drawn as a reference line.
        show: Whether to display the figure immediately.
        figsize: Figure size (width, height) in inches.
    """
    fig, ax = plt.subplots(figsize=figsize)
    times = _times(result)
    samples = np.asarray(result.temperature, dtype=float)
    running = np.cumsum(samples) / np.arange(1, len(samples) + 1)

    ax.plot(times, samples, color="tab:blue", alpha=0.5, lw=0.7, label="T")
    ax.plot(times, running, color="tab:red", lw=1.5, label="running mean")
    if target is not None:
        ax.axhline(
            target, color="tab:green", linestyle=":", label=f"bath T = {target}"
        )

    ax.set_xlabel("t (τ)")
    ax.set_ylabel("T (ε / k_B)")
    ax.set_title(f"<T> = {result.mean_temperature:.3f}")
    ax.legend(loc="best")

    _finish(fig, show)


def save(filename: str | Path, dpi: int = 150) -> None:
    """Save the current figure."""
    plt.savefig(filename, dpi=dpi, bbox_inches="tight")
    LOGGER.info("Saved plot to %s", filename)


def show() -> None:
    """Display figures created with ``show=False``."""
    plt.show()
