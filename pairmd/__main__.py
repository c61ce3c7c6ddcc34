"""
pairmd command-line entry point.

Runs a Lennard-Jones simulation described entirely by command-line options.

Usage:
    python -m pairmd --particles 500 --box-size 12 --steps 10000
    python -m pairmd --integrator langevin --output traj.xyz.gz
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from . import __version__, simulate
from .config import ConfigurationError, SimulationConfig, integrator_names

LOGGER = logging.getLogger("pairmd")

EXIT_CONFIG_ERROR = 2
EXIT_IO_ERROR = 1


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one option per configuration field."""
    defaults = SimulationConfig.__dataclass_fields__
    parser = argparse.ArgumentParser(
        prog="pairmd", description="Pairwise molecular dynamics simulator"
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--particles",
        dest="n_particles",
        type=int,
        default=defaults["n_particles"].default,
        help="Number of particles",
    )
    parser.add_argument(
        "--box-size",
        type=float,
        default=defaults["box_size"].default,
        help="Edge length of the periodic cell",
    )
    parser.add_argument(
        "--cutoff",
        type=float,
        default=defaults["cutoff"].default,
        help="Interaction cutoff radius",
    )
    parser.add_argument(
        "--timestep",
        type=float,
        default=defaults["timestep"].default,
        help="Integration timestep",
    )
    parser.add_argument(
        "--steps",
        dest="n_steps",
        type=int,
        default=defaults["n_steps"].default,
        help="Number of steps to run",
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=defaults["temperature"].default,
        help="Bath temperature in reduced units",
    )
    parser.add_argument(
        "--damping",
        type=float,
        default=defaults["damping"].default,
        help="Damping coefficient for Langevin and Brownian schemes",
    )
    parser.add_argument(
        "--speed-limit",
        type=float,
        default=defaults["speed_limit"].default,
        help="Maximum speed during warm-up",
    )
    parser.add_argument(
        "--no-speed-limit",
        dest="speed_limit",
        action="store_const",
        const=None,
        help="Disable the warm-up speed limit",
    )
    parser.add_argument(
        "--speed-limit-steps",
        type=int,
        default=defaults["speed_limit_steps"].default,
        help="Number of initial steps with the speed limit active",
    )
    parser.add_argument(
        "--output-interval",
        type=int,
        default=defaults["output_interval"].default,
        help="Steps between trajectory frames and energy samples (0 disables)",
    )
    parser.add_argument(
        "--output",
        dest="output_path",
        default=None,
        help="Trajectory file; a .gz suffix enables compression",
    )
    parser.add_argument(
        "--dimensions",
        type=int,
        choices=[2, 3],
        default=defaults["dimensions"].default,
        help="Spatial dimensionality",
    )
    parser.add_argument(
        "--integrator",
        choices=integrator_names(),
        default=defaults["integrator"].default,
        help="Integration scheme",
    )
    parser.add_argument(
        "--thermostat",
        action="store_true",
        help="Apply the Andersen thermostat after every step",
    )
    parser.add_argument(
        "--collision-frequency",
        type=float,
        default=defaults["collision_frequency"].default,
        help="Andersen collision rate",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--workers",
        dest="n_workers",
        type=int,
        default=defaults["n_workers"].default,
        help="Number of worker threads",
    )
    parser.add_argument(
        "--log-interval",
        type=int,
        default=defaults["log_interval"].default,
        help="Steps between energy log lines (0 disables)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    """Build a validated configuration from parsed arguments."""
    options = vars(args).copy()
    options.pop("log_level")
    return SimulationConfig(**options)


def main(argv: list[str] | None = None) -> int:
    """
    Run the command-line program.

    Args:
        argv: Arguments without the program name. Defaults to ``sys.argv``.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except ConfigurationError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    stop_event = threading.Event()

    def request_stop(signum, frame) -> None:
        LOGGER.warning("Interrupt received, stopping at the next step")
        stop_event.set()

    previous_handler = signal.signal(signal.SIGINT, request_stop)
    try:
        result = simulate.run(config, stop_event=stop_event)
    except OSError as exc:
        LOGGER.error("Trajectory output failed: %s", exc)
        return EXIT_IO_ERROR
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    LOGGER.info(
        "Completed %d/%d steps: <T>=%.4f <E_pot>=%.6f drift=%.3e",
        result.completed_steps,
        result.n_steps,
        result.mean_temperature,
        result.mean_potential_energy,
        result.energy_drift,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
