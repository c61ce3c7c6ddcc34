"""Tests for MD simulation engine."""

import logging
import threading

import numpy as np
import pytest

from pairmd.engines import (
    CallbackReporter,
    EnergyReporter,
    MDEngine,
    Reporter,
    ReporterGroup,
)
from pairmd.forcefields import LennardJones, PairInteractionEngine
from pairmd.integrators import (
    AndersenThermostat,
    Integrator,
    LangevinIntegrator,
    StormerVerletIntegrator,
    Thermostat,
    VelocityVerletIntegrator,
)
from pairmd.parallel import ThreadPoolBackend
from pairmd.system import Box, Particles


def lattice_system(n_side=4, spacing=1.3, seed=0):
    """Jittered lattice of LJ particles with small random velocities."""
    rng = np.random.default_rng(seed)
    axis = np.arange(n_side) * spacing + 0.5 * spacing
    grid = np.stack(np.meshgrid(axis, axis, axis, indexing="ij"), -1).reshape(-1, 3)
    box = Box.cubic(n_side * spacing)
    positions = grid + rng.uniform(-0.05, 0.05, grid.shape)
    velocities = rng.normal(0.0, 0.3, grid.shape)
    velocities -= velocities.mean(axis=0)
    return Particles.create(positions, velocities), box


@pytest.fixture
def lj_system():
    """Create a Lennard-Jones system."""
    particles, box = lattice_system()
    pair_engine = PairInteractionEngine(LennardJones(), box, cutoff=2.5)
    return particles, box, pair_engine


class RecordingIntegrator(Integrator):
    """Integrator that logs its calls."""

    def __init__(self, box, log):
        super().__init__(0.01, box)
        self.log = log
        self.limits = []

    def phase_a(self, particles, rng):
        self.log.append("a")

    def phase_b(self, particles, rng, speed_limit=None):
        self.log.append("b")
        self.limits.append(speed_limit)


class RecordingPairEngine(PairInteractionEngine):
    """Pair engine that logs force computations."""

    def __init__(self, box, log):
        super().__init__(LennardJones(), box, cutoff=2.5)
        self.log = log

    def compute_forces(self, particles):
        self.log.append("forces")
        return super().compute_forces(particles)


class RecordingThermostat(Thermostat):
    """Thermostat that logs its calls."""

    def __init__(self, log):
        self.log = log

    def run(self, particles, rng):
        self.log.append("thermostat")

    @property
    def target_temperature(self):
        return 1.0


class FailingReporter(Reporter):
    """Reporter that raises at a given step and records finalization."""

    def __init__(self, fail_at):
        self.fail_at = fail_at
        self.finalized = False

    @property
    def frequency(self):
        return 1

    def report(self, particles, step, **kwargs):
        if step == self.fail_at:
            raise RuntimeError("reporter failure")

    def finalize(self, particles):
        self.finalized = True


class TestMDEngine:
    """Tests for MDEngine."""

    def test_initialization(self, lj_system):
        """Test engine computes initial forces."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)

        assert engine.step_count == 0
        assert engine.time == 0.0
        assert engine.potential_energy != 0.0
        assert np.any(particles.forces != 0.0)

    def test_phase_order(self):
        """Test phase A, forces, phase B, thermostat per step."""
        box = Box.cubic(10.0)
        particles = Particles.create(positions=[[1.0, 1.0, 1.0], [5.0, 5.0, 5.0]])
        log = []
        engine = MDEngine(
            particles,
            RecordingIntegrator(box, log),
            RecordingPairEngine(box, log),
            thermostat=RecordingThermostat(log),
        )
        log.clear()

        engine.run(2)

        step = ["a", "forces", "b", "thermostat"]
        assert log == step + step

    def test_phases_run_per_block(self):
        """Test per-particle phases fork once per worker block."""
        box = Box.cubic(10.0)
        positions = np.random.default_rng(0).uniform(0.0, 10.0, (9, 3))
        particles = Particles.create(positions=positions)
        log = []
        with ThreadPoolBackend(3) as backend:
            engine = MDEngine(
                particles,
                RecordingIntegrator(box, log),
                PairInteractionEngine(LennardJones(), box, 2.5, backend=backend),
            )
            engine.step()
        assert log.count("a") == 3
        assert log.count("b") == 3

    def test_speed_limit_window(self):
        """Test the limit is passed only during the warm-up steps."""
        box = Box.cubic(10.0)
        particles = Particles.create(positions=[[1.0, 1.0, 1.0]])
        integrator = RecordingIntegrator(box, [])
        engine = MDEngine(
            particles,
            integrator,
            PairInteractionEngine(LennardJones(), box, 2.5),
            speed_limit=0.5,
            speed_limit_steps=2,
        )
        engine.run(4)
        assert integrator.limits == [0.5, 0.5, None, None]
        assert engine.speed_limit_at(1) == 0.5
        assert engine.speed_limit_at(2) is None

    def test_no_speed_limit(self, lj_system):
        """Test None disables the limit."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(
            particles,
            StormerVerletIntegrator(0.001, box),
            pair_engine,
            speed_limit=None,
            speed_limit_steps=100,
        )
        assert engine.speed_limit_at(0) is None

    def test_run_advances_time(self, lj_system):
        """Test step count and time after a run."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, VelocityVerletIntegrator(0.002, box), pair_engine)
        engine.run(10)
        assert engine.step_count == 10
        assert engine.time == pytest.approx(0.02)
        assert np.all(particles.positions >= 0.0)
        assert np.all(particles.positions < box.length)

    def test_energy_properties(self, lj_system):
        """Test energy bookkeeping."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, VelocityVerletIntegrator(0.001, box), pair_engine)
        engine.run(3)
        assert engine.kinetic_energy == pytest.approx(particles.kinetic_energy)
        assert engine.total_energy == pytest.approx(
            engine.kinetic_energy + engine.potential_energy
        )
        assert engine.temperature == pytest.approx(particles.temperature)

    def test_velocity_verlet_conserves_energy(self, lj_system):
        """Test NVE total energy stays close to its initial value."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, VelocityVerletIntegrator(0.001, box), pair_engine)
        e0 = engine.total_energy
        reporter = EnergyReporter(frequency=10)
        engine.add_reporter(reporter)
        engine.run(200)

        drift = np.max(np.abs(reporter.total_energy - e0))
        assert drift < 1e-2 * max(1.0, abs(e0))

    def test_with_thermostat(self, lj_system):
        """Test Andersen thermostat runs inside the step loop."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(
            particles,
            VelocityVerletIntegrator(0.001, box),
            pair_engine,
            thermostat=AndersenThermostat(1.0, dt=0.001, collision_frequency=1000.0),
            seed=3,
        )
        engine.run(5)
        assert engine.temperature > 0.0

    def test_stop_event(self, lj_system):
        """Test setting the stop event ends the run at a step boundary."""
        particles, box, pair_engine = lj_system
        stop = threading.Event()
        engine = MDEngine(
            particles, StormerVerletIntegrator(0.001, box), pair_engine, stop_event=stop
        )

        def request_stop(particles, step, kwargs):
            if step == 3:
                stop.set()

        engine.add_reporter(CallbackReporter(request_stop, frequency=1))
        engine.run(100)

        assert engine.step_count == 3
        assert engine.stop_event is stop

    def test_stop_method(self, lj_system):
        """Test stop() before run prevents any step."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        engine.stop()
        engine.run(10)
        assert engine.step_count == 0

    def test_stop_logs_warning(self, lj_system, caplog):
        """Test cancellation is logged."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        engine.stop()
        with caplog.at_level(logging.WARNING, logger="pairmd.engines.engine"):
            engine.run(5)
        assert "Stop requested" in caplog.text

    def test_callback_stops_simulation(self, lj_system):
        """Test run callback returning True stops early."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        engine.run(50, callback=lambda e: e.step_count >= 4)
        assert engine.step_count == 4

    def test_reporters_finalized_on_error(self, lj_system):
        """Test reporters are finalized when a step raises."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        failing = FailingReporter(fail_at=2)
        other = FailingReporter(fail_at=-1)
        engine.add_reporter(failing)
        engine.add_reporter(other)

        with pytest.raises(RuntimeError, match="reporter failure"):
            engine.run(10)

        assert failing.finalized
        assert other.finalized
        assert engine.step_count == 2

    def test_energy_log_interval(self, lj_system, caplog):
        """Test an INFO energy line every log interval."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(
            particles, StormerVerletIntegrator(0.001, box), pair_engine, log_interval=2
        )
        with caplog.at_level(logging.INFO, logger="pairmd.engines.engine"):
            engine.run(4)
        lines = [r.getMessage() for r in caplog.records if "E_kin" in r.getMessage()]
        assert len(lines) == 2
        assert lines[0].startswith("Step 2:")

    def test_performance_stats(self, lj_system):
        """Test performance statistics after a run."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        assert engine.performance["total_steps"] == 0
        engine.run(5)
        stats = engine.performance
        assert stats["total_steps"] == 5
        assert stats["wall_time"] > 0.0

    def test_stochastic_reproducible(self):
        """Test a fixed seed reproduces a Langevin run exactly."""

        def run(seed):
            particles, box = lattice_system(n_side=3, spacing=1.4, seed=1)
            engine = MDEngine(
                particles,
                LangevinIntegrator(0.005, box, damping=1.0, temperature=1.0),
                PairInteractionEngine(LennardJones(), box, 2.0),
                seed=seed,
            )
            engine.run(20)
            return particles

        a, b, c = run(5), run(5), run(6)
        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.velocities, b.velocities)
        assert not np.array_equal(a.velocities, c.velocities)


class TestReporters:
    """Tests for reporters."""

    def test_energy_reporter(self, lj_system):
        """Test energy reporter samples at its frequency."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, VelocityVerletIntegrator(0.001, box), pair_engine)
        reporter = EnergyReporter(frequency=5)
        engine.add_reporter(reporter)
        engine.run(20)

        np.testing.assert_array_equal(reporter.steps, [5, 10, 15, 20])
        np.testing.assert_allclose(reporter.times, [0.005, 0.01, 0.015, 0.02])
        assert len(reporter.kinetic_energy) == 4
        np.testing.assert_allclose(
            reporter.total_energy, reporter.kinetic_energy + reporter.potential_energy
        )
        assert reporter.temperature[-1] == pytest.approx(particles.temperature)

        reporter.clear()
        assert len(reporter.steps) == 0

    def test_zero_frequency_disables(self, lj_system):
        """Test frequency 0 never reports."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        reporter = EnergyReporter(frequency=0)
        engine.add_reporter(reporter)
        engine.run(5)
        assert len(reporter.steps) == 0

    def test_callback_reporter(self, lj_system):
        """Test callback receives step and energies."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        seen = []
        engine.add_reporter(
            CallbackReporter(lambda p, step, kw: seen.append((step, kw)), frequency=2)
        )
        engine.run(4)

        assert [step for step, _ in seen] == [2, 4]
        assert "potential_energy" in seen[0][1]
        assert seen[1][1]["time"] == pytest.approx(0.004)

    def test_remove_reporter(self, lj_system):
        """Test removed reporters no longer fire."""
        particles, box, pair_engine = lj_system
        engine = MDEngine(particles, StormerVerletIntegrator(0.001, box), pair_engine)
        reporter = EnergyReporter(frequency=1)
        engine.add_reporter(reporter)
        engine.remove_reporter(reporter)
        engine.run(3)
        assert len(reporter.steps) == 0

    def test_group_finalize_reraises_first(self):
        """Test a group finalizes everyone and re-raises the first error."""

        class BadFinalize(FailingReporter):
            def finalize(self, particles):
                super().finalize(particles)
                raise OSError("disk full")

        bad = BadFinalize(fail_at=-1)
        good = FailingReporter(fail_at=-1)
        group = ReporterGroup([bad, good])
        assert len(group) == 2

        with pytest.raises(OSError, match="disk full"):
            group.finalize(None)
        assert good.finalized
