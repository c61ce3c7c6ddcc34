"""Tests for integrator implementations."""

import numpy as np
import pytest

from pairmd.config import ConfigurationError
from pairmd.integrators import (
    AndersenThermostat,
    BAOABIntegrator,
    EulerMaruyamaIntegrator,
    LangevinIntegrator,
    StormerVerletIntegrator,
    VelocityVerletIntegrator,
    clamp_speed,
)
from pairmd.system import Box, Particles


@pytest.fixture
def box():
    """Large box so that single steps never cross a face."""
    return Box.cubic(100.0)


@pytest.fixture
def particles():
    """Four particles with history, velocity and force."""
    rng = np.random.default_rng(11)
    positions = rng.uniform(40.0, 60.0, (4, 3))
    return Particles.create(
        positions=positions,
        velocities=rng.normal(0.0, 0.5, (4, 3)),
        old_positions=positions - rng.normal(0.0, 0.001, (4, 3)),
        forces=rng.normal(0.0, 2.0, (4, 3)),
    )


class TestClampSpeed:
    """Test the speed limit helper."""

    def test_clamps_fast_rows(self):
        """Test magnitude is reduced to the limit with direction preserved."""
        v = np.array([[3.0, 4.0, 0.0], [0.1, 0.0, 0.0]])
        mask = clamp_speed(v, 1.0)
        np.testing.assert_allclose(v, [[0.6, 0.8, 0.0], [0.1, 0.0, 0.0]])
        np.testing.assert_array_equal(mask, [True, False])

    def test_no_change_below_limit(self):
        """Test slow velocities are untouched."""
        v = np.full((5, 3), 0.1)
        mask = clamp_speed(v, 1.0)
        np.testing.assert_array_equal(v, 0.1)
        assert not mask.any()


class TestStormerVerletIntegrator:
    """Test the position-history Verlet scheme."""

    def test_timestep_property(self, box):
        """Test timestep property."""
        assert StormerVerletIntegrator(0.002, box).timestep == 0.002

    def test_invalid_timestep(self, box):
        """Test non-positive timestep is rejected."""
        with pytest.raises(ConfigurationError):
            StormerVerletIntegrator(0.0, box)

    def test_phase_a_is_noop(self, box, particles):
        """Test nothing changes before the force computation."""
        before = particles.copy()
        StormerVerletIntegrator(0.01, box).phase_a(particles, np.random.default_rng())
        np.testing.assert_array_equal(particles.positions, before.positions)
        np.testing.assert_array_equal(particles.velocities, before.velocities)

    def test_update_law(self, box, particles):
        """Test x' = 2x - x_old + F dt^2 and v = (x - x_old) / (2 dt)."""
        dt = 0.01
        x = particles.positions.copy()
        x_old = particles.old_positions.copy()
        forces = particles.forces.copy()

        StormerVerletIntegrator(dt, box).phase_b(particles, np.random.default_rng())

        np.testing.assert_allclose(particles.positions, 2 * x - x_old + forces * dt**2)
        np.testing.assert_allclose(particles.velocities, (x - x_old) / (2 * dt))
        np.testing.assert_allclose(particles.old_positions, x)

    def test_speed_limit_rebuilds_position(self, box):
        """Test clamped velocity also sets the new position."""
        dt = 0.1
        particles = Particles.create(
            positions=[[50.0, 50.0, 50.0], [20.0, 20.0, 20.0]],
            old_positions=[[49.0, 50.0, 50.0], [20.0, 20.0, 20.0]],
        )
        StormerVerletIntegrator(dt, box).phase_b(
            particles, np.random.default_rng(), speed_limit=1.0
        )
        # raw estimate is 5 along x, clamped to 1
        np.testing.assert_allclose(particles.velocities[0], [1.0, 0.0, 0.0])
        np.testing.assert_allclose(particles.positions[0], [49.2, 50.0, 50.0])
        np.testing.assert_allclose(particles.old_positions[0], [50.0, 50.0, 50.0])
        np.testing.assert_allclose(particles.positions[1], [20.0, 20.0, 20.0])

    def test_fold_keeps_history_continuous(self):
        """Test crossing a face shifts the history by the same image."""
        box = Box.cubic(10.0)
        particles = Particles.create(
            positions=[[9.95, 5.0, 5.0]], old_positions=[[9.85, 5.0, 5.0]]
        )
        StormerVerletIntegrator(0.01, box).phase_b(particles, np.random.default_rng())

        np.testing.assert_allclose(particles.positions, [[0.05, 5.0, 5.0]], atol=1e-12)
        np.testing.assert_allclose(
            particles.positions - particles.old_positions, [[0.1, 0.0, 0.0]], atol=1e-12
        )

    def test_landing_just_below_zero_keeps_history(self):
        """Test a step ending a hair below zero leaves the history in place."""
        box = Box.cubic(10.0)
        dt = 0.01
        x = 0.03
        # 2x - x_old is exactly minus one ulp of 2x
        particles = Particles.create(
            positions=[[x, 5.0, 5.0]],
            old_positions=[[np.nextafter(2.0 * x, 1.0), 5.0, 5.0]],
        )
        integrator = StormerVerletIntegrator(dt, box)

        integrator.phase_b(particles, np.random.default_rng())
        assert 0.0 <= particles.positions[0, 0] < 10.0
        assert particles.old_positions[0, 0] == pytest.approx(x)

        integrator.phase_b(particles, np.random.default_rng())
        np.testing.assert_allclose(
            particles.velocities, [[-1.5, 0.0, 0.0]], atol=1e-9
        )

    def test_free_particle_uniform_motion(self):
        """Test zero-force motion keeps a constant step length."""
        box = Box.cubic(10.0)
        dt = 0.01
        particles = Particles.create(
            positions=[[1.0, 1.0, 1.0]], old_positions=[[1.0 - 0.03, 1.0, 1.0]]
        )
        integrator = StormerVerletIntegrator(dt, box)
        for _ in range(500):
            integrator.phase_b(particles, np.random.default_rng())
        # 0.03 per step; the estimator divides by 2 dt
        np.testing.assert_allclose(particles.velocities, [[1.5, 0.0, 0.0]])
        np.testing.assert_allclose(particles.positions, [[6.0, 1.0, 1.0]], atol=1e-9)


class TestVelocityVerletIntegrator:
    """Test kick-drift-kick Velocity Verlet."""

    def test_phase_a(self, box, particles):
        """Test half kick then drift."""
        dt = 0.01
        v = particles.velocities + 0.5 * dt * particles.forces
        x = particles.positions + dt * v

        VelocityVerletIntegrator(dt, box).phase_a(particles, np.random.default_rng())

        np.testing.assert_allclose(particles.velocities, v)
        np.testing.assert_allclose(particles.positions, x)

    def test_phase_b(self, box, particles):
        """Test second half kick with the new forces."""
        dt = 0.01
        v = particles.velocities + 0.5 * dt * particles.forces
        x = particles.positions.copy()

        VelocityVerletIntegrator(dt, box).phase_b(particles, np.random.default_rng())

        np.testing.assert_allclose(particles.velocities, v)
        np.testing.assert_allclose(particles.positions, x)

    def test_speed_limit(self, box):
        """Test phase_b clamps velocities."""
        particles = Particles.create(
            positions=[[1.0, 1.0, 1.0]], velocities=[[0.0, 6.0, 8.0]]
        )
        VelocityVerletIntegrator(0.01, box).phase_b(
            particles, np.random.default_rng(), speed_limit=2.0
        )
        np.testing.assert_allclose(particles.velocities, [[0.0, 1.2, 1.6]])

    def test_phase_b_folds(self):
        """Test positions are folded after the step."""
        box = Box.cubic(5.0)
        particles = Particles.create(positions=[[-0.5, 5.5, 2.0]])
        VelocityVerletIntegrator(0.01, box).phase_b(particles, np.random.default_rng())
        np.testing.assert_allclose(particles.positions, [[4.5, 0.5, 2.0]])

    def test_harmonic_energy_conservation(self):
        """Test bounded energy error for a harmonic oscillator."""
        box = Box.cubic(100.0)
        dt = 0.01
        center = 50.0
        particles = Particles.create(
            positions=[[center + 1.0, center, center]], velocities=np.zeros((1, 3))
        )
        integrator = VelocityVerletIntegrator(dt, box)
        rng = np.random.default_rng()
        particles.forces[:] = -(particles.positions - center)

        energies = []
        for _ in range(2000):
            integrator.phase_a(particles, rng)
            particles.forces[:] = -(particles.positions - center)
            integrator.phase_b(particles, rng)
            energies.append(
                particles.kinetic_energy
                + 0.5 * np.sum((particles.positions - center) ** 2)
            )

        assert np.max(np.abs(np.array(energies) - 0.5)) < 1e-4


class TestLangevinIntegrator:
    """Test the Langevin velocity scheme."""

    def test_stochastic_flag(self, box):
        """Test Langevin is stochastic and exposes its bath."""
        integrator = LangevinIntegrator(0.01, box, damping=2.0, temperature=1.5)
        assert integrator.is_stochastic
        assert integrator.damping == 2.0
        assert integrator.temperature == 1.5

    def test_invalid_damping(self, box):
        """Test non-positive damping is rejected."""
        with pytest.raises(ConfigurationError):
            LangevinIntegrator(0.01, box, damping=0.0, temperature=1.0)

    def test_phase_a_update_law(self, box, particles):
        """Test v += dt/2 F + sqrt(gamma T dt) xi; r += v 2dt / (2 + gamma dt)."""
        dt, gamma, temp = 0.01, 0.7, 1.3
        xi = np.random.default_rng(5).standard_normal((4, 3))
        v = particles.velocities + 0.5 * dt * particles.forces + np.sqrt(
            gamma * temp * dt
        ) * xi
        x = particles.positions + v * 2 * dt / (2 + gamma * dt)

        LangevinIntegrator(dt, box, gamma, temp).phase_a(
            particles, np.random.default_rng(5)
        )

        np.testing.assert_allclose(particles.velocities, v)
        np.testing.assert_allclose(particles.positions, x)

    def test_phase_b_update_law(self, box, particles):
        """Test v = (2 - g dt)/(2 + g dt) v + sqrt(g T dt) xi + dt/2 F."""
        dt, gamma, temp = 0.01, 0.7, 1.3
        xi = np.random.default_rng(6).standard_normal((4, 3))
        decay = (2 - gamma * dt) / (2 + gamma * dt)
        v = (
            decay * particles.velocities
            + np.sqrt(gamma * temp * dt) * xi
            + 0.5 * dt * particles.forces
        )
        x = particles.positions.copy()

        LangevinIntegrator(dt, box, gamma, temp).phase_b(
            particles, np.random.default_rng(6)
        )

        np.testing.assert_allclose(particles.velocities, v)
        np.testing.assert_allclose(particles.positions, x)

    def test_phase_b_speed_limit(self, box, particles):
        """Test clamping applies after the stochastic update."""
        particles.velocities[:] = 50.0
        LangevinIntegrator(0.01, box, 1.0, 1.0).phase_b(
            particles, np.random.default_rng(0), speed_limit=0.5
        )
        speeds = np.linalg.norm(particles.velocities, axis=1)
        np.testing.assert_allclose(speeds, 0.5)

    def test_free_particles_reach_bath_temperature(self):
        """Test zero-force particles thermalize to T."""
        box = Box.cubic(50.0)
        temp = 0.8
        integrator = LangevinIntegrator(0.01, box, damping=1.0, temperature=temp)
        rng = np.random.default_rng(21)
        particles = Particles.create(positions=rng.uniform(0.0, 50.0, (2000, 3)))

        samples = []
        for step in range(1500):
            integrator.phase_a(particles, rng)
            integrator.phase_b(particles, rng)
            if step >= 1000:
                samples.append(particles.temperature)

        assert np.mean(samples) == pytest.approx(temp, rel=0.03)
        assert np.all(particles.positions >= 0.0)
        assert np.all(particles.positions < 50.0)


class TestBrownianIntegrators:
    """Test overdamped Brownian schemes."""

    def test_phase_a_is_noop(self, box, particles):
        """Test nothing happens before the force computation."""
        before = particles.copy()
        EulerMaruyamaIntegrator(0.01, box, 1.0, 1.0).phase_a(
            particles, np.random.default_rng(0)
        )
        np.testing.assert_array_equal(particles.positions, before.positions)

    def test_euler_maruyama_update_law(self, box, particles):
        """Test r' = r + F dt / gamma + sqrt(2 T dt / gamma) xi."""
        dt, gamma, temp = 0.01, 2.0, 1.5
        xi = np.random.default_rng(3).standard_normal((4, 3))
        x = particles.positions.copy()
        v = particles.velocities.copy()
        noise = np.sqrt(2 * temp * dt / gamma) * xi
        expected = x + particles.forces * dt / gamma + noise

        EulerMaruyamaIntegrator(dt, box, gamma, temp).phase_b(
            particles, np.random.default_rng(3)
        )

        np.testing.assert_allclose(particles.positions, expected)
        np.testing.assert_allclose(particles.old_positions, x)
        np.testing.assert_array_equal(particles.velocities, v)

    def test_baoab_update_law(self, box, particles):
        """Test r' = r + F dt / gamma + sqrt(T dt / (2 gamma)) (xi1 + xi2)."""
        dt, gamma, temp = 0.01, 2.0, 1.5
        rng = np.random.default_rng(4)
        xi_1 = rng.standard_normal((4, 3))
        xi_2 = rng.standard_normal((4, 3))
        x = particles.positions.copy()
        expected = (
            x
            + particles.forces * dt / gamma
            + np.sqrt(temp * dt / (2 * gamma)) * (xi_1 + xi_2)
        )

        BAOABIntegrator(dt, box, gamma, temp).phase_b(
            particles, np.random.default_rng(4)
        )

        np.testing.assert_allclose(particles.positions, expected)
        np.testing.assert_allclose(particles.old_positions, x)

    def test_speed_limit_ignored(self, box, particles):
        """Test Brownian schemes do not touch velocities."""
        particles.velocities[:] = 10.0
        BAOABIntegrator(0.01, box, 1.0, 1.0).phase_b(
            particles, np.random.default_rng(0), speed_limit=0.1
        )
        np.testing.assert_array_equal(particles.velocities, 10.0)

    @pytest.mark.parametrize(
        "cls, factor", [(EulerMaruyamaIntegrator, 2.0), (BAOABIntegrator, 1.0)]
    )
    def test_displacement_variance(self, cls, factor):
        """Test free displacement variance per axis (2 T dt / gamma for EM)."""
        dt, gamma, temp = 0.01, 0.5, 1.2
        box = Box.cubic(1000.0)
        positions = np.full((20000, 3), 500.0)
        particles = Particles.create(positions=positions)

        cls(dt, box, gamma, temp).phase_b(particles, np.random.default_rng(8))

        displacement = particles.positions - 500.0
        assert np.var(displacement) == pytest.approx(
            factor * temp * dt / gamma, rel=0.03
        )

    def test_folds(self):
        """Test positions are folded after a Brownian move."""
        box = Box.cubic(1.0)
        particles = Particles.create(
            positions=[[0.99, 0.5, 0.01]], forces=[[10.0, 0.0, -10.0]]
        )
        EulerMaruyamaIntegrator(0.01, box, 1.0, 1e-12).phase_b(
            particles, np.random.default_rng(0)
        )
        np.testing.assert_allclose(particles.positions, [[0.09, 0.5, 0.91]], atol=1e-5)


class TestAndersenThermostat:
    """Test Andersen collisions."""

    def test_collision_probability(self):
        """Test probability is frequency times timestep."""
        thermostat = AndersenThermostat(1.0, dt=0.01, collision_frequency=5.0)
        assert thermostat.collision_probability == pytest.approx(0.05)
        assert thermostat.target_temperature == 1.0

    def test_zero_frequency_leaves_velocities(self, particles):
        """Test no collisions at zero frequency."""
        before = particles.velocities.copy()
        AndersenThermostat(1.0, dt=0.01, collision_frequency=0.0).run(
            particles, np.random.default_rng(0)
        )
        np.testing.assert_array_equal(particles.velocities, before)

    def test_certain_collision_resamples_all(self):
        """Test every velocity is redrawn from N(0, sqrt(T))."""
        temp = 2.5
        particles = Particles.create(
            positions=np.zeros((20000, 3)), velocities=np.full((20000, 3), 100.0)
        )
        AndersenThermostat(temp, dt=1.0, collision_frequency=1.0).run(
            particles, np.random.default_rng(1)
        )
        assert np.mean(particles.velocities) == pytest.approx(0.0, abs=0.05)
        assert np.std(particles.velocities) == pytest.approx(np.sqrt(temp), rel=0.03)

    def test_invalid_temperature(self):
        """Test non-positive temperature is rejected."""
        with pytest.raises(ConfigurationError):
            AndersenThermostat(0.0, dt=0.01)
