"""
Tests for the System orchestrator.

Covers the state-vector contract, particle ownership, the derivative
pipeline and drawing data.
"""

import numpy as np
import pytest

from fluid_sph import Particle, System, SystemConfig
from fluid_sph.constraints import RodConstraint
from fluid_sph.forces import GravityForce, default_fluid_forces
from fluid_sph.integration import EulerSolver, MidpointSolver
from fluid_sph.core.interfaces import NeighbourSearch
from fluid_sph.sph import BruteForceSearch, Poly6Kernel


H = 0.1
W0 = Poly6Kernel(H).w(np.zeros(3))[0]


class _OthersOnly(NeighbourSearch):
    """Brute-force search that leaves out particles at the query point."""

    def __init__(self, radius):
        self._search = BruteForceSearch(radius)

    def update(self, particles):
        self._search.update(particles)

    def query(self, position):
        return [p for p in self._search.query(position) if not np.array_equal(p.position, position)]


def _particles():
    return [
        Particle([0.0, 0.0, 0.0], velocity=[1.0, 2.0, 3.0]),
        Particle([0.05, -0.5, 0.1], velocity=[-1.0, 0.0, 0.5], mass=2.0),
        Particle([-0.1, -1.0, -0.1]),
    ]


def _system(particles=(), solver=None, **config):
    system = System(solver or EulerSolver(), SystemConfig(**config))
    for p in particles:
        system.add_particle(p)
    return system


class TestStateVector:

    def test_dimension(self):
        assert _system().get_dim() == 0
        assert _system(_particles()).get_dim() == 18

    def test_layout(self):
        system = _system(_particles())
        state = system.get_state()

        np.testing.assert_array_equal(state[0:6], [0.0, 0.0, 0.0, 1.0, 2.0, 3.0])
        np.testing.assert_array_equal(state[6:12], [0.05, -0.5, 0.1, -1.0, 0.0, 0.5])

    def test_round_trip_is_exact(self):
        system = _system(_particles())
        state = system.get_state()
        system.set_state(state)
        np.testing.assert_array_equal(system.get_state(), state)

    def test_get_state_is_a_copy(self):
        system = _system(_particles())
        state = system.get_state()
        state[:] = 99.0
        np.testing.assert_array_equal(system.particles[0].position, [0.0, 0.0, 0.0])

    def test_set_state_does_not_alias_input(self):
        system = _system(_particles())
        state = system.get_state() + 1.0
        system.set_state(state)
        state[:] = 0.0
        np.testing.assert_array_equal(system.particles[0].position, [1.0, 1.0, 1.0])

    def test_immovable_particle_ignores_writes(self):
        particles = _particles()
        particles[1].movable = False
        system = _system(particles)

        new_state = system.get_state() + 0.5
        system.set_state(new_state)
        state = system.get_state().reshape(-1, 6)

        np.testing.assert_array_equal(state[0], new_state[0:6])
        np.testing.assert_array_equal(state[1], [0.05, -0.5, 0.1, -1.0, 0.0, 0.5])
        np.testing.assert_array_equal(state[2], new_state[12:18])

    def test_clock_only_moves_when_given(self):
        system = _system(_particles())
        system.set_state(system.get_state())
        assert system.get_time() == 0.0

        system.set_state(system.get_state(), 0.25)
        assert system.get_time() == 0.25

    def test_wrong_length_raises(self):
        system = _system(_particles())
        with pytest.raises(ValueError, match="shape"):
            system.set_state(np.zeros(12))


class TestOwnership:

    def test_particle_lookup(self):
        particles = _particles()
        system = _system(particles)
        assert system.particle(1) is particles[1]
        with pytest.raises(IndexError):
            system.particle(3)
        with pytest.raises(IndexError):
            system.particle(-1)

    def test_free_releases_everything(self):
        particles = _particles()
        system = _system(particles)
        system.add_force(GravityForce())
        system.add_constraint(RodConstraint(particles[0], particles[1], 0.5))

        system.free()

        assert system.particles == []
        assert system.forces == []
        assert system.constraints == []
        assert system.get_dim() == 0
        assert system.grid.query(np.zeros(3)) == []

    def test_reset_restores_particles_and_clock(self):
        system = _system(_particles(), adaptive=False)
        system.add_force(GravityForce(system.particles))
        start = system.get_state()
        system.step()
        system.step()
        assert system.step_count == 2
        assert not np.array_equal(system.get_state(), start)

        system.reset()

        np.testing.assert_array_equal(system.get_state(), start)
        assert system.time == 0.0
        assert system.dt == system.config.dt_initial
        assert system.step_count == 0


class TestDerivative:

    def test_single_particle_without_forces(self):
        system = _system([Particle([0.0, 0.0, 0.0], velocity=[1.0, -2.0, 0.5])])
        deriv = system.deriv_eval()
        np.testing.assert_array_equal(deriv, [1.0, -2.0, 0.5, 0.0, 0.0, 0.0])

    def test_single_particle_feels_no_fluid_force(self):
        system = _system([Particle([0.0, 0.0, 0.0], velocity=[0.3, 0.0, 0.0])])
        for f in default_fluid_forces(system.config, system.particles):
            system.add_force(f)

        deriv = system.deriv_eval()

        np.testing.assert_array_equal(deriv[0:3], [0.3, 0.0, 0.0])
        np.testing.assert_allclose(deriv[3:6], np.zeros(3), atol=1e-12)
        assert system.particles[0].density == pytest.approx(W0)
        assert system.particles[0].pressure == 0.0

    def test_isolated_pair_has_equal_density_and_zero_pressure(self):
        particles = [Particle([-0.15, 0.0, 0.0]), Particle([0.15, 0.0, 0.0])]
        system = _system(particles)
        system.deriv_eval()

        assert particles[0].density == particles[1].density
        assert particles[0].pressure == 0.0
        assert particles[1].pressure == 0.0

    def test_pressure_relative_to_mean_density(self):
        particles = [
            Particle([0.0, 0.0, 0.0]),
            Particle([0.05, 0.0, 0.0]),
            Particle([0.15, -1.0, 0.0]),
        ]
        system = _system(particles, stiffness=2.0)
        system.deriv_eval()

        rest = np.mean([p.density for p in particles])
        for p in particles:
            assert p.pressure == pytest.approx(2.0 * (p.density - rest))
        assert sum(p.pressure for p in particles) == pytest.approx(0.0, abs=1e-9)

    def test_acceleration_is_force_over_density(self):
        p = Particle([0.0, 0.0, 0.0], mass=2.0)
        system = _system([p])
        system.add_force(GravityForce(system.particles, gravity=(0.0, -1.0, 0.0)))
        deriv = system.deriv_eval()

        np.testing.assert_allclose(deriv[3:6], [0.0, -2.0 / p.density, 0.0])
        assert p.density == pytest.approx(2.0 * W0)

    def test_derivative_leaves_state_untouched(self):
        system = _system(_particles())
        for f in default_fluid_forces(system.config, system.particles):
            system.add_force(f)
        state = system.get_state()
        system.deriv_eval()
        np.testing.assert_array_equal(system.get_state(), state)

    def test_forces_cleared_between_evaluations(self):
        system = _system([Particle([0.0, 0.0, 0.0])])
        system.add_force(GravityForce(system.particles, gravity=(0.0, -1.0, 0.0)))
        first = system.deriv_eval()
        second = system.deriv_eval()
        np.testing.assert_array_equal(first, second)
        assert first[4] < 0.0

    def test_empty_system(self):
        system = _system()
        assert system.deriv_eval().shape == (0,)

    def test_zero_density_is_clamped_in_derivative(self):
        # Without its own contribution an isolated particle has density 0
        p = Particle([0.0, 0.0, 0.0])
        system = System(EulerSolver(), SystemConfig(), grid=_OthersOnly(H))
        system.add_particle(p)
        system.add_force(GravityForce(system.particles))

        with pytest.warns(RuntimeWarning, match="clamped"):
            deriv = system.deriv_eval()

        assert p.density == 0.0
        assert np.all(np.isfinite(deriv))
        assert deriv[4] == pytest.approx(-9.81 / system.config.density_floor)


class TestStepping:

    def test_immovable_particle_stays_put(self):
        anchor = Particle([-0.15, 0.0, 0.0], movable=False)
        falling = Particle([0.15, 0.0, 0.0])
        system = _system([anchor, falling], solver=MidpointSolver(), dt_initial=0.01)
        system.add_force(GravityForce(system.particles))

        system.step()
        state = system.get_state().reshape(-1, 6)

        np.testing.assert_array_equal(state[0], [-0.15, 0.0, 0.0, 0.0, 0.0, 0.0])
        # Gravity acted on the anchor too; only the state write was skipped
        assert anchor.force[1] < 0.0
        assert state[1, 1] < 0.0
        assert state[1, 4] < 0.0
        np.testing.assert_array_equal(state[1, [0, 2, 3, 5]], [0.15, 0.0, 0.0, 0.0])
        assert system.time == pytest.approx(0.01)

    def test_empty_step_is_noop(self):
        system = _system()
        system.step()
        system.step(adaptive=True)
        assert system.time == 0.0
        assert system.step_count == 0

    def test_run_reaches_end_time(self):
        system = _system([Particle([0.0, 0.0, 0.0])], dt_initial=0.01)
        system.add_force(GravityForce(system.particles))
        n_steps = system.run(0.1)

        assert system.time >= 0.1
        assert n_steps == system.step_count
        assert 10 <= n_steps <= 11
        assert system.particles[0].velocity[1] < 0.0
        assert system.particles[0].position[1] < 0.0

    def test_run_on_empty_system(self):
        assert _system().run(1.0) == 0

    def test_verbose_logging(self, capsys):
        system = _system([Particle([0.0, 0.0, 0.0])], dt_initial=0.01, verbose=True, log_interval=2)
        system.run(0.04)
        out = capsys.readouterr().out
        assert "step 2" in out
        assert "E_kin" in out


class TestDraw:

    def test_particles_only_by_default(self):
        system = _system(_particles())
        data = system.draw()
        assert set(data) == {'particles'}
        assert len(data['particles']) == 3
        np.testing.assert_array_equal(data['particles'][0]['position'], [0.0, 0.0, 0.0])

    def test_forces_and_constraints(self):
        particles = _particles()
        system = _system(particles)
        system.add_force(GravityForce())
        for f in default_fluid_forces(system.config):
            system.add_force(f)
        system.add_constraint(RodConstraint(particles[0], particles[1], 0.5))

        data = system.draw(draw_velocity=True, draw_force=True, draw_constraint=True)

        assert 'velocity' in data['particles'][0]
        assert 'force' in data['particles'][0]
        # Only gravity provides drawing data
        assert len(data['forces']) == 1
        assert len(data['constraints']) == 1
        assert data['constraints'][0]['segment'].shape == (2, 3)


def test_diagnostics():
    particles = [Particle([0.0, 0.0, 0.0], velocity=[2.0, 0.0, 0.0]),
                 Particle([0.1, 0.0, 0.0], mass=3.0)]
    system = _system(particles)

    assert system.kinetic_energy() == pytest.approx(2.0)
    np.testing.assert_allclose(system.center_of_mass(), [0.075, 0.0, 0.0])
    assert "n_particles=2" in repr(system)
