"""Tests for container collision handling."""

import numpy as np
import pytest

from fluid_sph import Particle, System, SystemConfig
from fluid_sph.integration import EulerSolver


def _system(n=1, **config):
    system = System(EulerSolver(), SystemConfig(**config))
    for i in range(n):
        system.add_particle(Particle([0.0, 0.0, 0.0]))
    return system


def _state(*rows):
    return np.array(rows, dtype=np.float64).reshape(-1)


def test_x_wall_clamps_and_reflects():
    system = _system()
    out = system.check_collisions(_state([-0.25, 0.0, 0.0, -1.0, 0.0, 0.0]))
    np.testing.assert_array_equal(out, [-0.2, 0.0, 0.0, 1.0, 0.0, 0.0])

    out = system.check_collisions(_state([0.3, 0.0, 0.0, 2.0, 0.0, 0.0]))
    np.testing.assert_array_equal(out, [0.2, 0.0, 0.0, -2.0, 0.0, 0.0])


def test_floor_clamps_and_reflects():
    system = _system()
    out = system.check_collisions(_state([0.0, -2.5, 0.0, 0.0, -1.0, 0.0]))
    np.testing.assert_array_equal(out, [0.0, -2.0, 0.0, 0.0, 1.0, 0.0])


def test_z_wall_reflects_z_velocity():
    system = _system()
    out = system.check_collisions(_state([0.0, 0.0, 0.25, 0.7, 0.0, 1.5]))
    np.testing.assert_array_equal(out, [0.0, 0.0, 0.2, 0.7, 0.0, -1.5])

    out = system.check_collisions(_state([0.0, 0.0, -0.3, 0.7, 0.0, -1.5]))
    np.testing.assert_array_equal(out, [0.0, 0.0, -0.2, 0.7, 0.0, 1.5])


def test_velocity_already_inward_is_kept():
    system = _system()
    out = system.check_collisions(_state([-0.25, 0.0, 0.0, 0.5, 0.0, 0.0]))
    np.testing.assert_array_equal(out, [-0.2, 0.0, 0.0, 0.5, 0.0, 0.0])


def test_inside_state_unchanged():
    system = _system(2)
    state = _state(
        [0.1, -1.0, -0.1, 0.3, -0.4, 0.5],
        [-0.2, -2.0, 0.2, -1.0, -1.0, 1.0],
    )
    np.testing.assert_array_equal(system.check_collisions(state), state)


def test_several_axes_at_once():
    system = _system(2)
    state = _state(
        [-0.25, -2.5, 0.3, -1.0, -1.0, 1.0],
        [0.0, 0.0, 0.0, 1.0, 1.0, 1.0],
    )
    out = system.check_collisions(state).reshape(-1, 6)

    np.testing.assert_array_equal(out[0], [-0.2, -2.0, 0.2, 1.0, 1.0, -1.0])
    np.testing.assert_array_equal(out[1], state.reshape(-1, 6)[1])


def test_input_and_particles_not_modified():
    system = _system()
    state = _state([-0.25, 0.0, 0.0, -1.0, 0.0, 0.0])
    original = state.copy()
    system.check_collisions(state)

    np.testing.assert_array_equal(state, original)
    np.testing.assert_array_equal(system.particles[0].position, np.zeros(3))


def test_open_ceiling():
    system = _system()
    state = _state([0.0, 100.0, 0.0, 0.0, 5.0, 0.0])
    np.testing.assert_array_equal(system.check_collisions(state), state)


def test_ceiling_when_configured():
    system = _system(y_max=1.0)
    out = system.check_collisions(_state([0.0, 1.5, 0.0, 0.0, 5.0, 0.0]))
    np.testing.assert_array_equal(out, [0.0, 1.0, 0.0, 0.0, -5.0, 0.0])


def test_all_walls_open():
    system = _system(x_min=None, x_max=None, y_min=None, z_min=None, z_max=None)
    state = _state([-9.0, -9.0, 9.0, -1.0, -1.0, 1.0])
    np.testing.assert_array_equal(system.check_collisions(state), state)


def test_length_mismatch_raises():
    system = _system(2)
    with pytest.raises(ValueError, match="shape"):
        system.check_collisions(np.zeros(6))
