import numpy as np
import pytest

from rocketsim import integrators
from rocketsim.config import create_default_config, create_test_config
from rocketsim.state import SimulationState


def test_integrate_velocity():
    v = integrators.integrate_velocity(np.array([1.0, 2.0]), np.array([10.0, -5.0]), 0.02, 100.0)
    np.testing.assert_allclose(v, [1.2, 1.9])


def test_integrate_velocity_capped_keeps_direction():
    v = integrators.integrate_velocity(np.array([60.0, 80.0]), np.array([600.0, 800.0]),
                                       0.1, 100.0)
    assert np.linalg.norm(v) == pytest.approx(100.0)
    np.testing.assert_allclose(v, [60.0, 80.0])


def test_integrate_velocity_invalid_dt():
    with pytest.raises(ValueError):
        integrators.integrate_velocity(np.zeros(2), np.zeros(2), 0.0, 100.0)


class TestRailPosition:
    def test_vertical(self):
        r = integrators.rail_position(np.array([0.0, 0.2]), np.array([0.3, 5.0]), 0.0,
                                      4.0, True, 0.02, 0.65)
        np.testing.assert_allclose(r, [0.0, 0.3])

    def test_inclined_uses_previous_speed(self):
        omega = np.radians(10.0)
        r = integrators.rail_position(np.zeros(2), np.array([1.0, 5.0]), omega,
                                      5.0, False, 0.02, 0.65)
        np.testing.assert_allclose(r, [0.1 * np.sin(omega), 0.1 * np.cos(omega)])

    def test_capped_at_rail_length(self):
        omega = np.radians(20.0)
        start = 0.6 * np.array([np.sin(omega), np.cos(omega)])
        r = integrators.rail_position(start, np.array([0.0, 10.0]), omega,
                                      10.0, False, 0.02, 0.65)
        assert np.linalg.norm(r) == pytest.approx(0.65)


def test_clamp_to_ground():
    r, v = integrators.clamp_to_ground(np.array([1.0, -0.5]), np.array([1.0, -2.0]), 0.04, 0.1)
    np.testing.assert_allclose(r, [1.0, 0.0])
    np.testing.assert_allclose(v, [1.0, 0.0])
    r, v = integrators.clamp_to_ground(np.array([1.0, -0.5]), np.array([1.0, -2.0]), 3.0, 0.1)
    np.testing.assert_allclose(v, [1.0, -2.0])


class TestTranslationalStep:
    def test_free_flight(self):
        s = SimulationState(r=[0.0, 10.0], v=[1.0, 2.0], t=1.0, on_rail=False)
        integrators.translational_step(s, np.array([0.0, -10.0]), False, create_default_config())
        np.testing.assert_allclose(s.v, [1.0, 1.8])
        np.testing.assert_allclose(s.r, [0.02, 10.036])
        np.testing.assert_allclose(s.a, [0.0, -10.0])

    def test_pad_holds_rocket_during_grace(self):
        s = SimulationState(t=0.0)
        integrators.translational_step(s, np.array([0.0, -9.81]), True)
        np.testing.assert_allclose(s.r, [0.0, 0.0])
        np.testing.assert_allclose(s.v, [0.0, 0.0])

    def test_speed_cap_from_config(self):
        cfg = create_test_config(max_speed=5.0)
        s = SimulationState(v=[0.0, 4.9], on_rail=False, r=[0.0, 5.0], t=1.0)
        integrators.translational_step(s, np.array([0.0, 100.0]), False, cfg)
        assert s.speed == pytest.approx(5.0)
