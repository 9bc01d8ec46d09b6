import numpy as np
import pytest

from rocketsim import constants as C
from rocketsim import forces
from rocketsim.design import default_design, get_parachute


@pytest.fixture
def design():
    return default_design()


def test_body_drag_coefficient_anchor(design):
    # At a fineness ratio of 3 the quadratic reduces to the shape coefficient
    d = default_design(nose_height=93.0)
    assert forces.compute_body_drag_coefficient(d) == pytest.approx(
        d.nose_shape.drag_coefficient)


def test_body_drag_scales_with_speed_squared(design):
    assert forces.compute_body_drag(0.0, design) == 0.0
    assert forces.compute_body_drag(20.0, design) == pytest.approx(
        4.0 * forces.compute_body_drag(10.0, design))


def test_crosswind_drag_is_signed():
    plus = forces.compute_crosswind_drag(4.0, 0.01)
    assert plus == pytest.approx(0.5 * 0.25 * 1.225 * 16.0 * 0.01)
    assert forces.compute_crosswind_drag(-4.0, 0.01) == pytest.approx(-plus)


class TestRail:
    def test_vertical_rail_ignores_attitude(self, design):
        f = forces.compute_rail_force(5.0, 0.01, True, 0.05, 0.0, design)
        np.testing.assert_allclose(f['total'], [0.0, 5.0 - 0.05 * C.G0], atol=1e-12)
        assert f['model'] == forces.RAIL

    def test_inclined_rail_thrust_along_rail(self, design):
        f = forces.compute_rail_force(5.0, np.radians(10.0), False, 0.05, 0.0, design)
        expected = [5.0 * np.sin(np.radians(10.0)),
                    5.0 * np.cos(np.radians(10.0)) - 0.05 * C.G0]
        np.testing.assert_allclose(f['total'], expected)

    def test_crosswind_pushes_against_wind_sign(self, design):
        f = forces.compute_rail_force(5.0, 0.0, True, 0.05, 3.0, design)
        assert f['total'][0] < 0.0
        assert f['crosswind_drag'] > 0.0


class TestFreeFlight:
    def test_powered_drag_opposes_velocity(self, design):
        f = forces.compute_powered_force(0.0, 0.0, np.array([0.0, 30.0]), 0.05, 0.0, design)
        drag = forces.compute_body_drag(30.0, design)
        np.testing.assert_allclose(f['total'], [0.0, -drag - 0.05 * C.G0], atol=1e-12)
        assert f['body_drag'] == pytest.approx(drag)

    def test_powered_at_rest_has_no_drag(self, design):
        f = forces.compute_powered_force(4.0, 0.0, np.zeros(2), 0.05, 0.0, design)
        assert f['body_drag'] == 0.0
        assert f['total'][1] == pytest.approx(4.0 - 0.05 * C.G0)

    def test_straight_descent_has_no_horizontal_force(self, design):
        v = np.array([0.0, -10.0])
        assert forces.compute_coast_force(v, 0.05, 0.0, design)["total"][0] == 0.0
        assert forces.compute_powered_force(2.0, 0.0, v, 0.05, 0.0, design)["total"][0] == 0.0

    def test_coast_crosswind_sign_opposite_to_powered(self, design):
        v = np.array([0.0, 10.0])
        powered = forces.compute_powered_force(0.0, 0.0, v, 0.05, 3.0, design)
        coast = forces.compute_coast_force(v, 0.05, 3.0, design)
        assert powered['total'][0] == pytest.approx(-coast['total'][0])
        np.testing.assert_allclose(powered['total'][1], coast['total'][1])


class TestParachute:
    def test_deploying_linear_drag(self, design):
        f = forces.compute_deploying_force(np.array([2.0, -10.0]), 0.05, 0.0, design)
        np.testing.assert_allclose(f['total'], [-0.2, -0.05 * C.G0 + 1.0])

    def test_canopy_drag_and_gravity(self, design):
        chute = get_parachute('φ300')
        f = forces.compute_parachute_force(np.array([0.0, -4.0]), 0.05, 0.0, chute)
        area = np.pi * 0.15 ** 2
        drag = 0.5 * C.PARACHUTE_CD * C.RHO_AIR * 16.0 * area
        np.testing.assert_allclose(f['total'], [0.0, drag - 0.05 * C.G0], atol=1e-12)

    def test_terminal_velocity_balances(self):
        chute = get_parachute('φ600')
        area = np.pi * 0.3 ** 2
        mass = 0.05
        terminal = np.sqrt(2 * mass * C.G0 / (C.PARACHUTE_CD * C.RHO_AIR * area))
        f = forces.compute_parachute_force(np.array([0.0, -terminal]), mass, 0.0, chute)
        assert f['total'][1] == pytest.approx(0.0, abs=1e-12)

    def test_ballistic_includes_gravity_once(self, design):
        f = forces.compute_ballistic_force(np.zeros(2), 0.05, 0.0, design)
        np.testing.assert_allclose(f['total'], [0.0, -0.05 * C.G0])


def test_acceleration():
    np.testing.assert_allclose(forces.compute_acceleration(np.array([1.0, 2.0]), 0.5),
                               [2.0, 4.0])


def test_acceleration_tiny_mass_falls_freely(caplog):
    a = forces.compute_acceleration(np.array([1.0, 2.0]), 0.0)
    np.testing.assert_allclose(a, [0.0, -C.G0])
    assert 'Mass too small' in caplog.text
