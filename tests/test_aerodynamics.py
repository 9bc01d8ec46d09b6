"""Tests for static aerodynamic properties."""
import math

import pytest

from rocketsim import aerodynamics as aero
from rocketsim import constants as C
from rocketsim.design import DEFAULT_DESIGN_PARAMS, default_design, with_changes


@pytest.fixture
def design():
    return default_design()


@pytest.fixture
def four_fin():
    return default_design(fin_count=4)


class TestAreas:
    def test_side_area_is_sum_of_parts(self, design):
        areas = aero.compute_projected_areas(design)
        body = 0.031 * 0.255
        assert areas['side_area'] == pytest.approx(
            body + areas['nose_area'] + areas['total_fin_area'])

    def test_nose_area_uses_shape_coefficient(self, design):
        areas = aero.compute_projected_areas(design)
        assert areas['nose_area'] == pytest.approx(2.0 / 3.0 * 0.031 * 0.057)

    def test_frontal_area(self, design):
        areas = aero.compute_projected_areas(design)
        expected = math.pi * 0.0155 ** 2 + 57.5 * 1.5 * 4 * 1e-7
        assert areas['frontal_area'] == pytest.approx(expected)

    def test_four_fin_trapezoid(self, four_fin):
        areas = aero.compute_projected_areas(four_fin)
        assert areas['fin_area'] == pytest.approx(0.0575 * (0.065 + 0.025) / 2.0)
        assert areas['total_fin_area'] == pytest.approx(2 * areas['fin_area'])

    def test_three_fins_project_smaller_than_four(self, design, four_fin):
        three = aero.compute_projected_areas(design)['fin_area']
        four = aero.compute_projected_areas(four_fin)['fin_area']
        assert 0.0 < three < four

    def test_angled_area(self, design):
        areas = aero.compute_projected_areas(design)
        assert areas['angled_area'] == pytest.approx(
            math.hypot(areas['frontal_area'], areas['side_area']))


def test_volumes(design):
    volumes = aero.compute_volumes(design)
    disc = math.pi * 0.0155 ** 2
    assert volumes['body_volume'] == pytest.approx(disc * 0.255)
    assert volumes['nose_volume'] == pytest.approx(2.0 / 3.0 * disc * 0.057)
    assert volumes['total_volume'] == pytest.approx(
        volumes['body_volume'] + volumes['nose_volume'])


class TestCenterOfPressure:
    def test_component_positions(self, design):
        cp = aero.compute_center_of_pressure(design)
        assert cp['nose_cp'] == pytest.approx(57.0 * 0.575)
        assert cp['body_cp'] == pytest.approx(57.0 + 127.5)

    def test_total_between_nose_and_fins(self, design):
        cp = aero.compute_center_of_pressure(design)
        assert cp['nose_cp'] < cp['center_of_pressure'] < cp['fin_cp']

    def test_fins_move_cp_aft(self, design):
        cp = aero.compute_center_of_pressure(design)
        assert cp['fore_body_cp'] < cp['center_of_pressure']
        assert cp['nose_cp'] < cp['fore_body_cp'] < cp['body_cp']

    def test_fin_cp_near_tail(self, design):
        cp = aero.compute_center_of_pressure(design)
        assert design.total_length - design.fin_base_width < cp['fin_cp']

    def test_nose_shape_changes_nose_cp(self):
        cone = aero.compute_center_of_pressure(default_design(nose_shape='cone'))
        assert cone['nose_cp'] == pytest.approx(57.0 * 0.666)


def test_aerodynamic_center_is_finite_and_on_airframe(design):
    ac = aero.compute_aerodynamic_center(design)
    assert math.isfinite(ac)
    assert 0.0 < ac < design.total_length + design.fin_sweep_length


def test_stability_cp_between_nose_and_tail(design):
    cp = aero.compute_stability_center_of_pressure(design)
    assert 0.0 < cp < design.total_length + design.fin_sweep_length


def test_static_margins(design):
    margins = aero.compute_static_margins(design)
    cp = aero.compute_center_of_pressure(design)['center_of_pressure']
    assert margins['standard'] == pytest.approx((cp - 150.0) / 31.0)


def test_moving_cg_forward_increases_margin(design):
    forward = with_changes(design, center_of_gravity=120)
    assert (aero.compute_static_margins(forward)['standard']
            > aero.compute_static_margins(design)['standard'])


class TestFinSpeeds:
    def test_divergence_within_bounds(self, design):
        speed = aero.compute_fin_divergence_speed(design)
        low, high = C.DIVERGENCE_SPEED_RANGE
        assert low <= speed <= high

    def test_flutter_clamped_to_upper_bound(self, design):
        assert aero.compute_fin_flutter_speed(design) == C.FLUTTER_SPEED_RANGE[1]

    def test_thin_soft_fins_flutter_earlier(self, design):
        soft = with_changes(design, fin_material='light_balsa', fin_thickness=0.5)
        assert aero.compute_fin_flutter_speed(soft) < aero.compute_fin_flutter_speed(design)

    def test_zero_tip_chord_gives_lower_bound(self, design):
        pointed = with_changes(design, fin_tip_width=0)
        assert aero.compute_fin_flutter_speed(pointed) == C.FLUTTER_SPEED_RANGE[0]
        assert aero.compute_fin_divergence_speed(pointed) == C.DIVERGENCE_SPEED_RANGE[0]

    def test_format_speed_value(self):
        assert aero.format_speed_value(300.0) == "300+ m/s"
        assert aero.format_speed_value(123.4) == "123 m/s"
        assert aero.format_speed_value(450.0, limit=400) == "400+ m/s"


class TestMomentOfInertia:
    def test_fin_mass(self, design):
        volume = (0.025 + 0.065) * 0.0575 * 0.5 * 0.0015
        assert aero.fin_mass(design) == pytest.approx(volume * 500.0)

    def test_positive(self, design):
        assert aero.compute_moment_of_inertia(design) > 0.0

    def test_grows_with_mass(self, design):
        heavy = with_changes(design, weight=100)
        assert (aero.compute_moment_of_inertia(heavy)
                > aero.compute_moment_of_inertia(design))

    def test_denser_fins_increase_inertia(self, design):
        light = with_changes(design, fin_material='light_balsa')
        assert (aero.compute_moment_of_inertia(light)
                < aero.compute_moment_of_inertia(design))

    def test_body_mass_floored(self, design):
        # Fins heavier than the whole rocket
        tiny = with_changes(design, weight=0.1)
        assert aero.compute_moment_of_inertia(tiny) > 0.0


class TestAggregate:
    def test_properties_consistent(self, design):
        props = aero.compute_aerodynamic_properties(design)
        cp = aero.compute_center_of_pressure(design)
        assert props.center_of_pressure == pytest.approx(cp['center_of_pressure'])
        assert props.aerodynamic_center == pytest.approx(aero.compute_aerodynamic_center(design))
        assert props.moment_of_inertia == pytest.approx(aero.compute_moment_of_inertia(design))
        assert props.fin_flutter_speed == aero.compute_fin_flutter_speed(design)

    def test_memoized_per_design(self, design):
        first = aero.compute_aerodynamic_properties(design)
        assert aero.compute_aerodynamic_properties(default_design()) is first
        aero.clear_property_cache()
        assert aero.compute_aerodynamic_properties(design) == first

    def test_mapping_input(self):
        props = aero.compute_aerodynamic_properties(dict(DEFAULT_DESIGN_PARAMS))
        assert props == aero.compute_aerodynamic_properties(default_design())

    def test_as_dict(self, design):
        data = aero.compute_aerodynamic_properties(design).as_dict()
        assert 'stability_static_margin' in data
        assert len(data) == 21


@pytest.mark.parametrize('bad', [None, 42, {'weight': 50}, {'nose_height': -1}])
def test_invalid_design_gives_zero_results(bad, caplog):
    assert aero.compute_aerodynamic_properties(bad) == aero.AerodynamicProperties.zero()
    assert aero.compute_projected_areas(bad)['side_area'] == 0.0
    assert aero.compute_volumes(bad)['total_volume'] == 0.0
    assert aero.compute_center_of_pressure(bad)['center_of_pressure'] == 0.0
    assert aero.compute_static_margins(bad) == {'standard': 0.0, 'stability': 0.0}
    assert aero.compute_moment_of_inertia(bad) == 0.0
    assert aero.compute_fin_divergence_speed(bad) == 0.0
    assert 'returning zero result' in caplog.text
