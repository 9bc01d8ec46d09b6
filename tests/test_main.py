import numpy as np
import pytest

from rocketsim import main
from rocketsim.config import create_test_config
from rocketsim.design import default_design, default_environment
from rocketsim.state import SimulationState


@pytest.fixture(scope="module")
def vertical_result():
    return main.run_simulation(default_design(), default_environment())


def test_vertical_flight_stays_on_axis(vertical_result):
    assert vertical_result.termination_reason in (main.LANDED, main.TIME_LIMIT)
    assert vertical_result.error is None
    assert np.all(vertical_result.column('x') == 0.0)
    assert vertical_result.max_distance == 0.0


def test_vertical_flight_reaches_plausible_apogee(vertical_result):
    assert 20.0 < vertical_result.max_height < 150.0
    assert 15.0 < vertical_result.max_speed < 80.0
    assert vertical_result.key_points.max_height.height == pytest.approx(
        vertical_result.max_height)


def test_samples_are_spaced_by_dt(vertical_result):
    times = vertical_result.column('time')
    assert times[0] == 0.0
    np.testing.assert_allclose(np.diff(times), vertical_result.config.dt)
    assert times[-1] < vertical_result.config.max_time
    assert vertical_result.steps == len(vertical_result.samples)


def test_key_points_follow_flight_order(vertical_result):
    kp = vertical_result.key_points
    assert kp.thrust_end.time == pytest.approx(0.7, abs=0.03)
    assert kp.parachute_ejection.time == pytest.approx(3.7, abs=0.03)
    assert kp.parachute_active.time == pytest.approx(4.7, abs=0.03)
    assert kp.thrust_end.time < kp.precursor_max_height.time
    assert kp.parachute_ejection.time < kp.parachute_active.time


def test_phase_sequence(vertical_result):
    phases = []
    for name in vertical_result.column('phase'):
        if not phases or phases[-1] != name:
            phases.append(name)
    assert phases[:2] == ['on_rail', 'powered_free']
    assert 'parachute_descending' in phases


def test_sample_at(vertical_result):
    first = vertical_result.sample_at(0.0)
    assert first is vertical_result.samples[0]
    assert vertical_result.sample_at(-1.0) is first
    assert vertical_result.sample_at(0.5).time == pytest.approx(0.5)
    assert vertical_result.sample_at(1e6) is vertical_result.samples[-1]


def test_column_unknown_field(vertical_result):
    with pytest.raises(KeyError):
        vertical_result.column('altitude')
    np.testing.assert_allclose(vertical_result.column('height'),
                               vertical_result.column('y'))


def test_summary_text(vertical_result):
    text = vertical_result.summary()
    assert 'FLIGHT SUMMARY' in text
    assert 'Max height' in text
    assert 'ERROR' not in text


def test_torque_abort_is_reported_not_raised():
    cfg = create_test_config(torque_abort_threshold=1e-6)
    env = default_environment(launch_angle=10.0, wind_speed=5.0)
    result = main.run_simulation(default_design(), env, cfg)

    assert result.termination_reason == main.TORQUE_ABORT
    assert result.is_error
    assert result.error.error_type == "torque_exceeded"
    assert abs(result.error.raw_torque) > cfg.torque_abort_threshold
    assert not result.stability.is_torque_stable_ok
    assert not result.verdict.is_safe
    assert result.samples
    assert result.samples[-1].time < result.error.time
    assert result.error.as_dict()['threshold'] == cfg.torque_abort_threshold
    assert 'ERROR' in result.summary()
    with pytest.raises(main.FlightError):
        result.raise_for_error()


def test_unstable_geometry_aborts_at_default_threshold():
    # Unswept fins with a forward CG in a strong headwind on the B6-4
    design = default_design(fin_sweep_length=0.0, center_of_gravity=50.0)
    env = default_environment(motor="B6-4", wind_speed=-8.0)
    result = main.run_simulation(design, env)

    assert result.termination_reason == main.TORQUE_ABORT
    assert abs(result.error.raw_torque) > result.config.torque_abort_threshold
    assert not result.stability.is_torque_stable_ok
    assert result.samples[-1].time < result.config.max_time


def test_finer_step_keeps_thrust_curve_timing():
    cfg = create_test_config(dt=0.01, max_time=2.0)
    result = main.run_simulation(default_design(), default_environment(), cfg)
    assert result.key_points.thrust_end.time == pytest.approx(0.7, abs=0.015)
    assert result.sample_at(0.2).time == pytest.approx(0.2)


class TestCheckTermination:
    def setup_method(self):
        self.cfg = create_test_config()

    def test_airborne(self):
        s = SimulationState(r=[0.0, 10.0])
        assert main.check_termination(s, 1.0, self.cfg) == (False, None)

    def test_ground_during_grace(self):
        s = SimulationState(r=[0.0, 0.0])
        assert main.check_termination(s, 0.04, self.cfg) == (False, None)

    def test_landed(self):
        s = SimulationState(r=[2.0, 0.0])
        assert main.check_termination(s, 5 * 0.02, self.cfg) == (True, main.LANDED)

    def test_time_limit(self):
        s = SimulationState(r=[0.0, 10.0])
        assert main.check_termination(s, 1000 * 0.02, self.cfg) == (True, main.TIME_LIMIT)


def test_short_time_cap():
    cfg = create_test_config(max_time=1.0)
    result = main.run_simulation(default_design(), default_environment(), cfg)
    assert result.termination_reason == main.TIME_LIMIT
    assert len(result.samples) == 50


@pytest.mark.slow
def test_mirror_symmetry():
    left = main.run_simulation(default_design(),
                               default_environment(launch_angle=-10.0, wind_speed=-3.0))
    right = main.run_simulation(default_design(),
                                default_environment(launch_angle=10.0, wind_speed=3.0))
    assert left.termination_reason == right.termination_reason
    np.testing.assert_allclose(left.column('x'), -right.column('x'), atol=1e-6)
    np.testing.assert_allclose(left.column('y'), right.column('y'), atol=1e-6)
    assert left.max_height == pytest.approx(right.max_height)
