import dataclasses

import pytest

from rocketsim import landing
from rocketsim.config import create_test_config
from rocketsim.design import DEFAULT_DESIGN_PARAMS, default_design, default_environment
from rocketsim.main import TORQUE_ABORT
from rocketsim.state import FlightSample


def _row(**values):
    row = {'time': 10.0, 'x': 2.0, 'y': 20.0, 'vx': 0.0, 'vy': -4.0,
           'parachute_ejected': True, 'parachute_active': True}
    row.update(values)
    return row


def test_default_prediction():
    p = landing.LandingPrediction()
    assert p.landing_x == 0.0
    assert p.total_flight_time == 0.0
    assert p.is_prediction
    assert set(p.as_dict()) == {'landing_x', 'landing_distance', 'time_to_landing',
                                'total_flight_time', 'is_prediction'}


def test_sample_on_ground_is_not_a_prediction():
    p = landing.predict_landing(default_design(), [_row(y=0.0, x=-3.0)], default_environment())
    assert not p.is_prediction
    assert p.landing_x == -3.0
    assert p.landing_distance == 3.0
    assert p.time_to_landing == 0.0
    assert p.total_flight_time == 10.0


@pytest.mark.parametrize('samples', [[], None, 'abc', (s for s in [_row()])])
def test_unusable_samples_give_default(samples):
    p = landing.predict_landing(default_design(), samples, default_environment())
    assert p == landing.LandingPrediction()


def test_invalid_design_gives_default():
    p = landing.predict_landing({'weight': -5.0}, [_row()], default_environment())
    assert p == landing.LandingPrediction()


def test_design_mapping_is_accepted():
    p = landing.predict_landing(dict(DEFAULT_DESIGN_PARAMS), [_row()], default_environment())
    assert p.is_prediction


def test_parachute_descent():
    p = landing.predict_landing(default_design(), [_row(vx=1.0)], default_environment())
    assert p.is_prediction
    # φ300 canopy on a 50 g rocket descends at roughly 4 m/s
    assert 3.0 < p.time_to_landing < 8.0
    assert p.total_flight_time == pytest.approx(10.0 + p.time_to_landing)
    assert p.landing_x > 2.0
    assert p.landing_distance == pytest.approx(abs(p.landing_x))


def test_descent_drifts_with_wind():
    calm = landing.predict_landing(default_design(), [_row()], default_environment())
    windy = landing.predict_landing(default_design(), [_row()],
                                    default_environment(wind_speed=4.0))
    assert windy.landing_x != pytest.approx(calm.landing_x)


def test_ballistic_descent_is_faster():
    chute = landing.predict_landing(default_design(), [_row(y=30.0)], default_environment())
    ballistic = landing.predict_landing(
        default_design(),
        [_row(y=30.0, vy=-2.0, parachute_active=False, parachute_ejected=False)],
        default_environment())
    assert ballistic.is_prediction
    assert ballistic.time_to_landing < chute.time_to_landing


def test_flight_samples_are_accepted():
    sample = FlightSample(**{f.name: 0.0 for f in dataclasses.fields(FlightSample)
                             if f.name not in ('phase',)}, phase='coast_free')
    sample = dataclasses.replace(sample, y=15.0, vy=-3.0, time=4.0)
    p = landing.predict_landing(default_design(), [sample], default_environment())
    assert p.is_prediction
    assert p.total_flight_time > 4.0


def test_run_with_landing_records_key_point():
    result = landing.run_simulation_with_landing(default_design(), default_environment())
    assert result.landing is not None
    point = result.key_points.predicted_landing
    assert point is not None
    assert point.x == result.landing.landing_x
    assert result.total_flight_time == result.landing.total_flight_time
    assert result.total_flight_time >= result.flight_time


def test_aborted_run_gets_no_landing():
    cfg = create_test_config(torque_abort_threshold=1e-6)
    result = landing.run_simulation_with_landing(
        default_design(), default_environment(launch_angle=10.0, wind_speed=5.0), cfg)
    assert result.termination_reason == TORQUE_ABORT
    assert result.landing is None
    assert result.key_points.predicted_landing is None
