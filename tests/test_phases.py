import numpy as np
import pytest

from rocketsim import constants as C
from rocketsim.config import create_default_config
from rocketsim.design import get_motor
from rocketsim.phases import FlightPhase, KeyPoint, KeyPoints, PhaseManager
from rocketsim.state import SimulationState


@pytest.fixture
def manager():
    return PhaseManager(get_motor('A8-3'), create_default_config())


def test_timeline(manager):
    assert manager.burn_time == pytest.approx(0.7)
    assert manager.ejection_time == pytest.approx(3.7)
    assert manager.active_time == pytest.approx(4.7)


def test_phase_order():
    phases = list(FlightPhase)
    assert [p.order for p in phases] == sorted(p.order for p in phases)
    assert FlightPhase.COAST_FREE.is_free_flight
    assert FlightPhase.PARACHUTE_DEPLOYING.is_parachute
    assert not FlightPhase.ON_RAIL.is_free_flight


class TestKeyPoints:
    def test_first_write_wins(self):
        points = KeyPoints()
        assert points.record('max_height', KeyPoint(3.0, 50.0, 0.0))
        assert not points.record('max_height', KeyPoint(4.0, 60.0, 0.0))
        assert points.max_height.height == 50.0

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            KeyPoints().record('apogee', KeyPoint(0.0, 0.0, 0.0))

    def test_as_dict(self):
        data = KeyPoints().as_dict()
        assert set(data) == set(KeyPoints.names())
        assert 'predicted_landing' in data


class TestRail:
    def test_leaves_rail_at_rail_length(self, manager):
        s = SimulationState(r=[0.0, 0.64], t=0.3)
        assert manager.update_rail(s)
        s.r = np.array([0.0, 0.65])
        assert not manager.update_rail(s)
        assert manager.rail_exit_time == 0.3

    def test_never_reenters(self, manager):
        s = SimulationState(r=[0.0, 1.0])
        manager.update_rail(s)
        s.r = np.array([0.0, 0.1])
        assert not manager.update_rail(s)


class TestParachute:
    def test_ejection_and_progress(self, manager):
        points = KeyPoints()
        s = SimulationState(r=[0.0, 40.0], v=[0.0, -2.0], t=3.71)
        assert not manager.update_parachute(s, points)
        assert s.parachute_ejected
        assert points.parachute_ejection.time == 3.71
        s.t = 4.2
        manager.update_parachute(s, points)
        assert s.deployment_progress == pytest.approx(0.5)

    def test_opening_shock(self, manager):
        points = KeyPoints()
        s = SimulationState(r=[0.0, 40.0], v=[3.0, -10.0], t=3.71)
        manager.update_parachute(s, points)
        s.t = 4.71
        assert manager.update_parachute(s, points)
        assert s.parachute_active
        assert s.deployment_progress == 1.0
        np.testing.assert_allclose(s.v, [0.3, -1.0])
        assert points.parachute_active.speed == pytest.approx(-1.0)

    def test_shock_applied_once(self, manager):
        points = KeyPoints()
        s = SimulationState(v=[0.0, -10.0], t=4.71)
        manager.update_parachute(s, points)
        s.t = 4.73
        assert not manager.update_parachute(s, points)
        np.testing.assert_allclose(s.v, [0.0, -1.0])


class TestPhaseResolution:
    def test_sequence(self, manager):
        s = SimulationState()
        assert manager.update(s) is FlightPhase.ON_RAIL
        s.on_rail = False
        s.t = 0.3
        assert manager.update(s) is FlightPhase.POWERED_FREE
        s.t = 1.0
        assert manager.update(s) is FlightPhase.COAST_FREE
        s.parachute_ejected = True
        assert manager.update(s) is FlightPhase.PARACHUTE_DEPLOYING
        s.parachute_active = True
        assert manager.update(s) is FlightPhase.PARACHUTE_DESCENDING

    def test_never_moves_backwards(self, manager):
        s = SimulationState(on_rail=False, t=1.0)
        assert manager.update(s) is FlightPhase.COAST_FREE
        s.t = 0.1
        assert manager.update(s) is FlightPhase.COAST_FREE
        assert manager.get_phase() is FlightPhase.COAST_FREE

    def test_burnout_after_rail_goes_straight_to_coast(self):
        manager = PhaseManager(get_motor('1/2A6-2'))
        s = SimulationState(on_rail=False, t=manager.burn_time + C.DT)
        assert manager.update(s) is FlightPhase.COAST_FREE
