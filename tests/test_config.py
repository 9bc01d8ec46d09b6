"""Tests for config module."""
import dataclasses

import pytest
from rocketsim import config
from rocketsim import constants as C


def test_simulation_config_defaults():
    """Test that default config uses constants values."""
    cfg = config.SimulationConfig()
    assert cfg.dt == C.DT
    assert cfg.max_time == C.MAX_TIME
    assert cfg.angle_steps_per_update == C.ANGLE_STEPS_PER_UPDATE
    assert cfg.torque_abort_threshold == C.TORQUE_ABORT_THRESHOLD
    assert cfg.physical_attitude_control is True
    assert cfg.enhanced_attitude_control is False
    assert cfg.wind_angle_limitation is False


def test_rotation_dt_tracks_dt():
    cfg = config.SimulationConfig(dt=0.01, angle_steps_per_update=5)
    assert cfg.rotation_dt == pytest.approx(0.05)


def test_simulation_config_frozen():
    """Test that config is immutable (frozen)."""
    cfg = config.SimulationConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.dt = 0.5


@pytest.mark.parametrize('field, value', [
    ('dt', 0.0),
    ('dt', -0.01),
    ('max_time', 0.0),
    ('landing_dt', 0.0),
    ('angle_steps_per_update', 0),
    ('angle_steps_per_update', 2.5),
])
def test_invalid_timing_rejected(field, value):
    with pytest.raises(ValueError):
        config.SimulationConfig(**{field: value})


def test_create_default_config():
    cfg = config.create_default_config()
    assert isinstance(cfg, config.SimulationConfig)
    assert cfg == config.SimulationConfig()


def test_create_test_config_overrides():
    cfg = config.create_test_config(max_time=5.0, enhanced_attitude_control=True)
    assert cfg.max_time == 5.0
    assert cfg.enhanced_attitude_control is True
    assert cfg.dt == C.DT
