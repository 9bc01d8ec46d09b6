"""
Unit tests for plot generation.

Runs one short flight and checks that every figure is written.
"""

import os

import numpy as np
import pytest

from rocketsim.config import create_test_config
from rocketsim.design import default_design, default_environment
from rocketsim.landing import run_simulation_with_landing
from rocketsim.plotting import FlightData, extract_flight_data, generate_all_plots


@pytest.fixture(scope="module")
def result():
    cfg = create_test_config(max_time=3.0)
    return run_simulation_with_landing(default_design(),
                                       default_environment(launch_angle=5.0, wind_speed=2.0),
                                       cfg)


def test_extract_flight_data(result):
    data = extract_flight_data(result)
    assert isinstance(data, FlightData)
    assert len(data.time) == len(result.samples)
    assert isinstance(data.omega_degrees, np.ndarray)


def test_extract_requires_samples(result):
    empty = type(result)(**{**result.__dict__, 'samples': []})
    with pytest.raises(ValueError):
        extract_flight_data(empty)


def test_generate_all_plots(result, tmp_path):
    out = tmp_path / "plots"
    paths = generate_all_plots(result, str(out))
    assert [os.path.basename(p) for p in paths] == [
        '01_trajectory.png', '02_height_speed.png', '03_attitude.png']
    for path in paths:
        assert os.path.getsize(path) > 0
