"""
Model Rocket Flight Simulation - Landing Prediction

Extrapolates the descent from the last recorded sample down to the ground
when the main run ends airborne, using the same phase force models as the
flight integrator on a coarser step.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config
from .design import Environment, RocketDesign, coerce_design
from .forces import (
    compute_acceleration,
    compute_ballistic_force,
    compute_deploying_force,
    compute_parachute_force,
)
from .phases import KeyPoint
from .validation import DesignValidationError
from .wind import wind_speed_at_height

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LandingPrediction:
    """Where and when the rocket reaches the ground."""
    landing_x: float = 0.0
    landing_distance: float = 0.0
    time_to_landing: float = 0.0     # After the last recorded sample (s)
    total_flight_time: float = 0.0
    is_prediction: bool = True       # False when the run itself ended on the ground

    def as_dict(self) -> dict:
        return {
            'landing_x': self.landing_x,
            'landing_distance': self.landing_distance,
            'time_to_landing': self.time_to_landing,
            'total_flight_time': self.total_flight_time,
            'is_prediction': self.is_prediction,
        }


def _value(sample: Any, name: str, default=0.0):
    """Read a field from a FlightSample or a mapping row."""
    if isinstance(sample, Mapping):
        value = sample.get(name, default)
    else:
        value = getattr(sample, name, default)
    return default if value is None else value


def predict_landing(design: Any, samples: Any, environment: Environment,
                    config: SimulationConfig = None) -> LandingPrediction:
    """
    Predict the landing point from the last sample of a flight.

    If the last sample is already on the ground the prediction is that
    sample's position with zero remaining time. Otherwise the descent is
    integrated with explicit Euler steps of config.landing_dt until the
    height reaches zero or the time budget runs out.

    Args:
        design: RocketDesign or a mapping accepted by build_design
        samples: Sequence of FlightSample (or mappings with the same fields)
        environment: Launch environment (wind and parachute)
        config: Simulation configuration

    Returns:
        LandingPrediction. Unusable inputs give the default all-zero
        prediction.
    """
    config = config or create_default_config()

    if not isinstance(samples, Sequence) or isinstance(samples, (str, bytes)) or not samples:
        logger.warning("Landing prediction needs a non-empty sample sequence; using default")
        return LandingPrediction()
    try:
        design = coerce_design(design)
    except DesignValidationError as exc:
        logger.warning(f"Landing prediction skipped, invalid design: {exc}")
        return LandingPrediction()

    last = samples[-1]
    last_time = float(_value(last, 'time'))
    height = float(_value(last, 'y'))
    x = float(_value(last, 'x'))

    if height <= 0.0:
        return LandingPrediction(landing_x=x, landing_distance=abs(x), time_to_landing=0.0,
                                 total_flight_time=last_time, is_prediction=False)

    parachute_active = bool(_value(last, 'parachute_active', False))
    parachute_ejected = bool(_value(last, 'parachute_ejected', False))
    vy_last = float(_value(last, 'vy'))

    terminal = abs(vy_last) if parachute_active and vy_last != 0.0 else C.LANDING_TERMINAL_VELOCITY
    if terminal <= C.LANDING_MIN_TERMINAL_VELOCITY:
        terminal = C.LANDING_TERMINAL_VELOCITY

    mass = design.mass_kg
    dt = config.landing_dt
    budget = C.LANDING_TIME_BUDGET_FACTOR * height / terminal
    r = np.array([x, height])
    v = np.array([float(_value(last, 'vx')), vy_last if vy_last != 0.0 else -terminal])
    elapsed = 0.0

    while r[1] > 0.0 and elapsed < budget:
        wind = wind_speed_at_height(environment.wind_speed, r[1], environment.wind_profile)
        if parachute_active:
            forces = compute_parachute_force(v, mass, wind, environment.parachute)
        elif parachute_ejected:
            forces = compute_deploying_force(v, mass, wind, design)
        else:
            forces = compute_ballistic_force(v, mass, wind, design)

        v = v + compute_acceleration(forces['total'], mass) * dt
        if parachute_active and v[1] < -terminal:
            v[1] = -terminal
        r = r + v * dt
        elapsed += dt

    if r[1] > 0.0:
        # Budget exhausted: finish the remaining height at the descent rate.
        logger.warning(f"Landing integration stopped at h={r[1]:.2f}m after {elapsed:.2f}s")
        elapsed += r[1] / terminal

    landing_x = float(r[0])
    prediction = LandingPrediction(
        landing_x=landing_x,
        landing_distance=abs(landing_x),
        time_to_landing=elapsed,
        total_flight_time=last_time + elapsed,
        is_prediction=True,
    )
    logger.info(f"Predicted landing: x={landing_x:.2f}m, "
                f"{elapsed:.2f}s after t={last_time:.2f}s")
    return prediction


def attach_landing(result, config: SimulationConfig = None):
    """
    Attach a landing prediction to a FlightResult.

    Aborted runs are returned unchanged.

    Returns:
        The same FlightResult, with landing and the predicted_landing key
        point filled in
    """
    if result.is_error:
        logger.info("Run aborted; no landing prediction")
        return result
    config = config or result.config
    landing = predict_landing(result.design, result.samples, result.environment, config)
    result.landing = landing
    result.key_points.record('predicted_landing', KeyPoint(
        time=landing.total_flight_time, height=0.0, speed=0.0, x=landing.landing_x))
    return result


def run_simulation_with_landing(design: RocketDesign, environment: Environment,
                                config: Optional[SimulationConfig] = None):
    """Run one flight and attach its landing prediction."""
    from .main import run_simulation

    return attach_landing(run_simulation(design, environment, config), config)
