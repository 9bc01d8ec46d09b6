"""
Model Rocket Flight Simulation - Force Models

This module implements the phase-specific force models:
- Rail (thrust along the rail, crosswind)
- Powered and coasting free flight (thrust, axial drag, crosswind)
- Parachute deploying and descending
- Ballistic descent used by the landing predictor

Forces are 2-D vectors [Fx, Fy] in N, x horizontal, y up. Velocities
passed in are the values at the start of the step.
"""

import logging
import math

import numpy as np

from . import constants as C
from .design import Parachute, RocketDesign
from .types import ForceBreakdown

logger = logging.getLogger(__name__)

RAIL = "rail"
POWERED = "powered"
COAST = "coast"
DEPLOYING = "parachute_deploying"
DESCENDING = "parachute_descending"
BALLISTIC = "ballistic"


def _breakdown(fx: float, fy: float, model: str, thrust: float = 0.0,
               body_drag: float = 0.0, crosswind: float = 0.0) -> ForceBreakdown:
    return ForceBreakdown(
        total=np.array([fx, fy], dtype=np.float64),
        thrust=thrust,
        body_drag=body_drag,
        crosswind_drag=crosswind,
        model=model,
    )


# =============================================================================
# DRAG TERMS
# =============================================================================

def compute_body_drag_coefficient(design: RocketDesign) -> float:
    """
    Axial drag coefficient from nose fineness.

    Quadratic in the nose length / diameter ratio, anchored on the nose
    shape's base coefficient.
    """
    ratio = C.mm_to_m(design.nose_height) / design.body_diameter_m
    nose_cd = design.nose_shape.drag_coefficient
    alpha = (0.9 - nose_cd) / 9.0
    return alpha * ratio ** 2 - 6.0 * alpha * ratio + (nose_cd + 9.0 * alpha)


def compute_body_drag(speed: float, design: RocketDesign) -> float:
    """Axial drag magnitude (N) on body disc plus fin edges."""
    area = (math.pi * (design.body_diameter_m / 2.0) ** 2
            + C.mm_to_m(design.fin_height) * C.mm_to_m(design.fin_thickness) * 4)
    return 0.5 * compute_body_drag_coefficient(design) * C.RHO_AIR * speed ** 2 * area


def compute_crosswind_drag(wind_speed: float, area: float,
                           drag_coefficient: float = C.CROSSWIND_CD) -> float:
    """Signed crosswind drag 0.5·Cd·ρ·|w|·w·S (N)."""
    return 0.5 * drag_coefficient * C.RHO_AIR * abs(wind_speed) * wind_speed * area


def _side_area(design: RocketDesign) -> float:
    return design.body_diameter_m * design.total_length_m


# =============================================================================
# FLIGHT PHASES
# =============================================================================

def compute_rail_force(thrust: float, omega: float, vertical: bool, mass: float,
                       wind_speed: float, design: RocketDesign) -> ForceBreakdown:
    """
    Force while guided by the launch rail.

    Thrust acts along the rail; a vertical rail takes the full thrust
    vertically regardless of the attitude offset.

    Args:
        thrust: N
        omega: Attitude (rad), fixed by the rail
        vertical: True for a 0° launch angle
        mass: kg
        wind_speed: Effective wind (m/s)
        design: Rocket design
    """
    crosswind = compute_crosswind_drag(wind_speed, _side_area(design))
    weight = mass * C.G0
    if vertical:
        fx = -crosswind
        fy = thrust - weight
    else:
        fx = thrust * math.sin(omega) - crosswind
        fy = thrust * math.cos(omega) - weight
    return _breakdown(fx, fy, RAIL, thrust=thrust, crosswind=crosswind)


def compute_powered_force(thrust: float, omega: float, v: np.ndarray, mass: float,
                          wind_speed: float, design: RocketDesign) -> ForceBreakdown:
    """
    Force in powered free flight.

    Thrust along the attitude, axial drag against the flight path, and
    crosswind drag opposing the wind.
    """
    speed = float(np.linalg.norm(v))
    crosswind = compute_crosswind_drag(wind_speed, _side_area(design))
    fx = thrust * math.sin(omega) - crosswind
    fy = thrust * math.cos(omega) - mass * C.G0

    drag = 0.0
    if speed > C.SMALL_VELOCITY_TOL:
        drag = compute_body_drag(speed, design)
        fx -= drag * v[0] / speed
        fy -= drag * v[1] / speed

    return _breakdown(fx, fy, POWERED, thrust=thrust, body_drag=drag, crosswind=crosswind)


def compute_coast_force(v: np.ndarray, mass: float, wind_speed: float,
                        design: RocketDesign) -> ForceBreakdown:
    """
    Force in unpowered free flight.

    The crosswind term enters with the opposite sign to the powered model.
    """
    speed = float(np.linalg.norm(v))
    crosswind = compute_crosswind_drag(wind_speed, _side_area(design))
    fx = crosswind
    fy = -mass * C.G0

    drag = 0.0
    if speed > C.SMALL_VELOCITY_TOL:
        drag = compute_body_drag(speed, design)
        fx -= drag * v[0] / speed
        fy -= drag * v[1] / speed

    return _breakdown(fx, fy, COAST, body_drag=drag, crosswind=crosswind)


def compute_deploying_force(v: np.ndarray, mass: float, wind_speed: float,
                            design: RocketDesign) -> ForceBreakdown:
    """
    Force while the canopy opens: gravity, light linear drag and half the
    crosswind load on half the body side area.
    """
    speed = float(np.linalg.norm(v))
    fx = 0.0
    fy = -mass * C.G0
    if speed > C.SMALL_VELOCITY_TOL:
        fx = -C.DEPLOYING_LINEAR_DRAG * v[0]
        fy -= C.DEPLOYING_LINEAR_DRAG * v[1]

    crosswind = compute_crosswind_drag(wind_speed, _side_area(design) * 0.5)
    fx -= crosswind * 0.5
    return _breakdown(fx, fy, DEPLOYING, crosswind=crosswind)


def compute_parachute_force(v: np.ndarray, mass: float, wind_speed: float,
                            parachute: Parachute) -> ForceBreakdown:
    """
    Force under a fully open canopy: quadratic drag against the velocity,
    crosswind on the canopy, and gravity.
    """
    speed = float(np.linalg.norm(v))
    diameter = parachute.diameter_m
    canopy_area = math.pi * (diameter / 2.0) ** 2
    drag = 0.5 * C.PARACHUTE_CD * C.RHO_AIR * speed ** 2 * canopy_area

    fx = 0.0
    fy = 0.0
    if speed > C.SMALL_VELOCITY_TOL:
        fx = -drag * v[0] / speed
        fy = -drag * v[1] / speed

    crosswind = compute_crosswind_drag(wind_speed, diameter ** 2 * C.PARACHUTE_AREA_FACTOR)
    fx -= crosswind
    fy -= mass * C.G0
    return _breakdown(fx, fy, DESCENDING, body_drag=drag, crosswind=crosswind)


def compute_ballistic_force(v: np.ndarray, mass: float, wind_speed: float,
                            design: RocketDesign) -> ForceBreakdown:
    """
    Coarse descent model without a canopy, used by the landing predictor:
    gravity, light linear drag and a reduced crosswind load.
    """
    speed = float(np.linalg.norm(v))
    fx = 0.0
    fy = -mass * C.G0
    if speed > C.SMALL_VELOCITY_TOL:
        fx = -0.05 * v[0]
        fy -= 0.05 * v[1]

    crosswind = compute_crosswind_drag(wind_speed, _side_area(design) * 0.3,
                                       drag_coefficient=0.1)
    fx -= crosswind * 0.2
    return _breakdown(fx, fy, BALLISTIC, crosswind=crosswind)


# =============================================================================
# ACCELERATION
# =============================================================================

def compute_acceleration(force: np.ndarray, mass: float) -> np.ndarray:
    """
    Translational acceleration a = F / m.

    A vanishing mass yields free fall instead of a division blow-up.
    """
    if abs(mass) < C.MIN_MASS:
        logger.warning(f"Mass too small ({mass} kg); using free-fall acceleration")
        return np.array([0.0, -C.G0])
    return np.asarray(force, dtype=np.float64) / mass
