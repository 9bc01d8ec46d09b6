"""
Model Rocket Flight Simulation - Aerodynamic Moments

Pitching moments about the center of gravity, clockwise positive.

Each moment is computed as an unsigned magnitude, then signed from the
position of the relevant center (AC, CP, fin CP, tail) relative to the CG
together with the sign of the disturbance (angle of attack or wind).
Inputs that could blow up a formula are capped, and a non-finite result is
reported as a zero MomentResult with a reason instead of propagating.

Lengths on the design are in mm; lever arms are converted to m here.
"""

import logging
import math
from typing import NamedTuple, Optional

from . import constants as C
from .config import SimulationConfig, create_default_config
from .design import RocketDesign

logger = logging.getLogger(__name__)

NON_FINITE = "non-finite"
ZERO_WIND = "zero-wind"
BELOW_SPEED = "below-speed"


class MomentResult(NamedTuple):
    """A moment value, or 0.0 with the reason it was forced to zero."""
    value: float
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def _finite(value: float, label: str) -> MomentResult:
    if math.isfinite(value):
        return MomentResult(value)
    logger.warning(f"Non-finite {label} moment ({value}); using 0")
    return MomentResult(0.0, NON_FINITE)


def _restoring_sign(center_mm: float, cg_mm: float, disturbance: float) -> float:
    """+1 when the center trails the CG against the disturbance, else -1."""
    if (center_mm >= cg_mm and disturbance < 0) or (center_mm < cg_mm and disturbance >= 0):
        return 1.0
    return -1.0


def _dynamic_pressure(speed: float) -> float:
    return 0.5 * C.RHO_AIR * min(speed * speed, C.MAX_VELOCITY_SQUARED)


def lift_moment(speed: float, angle_of_attack: float, side_area: float,
                aerodynamic_center: float, center_of_gravity: float) -> MomentResult:
    """
    Moment of the body lift acting at the aerodynamic center.

    Args:
        speed: Airspeed (m/s)
        angle_of_attack: Attitude minus flight-path angle (rad)
        side_area: Side projected area (m²)
        aerodynamic_center: AC from nose tip (mm)
        center_of_gravity: CG from nose tip (mm)

    Returns:
        MomentResult (N·m)
    """
    arm = C.mm_to_m(aerodynamic_center - center_of_gravity)
    lift_coefficient = C.LIFT_SLOPE * angle_of_attack
    magnitude = abs(lift_coefficient * _dynamic_pressure(speed) * side_area * arm)
    sign = _restoring_sign(aerodynamic_center, center_of_gravity, angle_of_attack)
    return _finite(sign * magnitude, "lift")


def drag_moment(speed: float, angle_of_attack: float, body_diameter: float,
                aerodynamic_center: float, center_of_gravity: float) -> MomentResult:
    """
    Moment of the axial drag increase with angle of attack.

    Args:
        speed: Airspeed (m/s)
        angle_of_attack: rad
        body_diameter: Reference diameter (m)
        aerodynamic_center: mm from nose tip
        center_of_gravity: mm from nose tip
    """
    arm = C.mm_to_m(aerodynamic_center - center_of_gravity)
    drag_coefficient = 0.01 * angle_of_attack ** 2 - 0.02 * angle_of_attack + 0.63
    reference_area = 3.14 * (body_diameter / 2.0) ** 2
    magnitude = abs(drag_coefficient * _dynamic_pressure(speed) * reference_area * arm)
    sign = _restoring_sign(aerodynamic_center, center_of_gravity, angle_of_attack)
    return _finite(sign * magnitude, "drag")


def wind_moment(wind_speed: float, omega: float, total_fin_area: float,
                body_diameter: float, body_length: float,
                center_of_pressure: float, center_of_gravity: float) -> MomentResult:
    """
    Moment of the crosswind load on fins and body, acting at the CP.

    Args:
        wind_speed: Effective wind (m/s), positive toward +x
        omega: Attitude angle (rad)
        total_fin_area: Fin area seen from the side (m²)
        body_diameter: m
        body_length: Nose plus body tube (m)
        center_of_pressure: mm from nose tip
        center_of_gravity: mm from nose tip
    """
    wind = max(-C.MAX_MOMENT_WIND, min(C.MAX_MOMENT_WIND, wind_speed))
    fin_load = C.FLAT_PLATE_CD * C.FIN_WIND_FACTOR * wind ** 2 * total_fin_area
    body_load = C.BODY_WIND_CD * 0.5 * C.RHO_AIR * wind ** 2 * body_diameter * body_length
    arm = C.mm_to_m(center_of_pressure - center_of_gravity)
    magnitude = abs((fin_load + body_load) * math.cos(omega) * arm)
    # Opposite orientation to the angle-of-attack moments
    sign = -_restoring_sign(center_of_pressure, center_of_gravity, wind_speed)
    return _finite(sign * magnitude, "wind")


def fin_moment(speed: float, angle_of_attack: float, design: RocketDesign,
               fin_cp: float) -> MomentResult:
    """
    Moment of the drag on fins and body leaning into the airflow.

    Args:
        speed: Airspeed (m/s)
        angle_of_attack: rad
        design: Rocket design (fin planform, body size, CG)
        fin_cp: Fin center of pressure from nose tip (mm)
    """
    cg = design.center_of_gravity
    fin_area = (C.mm_to_m(design.fin_base_width + design.fin_tip_width)
                * C.mm_to_m(design.fin_height) / 2.0)
    projection = C.SIN_60 if design.fin_count == 3 else 1.0
    lean_area = abs(projection * math.sin(angle_of_attack) * fin_area)
    total_lean_area = 2.0 * lean_area

    drag_coefficient = C.FIN_DRAG_SLOPE * angle_of_attack
    q = _dynamic_pressure(speed)

    length = design.total_length_m
    fin_arm = C.mm_to_m(abs(fin_cp - cg))
    body_arm = abs(length / 2.0 - C.mm_to_m(cg))
    body_area = design.body_diameter_m * length

    magnitude = abs(drag_coefficient * q * total_lean_area * fin_arm
                    + drag_coefficient * q * body_area * body_arm)
    sign = -_restoring_sign(fin_cp, cg, angle_of_attack)
    return _finite(sign * magnitude, "fin")


def thrust_moment(thrust: float, angle_of_attack: float, tail_position: float,
                  center_of_gravity: float) -> MomentResult:
    """
    Moment of a thrust line misaligned with the flight path.

    A non-zero magnitude is floored at 1e-5 N·m so that the angular
    acceleration derived from it does not underflow.

    Args:
        thrust: N
        angle_of_attack: rad
        tail_position: Nozzle position from nose tip (mm)
        center_of_gravity: mm from nose tip
    """
    arm = (tail_position - center_of_gravity) * 0.001
    magnitude = abs(thrust * math.sin(angle_of_attack) * math.cos(angle_of_attack) * arm)
    if 0.0 < magnitude < C.MIN_THRUST_MOMENT:
        magnitude = C.MIN_THRUST_MOMENT
    sign = _restoring_sign(tail_position, center_of_gravity, angle_of_attack)
    return _finite(sign * magnitude, "thrust")


class TorqueEvaluation(NamedTuple):
    """Outcome of one aerodynamic torque evaluation."""
    lift: MomentResult
    drag: MomentResult
    wind: MomentResult
    fin: MomentResult
    raw: float
    torque: float               # Raw torque clamped to the configured limit
    exceeded: bool              # Raw torque above the abort threshold
    reason: Optional[str] = None

    @property
    def components(self) -> dict:
        return {'lift': self.lift.value, 'drag': self.drag.value,
                'wind': self.wind.value, 'fin': self.fin.value}


def _forced_zero(reason: str) -> TorqueEvaluation:
    zero = MomentResult(0.0, reason)
    return TorqueEvaluation(zero, zero, zero, zero, raw=0.0, torque=0.0,
                            exceeded=False, reason=reason)


def compute_aerodynamic_torque(speed: float, omega: float, flight_angle: float,
                               wind_speed: float, design: RocketDesign, properties,
                               min_speed: float = 0.0,
                               config: SimulationConfig = None) -> TorqueEvaluation:
    """
    Sum the lift, drag, wind and fin moments into one torque.

    All components are forced to zero when the effective wind is below the
    zero-wind threshold, or when the airspeed does not exceed min_speed.
    A component that comes out non-finite contributes zero.

    Args:
        speed: Airspeed (m/s)
        omega: Attitude angle (rad)
        flight_angle: Flight-path angle from vertical (rad)
        wind_speed: Effective wind at the current height (m/s)
        design: Rocket design
        properties: AerodynamicProperties of the design
        min_speed: Airspeed at or below which no aerodynamic torque acts
        config: Simulation configuration (thresholds)

    Returns:
        TorqueEvaluation
    """
    if config is None:
        config = create_default_config()

    if abs(wind_speed) < config.zero_wind_threshold:
        return _forced_zero(ZERO_WIND)
    if speed <= min_speed:
        return _forced_zero(BELOW_SPEED)

    angle_of_attack = omega - flight_angle
    cg = design.center_of_gravity

    lift = lift_moment(speed, angle_of_attack, properties.side_area,
                       properties.aerodynamic_center, cg)
    drag = drag_moment(speed, angle_of_attack, design.body_diameter_m,
                       properties.aerodynamic_center, cg)
    wind = wind_moment(wind_speed, omega, properties.total_fin_area,
                       design.body_diameter_m, design.total_length_m,
                       properties.center_of_pressure, cg)
    fin = fin_moment(speed, angle_of_attack, design, properties.fin_cp)

    raw = lift.value + drag.value + wind.value + fin.value
    clamped = max(-config.torque_clamp, min(config.torque_clamp, raw))
    exceeded = abs(raw) > config.torque_abort_threshold

    reason = None
    if not all(m.ok for m in (lift, drag, wind, fin)):
        reason = NON_FINITE

    return TorqueEvaluation(lift, drag, wind, fin, raw=raw, torque=clamped,
                            exceeded=exceeded, reason=reason)
