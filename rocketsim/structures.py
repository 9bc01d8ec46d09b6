"""
Model Rocket Flight Simulation - Fin Structural Loads

Cantilever bending of the fins under dynamic pressure, and the
pass/fail verdict of a flight against the critical fin speeds.
"""

import math
from dataclasses import dataclass

from . import constants as C
from .design import RocketDesign


def compute_fin_deflection(velocity: float, design: RocketDesign) -> float:
    """
    Tip deflection of one fin under flat-plate wind pressure.

    The fin is modeled as a cantilever of rectangular cross-section with a
    uniformly distributed load, corrected for sweep (cos Λ) and taper.

    Args:
        velocity: Airspeed (m/s)
        design: Rocket design

    Returns:
        Deflection (mm), saturated at 15 mm
    """
    if abs(velocity) < C.SMALL_VELOCITY_TOL:
        return 0.0
    speed = min(abs(velocity), C.FIN_DEFLECTION_MAX_SPEED)

    fin_h = C.mm_to_m(design.fin_height)
    base = C.mm_to_m(design.fin_base_width)
    tip = C.mm_to_m(design.fin_tip_width)
    sweep = C.mm_to_m(design.fin_sweep_length)
    thickness = C.mm_to_m(design.fin_thickness)

    taper = (base - tip) / fin_h
    taper = max(-C.FIN_TAPER_LIMIT, min(C.FIN_TAPER_LIMIT, taper))
    sweep_angle = math.atan((sweep + 0.5 * tip - 0.5 * base) * math.pi / fin_h)

    fin_area = (base + tip) * fin_h / 2.0
    load = 0.5 * C.RHO_AIR * speed ** 2 * C.FLAT_PLATE_CD * fin_area
    load_per_length = load / max(0.001, fin_h)

    second_moment = (base + tip) * thickness ** 3 / 24.0
    stiffness = 8.0 * design.fin_material.youngs_modulus * second_moment

    deflection = (load_per_length * fin_h ** 4 * math.cos(sweep_angle)
                  / stiffness / (1.0 - taper)) * 1000.0

    if math.isnan(deflection) or abs(deflection) > C.FIN_DEFLECTION_CAP_MM:
        return C.FIN_DEFLECTION_CAP_MM
    if abs(deflection) < C.FIN_DEFLECTION_MIN_MM:
        return deflection
    return max(C.FIN_DEFLECTION_MIN_MM, abs(deflection))


def format_fin_deflection(deflection_mm: float) -> str:
    """Display form of a deflection: "15mm+" once saturated."""
    if deflection_mm >= C.FIN_DEFLECTION_CAP_MM:
        return f"{C.FIN_DEFLECTION_CAP_MM:g}mm+"
    return f"{deflection_mm:.2f}mm"


@dataclass(frozen=True)
class FlightVerdict:
    """Structural and attitude verdicts of one flight."""
    max_speed: float
    divergence_speed: float
    flutter_speed: float
    max_fin_deflection: float
    deflection_ratio: float      # % of fin height
    divergence_ok: bool
    flutter_ok: bool
    deflection_ok: bool
    angle_change_ok: bool = True
    absolute_angle_ok: bool = True
    torque_ok: bool = True

    @property
    def structure_ok(self) -> bool:
        return self.divergence_ok and self.flutter_ok and self.deflection_ok

    @property
    def attitude_ok(self) -> bool:
        return self.angle_change_ok and self.absolute_angle_ok and self.torque_ok

    @property
    def is_safe(self) -> bool:
        return self.structure_ok and self.attitude_ok


def evaluate_flight(design: RocketDesign, properties, max_speed: float,
                    max_fin_deflection: float, stability=None) -> FlightVerdict:
    """
    Compare observed maxima with the critical fin speeds and deflection limit.

    Args:
        design: Rocket design
        properties: AerodynamicProperties of the design
        max_speed: Highest speed reached (m/s)
        max_fin_deflection: Highest fin deflection (mm)
        stability: StabilityRecord, if attitude verdicts should be included

    Returns:
        FlightVerdict
    """
    ratio = max_fin_deflection / design.fin_height * 100.0
    verdict = dict(
        max_speed=max_speed,
        divergence_speed=properties.fin_divergence_speed,
        flutter_speed=properties.fin_flutter_speed,
        max_fin_deflection=max_fin_deflection,
        deflection_ratio=ratio,
        divergence_ok=max_speed < properties.fin_divergence_speed,
        flutter_ok=max_speed < properties.fin_flutter_speed,
        deflection_ok=ratio <= C.DEFLECTION_RATIO_LIMIT,
    )
    if stability is not None:
        verdict.update(
            angle_change_ok=stability.is_angle_change_ok,
            absolute_angle_ok=stability.is_absolute_angle_ok,
            torque_ok=stability.is_torque_stable_ok,
        )
    return FlightVerdict(**verdict)
