"""
Model Rocket Flight Simulation - Aerodynamic Properties

Static properties derived from the airframe geometry:
- Projected areas and volumes
- Area-weighted center of pressure and Barrowman-style aerodynamic center
- Normal-force weighted center of pressure for the stability margin
- Static margins
- Fin divergence and flutter speeds
- Pitch moment of inertia

All functions are pure. Designer inputs are in millimeters; areas and
volumes are returned in SI units, positions in millimeters from the nose
tip. Anything that is not a valid RocketDesign (or a mapping that builds
one) yields an all-zero result and a warning instead of an exception.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields
from functools import lru_cache
from typing import Any, Optional

from . import constants as C
from .design import RocketDesign, coerce_design
from .types import CenterOfPressure, ProjectedAreas, StaticMargins, Volumes
from .validation import DesignValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def _resolve(design: Any, caller: str) -> Optional[RocketDesign]:
    """Turn the input into a RocketDesign, or None with a warning."""
    try:
        return coerce_design(design)
    except DesignValidationError as exc:
        logger.warning(f"{caller}: {exc}; returning zero result")
        return None


def _divide(numerator: float, denominator: float, fallback: float) -> float:
    if denominator == 0.0:
        return fallback
    return numerator / denominator


def _finite_or(value: float, fallback: float, label: str) -> float:
    if math.isfinite(value):
        return value
    logger.warning(f"Non-finite {label} ({value}); using {fallback:.3f}")
    return fallback


def _fin_span_factor(fin_count: int) -> float:
    """Side-view projection of a fin: sin 60° for three fins, 1 for four."""
    return C.SQRT_3 / 2.0 if fin_count == 3 else 1.0


# =============================================================================
# Areas and volumes
# =============================================================================

def _zero_areas() -> ProjectedAreas:
    return ProjectedAreas(frontal_area=0.0, side_area=0.0, nose_area=0.0,
                          fin_area=0.0, total_fin_area=0.0, angled_area=0.0)


def _projected_areas(d: RocketDesign) -> ProjectedAreas:
    nose_m = C.mm_to_m(d.nose_height)
    body_m = C.mm_to_m(d.body_height)
    width_m = C.mm_to_m(d.body_width)
    fin_h = C.mm_to_m(d.fin_height)
    base = C.mm_to_m(d.fin_base_width)
    tip = C.mm_to_m(d.fin_tip_width)

    # Fin edge term uses the raw mm product
    frontal = math.pi * (width_m / 2.0) ** 2 + d.fin_height * d.fin_thickness * 4 * 1e-7

    body_area = width_m * body_m
    nose_area = d.nose_shape.area_coefficient * width_m * nose_m

    if d.fin_count == 3:
        # Fins at 120°: two are seen foreshortened and the root is partly
        # hidden behind the body curvature.
        adjusted_height = fin_h * 1.73 / 2.0
        overlap = (tip - base) * base * 0.078 / fin_h + base
        if d.fin_sweep_length + d.fin_tip_width >= d.fin_base_width:
            overlap -= tip * width_m * 0.078 / fin_h
        hidden_depth = width_m / 2.0 - width_m * 1.73 / 4.0
        fin_area = (adjusted_height * (base + tip) / 2.0
                    - (overlap + base) * hidden_depth / 2.0)
    else:
        fin_area = fin_h * (base + tip) / 2.0

    # Two fins are visible from the side for either fin count
    total_fin_area = 2.0 * fin_area
    side = body_area + nose_area + total_fin_area

    return ProjectedAreas(
        frontal_area=frontal,
        side_area=side,
        nose_area=nose_area,
        fin_area=fin_area,
        total_fin_area=total_fin_area,
        angled_area=math.hypot(frontal, side),
    )


def compute_projected_areas(design: Any) -> ProjectedAreas:
    """
    Compute frontal, side and fin projected areas.

    Args:
        design: RocketDesign (or mapping of design fields)

    Returns:
        ProjectedAreas dict (m²)
    """
    d = _resolve(design, "compute_projected_areas")
    if d is None:
        return _zero_areas()
    return _projected_areas(d)


def _volumes(d: RocketDesign) -> Volumes:
    radius = C.mm_to_m(d.body_width) / 2.0
    disc = math.pi * radius ** 2
    body_volume = disc * C.mm_to_m(d.body_height)
    nose_volume = d.nose_shape.volume_coefficient * disc * C.mm_to_m(d.nose_height)
    return Volumes(body_volume=body_volume, nose_volume=nose_volume,
                   total_volume=body_volume + nose_volume)


def compute_volumes(design: Any) -> Volumes:
    """
    Compute nose, body and total volumes (m³); fins are neglected.
    """
    d = _resolve(design, "compute_volumes")
    if d is None:
        return Volumes(body_volume=0.0, nose_volume=0.0, total_volume=0.0)
    return _volumes(d)


# =============================================================================
# Centers of pressure
# =============================================================================

def _center_of_pressure(d: RocketDesign) -> CenterOfPressure:
    areas = _projected_areas(d)

    nose_cp = d.nose_height * d.nose_shape.cp_fraction
    body_cp = d.nose_height + d.body_height / 2.0

    # Fin CP from a two-triangle split of the trapezoid, measured from the
    # leading edge of the root
    k = _fin_span_factor(d.fin_count)
    root_section = d.fin_base_width * d.fin_height * k / 2.0
    tip_section = d.fin_tip_width * d.fin_height * k / 2.0
    root_centroid = (d.fin_base_width + d.fin_sweep_length) / 3.0
    tip_centroid = (d.fin_base_width + d.fin_sweep_length
                    + (d.fin_sweep_length + d.fin_tip_width)) / 3.0
    single_fin = (d.fin_base_width + d.fin_tip_width) * d.fin_height * k / 2.0
    fin_cp_local = _divide(root_centroid * root_section + tip_centroid * tip_section,
                           single_fin, root_centroid)
    fin_cp = d.total_length - d.fin_base_width + fin_cp_local

    # Weighting in mm²
    nose_area = areas['nose_area'] * 1e6
    fin_area = areas['total_fin_area'] * 1e6
    body_area = areas['side_area'] * 1e6 - nose_area - fin_area

    total = nose_area + body_area + fin_area
    center = _divide(nose_cp * nose_area + body_cp * body_area + fin_cp * fin_area,
                     total, body_cp)
    fore_body = _divide(nose_cp * nose_area + body_cp * body_area,
                        nose_area + body_area, body_cp)

    return CenterOfPressure(
        nose_cp=nose_cp,
        body_cp=body_cp,
        fin_cp=fin_cp,
        center_of_pressure=center,
        fore_body_cp=fore_body,
    )


def compute_center_of_pressure(design: Any) -> CenterOfPressure:
    """
    Compute the area-weighted center of pressure (mm from nose tip).

    Nose CP is a shape-specific fraction of the nose length, body CP sits at
    the tube midpoint, and fin CP comes from a two-section trapezoid
    decomposition. The fore-body CP ignores the fins.

    Args:
        design: RocketDesign (or mapping of design fields)

    Returns:
        CenterOfPressure dict (mm)
    """
    d = _resolve(design, "compute_center_of_pressure")
    if d is None:
        return CenterOfPressure(nose_cp=0.0, body_cp=0.0, fin_cp=0.0,
                                center_of_pressure=0.0, fore_body_cp=0.0)
    return _center_of_pressure(d)


def _aerodynamic_center(d: RocketDesign, total_volume: float, fallback: float) -> float:
    half_w = d.body_width / 2.0
    fin_h = d.fin_height
    base = d.fin_base_width
    tip = d.fin_tip_width
    sweep = d.fin_sweep_length

    if d.fin_count == 3:
        span = (half_w + fin_h) * C.SQRT_3 / 2.0
        root_chord = (base - tip) / (fin_h * C.SQRT_3 / 2.0) * span + tip
    else:
        span = half_w + fin_h
        root_chord = (base - tip) / fin_h * span + tip

    taper = _divide(tip, root_chord, 0.0)
    if 1.0 + taper == 0.0:
        logger.warning("Degenerate fin taper ratio; aerodynamic center falls back to CP")
        return fallback

    mean_chord = (2.0 * root_chord / 3.0) * (1.0 + taper + taper ** 2) / (1.0 + taper)
    y_bar = span * (1.0 + 2.0 * taper) / (3.0 * (1.0 + taper))
    wing_area = (tip + root_chord) * span

    if mean_chord * wing_area == 0.0:
        logger.warning("Degenerate fin planform; aerodynamic center falls back to CP")
        return fallback

    # Fuselage volume correction (m³ -> mm³)
    v_star = total_volume * 1e9 / (mean_chord * wing_area)

    if d.fin_count == 3:
        aspect_ratio = (2.0 * span) ** 2 / wing_area
        interference = half_w / ((fin_h + half_w) * C.SQRT_3 / 4.0)
    else:
        aspect_ratio = (2.0 * (fin_h + d.body_width)) ** 2 / wing_area
        interference = half_w / ((fin_h + half_w) / 2.0)
    cl_alpha = (3.14 * aspect_ratio * 0.5) * (1.0 - interference ** 2) ** 2

    hn = 0.25 - _divide(2.0 * v_star, cl_alpha, 0.0)

    x1 = half_w * sweep / fin_h
    x2 = y_bar * (x1 + sweep + tip - root_chord) / span
    x_ac = mean_chord - x2 - hn * mean_chord

    return _finite_or(d.total_length - x_ac, fallback, "aerodynamic center")


def compute_aerodynamic_center(design: Any) -> float:
    """
    Barrowman-style aerodynamic center (mm from nose tip).

    Uses mean aerodynamic chord, taper ratio, aspect ratio, lift-curve slope
    with body interference, and a fuselage volume correction. Planform
    formulas branch on fin count.
    """
    d = _resolve(design, "compute_aerodynamic_center")
    if d is None:
        return 0.0
    cp = _center_of_pressure(d)['center_of_pressure']
    return _aerodynamic_center(d, _volumes(d)['total_volume'], cp)


def _stability_center_of_pressure(d: RocketDesign) -> float:
    half_w = d.body_width / 2.0
    fin_h = d.fin_height
    base = d.fin_base_width
    tip = d.fin_tip_width
    sweep = d.fin_sweep_length

    mid_chord_line = math.hypot(sweep + tip / 2.0 - base / 2.0, fin_h)
    nose_cp = d.nose_height * d.nose_shape.cp_fraction

    interference = 1.0 + fin_h / (fin_h + half_w)
    fin_factor = (12.0 if d.fin_count == 3 else 16.0) * (fin_h / d.body_width) ** 2
    planform = 1.0 + math.sqrt(1.0 + (2.0 * mid_chord_line / (tip + base)) ** 2)
    fin_cn = interference * fin_factor / planform
    cn_total = 2.0 + fin_cn

    fin_cp = ((d.total_length - base)
              + (sweep / 3.0) * ((base + 2.0 * tip) / (base + tip))
              + ((base + tip) - (base * tip) / (base + tip)) / 6.0)

    # Nose normal-force coefficient is 2
    return (2.0 * nose_cp + fin_cn * fin_cp) / cn_total


def compute_stability_center_of_pressure(design: Any) -> float:
    """
    Center of pressure weighted by normal-force coefficients (mm).

    Used only for the stability margin figure, not for moments.
    """
    d = _resolve(design, "compute_stability_center_of_pressure")
    if d is None:
        return 0.0
    return _stability_center_of_pressure(d)


def compute_static_margins(design: Any) -> StaticMargins:
    """
    Static margins (CP - CG) / body diameter, in calibers.

    Returns:
        StaticMargins with the standard (area-weighted CP) and stability
        (normal-force CP) margins. Positive means stable.
    """
    d = _resolve(design, "compute_static_margins")
    if d is None:
        return StaticMargins(standard=0.0, stability=0.0)
    cp = _center_of_pressure(d)['center_of_pressure']
    stability_cp = _stability_center_of_pressure(d)
    return StaticMargins(
        standard=(cp - d.center_of_gravity) / d.body_width,
        stability=(stability_cp - d.center_of_gravity) / d.body_width,
    )


# =============================================================================
# Critical fin speeds
# =============================================================================

def _clamp(value: float, bounds) -> float:
    low, high = bounds
    return max(low, min(high, value))


def _fin_divergence_speed(d: RocketDesign) -> float:
    fin_h = C.mm_to_m(d.fin_height)
    base = C.mm_to_m(d.fin_base_width)
    tip = C.mm_to_m(d.fin_tip_width)
    sweep = C.mm_to_m(d.fin_sweep_length)
    thickness = C.mm_to_m(d.fin_thickness)

    mean_chord = (base + tip) / 2.0
    sweep_angle = math.atan((sweep + 0.5 * tip - 0.5 * base) * 3.14 / mean_chord)
    torsion_constant = 0.3333 * tip * thickness ** 3
    lift_slope = (9.0 / 3.14) * math.cos(sweep_angle)

    aero_stiffness = C.RHO_AIR * mean_chord ** 2 * 0.25 * lift_slope
    if aero_stiffness <= 0.0:
        return C.DIVERGENCE_SPEED_RANGE[1]
    speed = (3.14 / (2.0 * fin_h)) * math.sqrt(
        2.0 * d.fin_material.shear_modulus * torsion_constant / aero_stiffness)
    return _clamp(speed, C.DIVERGENCE_SPEED_RANGE)


def compute_fin_divergence_speed(design: Any) -> float:
    """
    Fin divergence speed (m/s), clamped to [20, 300].

    Balances torsional stiffness G*J against the aerodynamic twisting
    stiffness of the fin.
    """
    d = _resolve(design, "compute_fin_divergence_speed")
    if d is None:
        return 0.0
    return _fin_divergence_speed(d)


def _fin_flutter_speed(d: RocketDesign) -> float:
    fin_h = C.mm_to_m(d.fin_height)
    base = C.mm_to_m(d.fin_base_width)
    tip = C.mm_to_m(d.fin_tip_width)
    thickness = C.mm_to_m(d.fin_thickness)

    torsional_stiffness = d.fin_material.shear_modulus * 0.333 * thickness * tip ** 3
    fin_area = (tip + base) * fin_h * 0.5
    half_chord = tip / 2.0

    denominator = (C.FLUTTER_EPSILON * C.RHO_AIR * fin_area * half_chord
                   * C.FLUTTER_LIFT_SLOPE)
    if denominator <= 0.0:
        # No tip chord: no torsional stiffness either
        return C.FLUTTER_SPEED_RANGE[0]
    speed = math.sqrt(2.0 * torsional_stiffness / denominator)
    return _clamp(speed, C.FLUTTER_SPEED_RANGE)


def compute_fin_flutter_speed(design: Any) -> float:
    """Classical fin flutter speed (m/s), clamped to [30, 400]."""
    d = _resolve(design, "compute_fin_flutter_speed")
    if d is None:
        return 0.0
    return _fin_flutter_speed(d)


def format_speed_value(speed: float, limit: float = 300.0) -> str:
    """Display form of a critical speed: "300+ m/s" at or above the limit."""
    if speed >= limit:
        return f"{limit:g}+ m/s"
    return f"{round(speed)} m/s"


# =============================================================================
# Mass properties
# =============================================================================

def fin_mass(design: RocketDesign) -> float:
    """Mass of one fin (kg) from its trapezoid volume and material density."""
    volume = ((C.mm_to_m(design.fin_tip_width) + C.mm_to_m(design.fin_base_width))
              * C.mm_to_m(design.fin_height) * 0.5 * C.mm_to_m(design.fin_thickness))
    return volume * design.fin_material.density


def _moment_of_inertia(d: RocketDesign, fin_cp_mm: float) -> float:
    fin_h = C.mm_to_m(d.fin_height)
    base = C.mm_to_m(d.fin_base_width)
    tip = C.mm_to_m(d.fin_tip_width)
    sweep = C.mm_to_m(d.fin_sweep_length)
    radius = d.body_diameter_m / 2.0
    length = d.total_length_m

    m_fin = fin_mass(d)
    overhang = max(0.0, sweep + tip - base)
    fin_own = ((base + overhang) / 2.0) ** 2 * m_fin / 3.0

    fin_cp = C.mm_to_m(fin_cp_mm)
    radial = (tip + 2.0 * base) / (3.0 * (tip + base)) * fin_h * _fin_span_factor(d.fin_count)
    side_fin_distance_sq = radial ** 2 + fin_cp ** 2

    body_mass = max(0.0, d.mass_kg - d.fin_count * m_fin)
    body = 0.25 * body_mass * radius ** 2 + 0.0833 * body_mass * length ** 2

    # Fins in the pitch plane (one for three fins, two for four) sit on the
    # axis; the other two are offset radially.
    in_plane = 1 if d.fin_count == 3 else 2
    fins = (in_plane * (fin_own + m_fin * fin_cp ** 2)
            + 2 * (fin_own + m_fin * side_fin_distance_sq))
    return body + fins


def compute_moment_of_inertia(design: Any) -> float:
    """
    Pitch moment of inertia (kg·m²).

    Body as a solid cylinder (mass less the fins) plus each fin as a plate
    displaced to the fin center of pressure.
    """
    d = _resolve(design, "compute_moment_of_inertia")
    if d is None:
        return 0.0
    return _moment_of_inertia(d, _center_of_pressure(d)['fin_cp'])


# =============================================================================
# Aggregate
# =============================================================================

@dataclass(frozen=True)
class AerodynamicProperties:
    """Static aerodynamic and mass properties of one design."""
    frontal_area: float
    side_area: float
    nose_area: float
    fin_area: float
    total_fin_area: float
    angled_area: float
    nose_volume: float
    body_volume: float
    total_volume: float
    nose_cp: float
    body_cp: float
    fin_cp: float
    center_of_pressure: float
    fore_body_cp: float
    aerodynamic_center: float
    stability_center_of_pressure: float
    standard_static_margin: float
    stability_static_margin: float
    moment_of_inertia: float
    fin_divergence_speed: float
    fin_flutter_speed: float

    @classmethod
    def zero(cls) -> 'AerodynamicProperties':
        return cls(**{f.name: 0.0 for f in fields(cls)})

    def as_dict(self) -> dict:
        return asdict(self)


@lru_cache(maxsize=256)
def _cached_properties(d: RocketDesign) -> AerodynamicProperties:
    areas = _projected_areas(d)
    volumes = _volumes(d)
    cp = _center_of_pressure(d)
    stability_cp = _stability_center_of_pressure(d)
    ac = _aerodynamic_center(d, volumes['total_volume'], cp['center_of_pressure'])
    inertia = _moment_of_inertia(d, cp['fin_cp'])

    return AerodynamicProperties(
        frontal_area=areas['frontal_area'],
        side_area=areas['side_area'],
        nose_area=areas['nose_area'],
        fin_area=areas['fin_area'],
        total_fin_area=areas['total_fin_area'],
        angled_area=areas['angled_area'],
        nose_volume=volumes['nose_volume'],
        body_volume=volumes['body_volume'],
        total_volume=volumes['total_volume'],
        nose_cp=cp['nose_cp'],
        body_cp=cp['body_cp'],
        fin_cp=cp['fin_cp'],
        center_of_pressure=cp['center_of_pressure'],
        fore_body_cp=cp['fore_body_cp'],
        aerodynamic_center=ac,
        stability_center_of_pressure=stability_cp,
        standard_static_margin=(cp['center_of_pressure'] - d.center_of_gravity) / d.body_width,
        stability_static_margin=(stability_cp - d.center_of_gravity) / d.body_width,
        moment_of_inertia=inertia,
        fin_divergence_speed=_fin_divergence_speed(d),
        fin_flutter_speed=_fin_flutter_speed(d),
    )


def compute_aerodynamic_properties(design: Any) -> AerodynamicProperties:
    """
    Compute every static property of a design.

    Results are memoized per (hashable, immutable) RocketDesign, so
    concurrent runs of the same geometry share one computation.

    Args:
        design: RocketDesign (or mapping of design fields)

    Returns:
        AerodynamicProperties (all zero for an invalid design)
    """
    d = _resolve(design, "compute_aerodynamic_properties")
    if d is None:
        return AerodynamicProperties.zero()
    props = _cached_properties(d)
    logger.debug(f"Aerodynamic properties: CP={props.center_of_pressure:.1f}mm, "
                 f"AC={props.aerodynamic_center:.1f}mm, I={props.moment_of_inertia:.3e}kg·m²")
    return props


def clear_property_cache():
    """Drop memoized properties."""
    _cached_properties.cache_clear()
