"""
Model Rocket Flight Simulation - Design and Environment

Immutable input records and their validated builders.

A RocketDesign describes the airframe (mm, g); an Environment describes the
launch conditions together with the selected motor and parachute. Both are
frozen and hashable, so derived aerodynamic properties can be cached per
design and shared between concurrent runs.
"""

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from . import constants as C
from .validation import (
    DesignValidationError,
    FieldError,
    check_choice,
    check_number,
    check_range,
)


# =============================================================================
# Enumerations
# =============================================================================

class NoseShape(Enum):
    CONE = 'cone'
    PARABOLA = 'parabola'
    OGIVE = 'ogive'

    @property
    def drag_coefficient(self) -> float:
        return C.NOSE_SHAPES[self.value][0]

    @property
    def cp_fraction(self) -> float:
        return C.NOSE_SHAPES[self.value][1]

    @property
    def volume_coefficient(self) -> float:
        return C.NOSE_SHAPES[self.value][2]

    @property
    def area_coefficient(self) -> float:
        return C.NOSE_SHAPES[self.value][3]


class FinMaterial(Enum):
    LIGHT_BALSA = 'light_balsa'
    BALSA = 'balsa'
    LIGHT_VENEER = 'light_veneer'

    @property
    def youngs_modulus(self) -> float:
        return C.FIN_MATERIALS[self.value][0]

    @property
    def shear_modulus(self) -> float:
        return C.FIN_MATERIALS[self.value][1]

    @property
    def density(self) -> float:
        return C.FIN_MATERIALS[self.value][2]


class WindProfile(Enum):
    UNIFORM = 'uniform'
    OPEN_SEA = 'openSea'
    FARMLAND = 'farmland'
    SUBURBAN = 'suburban'
    URBAN = 'urban'

    @property
    def alpha(self) -> float:
        return C.WIND_PROFILES[self.value]


# =============================================================================
# Catalog records
# =============================================================================

@dataclass(frozen=True)
class Motor:
    """A catalog motor: thrust curve plus ejection delay."""
    designation: str
    thrust_samples: Tuple[float, ...]
    ejection_delay: float
    sample_interval: float = C.THRUST_SAMPLE_INTERVAL

    @property
    def burn_time(self) -> float:
        return len(self.thrust_samples) * self.sample_interval

    @property
    def peak_thrust(self) -> float:
        return max(self.thrust_samples)

    @property
    def total_impulse(self) -> float:
        return sum(self.thrust_samples) * self.sample_interval

    def is_burning(self, time: float) -> bool:
        return time < self.burn_time - C.TIME_TOLERANCE

    def thrust_at(self, time: float) -> float:
        """Thrust sample for simulated time, held at the last sample."""
        if time < 0.0:
            return 0.0
        # Tolerance absorbs float error in step * dt
        index = int(math.floor(time / self.sample_interval + C.TIME_TOLERANCE))
        return self.thrust_samples[min(index, len(self.thrust_samples) - 1)]


@dataclass(frozen=True)
class Parachute:
    designation: str
    diameter_mm: float

    @property
    def diameter_m(self) -> float:
        return C.mm_to_m(self.diameter_mm)


def parse_ejection_delay(designation: str) -> float:
    """Delay encoded after the dash of a motor designation ("A8-3" -> 3)."""
    try:
        return float(int(designation.rsplit('-', 1)[1]))
    except (IndexError, ValueError) as exc:
        raise ValueError(f"Motor designation without delay suffix: {designation!r}") from exc


def get_motor(designation: str) -> Motor:
    """Look up a motor by designation."""
    if designation not in C.MOTOR_THRUST_DATA:
        raise KeyError(f"Unknown motor: {designation!r}")
    return Motor(
        designation=designation,
        thrust_samples=tuple(C.MOTOR_THRUST_DATA[designation]),
        ejection_delay=parse_ejection_delay(designation),
    )


def get_parachute(designation: str) -> Parachute:
    """Look up a parachute by designation; "phi300" is accepted for "φ300"."""
    key = designation
    if isinstance(key, str) and key.lower().startswith('phi'):
        key = 'φ' + key[3:]
    if key not in C.PARACHUTE_SIZES:
        raise KeyError(f"Unknown parachute: {designation!r}")
    return Parachute(designation=key, diameter_mm=float(C.PARACHUTE_SIZES[key]))


# =============================================================================
# Input records
# =============================================================================

@dataclass(frozen=True)
class RocketDesign:
    """
    Airframe geometry and mass.

    Attributes:
        nose_shape: Nose cone profile
        nose_height: Nose length (mm)
        body_height: Body tube length (mm)
        body_width: Body tube diameter (mm)
        fin_height: Fin semi-span (mm)
        fin_base_width: Root chord (mm)
        fin_tip_width: Tip chord (mm)
        fin_thickness: Fin thickness (mm)
        fin_sweep_length: Leading-edge sweep distance (mm)
        fin_material: Fin stock
        fin_count: Number of fins (3 or 4)
        weight: Lift-off mass (g)
        center_of_gravity: CG offset from the nose tip (mm)
    """
    nose_shape: NoseShape
    nose_height: float
    body_height: float
    body_width: float
    fin_height: float
    fin_base_width: float
    fin_tip_width: float
    fin_thickness: float
    fin_sweep_length: float
    fin_material: FinMaterial
    fin_count: int
    weight: float
    center_of_gravity: float

    @property
    def total_length(self) -> float:
        """Nose tip to tail (mm)."""
        return self.nose_height + self.body_height

    @property
    def body_diameter_m(self) -> float:
        return C.mm_to_m(self.body_width)

    @property
    def total_length_m(self) -> float:
        return C.mm_to_m(self.total_length)

    @property
    def mass_kg(self) -> float:
        return C.g_to_kg(self.weight)


@dataclass(frozen=True)
class Environment:
    """
    Launch conditions.

    Attributes:
        launch_angle: Rail angle from vertical (deg), clockwise positive
        wind_speed: Wind at reference height (m/s), positive toward +x
        wind_profile: Terrain class of the power-law profile
        motor: Selected motor
        parachute: Selected parachute
    """
    launch_angle: float
    wind_speed: float
    wind_profile: WindProfile
    motor: Motor
    parachute: Parachute

    @property
    def launch_angle_rad(self) -> float:
        return math.radians(self.launch_angle)


# =============================================================================
# Builders
# =============================================================================

# Keys used by the interactive front end, mapped to field names.
_DESIGN_ALIASES = {
    'noseShape': 'nose_shape',
    'noseHeight': 'nose_height',
    'bodyHeight': 'body_height',
    'bodyWidth': 'body_width',
    'finHeight': 'fin_height',
    'finBaseWidth': 'fin_base_width',
    'finTipWidth': 'fin_tip_width',
    'finThickness': 'fin_thickness',
    'finSweepLength': 'fin_sweep_length',
    'finMaterial': 'fin_material',
    'finCount': 'fin_count',
    'centerOfGravity': 'center_of_gravity',
}

_ENVIRONMENT_ALIASES = {
    'angle': 'launch_angle',
    'launchAngle': 'launch_angle',
    'windSpeed': 'wind_speed',
    'windProfile': 'wind_profile',
    'selectedMotor': 'motor',
    'selectedParachute': 'parachute',
}

DESIGN_FIELDS = tuple(f.name for f in fields(RocketDesign))
ENVIRONMENT_FIELDS = tuple(f.name for f in fields(Environment))

# Fields that may legitimately be zero or negative
_NON_NEGATIVE = {'fin_tip_width', 'center_of_gravity'}
_ANY_SIGN = {'fin_sweep_length'}

DEFAULT_DESIGN_PARAMS: Dict[str, Any] = {
    'nose_shape': 'ogive',
    'nose_height': 57.0,
    'body_height': 255.0,
    'body_width': 31.0,
    'fin_height': 57.5,
    'fin_base_width': 65.0,
    'fin_tip_width': 25.0,
    'fin_thickness': 1.5,
    'fin_sweep_length': 82.5,
    'fin_material': 'light_veneer',
    'fin_count': 3,
    'weight': 50.0,
    'center_of_gravity': 150.0,
}

DEFAULT_ENVIRONMENT_PARAMS: Dict[str, Any] = {
    'launch_angle': 0.0,
    'wind_speed': 0.0,
    'wind_profile': 'uniform',
    'motor': C.DEFAULT_MOTOR,
    'parachute': C.DEFAULT_PARACHUTE,
}


def _normalize_keys(params: Mapping[str, Any], aliases: Mapping[str, str],
                    known: Tuple[str, ...], kind: str) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    unknown = []
    for key, value in params.items():
        name = aliases.get(key, key)
        if name not in known:
            unknown.append(FieldError(key, value, f"unknown {kind} field"))
            continue
        normalized[name] = value
    if unknown:
        raise DesignValidationError(unknown, kind=kind)
    return normalized


def build_design(params: Optional[Mapping[str, Any]] = None, **kwargs) -> RocketDesign:
    """
    Build a validated RocketDesign.

    Accepts snake_case field names or the camelCase keys of the front end,
    either as a mapping or as keyword arguments. Every field except
    fin_count (default 3) and nose_shape (default ogive) is required.

    Raises:
        DesignValidationError: listing every offending field
    """
    if params is not None and not isinstance(params, Mapping):
        raise DesignValidationError(
            [FieldError('params', params, "must be a mapping of design fields")])
    raw = dict(params or {})
    raw.update(kwargs)
    values = _normalize_keys(raw, _DESIGN_ALIASES, DESIGN_FIELDS, "design")
    if isinstance(values.get('fin_count'), float) and values['fin_count'].is_integer():
        values['fin_count'] = int(values['fin_count'])

    errors = []
    nose_shape = check_choice('nose_shape', values.get('nose_shape', 'ogive'),
                              NoseShape, errors)
    fin_material = check_choice('fin_material', values.get('fin_material'),
                                FinMaterial, errors)
    fin_count = values.get('fin_count', 3)
    if fin_count not in (3, 4) or isinstance(fin_count, bool):
        errors.append(FieldError('fin_count', fin_count, "must be 3 or 4"))

    numbers = {}
    for name in DESIGN_FIELDS:
        if name in ('nose_shape', 'fin_material', 'fin_count'):
            continue
        if name in _ANY_SIGN:
            numbers[name] = check_number(name, values.get(name), errors)
        else:
            numbers[name] = check_number(name, values.get(name), errors,
                                         minimum=0.0, strict=name not in _NON_NEGATIVE)

    if errors:
        raise DesignValidationError(errors, kind="design")

    return RocketDesign(
        nose_shape=nose_shape,
        fin_material=fin_material,
        fin_count=int(fin_count),
        **numbers,
    )


def build_environment(params: Optional[Mapping[str, Any]] = None, **kwargs) -> Environment:
    """
    Build a validated Environment.

    Motor and parachute may be given by designation or as catalog records.
    Missing fields take the defaults of the reference launch.

    Raises:
        DesignValidationError: listing every offending field
    """
    if params is not None and not isinstance(params, Mapping):
        raise DesignValidationError(
            [FieldError('params', params, "must be a mapping of environment fields")],
            kind="environment")
    raw = dict(params or {})
    raw.update(kwargs)
    values = dict(DEFAULT_ENVIRONMENT_PARAMS)
    values.update(_normalize_keys(raw, _ENVIRONMENT_ALIASES, ENVIRONMENT_FIELDS,
                                  "environment"))

    errors = []
    angle = check_range('launch_angle', values['launch_angle'], C.LAUNCH_ANGLE_RANGE, errors)
    wind = check_range('wind_speed', values['wind_speed'], C.WIND_SPEED_RANGE, errors)
    profile = check_choice('wind_profile', values['wind_profile'], WindProfile, errors)

    motor = values['motor']
    if not isinstance(motor, Motor):
        try:
            motor = get_motor(motor)
        except (KeyError, TypeError):
            valid = ", ".join(C.MOTOR_THRUST_DATA)
            errors.append(FieldError('motor', motor, f"must be one of: {valid}"))

    parachute = values['parachute']
    if not isinstance(parachute, Parachute):
        try:
            parachute = get_parachute(parachute)
        except (KeyError, TypeError):
            valid = ", ".join(C.PARACHUTE_SIZES)
            errors.append(FieldError('parachute', parachute, f"must be one of: {valid}"))

    if errors:
        raise DesignValidationError(errors, kind="environment")

    return Environment(
        launch_angle=angle,
        wind_speed=wind,
        wind_profile=profile,
        motor=motor,
        parachute=parachute,
    )


def try_build_design(params: Optional[Mapping[str, Any]] = None, **kwargs):
    """
    Value-returning form of build_design.

    Returns:
        (design, None) on success, (None, DesignValidationError) otherwise
    """
    try:
        return build_design(params, **kwargs), None
    except DesignValidationError as exc:
        return None, exc


def try_build_environment(params: Optional[Mapping[str, Any]] = None, **kwargs):
    """Value-returning form of build_environment."""
    try:
        return build_environment(params, **kwargs), None
    except DesignValidationError as exc:
        return None, exc


def default_design(**overrides) -> RocketDesign:
    """The reference rocket, optionally with some fields overridden."""
    params = dict(DEFAULT_DESIGN_PARAMS)
    params.update(_normalize_keys(overrides, _DESIGN_ALIASES, DESIGN_FIELDS, "design"))
    return build_design(params)


def default_environment(**overrides) -> Environment:
    """The reference launch (A8-3, φ300, vertical, calm)."""
    return build_environment(overrides)


def with_changes(design: RocketDesign, **changes) -> RocketDesign:
    """Copy a design with some fields replaced, re-validating the result."""
    params = {f: getattr(design, f) for f in DESIGN_FIELDS}
    params.update(_normalize_keys(changes, _DESIGN_ALIASES, DESIGN_FIELDS, "design"))
    return build_design(params)


def coerce_design(obj: Any) -> RocketDesign:
    """
    Return obj as a RocketDesign, building it from a mapping if needed.

    Raises:
        DesignValidationError: If obj cannot be turned into a valid design
    """
    if isinstance(obj, RocketDesign):
        return obj
    if isinstance(obj, Mapping):
        return build_design(obj)
    raise DesignValidationError(
        [FieldError('design', obj, "must be a RocketDesign or a mapping")])
