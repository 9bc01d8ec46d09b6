"""
Model Rocket Flight Simulation - Validation

Input and state checks. Design and environment parameters are validated
once, at construction, so the simulation core can assume well-formed
inputs; the per-step state check only guards against numerical blow-up.
"""

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, List, Optional, Tuple

from . import constants as C


class ValidationError(Exception):
    """Exception raised when validation fails."""
    pass


@dataclass(frozen=True)
class FieldError:
    """One offending input field."""
    field: str
    value: Any
    message: str

    def __str__(self) -> str:
        return f"{self.field}={self.value!r}: {self.message}"


class DesignValidationError(ValidationError):
    """
    Raised by the design/environment builders.

    Carries every offending field rather than only the first, so a caller
    can report all problems at once.
    """

    def __init__(self, errors: List[FieldError], kind: str = "design"):
        self.errors = list(errors)
        self.kind = kind
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Invalid {kind}: {details}")

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


def is_number(value: Any) -> bool:
    """True for real, non-boolean numbers."""
    return isinstance(value, Real) and not isinstance(value, bool)


def check_number(name: str, value: Any, errors: List[FieldError],
                 minimum: Optional[float] = None, strict: bool = True,
                 maximum: Optional[float] = None) -> Optional[float]:
    """
    Validate a numeric field and collect an error instead of raising.

    Args:
        name: Field name used in the error
        value: Candidate value
        errors: List the FieldError is appended to
        minimum: Lower bound (None for unbounded)
        strict: If True the value must be greater than minimum, else >=
        maximum: Inclusive upper bound (None for unbounded)

    Returns:
        The value as float, or None if it failed
    """
    if value is None:
        errors.append(FieldError(name, value, "required field is missing"))
        return None
    if not is_number(value):
        errors.append(FieldError(name, value, "must be a number"))
        return None
    number = float(value)
    if not math.isfinite(number):
        errors.append(FieldError(name, value, "must be finite"))
        return None
    if minimum is not None:
        if strict and number <= minimum:
            errors.append(FieldError(name, value, f"must be > {minimum:g}"))
            return None
        if not strict and number < minimum:
            errors.append(FieldError(name, value, f"must be >= {minimum:g}"))
            return None
    if maximum is not None and number > maximum:
        errors.append(FieldError(name, value, f"must be <= {maximum:g}"))
        return None
    return number


def check_range(name: str, value: Any, bounds: Tuple[float, float],
                errors: List[FieldError]) -> Optional[float]:
    """Validate a number lying in an inclusive [low, high] interval."""
    low, high = bounds
    number = check_number(name, value, errors)
    if number is None:
        return None
    if number < low or number > high:
        errors.append(FieldError(name, value, f"must be within [{low:g}, {high:g}]"))
        return None
    return number


def check_choice(name: str, value: Any, choices, errors: List[FieldError]):
    """
    Resolve an enum-like field.

    Accepts an instance of the enum or its string value.
    """
    if isinstance(value, choices):
        return value
    try:
        return choices(value)
    except ValueError:
        valid = ", ".join(str(c.value) for c in choices)
        errors.append(FieldError(name, value, f"must be one of: {valid}"))
        return None


def validate_state(state, max_speed: float = C.MAX_SPEED,
                   abort_on_error: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Check that the integrated state is still finite.

    Args:
        state: SimulationState to check
        max_speed: Speed cap the integrator enforces (m/s)
        abort_on_error: If True, raise on the first failure

    Returns:
        (is_valid, error_message) tuple

    Raises:
        ValidationError: If abort_on_error and the state is invalid
    """
    values = {
        'x': state.x, 'y': state.y,
        'vx': state.vx, 'vy': state.vy,
        'omega': state.omega,
        'angular_velocity': state.angular_velocity,
    }
    for name, value in values.items():
        if not math.isfinite(value):
            message = f"Non-finite {name}={value} at t={state.t:.2f}s"
            if abort_on_error:
                raise ValidationError(message)
            return False, message
    if state.speed > max_speed * (1.0 + 1e-9):
        message = f"Speed {state.speed:.3f} m/s exceeds cap {max_speed} m/s"
        if abort_on_error:
            raise ValidationError(message)
        return False, message
    return True, None
