"""
Model Rocket Flight Simulation - Configuration

This module provides a SimulationConfig dataclass for dependency injection,
so that every run carries its own timing, thresholds and feature toggles
instead of reading module-level flags. Concurrent runs with different
settings therefore cannot interfere.

Optional attitude features default to OFF so the physics-based behaviour
is unchanged until the caller explicitly enables them.
"""

from dataclasses import dataclass, replace

from . import constants as C


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable configuration for simulation parameters.

    Using frozen=True ensures configs cannot be accidentally modified.
    Create new configs via dataclass replace() if needed.

    Section grouping:
      1. Simulation timing
      2. Attitude feature toggles
      3. Torque limits
      4. Stability thresholds
      5. Kinematic limits
      6. Landing prediction
      7. Misc
    """

    # ── 1. Simulation timing ─────────────────────────────────────────────
    dt: float = C.DT
    angle_steps_per_update: int = C.ANGLE_STEPS_PER_UPDATE
    max_time: float = C.MAX_TIME
    grace_time: float = C.GRACE_TIME

    # ── 2. Attitude feature toggles ──────────────────────────────────────
    # Torque-driven attitude update (dual-rate scheduler)
    physical_attitude_control: bool = True
    # Weathercocking-seeking secondary controller during free flight
    enhanced_attitude_control: bool = False
    # Cap that controller to ±90° from the wind while heading upwind
    wind_angle_limitation: bool = False

    # ── 3. Torque limits ─────────────────────────────────────────────────
    torque_abort_threshold: float = C.TORQUE_ABORT_THRESHOLD
    torque_clamp: float = C.TORQUE_CLAMP
    zero_wind_threshold: float = C.ZERO_WIND_THRESHOLD

    # ── 4. Stability thresholds ──────────────────────────────────────────
    max_angle_change_deg: float = C.MAX_ANGLE_CHANGE_DEG
    max_absolute_angle_deg: float = C.MAX_ABSOLUTE_ANGLE_DEG

    # ── 5. Kinematic limits ──────────────────────────────────────────────
    max_speed: float = C.MAX_SPEED
    max_angular_velocity: float = C.MAX_ANGULAR_VELOCITY
    max_window_angular_velocity: float = C.MAX_WINDOW_ANGULAR_VELOCITY
    launch_rail_length: float = C.LAUNCH_RAIL_LENGTH

    # ── 6. Landing prediction ────────────────────────────────────────────
    landing_dt: float = C.LANDING_DT

    # ── 7. Misc ──────────────────────────────────────────────────────────
    verbose: bool = False

    def __post_init__(self):
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.max_time <= 0.0:
            raise ValueError(f"max_time must be positive, got {self.max_time}")
        if self.landing_dt <= 0.0:
            raise ValueError(f"landing_dt must be positive, got {self.landing_dt}")
        if int(self.angle_steps_per_update) != self.angle_steps_per_update \
                or self.angle_steps_per_update < 1:
            raise ValueError(
                f"angle_steps_per_update must be a positive integer, "
                f"got {self.angle_steps_per_update}"
            )

    @property
    def rotation_dt(self) -> float:
        """Rotational update interval dt2 (always N translational steps)."""
        return self.dt * self.angle_steps_per_update


def create_default_config() -> SimulationConfig:
    """Create a configuration with default values."""
    return SimulationConfig()


def create_test_config(**overrides) -> SimulationConfig:
    """
    Create a configuration suitable for testing.

    Args:
        **overrides: Any SimulationConfig field to override

    Returns:
        SimulationConfig instance
    """
    return replace(SimulationConfig(), **overrides)
