"""
Model Rocket Flight Simulation - Attitude

This module implements the rotational channel of the flight:
- RotationalScheduler: dual-rate update (torque averaged over N fine
  steps, one angular update per window, 1/N of the window's angle change
  applied each fine step)
- AttitudeMonitor: angle-change and absolute-angle stability checks
- Restoring torques under the parachute
- Optional weathercocking-seeking attitude controller
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config

logger = logging.getLogger(__name__)


# =============================================================================
# Dual-rate rotational update
# =============================================================================

class RotationalScheduler:
    """
    Fine/coarse clock coupling for the rotational state.

    Every fine step the caller adds that step's torque and then calls
    tick(). When N torques have been collected the scheduler closes the
    window: it averages them, updates angular acceleration and velocity
    over dt2 = N·dt, and stores the window's angle change. Every tick
    returns 1/N of the most recent window's angle change, so attitude
    advances smoothly on the fine grid.
    """

    def __init__(self, moment_of_inertia: float, config: SimulationConfig = None):
        config = config or create_default_config()
        self.steps_per_update = int(config.angle_steps_per_update)
        self.rotation_dt = config.rotation_dt
        self.max_window_rate = config.max_window_angular_velocity
        self.moment_of_inertia = moment_of_inertia

        self.angular_velocity = 0.0
        self.angular_acceleration = 0.0
        self.window_delta = 0.0
        self.windows_completed = 0

        self._torque_sum = 0.0
        self._count = 0
        self._inertia_warned = False

    @property
    def pending_steps(self) -> int:
        return self._count

    def add_torque(self, torque: float):
        self._torque_sum += torque
        self._count += 1

    def _close_window(self, t: float):
        average = self._torque_sum / self._count
        if not math.isfinite(average):
            logger.warning(f"Non-finite average torque at t={t:.2f}s; using 0")
            average = 0.0

        if abs(self.moment_of_inertia) < C.MIN_MOMENT_OF_INERTIA:
            if not self._inertia_warned:
                logger.warning(f"Moment of inertia too small ({self.moment_of_inertia}); "
                               f"angular acceleration set to 0")
                self._inertia_warned = True
            self.angular_acceleration = 0.0
        else:
            self.angular_acceleration = average / self.moment_of_inertia

        rate = self.angular_velocity + self.angular_acceleration * self.rotation_dt
        self.angular_velocity = max(-self.max_window_rate, min(self.max_window_rate, rate))
        self.window_delta = self.angular_velocity * self.rotation_dt
        self.windows_completed += 1

        if abs(average) > 0.001:
            logger.debug(f"Rotation window t={t:.2f}s: torque={average:.6f}N·m, "
                         f"alpha={self.angular_acceleration:.4f}, "
                         f"omega_dot={self.angular_velocity:.4f}, "
                         f"delta={self.window_delta:.6f}rad")

        self._torque_sum = 0.0
        self._count = 0

    def tick(self, t: float = 0.0) -> Tuple[float, bool]:
        """
        Advance the fine clock by one step.

        Args:
            t: Simulation time, for diagnostics

        Returns:
            (angle increment for this step (rad), window closed this step)
        """
        closed = False
        if self._count >= self.steps_per_update:
            self._close_window(t)
            closed = True
        return self.window_delta / self.steps_per_update, closed

    def clamp_angular_velocity(self, limit: float) -> float:
        self.angular_velocity = max(-limit, min(limit, self.angular_velocity))
        return self.angular_velocity


# =============================================================================
# Stability monitor
# =============================================================================

def normalize_angle_deg(angle_deg: float) -> float:
    """Wrap an angle into [-180, 180] degrees."""
    wrapped = math.fmod(angle_deg, 360.0)
    if wrapped > 180.0:
        wrapped -= 360.0
    elif wrapped < -180.0:
        wrapped += 360.0
    return wrapped


@dataclass(frozen=True)
class StabilityRecord:
    """Attitude stability verdict of one flight."""
    max_angle_change: float        # Largest window angle change (deg), signed
    max_absolute_angle: float      # Largest normalized attitude (deg), signed
    is_angle_change_ok: bool
    is_absolute_angle_ok: bool
    is_torque_stable_ok: bool

    @property
    def is_stability_ok(self) -> bool:
        return self.is_angle_change_ok and self.is_absolute_angle_ok and self.is_torque_stable_ok


class AttitudeMonitor:
    """
    Stability checks on the attitude history, independent of the torque guard.

    The rolling window holds the last N per-step attitude changes (deg);
    their sum is the angle change over one rotational window.
    """

    def __init__(self, launch_omega: float, config: SimulationConfig = None):
        config = config or create_default_config()
        self.angle_change_limit = config.max_angle_change_deg
        self.absolute_angle_limit = config.max_absolute_angle_deg
        self.window = deque(maxlen=int(config.angle_steps_per_update))

        self._previous_omega = launch_omega
        self.max_angle_change = 0.0
        self.max_absolute_angle = 0.0
        self.is_angle_change_ok = True
        self.is_absolute_angle_ok = True

    def _track_angle_change(self, change_deg: float, t: float):
        if abs(change_deg) > abs(self.max_angle_change):
            self.max_angle_change = change_deg
        if abs(change_deg) > self.angle_change_limit and self.is_angle_change_ok:
            self.is_angle_change_ok = False
            logger.warning(f"Angle change {change_deg:.2f}° exceeds "
                           f"±{self.angle_change_limit}° at t={t:.2f}s")

    def check_absolute_angle(self, omega: float, t: float, active: bool) -> float:
        """
        Check the normalized attitude against the absolute limit.

        Args:
            omega: Attitude (rad)
            t: Simulation time (s)
            active: Off the rail and before ejection

        Returns:
            Normalized attitude (deg)
        """
        angle = normalize_angle_deg(omega * C.DEG)
        if active:
            if abs(angle) > abs(self.max_absolute_angle):
                self.max_absolute_angle = angle
            if abs(angle) > self.absolute_angle_limit and self.is_absolute_angle_ok:
                self.is_absolute_angle_ok = False
                logger.warning(f"Absolute angle {angle:.2f}° exceeds "
                               f"±{self.absolute_angle_limit}° at t={t:.2f}s")
        return angle

    def check_window(self, window_delta: float, t: float, active: bool):
        """Check the angle change of a freshly closed rotational window."""
        if active:
            self._track_angle_change(window_delta * C.DEG, t)

    def record_step(self, omega: float, t: float, active: bool) -> float:
        """
        Push this step's attitude change into the rolling window.

        Args:
            omega: Attitude after the step (rad)
            t: Simulation time (s)
            active: Off the rail and before ejection

        Returns:
            Rolling angle change over the window (deg)
        """
        previous = math.fmod(self._previous_omega * C.DEG, 360.0)
        current = math.fmod(omega * C.DEG, 360.0)
        delta = current - previous
        if delta > 180.0:
            delta -= 360.0
        if delta < -180.0:
            delta += 360.0
        self.window.append(delta)
        self._previous_omega = omega

        total = float(np.sum(self.window))
        if active:
            self._track_angle_change(total, t)
        return total

    @property
    def rolling_change(self) -> float:
        return float(np.sum(self.window)) if self.window else 0.0

    def stability(self, torque_ok: bool = True) -> StabilityRecord:
        return StabilityRecord(
            max_angle_change=self.max_angle_change,
            max_absolute_angle=self.max_absolute_angle,
            is_angle_change_ok=self.is_angle_change_ok,
            is_absolute_angle_ok=self.is_absolute_angle_ok,
            is_torque_stable_ok=torque_ok,
        )


# =============================================================================
# Attitude rules
# =============================================================================

def is_special_launch_angle(launch_angle_deg: float) -> bool:
    return abs(launch_angle_deg) in C.SPECIAL_LAUNCH_ANGLES_DEG


def special_angle_offset(launch_angle_deg: float) -> float:
    """
    Attitude offset used in force and moment evaluation (rad).

    Non-zero only for launch angles of exactly ±4° and ±18°, signed by the
    launch angle.
    """
    if not is_special_launch_angle(launch_angle_deg):
        return 0.0
    return -C.SPECIAL_ANGLE_EPSILON if launch_angle_deg < 0 else C.SPECIAL_ANGLE_EPSILON


def relax_toward_launch_angle(omega: float, launch_omega: float) -> float:
    """Calm-air attitude update: ease back toward the rail angle."""
    if abs(omega - launch_omega) < C.ZERO_WIND_SNAP:
        return launch_omega
    rate = C.ZERO_WIND_RETURN_RATE
    return omega * (1.0 - rate) + launch_omega * rate


def parachute_restoring_torque(launch_omega: float, omega: float, deploying: bool) -> float:
    """
    Spring torque pulling the attitude back to the launch angle (N·m).

    While the canopy opens the pull is always applied with a smaller gain;
    under a full canopy it is applied outside a small deadband.
    """
    difference = launch_omega - omega
    if deploying:
        return difference * C.DEPLOYING_RETURN_GAIN
    if abs(difference) > C.PARACHUTE_RETURN_DEADBAND:
        return difference * C.PARACHUTE_RETURN_GAIN
    return 0.0


def apply_enhanced_attitude_control(omega: float, v: np.ndarray, wind_speed: float,
                                    thrust_ended: bool,
                                    config: SimulationConfig = None) -> float:
    """
    Ease the attitude toward the flight path (weathercocking).

    While coasting the target is the flight-path angle. Under thrust the
    rate grows with the wind, and with wind-angle limitation enabled the
    target is kept within 90° of the wind direction while heading upwind.

    Args:
        omega: Attitude (rad)
        v: Velocity [vx, vy] (m/s)
        wind_speed: Effective wind (m/s)
        thrust_ended: Motor has burnt out
        config: Simulation configuration

    Returns:
        New attitude (rad), changed by at most 0.2 rad
    """
    config = config or create_default_config()
    vx, vy = float(v[0]), float(v[1])
    flight_angle = math.atan2(vx, vy)
    speed = math.hypot(vx, vy)

    rate = min(C.ENHANCED_ADJUST_RATE_MAX, C.ENHANCED_ADJUST_RATE_PER_SPEED * speed)
    target = flight_angle

    if not thrust_ended:
        if abs(wind_speed) >= C.ENHANCED_CALM_WIND:
            wind_angle = 0.0 if wind_speed > 0 else math.pi
            upwind = (wind_speed < 0 and vx > 0) or (wind_speed > 0 and vx < 0)
            if upwind and config.wind_angle_limitation:
                if wind_speed < 0:
                    target = max(flight_angle, wind_angle - math.pi / 2)
                else:
                    target = min(flight_angle, wind_angle + math.pi / 2)
        wind_factor = min(C.ENHANCED_WIND_FACTOR_MAX,
                          abs(wind_speed) / C.ENHANCED_WIND_FACTOR_SCALE)
        rate *= 1.0 + wind_factor

    new_omega = omega * (1.0 - rate) + target * rate
    change = new_omega - omega
    if abs(change) > C.ENHANCED_MAX_CHANGE:
        return omega + math.copysign(C.ENHANCED_MAX_CHANGE, change)
    return new_omega
