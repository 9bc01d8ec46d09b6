"""
Model Rocket Flight Simulation - Main Entry Point

This module implements the flight integrator:
- Fixed-step translational integration (dt = 0.02 s)
- Dual-rate rotational update (one window per 10 steps)
- Phase state machine from the rail to the parachute descent
- Torque abort and attitude stability monitoring
- Per-step sample recording and run summary

Coordinates: x horizontal, y up (m). Attitude is measured from the
vertical, clockwise (toward +x) positive.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from . import constants as C
from .aerodynamics import AerodynamicProperties, compute_aerodynamic_properties
from .attitude import (
    AttitudeMonitor,
    RotationalScheduler,
    StabilityRecord,
    apply_enhanced_attitude_control,
    is_special_launch_angle,
    parachute_restoring_torque,
    relax_toward_launch_angle,
    special_angle_offset,
)
from .config import SimulationConfig, create_default_config
from .design import Environment, RocketDesign
from .forces import (
    compute_acceleration,
    compute_coast_force,
    compute_deploying_force,
    compute_parachute_force,
    compute_powered_force,
    compute_rail_force,
)
from .integrators import translational_step
from .moments import TorqueEvaluation, compute_aerodynamic_torque
from .phases import FlightPhase, KeyPoint, KeyPoints, PhaseManager
from .state import FlightSample, SimulationState, create_initial_state
from .structures import FlightVerdict, compute_fin_deflection, evaluate_flight
from .validation import validate_state
from .wind import wind_speed_at_height

# Configure module logger
logger = logging.getLogger(__name__)

LANDED = "landed"
TIME_LIMIT = "time limit"
TORQUE_ABORT = "torque abort"


class FlightError(Exception):
    """
    Structured report of a run stopped by an abnormal torque.

    Carried on the FlightResult rather than raised, so callers can render
    a diagnostic next to the partial flight.
    """

    def __init__(self, error_type: str, message: str, time: float, velocity: float,
                 threshold: float, raw_torque: float, divergence_speed: float = 0.0,
                 flutter_speed: float = 0.0, components: Optional[dict] = None):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.time = time
        self.velocity = velocity
        self.threshold = threshold
        self.raw_torque = raw_torque
        self.divergence_speed = divergence_speed
        self.flutter_speed = flutter_speed
        self.components = dict(components or {})

    def as_dict(self) -> dict:
        return {
            'error_type': self.error_type,
            'message': self.message,
            'time': self.time,
            'velocity': self.velocity,
            'threshold': self.threshold,
            'raw_torque': self.raw_torque,
            'divergence_speed': self.divergence_speed,
            'flutter_speed': self.flutter_speed,
            'components': dict(self.components),
        }


@dataclass
class FlightResult:
    """Complete output of one flight."""
    samples: List[FlightSample]
    key_points: KeyPoints
    stability: StabilityRecord
    properties: AerodynamicProperties
    verdict: FlightVerdict
    termination_reason: str
    max_height: float = 0.0
    max_speed: float = 0.0
    max_distance: float = 0.0
    max_fin_deflection: float = 0.0
    error: Optional[FlightError] = None
    landing: Optional[Any] = None
    design: Optional[RocketDesign] = None
    environment: Optional[Environment] = None
    config: SimulationConfig = field(default_factory=create_default_config)
    steps: int = 0
    wall_time: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def final_sample(self) -> Optional[FlightSample]:
        return self.samples[-1] if self.samples else None

    @property
    def flight_time(self) -> float:
        """Simulated time of the last sample (s)."""
        return self.samples[-1].time if self.samples else 0.0

    @property
    def total_flight_time(self) -> float:
        if self.landing is not None:
            return self.landing.total_flight_time
        return self.flight_time

    def raise_for_error(self):
        if self.error is not None:
            raise self.error

    def sample_at(self, elapsed: float) -> Optional[FlightSample]:
        """
        Sample shown at a playback time: index floor(elapsed / dt), clamped
        into the recorded range.
        """
        if not self.samples:
            return None
        index = int(math.floor(max(0.0, elapsed) / self.config.dt + C.TIME_TOLERANCE))
        return self.samples[min(index, len(self.samples) - 1)]

    def column(self, name: str) -> np.ndarray:
        """One sample field over the whole flight as an array."""
        if name not in FlightSample.__dataclass_fields__ and name not in ('height',):
            raise KeyError(f"Unknown sample field: {name!r}")
        return np.array([getattr(s, name) for s in self.samples])

    def summary(self) -> str:
        lines = [
            "=" * 60,
            "FLIGHT SUMMARY",
            "=" * 60,
            f"Termination:        {self.termination_reason}",
            f"Flight time:        {self.flight_time:.2f} s",
            f"Max height:         {self.max_height:.2f} m",
            f"Max speed:          {self.max_speed:.2f} m/s",
            f"Max distance:       {self.max_distance:.2f} m",
            f"Max fin deflection: {self.max_fin_deflection:.4f} mm",
            "-" * 60,
            f"CP / AC:            {self.properties.center_of_pressure:.1f} / "
            f"{self.properties.aerodynamic_center:.1f} mm",
            f"Static margin:      {self.properties.standard_static_margin:.2f} "
            f"(stability {self.properties.stability_static_margin:.2f}) cal",
            f"Divergence speed:   {self.verdict.divergence_speed:.0f} m/s "
            f"[{'OK' if self.verdict.divergence_ok else 'NG'}]",
            f"Flutter speed:      {self.verdict.flutter_speed:.0f} m/s "
            f"[{'OK' if self.verdict.flutter_ok else 'NG'}]",
            f"Deflection ratio:   {self.verdict.deflection_ratio:.2f} % "
            f"[{'OK' if self.verdict.deflection_ok else 'NG'}]",
            f"Max angle change:   {self.stability.max_angle_change:.2f} deg "
            f"[{'OK' if self.stability.is_angle_change_ok else 'NG'}]",
            f"Max absolute angle: {self.stability.max_absolute_angle:.2f} deg "
            f"[{'OK' if self.stability.is_absolute_angle_ok else 'NG'}]",
            f"Torque:             [{'OK' if self.stability.is_torque_stable_ok else 'NG'}]",
            f"Overall:            {'SAFE' if self.verdict.is_safe else 'UNSAFE'}",
        ]
        if self.landing is not None:
            lines += [
                "-" * 60,
                f"Landing X:          {self.landing.landing_x:.2f} m"
                f"{' (predicted)' if self.landing.is_prediction else ''}",
                f"Total flight time:  {self.landing.total_flight_time:.2f} s",
            ]
        if self.error is not None:
            lines += ["-" * 60, f"ERROR: {self.error.message}"]
        lines.append("=" * 60)
        return "\n".join(lines)


class FlightIntegrator:
    """
    Advances one flight step by step.

    Owns the mutable state, the phase manager, the rotational scheduler and
    the stability monitor of a single run. Nothing is shared between
    instances apart from the memoized aerodynamic properties.
    """

    def __init__(self, design: RocketDesign, environment: Environment,
                 config: SimulationConfig = None):
        self.config = config or create_default_config()
        self.design = design
        self.environment = environment
        self.properties = compute_aerodynamic_properties(design)

        self.mass = design.mass_kg
        self.launch_angle = environment.launch_angle
        self.launch_omega = environment.launch_angle_rad
        self.vertical_launch = environment.launch_angle == 0
        self.special_angle = is_special_launch_angle(self.launch_angle)
        self.omega_offset = special_angle_offset(self.launch_angle)

        self.state = create_initial_state(self.launch_omega)
        self.phases = PhaseManager(environment.motor, self.config)
        self.scheduler = RotationalScheduler(self.properties.moment_of_inertia, self.config)
        self.monitor = AttitudeMonitor(self.launch_omega, self.config)
        self.key_points = KeyPoints()

        self.samples: List[FlightSample] = []
        self.max_height = 0.0
        self.max_speed = 0.0
        self.max_distance = 0.0
        self.max_fin_deflection = 0.0
        self._max_height_point: Optional[KeyPoint] = None
        self._thrust_ended = False

    # ------------------------------------------------------------------
    # Forces and torque
    # ------------------------------------------------------------------

    def _aerodynamic_torque(self, speed: float, omega: float, v: np.ndarray,
                            wind: float, min_speed: float) -> TorqueEvaluation:
        flight_angle = math.atan2(v[0], v[1])
        return compute_aerodynamic_torque(speed, omega, flight_angle, wind, self.design,
                                          self.properties, min_speed=min_speed,
                                          config=self.config)

    def _forces(self, phase: FlightPhase, v: np.ndarray, omega: float, wind: float):
        """
        Force and torque for the current phase.

        Returns:
            (force breakdown, torque, TorqueEvaluation or None)
        """
        t = self.state.t
        speed = float(np.linalg.norm(v))

        if phase == FlightPhase.PARACHUTE_DESCENDING:
            forces = compute_parachute_force(v, self.mass, wind, self.environment.parachute)
            return forces, parachute_restoring_torque(self.launch_omega, omega, False), None

        if phase == FlightPhase.PARACHUTE_DEPLOYING:
            forces = compute_deploying_force(v, self.mass, wind, self.design)
            return forces, parachute_restoring_torque(self.launch_omega, omega, True), None

        motor = self.environment.motor
        if motor.is_burning(t):
            thrust = motor.thrust_at(t)
            if self.state.on_rail:
                forces = compute_rail_force(thrust, omega, self.vertical_launch,
                                            self.mass, wind, self.design)
                return forces, 0.0, None
            forces = compute_powered_force(thrust, omega, v, self.mass, wind, self.design)
            evaluation = self._aerodynamic_torque(speed, omega, v, wind,
                                                  C.POWERED_TORQUE_MIN_SPEED)
            return forces, evaluation.torque, evaluation

        if not self._thrust_ended:
            self._thrust_ended = True
            self.key_points.record('thrust_end', KeyPoint(t, self.state.y, self.state.vy,
                                                          self.state.x))

        forces = compute_coast_force(v, self.mass, wind, self.design)
        evaluation = self._aerodynamic_torque(speed, omega, v, wind,
                                              C.COAST_TORQUE_MIN_SPEED)
        torque = evaluation.torque
        if self.special_angle and evaluation.reason is None:
            torque *= C.SPECIAL_ANGLE_COAST_TORQUE_GAIN
            torque = max(-self.config.torque_clamp, min(self.config.torque_clamp, torque))
        return forces, torque, evaluation

    def _torque_error(self, evaluation: TorqueEvaluation, speed: float) -> FlightError:
        t = self.state.t
        message = (f"Abnormal torque at t={t:.2f}s: raw torque "
                   f"{evaluation.raw:.6f} N·m exceeds ±{self.config.torque_abort_threshold} N·m "
                   f"(v={speed:.2f} m/s)")
        return FlightError(
            error_type="torque_exceeded",
            message=message,
            time=t,
            velocity=speed,
            threshold=self.config.torque_abort_threshold,
            raw_torque=evaluation.raw,
            divergence_speed=self.properties.fin_divergence_speed,
            flutter_speed=self.properties.fin_flutter_speed,
            components=evaluation.components,
        )

    # ------------------------------------------------------------------
    # One step
    # ------------------------------------------------------------------

    def step(self, t: float) -> Optional[FlightError]:
        """
        Advance the flight by one translational step starting at time t.

        Returns:
            FlightError if the step was aborted, else None
        """
        state = self.state
        config = self.config
        state.t = t

        # Forces use the velocity at the start of the step, before any
        # canopy opening shock.
        v_start = state.v.copy()
        self.phases.update_parachute(state, self.key_points)
        on_rail = self.phases.update_rail(state)
        phase = self.phases.update(state)

        speed = float(np.linalg.norm(v_start))
        wind = wind_speed_at_height(self.environment.wind_speed, state.y,
                                    self.environment.wind_profile)
        zero_wind = abs(wind) < config.zero_wind_threshold

        omega_eval = state.omega + self.omega_offset
        attitude_active = not on_rail and not state.parachute_ejected
        absolute_angle = self.monitor.check_absolute_angle(omega_eval, t, attitude_active)

        if speed > C.DEFLECTION_MIN_SPEED:
            state.fin_deflection = compute_fin_deflection(speed, self.design)
            self.max_fin_deflection = max(self.max_fin_deflection, state.fin_deflection)
        else:
            state.fin_deflection = 0.0

        forces, torque, evaluation = self._forces(phase, v_start, omega_eval, wind)

        if evaluation is not None and evaluation.exceeded:
            error = self._torque_error(evaluation, speed)
            logger.error(error.message)
            return error

        acceleration = compute_acceleration(forces['total'], self.mass)

        # Rotational channel
        state.torque = torque
        self.scheduler.add_torque(torque)
        increment, window_closed = self.scheduler.tick(t)
        if window_closed:
            self.monitor.check_window(self.scheduler.window_delta, t,
                                      not state.parachute_ejected)

        if config.physical_attitude_control:
            if zero_wind and not on_rail:
                state.omega = relax_toward_launch_angle(state.omega, self.launch_omega)
            else:
                state.omega += increment
            self.monitor.record_step(state.omega, t, attitude_active)

        if config.enhanced_attitude_control and not zero_wind and attitude_active:
            state.omega = apply_enhanced_attitude_control(
                state.omega, state.v, wind, self._thrust_ended, config)

        # Translational channel
        translational_step(state, acceleration, self.vertical_launch, config)

        state.angular_velocity = self.scheduler.clamp_angular_velocity(
            config.max_angular_velocity)
        state.angular_acceleration = self.scheduler.angular_acceleration
        validate_state(state, config.max_speed)

        self._update_maxima(t, v_start)
        self.samples.append(self._sample(t, phase, wind, absolute_angle))
        return None

    def _update_maxima(self, t: float, v_start: np.ndarray):
        state = self.state
        if state.y > self.max_height:
            self.max_height = state.y
            self._max_height_point = KeyPoint(t, state.y, state.vy, state.x)
        if (self.key_points.precursor_max_height is None and self._max_height_point is not None
                and v_start[1] > 0.0 >= state.vy):
            self.key_points.record('precursor_max_height', self._max_height_point)
        self.max_speed = max(self.max_speed, state.speed)
        self.max_distance = max(self.max_distance, abs(state.x))

    def _sample(self, t: float, phase: FlightPhase, wind: float,
                absolute_angle: float) -> FlightSample:
        state = self.state
        return FlightSample(
            time=t,
            x=state.x,
            y=state.y,
            vx=state.vx,
            vy=state.vy,
            ax=float(state.a[0]),
            ay=float(state.a[1]),
            speed=state.speed,
            acceleration=float(np.linalg.norm(state.a)),
            omega=state.omega,
            omega_degrees=state.omega_degrees,
            angular_velocity=state.angular_velocity,
            angular_acceleration=state.angular_acceleration,
            torque=state.torque,
            parachute_ejected=state.parachute_ejected,
            parachute_active=state.parachute_active,
            deployment_progress=state.deployment_progress,
            fin_deflection=state.fin_deflection,
            effective_wind_speed=wind,
            angle_change=self.monitor.rolling_change,
            angle_deviation=state.omega_degrees - self.launch_angle,
            absolute_angle=absolute_angle,
            is_absolute_angle_ok=self.monitor.is_absolute_angle_ok,
            is_thrust_active=t <= self.phases.burn_time,
            on_rail=state.on_rail,
            phase=phase.name.lower(),
            angle_change_limit=self.config.max_angle_change_deg,
            absolute_angle_limit=self.config.max_absolute_angle_deg,
        )

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def result(self, reason: str, error: Optional[FlightError] = None,
               steps: int = 0, wall_time: float = 0.0) -> FlightResult:
        if self._max_height_point is not None:
            self.key_points.record('max_height', self._max_height_point)
        stability = self.monitor.stability(torque_ok=error is None)
        verdict = evaluate_flight(self.design, self.properties, self.max_speed,
                                  self.max_fin_deflection, stability)
        return FlightResult(
            samples=self.samples,
            key_points=self.key_points,
            stability=stability,
            properties=self.properties,
            verdict=verdict,
            termination_reason=reason,
            max_height=self.max_height,
            max_speed=self.max_speed,
            max_distance=self.max_distance,
            max_fin_deflection=self.max_fin_deflection,
            error=error,
            design=self.design,
            environment=self.environment,
            config=self.config,
            steps=steps,
            wall_time=wall_time,
        )


def check_termination(state: SimulationState, next_time: float,
                      config: SimulationConfig) -> tuple:
    """
    Check if the simulation should terminate after a step.

    Args:
        state: State after the step
        next_time: Start time of the following step (s)
        config: Simulation configuration

    Returns:
        (should_terminate, reason) tuple
    """
    if state.y <= 0.0 and next_time >= config.grace_time - C.TIME_TOLERANCE:
        return True, LANDED
    if next_time >= config.max_time - C.TIME_TOLERANCE:
        return True, TIME_LIMIT
    return False, None


def run_simulation(design: RocketDesign, environment: Environment,
                   config: SimulationConfig = None) -> FlightResult:
    """
    Simulate one flight from ignition until landing or the time cap.

    Args:
        design: Validated rocket design
        environment: Validated launch environment
        config: SimulationConfig instance. If None a default is created.

    Returns:
        FlightResult. A torque abort stops the run early and is reported in
        result.error rather than raised.
    """
    if config is None:
        config = create_default_config()

    integrator = FlightIntegrator(design, environment, config)

    logger.info(f"Starting simulation: motor={environment.motor.designation}, "
                f"angle={environment.launch_angle}°, wind={environment.wind_speed}m/s "
                f"({environment.wind_profile.value}), dt={config.dt}s, "
                f"max_time={config.max_time}s")
    logger.debug(f"Initial state: {integrator.state}")

    start_time = time.time()
    step_count = 0
    last_print_time = 0.0
    error = None
    reason = TIME_LIMIT

    while True:
        t = step_count * config.dt
        error = integrator.step(t)
        if error is not None:
            reason = TORQUE_ABORT
            break
        step_count += 1

        if config.verbose and t - last_print_time >= 1.0:
            _print_status(integrator.state, integrator.phases.get_phase())
            last_print_time = t

        done, why = check_termination(integrator.state, step_count * config.dt, config)
        if done:
            reason = why
            break

    elapsed = time.time() - start_time
    result = integrator.result(reason, error, step_count, elapsed)
    _log_completion(result)
    return result


def _print_status(state: SimulationState, phase: FlightPhase):
    """Log a formatted status row."""
    msg = (f"{state.t:8.2f} | {state.y:8.2f} | {state.x:8.2f} | "
           f"{state.speed:8.2f} | {state.omega_degrees:8.2f} | {phase.name:<20}")
    logger.info(msg)


def _log_completion(result: FlightResult):
    """Log run statistics."""
    logger.info(f"Simulation complete ({result.termination_reason}): {result.steps} steps "
                f"in {result.wall_time:.3f}s")
    logger.info(f"Max height={result.max_height:.2f}m, max speed={result.max_speed:.2f}m/s, "
                f"max distance={result.max_distance:.2f}m, "
                f"max fin deflection={result.max_fin_deflection:.4f}mm")
    logger.info(f"Stability: angle change={result.stability.max_angle_change:.2f}° "
                f"({'OK' if result.stability.is_angle_change_ok else 'NG'}), "
                f"absolute angle={result.stability.max_absolute_angle:.2f}° "
                f"({'OK' if result.stability.is_absolute_angle_ok else 'NG'}), "
                f"torque {'OK' if result.stability.is_torque_stable_ok else 'NG'}")
