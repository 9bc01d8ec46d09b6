"""
Model Rocket Flight Simulation - State

This module defines the mutable state advanced by the flight integrator
and the immutable sample recorded once per step.
"""

from dataclasses import asdict, dataclass, field

import numpy as np

from . import constants as C


@dataclass
class SimulationState:
    """
    State vector of one flight.

    Owned by the integrator for the duration of a run; callers only ever
    see immutable FlightSample snapshots.

    Attributes:
        r: Position [x, y] (m), x horizontal, y up
        v: Velocity [vx, vy] (m/s)
        a: Acceleration of the last step [ax, ay] (m/s²)
        omega: Attitude angle from vertical (rad), clockwise positive
        angular_velocity: rad/s
        angular_acceleration: rad/s²
        torque: Torque applied in the last step (N·m)
        t: Simulation time (s)
        parachute_ejected: Ejection charge has fired
        parachute_active: Canopy fully open
        deployment_progress: Canopy opening fraction [0, 1]
        fin_deflection: Fin tip deflection (mm)
        on_rail: Still guided by the launch rail
    """

    r: np.ndarray = field(default_factory=lambda: np.zeros(2))
    v: np.ndarray = field(default_factory=lambda: np.zeros(2))
    a: np.ndarray = field(default_factory=lambda: np.zeros(2))

    omega: float = 0.0
    angular_velocity: float = 0.0
    angular_acceleration: float = 0.0
    torque: float = 0.0

    t: float = 0.0

    parachute_ejected: bool = False
    parachute_active: bool = False
    deployment_progress: float = 0.0
    fin_deflection: float = 0.0
    on_rail: bool = True

    def __post_init__(self):
        """Ensure arrays are numpy arrays with correct dtype."""
        for attr in ['r', 'v', 'a']:
            setattr(self, attr, np.asarray(getattr(self, attr), dtype=np.float64))

    def copy(self) -> 'SimulationState':
        """Create a deep copy of the state."""
        return SimulationState(
            r=self.r.copy(),
            v=self.v.copy(),
            a=self.a.copy(),
            omega=self.omega,
            angular_velocity=self.angular_velocity,
            angular_acceleration=self.angular_acceleration,
            torque=self.torque,
            t=self.t,
            parachute_ejected=self.parachute_ejected,
            parachute_active=self.parachute_active,
            deployment_progress=self.deployment_progress,
            fin_deflection=self.fin_deflection,
            on_rail=self.on_rail,
        )

    @property
    def x(self) -> float:
        return float(self.r[0])

    @property
    def y(self) -> float:
        return float(self.r[1])

    @property
    def vx(self) -> float:
        return float(self.v[0])

    @property
    def vy(self) -> float:
        return float(self.v[1])

    @property
    def speed(self) -> float:
        """Magnitude of velocity (m/s)."""
        return float(np.linalg.norm(self.v))

    @property
    def distance_from_origin(self) -> float:
        return float(np.linalg.norm(self.r))

    @property
    def omega_degrees(self) -> float:
        return self.omega * C.DEG

    def __str__(self) -> str:
        """Human-readable state summary."""
        return (
            f"SimulationState(t={self.t:.2f}s, "
            f"x={self.x:.2f}m, y={self.y:.2f}m, "
            f"v={self.speed:.1f}m/s, "
            f"omega={self.omega_degrees:.1f}deg)"
        )


def create_initial_state(launch_angle_rad: float) -> SimulationState:
    """
    Create the state at ignition: at rest on the pad, pointing along the rail.

    Args:
        launch_angle_rad: Rail angle from vertical (rad)

    Returns:
        SimulationState
    """
    return SimulationState(omega=launch_angle_rad)


@dataclass(frozen=True)
class FlightSample:
    """
    One recorded row of a flight.

    Time is the start of the step; kinematic values are those at its end.
    """
    time: float
    x: float
    y: float
    vx: float
    vy: float
    ax: float
    ay: float
    speed: float
    acceleration: float
    omega: float
    omega_degrees: float
    angular_velocity: float
    angular_acceleration: float
    torque: float
    parachute_ejected: bool
    parachute_active: bool
    deployment_progress: float
    fin_deflection: float
    effective_wind_speed: float
    angle_change: float                 # Rolling window sum (deg)
    angle_deviation: float              # Attitude minus launch angle (deg)
    absolute_angle: float               # Normalized to [-180, 180] (deg)
    is_absolute_angle_ok: bool
    is_thrust_active: bool
    on_rail: bool
    phase: str
    angle_change_limit: float = C.MAX_ANGLE_CHANGE_DEG
    absolute_angle_limit: float = C.MAX_ABSOLUTE_ANGLE_DEG

    @property
    def height(self) -> float:
        return self.y

    @property
    def horizontal_distance(self) -> float:
        return abs(self.x)

    def as_dict(self) -> dict:
        return asdict(self)
