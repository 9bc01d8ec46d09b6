"""
Model Rocket Flight Simulation - Flight Phases

This module handles the state machine of a flight. It defines the discrete
phases and the transition logic between them.

Transitions are driven by time and position only:
  - Rail exit:         distance from the pad reaches the rail length
  - Burnout:           motor burn time (samples × dt) elapsed
  - Ejection:          burnout + motor delay
  - Canopy open:       ejection + 1 s, velocity cut to 10 %

Phases never move backwards.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum, auto
from typing import Optional

from . import constants as C
from .config import SimulationConfig, create_default_config
from .design import Motor
from .state import SimulationState

logger = logging.getLogger(__name__)


class FlightPhase(Enum):
    ON_RAIL = auto()
    POWERED_FREE = auto()
    COAST_FREE = auto()
    PARACHUTE_DEPLOYING = auto()
    PARACHUTE_DESCENDING = auto()

    @property
    def order(self) -> int:
        return self.value

    @property
    def is_free_flight(self) -> bool:
        return self in (FlightPhase.POWERED_FREE, FlightPhase.COAST_FREE)

    @property
    def is_parachute(self) -> bool:
        return self in (FlightPhase.PARACHUTE_DEPLOYING, FlightPhase.PARACHUTE_DESCENDING)


@dataclass(frozen=True)
class KeyPoint:
    """Snapshot of a notable instant."""
    time: float
    height: float
    speed: float          # Vertical speed at that instant (m/s)
    x: float = 0.0


@dataclass
class KeyPoints:
    """
    Named instants of a flight. Each is recorded at most once; later
    writes to an already recorded point are ignored.
    """
    thrust_end: Optional[KeyPoint] = None
    precursor_max_height: Optional[KeyPoint] = None
    max_height: Optional[KeyPoint] = None
    parachute_ejection: Optional[KeyPoint] = None
    parachute_active: Optional[KeyPoint] = None
    predicted_landing: Optional[KeyPoint] = None

    def record(self, name: str, point: KeyPoint) -> bool:
        """
        Record a key point if it has not been set yet.

        Returns:
            True if the point was stored
        """
        if name not in self.names():
            raise KeyError(f"Unknown key point: {name!r}")
        if getattr(self, name) is not None:
            return False
        setattr(self, name, point)
        logger.info(f"Key point {name}: t={point.time:.2f}s, h={point.height:.2f}m")
        return True

    @classmethod
    def names(cls):
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.names()}


class PhaseManager:
    """
    Tracks the current flight phase and the parachute timeline.
    """

    def __init__(self, motor: Motor, config: SimulationConfig = None):
        self.config = config or create_default_config()
        self.motor = motor
        self.burn_time = motor.burn_time
        self.ejection_time = self.burn_time + motor.ejection_delay
        self.active_time = self.ejection_time + C.PARACHUTE_DEPLOY_TIME
        self.current_phase = FlightPhase.ON_RAIL
        self.rail_exit_time: Optional[float] = None

    def get_phase(self) -> FlightPhase:
        return self.current_phase

    def is_burning(self, t: float) -> bool:
        return self.motor.is_burning(t)

    def update_rail(self, state: SimulationState) -> bool:
        """
        Update the rail flag. Once off the rail the rocket never re-enters it.

        Returns:
            True while the rocket is on the rail
        """
        if state.on_rail and state.distance_from_origin >= self.config.launch_rail_length:
            state.on_rail = False
            self.rail_exit_time = state.t
            logger.info(f"Rail exit at t={state.t:.2f}s, v={state.speed:.2f}m/s")
        return state.on_rail

    def update_parachute(self, state: SimulationState, key_points: KeyPoints) -> bool:
        """
        Advance the parachute timeline for the current step.

        Fires the ejection charge, ramps the deployment progress over the
        deploy time, and applies the opening shock when the canopy is full.

        Returns:
            True if the canopy opened during this step
        """
        t = state.t
        if not state.parachute_ejected and t >= self.ejection_time - C.TIME_TOLERANCE:
            state.parachute_ejected = True
            key_points.record('parachute_ejection', KeyPoint(t, state.y, state.vy, state.x))

        if state.parachute_ejected and not state.parachute_active:
            state.deployment_progress = min(
                1.0, (t - self.ejection_time) / C.PARACHUTE_DEPLOY_TIME)

        if not state.parachute_active and t >= self.active_time - C.TIME_TOLERANCE:
            state.parachute_active = True
            state.deployment_progress = 1.0
            state.v = state.v * C.PARACHUTE_SHOCK_FACTOR
            key_points.record('parachute_active', KeyPoint(t, state.y, state.vy, state.x))
            return True
        return False

    def resolve_phase(self, state: SimulationState) -> FlightPhase:
        """Phase implied by the current state."""
        if state.parachute_active:
            return FlightPhase.PARACHUTE_DESCENDING
        if state.parachute_ejected:
            return FlightPhase.PARACHUTE_DEPLOYING
        if state.on_rail:
            return FlightPhase.ON_RAIL
        if self.is_burning(state.t):
            return FlightPhase.POWERED_FREE
        return FlightPhase.COAST_FREE

    def update(self, state: SimulationState) -> FlightPhase:
        """
        Move to the phase implied by the state, never backwards.

        Returns:
            Current phase after the update
        """
        phase = self.resolve_phase(state)
        if phase.order > self.current_phase.order:
            logger.info(f"Phase transition at t={state.t:.2f}s: "
                        f"{self.current_phase.name} -> {phase.name}")
            self.current_phase = phase
        return self.current_phase
