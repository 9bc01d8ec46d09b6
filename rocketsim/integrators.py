"""
Model Rocket Flight Simulation - Numerical Integration

This module implements the explicit Euler translational step:
velocity first (with the speed cap), then position, either constrained
to the launch rail or free.
"""

import math

import numpy as np

from .config import SimulationConfig, create_default_config
from .state import SimulationState


def integrate_velocity(v: np.ndarray, a: np.ndarray, dt: float,
                       max_speed: float) -> np.ndarray:
    """
    v_new = v + a·dt, scaled back onto the speed cap if it exceeds it.

    Raises:
        ValueError: If dt <= 0
    """
    if dt <= 0:
        raise ValueError(f"Time step dt must be positive, got {dt}")
    v_new = np.asarray(v, dtype=np.float64) + np.asarray(a, dtype=np.float64) * dt
    speed = float(np.linalg.norm(v_new))
    if speed > max_speed:
        v_new = v_new * (max_speed / speed)
    return v_new


def rail_position(r: np.ndarray, v: np.ndarray, omega: float, previous_speed: float,
                  vertical: bool, dt: float, rail_length: float) -> np.ndarray:
    """
    Position while guided by the rail.

    A vertical rail keeps x at 0 and integrates height. An inclined rail
    advances the distance along the rail by the speed at the start of the
    step, capped at the rail length.
    """
    if vertical:
        return np.array([0.0, r[1] + v[1] * dt])
    distance = min(float(np.linalg.norm(r)) + previous_speed * dt, rail_length)
    return np.array([distance * math.sin(omega), distance * math.cos(omega)])


def free_position(r: np.ndarray, v: np.ndarray, dt: float) -> np.ndarray:
    return np.asarray(r, dtype=np.float64) + np.asarray(v, dtype=np.float64) * dt


def clamp_to_ground(r: np.ndarray, v: np.ndarray, t: float,
                    grace_time: float) -> tuple:
    """
    Keep the height non-negative.

    During the ignition grace window the pad also carries the rocket, so a
    downward velocity is cancelled.

    Returns:
        (r, v) tuple
    """
    if r[1] < 0.0:
        r = np.array([r[0], 0.0])
    if t < grace_time and v[1] < 0.0:
        v = np.array([v[0], 0.0])
    return r, v


def translational_step(state: SimulationState, acceleration: np.ndarray,
                       vertical_launch: bool,
                       config: SimulationConfig = None) -> SimulationState:
    """
    Advance velocity and position of the state by one step, in place.

    Args:
        state: Current state (velocity at the start of the step)
        acceleration: [ax, ay] (m/s²)
        vertical_launch: True for a 0° rail
        config: Simulation configuration

    Returns:
        The updated state
    """
    config = config or create_default_config()
    dt = config.dt
    previous_speed = state.speed

    v_new = integrate_velocity(state.v, acceleration, dt, config.max_speed)
    if state.on_rail:
        r_new = rail_position(state.r, v_new, state.omega, previous_speed,
                              vertical_launch, dt, config.launch_rail_length)
    else:
        r_new = free_position(state.r, v_new, dt)

    state.r, state.v = clamp_to_ground(r_new, v_new, state.t, config.grace_time)
    state.a = np.asarray(acceleration, dtype=np.float64)
    return state
