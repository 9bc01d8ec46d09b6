"""
Model Rocket Flight Simulation Package

A 2-D flight simulation of a single-stage model rocket: rail launch,
powered ascent, coast, parachute deployment and descent, with fin
structural checks and attitude stability monitoring.

Modules:
    - constants: Physical constants and component catalogs
    - config: Per-run simulation configuration
    - design: Validated rocket design and launch environment
    - wind: Power-law wind profile
    - aerodynamics: Areas, centers of pressure, margins, inertia, fin speeds
    - structures: Fin deflection and the flight verdict
    - moments: Aerodynamic moment model and torque evaluation
    - forces: Phase-specific force models
    - state: Simulation state and recorded samples
    - phases: Flight phase state machine and key points
    - attitude: Dual-rate rotational update and stability monitor
    - integrators: Explicit Euler translational step
    - main: Simulation entry point
    - landing: Landing prediction
    - sweep: Batch runs over launch angle and wind
"""

from .config import SimulationConfig, create_default_config, create_test_config
from .design import (
    Environment,
    RocketDesign,
    build_design,
    build_environment,
    default_design,
    default_environment,
    try_build_design,
    try_build_environment,
)
from .aerodynamics import AerodynamicProperties, compute_aerodynamic_properties
from .validation import DesignValidationError, FieldError, ValidationError
from .state import FlightSample, SimulationState, create_initial_state
from .phases import FlightPhase, KeyPoint, KeyPoints
from .main import FlightError, FlightResult, run_simulation
from .landing import LandingPrediction, predict_landing, run_simulation_with_landing
from .sweep import SweepCase, SweepResults, angle_wind_grid, run_sweep

__version__ = "1.0.0"

__all__ = [
    'SimulationConfig',
    'create_default_config',
    'create_test_config',
    'Environment',
    'RocketDesign',
    'build_design',
    'build_environment',
    'default_design',
    'default_environment',
    'try_build_design',
    'try_build_environment',
    'AerodynamicProperties',
    'compute_aerodynamic_properties',
    'DesignValidationError',
    'FieldError',
    'ValidationError',
    'FlightSample',
    'SimulationState',
    'create_initial_state',
    'FlightPhase',
    'KeyPoint',
    'KeyPoints',
    'FlightError',
    'FlightResult',
    'run_simulation',
    'LandingPrediction',
    'predict_landing',
    'run_simulation_with_landing',
    'SweepCase',
    'SweepResults',
    'angle_wind_grid',
    'run_sweep',
]
