"""
Model Rocket Flight Simulation - Constants

This module defines the physical constants, component catalogs and
simulation limits used throughout the engine.

All lengths supplied by the designer are in millimeters and all masses in
grams; the engine converts to SI internally. Angles are measured from the
vertical, clockwise (toward +x) positive.
"""

import math


# =============================================================================
# PHYSICAL CONSTANTS
# =============================================================================

G0 = 9.81            # Gravitational acceleration (m/s²)
RHO_AIR = 1.225      # Sea-level air density (kg/m³)

LAUNCH_RAIL_LENGTH = 0.65   # m


def mm_to_m(value_mm: float) -> float:
    """Convert millimeters to meters."""
    return value_mm / 1000.0


def g_to_kg(value_g: float) -> float:
    """Convert grams to kilograms."""
    return value_g / 1000.0


# =============================================================================
# SIMULATION TIMING
# =============================================================================

DT = 0.02                    # Translational step (s)
ANGLE_STEPS_PER_UPDATE = 10  # Translational steps per rotational update
ANGLE_RESPONSE_DT = DT * ANGLE_STEPS_PER_UPDATE  # Rotational step dt2 (s)
MAX_TIME = 20.0              # Simulated time cap (s)
GRACE_TIME = 0.1             # Ground contact ignored before this time (s)

LANDING_DT = 0.05            # Landing predictor step (s)
LANDING_TERMINAL_VELOCITY = 5.0      # Assumed descent rate without a canopy (m/s)
LANDING_MIN_TERMINAL_VELOCITY = 0.5  # m/s
LANDING_TIME_BUDGET_FACTOR = 3.0     # Budget = factor × height / descent rate

# =============================================================================
# MOTOR CATALOG
# =============================================================================
# Thrust samples (N), one per THRUST_SAMPLE_INTERVAL. Lookups go by simulated
# time, so the curve is independent of the integration step. The number after
# the dash in the designation is the parachute ejection delay in seconds.

THRUST_SAMPLE_INTERVAL = 0.02   # s

MOTOR_THRUST_DATA = {
    '1/2A6-2': (
        0.000, 0.445, 0.891, 1.336, 1.782, 2.227, 2.673, 3.118, 3.564, 4.009,
        4.455, 3.345, 2.236, 2.012, 1.789, 1.565, 1.341, 1.118, 1.118, 1.118,
        1.118, 1.118, 1.118, 1.118, 1.118, 1.118, 1.118, 1.118, 1.118, 1.118,
        0.894, 0.671, 0.447, 0.224,
    ),
    'A8-3': (
        0.000, 0.891, 1.782, 2.673, 3.564, 4.455, 5.345, 6.236, 7.127, 8.018,
        8.909, 9.800, 6.900, 4.000, 3.600, 3.200, 2.800, 2.400, 2.400, 2.400,
        2.400, 2.400, 2.400, 2.400, 2.400, 2.400, 2.400, 2.400, 2.400, 2.400,
        2.400, 2.400, 2.400, 1.600, 0.800,
    ),
    'B6-4': (
        0.000, 1.782, 3.564, 5.345, 7.127, 8.909, 10.691, 12.473, 14.255, 16.036,
        17.818, 19.600, 13.800, 8.000, 7.200, 6.400, 5.600, 4.800, 4.800, 4.800,
        4.800, 4.800, 4.800, 4.800, 4.800, 4.800, 4.800, 4.800, 4.800, 4.800,
        4.800, 3.200, 1.600,
    ),
}

DEFAULT_MOTOR = 'A8-3'

# =============================================================================
# PARACHUTE CATALOG
# =============================================================================

PARACHUTE_SIZES = {      # Canopy diameter (mm)
    'φ180': 180,
    'φ250': 250,
    'φ300': 300,
    'φ600': 600,
    'φ900': 900,
}

DEFAULT_PARACHUTE = 'φ300'

PARACHUTE_DEPLOY_TIME = 1.0        # Ejection to full canopy (s)
PARACHUTE_SHOCK_FACTOR = 0.1       # Velocity retained at full deployment
PARACHUTE_CD = 0.775               # Canopy drag coefficient
PARACHUTE_AREA_FACTOR = 0.785      # Crosswind area factor (≈ π/4)
PARACHUTE_RETURN_GAIN = 0.001      # Restoring torque gain, canopy open (N·m/rad)
PARACHUTE_RETURN_DEADBAND = 0.01   # rad
DEPLOYING_RETURN_GAIN = 0.0005     # Restoring torque gain, canopy opening (N·m/rad)
DEPLOYING_LINEAR_DRAG = 0.1        # Linear drag while the canopy opens (N·s/m)

# =============================================================================
# FIN MATERIALS
# =============================================================================

FIN_MATERIALS = {
    # name: (Young's modulus E (Pa), shear modulus G (Pa), density (kg/m³))
    'light_balsa': (2.45e9, 85.75e6, 60.0),
    'balsa': (3.0e9, 120e6, 125.0),
    'light_veneer': (8.0e9, 450e6, 500.0),
}

# =============================================================================
# NOSE SHAPES
# =============================================================================

NOSE_SHAPES = {
    # name: (drag coefficient, CP fraction of nose length,
    #        volume coefficient, side silhouette coefficient)
    'cone': (0.83, 0.666, 1.0 / 3.0, 0.5),
    'parabola': (0.70, 0.614, 0.5, 2.0 / 3.0),
    'ogive': (0.61, 0.575, 2.0 / 3.0, 2.0 / 3.0),
}

# =============================================================================
# WIND PROFILES
# =============================================================================

WIND_PROFILES = {        # Power-law terrain exponent alpha
    'uniform': 0.0,
    'openSea': 0.12,
    'farmland': 0.2,
    'suburban': 0.3,
    'urban': 0.4,
}

WIND_REFERENCE_HEIGHT = 1.5    # m (anemometer height)
WIND_MAX_MULTIPLIER = 3.0

# =============================================================================
# AERODYNAMIC COEFFICIENTS
# =============================================================================

CROSSWIND_CD = 0.25              # Body crosswind drag coefficient
LIFT_SLOPE = 0.6                 # Lift moment coefficient per rad of AoA
FLAT_PLATE_CD = 1.28             # Fin pressure coefficient
FIN_WIND_FACTOR = 0.05           # Fin wind load factor
BODY_WIND_CD = 0.23              # Body wind load coefficient
FIN_DRAG_SLOPE = 0.3 / (5 * 3.14 / 180)   # Fin lean drag per rad of AoA

FLUTTER_LIFT_SLOPE = 3.44        # ∂Cl/∂α used by the flutter model
FLUTTER_EPSILON = 0.25           # Elastic axis to AC distance / half chord

SIN_60 = 0.866                   # Side projection of a fin at 120° spacing
SQRT_3 = 1.732

# =============================================================================
# LIMITS AND THRESHOLDS
# =============================================================================

MAX_SPEED = 100.0                  # m/s
MAX_ANGULAR_VELOCITY = 5.0         # rad/s
MAX_WINDOW_ANGULAR_VELOCITY = 3.0  # rad/s, applied at each rotational update
MAX_VELOCITY_SQUARED = 10000.0     # (m/s)², moment formula cap
MAX_MOMENT_WIND = 25.0             # m/s, moment formula cap

TORQUE_CLAMP = 1.0                 # N·m
TORQUE_ABORT_THRESHOLD = 10.0      # N·m
MIN_THRUST_MOMENT = 1e-5           # N·m

MAX_ANGLE_CHANGE_DEG = 45.0        # Per rotational window
MAX_ABSOLUTE_ANGLE_DEG = 112.5

ZERO_WIND_THRESHOLD = 0.1          # m/s
POWERED_TORQUE_MIN_SPEED = 1.0     # m/s
COAST_TORQUE_MIN_SPEED = 0.5       # m/s
DEFLECTION_MIN_SPEED = 5.0         # m/s
SMALL_VELOCITY_TOL = 1e-3          # m/s
TIME_TOLERANCE = 1e-9              # s, absorbs float error in step * dt

MIN_MASS = 1e-6                    # kg
MIN_MOMENT_OF_INERTIA = 1e-6       # kg·m²

ZERO_WIND_RETURN_RATE = 0.005      # Attitude relaxation toward launch angle
ZERO_WIND_SNAP = 1e-4              # rad

# Observed special case: launch angles of exactly ±4° and ±18°.
SPECIAL_LAUNCH_ANGLES_DEG = (4.0, 18.0)
SPECIAL_ANGLE_EPSILON = 0.01       # rad
SPECIAL_ANGLE_COAST_TORQUE_GAIN = 1.2

# Enhanced attitude control
ENHANCED_ADJUST_RATE_MAX = 0.05
ENHANCED_ADJUST_RATE_PER_SPEED = 0.002
ENHANCED_WIND_FACTOR_MAX = 0.8
ENHANCED_WIND_FACTOR_SCALE = 6.0
ENHANCED_MAX_CHANGE = 0.2          # rad per step
ENHANCED_CALM_WIND = 0.5           # m/s

# Structural checks
FIN_DEFLECTION_CAP_MM = 15.0
FIN_DEFLECTION_MIN_MM = 0.01
FIN_DEFLECTION_MAX_SPEED = 300.0   # m/s
FIN_TAPER_LIMIT = 0.9
DEFLECTION_RATIO_LIMIT = 3.0       # % of fin height
DIVERGENCE_SPEED_RANGE = (20.0, 300.0)
FLUTTER_SPEED_RANGE = (30.0, 400.0)

# =============================================================================
# INPUT RANGES
# =============================================================================

LAUNCH_ANGLE_RANGE = (-30.0, 30.0)   # deg
WIND_SPEED_RANGE = (-8.0, 8.0)       # m/s

DEG = 180.0 / math.pi
