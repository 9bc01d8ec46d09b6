"""
Model Rocket Flight Simulation - Type Definitions

This module provides TypedDict definitions for the breakdown records
returned by the aerodynamic and force helpers.
"""

from typing import TypedDict

import numpy as np
from numpy.typing import NDArray


class ProjectedAreas(TypedDict):
    """Return type for projected-area computation (all m²)."""
    frontal_area: float  # Looking down the axis: body disc plus fin edges
    side_area: float  # Body + nose silhouette + visible fins
    nose_area: float  # Nose silhouette
    fin_area: float  # One fin as seen from the side
    total_fin_area: float  # Fins visible from the side (always two)
    angled_area: float  # 45° view approximation


class Volumes(TypedDict):
    """Return type for airframe volumes (all m³)."""
    body_volume: float
    nose_volume: float
    total_volume: float


class CenterOfPressure(TypedDict):
    """Return type for the area-weighted center of pressure (mm from nose tip)."""
    nose_cp: float
    body_cp: float
    fin_cp: float
    center_of_pressure: float
    fore_body_cp: float  # Nose and body only


class StaticMargins(TypedDict):
    """Return type for static margins (calibers)."""
    standard: float  # Using the area-weighted CP
    stability: float  # Using the normal-force weighted CP


class ForceBreakdown(TypedDict):
    """Return type for a phase force model (N, x horizontal, y vertical)."""
    total: NDArray[np.float64]  # Net force [Fx, Fy]
    thrust: float  # Thrust magnitude (N)
    body_drag: float  # Axial drag magnitude (N)
    crosswind_drag: float  # Signed crosswind drag (N)
    model: str  # Force model name


class StatisticSummary(TypedDict):
    """Return type for sweep statistics."""
    mean: float
    std: float
    min: float
    max: float
