"""
Wind profile model (power law over terrain class).
"""

from typing import Union

from . import constants as C
from .design import WindProfile


def wind_speed_at_height(base_speed: float, height: float,
                         profile: Union[WindProfile, str]) -> float:
    """
    Wind speed at a given height above the launch site.

    V(h) = V_ref * min(3, (h / 1.5)^alpha), with the reference measured at
    1.5 m. At or below ground level the base speed is returned unchanged.

    Args:
        base_speed: Wind at reference height (m/s), signed
        height: Height above ground (m)
        profile: Terrain class (enum or its string value)

    Returns:
        Effective wind speed (m/s), same sign as base_speed
    """
    if height <= 0.0:
        return base_speed

    alpha = WindProfile(profile).alpha
    if alpha == 0.0:
        return base_speed

    multiplier = (height / C.WIND_REFERENCE_HEIGHT) ** alpha
    return base_speed * min(multiplier, C.WIND_MAX_MULTIPLIER)


def wind_multiplier(height: float, profile: Union[WindProfile, str]) -> float:
    """Ratio of the wind at height to the reference wind."""
    if height <= 0.0:
        return 1.0
    alpha = WindProfile(profile).alpha
    return min((height / C.WIND_REFERENCE_HEIGHT) ** alpha, C.WIND_MAX_MULTIPLIER)
