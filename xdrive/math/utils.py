"""
Mathematical utility functions for drive control and dead reckoning.
"""

import math
from typing import Tuple

from .constants import PI, TWO_PI, DEG_TO_RAD, RAD_TO_DEG


def normalize_angle(angle: float) -> float:
    """
    Normalize angle to the (-pi, pi] range.

    Large inputs (e.g. accumulated over a long run) are reduced with fmod
    first, so the correction loops below run at most once each.

    Args:
        angle (float): Angle in radians

    Returns:
        float: Normalized angle in (-pi, pi]
    """
    if angle > PI or angle <= -PI:
        angle = math.fmod(angle, TWO_PI)
    while angle > PI:
        angle -= TWO_PI
    while angle <= -PI:
        angle += TWO_PI
    return angle


def wrap_degrees(degrees: float) -> float:
    """
    Wrap an angle in degrees to the [0, 360) range.

    Args:
        degrees (float): Angle in degrees

    Returns:
        float: Wrapped angle in [0, 360)
    """
    wrapped = degrees % 360.0
    # -1e-17 % 360.0 rounds to 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def heading_to_theta(heading_deg: float) -> float:
    """
    Convert a compass heading into a field-frame angle.

    Compass headings grow clockwise in [0, 360); field angles grow
    counter-clockwise in (-pi, pi].
    """
    return normalize_angle(-heading_deg * DEG_TO_RAD)


def theta_to_heading(theta: float) -> float:
    """Convert a field-frame angle (radians, CCW) to a compass heading in degrees."""
    return wrap_degrees(-theta * RAD_TO_DEG)


def rotate_vector(x: float, y: float, angle: float) -> Tuple[float, float]:
    """
    Rotate a 2D vector counter-clockwise by angle.

    Args:
        x, y: Vector components
        angle: Rotation in radians

    Returns:
        (x', y') rotated components
    """
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return cos_a * x - sin_a * y, sin_a * x + cos_a * y
