"""
Field-centric rotation of drive intent.
"""

import math
import logging
from typing import Optional, Tuple

from ..devices.interfaces import HeadingSensor
from ..math.utils import heading_to_theta

logger = logging.getLogger(__name__)


def rotate_to_robot_frame(forward: float, strafe: float,
                          theta: float) -> Tuple[float, float]:
    """
    Rotate a field-frame (forward, strafe) command into the robot frame.

    Args:
        forward: Field-frame forward intent
        strafe: Field-frame rightward intent
        theta: Robot heading in radians, counter-clockwise positive

    Returns:
        (forward, strafe) in the robot frame
    """
    c = math.cos(theta)
    s = math.sin(theta)
    return forward * c - strafe * s, strafe * c + forward * s


def field_centric(forward: float, strafe: float,
                  heading_sensor: Optional[HeadingSensor],
                  enabled: bool) -> Tuple[float, float]:
    """
    Rotate intent by the current heading when possible.

    Falls back to pass-through when disabled, when no sensor is fitted or
    while the sensor is calibrating.
    """
    if not enabled or heading_sensor is None:
        return forward, strafe
    if not heading_sensor.is_ready():
        logger.debug("Heading sensor not ready, field-centric drive bypassed")
        return forward, strafe

    theta = heading_to_theta(heading_sensor.heading_degrees())
    return rotate_to_robot_frame(forward, strafe, theta)
