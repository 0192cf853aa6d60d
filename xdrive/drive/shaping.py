"""
Joystick input shaping: deadband and signed-square response curve.
"""

import math

from ..math.constants import JOYSTICK_FULL_SCALE


def deadband(value, threshold):
    """
    Force small inputs to zero.

    Args:
        value: Raw input
        threshold: Inputs with magnitude strictly below this become 0

    Returns:
        0 inside the band, value unchanged otherwise
    """
    return 0 if abs(value) < threshold else value


def signed_square(value, full_scale=JOYSTICK_FULL_SCALE):
    """
    Square the normalized input while keeping its sign.

    Fixed points at 0 and +/-full_scale; low deflections are compressed.
    """
    s = value / full_scale
    return math.copysign(s * s, s) * full_scale


def shape(value, square_inputs, full_scale=JOYSTICK_FULL_SCALE):
    """Apply the configured response curve."""
    if square_inputs:
        return signed_square(value, full_scale)
    return float(value)
