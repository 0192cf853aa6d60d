"""
Drive pipeline: shaping, field-centric rotation, mixing and normalization.
"""

from .shaping import deadband, signed_square, shape
from .field_centric import rotate_to_robot_frame, field_centric
from .mixer import (WheelCommand, WHEEL_NAMES, STRAIGHT, STRAFE, ROTATE,
                    mix, unmix, normalize, inches_to_wheel_degrees)
from .drivetrain import DriveConfig, XDrive

__all__ = ["deadband", "signed_square", "shape", "rotate_to_robot_frame",
           "field_centric", "WheelCommand", "WHEEL_NAMES", "STRAIGHT", "STRAFE",
           "ROTATE", "mix", "unmix", "normalize", "inches_to_wheel_degrees",
           "DriveConfig", "XDrive"]
