"""
Angle and unit helpers shared by the drivetrain and odometry code.
"""

from .utils import (normalize_angle, wrap_degrees, heading_to_theta,
                    theta_to_heading, rotate_vector)
from .constants import *

__all__ = ["normalize_angle", "wrap_degrees", "heading_to_theta",
           "theta_to_heading", "rotate_vector"]
