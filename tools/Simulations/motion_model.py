"""
motion_model.py

This module defines the ground truth kinematic model of the simulated
X-drive chassis. Chassis intent recovered from the wheel commands is mapped
to physical velocities and integrated into a field-frame pose on a flat plane.

Classes:
ChassisState:
    Holds the true position and heading of the chassis and advances it from
    (forward, strafe, rotate) wheel-space intent.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from xdrive.math import normalize_angle
from xdrive.math.constants import JOYSTICK_FULL_SCALE


@dataclass
class ChassisState:
    """Ground truth pose of the simulated chassis.

    Attributes:
        x (float): Field X position in inches (right at theta = 0).
        y (float): Field Y position in inches (forward at theta = 0).
        theta (float): Heading in radians, counter-clockwise positive.
        max_speed (float): Translation speed at full command (inches/s).
        max_turn_rate (float): Turn rate at full command (rad/s).
    """
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0
    max_speed: float = 30.0
    max_turn_rate: float = math.pi

    def update(self, forward: float, strafe: float, rotate_cw: float,
               dt: float) -> Tuple[float, float, float]:
        """
        Advance the chassis by one time step.

        The wheel-space intent uses +rotate for clockwise turns, while the
        field frame uses counter-clockwise positive headings, so the turn
        rate is negated here. Position is integrated at the midpoint heading.

        Args:
            forward (float): Forward intent in joystick units.
            strafe (float): Rightward intent in joystick units.
            rotate_cw (float): Clockwise intent in joystick units.
            dt (float): Time step in seconds.

        Returns:
            dx_r (float): Rightward displacement in the robot frame (inches).
            dy_r (float): Forward displacement in the robot frame (inches).
            dtheta (float): Heading change in radians (CCW positive).
        """
        vy_r = forward / JOYSTICK_FULL_SCALE * self.max_speed
        vx_r = strafe / JOYSTICK_FULL_SCALE * self.max_speed
        omega = -rotate_cw / JOYSTICK_FULL_SCALE * self.max_turn_rate

        dx_r = vx_r * dt
        dy_r = vy_r * dt
        dtheta = omega * dt

        thm = self.theta + 0.5 * dtheta
        c, s = math.cos(thm), math.sin(thm)
        self.x += c * dx_r - s * dy_r
        self.y += s * dx_r + c * dy_r
        self.theta = normalize_angle(self.theta + dtheta)
        return dx_r, dy_r, dtheta
