"""
X-drive inverse kinematics and ratio-preserving command normalization.

Sign convention (robot frame): +forward is forward, +strafe is to the right
and +rotate is clockwise. Wheel order everywhere is FL, FR, BL, BR.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ..math.constants import MOTOR_COMMAND_CEILING, DEFAULT_WHEEL_DIAMETER_IN

WHEEL_NAMES = ("FL", "FR", "BL", "BR")

# Relative-displacement sign patterns for open-loop primitives
STRAIGHT = (1, 1, 1, 1)
STRAFE = (1, -1, -1, 1)
ROTATE = (1, -1, 1, -1)


@dataclass
class WheelCommand:
    """Four wheel commands in FL, FR, BL, BR order."""

    front_left: float = 0.0
    front_right: float = 0.0
    back_left: float = 0.0
    back_right: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.front_left, self.front_right,
                self.back_left, self.back_right)

    def max_magnitude(self) -> float:
        return max(abs(v) for v in self.as_tuple())

    def scaled(self, k: float) -> 'WheelCommand':
        return WheelCommand(*(v * k for v in self.as_tuple()))

    def truncated(self) -> Tuple[int, int, int, int]:
        """Integer commands as sent to the actuators (truncation toward zero)."""
        return tuple(int(v) for v in self.as_tuple())

    def __str__(self) -> str:
        return (f"WheelCommand(FL={self.front_left:.1f}, FR={self.front_right:.1f}, "
                f"BL={self.back_left:.1f}, BR={self.back_right:.1f})")


def mix(forward: float, strafe: float, rotate: float) -> WheelCommand:
    """
    Compute raw wheel commands for a symmetric X-drive.

    Args:
        forward: Forward intent
        strafe: Rightward intent
        rotate: Clockwise intent

    Returns:
        Unsaturated WheelCommand
    """
    return WheelCommand(
        front_left=forward + strafe + rotate,
        front_right=forward - strafe - rotate,
        back_left=forward - strafe + rotate,
        back_right=forward + strafe - rotate,
    )


def unmix(command: WheelCommand) -> Tuple[float, float, float]:
    """
    Recover (forward, strafe, rotate) from four wheel commands.

    Exact inverse of mix().
    """
    fl, fr, bl, br = command.as_tuple()
    forward = (fl + fr + bl + br) / 4.0
    strafe = (fl - fr - bl + br) / 4.0
    rotate = (fl - fr + bl - br) / 4.0
    return forward, strafe, rotate


def normalize(command: WheelCommand,
              ceiling: float = MOTOR_COMMAND_CEILING) -> WheelCommand:
    """
    Scale all four wheels together so none exceeds the ceiling.

    The ratio between wheels (the commanded direction) is preserved. If no
    wheel exceeds the ceiling the command is returned unchanged.
    """
    if ceiling <= 0:
        raise ValueError(f"ceiling must be positive, got {ceiling}")

    max_mag = max(command.max_magnitude(), ceiling)
    if max_mag > ceiling:
        return command.scaled(ceiling / max_mag)
    return command


def inches_to_wheel_degrees(inches: float,
                            wheel_diameter: float = DEFAULT_WHEEL_DIAMETER_IN) -> float:
    """Convert a linear wheel travel into wheel rotation degrees."""
    circumference = wheel_diameter * math.pi
    return (inches / circumference) * 360.0
