"""
Pose and odometry configuration types.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from ..math.utils import normalize_angle


@dataclass
class Pose:
    """
    Robot pose in the field frame.

    - x, y: Position in inches (x to the right, y forward at theta = 0)
    - theta: Heading in radians, counter-clockwise positive, in (-pi, pi]
    """

    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    def __post_init__(self):
        self.theta = normalize_angle(self.theta)

    def copy(self) -> 'Pose':
        """Create a copy of the pose."""
        return Pose(x=self.x, y=self.y, theta=self.theta)

    def distance_to(self, other: 'Pose') -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def __str__(self) -> str:
        return (f"Pose(x={self.x:.2f}, y={self.y:.2f}, "
                f"theta={self.theta:.3f} rad / {math.degrees(self.theta):.1f} deg)")


@dataclass(frozen=True)
class OdometryConfig:
    """
    Tracking wheel geometry.

    A wheel only senses rotation through the part of its mounting offset
    that is perpendicular to its rolling axis, so each wheel contributes one
    lever arm.

    Attributes:
        l_par: Lateral offset of the parallel (forward-measuring) wheel from
            the rotation center, inches, +left
        l_perp: Longitudinal offset of the perpendicular (sideways-measuring)
            wheel from the rotation center, inches, +rearward
        start: Initial pose
    """

    l_par: float = 0.0
    l_perp: float = 0.0
    start: Pose = field(default_factory=Pose)

    @classmethod
    def from_wheel_positions(cls, parallel_wheel, perpendicular_wheel,
                             start: Optional[Pose] = None) -> 'OdometryConfig':
        """
        Build the config from wheel mounting positions.

        Args:
            parallel_wheel: (x, y) of the parallel wheel in the robot frame,
                inches, x to the right and y forward
            perpendicular_wheel: (x, y) of the perpendicular wheel
            start: Initial pose (origin if None)
        """
        return cls(l_par=-float(parallel_wheel[0]),
                   l_perp=-float(perpendicular_wheel[1]),
                   start=start if start is not None else Pose())
