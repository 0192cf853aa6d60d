"""
Dead reckoning pose estimation.
"""

from .pose import Pose, OdometryConfig
from .estimator import TwoWheelImuOdometry, OdometryTracker

__all__ = ["Pose", "OdometryConfig", "TwoWheelImuOdometry", "OdometryTracker"]
