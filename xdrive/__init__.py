"""
Holonomic X-drive control and two-wheel + IMU odometry.

This package provides platform-independent implementations of:
- Joystick shaping, field-centric rotation, X-drive mixing and normalization
- Open-loop autonomous motion primitives
- Tracking wheel + heading dead reckoning
- Simulated actuators and sensors
"""

import time

__version__ = "1.0.0"
__author__ = "DR Vehicle Team"

from .drive import XDrive, DriveConfig, WheelCommand
from .motion import MotionSequencer, MotionKind, MotionStatus
from .odometry import Pose, OdometryConfig, TwoWheelImuOdometry, OdometryTracker
from .math import normalize_angle
from .devices.simulated import (SimulatedMotor, SimulatedHeadingSensor,
                                SimulatedTrackingWheel)

__all__ = [
    "XDrive",
    "DriveConfig",
    "WheelCommand",
    "MotionSequencer",
    "MotionKind",
    "MotionStatus",
    "Pose",
    "OdometryConfig",
    "TwoWheelImuOdometry",
    "OdometryTracker",
    "normalize_angle",
    "SimulatedMotor",
    "SimulatedHeadingSensor",
    "SimulatedTrackingWheel",
    "build_simulated_drive",
]


def build_simulated_drive(config=None, heading_deg=0.0, clock=None, stalled=False):
    """
    Build an XDrive wired to simulated motors and a simulated IMU.

    Args:
        config: DriveConfig (defaults used if None)
        heading_deg: Initial compass heading of the simulated IMU
        clock: Time source for the simulated motors
        stalled: Build motors that never reach relative targets

    Returns:
        XDrive instance
    """
    config = config or DriveConfig()
    clock = clock or time.monotonic
    motors = [SimulatedMotor(port, reversed=rev, clock=clock, stalled=stalled)
              for port, rev in zip((1, 2, 3, 4), config.reversed)]
    return XDrive(motors, SimulatedHeadingSensor(heading_deg), config)
