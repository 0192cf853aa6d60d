"""
Actuator and sensor capability interfaces plus their simulated variants.
"""

from .interfaces import Motor, HeadingSensor, TrackingWheel, DeviceError
from .simulated import (SimulatedMotor, SimulatedHeadingSensor,
                        SimulatedTrackingWheel)

__all__ = ["Motor", "HeadingSensor", "TrackingWheel", "DeviceError",
           "SimulatedMotor", "SimulatedHeadingSensor", "SimulatedTrackingWheel"]
