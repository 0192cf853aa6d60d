"""
Hardware drivers for Raspberry Pi platform.
"""

from .mpu6050_driver import MPU6050HeadingSensor
from .motor_board import MotorBoard, SerialMotor, SerialTrackingWheel

__all__ = ["MPU6050HeadingSensor", "MotorBoard", "SerialMotor", "SerialTrackingWheel"]
