"""
Mathematical and hardware constants for the X-drive chassis.
"""

import math

# Mathematical constants
PI = math.pi
TWO_PI = 2 * math.pi

# Conversion factors
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi

# Joystick / actuator command range (symmetric, integer units)
JOYSTICK_FULL_SCALE = 127
MOTOR_COMMAND_CEILING = 127

# Motor electrical scale (V5-style smart motor, millivolts at full command)
MOTOR_FULL_SCALE_MV = 12000.0

# Default drive shaping
DEFAULT_DEADBAND = 5
DEFAULT_SQUARE_INPUTS = True

# Open-loop motion primitives
DEFAULT_MOTION_SPEED = 100        # rpm
DEFAULT_TOLERANCE_DEG = 5.0       # wheel degrees
DEFAULT_POLL_INTERVAL_S = 0.01    # 10 ms between busy checks

# Heading sensor start-up
IMU_CALIBRATION_TIMEOUT_S = 2.5

# Wheel geometry
DEFAULT_WHEEL_DIAMETER_IN = 4.0
