"""
Simulated drivetrain devices.

These stand in for the hardware drivers in tests, in the simulation tool and
on a desktop without a robot attached. Motors advance toward relative-move
targets as the injected clock advances, so blocking motion primitives finish
in simulated time.
"""

import math
import time
from typing import Callable, Optional

from .interfaces import Motor, HeadingSensor, TrackingWheel
from ..math.constants import MOTOR_FULL_SCALE_MV, MOTOR_COMMAND_CEILING
from ..math.utils import wrap_degrees


class SimulatedMotor(Motor):
    """
    Motor mock that records the last command and models relative moves.

    Args:
        port: Port number (informational)
        reversed: Invert command and position sign
        clock: Time source in seconds
        stalled: If True, relative moves never make progress
    """

    def __init__(self, port: int, reversed: bool = False,
                 clock: Callable[[], float] = time.monotonic,
                 stalled: bool = False):
        super().__init__(port, reversed)
        self.clock = clock
        self.stalled = stalled

        self.last_cmd = 0          # after reversal, as seen by the motor
        self.sim_rpm = 0.0         # motor frame

        self._position = 0.0       # motor frame degrees
        self._target: Optional[float] = None
        self._speed_rpm = 0.0
        self._last_time = clock()

        # Statistics
        self.move_count = 0
        self.relative_moves = []

    def _advance(self):
        now = self.clock()
        dt = now - self._last_time
        self._last_time = now
        if self._target is None or self.stalled or dt <= 0:
            return
        step = self._speed_rpm * 6.0 * dt    # rpm -> deg/s
        remaining = self._target - self._position
        if abs(remaining) <= step:
            self._position = self._target
            self._target = None
            self.sim_rpm = 0.0
        else:
            self._position += step if remaining > 0 else -step

    def move(self, value: int) -> None:
        self._advance()
        self._target = None
        self.last_cmd = self._apply_direction(int(value))
        self.sim_rpm = self.last_cmd / MOTOR_COMMAND_CEILING * 200.0
        self.move_count += 1

    def move_relative(self, degrees: float, speed: int) -> None:
        self._advance()
        self.relative_moves.append((degrees, speed))
        self._target = self._position + self._apply_direction(degrees)
        self._speed_rpm = abs(speed)
        self.sim_rpm = math.copysign(abs(speed), self._target - self._position)

    def tare_position(self) -> None:
        self._advance()
        if self._target is not None:
            self._target -= self._position
        self._position = 0.0

    def get_position(self) -> float:
        self._advance()
        return self._apply_direction(self._position)

    def get_voltage(self) -> float:
        return self._apply_direction(self.last_cmd) / MOTOR_COMMAND_CEILING * MOTOR_FULL_SCALE_MV

    def get_actual_velocity(self) -> float:
        return self._apply_direction(self.sim_rpm)


class SimulatedHeadingSensor(HeadingSensor):
    """
    IMU mock holding an absolute compass heading.

    Calibration runs for a fixed time from construction (or the last
    start_calibration() call) on the injected clock; queries do not shorten it.

    Args:
        heading_deg: Initial compass heading
        calibration_time: Seconds the sensor reports calibrating
        present: If False, the sensor never becomes ready
        clock: Time source in seconds
    """

    def __init__(self, heading_deg: float = 0.0, calibration_time: float = 0.0,
                 present: bool = True, clock: Callable[[], float] = time.monotonic):
        self.heading_deg = wrap_degrees(heading_deg)
        self.present = present
        self.clock = clock
        self.start_calibration(calibration_time)

    def start_calibration(self, calibration_time: Optional[float] = None):
        """Restart the calibration window, optionally with a new length."""
        if calibration_time is not None:
            self.calibration_time = calibration_time
        self._calibration_start = self.clock()

    def reset(self):
        self.heading_deg = 0.0

    def is_ready(self) -> bool:
        if not self.present:
            return False
        return self.clock() - self._calibration_start >= self.calibration_time

    def heading_degrees(self) -> float:
        return self.heading_deg

    def set_heading(self, heading_deg: float):
        self.heading_deg = wrap_degrees(heading_deg)


class SimulatedTrackingWheel(TrackingWheel):
    """Tracking wheel mock whose distance is driven by the test or simulator."""

    def __init__(self, distance: float = 0.0):
        self.distance = distance

    def advance(self, delta: float):
        self.distance += delta

    def get_distance(self) -> float:
        return self.distance

    def reset(self) -> None:
        self.distance = 0.0
