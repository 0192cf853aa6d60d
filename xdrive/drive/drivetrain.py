"""
Drivetrain context object.

XDrive owns the four wheel motors, the optional heading sensor and the drive
configuration. One instance is built at start-up and passed to the control
loop and the motion sequencer; there is no module-level hardware state.
"""

import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from .shaping import deadband, shape
from .field_centric import field_centric
from .mixer import WheelCommand, WHEEL_NAMES, mix, normalize
from ..devices.interfaces import Motor, HeadingSensor
from ..math.constants import (DEFAULT_DEADBAND, DEFAULT_SQUARE_INPUTS,
                              MOTOR_COMMAND_CEILING, JOYSTICK_FULL_SCALE,
                              IMU_CALIBRATION_TIMEOUT_S, DEFAULT_POLL_INTERVAL_S,
                              DEFAULT_TOLERANCE_DEG)
from ..math.utils import heading_to_theta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveConfig:
    """
    Fixed drivetrain configuration.

    Attributes:
        deadband: Joystick deadband threshold
        square_inputs: Enable signed-square response curve
        ceiling: Actuator command ceiling
        full_scale: Joystick full-scale value used by the response curve
        reversed: Per-wheel direction flags (FL, FR, BL, BR)
        imu_calibration_timeout: Max seconds initialize() waits for the IMU
        poll_interval: Seconds between busy checks in motion primitives
        tolerance_deg: Completion margin for motion primitives (wheel degrees)
    """

    deadband: float = DEFAULT_DEADBAND
    square_inputs: bool = DEFAULT_SQUARE_INPUTS
    ceiling: float = MOTOR_COMMAND_CEILING
    full_scale: float = JOYSTICK_FULL_SCALE
    reversed: Tuple[bool, bool, bool, bool] = (False, True, False, True)
    imu_calibration_timeout: float = IMU_CALIBRATION_TIMEOUT_S
    poll_interval: float = DEFAULT_POLL_INTERVAL_S
    tolerance_deg: float = DEFAULT_TOLERANCE_DEG

    def __post_init__(self):
        if self.deadband < 0:
            raise ValueError("deadband must be non-negative")
        if self.ceiling <= 0:
            raise ValueError("ceiling must be positive")
        if self.full_scale <= 0:
            raise ValueError("full_scale must be positive")
        if len(self.reversed) != 4:
            raise ValueError("reversed must hold four flags (FL, FR, BL, BR)")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.tolerance_deg < 0:
            raise ValueError("tolerance_deg must be non-negative")
        object.__setattr__(self, "reversed", tuple(bool(r) for r in self.reversed))


class XDrive:
    """
    Holonomic X-configuration drivetrain.

    Args:
        motors: Four motors in FL, FR, BL, BR order
        heading_sensor: Optional IMU used for field-centric drive
        config: Drive configuration
    """

    def __init__(self, motors: Sequence[Motor],
                 heading_sensor: Optional[HeadingSensor] = None,
                 config: Optional[DriveConfig] = None):
        if len(motors) != 4:
            raise ValueError(f"X-drive needs 4 motors, got {len(motors)}")
        self.config = config or DriveConfig()
        self.motor_list = list(motors)
        self.motors: Dict[str, Motor] = dict(zip(WHEEL_NAMES, self.motor_list))
        self.heading_sensor = heading_sensor

        # Serializes four-wheel writes so a tick is one logical update
        self._write_lock = threading.Lock()
        self.last_command = WheelCommand()

        # Statistics
        self.drive_count = 0

    def initialize(self, sleep: Callable[[float], None] = time.sleep) -> bool:
        """
        Wait for the heading sensor to finish calibrating.

        Returns:
            True if the heading sensor is ready (or none is fitted)
        """
        if self.heading_sensor is None:
            logger.info("X-drive initialized without heading sensor")
            return True

        step = 0.01
        attempts = int(round(self.config.imu_calibration_timeout / step))
        for _ in range(attempts):
            if self.heading_sensor.is_ready():
                logger.info("X-drive initialized, heading sensor ready")
                return True
            sleep(step)

        ready = self.heading_sensor.is_ready()
        if not ready:
            logger.warning("Heading sensor still calibrating after %.1fs, "
                           "field-centric drive disabled until ready",
                           self.config.imu_calibration_timeout)
        return ready

    def heading_degrees(self) -> float:
        """Compass heading if the sensor is ready, else 0."""
        if self.heading_sensor is not None and self.heading_sensor.is_ready():
            return self.heading_sensor.heading_degrees()
        return 0.0

    def heading_theta(self) -> Optional[float]:
        """Field-frame heading (radians, CCW) or None if unavailable."""
        if self.heading_sensor is None or not self.heading_sensor.is_ready():
            return None
        return heading_to_theta(self.heading_sensor.heading_degrees())

    def shape_intent(self, forward, strafe, rotate) -> Tuple[float, float, float]:
        """Deadband and response-curve shaping of the three intent axes."""
        cfg = self.config
        return tuple(shape(deadband(v, cfg.deadband), cfg.square_inputs, cfg.full_scale)
                     for v in (forward, strafe, rotate))

    def drive(self, forward, strafe, rotate, field_centric_enabled: bool = False) -> WheelCommand:
        """
        Run one control tick: shape, rotate, mix, normalize and write.

        Args:
            forward: Forward intent (joystick units)
            strafe: Rightward intent
            rotate: Clockwise intent
            field_centric_enabled: Interpret forward/strafe in the field frame

        Returns:
            Normalized WheelCommand that was written
        """
        df, ds, dr = self.shape_intent(forward, strafe, rotate)
        df, ds = field_centric(df, ds, self.heading_sensor, field_centric_enabled)
        command = normalize(mix(df, ds, dr), self.config.ceiling)
        self.write(command)
        self.drive_count += 1
        return command

    def write(self, command: WheelCommand):
        """Send all four wheel commands as a single update."""
        values = command.truncated()
        with self._write_lock:
            for motor, value in zip(self.motor_list, values):
                motor.move(value)
            self.last_command = command
        logger.debug("Drive write %s", command)

    def stop(self):
        """Command all wheels to zero."""
        self.write(WheelCommand())

    def run_locked(self, action: Callable[[Motor, int], None]):
        """Apply action(motor, index) to every wheel under the write lock."""
        with self._write_lock:
            for index, motor in enumerate(self.motor_list):
                action(motor, index)
