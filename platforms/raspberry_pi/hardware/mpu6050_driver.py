"""
MPU6050 gyro heading sensor for Raspberry Pi using I2C.

Heading is the integral of the bias-corrected Z-axis rate. With the sensor
mounted flat and Z up, a positive rate is a counter-clockwise turn; the
reported compass heading grows clockwise.
"""

import time
import logging
from typing import Callable, Optional

import smbus2

from xdrive.devices.interfaces import HeadingSensor, DeviceError
from xdrive.math.utils import wrap_degrees

logger = logging.getLogger(__name__)

# MPU6050 Register Map
MPU6050_REG_PWR_MGMT_1 = 0x6B
MPU6050_REG_CONFIG = 0x1A
MPU6050_REG_GYRO_CONFIG = 0x1B
MPU6050_REG_GYRO_ZOUT_H = 0x47
MPU6050_REG_WHO_AM_I = 0x75

# Configuration values
MPU6050_CLOCK_PLL_XGYRO = 0x01
MPU6050_GYRO_FS_1000 = 0x10
MPU6050_DLPF_BW_42 = 0x03

MPU6050_GYRO_SCALE_1000DPS = 32.8   # LSB/°/s for ±1000°/s range


class MPU6050HeadingSensor(HeadingSensor):
    """
    Heading sensor built on an MPU6050 gyroscope.

    Args:
        i2c_address: I2C address of MPU6050 (default 0x68)
        i2c_bus: I2C bus number (default 1 for Raspberry Pi)
        bus: Already-open SMBus-like object (used instead of opening i2c_bus)
        clock: Time source in seconds
    """

    def __init__(self, i2c_address: int = 0x68, i2c_bus: int = 1, bus=None,
                 clock: Callable[[], float] = time.monotonic):
        self.i2c_address = i2c_address
        self.i2c_bus = i2c_bus
        self.bus = bus
        self.clock = clock
        self.initialized = False
        self.calibrating = False

        self.gyro_scale = MPU6050_GYRO_SCALE_1000DPS
        self.gyro_bias_dps = 0.0
        self.yaw_deg = 0.0            # counter-clockwise, unwrapped
        self._last_time: Optional[float] = None

        # Statistics
        self.sample_count = 0

    def initialize(self) -> bool:
        """
        Wake and configure the MPU6050.

        Returns:
            True if initialization successful
        """
        try:
            if self.bus is None:
                self.bus = smbus2.SMBus(self.i2c_bus)

            # Wake up the MPU6050 (it starts in sleep mode)
            self.bus.write_byte_data(self.i2c_address, MPU6050_REG_PWR_MGMT_1, 0x00)

            # Verify device is responding
            who_am_i = self.bus.read_byte_data(self.i2c_address, MPU6050_REG_WHO_AM_I)
            if who_am_i != 0x68:
                logger.error("MPU6050: wrong device ID 0x%02X, expected 0x68", who_am_i)
                return False

            self.bus.write_byte_data(self.i2c_address, MPU6050_REG_GYRO_CONFIG, MPU6050_GYRO_FS_1000)
            self.bus.write_byte_data(self.i2c_address, MPU6050_REG_CONFIG, MPU6050_DLPF_BW_42)
            self.bus.write_byte_data(self.i2c_address, MPU6050_REG_PWR_MGMT_1, MPU6050_CLOCK_PLL_XGYRO)
        except OSError as e:
            logger.error("MPU6050: initialization failed: %s", e)
            return False

        self.initialized = True
        logger.info("MPU6050: initialized on bus %d, address 0x%02X",
                    self.i2c_bus, self.i2c_address)
        return True

    def _bytes_to_int16(self, high_byte: int, low_byte: int) -> int:
        """Convert two bytes to signed 16-bit integer."""
        value = (high_byte << 8) | low_byte
        if value >= 32768:
            value -= 65536
        return value

    def read_rate_dps(self) -> float:
        """Raw Z-axis rate in degrees per second (bias not removed)."""
        if not self.initialized:
            raise DeviceError("MPU6050 not initialized")
        try:
            data = self.bus.read_i2c_block_data(self.i2c_address, MPU6050_REG_GYRO_ZOUT_H, 2)
        except OSError as e:
            raise DeviceError(f"MPU6050: failed to read gyroscope: {e}") from e
        return self._bytes_to_int16(data[0], data[1]) / self.gyro_scale

    def calibrate(self, samples: int = 200, interval: float = 0.005,
                  sleep: Callable[[float], None] = time.sleep) -> bool:
        """
        Estimate the gyro bias while the robot is stationary.

        The sensor reports not-ready for the duration.

        Returns:
            True if calibration successful
        """
        if samples <= 0:
            raise ValueError("samples must be positive")

        self.calibrating = True
        try:
            total = 0.0
            for _ in range(samples):
                total += self.read_rate_dps()
                sleep(interval)
            self.gyro_bias_dps = total / samples
        except DeviceError as e:
            logger.error("MPU6050: calibration failed: %s", e)
            return False
        finally:
            self.calibrating = False

        self.yaw_deg = 0.0
        self._last_time = self.clock()
        logger.info("MPU6050: gyro bias %.3f deg/s from %d samples",
                    self.gyro_bias_dps, samples)
        return True

    def update(self) -> float:
        """
        Integrate one gyro sample into the heading.

        Returns:
            Current compass heading in degrees
        """
        rate = self.read_rate_dps() - self.gyro_bias_dps
        now = self.clock()
        if self._last_time is not None:
            self.yaw_deg += rate * (now - self._last_time)
        self._last_time = now
        self.sample_count += 1
        return self.heading_degrees()

    def reset(self):
        """Zero the heading."""
        self.yaw_deg = 0.0
        self._last_time = self.clock()

    def is_ready(self) -> bool:
        return self.initialized and not self.calibrating and self._last_time is not None

    def heading_degrees(self) -> float:
        return wrap_degrees(-self.yaw_deg)

    def cleanup(self):
        """Cleanup resources."""
        if self.bus:
            try:
                self.bus.close()
            except OSError as e:
                logger.warning("MPU6050: close failed: %s", e)
        self.initialized = False
