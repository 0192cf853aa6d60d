"""
Configuration manager for the Raspberry Pi X-drive controller.
"""

import copy
import json
import logging
import os
from typing import Dict, Any, Tuple

from xdrive.drive import DriveConfig
from xdrive.odometry import OdometryConfig, Pose

logger = logging.getLogger(__name__)

WHEELS = ("front_left", "front_right", "back_left", "back_right")


class Config:
    """Configuration manager for the X-drive system."""

    DEFAULT_CONFIG = {
        # Motor co-processor link
        "motor_serial_port": "/dev/ttyACM0",
        "motor_baud_rate": 115200,

        # Heading sensor
        "imu_enabled": True,
        "i2c_bus": 1,
        "mpu6050_address": 0x68,
        "imu_calibration_samples": 200,
        "imu_calibration_timeout_s": 2.5,

        # Motor ports and direction flags
        "ports": {
            "front_left": 1,
            "front_right": 2,
            "back_left": 3,
            "back_right": 4
        },
        "reversed": {
            "front_left": False,
            "front_right": True,
            "back_left": False,
            "back_right": True
        },

        # Driver input shaping
        "drive": {
            "deadband": 5,
            "square_inputs": True,
            "ceiling": 127,
            "field_centric": True,
            "loop_rate_hz": 100.0
        },

        # Open-loop autonomous moves
        "motion": {
            "speed": 100,
            "tolerance_deg": 5.0,
            "poll_interval_s": 0.01,
            "timeout_s": 5.0,
            "wheel_diameter_in": 4.0
        },

        # Tracking wheel odometry
        "odometry": {
            "l_par": 3.0,       # parallel wheel lateral offset, inches, +left
            "l_perp": 4.0,      # perpendicular wheel longitudinal offset, inches, +rearward
            "start": {"x": 0.0, "y": 0.0, "theta": 0.0},
            "parallel_channel": 0,
            "perpendicular_channel": 1,
            "wheel_diameter_in": 2.75,
            "ticks_per_rev": 360,
            "rate_hz": 100.0
        },

        # Output configuration
        "telemetry_rate_hz": 10.0,
        "status_rate_hz": 1.0,
        "log_level": "INFO"
    }

    def __init__(self, config_file: str = "config.json"):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        # Load configuration from file if it exists
        if os.path.exists(config_file):
            self.load_config()
        else:
            logger.info("Config file %s not found, using defaults", config_file)
            self.save_config()  # Create default config file

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to load config: %s", e)
            return False

        # Merge with defaults (file config overrides defaults)
        self._merge_config(self.config, file_config)
        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.error("Failed to save config: %s", e)
            return False

        logger.info("Configuration saved to %s", self.config_file)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default=None):
        """Get configuration value with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value."""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    # Property accessors for common configuration values
    @property
    def motor_serial_port(self) -> str:
        return self.config["motor_serial_port"]

    @property
    def motor_baud_rate(self) -> int:
        return self.config["motor_baud_rate"]

    @property
    def imu_enabled(self) -> bool:
        return self.config["imu_enabled"]

    @property
    def i2c_bus(self) -> int:
        return self.config["i2c_bus"]

    @property
    def mpu6050_address(self) -> int:
        return self.config["mpu6050_address"]

    @property
    def ports(self) -> Tuple[int, int, int, int]:
        return tuple(self.config["ports"][w] for w in WHEELS)

    @property
    def reversed(self) -> Tuple[bool, bool, bool, bool]:
        return tuple(bool(self.config["reversed"][w]) for w in WHEELS)

    @property
    def field_centric(self) -> bool:
        return self.config["drive"]["field_centric"]

    @property
    def motion(self) -> Dict[str, Any]:
        return self.config["motion"]

    @property
    def odometry(self) -> Dict[str, Any]:
        return self.config["odometry"]

    @property
    def telemetry_rate_hz(self) -> float:
        return self.config["telemetry_rate_hz"]

    @property
    def status_rate_hz(self) -> float:
        return self.config["status_rate_hz"]

    def drive_config(self) -> DriveConfig:
        """Build the immutable drivetrain configuration."""
        drive = self.config["drive"]
        motion = self.config["motion"]
        return DriveConfig(
            deadband=drive["deadband"],
            square_inputs=drive["square_inputs"],
            ceiling=drive["ceiling"],
            reversed=self.reversed,
            imu_calibration_timeout=self.config["imu_calibration_timeout_s"],
            poll_interval=motion["poll_interval_s"],
            tolerance_deg=motion["tolerance_deg"],
        )

    def odometry_config(self) -> OdometryConfig:
        """Build the immutable odometry configuration."""
        odom = self.config["odometry"]
        start = odom["start"]
        return OdometryConfig(
            l_par=odom["l_par"],
            l_perp=odom["l_perp"],
            start=Pose(x=start["x"], y=start["y"], theta=start["theta"]),
        )

    def print_config(self):
        """Print current configuration."""
        print("=== X-Drive Configuration ===")
        print(json.dumps(self.config, indent=2))
