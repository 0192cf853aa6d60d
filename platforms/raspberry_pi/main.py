#!/usr/bin/env python3
"""
X-Drive controller application for Raspberry Pi.
Hardware: serial motor co-processor (4 drive motors + 2 tracking wheels),
MPU6050 (I2C) heading sensor, optional USB gamepad.

Run with:
    python -m platforms.raspberry_pi.main --mode autonomous
"""

import sys
import time
import signal
import logging
import argparse
import threading
from typing import Optional

from xdrive.drive import XDrive, inches_to_wheel_degrees
from xdrive.motion import MotionSequencer, MotionKind, MotionError, run_routine
from xdrive.odometry import TwoWheelImuOdometry, OdometryTracker
from xdrive.telemetry import TelemetryMonitor
from xdrive.devices.interfaces import DeviceError

from .config import Config
from .hardware.motor_board import MotorBoard, SerialMotor, SerialTrackingWheel
from .hardware.mpu6050_driver import MPU6050HeadingSensor

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show DEBUG and above with timestamps; otherwise INFO
            messages only, without timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


class XDriveSystem:
    """Main X-drive control system for Raspberry Pi."""

    def __init__(self, config_file: str = "config.json"):
        """Initialize the X-drive system."""

        # Load configuration
        self.config = Config(config_file)
        drive_config = self.config.drive_config()

        # Hardware drivers
        self.board = MotorBoard(
            serial_port=self.config.motor_serial_port,
            baud_rate=self.config.motor_baud_rate
        )
        motors = [SerialMotor(self.board, port, rev)
                  for port, rev in zip(self.config.ports, drive_config.reversed)]

        self.imu: Optional[MPU6050HeadingSensor] = None
        if self.config.imu_enabled:
            self.imu = MPU6050HeadingSensor(
                i2c_address=self.config.mpu6050_address,
                i2c_bus=self.config.i2c_bus
            )

        odom = self.config.odometry
        self.parallel_wheel = SerialTrackingWheel(
            self.board, odom["parallel_channel"],
            wheel_diameter=odom["wheel_diameter_in"], ticks_per_rev=odom["ticks_per_rev"])
        self.perpendicular_wheel = SerialTrackingWheel(
            self.board, odom["perpendicular_channel"],
            wheel_diameter=odom["wheel_diameter_in"], ticks_per_rev=odom["ticks_per_rev"])

        # Drivetrain, autonomous helper and pose estimator
        self.drive = XDrive(motors, self.imu, drive_config)
        self.sequencer = MotionSequencer(self.drive)
        self.odometry = TwoWheelImuOdometry(self.config.odometry_config())
        self.tracker: Optional[OdometryTracker] = None

        self.telemetry = TelemetryMonitor(
            self.drive, self._emit_telemetry,
            interval=1.0 / self.config.telemetry_rate_hz)

        # Threading control
        self.running = False
        self.cancel_event = threading.Event()
        self.odometry_thread = None
        self.output_thread = None

        # Statistics
        self.start_time = time.time()

        # Setup signal handlers
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        logger.info("X-drive system initialized")
        logger.info("Motor board: %s at %d baud", self.config.motor_serial_port,
                    self.config.motor_baud_rate)
        if self.imu is not None:
            logger.info("IMU: MPU6050 on I2C bus %d, address 0x%02X",
                        self.config.i2c_bus, self.config.mpu6050_address)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info("Shutdown signal received, stopping system...")
        self.cancel_event.set()
        self.running = False

    def start(self) -> bool:
        """Start the X-drive system."""
        if self.running:
            logger.warning("System already running")
            return True

        logger.info("Starting X-drive system...")

        if not self.board.initialize():
            logger.error("Failed to initialize motor board")
            return False

        imu_ok = False
        if self.imu is not None:
            if not self.imu.initialize():
                logger.error("Failed to initialize MPU6050")
                return False
            logger.info("Calibrating IMU... (keep robot stationary)")
            imu_ok = self.imu.calibrate(self.config.get("imu_calibration_samples", 200))
            if not imu_ok:
                logger.warning("IMU calibration failed, field-centric drive and odometry unavailable")

        self.drive.initialize()
        self.parallel_wheel.reset()
        self.perpendicular_wheel.reset()

        self.running = True
        self.cancel_event.clear()

        if imu_ok:
            self.tracker = OdometryTracker(self.odometry, self.parallel_wheel,
                                           self.perpendicular_wheel, self.imu)
            self.odometry_thread = threading.Thread(target=self._odometry_loop, daemon=True)
            self.odometry_thread.start()
        else:
            logger.warning("No calibrated heading sensor, odometry disabled")

        self.output_thread = threading.Thread(target=self._output_loop, daemon=True)
        self.output_thread.start()
        self.telemetry.start()

        logger.info("X-drive system started successfully")
        return True

    def stop(self):
        """Stop the X-drive system."""
        if self.board.initialized:
            try:
                self.drive.stop()
            except DeviceError as e:
                logger.error("Failed to stop motors: %s", e)

        self.running = False
        self.cancel_event.set()
        self.telemetry.stop()

        # Wait for threads to finish
        for thread in (self.odometry_thread, self.output_thread):
            if thread and thread.is_alive():
                thread.join(timeout=2.0)

        # Cleanup hardware
        if self.imu is not None:
            self.imu.cleanup()
        self.board.cleanup()

        logger.info("X-drive system stopped")

    def _odometry_loop(self):
        """Heading integration and odometry loop (the only odometry caller)."""
        period = 1.0 / self.config.odometry["rate_hz"]

        while self.running:
            try:
                self.imu.update()
                self.tracker.sample()
            except DeviceError as e:
                logger.error("Odometry loop error: %s", e)
                time.sleep(0.1)
            time.sleep(period)

    def _output_loop(self):
        """Status output loop."""
        interval = 1.0 / self.config.status_rate_hz
        last_output_time = time.time()

        while self.running:
            current_time = time.time()
            if current_time - last_output_time >= interval:
                self._print_status()
                last_output_time = current_time
            time.sleep(0.1)

    def _emit_telemetry(self, lines):
        logger.debug(" | ".join(lines))

    def _print_status(self):
        """Print current system status."""
        uptime = time.time() - self.start_time
        pose = self.odometry.pose
        command = self.drive.last_command

        print(f"\n=== X-Drive Status (Uptime: {uptime:.1f}s) ===")
        print(f"Pose: {pose}")
        print(f"Heading: {self.drive.heading_degrees():.1f} deg (compass)")
        print(f"Command: {command}")
        if self.tracker is not None:
            stats = self.tracker.get_statistics()
            print(f"Odometry: {stats['updates']} updates, {stats['skipped']} skipped")
        board = self.board.get_statistics()
        print(f"Board: {board['commands_sent']} commands, {board['queries_sent']} queries, "
              f"{board['errors']} errors")

    def run_autonomous(self) -> bool:
        """
        Run the scripted autonomous routine.

        Returns:
            True if every move completed
        """
        motion = self.config.motion
        speed = motion["speed"]
        diameter = motion["wheel_diameter_in"]
        steps = [
            (MotionKind.STRAIGHT, inches_to_wheel_degrees(24.0, diameter), speed),
            (MotionKind.STRAFE, inches_to_wheel_degrees(12.0, diameter), speed),
            (MotionKind.ROTATE, 720.0, speed),
        ]
        try:
            run_routine(self.sequencer, steps, pause=0.3, timeout=motion["timeout_s"],
                        cancel_event=self.cancel_event)
        except MotionError as e:
            logger.error("Autonomous routine aborted: %s", e)
            return False
        finally:
            self.drive.stop()
        return True

    def run_teleop(self, source):
        """
        Operator control loop.

        Args:
            source: Object with poll() -> (forward, strafe, rotate) and a
                running attribute
        """
        period = 1.0 / self.config.get("drive.loop_rate_hz", 100.0)
        field = self.config.field_centric

        while self.running and source.running:
            forward, strafe, rotate = source.poll()
            try:
                self.drive.drive(forward, strafe, rotate, field)
            except DeviceError as e:
                logger.error("Drive write failed: %s", e)
            time.sleep(period)

        self.drive.stop()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="X-Drive controller for Raspberry Pi")
    parser.add_argument("--config", default="config.json", help="Configuration file")
    parser.add_argument("--mode", choices=["autonomous", "teleop", "idle"], default="teleop",
                        help="Control mode (default: teleop)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose logging with timestamps")
    args = parser.parse_args()
    setup_logging(args.verbose)

    print("X-Drive Controller for Raspberry Pi")
    print("=" * 50)

    system = XDriveSystem(args.config)

    if not system.start():
        logger.error("Failed to start system")
        return 1

    try:
        if args.mode == "autonomous":
            system.run_autonomous()
        elif args.mode == "teleop":
            from .hardware.gamepad import GamepadIntentSource
            source = GamepadIntentSource()
            try:
                system.run_teleop(source)
            finally:
                source.close()
        else:
            while system.running:
                time.sleep(1.0)

    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")

    finally:
        system.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
