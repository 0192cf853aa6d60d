#!/usr/bin/env python3
"""
Integration tests for the complete X-drive system.
"""

import unittest
import collections
import json
import math
import signal
import tempfile
import threading
import numpy as np
import sys
import os

# Add package and simulation tool to path
ROOT = os.path.join(os.path.dirname(__file__), '..')
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, 'tools', 'Simulations'))

from xdrive import build_simulated_drive
from xdrive.devices import (DeviceError, SimulatedMotor, SimulatedHeadingSensor,
                            SimulatedTrackingWheel)
from xdrive.telemetry import (TelemetryMonitor, format_telemetry, read_telemetry,
                              voltage_to_percent)
from platforms.raspberry_pi.config import Config
from platforms.raspberry_pi.hardware.motor_board import (MotorBoard, SerialMotor,
                                                         SerialTrackingWheel)
from platforms.raspberry_pi.hardware.mpu6050_driver import MPU6050HeadingSensor


class FakeSerial:
    """Motor co-processor double: relative moves finish instantly."""

    def __init__(self, stalled=False):
        self.stalled = stalled
        self.lines = []
        self.replies = collections.deque()
        self.commands = {}
        self.positions = {}
        self.encoders = {}
        self.closed = False

    def write(self, data):
        line = data.decode('ascii').strip()
        self.lines.append(line)
        op, args = line[0], line[1:].split()
        index = int(args[0])
        if op == 'M':
            self.commands[index] = int(args[1])
        elif op == 'R':
            if not self.stalled:
                self.positions[index] = self.positions.get(index, 0.0) + float(args[1])
        elif op == 'T':
            self.positions[index] = 0.0
        elif op == 'Z':
            self.encoders[index] = 0
        elif op == 'P':
            self._reply(self.positions.get(index, 0.0))
        elif op == 'V':
            self._reply(self.commands.get(index, 0) / 127 * 12000)
        elif op == 'S':
            self._reply(self.commands.get(index, 0) / 127 * 200)
        elif op == 'E':
            self._reply(self.encoders.get(index, 0))

    def _reply(self, value):
        self.replies.append(f"{value}\n".encode('ascii'))

    def readline(self):
        return self.replies.popleft() if self.replies else b""

    def close(self):
        self.closed = True


class FakeSMBus:
    """MPU6050 double returning a fixed raw Z rate."""

    def __init__(self, rate_raw=0, who_am_i=0x68, fail=False):
        self.rate_raw = rate_raw
        self.who_am_i = who_am_i
        self.fail = fail
        self.writes = []
        self.closed = False

    def write_byte_data(self, address, register, value):
        self.writes.append((register, value))

    def read_byte_data(self, address, register):
        return self.who_am_i if register == 0x75 else 0

    def read_i2c_block_data(self, address, register, length):
        if self.fail:
            raise OSError("I2C bus error")
        raw = self.rate_raw & 0xFFFF
        return [raw >> 8, raw & 0xFF]

    def close(self):
        self.closed = True


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestMotorBoard(unittest.TestCase):
    """Test the serial motor co-processor driver."""

    def setUp(self):
        self.conn = FakeSerial()
        self.board = MotorBoard(connection=self.conn)

    def test_motor_commands(self):
        SerialMotor(self.board, 1).move(100)
        SerialMotor(self.board, 2, reversed=True).move(100)
        SerialMotor(self.board, 3).move(500)
        self.assertEqual(self.conn.lines, ["M1 100", "M2 -100", "M3 127"])
        self.assertEqual(self.board.commands_sent, 3)

    def test_relative_move_and_position(self):
        motor = SerialMotor(self.board, 4, reversed=True)
        motor.tare_position()
        motor.move_relative(90.0, -100)
        self.assertEqual(self.conn.lines, ["T4", "R4 -90.0 100"])
        self.assertAlmostEqual(motor.get_position(), 90.0)

    def test_malformed_reply(self):
        self.conn.replies.append(b"garbage\n")
        self.conn.write = lambda data: None
        with self.assertRaises(DeviceError):
            self.board.query("P1")
        self.assertEqual(self.board.errors, 1)

    def test_no_reply(self):
        self.conn.write = lambda data: None
        with self.assertRaises(DeviceError):
            self.board.query("P1")

    def test_not_initialized(self):
        board = MotorBoard()
        with self.assertRaises(DeviceError):
            board.send("M1 0")

    def test_tracking_wheel(self):
        wheel = SerialTrackingWheel(self.board, 0, wheel_diameter=2.75, ticks_per_rev=360)
        self.conn.encoders[0] = 360
        self.assertAlmostEqual(wheel.get_distance(), math.pi * 2.75)
        flipped = SerialTrackingWheel(self.board, 0, reversed=True)
        self.assertAlmostEqual(flipped.get_distance(), -math.pi * 2.75)
        wheel.reset()
        self.assertEqual(wheel.get_distance(), 0.0)

    def test_cleanup(self):
        self.board.cleanup()
        self.assertTrue(self.conn.closed)
        self.assertFalse(self.board.initialized)


class TestMPU6050HeadingSensor(unittest.TestCase):
    """Test gyro integration into a compass heading."""

    def setUp(self):
        self.bus = FakeSMBus(rate_raw=33)
        self.clock = FakeClock()
        self.imu = MPU6050HeadingSensor(bus=self.bus, clock=self.clock)

    def test_initialize(self):
        self.assertTrue(self.imu.initialize())
        self.assertIn((0x6B, 0x00), self.bus.writes)

    def test_wrong_device(self):
        imu = MPU6050HeadingSensor(bus=FakeSMBus(who_am_i=0x70))
        self.assertFalse(imu.initialize())

    def test_not_ready_until_calibrated(self):
        self.imu.initialize()
        self.assertFalse(self.imu.is_ready())
        self.assertTrue(self.imu.calibrate(samples=10, sleep=lambda s: None))
        self.assertTrue(self.imu.is_ready())
        self.assertAlmostEqual(self.imu.gyro_bias_dps, 33 / 32.8)

    def test_ccw_turn_decreases_compass_heading(self):
        self.imu.initialize()
        self.imu.calibrate(samples=10, sleep=lambda s: None)
        # 10 deg/s counter-clockwise above the bias for 9 s
        self.bus.rate_raw = 33 + 328
        self.clock.now = 9.0
        self.assertAlmostEqual(self.imu.update(), 270.0)

    def test_negative_rate(self):
        self.imu.initialize()
        self.bus.rate_raw = -328
        self.assertAlmostEqual(self.imu.read_rate_dps(), -10.0)

    def test_read_failure(self):
        self.imu.initialize()
        self.bus.fail = True
        with self.assertRaises(DeviceError):
            self.imu.read_rate_dps()
        self.assertFalse(self.imu.calibrate(samples=5, sleep=lambda s: None))
        self.assertFalse(self.imu.calibrating)
        self.assertFalse(self.imu.is_ready())


class TestDeviceContracts(unittest.TestCase):
    """Simulated and hardware variants behave the same through the interfaces."""

    def motors(self):
        board = MotorBoard(connection=FakeSerial())
        return [SimulatedMotor(1, reversed=True), SerialMotor(board, 1, reversed=True)]

    def test_voltage_follows_wheel_direction(self):
        for motor in self.motors():
            with self.subTest(motor=type(motor).__name__):
                motor.move(127)
                self.assertAlmostEqual(motor.get_voltage(), 12000.0)
                self.assertGreater(motor.get_actual_velocity(), 0)
                motor.move(-127)
                self.assertAlmostEqual(motor.get_voltage(), -12000.0)

    def test_tare(self):
        for motor in self.motors():
            with self.subTest(motor=type(motor).__name__):
                motor.tare_position()
                self.assertEqual(motor.get_position(), 0.0)

    def test_tracking_wheel_reset(self):
        board = MotorBoard(connection=FakeSerial())
        wheels = [SimulatedTrackingWheel(12.0), SerialTrackingWheel(board, 1)]
        board.serial_conn.encoders[1] = 100
        for wheel in wheels:
            with self.subTest(wheel=type(wheel).__name__):
                self.assertGreater(wheel.get_distance(), 0)
                wheel.reset()
                self.assertEqual(wheel.get_distance(), 0.0)

    def test_heading_sensors(self):
        imu = MPU6050HeadingSensor(bus=FakeSMBus(), clock=FakeClock())
        imu.initialize()
        imu.calibrate(samples=2, sleep=lambda s: None)
        for sensor in (SimulatedHeadingSensor(), imu):
            with self.subTest(sensor=type(sensor).__name__):
                self.assertTrue(sensor.is_ready())
                heading = sensor.heading_degrees()
                self.assertGreaterEqual(heading, 0.0)
                self.assertLess(heading, 360.0)


class TestTelemetry(unittest.TestCase):
    """Test read-only telemetry."""

    def setUp(self):
        self.drive = build_simulated_drive()

    def test_voltage_to_percent(self):
        self.assertEqual(voltage_to_percent(6000.0), 50.0)
        self.assertEqual(voltage_to_percent(-24000.0), -100.0)

    def test_format_forward(self):
        self.drive.drive(127, 0, 0)
        lines = format_telemetry(read_telemetry(self.drive))
        self.assertEqual(lines[0], "X-Drive Telemetry")
        self.assertEqual(lines[1:], [f"{name}:  100% FWD |  200 rpm"
                                     for name in ("FL", "FR", "BL", "BR")])

    def test_format_reverse(self):
        self.drive.drive(-127, 0, 0)
        rows = read_telemetry(self.drive)
        self.assertTrue(all(row.direction == "REV" for row in rows))
        self.assertEqual(format_telemetry(rows)[1], "FL:  100% REV | -200 rpm")

    def test_monitor_only_reads(self):
        self.drive.drive(60, 0, 0)
        counts = [m.move_count for m in self.drive.motor_list]
        received = threading.Event()
        captured = []

        def emit(lines):
            captured.append(lines)
            received.set()

        monitor = TelemetryMonitor(self.drive, emit, interval=0.01)
        monitor.start()
        monitor.start()
        self.assertTrue(received.wait(2.0))
        monitor.stop()
        self.assertFalse(monitor.running)
        self.assertGreaterEqual(monitor.refresh_count, 1)
        self.assertEqual([m.move_count for m in self.drive.motor_list], counts)
        self.assertEqual(captured[0][0], "X-Drive Telemetry")


class TestConfig(unittest.TestCase):
    """Test the JSON configuration manager."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "config.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_defaults_written(self):
        config = Config(self.path)
        self.assertTrue(os.path.exists(self.path))
        self.assertEqual(config.ports, (1, 2, 3, 4))
        self.assertEqual(config.reversed, (False, True, False, True))

    def test_file_overrides_defaults(self):
        with open(self.path, 'w') as f:
            json.dump({"drive": {"deadband": 10}, "odometry": {"l_par": 1.5}}, f)
        config = Config(self.path)
        self.assertEqual(config.get("drive.deadband"), 10)
        self.assertEqual(config.get("drive.ceiling"), 127)
        drive_config = config.drive_config()
        self.assertEqual(drive_config.deadband, 10)
        self.assertEqual(config.odometry_config().l_par, 1.5)
        self.assertEqual(config.odometry_config().l_perp, 4.0)

    def test_dotted_get_set(self):
        config = Config(self.path)
        config.set("motion.speed", 50)
        config.set("new.section.value", 1)
        self.assertEqual(config.get("motion.speed"), 50)
        self.assertEqual(config.get("new.section.value"), 1)
        self.assertEqual(config.get("missing.key", "x"), "x")

    def test_defaults_not_shared(self):
        config = Config(self.path)
        config.set("drive.deadband", 99)
        self.assertEqual(Config.DEFAULT_CONFIG["drive"]["deadband"], 5)

    def test_malformed_file(self):
        with open(self.path, 'w') as f:
            f.write("{not json")
        config = Config(self.path)
        self.assertEqual(config.get("drive.deadband"), 5)
        self.assertFalse(config.load_config())

    def test_invalid_drive_config(self):
        config = Config(self.path)
        config.set("drive.ceiling", 0)
        with self.assertRaises(ValueError):
            config.drive_config()


class TestXDriveSystem(unittest.TestCase):
    """Test the Raspberry Pi application against device doubles."""

    def setUp(self):
        self.handlers = (signal.getsignal(signal.SIGINT), signal.getsignal(signal.SIGTERM))
        self.tmpdir = tempfile.TemporaryDirectory()
        path = os.path.join(self.tmpdir.name, "config.json")
        with open(path, 'w') as f:
            json.dump({"imu_calibration_samples": 5,
                       "motion": {"timeout_s": 0.2}}, f)
        from platforms.raspberry_pi.main import XDriveSystem
        self.system = XDriveSystem(path)
        self.conn = FakeSerial()
        self.system.board.serial_conn = self.conn
        self.system.board.initialized = True
        self.bus = FakeSMBus()
        self.system.imu.bus = self.bus

    def tearDown(self):
        self.system.stop()
        signal.signal(signal.SIGINT, self.handlers[0])
        signal.signal(signal.SIGTERM, self.handlers[1])
        self.tmpdir.cleanup()

    def test_start_and_autonomous(self):
        self.assertTrue(self.system.start())
        self.assertIsNotNone(self.system.tracker)
        self.assertTrue(self.system.run_autonomous())
        self.assertIn("Z0", self.conn.lines)
        self.assertIn("Z1", self.conn.lines)
        relative = [line for line in self.conn.lines if line.startswith("R1 ")]
        self.assertEqual(len(relative), 3)
        self.system.stop()
        self.assertTrue(self.conn.closed)
        self.assertTrue(self.bus.closed)

    def test_autonomous_times_out(self):
        self.conn.stalled = True
        self.assertTrue(self.system.start())
        self.assertFalse(self.system.run_autonomous())
        # Wheels stopped after the aborted move
        self.assertEqual(self.conn.commands, {1: 0, 2: 0, 3: 0, 4: 0})

    def test_teleop(self):
        self.assertTrue(self.system.start())

        class Source:
            running = True
            polls = 0

            def poll(self):
                self.polls += 1
                if self.polls >= 3:
                    self.running = False
                return 127, 0, 0

        self.system.config.set("drive.field_centric", False)
        self.system.run_teleop(Source())
        # Odometry and telemetry threads interleave their queries
        writes = [line for line in self.conn.lines if line.startswith("M")]
        self.assertIn("M1 127", writes)
        self.assertIn("M2 -127", writes)
        self.assertEqual(writes[-4:], ["M1 0", "M2 0", "M3 0", "M4 0"])


class TestSimulation(unittest.TestCase):
    """Test the headless closed-world simulation."""

    def test_noise_free_estimate_tracks_truth(self):
        from main import run_simulation, summarize
        rows = run_simulation(dt=0.01)
        stats = summarize(rows)
        self.assertEqual(stats['steps'], 550)
        self.assertLess(stats['max_pos_err'], 1e-6)
        self.assertLess(stats['max_heading_err'], 1e-6)
        # Forward segment moved the robot along +y
        self.assertGreater(rows[199][2], 10.0)
        self.assertAlmostEqual(rows[199][1], 0.0)

    def test_wheels_mounted_off_axis(self):
        """Wheel travel comes from the mounts, so only matching offsets track truth."""
        from main import run_simulation, summarize
        from xdrive.odometry import OdometryConfig
        mounts = dict(parallel_mount=(2.5, 6.0), perpendicular_mount=(-1.0, 3.5))
        stats = summarize(run_simulation(dt=0.01, **mounts))
        self.assertLess(stats['max_pos_err'], 1e-6)
        # Offsets taken as forward/right distances of each wheel
        wrong = OdometryConfig(l_par=6.0, l_perp=-1.0)
        stats = summarize(run_simulation(dt=0.01, odometry_config=wrong, **mounts))
        self.assertGreater(stats['max_pos_err'], 1.0)

    def test_seeded_noise_is_reproducible(self):
        from main import run_simulation
        a = run_simulation(dt=0.02, wheel_noise_std=0.01, seed=7)
        b = run_simulation(dt=0.02, wheel_noise_std=0.01, seed=7)
        np.testing.assert_array_equal(np.asarray(a), np.asarray(b))
        self.assertGreater(np.abs(np.asarray(a)[:, 4] - np.asarray(a)[:, 1]).max(), 0.0)

    def test_csv_output(self):
        from main import run_simulation, CSV_COLUMNS
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "run.csv")
            rows = run_simulation(dt=0.05, csv_path=path)
            with open(path) as f:
                lines = f.read().splitlines()
        self.assertEqual(lines[0].split(','), list(CSV_COLUMNS))
        self.assertEqual(len(lines), len(rows) + 1)


if __name__ == '__main__':
    unittest.main()
