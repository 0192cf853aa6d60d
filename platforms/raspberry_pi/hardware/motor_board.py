"""
Serial driver for the motor co-processor board.

The board drives four smart motors and reads two tracking wheel encoders.
It speaks a line-based ASCII protocol over UART/USB:

    M<port> <value>            set open-loop command, value in [-127, 127]
    R<port> <deg> <rpm>        relative move in wheel degrees
    T<port>                    tare position
    P<port>                    -> position in wheel degrees
    V<port>                    -> applied voltage in millivolts
    S<port>                    -> measured velocity in rpm
    E<channel>                 -> encoder ticks of a tracking wheel
    Z<channel>                 zero encoder

Queries are answered with one line holding a number.
"""

import math
import logging
import threading

import serial

from xdrive.devices.interfaces import Motor, TrackingWheel, DeviceError
from xdrive.math.constants import MOTOR_COMMAND_CEILING

logger = logging.getLogger(__name__)


class MotorBoard:
    """
    Connection to the motor co-processor.

    Args:
        serial_port: Serial port device (e.g., "/dev/ttyACM0")
        baud_rate: Baud rate
        connection: Already-open serial-like object (used instead of opening
            serial_port; must provide write(), readline() and close())
    """

    def __init__(self, serial_port: str = "/dev/ttyACM0", baud_rate: int = 115200,
                 connection=None):
        self.serial_port = serial_port
        self.baud_rate = baud_rate
        self.serial_conn = connection
        self.initialized = connection is not None

        # One request/response on the wire at a time
        self._lock = threading.Lock()

        # Statistics
        self.commands_sent = 0
        self.queries_sent = 0
        self.errors = 0

    def initialize(self) -> bool:
        """
        Open the serial connection.

        Returns:
            True if initialization successful
        """
        if self.initialized:
            return True

        try:
            self.serial_conn = serial.Serial(
                port=self.serial_port,
                baudrate=self.baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=0.1
            )
            # Clear any existing data
            self.serial_conn.reset_input_buffer()
            self.serial_conn.reset_output_buffer()
        except serial.SerialException as e:
            logger.error("Motor board: initialization failed: %s", e)
            return False

        self.initialized = True
        logger.info("Motor board: initialized on %s at %d baud",
                    self.serial_port, self.baud_rate)
        return True

    def _write_line(self, line: str):
        if not self.initialized:
            raise DeviceError("Motor board not initialized")
        try:
            self.serial_conn.write((line + "\n").encode('ascii'))
        except serial.SerialException as e:
            self.errors += 1
            raise DeviceError(f"Motor board write failed: {e}") from e

    def send(self, command: str):
        """Send a command that has no reply."""
        with self._lock:
            self._write_line(command)
            self.commands_sent += 1

    def query(self, command: str) -> float:
        """
        Send a query and parse the numeric reply.

        Raises:
            DeviceError: On timeout or malformed reply
        """
        with self._lock:
            self._write_line(command)
            self.queries_sent += 1
            try:
                reply = self.serial_conn.readline()
            except serial.SerialException as e:
                self.errors += 1
                raise DeviceError(f"Motor board read failed: {e}") from e

        text = reply.decode('ascii', errors='ignore').strip()
        if not text:
            self.errors += 1
            raise DeviceError(f"Motor board: no reply to {command!r}")
        try:
            return float(text)
        except ValueError:
            self.errors += 1
            raise DeviceError(f"Motor board: malformed reply {text!r} to {command!r}")

    def get_statistics(self) -> dict:
        """Get driver statistics."""
        return {
            'initialized': self.initialized,
            'commands_sent': self.commands_sent,
            'queries_sent': self.queries_sent,
            'errors': self.errors,
            'serial_port': self.serial_port,
            'baud_rate': self.baud_rate
        }

    def cleanup(self):
        """Cleanup resources."""
        if self.serial_conn:
            try:
                self.serial_conn.close()
            except serial.SerialException as e:
                logger.warning("Motor board: close failed: %s", e)
            self.serial_conn = None
        self.initialized = False
        logger.info("Motor board: cleanup completed")


class SerialMotor(Motor):
    """Smart motor on a MotorBoard port. Reversal is applied on this side."""

    def __init__(self, board: MotorBoard, port: int, reversed: bool = False):
        super().__init__(port, reversed)
        self.board = board

    def move(self, value: int) -> None:
        value = max(-MOTOR_COMMAND_CEILING, min(MOTOR_COMMAND_CEILING, int(value)))
        self.board.send(f"M{self.port} {self._apply_direction(value)}")

    def move_relative(self, degrees: float, speed: int) -> None:
        self.board.send(f"R{self.port} {self._apply_direction(degrees):.1f} {abs(int(speed))}")

    def tare_position(self) -> None:
        self.board.send(f"T{self.port}")

    def get_position(self) -> float:
        return self._apply_direction(self.board.query(f"P{self.port}"))

    def get_voltage(self) -> float:
        return self._apply_direction(self.board.query(f"V{self.port}"))

    def get_actual_velocity(self) -> float:
        return self._apply_direction(self.board.query(f"S{self.port}"))


class SerialTrackingWheel(TrackingWheel):
    """
    Unpowered tracking wheel read through a MotorBoard encoder channel.

    Args:
        board: Motor board connection
        channel: Encoder channel
        wheel_diameter: Wheel diameter in inches
        ticks_per_rev: Encoder ticks per wheel revolution
        reversed: Invert the measured direction
    """

    def __init__(self, board: MotorBoard, channel: int, wheel_diameter: float = 2.75,
                 ticks_per_rev: float = 360.0, reversed: bool = False):
        if ticks_per_rev <= 0:
            raise ValueError("ticks_per_rev must be positive")
        self.board = board
        self.channel = channel
        self.reversed = reversed
        self.inches_per_tick = math.pi * wheel_diameter / ticks_per_rev

    def get_distance(self) -> float:
        ticks = self.board.query(f"E{self.channel}")
        distance = ticks * self.inches_per_tick
        return -distance if self.reversed else distance

    def reset(self) -> None:
        self.board.send(f"Z{self.channel}")
