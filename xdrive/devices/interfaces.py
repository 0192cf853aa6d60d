"""
Capability interfaces for the drivetrain hardware.

The drive pipeline, the motion sequencer and the odometry task only talk to
these classes. Hardware-backed and simulated implementations are chosen when
the drivetrain is constructed.
"""

from abc import ABC, abstractmethod


class DeviceError(RuntimeError):
    """Raised when a device returns malformed data or the link fails."""


class Motor(ABC):
    """
    One drive wheel actuator.

    Commands are integers in the symmetric joystick range [-127, 127].
    Positions are wheel degrees since the last tare.
    """

    def __init__(self, port: int, reversed: bool = False):
        self.port = port
        self.reversed = reversed

    def _apply_direction(self, value):
        return -value if self.reversed else value

    @abstractmethod
    def move(self, value: int) -> None:
        """Set the open-loop command."""

    @abstractmethod
    def move_relative(self, degrees: float, speed: int) -> None:
        """Start a relative move of degrees at speed (rpm)."""

    @abstractmethod
    def tare_position(self) -> None:
        """Reset the position reference to zero."""

    @abstractmethod
    def get_position(self) -> float:
        """Wheel degrees since the last tare."""

    @abstractmethod
    def get_voltage(self) -> float:
        """Applied voltage in millivolts, positive drives the wheel forward."""

    @abstractmethod
    def get_actual_velocity(self) -> float:
        """Measured wheel velocity in rpm, same sign convention as voltage."""


class HeadingSensor(ABC):
    """Absolute heading source (IMU)."""

    @abstractmethod
    def is_ready(self) -> bool:
        """False while calibrating or when the device is absent."""

    @abstractmethod
    def heading_degrees(self) -> float:
        """Compass heading in [0, 360), clockwise positive."""


class TrackingWheel(ABC):
    """Unpowered odometry wheel reporting cumulative linear displacement."""

    @abstractmethod
    def get_distance(self) -> float:
        """Distance travelled since the last reset (inches)."""

    @abstractmethod
    def reset(self) -> None:
        """Zero the cumulative distance."""
