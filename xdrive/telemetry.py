"""
Read-only actuator telemetry.

Telemetry only reads motor voltage and velocity; it never writes commands,
so it can run on its own thread next to the control loop.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from .drive.drivetrain import XDrive
from .drive.mixer import WHEEL_NAMES
from .math.constants import MOTOR_FULL_SCALE_MV

logger = logging.getLogger(__name__)


@dataclass
class WheelTelemetry:
    """Snapshot of one wheel."""

    name: str
    percent: float
    rpm: float

    @property
    def direction(self) -> str:
        return "FWD" if self.percent >= 0 else "REV"


def voltage_to_percent(millivolts: float) -> float:
    """Commanded voltage as percent of full scale, clamped to +/-100."""
    percent = (millivolts / MOTOR_FULL_SCALE_MV) * 100.0
    return max(-100.0, min(100.0, percent))


def read_telemetry(drive: XDrive) -> List[WheelTelemetry]:
    """Read every wheel in FL, FR, BL, BR order."""
    return [WheelTelemetry(name=name,
                           percent=voltage_to_percent(motor.get_voltage()),
                           rpm=motor.get_actual_velocity())
            for name, motor in zip(WHEEL_NAMES, drive.motor_list)]


def format_telemetry(rows: List[WheelTelemetry]) -> List[str]:
    lines = ["X-Drive Telemetry"]
    for row in rows:
        lines.append(f"{row.name}: {abs(row.percent):4.0f}% {row.direction} | "
                     f"{row.rpm:4.0f} rpm")
    return lines


class TelemetryMonitor:
    """
    Background reader that hands formatted telemetry to emit().

    Args:
        drive: Drivetrain to observe
        emit: Called with the list of lines on every refresh
        interval: Seconds between refreshes (default 10 Hz)
    """

    def __init__(self, drive: XDrive, emit: Callable[[List[str]], None],
                 interval: float = 0.1):
        self.drive = drive
        self.emit = emit
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.refresh_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self):
        """Read and emit once."""
        self.emit(format_telemetry(read_telemetry(self.drive)))
        self.refresh_count += 1

    def _loop(self):
        while not self._stop_event.is_set():
            try:
                self.refresh()
            except Exception as e:
                logger.error("Telemetry loop error: %s", e)
            self._stop_event.wait(self.interval)

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="xdrive-telemetry",
                                        daemon=True)
        self._thread.start()

    def stop(self):
        if not self.running:
            return
        self._stop_event.set()
        self._thread.join(timeout=2.0)
        self._thread = None
