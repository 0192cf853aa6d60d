"""
Open-loop motion primitives for autonomous routines.

Each primitive applies a relative wheel displacement with a fixed sign
pattern (straight, strafe, rotate) and finishes once every wheel has
reported travel within tolerance of the target. MotionPrimitive is a
non-blocking state machine; MotionSequencer layers blocking helpers on top.
"""

import time
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from ..drive.drivetrain import XDrive
from ..drive.mixer import STRAIGHT, STRAFE, ROTATE
from ..math.constants import DEFAULT_MOTION_SPEED

logger = logging.getLogger(__name__)


class MotionError(RuntimeError):
    """Base class for motion primitive failures."""

    def __init__(self, message: str, primitive: 'MotionPrimitive' = None):
        super().__init__(message)
        self.primitive = primitive


class MotionTimeoutError(MotionError):
    """A primitive was still busy when its deadline passed."""


class MotionCancelledError(MotionError):
    """A primitive was cancelled before completion."""


class MotionKind(enum.Enum):
    """Primitive type and its (FL, FR, BL, BR) displacement signs."""

    STRAIGHT = STRAIGHT
    STRAFE = STRAFE
    ROTATE = ROTATE

    @property
    def signs(self) -> Tuple[int, int, int, int]:
        return self.value


class MotionStatus(enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class MotionTarget:
    """Relative wheel displacement (degrees) and speed (rpm)."""

    wheel_degrees: float
    speed: int = DEFAULT_MOTION_SPEED


class MotionPrimitive:
    """
    One relative move, advanced by repeated step() calls.

    Args:
        drive: Drivetrain whose motors are moved
        kind: Primitive type
        target: Displacement and speed
        tolerance: Completion margin in wheel degrees
        timeout: Seconds after start() before the move is reported timed out,
            or None to wait indefinitely
        clock: Time source in seconds
    """

    def __init__(self, drive: XDrive, kind: MotionKind, target: MotionTarget,
                 tolerance: Optional[float] = None, timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.drive = drive
        self.kind = kind
        self.target = target
        self.tolerance = drive.config.tolerance_deg if tolerance is None else tolerance
        self.timeout = timeout
        self.clock = clock

        self.status = MotionStatus.PENDING
        self.start_time: Optional[float] = None
        self.poll_count = 0

    @property
    def threshold(self) -> float:
        """Minimum |position| every wheel must reach."""
        return max(0.0, abs(self.target.wheel_degrees) - self.tolerance)

    @property
    def is_done(self) -> bool:
        return self.status in (MotionStatus.DONE, MotionStatus.TIMED_OUT,
                               MotionStatus.CANCELLED)

    def wheel_targets(self) -> List[float]:
        """Relative target per wheel in FL, FR, BL, BR order."""
        return [sign * self.target.wheel_degrees for sign in self.kind.signs]

    def start(self):
        """Tare every wheel and issue the relative moves."""
        if self.status is not MotionStatus.PENDING:
            raise MotionError(f"{self.kind.name} primitive already started", self)

        targets = self.wheel_targets()
        speed = self.target.speed

        def issue(motor, index):
            motor.tare_position()
            motor.move_relative(targets[index], speed)

        self.drive.run_locked(issue)
        self.start_time = self.clock()
        self.status = MotionStatus.RUNNING
        logger.debug("Started %s move %s at %d rpm", self.kind.name, targets, speed)

    def is_busy(self) -> bool:
        """True while any wheel is short of the completion threshold."""
        threshold = self.threshold
        return any(abs(motor.get_position()) < threshold
                   for motor in self.drive.motor_list)

    def step(self) -> bool:
        """
        Poll the wheels once.

        Returns:
            True once the primitive has finished (any terminal status)
        """
        if self.status is MotionStatus.PENDING:
            self.start()
        if self.is_done:
            return True

        self.poll_count += 1
        if not self.is_busy():
            self.status = MotionStatus.DONE
            logger.debug("%s move done after %d polls", self.kind.name, self.poll_count)
            return True

        if self.timeout is not None and self.clock() - self.start_time >= self.timeout:
            self.status = MotionStatus.TIMED_OUT
            self.drive.stop()
            positions = [m.get_position() for m in self.drive.motor_list]
            logger.warning("%s move timed out after %.2fs, wheel positions %s",
                           self.kind.name, self.timeout, positions)
            return True

        return False

    def cancel(self):
        """Abort the move and stop the wheels."""
        if self.is_done:
            return
        self.status = MotionStatus.CANCELLED
        self.drive.stop()
        logger.info("%s move cancelled", self.kind.name)


class MotionSequencer:
    """
    Blocking open-loop moves built on MotionPrimitive.

    Args:
        drive: Drivetrain to move
        sleep: Delay function used between polls
        clock: Time source passed to the primitives
    """

    def __init__(self, drive: XDrive,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.drive = drive
        self.sleep = sleep
        self.clock = clock
        self.completed_moves = 0

    def run(self, primitive: MotionPrimitive,
            cancel_event: Optional[threading.Event] = None) -> MotionStatus:
        """Start a primitive and poll it to completion."""
        interval = self.drive.config.poll_interval
        if cancel_event is not None and cancel_event.is_set():
            primitive.cancel()
            raise MotionCancelledError(
                f"{primitive.kind.name} move cancelled before start", primitive)
        primitive.start()
        # Let the actuators pick up the new targets before the first check
        self.sleep(interval)

        while not primitive.step():
            if cancel_event is not None and cancel_event.is_set():
                primitive.cancel()
                break
            self.sleep(interval)

        if primitive.status is MotionStatus.TIMED_OUT:
            raise MotionTimeoutError(
                f"{primitive.kind.name} move of {primitive.target.wheel_degrees:.1f} deg "
                f"did not finish within {primitive.timeout:.2f}s", primitive)
        if primitive.status is MotionStatus.CANCELLED:
            raise MotionCancelledError(f"{primitive.kind.name} move cancelled", primitive)

        self.completed_moves += 1
        return primitive.status

    def move(self, kind: MotionKind, wheel_degrees: float,
             speed: int = DEFAULT_MOTION_SPEED, timeout: Optional[float] = None,
             cancel_event: Optional[threading.Event] = None) -> MotionStatus:
        primitive = MotionPrimitive(self.drive, kind, MotionTarget(wheel_degrees, speed),
                                    timeout=timeout, clock=self.clock)
        return self.run(primitive, cancel_event)

    def drive_forward_deg(self, wheel_degrees: float, speed: int = DEFAULT_MOTION_SPEED,
                          timeout: Optional[float] = None,
                          cancel_event: Optional[threading.Event] = None) -> MotionStatus:
        """Drive straight by wheel_degrees on every wheel."""
        return self.move(MotionKind.STRAIGHT, wheel_degrees, speed, timeout, cancel_event)

    def strafe_right_deg(self, wheel_degrees: float, speed: int = DEFAULT_MOTION_SPEED,
                         timeout: Optional[float] = None,
                         cancel_event: Optional[threading.Event] = None) -> MotionStatus:
        """Strafe right; negative wheel_degrees strafes left."""
        return self.move(MotionKind.STRAFE, wheel_degrees, speed, timeout, cancel_event)

    def turn_cw_deg(self, wheel_degrees: float, speed: int = DEFAULT_MOTION_SPEED,
                    timeout: Optional[float] = None,
                    cancel_event: Optional[threading.Event] = None) -> MotionStatus:
        """Spin clockwise in place by wheel_degrees per wheel."""
        return self.move(MotionKind.ROTATE, wheel_degrees, speed, timeout, cancel_event)


def run_routine(sequencer: MotionSequencer,
                steps: Iterable[Tuple[MotionKind, float, int]],
                pause: float = 0.3, timeout: Optional[float] = None,
                cancel_event: Optional[threading.Event] = None) -> int:
    """
    Run a scripted list of (kind, wheel_degrees, speed) moves.

    Returns:
        Number of moves completed
    """
    count = 0
    for index, (kind, wheel_degrees, speed) in enumerate(steps):
        if index > 0 and pause > 0:
            sequencer.sleep(pause)
        if cancel_event is not None and cancel_event.is_set():
            raise MotionCancelledError(
                f"Routine cancelled before step {index + 1} ({kind.name})")
        logger.info("Routine step %d: %s %.1f deg at %d rpm",
                    index + 1, kind.name, wheel_degrees, speed)
        sequencer.move(kind, wheel_degrees, speed, timeout, cancel_event)
        count += 1
    return count
