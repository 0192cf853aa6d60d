"""
Two tracking wheels + absolute heading dead reckoning.
"""

import logging
import threading
from typing import Optional

from .pose import Pose, OdometryConfig
from ..devices.interfaces import HeadingSensor, TrackingWheel
from ..math.utils import normalize_angle, rotate_vector, heading_to_theta

logger = logging.getLogger(__name__)


class TwoWheelImuOdometry:
    """
    Fuses parallel/perpendicular wheel deltas with an IMU heading.

    update() is not reentrant: exactly one caller per instance.
    """

    def __init__(self, config: OdometryConfig):
        """
        Initialize the estimator.

        Args:
            config: Wheel offsets and start pose
        """
        self.config = config
        self._pose = config.start.copy()
        # Raw sensor heading, unwrapped; deltas are measured against it
        self.last_heading = config.start.theta

        # Statistics
        self.update_count = 0

    @property
    def pose(self) -> Pose:
        """Current pose estimate (copy)."""
        return self._pose.copy()

    def update(self, s_par: float, s_perp: float, heading: float) -> Pose:
        """
        Integrate one sample.

        Args:
            s_par: Parallel wheel displacement since the last sample (inches)
            s_perp: Perpendicular wheel displacement since the last sample
            heading: Absolute heading in radians (CCW positive)

        Returns:
            Updated pose (copy)
        """
        dth = normalize_angle(heading - self.last_heading)
        self.last_heading = heading

        # Remove the arc each offset wheel travels while the robot turns
        dx_r = s_perp - self.config.l_perp * dth    # +right
        dy_r = s_par + self.config.l_par * dth      # +forward

        # Midpoint heading: second-order accurate for small dth
        thm = self._pose.theta + 0.5 * dth
        dx, dy = rotate_vector(dx_r, dy_r, thm)
        self._pose.x += dx
        self._pose.y += dy
        self._pose.theta = normalize_angle(self._pose.theta + dth)

        self.update_count += 1
        return self.pose

    def reset(self, pose: Optional[Pose] = None):
        """Re-seed the estimate (defaults to the configured start pose)."""
        start = (pose or self.config.start).copy()
        self._pose = start
        self.last_heading = start.theta
        self.update_count = 0
        logger.info("Odometry reset to %s", start)


class OdometryTracker:
    """
    Single dedicated caller feeding TwoWheelImuOdometry from devices.

    Reads cumulative tracking wheel distances, converts them to per-sample
    deltas and pairs them with the IMU heading.

    Args:
        odometry: Estimator to drive
        parallel_wheel: Wheel measuring forward travel
        perpendicular_wheel: Wheel measuring rightward travel
        heading_sensor: Absolute heading source
    """

    def __init__(self, odometry: TwoWheelImuOdometry,
                 parallel_wheel: TrackingWheel,
                 perpendicular_wheel: TrackingWheel,
                 heading_sensor: HeadingSensor):
        self.odometry = odometry
        self.parallel_wheel = parallel_wheel
        self.perpendicular_wheel = perpendicular_wheel
        self.heading_sensor = heading_sensor

        self._last_par = parallel_wheel.get_distance()
        self._last_perp = perpendicular_wheel.get_distance()
        self._heading_offset = odometry.config.start.theta
        self._busy = threading.Lock()

        # Statistics
        self.sample_count = 0
        self.skipped_samples = 0

    def _heading_theta(self) -> float:
        # Sensor zero is aligned with the configured start heading
        return heading_to_theta(self.heading_sensor.heading_degrees()) + self._heading_offset

    def sample(self) -> Optional[Pose]:
        """
        Take one reading and update the estimator.

        Returns:
            Updated pose, or None if the heading sensor is not ready
        """
        if not self._busy.acquire(blocking=False):
            raise RuntimeError("OdometryTracker.sample() called concurrently")
        try:
            par = self.parallel_wheel.get_distance()
            perp = self.perpendicular_wheel.get_distance()
            d_par = par - self._last_par
            d_perp = perp - self._last_perp
            self._last_par = par
            self._last_perp = perp

            if not self.heading_sensor.is_ready():
                # Wheel travel during calibration is dropped
                self.skipped_samples += 1
                return None

            self.sample_count += 1
            return self.odometry.update(d_par, d_perp, self._heading_theta())
        finally:
            self._busy.release()

    def get_statistics(self):
        """Get tracker statistics."""
        return {
            'samples': self.sample_count,
            'skipped': self.skipped_samples,
            'updates': self.odometry.update_count,
        }
