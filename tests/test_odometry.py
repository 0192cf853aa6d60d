#!/usr/bin/env python3
"""
Unit tests for angle helpers and tracking wheel odometry.
"""

import unittest
import math
import threading
import numpy as np
import sys
import os

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xdrive.math import (normalize_angle, wrap_degrees, heading_to_theta,
                         theta_to_heading, rotate_vector, PI, TWO_PI)
from xdrive.odometry import Pose, OdometryConfig, TwoWheelImuOdometry, OdometryTracker
from xdrive.devices import SimulatedHeadingSensor, SimulatedTrackingWheel


class TestAngles(unittest.TestCase):
    """Test angle wrapping and conversions."""

    def test_normalize_range(self):
        """Wrapped angles lie in (-pi, pi] across +/-10 turns."""
        for a in np.linspace(-10 * TWO_PI, 10 * TWO_PI, 4001):
            w = normalize_angle(a)
            self.assertGreater(w, -PI)
            self.assertLessEqual(w, PI)
            self.assertAlmostEqual(math.cos(w), math.cos(a), places=9)
            self.assertAlmostEqual(math.sin(w), math.sin(a), places=9)

    def test_normalize_boundaries(self):
        self.assertEqual(normalize_angle(PI), PI)
        self.assertEqual(normalize_angle(-PI), PI)
        self.assertEqual(normalize_angle(0.0), 0.0)

    def test_normalize_huge_values(self):
        for a in (1e6, -1e6, 1e12, -1e12):
            w = normalize_angle(a)
            self.assertGreater(w, -PI)
            self.assertLessEqual(w, PI)

    def test_normalize_nan(self):
        self.assertTrue(math.isnan(normalize_angle(float('nan'))))

    def test_wrap_degrees(self):
        self.assertEqual(wrap_degrees(360.0), 0.0)
        self.assertEqual(wrap_degrees(-90.0), 270.0)
        self.assertEqual(wrap_degrees(725.0), 5.0)
        self.assertLess(wrap_degrees(-1e-17), 360.0)

    def test_heading_conversion(self):
        """Compass headings grow clockwise, field angles counter-clockwise."""
        self.assertAlmostEqual(heading_to_theta(0.0), 0.0)
        self.assertAlmostEqual(heading_to_theta(90.0), -PI / 2)
        self.assertAlmostEqual(heading_to_theta(270.0), PI / 2)
        self.assertAlmostEqual(heading_to_theta(180.0), PI)
        for deg in (0.0, 10.0, 135.0, 300.0):
            self.assertAlmostEqual(theta_to_heading(heading_to_theta(deg)), deg)

    def test_rotate_vector(self):
        x, y = rotate_vector(1.0, 0.0, PI / 2)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 1.0)


class TestPose(unittest.TestCase):

    def test_theta_normalized(self):
        pose = Pose(1.0, 2.0, TWO_PI + 1.0)
        self.assertAlmostEqual(pose.theta, 1.0)

    def test_copy_is_independent(self):
        pose = Pose(1.0, 2.0, 0.5)
        other = pose.copy()
        other.x = 10.0
        self.assertEqual(pose.x, 1.0)

    def test_distance(self):
        self.assertAlmostEqual(Pose(0, 0).distance_to(Pose(3, 4)), 5.0)


class TestTwoWheelImuOdometry(unittest.TestCase):
    """Test the dead reckoning update."""

    def setUp(self):
        self.odom = TwoWheelImuOdometry(OdometryConfig(l_par=3.0, l_perp=4.0))

    def test_straight_line(self):
        """Two 10 inch forward samples at constant heading end at (0, 20, 0)."""
        self.odom.update(10.0, 0.0, 0.0)
        pose = self.odom.update(10.0, 0.0, 0.0)
        self.assertEqual((pose.x, pose.y, pose.theta), (0.0, 20.0, 0.0))

    def test_zero_motion(self):
        start = Pose(5.0, -3.0, 1.2)
        odom = TwoWheelImuOdometry(OdometryConfig(3.0, 4.0, start))
        for _ in range(1000):
            odom.update(0.0, 0.0, 1.2)
        pose = odom.pose
        self.assertEqual((pose.x, pose.y, pose.theta), (start.x, start.y, start.theta))

    def test_pure_rotation(self):
        """Wheel arcs from turning in place are removed."""
        dth = math.radians(10)
        heading = 0.0
        for _ in range(9):
            heading += dth
            # Parallel wheel 3 in left, perpendicular wheel 4 in behind: both
            # roll along the arc while the center stays put
            self.odom.update(-3.0 * dth, 4.0 * dth, heading)
        pose = self.odom.pose
        self.assertAlmostEqual(pose.x, 0.0, places=12)
        self.assertAlmostEqual(pose.y, 0.0, places=12)
        self.assertAlmostEqual(pose.theta, PI / 2)

    def test_strafe_after_turn(self):
        """After a CCW quarter turn, right is +y and forward is -x."""
        odom = TwoWheelImuOdometry(OdometryConfig(start=Pose(0, 0, PI / 2)))
        pose = odom.update(0.0, 5.0, PI / 2)
        self.assertAlmostEqual(pose.x, 0.0)
        self.assertAlmostEqual(pose.y, 5.0)
        pose = odom.update(5.0, 0.0, PI / 2)
        self.assertAlmostEqual(pose.x, -5.0)
        self.assertAlmostEqual(pose.y, 5.0)

    def test_heading_wraps_across_pi(self):
        odom = TwoWheelImuOdometry(OdometryConfig(start=Pose(0, 0, PI - 0.05)))
        pose = odom.update(0.0, 0.0, -PI + 0.05)
        self.assertAlmostEqual(pose.theta, -PI + 0.05)

    def test_pose_is_a_copy(self):
        pose = self.odom.pose
        pose.x = 99.0
        self.assertEqual(self.odom.pose.x, 0.0)

    def test_reset(self):
        self.odom.update(10.0, 0.0, 0.0)
        self.odom.reset(Pose(1.0, 1.0, 0.3))
        pose = self.odom.pose
        self.assertEqual((pose.x, pose.y), (1.0, 1.0))
        self.assertEqual(self.odom.last_heading, pose.theta)
        self.assertEqual(self.odom.update_count, 0)


class TestWheelGeometry(unittest.TestCase):
    """Test the offsets against wheel travel derived from mounting positions."""

    @staticmethod
    def wheel_travel(parallel_wheel, perpendicular_wheel, dth):
        # A CCW turn moves a point (x, y) by (-y, x) * dth; each wheel keeps
        # the component along its rolling axis
        return parallel_wheel[0] * dth, -perpendicular_wheel[1] * dth

    def spin(self, parallel_wheel, perpendicular_wheel, config, steps=9):
        odom = TwoWheelImuOdometry(config)
        dth = math.radians(10)
        for i in range(1, steps + 1):
            s_par, s_perp = self.wheel_travel(parallel_wheel, perpendicular_wheel, dth)
            odom.update(s_par, s_perp, normalize_angle(i * dth))
        return odom.pose

    def test_from_wheel_positions(self):
        config = OdometryConfig.from_wheel_positions((-3.0, 1.0), (2.0, -4.0))
        self.assertEqual(config.l_par, 3.0)
        self.assertEqual(config.l_perp, 4.0)
        self.assertEqual(config.start, Pose())

    def test_spin_with_wheels_on_their_axes(self):
        """Parallel wheel ahead and perpendicular wheel to the right sense no turn."""
        parallel, perpendicular = (0.0, 3.0), (4.0, 0.0)
        self.assertEqual(self.wheel_travel(parallel, perpendicular, 0.1), (0.0, 0.0))
        config = OdometryConfig.from_wheel_positions(parallel, perpendicular)
        pose = self.spin(parallel, perpendicular, config)
        self.assertAlmostEqual(math.hypot(pose.x, pose.y), 0.0, places=12)
        self.assertAlmostEqual(pose.theta, PI / 2)

    def test_spin_with_offset_wheels(self):
        parallel, perpendicular = (-3.0, 2.0), (5.0, -4.0)
        config = OdometryConfig.from_wheel_positions(parallel, perpendicular)
        pose = self.spin(parallel, perpendicular, config)
        self.assertAlmostEqual(math.hypot(pose.x, pose.y), 0.0, places=12)

    def test_offsets_are_not_forward_and_right(self):
        """Reading the offsets as forward/right distances drifts on every turn."""
        parallel, perpendicular = (0.0, 3.0), (4.0, 0.0)
        pose = self.spin(parallel, perpendicular, OdometryConfig(l_par=3.0, l_perp=4.0))
        self.assertGreater(math.hypot(pose.x, pose.y), 5.0)


class TestOdometryTracker(unittest.TestCase):
    """Test the single-caller integration task."""

    def setUp(self):
        self.par = SimulatedTrackingWheel()
        self.perp = SimulatedTrackingWheel()
        self.imu = SimulatedHeadingSensor()
        self.odom = TwoWheelImuOdometry(OdometryConfig(l_par=3.0, l_perp=4.0))
        self.tracker = OdometryTracker(self.odom, self.par, self.perp, self.imu)

    def test_differences_cumulative_distance(self):
        self.par.advance(10.0)
        self.tracker.sample()
        self.par.advance(10.0)
        pose = self.tracker.sample()
        self.assertAlmostEqual(pose.y, 20.0)
        self.assertEqual(self.tracker.get_statistics()['updates'], 2)

    def test_compass_heading_converted(self):
        """A 90 deg compass heading faces +x in the field frame."""
        odom = TwoWheelImuOdometry(OdometryConfig())
        tracker = OdometryTracker(odom, self.par, self.perp, self.imu)
        self.imu.set_heading(90.0)
        tracker.sample()
        self.par.advance(10.0)
        pose = tracker.sample()
        self.assertAlmostEqual(pose.theta, -PI / 2)
        self.assertAlmostEqual(pose.x, 10.0)
        self.assertAlmostEqual(pose.y, 0.0)

    def test_skips_while_not_ready(self):
        now = [0.0]
        self.imu.clock = lambda: now[0]
        self.imu.start_calibration(0.02)
        self.par.advance(10.0)
        self.assertIsNone(self.tracker.sample())
        now[0] = 0.01
        self.par.advance(10.0)
        self.assertIsNone(self.tracker.sample())
        now[0] = 0.02
        self.par.advance(5.0)
        pose = self.tracker.sample()
        self.assertAlmostEqual(pose.y, 5.0)
        stats = self.tracker.get_statistics()
        self.assertEqual(stats['skipped'], 2)
        self.assertEqual(stats['samples'], 1)

    def test_start_heading_offset(self):
        odom = TwoWheelImuOdometry(OdometryConfig(start=Pose(0, 0, PI / 2)))
        tracker = OdometryTracker(odom, self.par, self.perp, self.imu)
        self.par.advance(10.0)
        pose = tracker.sample()
        self.assertAlmostEqual(pose.theta, PI / 2)
        self.assertAlmostEqual(pose.x, -10.0)

    def test_rejects_concurrent_sample(self):
        entered = threading.Event()
        release = threading.Event()

        class BlockingWheel(SimulatedTrackingWheel):
            def get_distance(self):
                if armed:
                    entered.set()
                    release.wait(2.0)
                return super().get_distance()

        armed = False
        tracker = OdometryTracker(self.odom, BlockingWheel(), self.perp, self.imu)
        armed = True
        worker = threading.Thread(target=tracker.sample)
        worker.start()
        self.assertTrue(entered.wait(2.0))
        with self.assertRaises(RuntimeError):
            tracker.sample()
        release.set()
        worker.join(2.0)


if __name__ == '__main__':
    unittest.main()
