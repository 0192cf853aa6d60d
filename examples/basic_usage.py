#!/usr/bin/env python3
"""
Basic usage example of the X-drive control library.

This example demonstrates how to use the drivetrain, the motion sequencer
and the tracking wheel odometry without specific hardware dependencies.
"""

import sys
import os
import math
import numpy as np

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xdrive import build_simulated_drive
from xdrive.drive import inches_to_wheel_degrees
from xdrive.math import theta_to_heading
from xdrive.motion import MotionKind, MotionSequencer, run_routine
from xdrive.odometry import Pose, OdometryConfig, TwoWheelImuOdometry, OdometryTracker
from xdrive.devices import SimulatedHeadingSensor, SimulatedTrackingWheel
from xdrive.telemetry import read_telemetry, format_telemetry


class SimClock:
    """Shared simulated time source for motors and the sequencer."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def simulate_arc(duration=10.0, dt=0.05, radius=24.0, speed=12.0,
                 parallel_mount=(-3.0, 0.0), perpendicular_mount=(0.0, -4.0),
                 noise=0.0):
    """
    Simulate the robot driving a counter-clockwise circle.

    Args:
        duration: Simulation duration in seconds
        dt: Time step in seconds
        radius: Circle radius in inches
        speed: Forward speed in inches/s
        parallel_mount, perpendicular_mount: Wheel (x, y) positions in inches,
            x to the right and y forward of the rotation center
        noise: Std of per-step wheel noise in inches

    Yields:
        (t, s_par, s_perp, theta) with wheel deltas and the true heading
    """
    omega = speed / radius
    theta = 0.0
    t = 0.0
    while t < duration:
        dth = omega * dt
        # Forward motion plus the arc each mounting point sweeps (omega x r)
        s_par = speed * dt + parallel_mount[0] * dth + np.random.normal(0, noise)
        s_perp = -perpendicular_mount[1] * dth + np.random.normal(0, noise)
        theta += dth
        t += dt
        yield t, s_par, s_perp, theta


def demo_drive():
    """Joystick ticks through the drivetrain."""
    print("--- Teleop ticks ---")
    drive = build_simulated_drive(heading_deg=90.0)
    drive.initialize()
    for intent in [(127, 0, 0), (0, 127, 0), (0, 0, 127), (100, 100, 0), (3, -4, 2)]:
        command = drive.drive(*intent)
        print(f"  intent {intent!s:16} -> {command}")
    command = drive.drive(0, 127, 0, field_centric_enabled=True)
    print(f"  field-centric strafe at 90 deg -> {command}")
    for line in format_telemetry(read_telemetry(drive)):
        print("  " + line)
    drive.stop()
    print()


def demo_autonomous():
    """Scripted autonomous routine on simulated motors."""
    print("--- Autonomous routine ---")
    clock = SimClock()
    drive = build_simulated_drive(clock=clock)
    sequencer = MotionSequencer(drive, sleep=clock.sleep, clock=clock)
    steps = [
        (MotionKind.STRAIGHT, inches_to_wheel_degrees(24.0), 100),
        (MotionKind.STRAFE, inches_to_wheel_degrees(12.0), 100),
        (MotionKind.ROTATE, 720.0, 100),
    ]
    completed = run_routine(sequencer, steps, timeout=10.0)
    print(f"  Completed moves: {completed} in {clock.now:.2f}s simulated")
    for name, motor in drive.motors.items():
        print(f"  {name}: position {motor.get_position():8.1f} deg")
    print()


def demo_odometry():
    """Dead reckoning around a circle."""
    print("--- Odometry ---")
    parallel = SimulatedTrackingWheel()
    perpendicular = SimulatedTrackingWheel()
    clock = SimClock()
    imu = SimulatedHeadingSensor(calibration_time=0.15, clock=clock)
    odometry = TwoWheelImuOdometry(
        OdometryConfig.from_wheel_positions((-3.0, 0.0), (0.0, -4.0), start=Pose()))
    tracker = OdometryTracker(odometry, parallel, perpendicular, imu)

    last_print_time = 0.0
    print_interval = 2.0
    for t, s_par, s_perp, theta in simulate_arc(noise=0.01):
        clock.now = t
        parallel.advance(s_par)
        perpendicular.advance(s_perp)
        imu.set_heading(theta_to_heading(theta))
        pose = tracker.sample()
        if pose is not None and t - last_print_time >= print_interval:
            print(f"  t={t:5.2f}s  {pose}  heading {math.degrees(pose.theta):7.1f} deg")
            last_print_time = t

    stats = tracker.get_statistics()
    print(f"  Samples: {stats['samples']}, skipped while calibrating: {stats['skipped']}")
    print(f"  Final pose: {odometry.pose}")
    print()


def main():
    """Main example function."""
    print("X-Drive Control - Basic Usage Example")
    print("=" * 50)
    demo_drive()
    demo_autonomous()
    demo_odometry()
    print("Example completed!")


if __name__ == "__main__":
    main()
