"""
sensor_simulator.py

This module converts ground truth chassis motion into synthetic tracking
wheel and IMU readings. Each tracking wheel is described by where it is
mounted on the chassis; while the chassis turns, the mounting point sweeps
an arc (omega x r) and the wheel picks up the component of that arc along
its rolling axis. White noise can be added to both wheel travel and the
heading.

Classes:
SensorSimulator:
    Feeds simulated tracking wheels and a simulated heading sensor.
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple

from xdrive.devices.simulated import SimulatedHeadingSensor, SimulatedTrackingWheel
from xdrive.math import theta_to_heading
from xdrive.odometry import OdometryConfig


@dataclass
class SensorSimulator:
    """Simulate tracking wheel and heading measurements.

    Mounting positions are (x, y) in the robot frame, inches, x to the right
    and y forward of the rotation center.

    Parameters:
        parallel_mount (Tuple[float, float]): Position of the wheel that
            rolls forward/backward.
        perpendicular_mount (Tuple[float, float]): Position of the wheel that
            rolls left/right.
        wheel_noise_std (float): Std of per-step wheel travel noise (inches).
        heading_noise_std (float): Std of heading noise (radians).
        random_state (Optional[np.random.Generator]): Random number generator
            for reproducibility. If None, a new default generator is created.
    """
    parallel_mount: Tuple[float, float] = (-3.0, 0.0)
    perpendicular_mount: Tuple[float, float] = (0.0, -4.0)
    wheel_noise_std: float = 0.0
    heading_noise_std: float = 0.0
    random_state: Optional[np.random.Generator] = field(default=None)

    def __post_init__(self):
        if self.random_state is None:
            self.rng = np.random.default_rng()
        else:
            self.rng = self.random_state
        self.parallel_wheel = SimulatedTrackingWheel()
        self.perpendicular_wheel = SimulatedTrackingWheel()
        self.heading_sensor = SimulatedHeadingSensor()

    def odometry_config(self) -> OdometryConfig:
        """Estimator geometry matching the simulated mounts."""
        return OdometryConfig.from_wheel_positions(self.parallel_mount,
                                                   self.perpendicular_mount)

    def wheel_deltas(self, dx_r: float, dy_r: float, dtheta: float) -> Tuple[float, float]:
        """ Tracking wheel travel for one robot-frame displacement.

        A CCW turn dtheta moves a point r = (x, y) by (-y, x) * dtheta.

        Args:
            dx_r (float): Rightward robot-frame displacement.
            dy_r (float): Forward robot-frame displacement.
            dtheta (float): Heading change (CCW positive).

        Returns:
            s_par, s_perp: Parallel and perpendicular wheel travel.
        """
        par_x, _ = self.parallel_mount
        _, perp_y = self.perpendicular_mount
        s_par = dy_r + par_x * dtheta
        s_perp = dx_r - perp_y * dtheta
        if self.wheel_noise_std > 0:
            noise = self.rng.normal(scale=self.wheel_noise_std, size=2)
            s_par += noise[0]
            s_perp += noise[1]
        return s_par, s_perp

    def measure(self, dx_r: float, dy_r: float, dtheta: float, theta: float) -> None:
        """ Advance the simulated devices after one ground truth step.

        Args:
            dx_r, dy_r, dtheta: Robot-frame motion over the step.
            theta (float): True heading after the step (radians, CCW).
        """
        s_par, s_perp = self.wheel_deltas(dx_r, dy_r, dtheta)
        self.parallel_wheel.advance(s_par)
        self.perpendicular_wheel.advance(s_perp)
        if self.heading_noise_std > 0:
            theta += self.rng.normal(scale=self.heading_noise_std)
        self.heading_sensor.set_heading(theta_to_heading(theta))
