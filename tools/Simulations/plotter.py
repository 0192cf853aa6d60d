"""
plotter.py

This module provides a simple helper for real time visualization of the
X-drive simulation. The Plotter class maintains a matplotlib figure with
chassis intent, heading, trajectory and position error subplots, updated
incrementally as the simulation runs.

If interactive plotting is not possible (e.g. in a headless environment),
the class disables itself with a warning and only buffers data.

Classes:
Plotter:
    Maintains a figure with subplots and provides an update() method to
    append new data points.
"""

from __future__ import annotations

import numpy as np
import warnings
from dataclasses import dataclass, field
from typing import List


@dataclass
class Plotter:
    """Real time plot manager for X-drive simulations

    Parameters:
    enable : bool, optional
        If False, the plotter will not attempt to create plots.
    redraw_every : int, optional
        Redraw the figure every N updates.
    """

    enable: bool = field(default=True)
    redraw_every: int = 5
    # Data buffers
    time_log: List[float] = field(default_factory=list)
    forward_cmd: List[float] = field(default_factory=list)
    strafe_cmd: List[float] = field(default_factory=list)
    rotate_cmd: List[float] = field(default_factory=list)
    theta_true: List[float] = field(default_factory=list)
    theta_est: List[float] = field(default_factory=list)
    pos_err: List[float] = field(default_factory=list)
    x_true: List[float] = field(default_factory=list)
    y_true: List[float] = field(default_factory=list)
    x_est: List[float] = field(default_factory=list)
    y_est: List[float] = field(default_factory=list)

    def __post_init__(self):
        self._fig = None
        self._lines = {}
        if not self.enable:
            return
        import matplotlib.pyplot as plt
        try:
            plt.ion()  # Enable interactive mode
            self._fig, axes = plt.subplots(2, 2, figsize=(10, 8))
        except Exception as e:
            warnings.warn(f"Plotter disabled: could not initialize matplotlib plots. {e}")
            self.enable = False
            return
        ax_cmd = axes[0, 0]
        ax_theta = axes[0, 1]
        ax_traj = axes[1, 0]
        ax_err = axes[1, 1]
        ax_cmd.set_title("Chassis Intent")
        ax_cmd.set_xlabel("Time (s)")
        ax_cmd.set_ylabel("Command")
        l1, = ax_cmd.plot([], [], label="Forward")
        l2, = ax_cmd.plot([], [], label="Strafe", linestyle='--')
        l3, = ax_cmd.plot([], [], label="Rotate (CW)", linestyle=':')
        ax_cmd.legend()
        ax_theta.set_title("Heading")
        ax_theta.set_xlabel("Time (s)")
        ax_theta.set_ylabel("Theta (deg)")
        l4, = ax_theta.plot([], [], label="True")
        l5, = ax_theta.plot([], [], label="Estimated", linestyle='--')
        ax_theta.legend()
        ax_traj.set_title("Trajectory")
        ax_traj.set_xlabel("X (in)")
        ax_traj.set_ylabel("Y (in)")
        ax_traj.set_aspect('equal', 'datalim')
        l6, = ax_traj.plot([], [], label="True Position")
        l7, = ax_traj.plot([], [], label="Estimated Position", linestyle='--')
        ax_traj.legend()
        ax_err.set_title("Position Error Norm")
        ax_err.set_xlabel("Time (s)")
        ax_err.set_ylabel("Position Error (in)")
        l8, = ax_err.plot([], [], label="Position Error")
        ax_err.legend()
        plt.tight_layout()
        self._axes = [ax_cmd, ax_theta, ax_traj, ax_err]
        self._lines = {
            'forward': l1,
            'strafe': l2,
            'rotate': l3,
            'theta_true': l4,
            'theta_est': l5,
            'traj_true': l6,
            'traj_est': l7,
            'pos_err': l8
        }
        self._plt = plt

    def update(self, t: float, intent, true_pose, est_pose) -> None:
        """ Append new data and update the figures.

        Parameters:
        t : float
            Current simulation time in seconds.
        intent : tuple
            (forward, strafe, rotate) recovered from the wheel commands.
        true_pose : ChassisState or Pose
            Ground truth pose with x, y, theta.
        est_pose : Pose
            Odometry estimate.
        """
        self.time_log.append(t)
        self.forward_cmd.append(intent[0])
        self.strafe_cmd.append(intent[1])
        self.rotate_cmd.append(intent[2])
        self.theta_true.append(np.degrees(true_pose.theta))
        self.theta_est.append(np.degrees(est_pose.theta))
        self.pos_err.append(float(np.hypot(true_pose.x - est_pose.x, true_pose.y - est_pose.y)))
        self.x_true.append(true_pose.x)
        self.y_true.append(true_pose.y)
        self.x_est.append(est_pose.x)
        self.y_est.append(est_pose.y)
        if not self.enable or self._fig is None:
            return
        if len(self.time_log) % self.redraw_every:
            return
        self._lines['forward'].set_data(self.time_log, self.forward_cmd)
        self._lines['strafe'].set_data(self.time_log, self.strafe_cmd)
        self._lines['rotate'].set_data(self.time_log, self.rotate_cmd)
        self._lines['theta_true'].set_data(self.time_log, self.theta_true)
        self._lines['theta_est'].set_data(self.time_log, self.theta_est)
        self._lines['traj_true'].set_data(self.x_true, self.y_true)
        self._lines['traj_est'].set_data(self.x_est, self.y_est)
        self._lines['pos_err'].set_data(self.time_log, self.pos_err)
        for ax in self._axes:
            ax.relim()
            ax.autoscale_view()
        self._plt.pause(0.001)

    def max_error(self) -> float:
        """Largest position error seen so far."""
        return max(self.pos_err) if self.pos_err else 0.0
