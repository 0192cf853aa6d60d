"""
main.py

Executable entry point for the X-drive simulation with tracking wheel
odometry. The script ties together the drivetrain, the ground truth chassis
model, the sensor simulator, the keyboard controller and the plotter into a
complete application. The simulation runs either interactively (using Pygame
for control and Matplotlib for visualization) or headless using a scripted
plan of joystick inputs.

Usage:
    Run the script from this directory to start the simulation::

    python main.py --no-interactive --csv run.csv

Optional arguments can be provided to set the time step, the random seed,
the sensor noise, or to disable interactive control or plotting. Use the
--help flag for details.
"""

from __future__ import annotations
import argparse
import csv
import math
import os
import sys
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np

_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from xdrive import build_simulated_drive
from xdrive.drive.mixer import WheelCommand, unmix
from xdrive.odometry import OdometryConfig, TwoWheelImuOdometry, OdometryTracker
from motion_model import ChassisState
from sensor_simulator import SensorSimulator
from plotter import Plotter

# (duration_s, forward, strafe, rotate)
DEFAULT_PLAN: Tuple[Tuple[float, int, int, int], ...] = (
    (2.0, 90, 0, 0),
    (1.0, 0, 90, 0),
    (1.5, 0, 0, 90),
    (1.0, 64, 64, 0),
)

CSV_COLUMNS = ("time_s", "gt_x", "gt_y", "gt_th", "est_x", "est_y", "est_th",
               "df", "ds", "dr")


def scripted_inputs(plan: Sequence[Tuple[float, int, int, int]], dt: float):
    """Yield (forward, strafe, rotate) for every step of a scripted plan."""
    for duration, forward, strafe, rotate in plan:
        steps = int(round(duration / dt))
        for _ in range(steps):
            yield forward, strafe, rotate


def run_simulation(dt: float = 0.01,
                   plan: Sequence[Tuple[float, int, int, int]] = DEFAULT_PLAN,
                   interactive: bool = False,
                   plotting: bool = False,
                   csv_path: Optional[str] = None,
                   parallel_mount: Tuple[float, float] = (-3.0, 0.0),
                   perpendicular_mount: Tuple[float, float] = (0.0, -4.0),
                   odometry_config: Optional[OdometryConfig] = None,
                   wheel_noise_std: float = 0.0,
                   heading_noise_std: float = 0.0,
                   seed: Optional[int] = None,
                   duration: float = 60.0) -> List[tuple]:
    """Execute the X-drive simulation.

    Args:
        dt (float): Simulation time step in seconds.
        plan: Scripted (duration, forward, strafe, rotate) segments used when
            not interactive.
        interactive (bool): If True, drive with the keyboard via Pygame.
        plotting (bool): If True, enable real-time plotting via Matplotlib.
        csv_path (str): Optional path of a CSV file to write every step to.
        parallel_mount, perpendicular_mount: Tracking wheel (x, y) mounting
            positions in inches, x to the right and y forward.
        odometry_config (OdometryConfig): Estimator geometry. Defaults to the
            one matching the mounts.
        wheel_noise_std, heading_noise_std (float): Sensor noise levels.
        seed (int): Seed for the sensor noise generator.
        duration (float): Interactive run length in seconds. Use a negative
            value to run until the user quits.

    Returns:
        List of rows matching CSV_COLUMNS.
    """
    if dt <= 0:
        raise ValueError("dt must be positive")
    # Initialize Subsystems
    drive = build_simulated_drive()
    chassis = ChassisState()
    sensor = SensorSimulator(parallel_mount=parallel_mount,
                             perpendicular_mount=perpendicular_mount,
                             wheel_noise_std=wheel_noise_std,
                             heading_noise_std=heading_noise_std,
                             random_state=np.random.default_rng(seed))
    # Field-centric drive reads the same IMU the odometry does
    drive.heading_sensor = sensor.heading_sensor
    odometry = TwoWheelImuOdometry(odometry_config or sensor.odometry_config())
    tracker = OdometryTracker(odometry, sensor.parallel_wheel,
                              sensor.perpendicular_wheel, sensor.heading_sensor)
    plotter = Plotter(enable=plotting)

    controller = None
    if interactive:
        from controls import KeyboardController
        controller = KeyboardController()
        inputs = None
    else:
        inputs = scripted_inputs(plan, dt)

    rows = []
    sim_time = 0.0
    start_time_wall = time.time()
    try:
        while True:
            # Determine Control Inputs
            if controller is not None:
                if not controller.running:
                    break
                forward, strafe, rotate = controller.poll()
                field_centric = controller.field_centric
            else:
                try:
                    forward, strafe, rotate = next(inputs)
                except StopIteration:
                    break
                field_centric = False
            # Drive and recover the chassis intent actually written
            command = drive.drive(forward, strafe, rotate, field_centric)
            df, ds, dr = unmix(WheelCommand(*command.truncated()))
            # Update true chassis state and synthetic sensors
            dx_r, dy_r, dtheta = chassis.update(df, ds, dr, dt)
            sensor.measure(dx_r, dy_r, dtheta, chassis.theta)
            estimate = tracker.sample() or odometry.pose
            sim_time += dt
            rows.append((sim_time, chassis.x, chassis.y, chassis.theta,
                         estimate.x, estimate.y, estimate.theta, df, ds, dr))
            if plotting:
                plotter.update(sim_time, (df, ds, dr), chassis, estimate)
            if controller is not None:
                if duration > 0 and sim_time >= duration:
                    break
                # Keep wall clock roughly in step with sim time
                elapsed_wall = time.time() - start_time_wall
                if elapsed_wall < sim_time:
                    time.sleep(min(dt, sim_time - elapsed_wall))
    finally:
        drive.stop()
        if controller is not None:
            controller.close()

    if csv_path:
        write_csv(csv_path, rows)
    return rows


def write_csv(path: str, rows: Sequence[tuple]) -> None:
    """Write simulation rows with a header line."""
    with open(path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for row in rows:
            writer.writerow([f"{v:.6f}" for v in row])


def summarize(rows: Sequence[tuple]) -> dict:
    """Final poses and worst-case estimation error of a run."""
    if not rows:
        return {'steps': 0, 'max_pos_err': 0.0, 'max_heading_err': 0.0}
    data = np.asarray(rows)
    pos_err = np.hypot(data[:, 1] - data[:, 4], data[:, 2] - data[:, 5])
    heading_err = np.abs(np.angle(np.exp(1j * (data[:, 3] - data[:, 6]))))
    last = rows[-1]
    return {
        'steps': len(rows),
        'final_true': (last[1], last[2], last[3]),
        'final_est': (last[4], last[5], last[6]),
        'max_pos_err': float(pos_err.max()),
        'max_heading_err': float(heading_err.max()),
    }


def main() -> None:
    """ Entry point when running this module as a script."""
    parser = argparse.ArgumentParser(description="X-Drive Simulation with Tracking Wheel Odometry")
    parser.add_argument('--dt', type=float, default=0.01, help='Simulation time step in seconds (default: 0.01s)')
    parser.add_argument('--duration', type=float, default=60.0, help='Interactive run length in seconds (default: 60s). Use negative for indefinite.')
    parser.add_argument('--no-interactive', action='store_true', help='Run the scripted plan instead of keyboard control.')
    parser.add_argument('--no-plotting', action='store_true', help='Disable real-time plotting.')
    parser.add_argument('--csv', default=None, help='Write every step to this CSV file.')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for sensor noise.')
    parser.add_argument('--wheel-noise', type=float, default=0.0, help='Tracking wheel noise std per step (inches).')
    parser.add_argument('--heading-noise', type=float, default=0.0, help='Heading noise std (degrees).')
    args = parser.parse_args()
    rows = run_simulation(dt=args.dt,
                          interactive=not args.no_interactive,
                          plotting=not args.no_plotting,
                          csv_path=args.csv,
                          wheel_noise_std=args.wheel_noise,
                          heading_noise_std=math.radians(args.heading_noise),
                          seed=args.seed,
                          duration=args.duration)
    stats = summarize(rows)
    print(f"Steps: {stats['steps']}")
    if stats['steps']:
        print("True pose:      x=%.2f y=%.2f th=%.3f" % stats['final_true'])
        print("Estimated pose: x=%.2f y=%.2f th=%.3f" % stats['final_est'])
    print(f"Max position error: {stats['max_pos_err']:.4f} in")
    print(f"Max heading error:  {math.degrees(stats['max_heading_err']):.4f} deg")


if __name__ == "__main__":
    main()
