"""
Model Rocket Flight Simulation - Plots

Renders a FlightResult to PNG files:
- Trajectory (x vs height) with key points and the predicted landing
- Height and speed against time
- Attitude, rolling angle change and torque against time
"""

import logging
import os
from dataclasses import dataclass
from typing import List

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for batch processing
import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)

KEY_POINT_STYLES = {
    'thrust_end': ('red', 'x', 'Burnout'),
    'max_height': ('darkorange', '*', 'Apogee'),
    'parachute_ejection': ('purple', 'v', 'Ejection'),
    'parachute_active': ('green', 'o', 'Canopy open'),
}


@dataclass
class FlightData:
    """Sample columns of one flight as arrays."""
    time: np.ndarray
    x: np.ndarray
    y: np.ndarray
    speed: np.ndarray
    vy: np.ndarray
    omega_degrees: np.ndarray
    angle_change: np.ndarray
    torque: np.ndarray
    fin_deflection: np.ndarray


def configure_plot_style() -> None:
    plt.rcParams.update({
        'figure.figsize': (10, 6),
        'figure.dpi': 100,
        'savefig.dpi': 150,
        'axes.grid': True,
        'axes.axisbelow': True,
        'grid.alpha': 0.3,
        'grid.linestyle': '-',
        'grid.linewidth': 0.5,
        'font.size': 11,
        'axes.titlesize': 13,
        'axes.labelsize': 12,
        'legend.fontsize': 10,
        'legend.framealpha': 0.95,
        'lines.linewidth': 1.8,
        'xtick.direction': 'in',
        'ytick.direction': 'in',
    })


def extract_flight_data(result) -> FlightData:
    """
    Pull the plotted columns out of a FlightResult.

    Raises:
        ValueError: If the result has no samples
    """
    if not result.samples:
        raise ValueError("Flight result has no samples to plot")
    return FlightData(**{name: result.column(name)
                         for name in FlightData.__dataclass_fields__})


def _save(fig, output_dir: str, filename: str) -> str:
    plt.tight_layout()
    path = os.path.join(output_dir, filename)
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_trajectory(result, data: FlightData, output_dir: str) -> str:
    """Flight path in the vertical plane.

    Args:
        result: FlightResult (for key points and landing)
        data: Extracted columns
        output_dir: Directory to save the plot

    Returns:
        Path to saved plot file
    """
    fig, ax = plt.subplots()
    ax.plot(data.x, data.y, 'b-', linewidth=2, label='Trajectory')

    for name, (color, marker, label) in KEY_POINT_STYLES.items():
        point = getattr(result.key_points, name)
        if point is not None:
            ax.scatter([point.x], [point.height], c=color, s=80, marker=marker,
                       zorder=5, label=f'{label} ({point.height:.1f} m)')

    landing = result.landing
    if landing is not None and landing.is_prediction:
        ax.plot([data.x[-1], landing.landing_x], [data.y[-1], 0.0], 'b:', linewidth=1.2)
        ax.scatter([landing.landing_x], [0.0], c='black', s=60, marker='s', zorder=5,
                   label=f'Predicted landing ({landing.landing_x:.1f} m)')

    ax.set_xlabel('Horizontal distance (m)')
    ax.set_ylabel('Height (m)')
    ax.set_title('Flight Path', fontweight='bold')
    ax.set_ylim(0, None)
    ax.set_aspect('equal', adjustable='datalim')
    ax.legend(loc='best')
    return _save(fig, output_dir, '01_trajectory.png')


def plot_height_speed(result, data: FlightData, output_dir: str) -> str:
    """Height and speed against time on twin axes."""
    fig, ax = plt.subplots()
    ax.fill_between(data.time, 0, data.y, alpha=0.2, color='#1f77b4')
    ax.plot(data.time, data.y, 'b-', linewidth=2, label='Height')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Height (m)', color='b')
    ax.set_xlim(0, data.time[-1])
    ax.set_ylim(0, None)

    ax2 = ax.twinx()
    ax2.plot(data.time, data.speed, 'r-', linewidth=1.5, label='Speed')
    ax2.plot(data.time, data.vy, 'r--', linewidth=1.0, label='Vertical speed')
    ax2.set_ylabel('Speed (m/s)', color='r')
    ax2.grid(False)

    lines = ax.get_lines() + ax2.get_lines()
    ax.legend(lines, [line.get_label() for line in lines], loc='upper right')
    ax.set_title(f'Height and Speed (max {result.max_height:.1f} m, '
                 f'{result.max_speed:.1f} m/s)', fontweight='bold')
    return _save(fig, output_dir, '02_height_speed.png')


def plot_attitude(result, data: FlightData, output_dir: str) -> str:
    """Attitude, rolling angle change and torque on stacked axes."""
    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, sharex=True, figsize=(10, 9))

    ax1.plot(data.time, data.omega_degrees, 'g-', label='Attitude')
    limit = result.config.max_absolute_angle_deg
    ax1.axhline(limit, color='red', linestyle='--', linewidth=0.8)
    ax1.axhline(-limit, color='red', linestyle='--', linewidth=0.8)
    ax1.set_ylabel('Attitude (deg)')
    ax1.set_title('Attitude Stability', fontweight='bold')

    ax2.plot(data.time, data.angle_change, 'm-', label='Angle change')
    limit = result.config.max_angle_change_deg
    ax2.axhline(limit, color='red', linestyle='--', linewidth=0.8)
    ax2.axhline(-limit, color='red', linestyle='--', linewidth=0.8)
    ax2.set_ylabel('Angle change (deg)')

    ax3.plot(data.time, data.torque, 'k-', linewidth=1.2, label='Torque')
    ax3.set_ylabel('Torque (N·m)')
    ax3.set_xlabel('Time (s)')
    ax3.set_xlim(0, data.time[-1])

    status = 'OK' if result.stability.is_stability_ok else 'NG'
    ax1.text(0.02, 0.95, f'Stability: {status}', transform=ax1.transAxes,
             fontsize=9, verticalalignment='top',
             bbox=dict(boxstyle='round', facecolor='white', alpha=0.9))
    return _save(fig, output_dir, '03_attitude.png')


def generate_all_plots(result, output_dir: str = "plots") -> List[str]:
    """Generate every flight plot.

    Args:
        result: FlightResult
        output_dir: Directory to save plots (created if it doesn't exist)

    Returns:
        List of paths to saved plot files
    """
    os.makedirs(output_dir, exist_ok=True)
    configure_plot_style()
    data = extract_flight_data(result)

    saved_files = []
    for plot_func in (plot_trajectory, plot_height_speed, plot_attitude):
        path = plot_func(result, data, output_dir)
        logger.info(f"Saved {path}")
        saved_files.append(path)
    return saved_files
