"""
Modular Station Simulation - Session Plots

Static figures of a recorded SessionLog:
- Approach trajectories in the hub plane (X-Z), with the slot ring
- Rendezvous progress versus time
- Docked module temperatures versus time
- Station occupancy (docked / in transit / critical)
"""

import os
from typing import List

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for batch processing
import matplotlib.pyplot as plt
import numpy as np

from . import constants as C
from .main import SessionLog


def plot_approach_trajectories(log: SessionLog, output_dir: str) -> str:
    """Approach paths of every module in the world X-Z plane."""
    fig, ax = plt.subplots(figsize=(7, 7))

    for module_id, xs in log.approach_x.items():
        zs = log.approach_z[module_id]
        label = log.names.get(module_id, module_id)
        ax.plot(xs, zs, linewidth=1.2, label=label)
        ax.plot(xs[0], zs[0], 'o', markersize=4, color='gray')
        ax.plot(xs[-1], zs[-1], 's', markersize=5, color='black')

    angles = np.radians(np.array(C.SLOT_ANGLES_DEG))
    ax.plot(C.MODULE_SPACING * np.cos(angles), C.MODULE_SPACING * np.sin(angles),
            'x', color='tab:red', label='Hub slots')
    ring = np.linspace(0.0, 2.0 * np.pi, 200)
    ax.plot(C.SPAWN_DISTANCE * np.cos(ring), C.SPAWN_DISTANCE * np.sin(ring),
            ':', color='gray', linewidth=0.8, label='Spawn circle')
    ax.plot(0.0, 0.0, '*', markersize=12, color='gold', label='Central hub')

    ax.set_xlabel('X (u)')
    ax.set_ylabel('Z (u)')
    ax.set_title('Rendezvous Approach Trajectories')
    ax.set_aspect('equal')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=7, loc='upper right')

    path = os.path.join(output_dir, 'approach_trajectories.png')
    fig.savefig(path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_progress(log: SessionLog, output_dir: str) -> str:
    """Rendezvous progress (monotonic) for every approach."""
    fig, ax = plt.subplots(figsize=(9, 4))
    for module_id, series in log.progress.items():
        t, p = zip(*series)
        ax.plot(t, p, label=log.names.get(module_id, module_id))
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Progress (%)')
    ax.set_ylim(0, 105)
    ax.set_title('Rendezvous Progress')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=7)

    path = os.path.join(output_dir, 'rendezvous_progress.png')
    fig.savefig(path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_temperatures(log: SessionLog, output_dir: str) -> str:
    """Temperature of every docked module."""
    fig, ax = plt.subplots(figsize=(9, 4))
    for module_id, series in log.temperature.items():
        t, temp = zip(*series)
        ax.plot(t, temp, linewidth=1.0, label=log.names.get(module_id, module_id))
    ax.axhspan(*C.TEMPERATURE_BAND, color='tab:green', alpha=0.1, label='Nominal band')
    ax.axhline(C.CRITICAL_TEMPERATURE_CEILING, color='tab:red', linestyle='--', linewidth=0.8)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Temperature (deg C)')
    ax.set_title('Module Temperatures')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=7)

    path = os.path.join(output_dir, 'module_temperatures.png')
    fig.savefig(path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_occupancy(log: SessionLog, output_dir: str) -> str:
    """Docked, in-transit and critical module counts."""
    fig, ax = plt.subplots(figsize=(9, 3.5))
    ax.step(log.time, log.docked, where='post', label='Docked')
    ax.step(log.time, log.in_transit, where='post', label='In transit')
    ax.step(log.time, log.critical, where='post', label='Critical')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Modules')
    ax.set_title('Station Occupancy')
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)

    path = os.path.join(output_dir, 'station_occupancy.png')
    fig.savefig(path, dpi=120, bbox_inches='tight')
    plt.close(fig)
    return path


def generate_all_plots(log: SessionLog, output_dir: str) -> List[str]:
    """
    Write every session figure to output_dir.

    Returns:
        Paths of the files written
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = [plot_approach_trajectories(log, output_dir)]
    if log.progress:
        paths.append(plot_progress(log, output_dir))
    if log.temperature:
        paths.append(plot_temperatures(log, output_dir))
    if log.time:
        paths.append(plot_occupancy(log, output_dir))
    return paths
