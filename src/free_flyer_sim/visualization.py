"""
Plotting and animation of recorded free-flyer runs.

Everything here consumes a finished SimulationResult.  Animation pacing
(``interval_ms``) belongs to matplotlib's timer and has no influence on the
simulation clock.
"""

from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation
from matplotlib.patches import Circle, Polygon

from manipulator_control.kinematics import forward_kinematics, rotation_matrix

from .simulation import SimulationResult
from .spacecraft_properties import BODY_HALF_SIZE, BOUNDARY_LIMIT
from .state import SpacecraftState

SPACECRAFT_COLOR = "#1f77b4"  # blue
LINK_COLOR = "k"
TARGET_COLOR = "#d62728"      # red
EE_PATH_COLOR = "#2ca02c"     # green


# ===========================================================================
# Geometry helpers
# ===========================================================================


def spacecraft_outline(state: SpacecraftState, half_size: float = BODY_HALF_SIZE) -> np.ndarray:
    """Corners of the square spacecraft body in the world frame, shape (4, 2)."""
    square = np.array([
        [-half_size, -half_size],
        [half_size, -half_size],
        [half_size, half_size],
        [-half_size, half_size],
    ])
    R = rotation_matrix(state.orientation)
    return square @ R.T + state.position


def manipulator_points(state: SpacecraftState, l1: float, l2: float) -> np.ndarray:
    """Base, elbow and end-effector positions, shape (3, 2)."""
    q1, q2 = state.joint_angles
    p1, p_ee = forward_kinematics(state.position, state.orientation, q1, q2, l1, l2)
    return np.vstack([state.position, p1, p_ee])


# ===========================================================================
# Static plots
# ===========================================================================


def plot_end_effector_error(result: SimulationResult, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """Plot the end-effector error norm against simulated time."""
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))

    history = result.history
    ax.plot(history.times(), history.error_norms(), color=SPACECRAFT_COLOR, linewidth=1.5)
    ax.axhline(result.config.goal_tolerance, color=TARGET_COLOR, linestyle="--",
               linewidth=1.0, label="Goal tolerance")
    ax.set_title("End-Effector Error Over Time")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Error (m)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right")
    return ax


def plot_trajectory(result: SimulationResult,
                    ax: Optional[plt.Axes] = None,
                    boundary_limit: float = BOUNDARY_LIMIT) -> plt.Axes:
    """Plot base and end-effector paths with the target circle and final pose."""
    if ax is None:
        _, ax = plt.subplots(figsize=(7, 7))

    cfg = result.config
    history = result.history
    states = history.states()
    ee = history.end_effector_positions()

    ax.plot(states[:, 0], states[:, 1], color=SPACECRAFT_COLOR, label="Spacecraft")
    ax.plot(ee[:, 0], ee[:, 1], color=EE_PATH_COLOR, label="End effector")
    ax.add_patch(Circle(cfg.target_position, cfg.goal_tolerance, fill=False,
                        edgecolor=TARGET_COLOR, linewidth=1.0))
    ax.plot(*cfg.target_position, marker="x", color=TARGET_COLOR, label="Target")

    if len(history):
        last = history[-1].state
        ax.add_patch(Polygon(spacecraft_outline(last), closed=True,
                             facecolor=SPACECRAFT_COLOR, alpha=0.4))
        arm = manipulator_points(last, cfg.l1, cfg.l2)
        ax.plot(arm[:, 0], arm[:, 1], color=LINK_COLOR, linewidth=2)

    ax.set_xlim(-boundary_limit, boundary_limit)
    ax.set_ylim(-boundary_limit, boundary_limit)
    ax.set_aspect("equal")
    ax.set_title("Spacecraft and 2-Link Manipulator")
    ax.set_xlabel("X Position (m)")
    ax.set_ylabel("Y Position (m)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower right")
    return ax


# ===========================================================================
# Animation
# ===========================================================================


def animate_simulation(result: SimulationResult,
                       interval_ms: int = 50,
                       boundary_limit: float = BOUNDARY_LIMIT,
                       fig: Optional[plt.Figure] = None) -> FuncAnimation:
    """
    Replay the recorded history as a matplotlib animation.

    Args:
        result: Finished simulation result
        interval_ms: Delay between frames [ms]
        boundary_limit: Half-width of the plot window [m]
        fig: Figure to draw into; a new one is created when omitted

    Returns:
        FuncAnimation (keep a reference to it while it is displayed)
    """
    if len(result.history) == 0:
        raise ValueError("Cannot animate an empty history")

    if fig is None:
        fig = plt.figure(figsize=(7, 7))
    ax = fig.add_subplot(111)
    cfg = result.config
    history = result.history

    ax.set_xlim(-boundary_limit, boundary_limit)
    ax.set_ylim(-boundary_limit, boundary_limit)
    ax.set_aspect("equal")
    ax.set_title("Spacecraft and 2-Link Manipulator with Reaction Control")
    ax.set_xlabel("X Position (m)")
    ax.set_ylabel("Y Position (m)")
    ax.add_patch(Circle(cfg.target_position, cfg.goal_tolerance, fill=False,
                        edgecolor=TARGET_COLOR, linewidth=0.5))

    first = history[0].state
    body = Polygon(spacecraft_outline(first), closed=True, facecolor=SPACECRAFT_COLOR)
    ax.add_patch(body)
    (link1,) = ax.plot([], [], color=LINK_COLOR, linewidth=2)
    (link2,) = ax.plot([], [], color=LINK_COLOR, linewidth=2)
    time_text = ax.text(0.02, 0.95, "", transform=ax.transAxes)

    def update(frame: int):
        record = history[frame]
        body.set_xy(spacecraft_outline(record.state))
        arm = manipulator_points(record.state, cfg.l1, cfg.l2)
        link1.set_data(arm[0:2, 0], arm[0:2, 1])
        link2.set_data(arm[1:3, 0], arm[1:3, 1])
        time_text.set_text(f"t = {record.time:.1f} s  |e| = {record.error_norm:.3f} m")
        return body, link1, link2, time_text

    return FuncAnimation(fig, update, frames=len(history), interval=interval_ms,
                         blit=False, repeat=False)
