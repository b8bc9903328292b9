"""
Fixed-step explicit integrator with per-state clamping.

The update order is part of the model and must not be rearranged:

    1. dq    <- clamp(dq + ddq * dt, dq_limit)
    2. q     <- clamp(q + dq * dt, q_limit)          (uses the clamped dq)
    3. omega <- clamp(omega + alpha * dt, omega_limit)
    4. phi   <- phi + omega * dt                     (uses the clamped omega)
    5. r     <- r + v * dt
       v     <- v + (F / m) * dt

Translation is not clamped and advances with the velocity from the start
of the step: r is updated before v, so translation is plain explicit Euler
while the joint and attitude updates above are semi-implicit.  Swapping
the two lines in step 5 changes every trajectory.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .state import SpacecraftState


def clamp(value, limit: float):
    """Clamp a scalar or array symmetrically to [-limit, +limit]."""
    if np.ndim(value) == 0:
        return max(min(value, limit), -limit)
    return np.clip(value, -limit, limit)


def integrate_step(state: SpacecraftState,
                   joint_accelerations: np.ndarray,
                   angular_acceleration: float,
                   thrust: np.ndarray,
                   mass_satellite: float,
                   dt: float,
                   limits: Tuple[float, float, float] = (np.inf, np.inf, np.inf)) -> SpacecraftState:
    """
    Advance the state by one forward-Euler step.

    Args:
        state: State at the start of the step (left untouched)
        joint_accelerations: ddq (2,) [rad/s^2]
        angular_acceleration: Body angular acceleration [rad/s^2]
        thrust: Thrust force on the base (2,) [N]
        mass_satellite: Spacecraft mass [kg]
        dt: Step size [s]
        limits: (q_limit, dq_limit, omega_limit)

    Returns:
        The state at the end of the step
    """
    q_limit, dq_limit, omega_limit = limits
    ddq = np.asarray(joint_accelerations, dtype=float).reshape(2)

    # Manipulator: rate first, then angle with the clamped rate
    joint_velocities = clamp(state.joint_velocities + ddq * dt, dq_limit)
    joint_angles = clamp(state.joint_angles + joint_velocities * dt, q_limit)

    # Spacecraft attitude
    angular_velocity = clamp(state.angular_velocity + angular_acceleration * dt, omega_limit)
    orientation = state.orientation + angular_velocity * dt

    # Spacecraft translation
    acceleration = np.asarray(thrust, dtype=float).reshape(2) / mass_satellite
    position = state.position + state.velocity * dt
    velocity = state.velocity + acceleration * dt

    return SpacecraftState(
        position=position,
        orientation=orientation,
        joint_angles=joint_angles,
        velocity=velocity,
        angular_velocity=angular_velocity,
        joint_velocities=joint_velocities,
    )
