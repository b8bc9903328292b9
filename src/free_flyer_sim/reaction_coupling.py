"""
Reaction torque coupling between the manipulator and the spacecraft body.

Angular momentum of the free-floating system is conserved, so whatever
torque the joints command is felt by the base with the opposite sign:

    tau_reaction = -(tau_1 + tau_2)
    alpha_body   = tau_reaction / I_sat
"""

from __future__ import annotations

import numpy as np


def reaction_torque(tau_manipulator: np.ndarray) -> float:
    """Torque exerted back on the spacecraft body [N*m]."""
    return -float(np.sum(tau_manipulator))


def body_angular_acceleration(tau_reaction: float, inertia_satellite: float) -> float:
    """Angular acceleration of the spacecraft produced by the reaction torque [rad/s^2]."""
    return tau_reaction / inertia_satellite
