"""
Task-Space PD Controller

Maps the Cartesian end-effector error into joint torques:

    x_tilde  = p_ee - p_target
    dx_tilde = R(phi) * J * dq
    f        = Kp * x_tilde + Kd * dx_tilde

Two torque laws are available:

    'regularized' (damped least squares):
        tau = -(J^T J + lambda I)^-1 J^T f
    'transpose' (plain Jacobian transpose):
        tau = -J^T f

The damping term lambda keeps the regularized law well defined when the arm
passes through a kinematic singularity (q2 = 0 or q2 = pi).  A larger
lambda buys robustness at the cost of tracking accuracy.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import linalg

from .kinematics import end_effector_velocity, forward_kinematics, manipulator_jacobian

CONTROLLER_TYPES = ("regularized", "transpose")


@dataclass(frozen=True)
class ControlOutput:
    """Everything the controller computed for one step."""
    end_effector: np.ndarray   # world-frame end-effector position (2,)
    error: np.ndarray          # x_tilde (2,)
    error_rate: np.ndarray     # dx_tilde (2,)
    jacobian: np.ndarray       # body-frame Jacobian (2, 2)
    torque: np.ndarray         # joint torques (2,)


def damped_pseudo_inverse_torque(jacobian: np.ndarray,
                                 task_force: np.ndarray,
                                 regularization_factor: float) -> np.ndarray:
    """
    Return -(J^T J + lambda I)^-1 J^T f.

    With lambda = 0 at a singular Jacobian the normal equations have no
    unique solution; the minimum-norm least squares solution is used then.
    """
    J = np.asarray(jacobian, dtype=float)
    J_reg = J.T @ J + regularization_factor * np.eye(2)
    rhs = J.T @ task_force
    try:
        return -linalg.solve(J_reg, rhs)
    except linalg.LinAlgError:
        return -linalg.lstsq(J_reg, rhs)[0]


def jacobian_transpose_torque(jacobian: np.ndarray, task_force: np.ndarray) -> np.ndarray:
    """Return -J^T f."""
    return -np.asarray(jacobian, dtype=float).T @ task_force


class TaskSpaceController:
    """
    Cartesian PD controller for the end-effector of the 2-link arm.

    Attributes:
        Kp: Proportional gain on end-effector position error
        Kd: Derivative gain on end-effector velocity error
        l1, l2: Link lengths [m]
        regularization_factor: Damping lambda of the regularized law
        method: 'regularized' or 'transpose'
    """

    def __init__(self,
                 Kp: float,
                 Kd: float,
                 l1: float = 1.0,
                 l2: float = 1.0,
                 regularization_factor: float = 1e-6,
                 method: str = 'regularized'):
        method = method.lower()
        if method not in CONTROLLER_TYPES:
            raise ValueError(f"Unknown controller method: {method}. Use 'regularized' or 'transpose'")
        self.Kp = Kp
        self.Kd = Kd
        self.l1 = l1
        self.l2 = l2
        self.regularization_factor = regularization_factor
        self.method = method

    def compute_torque(self,
                       position: np.ndarray,
                       phi: float,
                       joint_angles: np.ndarray,
                       joint_velocities: np.ndarray,
                       target_position: np.ndarray) -> ControlOutput:
        """
        Compute the joint torques that push the end-effector toward the target.

        Args:
            position: Spacecraft position (2,) [m]
            phi: Spacecraft orientation [rad]
            joint_angles: (q1, q2) [rad]
            joint_velocities: (dq1, dq2) [rad/s]
            target_position: Target point in the world frame (2,) [m]

        Returns:
            ControlOutput with the error terms, Jacobian and torque
        """
        q1, q2 = (float(q) for q in np.asarray(joint_angles, dtype=float).reshape(2))
        target = np.asarray(target_position, dtype=float).reshape(2)

        _, p_ee = forward_kinematics(position, phi, q1, q2, self.l1, self.l2)
        J = manipulator_jacobian(q1, q2, self.l1, self.l2)

        x_tilde = p_ee - target
        dx_tilde = end_effector_velocity(phi, J, joint_velocities)
        task_force = self.Kp * x_tilde + self.Kd * dx_tilde

        if self.method == 'regularized':
            tau = damped_pseudo_inverse_torque(J, task_force, self.regularization_factor)
        else:
            tau = jacobian_transpose_torque(J, task_force)

        return ControlOutput(
            end_effector=p_ee,
            error=x_tilde,
            error_rate=dx_tilde,
            jacobian=J,
            torque=tau,
        )
