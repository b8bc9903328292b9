"""
Planar Kinematics for a 2-Link Manipulator on a Free-Flying Base

The manipulator is mounted at the centre of the spacecraft body.  Joint
angles are measured in the body frame, so every link vector has to be
rotated by the spacecraft orientation before it is expressed in the
inertial (world) frame:

    p1   = r + R(phi) * [l1 cos(q1),      l1 sin(q1)]
    p_ee = p1 + R(phi) * [l2 cos(q1+q2), l2 sin(q1+q2)]

The Jacobian returned here is the body-frame map from joint rates to
end-effector linear velocity.  It ignores base motion on purpose: the
task-space controller only uses it to shape joint torques.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def rotation_matrix(phi: float) -> np.ndarray:
    """Return the 2x2 rotation matrix for a planar angle ``phi`` [rad]."""
    c = np.cos(phi)
    s = np.sin(phi)
    return np.array([[c, -s], [s, c]], dtype=float)


def forward_kinematics(position: np.ndarray,
                       phi: float,
                       q1: float,
                       q2: float,
                       l1: float,
                       l2: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the elbow and end-effector positions in the world frame.

    Parameters
    ----------
    position : np.ndarray
        Spacecraft centre position (2,) [m]
    phi : float
        Spacecraft orientation [rad]
    q1, q2 : float
        Shoulder and elbow joint angles [rad]
    l1, l2 : float
        Link lengths [m]

    Returns
    -------
    p1 : np.ndarray
        Elbow position (2,)
    p_ee : np.ndarray
        End-effector position (2,)

    Examples
    --------
    >>> p1, p_ee = forward_kinematics(np.zeros(2), 0.0, 0.0, 0.0, 1.0, 1.0)
    >>> p_ee
    array([2., 0.])
    """
    position = np.asarray(position, dtype=float).reshape(2)
    R = rotation_matrix(phi)

    link1 = np.array([l1 * np.cos(q1), l1 * np.sin(q1)])
    link2 = np.array([l2 * np.cos(q1 + q2), l2 * np.sin(q1 + q2)])

    p1 = position + R @ link1
    p_ee = p1 + R @ link2
    return p1, p_ee


def manipulator_jacobian(q1: float, q2: float, l1: float, l2: float) -> np.ndarray:
    """
    Body-frame Jacobian of the end-effector position w.r.t. joint angles.

    Loses rank when the arm is fully stretched or folded (q2 = 0 or pi).
    """
    s1 = np.sin(q1)
    c1 = np.cos(q1)
    s12 = np.sin(q1 + q2)
    c12 = np.cos(q1 + q2)
    return np.array([
        [-l1 * s1 - l2 * s12, -l2 * s12],
        [l1 * c1 + l2 * c12, l2 * c12],
    ], dtype=float)


def end_effector_velocity(phi: float, jacobian: np.ndarray, joint_velocities: np.ndarray) -> np.ndarray:
    """Rotate the body-frame end-effector velocity ``J * dq`` into the world frame."""
    dq = np.asarray(joint_velocities, dtype=float).reshape(2)
    return rotation_matrix(phi) @ (jacobian @ dq)
