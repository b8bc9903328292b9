"""
Rigid-Body Dynamics of the 2-Link Manipulator

Joint accelerations follow from the standard manipulator equation

    H(q) * ddq + C(q, dq) * dq = tau

where H is the configuration dependent mass matrix and C collects the
Coriolis / centrifugal terms.  The spacecraft inertia is added to the
diagonal of H so the arm "feels" the free-floating base it is mounted on.

Link 1 is treated as a point mass at its midpoint (m1 * (l/2)^2 with the
reference 1 m link), link 2 as a point mass at its tip.
"""

from __future__ import annotations

import numpy as np
from scipy import linalg

# Condition number above which the mass matrix solve is refused.
DEFAULT_CONDITION_LIMIT = 1e12


class NumericalDegeneracy(np.linalg.LinAlgError):
    """
    Raised when the manipulator mass matrix cannot be inverted reliably.

    The simulation loop attaches the last valid spacecraft state and the
    step index before reporting the failure.

    Attributes:
        condition_number: Condition number of the offending matrix (inf if singular)
        state: Last valid simulation state, filled in by the caller
        step: 1-based step at which the failure occurred, filled in by the caller
    """

    def __init__(self, message: str, condition_number: float = np.inf):
        super().__init__(message)
        self.condition_number = condition_number
        self.state = None
        self.step = None


def mass_matrix(q2: float,
                l1: float,
                l2: float,
                m1: float,
                m2: float,
                inertia_satellite: float) -> np.ndarray:
    """
    Symmetric 2x2 mass matrix of the arm on the free-floating base.

    Args:
        q2: Elbow angle [rad]
        l1, l2: Link lengths [m]
        m1, m2: Link masses [kg]
        inertia_satellite: Spacecraft moment of inertia [kg*m^2]

    Returns:
        H: Mass matrix (2, 2)
    """
    c2 = np.cos(q2)
    H11 = m1 * 0.5**2 + m2 * (l1**2 + l2**2) + 2.0 * m2 * l1 * l2 * c2 + inertia_satellite
    H22 = m2 * l2**2 + inertia_satellite
    H12 = m2 * l1 * l2 * c2
    return np.array([[H11, H12], [H12, H22]], dtype=float)


def coriolis_matrix(q2: float,
                    dq1: float,
                    dq2: float,
                    l1: float,
                    l2: float,
                    m2: float) -> np.ndarray:
    """Velocity dependent Coriolis / centrifugal matrix C(q, dq)."""
    h = -m2 * l1 * l2 * np.sin(q2)
    return np.array([
        [h * dq2, h * (dq1 + dq2)],
        [-h * dq1, 0.0],
    ], dtype=float)


def joint_accelerations(H: np.ndarray,
                        C: np.ndarray,
                        joint_velocities: np.ndarray,
                        tau: np.ndarray,
                        condition_limit: float = DEFAULT_CONDITION_LIMIT) -> np.ndarray:
    """
    Solve H * ddq = tau - C * dq for the joint accelerations.

    Args:
        H: Mass matrix (2, 2)
        C: Coriolis matrix (2, 2)
        joint_velocities: Joint rates dq (2,)
        tau: Commanded joint torques (2,)
        condition_limit: Largest acceptable condition number of H

    Returns:
        ddq: Joint accelerations (2,)

    Raises:
        NumericalDegeneracy: If H is non-finite, singular or ill-conditioned, or
            if the joint rates, torques or tau - C * dq are non-finite
    """
    H = np.asarray(H, dtype=float)
    if not np.all(np.isfinite(H)):
        raise NumericalDegeneracy("Mass matrix contains non-finite entries")

    cond = float(np.linalg.cond(H))
    if not np.isfinite(cond) or cond > condition_limit:
        raise NumericalDegeneracy(
            f"Mass matrix is singular or ill-conditioned (cond={cond:.3e})",
            condition_number=cond,
        )

    dq = np.asarray(joint_velocities, dtype=float).reshape(2)
    tau = np.asarray(tau, dtype=float).reshape(2)
    if not (np.all(np.isfinite(dq)) and np.all(np.isfinite(tau))):
        raise NumericalDegeneracy("Joint rates or torques contain non-finite entries", condition_number=cond)

    with np.errstate(over="ignore", invalid="ignore"):
        rhs = tau - C @ dq
    if not np.all(np.isfinite(rhs)):
        raise NumericalDegeneracy("Generalised force tau - C * dq overflowed", condition_number=cond)

    try:
        return linalg.solve(H, rhs)
    except linalg.LinAlgError as exc:
        raise NumericalDegeneracy(f"Mass matrix solve failed: {exc}", condition_number=cond) from exc
