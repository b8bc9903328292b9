"""
Spacecraft + manipulator state container.

The flat 10 element layout used throughout the package is

    [x, y, phi, q1, q2, vx, vy, omega, dq1, dq2]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

STATE_SIZE = 10
STATE_LABELS = ("x", "y", "phi", "q1", "q2", "vx", "vy", "omega", "dq1", "dq2")


def _as_pair(values) -> np.ndarray:
    return np.array(values, dtype=float).reshape(2)


@dataclass
class SpacecraftState:
    """
    Kinematic state of the spacecraft base and the manipulator joints.

    Attributes:
        position: Base position in the world frame (2,) [m]
        orientation: Base angle phi [rad]
        joint_angles: (q1, q2) [rad]
        velocity: Base velocity (2,) [m/s]
        angular_velocity: Base rate omega [rad/s]
        joint_velocities: (dq1, dq2) [rad/s]
    """
    position: np.ndarray
    orientation: float
    joint_angles: np.ndarray
    velocity: np.ndarray
    angular_velocity: float
    joint_velocities: np.ndarray

    def __post_init__(self):
        self.position = _as_pair(self.position)
        self.joint_angles = _as_pair(self.joint_angles)
        self.velocity = _as_pair(self.velocity)
        self.joint_velocities = _as_pair(self.joint_velocities)
        self.orientation = float(self.orientation)
        self.angular_velocity = float(self.angular_velocity)

    @classmethod
    def from_vector(cls, vector: Iterable[float]) -> "SpacecraftState":
        """Build a state from the flat 10 element layout."""
        v = np.asarray(list(vector), dtype=float)
        if v.shape != (STATE_SIZE,):
            raise ValueError(f"State vector must have {STATE_SIZE} elements, got shape {v.shape}")
        return cls(
            position=v[0:2],
            orientation=v[2],
            joint_angles=v[3:5],
            velocity=v[5:7],
            angular_velocity=v[7],
            joint_velocities=v[8:10],
        )

    def as_vector(self) -> np.ndarray:
        """Return the flat 10 element layout."""
        return np.concatenate([
            self.position,
            [self.orientation],
            self.joint_angles,
            self.velocity,
            [self.angular_velocity],
            self.joint_velocities,
        ])

    def copy(self) -> "SpacecraftState":
        return SpacecraftState(
            position=self.position.copy(),
            orientation=self.orientation,
            joint_angles=self.joint_angles.copy(),
            velocity=self.velocity.copy(),
            angular_velocity=self.angular_velocity,
            joint_velocities=self.joint_velocities.copy(),
        )

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.as_vector())))
