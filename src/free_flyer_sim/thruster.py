"""
Constant-magnitude translation thruster.

The thruster always pushes the base straight at the target with the full
rated force.  It neither throttles down nor saturates; close to the target
the distance used for normalisation is floored at ``epsilon`` so the
direction computation stays bounded.
"""

from __future__ import annotations

import numpy as np

from .spacecraft_properties import THRUST_EPSILON


def thrust_vector(position: np.ndarray,
                  target_position: np.ndarray,
                  thruster_force: float,
                  epsilon: float = THRUST_EPSILON) -> np.ndarray:
    """
    Thrust applied to the spacecraft base.

    Args:
        position: Spacecraft position (2,) [m]
        target_position: Target point (2,) [m]
        thruster_force: Rated thrust magnitude [N]
        epsilon: Distance floor for the normalisation [m]

    Returns:
        thrust: Force vector (2,) [N]; magnitude equals thruster_force whenever
        the base is farther than epsilon from the target
    """
    position_error = np.asarray(target_position, dtype=float).reshape(2) - np.asarray(position, dtype=float).reshape(2)
    distance = max(float(np.linalg.norm(position_error)), epsilon)
    return thruster_force * position_error / distance
