"""
Planar 2-Link Manipulator Control Library

Kinematics, rigid-body dynamics and task-space control for a two link arm
mounted on a free-floating base.  The functions here are stateless and
know nothing about the spacecraft simulation that drives them.
"""

from .kinematics import (
    rotation_matrix,
    forward_kinematics,
    manipulator_jacobian,
    end_effector_velocity,
)
from .dynamics import (
    NumericalDegeneracy,
    mass_matrix,
    coriolis_matrix,
    joint_accelerations,
)
from .controller import (
    CONTROLLER_TYPES,
    ControlOutput,
    TaskSpaceController,
    damped_pseudo_inverse_torque,
    jacobian_transpose_torque,
)

__version__ = "0.1.0"

__all__ = [
    'rotation_matrix',
    'forward_kinematics',
    'manipulator_jacobian',
    'end_effector_velocity',
    'NumericalDegeneracy',
    'mass_matrix',
    'coriolis_matrix',
    'joint_accelerations',
    'CONTROLLER_TYPES',
    'ControlOutput',
    'TaskSpaceController',
    'damped_pseudo_inverse_torque',
    'jacobian_transpose_torque',
]
