"""
Simulation configuration and named presets.

A SimulationConfig is immutable for the whole run and is validated once,
before the loop starts.  The presets reproduce the progression of the
original study scripts as strategy switches instead of separate code:

    baseline   - low-gain Jacobian transpose law, no arm dynamics, no limits
    high_gain  - same, with the retuned gains and thrust
    coupled    - adds the manipulator mass / Coriolis dynamics
    limited    - reference setup: coupled dynamics, damped least squares
                 controller and joint / body rate limits
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from manipulator_control.controller import CONTROLLER_TYPES
from manipulator_control.dynamics import DEFAULT_CONDITION_LIMIT

from . import spacecraft_properties as props
from .state import STATE_SIZE, SpacecraftState


class ConfigurationError(ValueError):
    """Raised when a configuration value is outside its physical range."""


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters of one free-flyer simulation run.

    Attributes:
        mass_satellite: Spacecraft mass [kg]
        inertia_satellite: Spacecraft moment of inertia [kg*m^2]
        l1, l2: Link lengths [m]
        m1, m2: Link masses [kg]
        Kp, Kd: End-effector PD gains
        thruster_force: Constant thrust magnitude [N]
        q_limit: Joint angle limit [rad]
        dq_limit: Joint rate limit [rad/s]
        omega_limit: Spacecraft rate limit [rad/s]
        regularization_factor: Damping lambda for the pseudo-inverse
        dt: Integration step [s]
        max_steps: Step budget before the run is declared exhausted
        target_position: World-frame target point (x, y) [m]
        goal_tolerance: Convergence radius around the target [m]
        initial_state: Flat 10 element initial state
        coupled_dynamics: Integrate the arm through H and C (else joints coast)
        controller: 'regularized' or 'transpose'
        enforce_limits: Clamp joint angles / rates and body rate
        thrust_epsilon: Floor on the distance used to normalise thrust [m]
        condition_limit: Largest accepted condition number of the mass matrix
    """
    mass_satellite: float = props.MASS_SATELLITE
    inertia_satellite: float = props.INERTIA_SATELLITE
    l1: float = props.LINK_LENGTHS[0]
    l2: float = props.LINK_LENGTHS[1]
    m1: float = props.LINK_MASSES[0]
    m2: float = props.LINK_MASSES[1]
    Kp: float = props.KP_END_EFFECTOR
    Kd: float = props.KD_END_EFFECTOR
    thruster_force: float = props.THRUSTER_FORCE
    q_limit: float = props.Q_LIMIT
    dq_limit: float = props.DQ_LIMIT
    omega_limit: float = props.OMEGA_LIMIT
    regularization_factor: float = props.REGULARIZATION_FACTOR
    dt: float = props.DT
    max_steps: int = props.MAX_STEPS
    target_position: Tuple[float, float] = props.TARGET_POSITION
    goal_tolerance: float = props.GOAL_TOLERANCE
    initial_state: Tuple[float, ...] = props.INITIAL_STATE
    coupled_dynamics: bool = True
    controller: str = 'regularized'
    enforce_limits: bool = True
    thrust_epsilon: float = props.THRUST_EPSILON
    condition_limit: float = DEFAULT_CONDITION_LIMIT

    def __post_init__(self):
        # Sequences are stored as float tuples; arrays are handed out as copies.
        object.__setattr__(self, 'target_position', self._float_tuple('target_position', 2))
        object.__setattr__(self, 'initial_state', self._float_tuple('initial_state', STATE_SIZE))
        object.__setattr__(self, 'controller', str(self.controller).lower())
        self._validate()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _float_tuple(self, name: str, size: int) -> Tuple[float, ...]:
        try:
            values = np.asarray(getattr(self, name), dtype=float).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{name} must be a sequence of {size} numbers") from exc
        if values.shape != (size,):
            raise ConfigurationError(f"{name} must have {size} elements, got {values.size}")
        if not np.all(np.isfinite(values)):
            raise ConfigurationError(f"{name} must be finite")
        return tuple(float(v) for v in values)

    def _number(self, name: str) -> float:
        value = getattr(self, name)
        if isinstance(value, (bool, str)):
            raise ConfigurationError(f"{name} must be a number, got {value!r}")
        try:
            value = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
        if not np.isfinite(value):
            raise ConfigurationError(f"{name} must be finite, got {value}")
        return value

    def _validate(self):
        strictly_positive = (
            'mass_satellite', 'inertia_satellite', 'dt',
            'l1', 'l2', 'goal_tolerance', 'thrust_epsilon', 'condition_limit',
            'q_limit', 'dq_limit', 'omega_limit',
        )
        for name in strictly_positive:
            value = self._number(name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {value}")

        non_negative = ('m1', 'm2', 'Kp', 'Kd', 'thruster_force', 'regularization_factor')
        for name in non_negative:
            value = self._number(name)
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")

        max_steps = self._number('max_steps')
        if max_steps != int(max_steps) or max_steps <= 0:
            raise ConfigurationError(f"max_steps must be a positive integer, got {self.max_steps}")
        object.__setattr__(self, 'max_steps', int(max_steps))

        if self.controller not in CONTROLLER_TYPES:
            raise ConfigurationError(
                f"Unknown controller: {self.controller}. Use 'regularized' or 'transpose'"
            )
        if self.controller == 'regularized' and self.regularization_factor <= 0:
            raise ConfigurationError("regularization_factor must be > 0 for the regularized controller")

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def target(self) -> np.ndarray:
        """Target point as a fresh numpy array."""
        return np.array(self.target_position, dtype=float)

    @property
    def t_final(self) -> float:
        """Simulated time covered by the full step budget [s]."""
        return self.max_steps * self.dt

    def effective_limits(self) -> Tuple[float, float, float]:
        """Return (q_limit, dq_limit, omega_limit), infinite when limits are disabled."""
        if not self.enforce_limits:
            return np.inf, np.inf, np.inf
        return self.q_limit, self.dq_limit, self.omega_limit

    def initial_spacecraft_state(self) -> SpacecraftState:
        return SpacecraftState.from_vector(self.initial_state)

    def replace(self, **changes) -> "SimulationConfig":
        """Return a validated copy with some fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_preset(cls, name: str = 'limited', **overrides) -> "SimulationConfig":
        """
        Build a configuration from a named preset.

        Args:
            name: One of PRESETS ('baseline', 'high_gain', 'coupled', 'limited')
            **overrides: Field values replacing the preset's

        Returns:
            SimulationConfig
        """
        key = name.lower()
        if key not in PRESETS:
            raise ConfigurationError(
                f"Unknown preset: {name}. Available: {', '.join(sorted(PRESETS))}"
            )
        params = dict(PRESETS[key])
        params.update(overrides)
        return cls(**params)


# Original study scripts ran for 20 s at dt = 0.1 before limits were added.
_SHORT_RUN_STEPS = 200

PRESETS: Dict[str, Dict[str, object]] = {
    'baseline': {
        'Kp': 50.0,
        'Kd': 10.0,
        'thruster_force': 0.25,
        'coupled_dynamics': False,
        'controller': 'transpose',
        'enforce_limits': False,
        'max_steps': _SHORT_RUN_STEPS,
    },
    'high_gain': {
        'coupled_dynamics': False,
        'controller': 'transpose',
        'enforce_limits': False,
        'max_steps': _SHORT_RUN_STEPS,
    },
    'coupled': {
        'coupled_dynamics': True,
        'controller': 'transpose',
        'enforce_limits': False,
        'max_steps': _SHORT_RUN_STEPS,
    },
    'limited': {},
}
