"""
Free-Flyer Simulation Loop

Drives one step at a time:

    state -> kinematics -> task-space controller -> arm dynamics
          -> reaction coupling + thruster -> integrator -> next state

and records a HistoryRecord per step.  The loop is a small state machine:

    RUNNING -> CONVERGED   end-effector within goal_tolerance of the target
    RUNNING -> EXHAUSTED   max_steps taken without converging
    RUNNING -> ERROR       arm dynamics could not be solved or the state blew up

Everything is deterministic and headless.  Rendering and reporting live in
visualization.py and cli.py and only ever read the recorded history.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from manipulator_control.controller import TaskSpaceController
from manipulator_control.dynamics import (
    NumericalDegeneracy,
    coriolis_matrix,
    joint_accelerations,
    mass_matrix,
)
from manipulator_control.kinematics import forward_kinematics

from .config import SimulationConfig
from .integrator import integrate_step
from .reaction_coupling import body_angular_acceleration, reaction_torque
from .state import SpacecraftState
from .thruster import thrust_vector

logger = logging.getLogger(__name__)


class SimulationStatus(Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SimulationStatus.RUNNING


def _read_only(array) -> np.ndarray:
    out = np.array(array, dtype=float)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class StepDiagnostics:
    """Intermediate quantities computed while advancing one step."""
    end_effector: np.ndarray
    end_effector_error: np.ndarray
    end_effector_error_rate: np.ndarray
    joint_torque: np.ndarray
    reaction_torque: float
    joint_accelerations: np.ndarray
    angular_acceleration: float
    thrust: np.ndarray

    def __post_init__(self):
        for name in ('end_effector', 'end_effector_error', 'end_effector_error_rate',
                     'joint_torque', 'joint_accelerations', 'thrust'):
            object.__setattr__(self, name, _read_only(getattr(self, name)))


@dataclass(frozen=True)
class HistoryRecord:
    """
    Snapshot taken at the start of a step.

    The record keeps its own copy of the state with read-only arrays, so
    later steps and consumers cannot alter what was recorded.

    ``diagnostics`` is None for the record on which the run terminated
    (converged or failed), since no full step was taken from that state.
    """
    step: int
    time: float
    state: SpacecraftState
    end_effector: np.ndarray
    end_effector_error: np.ndarray
    diagnostics: Optional[StepDiagnostics] = None

    def __post_init__(self):
        state = self.state.copy()
        for name in ('position', 'joint_angles', 'velocity', 'joint_velocities'):
            getattr(state, name).setflags(write=False)
        object.__setattr__(self, 'state', state)
        object.__setattr__(self, 'end_effector', _read_only(self.end_effector))
        object.__setattr__(self, 'end_effector_error', _read_only(self.end_effector_error))

    @property
    def error_norm(self) -> float:
        return float(np.linalg.norm(self.end_effector_error))


class SimulationHistory(Sequence):
    """
    Read-only, re-iterable sequence of HistoryRecords in step order.

    Indexing and iteration never touch the simulation; a renderer can walk
    the history as many times as it likes at its own pace.
    """

    def __init__(self, records: List[HistoryRecord]):
        self._records = tuple(records)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return SimulationHistory(list(self._records[index]))
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"SimulationHistory(len={len(self)})"

    # ------------------------------------------------------------------
    # Array views (one row per record)
    # ------------------------------------------------------------------

    def times(self) -> np.ndarray:
        return np.array([r.time for r in self._records], dtype=float)

    def states(self) -> np.ndarray:
        """State vectors, shape (N, 10)."""
        if not self._records:
            return np.zeros((0, 10))
        return np.vstack([r.state.as_vector() for r in self._records])

    def end_effector_positions(self) -> np.ndarray:
        if not self._records:
            return np.zeros((0, 2))
        return np.vstack([r.end_effector for r in self._records])

    def errors(self) -> np.ndarray:
        """End-effector error vectors, shape (N, 2)."""
        if not self._records:
            return np.zeros((0, 2))
        return np.vstack([r.end_effector_error for r in self._records])

    def error_norms(self) -> np.ndarray:
        return np.array([r.error_norm for r in self._records], dtype=float)

    def _diagnostic(self, name: str, width: int) -> np.ndarray:
        # Rows without diagnostics (the terminal record) are NaN.
        out = np.full((len(self._records), width), np.nan)
        for i, record in enumerate(self._records):
            if record.diagnostics is not None:
                out[i] = getattr(record.diagnostics, name)
        return out

    def joint_torques(self) -> np.ndarray:
        return self._diagnostic('joint_torque', 2)

    def reaction_torques(self) -> np.ndarray:
        return self._diagnostic('reaction_torque', 1)[:, 0]

    def thrusts(self) -> np.ndarray:
        return self._diagnostic('thrust', 2)


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of a complete run.

    Attributes:
        status: Terminal SimulationStatus
        steps: Number of steps taken, equal to len(history)
        history: Recorded SimulationHistory
        final_state: State after the last step (the converged / failing
            state itself for CONVERGED and ERROR)
        config: Configuration the run used
        error: The NumericalDegeneracy for ERROR runs, else None
    """
    status: SimulationStatus
    steps: int
    history: SimulationHistory
    final_state: SpacecraftState
    config: SimulationConfig
    error: Optional[NumericalDegeneracy] = None

    @property
    def converged(self) -> bool:
        return self.status is SimulationStatus.CONVERGED

    @property
    def final_error_norm(self) -> float:
        if not len(self.history):
            return float('nan')
        return self.history[-1].error_norm


def build_controller(config: SimulationConfig) -> TaskSpaceController:
    return TaskSpaceController(
        Kp=config.Kp,
        Kd=config.Kd,
        l1=config.l1,
        l2=config.l2,
        regularization_factor=config.regularization_factor,
        method=config.controller,
    )


def advance(state: SpacecraftState,
            config: SimulationConfig,
            controller: Optional[TaskSpaceController] = None) -> Tuple[SpacecraftState, StepDiagnostics]:
    """
    Compute the next state from (state, config) without side effects.

    Args:
        state: Current state (not modified)
        config: Run configuration
        controller: Pre-built controller; built from config when omitted

    Returns:
        (next_state, diagnostics)

    Raises:
        NumericalDegeneracy: If the coupled arm dynamics cannot be solved or
            the integrated state is no longer finite
    """
    if controller is None:
        controller = build_controller(config)
    target = config.target

    control = controller.compute_torque(
        state.position,
        state.orientation,
        state.joint_angles,
        state.joint_velocities,
        target,
    )
    tau = control.torque

    tau_reaction = reaction_torque(tau)
    alpha = body_angular_acceleration(tau_reaction, config.inertia_satellite)

    if config.coupled_dynamics:
        q2 = state.joint_angles[1]
        dq1, dq2 = state.joint_velocities
        H = mass_matrix(q2, config.l1, config.l2, config.m1, config.m2, config.inertia_satellite)
        C = coriolis_matrix(q2, dq1, dq2, config.l1, config.l2, config.m2)
        ddq = joint_accelerations(H, C, state.joint_velocities, tau, config.condition_limit)
    else:
        ddq = np.zeros(2)

    thrust = thrust_vector(state.position, target, config.thruster_force, config.thrust_epsilon)

    next_state = integrate_step(
        state,
        ddq,
        alpha,
        thrust,
        config.mass_satellite,
        config.dt,
        config.effective_limits(),
    )
    if not next_state.is_finite():
        raise NumericalDegeneracy("Integrated state contains non-finite entries")

    diagnostics = StepDiagnostics(
        end_effector=control.end_effector,
        end_effector_error=control.error,
        end_effector_error_rate=control.error_rate,
        joint_torque=tau,
        reaction_torque=tau_reaction,
        joint_accelerations=ddq,
        angular_acceleration=alpha,
        thrust=thrust,
    )
    return next_state, diagnostics


class FreeFlyerSimulation:
    """
    Runs the end-effector reaching scenario for one configuration.

    Typical usage::

        sim = FreeFlyerSimulation(SimulationConfig.from_preset('limited'))
        result = sim.run()
        print(result.status, result.steps)

    ``iter_steps()`` yields the same records lazily; every call restarts
    from the configured initial state.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config if config is not None else SimulationConfig()
        self.controller = build_controller(self.config)
        self.status = SimulationStatus.RUNNING
        self.state = self.config.initial_spacecraft_state()
        self.error: Optional[NumericalDegeneracy] = None

    def _end_effector(self, state: SpacecraftState) -> np.ndarray:
        q1, q2 = state.joint_angles
        _, p_ee = forward_kinematics(
            state.position, state.orientation, q1, q2, self.config.l1, self.config.l2
        )
        return p_ee

    def iter_steps(self) -> Iterator[HistoryRecord]:
        """
        Run the loop lazily, yielding one HistoryRecord per step.

        ``self.status``, ``self.state`` and ``self.error`` reflect the run
        once the generator is exhausted.
        """
        cfg = self.config
        target = cfg.target
        state = cfg.initial_spacecraft_state()
        self.status = SimulationStatus.RUNNING
        self.state = state
        self.error = None

        logger.info(
            "Simulation started: target=(%.3f, %.3f) dt=%.3f max_steps=%d controller=%s coupled=%s",
            target[0], target[1], cfg.dt, cfg.max_steps, cfg.controller, cfg.coupled_dynamics,
        )

        for step in range(1, cfg.max_steps + 1):
            time = (step - 1) * cfg.dt
            p_ee = self._end_effector(state)
            error = p_ee - target

            if np.linalg.norm(error) < cfg.goal_tolerance:
                self.status = SimulationStatus.CONVERGED
                self.state = state
                logger.info("End effector reached the target at step %d (t=%.2f s)", step, time)
                yield HistoryRecord(step, time, state, p_ee, error)
                return

            try:
                next_state, diagnostics = advance(state, cfg, self.controller)
            except NumericalDegeneracy as exc:
                exc.state = state.copy()
                exc.step = step
                self.status = SimulationStatus.ERROR
                self.state = state
                self.error = exc
                logger.error("Numerical failure at step %d: %s", step, exc)
                yield HistoryRecord(step, time, state, p_ee, error)
                return

            yield HistoryRecord(step, time, state, p_ee, error, diagnostics)
            state = next_state
            self.state = state

        self.status = SimulationStatus.EXHAUSTED
        logger.warning(
            "Step budget exhausted after %d steps; end-effector error %.4f m",
            cfg.max_steps, float(np.linalg.norm(self._end_effector(state) - target)),
        )

    def run(self) -> SimulationResult:
        """Run to a terminal status and return the recorded result."""
        records = list(self.iter_steps())
        return SimulationResult(
            status=self.status,
            steps=len(records),
            history=SimulationHistory(records),
            final_state=self.state,
            config=self.config,
            error=self.error,
        )


def run_simulation(config: Optional[SimulationConfig] = None) -> SimulationResult:
    """Convenience wrapper: build a FreeFlyerSimulation and run it."""
    return FreeFlyerSimulation(config).run()
