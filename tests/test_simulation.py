"""
Tests for the simulation loop, its state machine and recorded history.

Tests verify:
- Clamp invariants hold at every recorded step
- Reaction torque is exactly the negated summed joint torque
- Bit-for-bit determinism and restartable iteration
- CONVERGED / EXHAUSTED / ERROR terminal transitions
- The reference end-to-end scenario stays finite
- Strategy switches (uncoupled dynamics, disabled limits)
- Diverging runs end in ERROR and recorded history is read-only
"""

import dataclasses

import numpy as np
import pytest

import free_flyer_sim.simulation as simulation_module
from free_flyer_sim.config import SimulationConfig
from free_flyer_sim.simulation import (
    FreeFlyerSimulation,
    SimulationHistory,
    SimulationStatus,
    advance,
    run_simulation,
)
from manipulator_control.dynamics import NumericalDegeneracy
from manipulator_control.kinematics import forward_kinematics


@pytest.fixture(scope="module")
def reference_result():
    return run_simulation(SimulationConfig())


def _initial_end_effector(cfg):
    s = cfg.initial_spacecraft_state()
    return forward_kinematics(s.position, s.orientation, s.joint_angles[0], s.joint_angles[1],
                              cfg.l1, cfg.l2)[1]


class TestReferenceScenario:
    """End-to-end run of the reference configuration"""

    def test_terminates_normally(self, reference_result):
        assert reference_result.status in (SimulationStatus.CONVERGED, SimulationStatus.EXHAUSTED)
        assert reference_result.error is None

    def test_step_count_matches_history(self, reference_result):
        assert reference_result.steps == len(reference_result.history)
        assert 1 <= reference_result.steps <= 1000
        if reference_result.status is SimulationStatus.EXHAUSTED:
            assert reference_result.steps == 1000

    def test_errors_finite(self, reference_result):
        errors = reference_result.history.errors()
        assert errors.shape == (reference_result.steps, 2)
        assert np.all(np.isfinite(errors))

    def test_states_finite(self, reference_result):
        assert np.all(np.isfinite(reference_result.history.states()))
        assert reference_result.final_state.is_finite()

    def test_clamp_invariants(self, reference_result):
        cfg = reference_result.config
        states = reference_result.history.states()
        assert np.all(np.abs(states[:, 3:5]) <= cfg.q_limit)
        assert np.all(np.abs(states[:, 8:10]) <= cfg.dq_limit)
        assert np.all(np.abs(states[:, 7]) <= cfg.omega_limit)

    def test_reaction_torque_conservation(self, reference_result):
        for record in reference_result.history:
            if record.diagnostics is None:
                continue
            diag = record.diagnostics
            assert diag.reaction_torque == -float(np.sum(diag.joint_torque))
            assert diag.angular_acceleration == diag.reaction_torque / reference_result.config.inertia_satellite

    def test_first_record_is_initial_state(self, reference_result):
        first = reference_result.history[0]
        assert first.step == 1 and first.time == 0.0
        assert np.array_equal(first.state.as_vector(), np.array(SimulationConfig().initial_state))

    def test_records_chain_through_step_function(self, reference_result):
        """Each recorded state is advance() applied to the previous one"""
        cfg = reference_result.config
        history = reference_result.history
        for k in range(min(len(history) - 1, 25)):
            next_state, _ = advance(history[k].state, cfg)
            assert np.array_equal(next_state.as_vector(), history[k + 1].state.as_vector())

    def test_error_matches_end_effector(self, reference_result):
        target = reference_result.config.target
        for record in reference_result.history[:10]:
            assert np.allclose(record.end_effector_error, record.end_effector - target)


class TestDeterminism:
    """Identical inputs give identical histories"""

    def test_two_runs_bit_identical(self):
        cfg = SimulationConfig(max_steps=300)
        a = run_simulation(cfg)
        b = run_simulation(cfg)
        assert a.status is b.status and a.steps == b.steps
        assert np.array_equal(a.history.states(), b.history.states())
        assert np.array_equal(a.history.errors(), b.history.errors())

    def test_iter_steps_restarts(self):
        sim = FreeFlyerSimulation(SimulationConfig(max_steps=40))
        first = [r.state.as_vector() for r in sim.iter_steps()]
        second = [r.state.as_vector() for r in sim.iter_steps()]
        assert len(first) == len(second) == 40
        assert all(np.array_equal(x, y) for x, y in zip(first, second))

    def test_iter_steps_is_lazy(self):
        sim = FreeFlyerSimulation(SimulationConfig())
        steps = sim.iter_steps()
        record = next(steps)
        assert record.step == 1
        assert sim.status is SimulationStatus.RUNNING

    def test_advance_does_not_mutate(self):
        cfg = SimulationConfig()
        state = cfg.initial_spacecraft_state()
        before = state.as_vector().copy()
        advance(state, cfg)
        assert np.array_equal(state.as_vector(), before)


class TestTermination:
    """Terminal state transitions"""

    def test_converged_on_first_step(self):
        cfg = SimulationConfig()
        cfg = cfg.replace(target_position=tuple(_initial_end_effector(cfg)))
        result = run_simulation(cfg)
        assert result.status is SimulationStatus.CONVERGED
        assert result.steps == 1
        assert len(result.history) == 1
        assert result.history[0].diagnostics is None
        assert result.converged

    def test_converged_within_tolerance(self):
        cfg = SimulationConfig()
        target = _initial_end_effector(cfg) + np.array([0.05, 0.0])
        result = run_simulation(cfg.replace(target_position=tuple(target)))
        assert result.status is SimulationStatus.CONVERGED
        assert result.steps == 1

    def test_exhausted(self):
        result = run_simulation(SimulationConfig(max_steps=5))
        assert result.status is SimulationStatus.EXHAUSTED
        assert result.steps == 5
        assert len(result.history) == 5
        assert all(r.diagnostics is not None for r in result.history)
        assert not result.converged

    def test_exhausted_final_state_is_one_step_past_history(self):
        cfg = SimulationConfig(max_steps=3)
        result = run_simulation(cfg)
        expected, _ = advance(result.history[-1].state, cfg)
        assert np.array_equal(result.final_state.as_vector(), expected.as_vector())

    def test_error_from_ill_conditioned_mass_matrix(self):
        """A condition limit of 1 rejects every physical mass matrix"""
        result = run_simulation(SimulationConfig(condition_limit=1.0))
        assert result.status is SimulationStatus.ERROR
        assert result.steps == 1
        assert isinstance(result.error, NumericalDegeneracy)
        assert result.error.step == 1
        assert np.array_equal(result.error.state.as_vector(), result.history[-1].state.as_vector())

    def test_error_midway_keeps_last_valid_state(self, monkeypatch):
        original = simulation_module.joint_accelerations
        calls = {"n": 0}

        def failing(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 4:
                raise NumericalDegeneracy("forced failure")
            return original(*args, **kwargs)

        monkeypatch.setattr(simulation_module, "joint_accelerations", failing)
        result = run_simulation(SimulationConfig())

        assert result.status is SimulationStatus.ERROR
        assert result.steps == 4
        assert result.error.step == 4
        assert result.history[-1].diagnostics is None
        assert all(r.diagnostics is not None for r in result.history[:3])
        assert np.array_equal(result.error.state.as_vector(), result.history[3].state.as_vector())
        assert np.array_equal(result.final_state.as_vector(), result.history[3].state.as_vector())

    def test_diverging_coupled_run_ends_in_error(self):
        """Unlimited transpose law with arm dynamics blows up and is reported"""
        result = run_simulation(SimulationConfig.from_preset('coupled'))
        assert result.status is SimulationStatus.ERROR
        assert isinstance(result.error, NumericalDegeneracy)
        assert result.error.step == result.steps
        assert result.error.state.is_finite()
        assert result.history[-1].diagnostics is None
        assert np.array_equal(result.final_state.as_vector(), result.history[-1].state.as_vector())

    def test_non_finite_integrated_state_ends_in_error(self, monkeypatch):
        original = simulation_module.integrate_step
        calls = {"n": 0}

        def blowing_up(*args, **kwargs):
            calls["n"] += 1
            state = original(*args, **kwargs)
            if calls["n"] == 3:
                state.velocity = np.array([np.inf, 0.0])
            return state

        monkeypatch.setattr(simulation_module, "integrate_step", blowing_up)
        result = run_simulation(SimulationConfig())

        assert result.status is SimulationStatus.ERROR
        assert result.steps == 3
        assert result.error.state.is_finite()
        assert all(r.state.is_finite() for r in result.history)

    def test_terminal_flags(self):
        assert not SimulationStatus.RUNNING.is_terminal
        for status in (SimulationStatus.CONVERGED, SimulationStatus.EXHAUSTED, SimulationStatus.ERROR):
            assert status.is_terminal


class TestStrategies:
    """Preset / strategy switches"""

    def test_uncoupled_joints_coast(self):
        """Without arm dynamics the joint rates never change from zero"""
        result = run_simulation(SimulationConfig.from_preset('baseline'))
        states = result.history.states()
        assert np.all(states[:, 8:10] == 0.0)
        assert np.all(states[:, 3:5] == states[0, 3:5])

    def test_uncoupled_reaction_still_spins_body(self):
        result = run_simulation(SimulationConfig.from_preset('high_gain', max_steps=20))
        for record in result.history:
            if record.diagnostics is None:
                continue
            diag = record.diagnostics
            assert diag.reaction_torque == -float(np.sum(diag.joint_torque))
            assert np.array_equal(diag.joint_accelerations, np.zeros(2))

    @pytest.mark.parametrize("name", ['baseline', 'high_gain', 'coupled', 'limited'])
    def test_every_preset_terminates(self, name):
        result = run_simulation(SimulationConfig.from_preset(name))
        assert result.status.is_terminal
        assert result.steps == len(result.history)

    def test_thrust_recorded_at_full_magnitude(self):
        result = run_simulation(SimulationConfig(max_steps=20))
        thrusts = result.history.thrusts()
        assert np.allclose(np.linalg.norm(thrusts, axis=1), 0.2)


class TestSimulationHistory:
    """Sequence behaviour of SimulationHistory"""

    def test_sequence_protocol(self):
        result = run_simulation(SimulationConfig(max_steps=10))
        history = result.history
        assert len(history) == 10
        assert history[-1].step == 10
        assert [r.step for r in history] == list(range(1, 11))
        assert isinstance(history[2:5], SimulationHistory)
        assert len(history[2:5]) == 3

    def test_times(self):
        result = run_simulation(SimulationConfig(max_steps=10))
        assert np.allclose(result.history.times(), np.arange(10) * 0.1)

    def test_missing_diagnostics_are_nan(self):
        cfg = SimulationConfig()
        cfg = cfg.replace(target_position=tuple(_initial_end_effector(cfg)))
        history = run_simulation(cfg).history
        assert np.all(np.isnan(history.joint_torques()))
        assert np.isnan(history.reaction_torques()[0])

    def test_empty_history_arrays(self):
        history = SimulationHistory([])
        assert history.states().shape == (0, 10)
        assert history.errors().shape == (0, 2)
        assert history.error_norms().shape == (0,)

    def test_records_are_read_only(self):
        result = run_simulation(SimulationConfig(max_steps=5))
        record = result.history[0]
        with pytest.raises(ValueError):
            record.state.position[0] = 100.0
        with pytest.raises(ValueError):
            record.end_effector_error[0] = 0.0
        with pytest.raises(ValueError):
            record.diagnostics.joint_torque[0] = 0.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.step = 7

    def test_records_do_not_alias_the_live_state(self):
        sim = FreeFlyerSimulation(SimulationConfig(max_steps=3))
        record = next(sim.iter_steps())
        assert record.state is not sim.state
        sim.state.position[0] = 100.0
        assert record.state.position[0] != 100.0
