"""
Basic Usage Examples for the Free-Flyer Simulation

This script walks through the main entry points: running the reference
configuration, comparing the presets and inspecting the recorded history.
"""

import numpy as np
import matplotlib.pyplot as plt

from free_flyer_sim import PRESETS, SimulationConfig, run_simulation
from free_flyer_sim.visualization import plot_end_effector_error, plot_trajectory


def example_1_reference_run():
    """Example 1: Run the reference (limited) configuration"""
    print("="*60)
    print("Example 1: Reference Run")
    print("="*60)

    config = SimulationConfig.from_preset('limited')
    result = run_simulation(config)

    print(f"\nStatus: {result.status.value}")
    print(f"Steps taken: {result.steps} of {config.max_steps}")
    print(f"Final end-effector error: {result.final_error_norm:.4f} m")
    return result


def example_2_compare_presets():
    """Example 2: Compare the four presets"""
    print("\n" + "="*60)
    print("Example 2: Comparing Presets")
    print("="*60)

    print(f"\n{'Preset':<12} {'Status':<11} {'Steps':<7} {'Final error (m)'}")
    print("-"*50)
    for name in PRESETS:
        result = run_simulation(SimulationConfig.from_preset(name))
        print(f"{name:<12} {result.status.value:<11} {result.steps:<7} {result.final_error_norm:.4f}")


def example_3_history_arrays(result):
    """Example 3: Pull arrays out of the recorded history"""
    print("\n" + "="*60)
    print("Example 3: History Arrays")
    print("="*60)

    history = result.history
    states = history.states()
    torques = history.reaction_torques()

    print(f"\nState array shape: {states.shape}")
    print(f"Peak |omega|: {np.max(np.abs(states[:, 7])):.4f} rad/s")
    print(f"Peak |reaction torque|: {np.nanmax(np.abs(torques)):.4f} N*m")

    fig, (ax_traj, ax_err) = plt.subplots(1, 2, figsize=(14, 6))
    plot_trajectory(result, ax=ax_traj)
    plot_end_effector_error(result, ax=ax_err)
    fig.tight_layout()
    plt.show()


if __name__ == "__main__":
    reference = example_1_reference_run()
    example_2_compare_presets()
    example_3_history_arrays(reference)
