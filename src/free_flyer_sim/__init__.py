"""
Free-Flying Spacecraft Manipulator Simulation

A planar spacecraft carries a 2-link arm that must bring its end-effector to
a fixed target.  Joint torques come from a task-space PD law, a constant
thruster moves the base toward the target, and the reaction of the arm
torques spins the base.

This package provides the following modules:

    spacecraft_properties : Reference physical constants, gains and limits
    config                : SimulationConfig, presets and validation
    state                 : SpacecraftState container
    reaction_coupling     : Arm torque -> body reaction torque
    thruster              : Constant-magnitude thrust toward the target
    integrator            : Forward-Euler update with state clamping
    simulation            : Step function, loop state machine and history
    visualization         : Matplotlib plots and replay animation
    cli                   : Command line front end
"""

__version__ = "0.1.0"

# ============================================================================
# Configuration and state
# ============================================================================
from .config import (
    PRESETS,
    ConfigurationError,
    SimulationConfig,
)
from .state import SpacecraftState

# ============================================================================
# Actuators and integration
# ============================================================================
from .reaction_coupling import reaction_torque, body_angular_acceleration
from .thruster import thrust_vector
from .integrator import clamp, integrate_step

# ============================================================================
# Simulation loop
# ============================================================================
from .simulation import (
    FreeFlyerSimulation,
    HistoryRecord,
    SimulationHistory,
    SimulationResult,
    SimulationStatus,
    StepDiagnostics,
    advance,
    run_simulation,
)

# Re-exported so callers can catch it without importing manipulator_control.
from manipulator_control.dynamics import NumericalDegeneracy

__all__ = [
    "__version__",
    # Configuration
    "PRESETS",
    "ConfigurationError",
    "SimulationConfig",
    "SpacecraftState",
    # Actuators / integration
    "reaction_torque",
    "body_angular_acceleration",
    "thrust_vector",
    "clamp",
    "integrate_step",
    # Simulation
    "FreeFlyerSimulation",
    "HistoryRecord",
    "SimulationHistory",
    "SimulationResult",
    "SimulationStatus",
    "StepDiagnostics",
    "advance",
    "run_simulation",
    "NumericalDegeneracy",
]
