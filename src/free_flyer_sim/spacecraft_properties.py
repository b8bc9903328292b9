"""
spacecraft_properties.py

Shared physical constants, controller gains and limits for the free-flying
spacecraft and its 2-link manipulator.

This module is the single source of truth for the reference parameter set.
SimulationConfig defaults and the named presets in config.py read their
values from here so that every run, test and plot uses the same numbers.
"""

from __future__ import annotations

import numpy as np

# ============================================================================
# Spacecraft body
# ============================================================================
MASS_SATELLITE = 10.0      # kg
INERTIA_SATELLITE = 10.0   # kg*m^2, about the out-of-plane axis

# ============================================================================
# Manipulator
# ============================================================================
LINK_LENGTHS = (1.0, 1.0)  # m, (l1, l2)
LINK_MASSES = (5.0, 5.0)   # kg, (m1, m2)

# ============================================================================
# Task-space controller
# ============================================================================
KP_END_EFFECTOR = 100.0
KD_END_EFFECTOR = 50.0
REGULARIZATION_FACTOR = 1e-6   # damping of J^T J near singular configurations

# ============================================================================
# Thruster
# ============================================================================
THRUSTER_FORCE = 0.2       # N, constant magnitude
THRUST_EPSILON = 1e-6      # m, guards the direction normalisation at the target

# ============================================================================
# State limits
# ============================================================================
Q_LIMIT = float(np.deg2rad(150.0))    # rad
DQ_LIMIT = float(np.deg2rad(50.0))    # rad/s
OMEGA_LIMIT = 1.0                     # rad/s

# ============================================================================
# Scenario
# ============================================================================
DT = 0.1                   # s
MAX_STEPS = 1000           # 100 s at dt = 0.1
TARGET_POSITION = (4.0, 4.0)
GOAL_TOLERANCE = 0.1       # m

# [x, y, phi, q1, q2, vx, vy, omega, dq1, dq2]
INITIAL_STATE = (
    0.0, 0.0, 0.0,
    float(np.deg2rad(30.0)), float(np.deg2rad(-45.0)),
    0.0, 0.0, 0.0,
    0.0, 0.0,
)

# Half-width of the square used to draw the spacecraft body.
BODY_HALF_SIZE = 0.5       # m
# Plot window half-width used by the visualisation layer.
BOUNDARY_LIMIT = 10.0      # m
