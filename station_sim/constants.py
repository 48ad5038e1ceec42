"""
Modular Station Simulation - Constants and Station Parameters

This module defines the slot geometry, rendezvous physics, docking thresholds,
topology and telemetry parameters used throughout the simulation.

Units are scene units (u) for distance and seconds for time.
"""

import numpy as np

# =============================================================================
# SLOT GEOMETRY
# =============================================================================

# Distance from a hub centre to the centre of a docked neighbour (u)
MODULE_SPACING = 2.6

# A candidate slot is occupied if any module lies closer than this (u)
SLOT_CLEARANCE = 1.0

# Six faces of the hexagonal hub, offset by 30 deg so modules sit flush
# against a face rather than a corner
SLOT_ANGLE_OFFSET_DEG = 30.0
SLOT_ANGLE_STEP_DEG = 60.0
SLOT_COUNT = 6

SLOT_ANGLES_DEG = tuple(
    SLOT_ANGLE_OFFSET_DEG + i * SLOT_ANGLE_STEP_DEG for i in range(SLOT_COUNT)
)

# A docked module faces back toward the hub
DOCKING_FACE_OFFSET_DEG = 180.0

# =============================================================================
# INITIAL HUB
# =============================================================================

HUB_ID = "hub-0"
HUB_NAME = "Central Station"
HUB_POSITION = np.array([0.0, 0.0, 0.0])

# =============================================================================
# RENDEZVOUS PHYSICS (simplified Hill-Clohessy-Wiltshire)
# =============================================================================

# Fixed integration step per tick (s)
DT = 0.05

# Mean motion of the reference orbit (rad/s)
MEAN_MOTION = 0.05

# PD gains
KP_APPROACH = 0.9
KD_APPROACH = 1.2

# Relative velocity damping
DAMPING = 0.35

# Thrust saturation: umax = BASE_THRUST + THRUST_GAIN * |error|
BASE_THRUST = 0.02
THRUST_GAIN = 0.03

# Headless session length limit (s)
MAX_SESSION_TIME = 1800.0

# Agents spawn on a circle of this radius around the hub (u)
SPAWN_DISTANCE = 5.0

# =============================================================================
# DOCKING CRITERIA
# =============================================================================

# Both must hold simultaneously
DOCK_RADIUS = 0.15  # u
DOCK_SPEED = 0.1    # u/s

# Below this speed the approach ETA is reported as zero
ETA_MIN_SPEED = 0.1

# Completed rendezvous stay visible in progress displays for this long (s)
DOCKED_RETENTION_TIME = 3.0

# =============================================================================
# TOPOLOGY
# =============================================================================

# Docked modules within this distance of the hub share a port edge (u)
GRAPH_PROXIMITY = 3.0

# =============================================================================
# TELEMETRY
# =============================================================================

# Telemetry rates are specified per reference frame (60 Hz)
TELEMETRY_FRAME_DT = 1.0 / 60.0

# Initial / nominal centre values
NOMINAL_TEMPERATURE = 50.0   # deg C
NOMINAL_CPU_LOAD = 25.0      # %
NOMINAL_EFFICIENCY = 95.0    # %
NOMINAL_POWER = 12.5         # kW

# Nominal bands (low, high)
TEMPERATURE_BAND = (45.0, 55.0)
CPU_LOAD_BAND = (10.0, 40.0)
EFFICIENCY_BAND = (92.0, 98.0)
POWER_BAND = (10.0, 15.0)

# Random walk amplitude per frame
TEMPERATURE_WALK = 0.05
CPU_LOAD_WALK = 0.1
EFFICIENCY_WALK = 0.02
POWER_WALK = 0.05

# Corrective nudge per frame when outside the band
TEMPERATURE_NUDGE = 0.1
CPU_LOAD_NUDGE = 0.5
EFFICIENCY_NUDGE = 0.05
POWER_NUDGE = 0.1

# Critical trajectories (per frame) and their limits
CRITICAL_TEMPERATURE_RATE = 0.5
CRITICAL_TEMPERATURE_CEILING = 150.0
CRITICAL_CPU_LOAD = 99.9
CRITICAL_EFFICIENCY_RATE = 1.5
CRITICAL_EFFICIENCY_FLOOR = 10.0
CRITICAL_POWER_RATE = 0.8
CRITICAL_POWER_CEILING = 45.0

# Hard clamps applied every update
TEMPERATURE_BOUNDS = (0.0, 150.0)
CPU_LOAD_BOUNDS = (0.0, 100.0)
EFFICIENCY_BOUNDS = (0.0, 100.0)
POWER_BOUNDS = (0.0, 45.0)

# One resource unit produced per interval while docked (s)
PRODUCTION_INTERVAL = 1.0

# =============================================================================
# EVENT LOG
# =============================================================================

EVENT_LOG_CAPACITY = 100

# =============================================================================
# TOLERANCES
# =============================================================================

ZERO_TOLERANCE = 1e-10
