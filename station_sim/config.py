"""
Modular Station Simulation - Configuration

This module provides a SimulationConfig dataclass for dependency injection,
allowing different station parameters to be passed without modifying
global constants.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from . import constants as C


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable configuration for station simulation parameters.

    Using frozen=True ensures configs cannot be accidentally modified.
    Create new configs via dataclass replace() if needed.

    Section grouping:
      1. Simulation timing
      2. Rendezvous physics
      3. Docking criteria
      4. Slot geometry
      5. Topology
      6. Telemetry
      7. Event log
      8. Policy
      9. Misc
    """

    # ── 1. Simulation timing ─────────────────────────────────────────────
    dt: float = C.DT
    max_time: float = C.MAX_SESSION_TIME

    # ── 2. Rendezvous physics ────────────────────────────────────────────
    mean_motion: float = C.MEAN_MOTION
    kp_approach: float = C.KP_APPROACH
    kd_approach: float = C.KD_APPROACH
    damping: float = C.DAMPING
    base_thrust: float = C.BASE_THRUST
    thrust_gain: float = C.THRUST_GAIN
    spawn_distance: float = C.SPAWN_DISTANCE

    # ── 3. Docking criteria ──────────────────────────────────────────────
    dock_radius: float = C.DOCK_RADIUS
    dock_speed: float = C.DOCK_SPEED
    docked_retention_time: float = C.DOCKED_RETENTION_TIME

    # ── 4. Slot geometry ─────────────────────────────────────────────────
    module_spacing: float = C.MODULE_SPACING
    slot_clearance: float = C.SLOT_CLEARANCE
    slot_angles_deg: Tuple[float, ...] = C.SLOT_ANGLES_DEG

    # ── 5. Topology ──────────────────────────────────────────────────────
    graph_proximity: float = C.GRAPH_PROXIMITY

    # ── 6. Telemetry ─────────────────────────────────────────────────────
    telemetry_frame_dt: float = C.TELEMETRY_FRAME_DT
    production_interval: float = C.PRODUCTION_INTERVAL

    # ── 7. Event log ─────────────────────────────────────────────────────
    event_log_capacity: int = C.EVENT_LOG_CAPACITY

    # ── 8. Policy ────────────────────────────────────────────────────────
    # When True only HUB-kind modules (and the initial hub) may become the
    # active hub; otherwise any docked module may.
    restrict_active_hub_to_hub_kind: bool = False

    # ── 9. Misc ──────────────────────────────────────────────────────────
    random_seed: Optional[int] = None
    validate_every_tick: bool = False
    verbose: bool = True


def create_default_config() -> SimulationConfig:
    """Create a SimulationConfig with default values from constants."""
    return SimulationConfig()


def create_test_config(seed: int = 42, **overrides) -> SimulationConfig:
    """Create a deterministic config suitable for testing.

    Any keyword arg accepted by SimulationConfig can be passed as an override.
    """
    defaults = dict(random_seed=seed, validate_every_tick=True, verbose=False)
    defaults.update(overrides)
    return SimulationConfig(**defaults)
