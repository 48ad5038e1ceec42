"""
Modular Station Simulation - Type Definitions

This module provides TypedDict definitions for the read-only snapshots handed
to presentation layers.
"""

from typing import List, Optional, TypedDict

import numpy as np
from numpy.typing import NDArray


class FaultSnapshot(TypedDict):
    """Active fault as seen by an inspector panel."""
    kind: str  # FaultKind name: VOLTAGE, THERMAL, PRESSURE, COMMS, PROCESSOR, SENSOR
    label: str  # Human-readable description
    severity: str  # FaultSeverity name


class TelemetrySnapshot(TypedDict):
    """Return type for TelemetryModel.snapshot()."""
    status: str  # NOMINAL or CRITICAL
    temperature_c: float  # Module temperature (deg C)
    cpu_load_pct: float  # Processor load (%)
    efficiency_pct: float  # Overall equipment effectiveness (%)
    power_kw: float  # Electrical draw (kW)
    resources_generated: int  # Units produced while docked
    active_fault: Optional[FaultSnapshot]  # Present iff status is CRITICAL


class ModuleSnapshot(TypedDict):
    """Return type for StationController.modules_snapshot() entries."""
    id: str
    name: str
    color: Optional[str]  # Opaque colour tag from the launch config
    kind: str  # STANDARD or HUB
    position: NDArray[np.float64]  # World position [x, y, z] (u)
    heading_deg: float  # Orientation about the vertical axis (deg)
    dock_state: str  # IN_TRANSIT or DOCKED
    is_initial_hub: bool
    is_active_hub: bool
    telemetry: TelemetrySnapshot


class AgentSnapshot(TypedDict):
    """Return type for in-progress rendezvous entries."""
    module_id: str
    position: NDArray[np.float64]  # Relative position in hub plane [x, y] (u)
    velocity: NDArray[np.float64]  # Relative velocity in hub plane [vx, vy] (u/s)
    target: NDArray[np.float64]  # Target in hub plane [tx, ty] (u)
    progress_pct: float  # Monotonic completion estimate (0-100)
    distance: float  # Distance to target (u)
    speed: float  # Relative speed (u/s)
    eta: float  # Estimated time to target (s), 0 when nearly stationary
    elapsed: float  # Simulated time since spawn (s)


class DockedSnapshot(TypedDict):
    """Recently completed rendezvous kept for progress displays."""
    module_id: str
    name: str
    docked_at: float  # Simulation time of docking (s)


# Module ids from the hub to a target, inclusive
PathIds = List[str]
