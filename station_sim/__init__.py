"""
Modular Space Station Simulation Package

The simulation core behind an interactive modular station: modules are
launched toward a hub, fly a controlled rendezvous to their docking slot and
then report simulated telemetry and faults.

Modules:
    - constants: Slot geometry, rendezvous physics and telemetry parameters
    - config: Immutable SimulationConfig
    - state: Module registry entries
    - telemetry: Telemetry model and fault state machine
    - slots: Slot allocation around a hub
    - rendezvous: HCW relative motion with PD approach control
    - topology: Hub-spoke graph and BFS pathfinding
    - events: Station events and bounded event log
    - results: Typed command rejections
    - validation: Station invariant checks
    - controller: StationController orchestration
    - main: Headless session runner
"""

from .config import SimulationConfig, create_default_config, create_test_config
from .controller import StationController
from .events import EventKind, EventLevel, StationEvent
from .main import SessionLog, run_session, run_until_docked
from .results import (
    InvalidRemoval,
    LaunchRejected,
    NoEligibleModule,
    RejectionReason,
    RemovalRejection,
)
from .state import DockState, Module, ModuleConfig, ModuleKind
from .telemetry import FaultKind, TelemetryModel, TelemetryStatus

__version__ = "0.1.0"

__all__ = [
    'SimulationConfig',
    'create_default_config',
    'create_test_config',
    'StationController',
    'EventKind',
    'EventLevel',
    'StationEvent',
    'SessionLog',
    'run_session',
    'run_until_docked',
    'InvalidRemoval',
    'LaunchRejected',
    'NoEligibleModule',
    'RejectionReason',
    'RemovalRejection',
    'DockState',
    'Module',
    'ModuleConfig',
    'ModuleKind',
    'FaultKind',
    'TelemetryModel',
    'TelemetryStatus',
]
