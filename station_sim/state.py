"""
Modular Station Simulation - Module Registry Entries

This module defines the Module dataclass held in the station registry and the
launch-time ModuleConfig supplied by callers.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

import numpy as np

from . import constants as C
from .telemetry import TelemetryModel
from .types import ModuleSnapshot


class ModuleKind(Enum):
    STANDARD = auto()
    HUB = auto()


class DockState(Enum):
    IN_TRANSIT = auto()
    DOCKED = auto()


@dataclass(frozen=True)
class ModuleConfig:
    """Launch configuration. name and color are passed through untouched."""
    name: str = "Module"
    color: Optional[str] = None
    kind: ModuleKind = ModuleKind.STANDARD


@dataclass(eq=False)
class Module:
    """
    A station component.

    Attributes:
        id: Stable unique identifier
        kind: STANDARD or HUB
        name: Display name from the launch config
        color: Opaque colour tag from the launch config
        position: World position [x, y, z] (u)
        target_position: Allocated slot position, None for the initial hub
        heading_deg: Orientation about the vertical axis (deg)
        dock_state: IN_TRANSIT or DOCKED
        is_initial_hub: True only for the station's designated hub node
        telemetry: Owned TelemetryModel
        docked_at: Simulation time of docking (s)
    """

    id: str
    kind: ModuleKind = ModuleKind.STANDARD
    name: str = "Module"
    color: Optional[str] = None
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    target_position: Optional[np.ndarray] = None
    heading_deg: float = 0.0
    dock_state: DockState = DockState.IN_TRANSIT
    is_initial_hub: bool = False
    telemetry: TelemetryModel = field(default_factory=TelemetryModel)
    docked_at: Optional[float] = None

    def __post_init__(self):
        """Ensure vectors are numpy arrays with correct dtype."""
        self.position = np.asarray(self.position, dtype=np.float64)
        if self.target_position is not None:
            self.target_position = np.asarray(self.target_position, dtype=np.float64)

    @property
    def is_docked(self) -> bool:
        return self.dock_state is DockState.DOCKED

    @property
    def is_hub_kind(self) -> bool:
        return self.kind is ModuleKind.HUB

    @property
    def occupied_position(self) -> np.ndarray:
        """Where the module blocks slot allocation: its reserved slot while in transit."""
        if self.dock_state is DockState.IN_TRANSIT and self.target_position is not None:
            return self.target_position
        return self.position

    def mark_docked(self, t: float):
        """IN_TRANSIT -> DOCKED. Happens exactly once."""
        if self.dock_state is DockState.DOCKED:
            raise ValueError(f"Module {self.id} is already docked")
        self.dock_state = DockState.DOCKED
        if self.target_position is not None:
            self.position = self.target_position.copy()
        self.docked_at = t

    def snapshot(self, active_hub_id: Optional[str] = None) -> ModuleSnapshot:
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'kind': self.kind.name,
            'position': self.position.copy(),
            'heading_deg': self.heading_deg,
            'dock_state': self.dock_state.name,
            'is_initial_hub': self.is_initial_hub,
            'is_active_hub': self.id == active_hub_id,
            'telemetry': self.telemetry.snapshot(),
        }

    def __str__(self) -> str:
        return (
            f"Module({self.id}, {self.name!r}, {self.kind.name}, "
            f"{self.dock_state.name}, pos={np.round(self.position, 3).tolist()})"
        )


def create_initial_hub(telemetry: TelemetryModel = None) -> Module:
    """
    Create the station's initial hub, docked at the origin.

    Returns:
        Module flagged as the initial hub
    """
    return Module(
        id=C.HUB_ID,
        kind=ModuleKind.HUB,
        name=C.HUB_NAME,
        position=C.HUB_POSITION.copy(),
        dock_state=DockState.DOCKED,
        is_initial_hub=True,
        telemetry=telemetry if telemetry is not None else TelemetryModel(),
        docked_at=0.0,
    )
