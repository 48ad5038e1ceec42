"""
Modular Station Simulation - Slot Allocation

Candidate docking slots sit on a circle of radius MODULE_SPACING around a hub,
one per hexagonal face. The first candidate (in angle order) with no module
within SLOT_CLEARANCE is chosen; allocation is a pure query.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config


@dataclass
class Slot:
    """A candidate placement around a hub."""
    angle_deg: float
    position: np.ndarray

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)

    @property
    def heading_deg(self) -> float:
        """Orientation that presents the docking face toward the hub (deg)."""
        return (self.angle_deg + C.DOCKING_FACE_OFFSET_DEG) % 360.0


def slot_position(hub_position: np.ndarray, angle_deg: float,
                  radius: float = C.MODULE_SPACING) -> np.ndarray:
    """
    Position of the slot at angle_deg around a hub, in the horizontal plane.

    position = hub + radius * (cos a, 0, sin a)
    """
    rad = np.radians(angle_deg)
    offset = np.array([np.cos(rad), 0.0, np.sin(rad)]) * radius
    return np.asarray(hub_position, dtype=np.float64) + offset


def candidate_slots(hub_position: np.ndarray,
                    angles_deg: Sequence[float] = C.SLOT_ANGLES_DEG,
                    radius: float = C.MODULE_SPACING) -> list:
    """All candidate slots around a hub in allocation order."""
    return [Slot(angle, slot_position(hub_position, angle, radius)) for angle in angles_deg]


def is_slot_free(candidate: np.ndarray, occupied_positions: Iterable[np.ndarray],
                 clearance: float = C.SLOT_CLEARANCE) -> bool:
    """True if no occupied position lies within clearance of the candidate."""
    for pos in occupied_positions:
        if np.linalg.norm(np.asarray(pos) - candidate) < clearance:
            return False
    return True


def find_free_slot(hub_position: np.ndarray,
                   occupied_positions: Sequence[np.ndarray],
                   angles_deg: Sequence[float] = C.SLOT_ANGLES_DEG,
                   radius: float = C.MODULE_SPACING,
                   clearance: float = C.SLOT_CLEARANCE) -> Optional[Slot]:
    """
    Find the first unoccupied slot around a hub.

    Args:
        hub_position: Hub world position [x, y, z]
        occupied_positions: Positions of every registered module, hub included
        angles_deg: Candidate angles in allocation order
        radius: Hub-to-slot distance
        clearance: Minimum distance between a slot and any module

    Returns:
        The first free Slot, or None if every candidate is occupied
    """
    occupied = [np.asarray(p, dtype=np.float64) for p in occupied_positions]
    for slot in candidate_slots(hub_position, angles_deg, radius):
        if is_slot_free(slot.position, occupied, clearance):
            return slot
    return None


class SlotAllocator:
    """Slot allocation against the station registry."""

    def __init__(self, config: SimulationConfig = None):
        self.config = config or create_default_config()

    def find_free_slot(self, hub, modules) -> Optional[Slot]:
        """
        Args:
            hub: Module serving as the frame of reference
            modules: Every registered module (hub included)

        Returns:
            The first free Slot or None when the hub is full
        """
        return find_free_slot(
            hub.position,
            [m.occupied_position for m in modules],
            angles_deg=self.config.slot_angles_deg,
            radius=self.config.module_spacing,
            clearance=self.config.slot_clearance,
        )
