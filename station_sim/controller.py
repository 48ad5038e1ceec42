"""
Modular Station Simulation - Station Controller

This module orchestrates the station:
- Module registry (index 0 is always the initial hub)
- Active hub used as the frame of reference for new launches
- Single in-flight launch lock
- Rendezvous, topology and telemetry updates from one tick(dt) entry point

Launch backpressure is deliberate: while one module is in transit every
further launch is rejected with LOCKED. The lock clears only when that
module's agent docks; there is no mid-transit cancellation.
"""

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from .config import SimulationConfig, create_default_config
from .events import EventBus, EventKind, EventListener, EventLog, StationEvent
from .rendezvous import DockingCompletion, RendezvousSimulator
from .results import (
    InvalidRemoval,
    LaunchRejected,
    NoEligibleModule,
    RejectionReason,
    RemovalRejection,
)
from .slots import SlotAllocator
from .state import DockState, Module, ModuleConfig, ModuleKind, create_initial_hub
from .telemetry import TelemetryModel
from .topology import TopologyGraph
from .types import AgentSnapshot, DockedSnapshot, ModuleSnapshot, PathIds
from .validation import validate_station

logger = logging.getLogger(__name__)


class StationController:
    """
    Root of the station simulation.

    All randomness (spawn angles, fault selection, telemetry drift) is drawn
    from a single generator, so a seeded controller replays exactly.
    """

    def __init__(self, config: SimulationConfig = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or create_default_config()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)

        self.slot_allocator = SlotAllocator(self.config)
        self.rendezvous = RendezvousSimulator(self.config, rng=self.rng)
        self.graph = TopologyGraph(self.config)
        self.events = EventBus(EventLog(self.config.event_log_capacity))

        self.modules: List[Module] = []
        self._index: Dict[str, Module] = {}
        self._agent_origins: Dict[str, np.ndarray] = {}
        self._recently_docked: List[DockedSnapshot] = []
        self._pending_events: List[StationEvent] = []
        self._next_serial = 1

        self.time = 0.0
        self.in_flight_id: Optional[str] = None
        self.selected_id: Optional[str] = None

        hub = create_initial_hub(TelemetryModel(self.rng, self.config))
        self._register(hub)
        self.active_hub_id = hub.id
        self.graph.rebuild(self.modules)
        logger.info(f"Station online: central hub {hub.id} registered")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _register(self, module: Module):
        self.modules.append(module)
        self._index[module.id] = module

    def _emit(self, kind: EventKind, message: str, module_id: str = None,
              **payload) -> StationEvent:
        event = StationEvent(kind=kind, time=self.time, message=message,
                             module_id=module_id, payload=payload)
        self._pending_events.append(event)
        return self.events.emit(event)

    def _reject(self, reason: RejectionReason, message: str) -> LaunchRejected:
        self._emit(EventKind.LAUNCH_REJECTED, message, reason=reason.name)
        return LaunchRejected(reason=reason, message=message)

    def _world_position(self, module_id: str, relative: np.ndarray) -> np.ndarray:
        """Map agent plane coordinates (x, y) to world (x, 0, z) around the launch hub."""
        origin = self._agent_origins[module_id]
        return origin + np.array([relative[0], 0.0, relative[1]])

    def _complete_docking(self, completion: DockingCompletion):
        module = self._index.get(completion.module_id)
        self._agent_origins.pop(completion.module_id, None)
        if module is None:
            return

        module.mark_docked(self.time)
        if self.in_flight_id == module.id:
            self.in_flight_id = None

        self._recently_docked.append({
            'module_id': module.id,
            'name': module.name,
            'docked_at': self.time,
        })
        self.graph.rebuild(self.modules)
        self._emit(EventKind.MODULE_DOCKED,
                   f"{module.name} docked at t={self.time:.2f}s "
                   f"after {completion.elapsed:.2f}s approach",
                   module_id=module.id, ticks=completion.ticks,
                   elapsed=completion.elapsed)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def launch(self, hub_id: Optional[str] = None,
               config: Optional[ModuleConfig] = None):
        """
        Launch a new module toward the first free slot around a hub.

        Args:
            hub_id: Hub to attach to; the active hub when None
            config: Name, colour tag and kind of the new module

        Returns:
            The new IN_TRANSIT Module, or LaunchRejected (LOCKED,
            NO_FREE_SLOT or UNKNOWN_HUB)
        """
        config = config or ModuleConfig()

        if self.in_flight_id is not None:
            return self._reject(
                RejectionReason.LOCKED,
                f"Launch of {config.name} rejected: {self.in_flight_id} still in transit")

        hub_id = hub_id if hub_id is not None else self.active_hub_id
        hub = self._index.get(hub_id)
        if hub is None or not hub.is_docked:
            return self._reject(
                RejectionReason.UNKNOWN_HUB,
                f"Launch of {config.name} rejected: hub {hub_id} unavailable")

        slot = self.slot_allocator.find_free_slot(hub, self.modules)
        if slot is None:
            return self._reject(
                RejectionReason.NO_FREE_SLOT,
                f"Launch of {config.name} rejected: hub {hub.id} is full")

        module_id = f"module-{self._next_serial}"
        self._next_serial += 1

        module = Module(
            id=module_id,
            kind=config.kind,
            name=config.name,
            color=config.color,
            target_position=slot.position,
            heading_deg=slot.heading_deg,
            dock_state=DockState.IN_TRANSIT,
            telemetry=TelemetryModel(self.rng, self.config),
        )

        relative_target = (slot.position - hub.position)[[0, 2]]
        agent = self.rendezvous.spawn(module.id, relative_target)
        self._agent_origins[module.id] = hub.position.copy()
        module.position = self._world_position(module.id, agent.position)

        self._register(module)
        self.in_flight_id = module.id

        self._emit(EventKind.MODULE_LAUNCHED,
                   f"Launching {module.name} to slot {slot.angle_deg:.0f} deg of {hub.id}",
                   module_id=module.id, hub_id=hub.id, slot_angle_deg=slot.angle_deg)
        return module

    def set_active_hub(self, module_id: str) -> bool:
        """
        Make a docked module the frame of reference for subsequent launches.

        With restrict_active_hub_to_hub_kind only HUB-kind modules and the
        initial hub qualify.

        Returns:
            True if module_id is now the active hub
        """
        module = self._index.get(module_id)
        if module is None or not module.is_docked:
            logger.warning(f"Cannot activate hub {module_id}: not a docked module")
            return False
        if (self.config.restrict_active_hub_to_hub_kind
                and not (module.is_hub_kind or module.is_initial_hub)):
            logger.warning(f"Cannot activate hub {module_id}: not a hub module")
            return False
        if module_id == self.active_hub_id:
            return True

        self.active_hub_id = module_id
        self._emit(EventKind.ACTIVE_HUB_CHANGED,
                   f"Active hub changed to: {module.name}", module_id=module_id)
        return True

    def inject_random_fault(self):
        """
        Fault a uniformly chosen docked, STANDARD, NOMINAL module.

        Returns:
            The faulted Module, or NoEligibleModule when none qualifies
        """
        eligible = [
            m for m in self.modules
            if m.is_docked and m.kind is ModuleKind.STANDARD and not m.telemetry.is_critical
        ]
        if not eligible:
            result = NoEligibleModule()
            self._emit(EventKind.NO_ELIGIBLE_MODULE, result.message)
            return result

        module = eligible[int(self.rng.integers(len(eligible)))]
        module.telemetry.inject_fault()
        fault = module.telemetry.active_fault
        self._emit(EventKind.FAULT_INJECTED,
                   f"{fault.label.upper()} on {module.name}",
                   module_id=module.id, fault=fault.kind.name,
                   severity=fault.severity.name)
        return module

    def repair_all(self) -> int:
        """
        Repair every CRITICAL module.

        Returns:
            Number of modules repaired
        """
        repaired = 0
        for module in self.modules:
            if module.telemetry.repair():
                repaired += 1
                self._emit(EventKind.MODULE_REPAIRED, f"{module.name} repaired",
                           module_id=module.id)
        return repaired

    def remove(self, module_id: str):
        """
        Undock and remove a docked, non-hub module.

        Hubs are the initial hub, HUB-kind modules and the active hub.

        Returns:
            The removed Module, or InvalidRemoval with no state change
        """
        module = self._index.get(module_id)
        if module is None:
            reason, message = RemovalRejection.UNKNOWN_MODULE, f"Unknown module {module_id}"
        elif not module.is_docked:
            reason, message = RemovalRejection.IN_TRANSIT, f"{module.name} is still in transit"
        elif module.is_initial_hub or module.is_hub_kind or module.id == self.active_hub_id:
            reason, message = RemovalRejection.HUB, f"{module.name} is a hub"
        else:
            reason = None

        if reason is not None:
            logger.warning(f"Removal rejected: {message}")
            return InvalidRemoval(module_id=module_id, reason=reason, message=message)

        self.modules.remove(module)
        del self._index[module_id]
        if self.selected_id == module_id:
            self.selected_id = None
        self.graph.rebuild(self.modules)
        self._emit(EventKind.MODULE_REMOVED, f"{module.name} undocked",
                   module_id=module_id)
        return module

    def tick(self, dt: float) -> List[StationEvent]:
        """
        Advance the whole station by one frame.

        Each in-flight agent takes exactly one fixed rendezvous step; docked
        modules' telemetry advances by dt.

        Args:
            dt: Frame time (s)

        Returns:
            Events emitted since the previous tick, including those from
            commands issued in between

        Raises:
            ValueError: If dt is not positive and finite
        """
        if not np.isfinite(dt) or dt <= 0:
            raise ValueError(f"Tick dt must be positive and finite, got {dt}")

        self.time += dt

        completions = self.rendezvous.advance()
        for agent in self.rendezvous.agents:
            module = self._index.get(agent.module_id)
            if module is not None:
                module.position = self._world_position(agent.module_id, agent.position)
        for completion in completions:
            self._complete_docking(completion)

        for module in self.modules:
            if module.is_docked:
                module.telemetry.update(dt)

        horizon = self.time - self.config.docked_retention_time
        self._recently_docked = [d for d in self._recently_docked if d['docked_at'] > horizon]

        self.graph.rebuild(self.modules)

        if self.config.validate_every_tick:
            validate_station(self)

        events, self._pending_events = self._pending_events, []
        return events

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an event listener; returns an unsubscribe callable."""
        return self.events.subscribe(listener)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def hub(self) -> Module:
        return self.modules[0]

    @property
    def active_hub(self) -> Module:
        return self._index[self.active_hub_id]

    @property
    def is_locked(self) -> bool:
        return self.in_flight_id is not None

    @property
    def in_transit_count(self) -> int:
        return sum(1 for m in self.modules if m.dock_state is DockState.IN_TRANSIT)

    @property
    def event_log(self) -> EventLog:
        return self.events.log

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._index.get(module_id)

    def modules_snapshot(self) -> List[ModuleSnapshot]:
        return [m.snapshot(self.active_hub_id) for m in self.modules]

    def agents_snapshot(self) -> List[AgentSnapshot]:
        return self.rendezvous.snapshot()

    def recently_docked(self) -> List[DockedSnapshot]:
        return list(self._recently_docked)

    def shortest_path(self, module_id: str) -> PathIds:
        return self.graph.shortest_path(module_id)

    def select_module(self, module_id: Optional[str]) -> PathIds:
        """
        Select a module (e.g. from a pick) and return its path from the hub.

        Unknown ids or None clear the selection and return [].
        """
        if module_id is None or module_id not in self._index:
            self.selected_id = None
            return []
        self.selected_id = module_id
        return self.graph.shortest_path(module_id)

    def __str__(self) -> str:
        docked = sum(1 for m in self.modules if m.is_docked)
        return (
            f"Station(t={self.time:.2f}s, modules={len(self.modules)}, "
            f"docked={docked}, in_flight={self.in_flight_id}, "
            f"active_hub={self.active_hub_id})"
        )
