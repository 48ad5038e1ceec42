"""
Modular Station Simulation - Station Events

Events emitted by the controller for presentation layers, plus a bounded
chronological log of them for an operator console.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
import logging
from typing import Callable, Deque, Dict, List, Optional

from . import constants as C

logger = logging.getLogger(__name__)


class EventKind(Enum):
    MODULE_LAUNCHED = auto()
    MODULE_DOCKED = auto()
    FAULT_INJECTED = auto()
    MODULE_REPAIRED = auto()
    LAUNCH_REJECTED = auto()
    NO_ELIGIBLE_MODULE = auto()
    MODULE_REMOVED = auto()
    ACTIVE_HUB_CHANGED = auto()


class EventLevel(Enum):
    INFO = auto()
    SUCCESS = auto()
    WARNING = auto()
    ERROR = auto()


# Console level for each event kind
EVENT_LEVELS = {
    EventKind.MODULE_LAUNCHED: EventLevel.INFO,
    EventKind.MODULE_DOCKED: EventLevel.SUCCESS,
    EventKind.FAULT_INJECTED: EventLevel.ERROR,
    EventKind.MODULE_REPAIRED: EventLevel.SUCCESS,
    EventKind.LAUNCH_REJECTED: EventLevel.WARNING,
    EventKind.NO_ELIGIBLE_MODULE: EventLevel.WARNING,
    EventKind.MODULE_REMOVED: EventLevel.INFO,
    EventKind.ACTIVE_HUB_CHANGED: EventLevel.INFO,
}

_LOGGING_LEVELS = {
    EventLevel.INFO: logging.INFO,
    EventLevel.SUCCESS: logging.INFO,
    EventLevel.WARNING: logging.WARNING,
    EventLevel.ERROR: logging.WARNING,
}


@dataclass(frozen=True)
class StationEvent:
    """
    A single station event.

    Attributes:
        kind: What happened
        time: Simulation time (s)
        message: Console text
        module_id: Module concerned, if any
        payload: Extra structured data (e.g. rejection reason, fault kind)
    """
    kind: EventKind
    time: float
    message: str
    module_id: Optional[str] = None
    payload: Dict[str, object] = field(default_factory=dict)

    @property
    def level(self) -> EventLevel:
        return EVENT_LEVELS[self.kind]

    def __str__(self) -> str:
        return f"[t={self.time:8.2f}s] [{self.level.name}] > {self.message}"


EventListener = Callable[[StationEvent], None]


class EventLog:
    """Bounded event history; the oldest entries are dropped first."""

    def __init__(self, capacity: int = C.EVENT_LOG_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Event log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: Deque[StationEvent] = deque(maxlen=capacity)

    def append(self, event: StationEvent):
        self._entries.append(event)

    def entries(self, kind: Optional[EventKind] = None) -> List[StationEvent]:
        if kind is None:
            return list(self._entries)
        return [e for e in self._entries if e.kind is kind]

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))


class EventBus:
    """Fan-out of station events to listeners, the log and the logger."""

    def __init__(self, log: EventLog = None):
        self.log = log if log is not None else EventLog()
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: StationEvent) -> StationEvent:
        self.log.append(event)
        logger.log(_LOGGING_LEVELS[event.level], event.message)
        for listener in list(self._listeners):
            listener(event)
        return event
