"""
Modular Station Simulation - Command Results

Rejections are returned, not raised: every outcome here is recoverable and
leaves the station unchanged. All result types are falsy so that callers can
write ``if not controller.launch(...)``.
"""

from dataclasses import dataclass
from enum import Enum, auto


class RejectionReason(Enum):
    LOCKED = auto()        # A launch is already in flight
    NO_FREE_SLOT = auto()  # Every slot around the hub is occupied
    UNKNOWN_HUB = auto()   # Hub id not registered or still in transit


class RemovalRejection(Enum):
    UNKNOWN_MODULE = auto()
    IN_TRANSIT = auto()
    HUB = auto()


@dataclass(frozen=True)
class LaunchRejected:
    reason: RejectionReason
    message: str = ""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class InvalidRemoval:
    module_id: str
    reason: RemovalRejection
    message: str = ""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class NoEligibleModule:
    message: str = "No docked nominal module eligible for fault injection"

    def __bool__(self) -> bool:
        return False
