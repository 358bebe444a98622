from dataclasses import dataclass
from enum import StrEnum, auto

from nanobot_drift.core.constants import ClumpType, Outcome


class EventType(StrEnum):
    SHOT_FIRED = auto()
    CLUMP_SPAWNED = auto()
    CLUMP_DESTROYED = auto()
    CLUMP_LATCHED = auto()
    EMP_FIRED = auto()
    STATE_CHANGED = auto()
    MUTE_TOGGLED = auto()
    OUTCOME = auto()


@dataclass
class Event:
    event_type: EventType
    clump_id: int | None = None
    clump_type: ClumpType | None = None
    tier: int | None = None
    amount: float | None = None  # score gained, assimilation relieved, etc.
    state: str | None = None
    outcome: Outcome | None = None
    muted: bool | None = None
