from dataclasses import dataclass
from typing import ClassVar

from nanobot_drift.core.constants import Outcome


@dataclass(frozen=True)
class Boot:
    kind: ClassVar[str] = "boot"


@dataclass(frozen=True)
class Title:
    kind: ClassVar[str] = "title"


@dataclass(frozen=True)
class Playing:
    kind: ClassVar[str] = "playing"


@dataclass(frozen=True)
class Paused:
    kind: ClassVar[str] = "paused"


@dataclass(frozen=True)
class RoundComplete:
    kind: ClassVar[str] = "round_complete"


@dataclass(frozen=True)
class Result:
    kind: ClassVar[str] = "result"
    outcome: Outcome
    sent: bool = False


GameState = Boot | Title | Playing | Paused | RoundComplete | Result
