"""
Host message shapes and validated coercion.

Inbound init fields are coerced independently: any missing or malformed
field falls back to its default and nothing here ever raises.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qs

from nanobot_drift.core.config import HostConfig
from nanobot_drift.core.constants import GAME_ID_DEFAULT, VERSION, Outcome
from nanobot_drift.core.rng import seed_from_unknown


@dataclass(frozen=True)
class InboundMessage:
    """A raw message from the host plus the origin it claims to come from."""
    data: Any
    origin: Optional[str] = None


def safe_string(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) and value.strip() else fallback


def safe_boolean(value: Any, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def is_init_message(data: Any) -> bool:
    return isinstance(data, dict) and data.get("type") == "init"


def parse_init(data: dict, default_game_id: str = GAME_ID_DEFAULT) -> HostConfig:
    room_raw = data.get("roomId")
    if isinstance(room_raw, (int, float)) and not isinstance(room_raw, bool):
        room_id = str(int(room_raw)) if float(room_raw).is_integer() else str(room_raw)
    else:
        room_id = safe_string(room_raw, "")

    return HostConfig(
        game_id=safe_string(data.get("gameId"), default_game_id),
        room_id=room_id,
        username=safe_string(data.get("username"), "Pilot"),
        allow_abort=safe_boolean(data.get("allowAbort"), True),
        seed=seed_from_unknown(data.get("seed")),
    )


def standalone_config_from_query(query: str) -> Optional[HostConfig]:
    """
    Standalone bootstrap from a URL-style query string.

    Returns:
        A HostConfig when `standalone=1` is present, otherwise None.
    """
    params = parse_qs(query.lstrip("?"), keep_blank_values=True)

    def first(name: str) -> Optional[str]:
        values = params.get(name)
        return values[0] if values else None

    if first("standalone") != "1":
        return None

    return HostConfig(
        game_id=first("gameId") or GAME_ID_DEFAULT,
        room_id=first("roomId") or "standalone",
        username=first("username") or "Standalone",
        allow_abort=True,
        seed=seed_from_unknown(first("seed")),
    )


def standalone_config() -> HostConfig:
    """Config used when a standalone player starts from the boot screen."""
    return HostConfig(
        game_id=GAME_ID_DEFAULT,
        room_id="standalone",
        username="Standalone",
        allow_abort=True,
        seed=seed_from_unknown(None),
    )


def ready_message(game_id: str) -> dict:
    return {"type": "ready", "gameId": game_id, "version": VERSION}


def outcome_message(outcome: Outcome, payload: dict) -> dict:
    return {"type": "outcome", "outcome": str(outcome), "payload": payload}
