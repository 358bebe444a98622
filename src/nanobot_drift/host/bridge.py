import logging
from typing import Optional

from nanobot_drift.core.config import HostConfig
from nanobot_drift.core.constants import GAME_ID_DEFAULT, Outcome
from nanobot_drift.host.channel import HostChannel
from nanobot_drift.host.messages import (
    is_init_message,
    outcome_message,
    parse_init,
    ready_message,
)

log = logging.getLogger(__name__)

ANY_ORIGIN = "*"


class HostBridge:
    """
    Game side of the embedding handshake.

    Announces `ready` once when embedded, turns valid `init` messages into
    HostConfig values, and emits the run outcome at most once per init.

    Attributes:
        channel: Transport to the host, or None when standalone.
        embedded: Whether a host is listening.
        target_origin: Expected origin of inbound messages; "*" when unknown.
    """

    def __init__(
        self,
        channel: Optional[HostChannel],
        default_game_id: str = GAME_ID_DEFAULT,
        origin: Optional[str] = None,
    ) -> None:
        self.channel = channel
        self.default_game_id = default_game_id
        self.embedded = channel is not None
        self.target_origin = origin if origin and origin != "null" else ANY_ORIGIN

        self.outcome_sent = False
        self.init_received = False

        self._post(ready_message(default_game_id))

    @property
    def has_init(self) -> bool:
        return self.init_received

    def poll_init(self) -> Optional[HostConfig]:
        """
        Drain the channel and return the config from the last valid init.
        Anything else is dropped silently.
        """
        if self.channel is None:
            return None

        config = None
        for message in self.channel.poll():
            if not is_init_message(message.data):
                log.debug(f"Ignoring non-init host message: {message.data!r}")
                continue
            if (
                self.embedded
                and self.target_origin != ANY_ORIGIN
                and message.origin != self.target_origin
            ):
                log.debug(f"Ignoring cross-origin init from {message.origin!r}")
                continue
            config = parse_init(message.data, self.default_game_id)
            self.init_received = True
        return config

    def emit_outcome(self, outcome: Outcome, payload: dict) -> bool:
        """
        Send the outcome to the host.

        Returns:
            True if this call emitted, False if the latch was already set.
        """
        if self.outcome_sent:
            return False
        self.outcome_sent = True
        self._post(outcome_message(outcome, payload))
        return True

    def reset_outcome_latch(self) -> None:
        self.outcome_sent = False

    def _post(self, message: dict) -> None:
        # Standalone runs have nobody to talk to
        if not self.embedded:
            return
        try:
            self.channel.post(message)
        except OSError as e:
            log.warning(f"Failed to post {message.get('type')} to host: {e}")
