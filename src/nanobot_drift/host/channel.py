import codecs
import json
import logging
import os
import select
from abc import ABC, abstractmethod
from collections import deque
from typing import IO, Any, Optional

from nanobot_drift.host.messages import InboundMessage

log = logging.getLogger(__name__)


class HostChannel(ABC):
    """
    Abstract message channel between the game and its embedding host.
    """

    @abstractmethod
    def poll(self) -> list[InboundMessage]:
        """Return every inbound message received since the last poll. Never blocks."""
        pass

    @abstractmethod
    def post(self, message: dict) -> None:
        """Send a message to the host."""
        pass


class LocalChannel(HostChannel):
    """In-process channel: the host pushes with `send`, reads `outbox`."""

    def __init__(self) -> None:
        self.inbox: deque[InboundMessage] = deque()
        self.outbox: list[dict] = []

    def send(self, data: Any, origin: Optional[str] = None) -> None:
        self.inbox.append(InboundMessage(data=data, origin=origin))

    def poll(self) -> list[InboundMessage]:
        messages = list(self.inbox)
        self.inbox.clear()
        return messages

    def post(self, message: dict) -> None:
        self.outbox.append(message)


class JsonLinesChannel(HostChannel):
    """
    One JSON object per line over a reader/writer pair, e.g. a parent
    process's pipes. Inbound lines may wrap the payload as
    {"origin": ..., "data": {...}}; bare objects carry no origin.
    """

    def __init__(self, reader: IO, writer: IO[str]) -> None:
        self.reader = reader
        self.writer = writer
        self.closed = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def _read_available(self) -> None:
        # Raw reads on the descriptor; a buffered readline would hide lines from select
        fd = self.reader.fileno()
        while not self.closed:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready:
                break
            chunk = os.read(fd, 65536)
            if not chunk:
                self.closed = True
                self._pending += self._decoder.decode(b"", final=True)
                break
            self._pending += self._decoder.decode(chunk)

    def poll(self) -> list[InboundMessage]:
        self._read_available()
        *lines, self._pending = self._pending.split("\n")
        if self.closed and self._pending:
            lines.append(self._pending)
            self._pending = ""

        messages = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as e:
                log.warning(f"Dropping malformed host line: {e}")
                continue
            if isinstance(raw, dict) and "data" in raw and "type" not in raw:
                messages.append(InboundMessage(data=raw["data"], origin=raw.get("origin")))
            else:
                messages.append(InboundMessage(data=raw))
        return messages

    def post(self, message: dict) -> None:
        self.writer.write(json.dumps(message) + "\n")
        self.writer.flush()
