"""
Tests for the host handshake: message coercion, bridge and channels.
"""

import io
import json
import os

import pytest

from nanobot_drift.core.constants import DEFAULT_SEED, GAME_ID_DEFAULT, Outcome
from nanobot_drift.core.rng import hash_string_to_u32
from nanobot_drift.host.bridge import HostBridge
from nanobot_drift.host.channel import JsonLinesChannel, LocalChannel
from nanobot_drift.host.messages import (
    is_init_message,
    outcome_message,
    parse_init,
    ready_message,
    standalone_config_from_query,
)


class TestInitCoercion:
    """Every init field falls back independently and nothing raises."""

    def test_well_formed(self, make_init):
        config = parse_init(make_init())
        assert config.game_id == "nanobot-drift"
        assert config.room_id == "room-1"
        assert config.username == "Ada"
        assert config.allow_abort is True
        assert config.seed == 42

    def test_all_missing(self):
        config = parse_init({"type": "init"}, default_game_id="fallback-game")
        assert config.game_id == "fallback-game"
        assert config.room_id == ""
        assert config.username == "Pilot"
        assert config.allow_abort is True
        assert 0 < config.seed <= 0xFFFFFFFF

    def test_malformed_fields(self, make_init):
        config = parse_init(
            make_init(gameId=5, roomId=None, username="   ", allowAbort="no", seed="moon")
        )
        assert config.game_id == GAME_ID_DEFAULT
        assert config.room_id == ""
        assert config.username == "Pilot"
        assert config.allow_abort is True
        assert config.seed == hash_string_to_u32("moon")

    def test_numeric_room_ids(self, make_init):
        assert parse_init(make_init(roomId=17)).room_id == "17"
        assert parse_init(make_init(roomId=17.0)).room_id == "17"
        assert parse_init(make_init(roomId=1.5)).room_id == "1.5"
        assert parse_init(make_init(roomId=True)).room_id == ""

    def test_zero_seed(self, make_init):
        assert parse_init(make_init(seed=0)).seed == DEFAULT_SEED

    def test_allow_abort_false(self, make_init):
        assert parse_init(make_init(allowAbort=False)).allow_abort is False

    @pytest.mark.parametrize("data", [None, "init", [], {"type": "ready"}, {"kind": "init"}])
    def test_not_init(self, data):
        assert not is_init_message(data)


class TestStandaloneQuery:
    def test_requires_flag(self):
        assert standalone_config_from_query("") is None
        assert standalone_config_from_query("standalone=0") is None
        assert standalone_config_from_query("username=Ada") is None

    def test_defaults(self):
        config = standalone_config_from_query("?standalone=1&seed=")
        assert config.game_id == GAME_ID_DEFAULT
        assert config.room_id == "standalone"
        assert config.username == "Standalone"
        assert config.allow_abort is True

    def test_overrides(self):
        config = standalone_config_from_query("standalone=1&gameId=g&roomId=r&username=Ada+L&seed=moon")
        assert config.game_id == "g"
        assert config.room_id == "r"
        assert config.username == "Ada L"
        assert config.seed == hash_string_to_u32("moon")

    def test_seed_is_hashed_string(self):
        """Digits in a query are still text."""
        config = standalone_config_from_query("standalone=1&seed=42")
        assert config.seed == hash_string_to_u32("42")


class TestMessages:
    def test_ready(self):
        assert ready_message("nanobot-drift") == {
            "type": "ready",
            "gameId": "nanobot-drift",
            "version": "1.0.0",
        }

    def test_outcome(self):
        message = outcome_message(Outcome.WIN, {"score": 10})
        assert message == {"type": "outcome", "outcome": "win", "payload": {"score": 10}}
        json.dumps(message)


class TestHostBridge:
    """Tests for ready, init filtering and the outcome latch."""

    def test_ready_posted_once_on_construction(self, local_host):
        channel, bridge = local_host
        assert channel.outbox == [ready_message(GAME_ID_DEFAULT)]
        bridge.poll_init()
        assert len(channel.outbox) == 1

    def test_standalone_posts_nothing(self):
        bridge = HostBridge(None)
        assert not bridge.embedded
        assert bridge.poll_init() is None
        assert bridge.emit_outcome(Outcome.WIN, {}) is True

    def test_init_from_expected_origin(self, local_host, make_init):
        channel, bridge = local_host
        channel.send(make_init(), origin="https://host.example")
        config = bridge.poll_init()
        assert config is not None
        assert config.username == "Ada"
        assert bridge.has_init

    def test_cross_origin_dropped(self, local_host, make_init):
        channel, bridge = local_host
        channel.send(make_init(), origin="https://evil.example")
        assert bridge.poll_init() is None
        assert not bridge.has_init

    def test_unknown_origin_accepts_any(self, make_init):
        channel = LocalChannel()
        bridge = HostBridge(channel, origin="null")
        assert bridge.target_origin == "*"
        channel.send(make_init(), origin="https://anywhere.example")
        assert bridge.poll_init() is not None

    def test_non_init_ignored(self, local_host):
        channel, bridge = local_host
        channel.send({"type": "ping"}, origin="https://host.example")
        channel.send("garbage", origin="https://host.example")
        assert bridge.poll_init() is None

    def test_last_init_wins(self, local_host, make_init):
        channel, bridge = local_host
        channel.send(make_init(username="First"), origin="https://host.example")
        channel.send(make_init(username="Second"), origin="https://host.example")
        assert bridge.poll_init().username == "Second"

    def test_outcome_latch(self, local_host):
        channel, bridge = local_host
        assert bridge.emit_outcome(Outcome.LOSE, {"score": 1}) is True
        assert bridge.emit_outcome(Outcome.WIN, {"score": 2}) is False

        outcomes = [m for m in channel.outbox if m["type"] == "outcome"]
        assert outcomes == [outcome_message(Outcome.LOSE, {"score": 1})]

        bridge.reset_outcome_latch()
        assert bridge.emit_outcome(Outcome.WIN, {"score": 2}) is True

    def test_post_failure_is_logged_not_raised(self, make_init):
        class BrokenChannel(LocalChannel):
            def post(self, message):
                raise BrokenPipeError("host went away")

        bridge = HostBridge(BrokenChannel())
        assert bridge.emit_outcome(Outcome.ABORT, {}) is True


class TestJsonLinesChannel:
    """Tests for the newline-delimited JSON transport over a pipe."""

    @pytest.fixture
    def pipe_channel(self):
        read_fd, write_fd = os.pipe()
        reader = os.fdopen(read_fd, "rb", buffering=0)
        host_end = os.fdopen(write_fd, "w")
        writer = io.StringIO()
        channel = JsonLinesChannel(reader, writer)
        yield channel, host_end, writer
        reader.close()
        if not host_end.closed:
            host_end.close()

    def test_poll_without_data_does_not_block(self, pipe_channel):
        channel, _, _ = pipe_channel
        assert channel.poll() == []

    def test_reads_bare_and_enveloped_messages(self, pipe_channel, make_init):
        channel, host_end, _ = pipe_channel
        host_end.write(json.dumps(make_init()) + "\n")
        host_end.write(json.dumps({"origin": "https://host.example", "data": make_init(seed=9)}) + "\n")
        host_end.flush()

        messages = channel.poll()

        assert len(messages) == 2
        assert messages[0].origin is None
        assert messages[0].data["seed"] == 42
        assert messages[1].origin == "https://host.example"
        assert messages[1].data["seed"] == 9

    def test_partial_line_waits(self, pipe_channel):
        channel, host_end, _ = pipe_channel
        host_end.write('{"type": "in')
        host_end.flush()
        assert channel.poll() == []

        host_end.write('it"}\n')
        host_end.flush()
        messages = channel.poll()
        assert [m.data for m in messages] == [{"type": "init"}]

    def test_malformed_line_dropped(self, pipe_channel):
        channel, host_end, _ = pipe_channel
        host_end.write("not json\n\n")
        host_end.write('{"type": "init"}\n')
        host_end.flush()
        assert [m.data for m in channel.poll()] == [{"type": "init"}]

    def test_eof_closes(self, pipe_channel):
        channel, host_end, _ = pipe_channel
        host_end.write('{"type": "init"}')
        host_end.close()
        assert [m.data for m in channel.poll()] == [{"type": "init"}]
        assert channel.closed
        assert channel.poll() == []

    def test_post_writes_one_line(self, pipe_channel):
        channel, _, writer = pipe_channel
        channel.post(ready_message("nanobot-drift"))
        lines = writer.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["type"] == "ready"
