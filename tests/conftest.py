import pytest
import sys
import os

# Ensure project root and src are in sys.path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
for path in (project_root, os.path.join(project_root, "src")):
    if path not in sys.path:
        sys.path.insert(0, path)

from nanobot_drift.core.config import SimConfig
from nanobot_drift.core.constants import ClumpType
from nanobot_drift.core.intents import Intents
from nanobot_drift.core.rng import Rng
from nanobot_drift.env.entities import Clump
from nanobot_drift.env.env import NanobotDriftEnv
from nanobot_drift.env.state import SimState
from nanobot_drift.host.bridge import HostBridge
from nanobot_drift.host.channel import LocalChannel

TEST_SEED = 0x12345678
FRAME_DT = 1 / 60


@pytest.fixture
def sim_config():
    """Return the default simulation tunables."""
    return SimConfig()


@pytest.fixture
def sim_state(sim_config):
    """A seeded simulation context with the ship centered and no clumps."""
    state = SimState(config=sim_config, rng=Rng(TEST_SEED), world_size=(1280.0, 720.0))
    state.ship.reset(state.center())
    return state


@pytest.fixture
def make_clump():
    """Factory that adds a clump to a SimState at a given position."""

    def _make(
        state: SimState,
        position: complex,
        tier: int = 2,
        clump_type: ClumpType = ClumpType.DRIFTER,
        velocity: complex = 0j,
    ) -> Clump:
        clump = Clump(
            id=state.allocate_clump_id(),
            type=clump_type,
            tier=tier,
            position=position,
            velocity=velocity,
        )
        state.clumps.append(clump)
        return clump

    return _make


@pytest.fixture
def env():
    """A standalone env bootstrapped to the title screen with a fixed seed."""
    return NanobotDriftEnv(query="standalone=1&seed=12345&username=Tester")


@pytest.fixture
def playing_env(env):
    """A standalone env in round 1, with no clumps and spawning suppressed."""
    env.tick(Intents(confirm=True), FRAME_DT)
    env.sim.clumps = []
    env.sim.spawn_timer = 1e9
    return env


@pytest.fixture
def local_host():
    """An in-process host channel and a bridge wired to it."""
    channel = LocalChannel()
    bridge = HostBridge(channel, origin="https://host.example")
    return channel, bridge


@pytest.fixture
def make_init():
    """Factory for host init messages with per-test overrides."""

    def _make(**overrides) -> dict:
        message = {
            "type": "init",
            "gameId": "nanobot-drift",
            "roomId": "room-1",
            "username": "Ada",
            "allowAbort": True,
            "seed": 42,
        }
        message.update(overrides)
        return message

    return _make
