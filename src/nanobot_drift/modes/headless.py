import logging

from omegaconf import DictConfig

from nanobot_drift.agents.scripted import ScriptedPilot
from nanobot_drift.core.config import load_sim_config
from nanobot_drift.env.env import NanobotDriftEnv
from nanobot_drift.env.event import EventType
from nanobot_drift.env.game_state import Result
from nanobot_drift.host.bridge import HostBridge
from nanobot_drift.host.channel import LocalChannel

log = logging.getLogger(__name__)


def headless(cfg: DictConfig) -> list[dict]:
    """
    Run a seeded game with the scripted pilot at a fixed step and no window.

    The env is embedded behind an in-process channel so the handshake is
    exercised end to end.

    Args:
        cfg: Configuration dictionary containing:
            - host.game_id: Game id announced in `ready`.
            - headless: seed, username, room_id, duration (seconds of
              simulated time) and dt (fixed step).
            - sim: Simulation tunable overrides.

    Returns:
        Every message the game posted to the host.
    """
    run = cfg.headless
    sim_config = load_sim_config(cfg)

    channel = LocalChannel()
    bridge = HostBridge(channel, default_game_id=cfg.host.game_id)
    env = NanobotDriftEnv(sim_config, bridge=bridge)
    pilot = ScriptedPilot()

    channel.send(
        {
            "type": "init",
            "gameId": cfg.host.game_id,
            "roomId": run.room_id,
            "username": run.username,
            "allowAbort": True,
            "seed": run.seed,
        }
    )

    steps = int(run.duration / run.dt)
    rounds_cleared = 0
    for _ in range(steps):
        intents = pilot.get_intents(env.snapshot())
        for event in env.tick(intents, run.dt):
            if event.event_type == EventType.STATE_CHANGED and event.state == "round_complete":
                rounds_cleared += 1
        if isinstance(env.game_state, Result):
            break
    else:
        log.info(f"Time limit of {run.duration}s reached in state {env.game_state.kind}")

    for message in channel.outbox:
        log.info(f"Host message: {message}")
    log.info(f"Headless run finished: rounds cleared={rounds_cleared}, score={env.sim.meters.score}")

    return list(channel.outbox)
