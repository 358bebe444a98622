import logging
import os
import sys
from typing import IO

from omegaconf import DictConfig

from nanobot_drift.core.config import load_sim_config
from nanobot_drift.env.env import NanobotDriftEnv
from nanobot_drift.host.bridge import HostBridge
from nanobot_drift.host.channel import JsonLinesChannel
from nanobot_drift.render.audio import ToneAudio
from nanobot_drift.render.input import KeyboardIntents
from nanobot_drift.render.renderer import GameRenderer

log = logging.getLogger(__name__)


def reserve_stdout() -> IO[str]:
    """
    Hand the process stdout to the host protocol.

    Returns a writer on a duplicate of the original stdout descriptor and
    points descriptor 1 at stderr, so nothing else written to stdout can
    interleave with protocol lines.
    """
    sys.stdout.flush()
    protocol_fd = os.dup(sys.stdout.fileno())
    os.dup2(sys.stderr.fileno(), sys.stdout.fileno())
    return os.fdopen(protocol_fd, "w", encoding="utf-8")


def build_bridge(cfg: DictConfig) -> HostBridge:
    """
    Embedded runs talk JSON lines over stdin/stdout; everything else is
    standalone.
    """
    host = cfg.host
    if host.embedded:
        channel = JsonLinesChannel(sys.stdin, reserve_stdout())
        return HostBridge(channel, default_game_id=host.game_id, origin=host.origin)
    return HostBridge(None, default_game_id=host.game_id)


def play(cfg: DictConfig) -> None:
    """
    Run the game in a Pygame window with keyboard control.

    Args:
        cfg: Configuration dictionary containing:
            - host: Embedding bootstrap (embedded, query, origin, game_id).
            - render: Window settings (fps, caption).
            - audio: Whether to open the mixer.
            - sim: Simulation tunable overrides.
    """
    sim_config = load_sim_config(cfg)
    bridge = build_bridge(cfg)
    query = "" if cfg.host.embedded else cfg.host.query
    env = NanobotDriftEnv(sim_config, bridge=bridge, query=query)

    renderer = GameRenderer(sim_config.world_size, target_fps=cfg.render.fps, caption=cfg.render.caption)
    env.resize(renderer.window_width, renderer.window_height)
    keyboard = KeyboardIntents()
    audio = ToneAudio(enabled=cfg.audio.enabled)

    log.info(f"Starting play mode (embedded={bridge.embedded})")

    try:
        running = True
        while running:
            dt = renderer.tick()
            running = renderer.handle_events(keyboard, env.game_state.kind)

            size = renderer.take_resize()
            if size is not None:
                env.resize(*size)

            events = env.tick(keyboard.poll(), dt)
            audio.handle(events)
            renderer.render(env.snapshot())
    finally:
        audio.close()
        renderer.close()
