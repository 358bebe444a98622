import os

# The embedded host reads stdout as JSON lines
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import hydra
from omegaconf import DictConfig

from nanobot_drift.modes.headless import headless
from nanobot_drift.modes.play import play


@hydra.main(version_base=None, config_path="configs", config_name="config")
def my_app(cfg: DictConfig) -> None:
    match cfg.mode:
        case "play":
            play(cfg)
        case "headless":
            headless(cfg)
        case _:
            raise TypeError(f"Mode should be one of [play, headless]. You used: {cfg.mode}")


if __name__ == "__main__":
    my_app()
