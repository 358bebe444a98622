from dataclasses import dataclass

# Edge-triggered intents are consumed by the tick that receives them
EDGE_INTENTS = ("emp", "pause", "mute", "abort", "confirm", "restart")


@dataclass
class Intents:
    """
    Discrete per-tick player intents.

    Level fields (held): rotate_left, rotate_right, thrust, brake, fire.
    Edge fields (just pressed): emp, pause, mute, abort, confirm, restart.
    """

    rotate_left: bool = False
    rotate_right: bool = False
    thrust: bool = False
    brake: bool = False
    fire: bool = False

    emp: bool = False
    pause: bool = False
    mute: bool = False
    abort: bool = False
    confirm: bool = False
    restart: bool = False

    def consume(self, name: str) -> bool:
        """Return the edge flag and clear it so it fires at most once."""
        if name not in EDGE_INTENTS:
            raise ValueError(f"{name} is not an edge intent")
        value = getattr(self, name)
        setattr(self, name, False)
        return value
