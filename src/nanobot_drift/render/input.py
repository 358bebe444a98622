import pygame

from nanobot_drift.core.intents import Intents

# Held keys, read every frame
LEVEL_KEYS = {
    "rotate_left": (pygame.K_a, pygame.K_LEFT),
    "rotate_right": (pygame.K_d, pygame.K_RIGHT),
    "thrust": (pygame.K_w, pygame.K_UP),
    "brake": (pygame.K_s, pygame.K_DOWN),
    "fire": (pygame.K_SPACE, pygame.K_j),
}

# Key presses, latched until the next tick consumes them
EDGE_KEYS = {
    pygame.K_e: "emp",
    pygame.K_LSHIFT: "emp",
    pygame.K_RSHIFT: "emp",
    pygame.K_ESCAPE: "pause",
    pygame.K_m: "mute",
    pygame.K_q: "abort",
    pygame.K_BACKSPACE: "abort",
    pygame.K_RETURN: "confirm",
    pygame.K_KP_ENTER: "confirm",
    pygame.K_r: "restart",
}


def edge_for_key(key: int, state: str) -> str | None:
    """Name of the edge intent a key press produces in the given game state."""
    if key == pygame.K_SPACE and state in ("boot", "title"):
        return "confirm"
    return EDGE_KEYS.get(key)


class KeyboardIntents:
    """
    Translate pygame keyboard state into per-tick `Intents`.

    KEYDOWN events are fed in through `handle_event` as they arrive and held
    until `poll` builds the next tick's intents.
    """

    def __init__(self) -> None:
        self.pending: set[str] = set()

    def handle_event(self, event: pygame.event.Event, state: str) -> None:
        if event.type != pygame.KEYDOWN:
            return
        name = edge_for_key(event.key, state)
        if name is not None:
            self.pending.add(name)

    def poll(self, pressed=None) -> Intents:
        """
        Args:
            pressed: Key state sequence as returned by `pygame.key.get_pressed`.
                Defaults to the live keyboard.
        """
        if pressed is None:
            pressed = pygame.key.get_pressed()

        intents = Intents()
        for name, keys in LEVEL_KEYS.items():
            setattr(intents, name, any(pressed[k] for k in keys))
        for name in self.pending:
            setattr(intents, name, True)
        self.pending.clear()
        return intents
