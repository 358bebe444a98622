import logging

import numpy as np
import pygame

from nanobot_drift.core.constants import Outcome
from nanobot_drift.env.event import Event, EventType

log = logging.getLogger(__name__)

SAMPLE_RATE = 22050
VOLUME = 0.06

STATE_TONES = {
    "playing": (660.0, 0.06),
    "paused": (280.0, 0.03),
    "round_complete": (520.0, 0.05),
}
RESUME_TONE = (520.0, 0.03)
OUTCOME_TONES = {
    Outcome.WIN: (880.0, 0.12),
    Outcome.LOSE: (120.0, 0.12),
    Outcome.ABORT: (240.0, 0.12),
}


def triangle_tone(freq: float, duration: float, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Triangle wave with a short attack and an exponential tail, as int16."""
    duration = max(0.02, duration)
    t = np.arange(int(sample_rate * (duration + 0.02))) / sample_rate
    wave = 2.0 * np.abs(2.0 * ((t * freq) % 1.0) - 1.0) - 1.0
    envelope = np.minimum(t / 0.005, 1.0) * np.exp(-5.0 * t / duration)
    return (wave * envelope * VOLUME * 32767).astype(np.int16)


class ToneAudio:
    """
    Fire-and-forget beeps for simulation events.

    Any failure to bring up the mixer leaves audio disabled; nothing here
    can affect the simulation.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = False
        self.muted = False
        self.last_state: str | None = None
        if not enabled:
            return
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
            self.enabled = True
        except pygame.error as e:
            log.warning(f"Audio unavailable, continuing silently: {e}")

    def beep(self, freq: float, duration: float, force: bool = False) -> None:
        if not self.enabled or (self.muted and not force):
            return
        try:
            samples = triangle_tone(freq, duration)
            channels = pygame.mixer.get_init()[2]
            if channels > 1:
                samples = np.repeat(samples[:, None], channels, axis=1)
            pygame.sndarray.make_sound(samples).play()
        except (pygame.error, TypeError, ValueError) as e:
            log.warning(f"Disabling audio after playback failure: {e}")
            self.enabled = False

    def tone_for(self, event: Event) -> tuple[float, float] | None:
        match event.event_type:
            case EventType.SHOT_FIRED:
                return 760.0, 0.02
            case EventType.CLUMP_LATCHED:
                return 180.0, 0.02
            case EventType.EMP_FIRED:
                return 220.0, 0.08
            case EventType.MUTE_TOGGLED:
                return (160.0, 0.05) if event.muted else (440.0, 0.05)
            case EventType.OUTCOME:
                return OUTCOME_TONES.get(event.outcome)
            case EventType.STATE_CHANGED:
                if event.state == self.last_state:
                    return None
                if event.state == "playing" and self.last_state == "paused":
                    return RESUME_TONE
                return STATE_TONES.get(event.state)
        return None

    def handle(self, events: list[Event]) -> None:
        for event in events:
            tone = self.tone_for(event)
            if event.event_type == EventType.MUTE_TOGGLED:
                self.muted = bool(event.muted)
                # Toggle chirp always plays
                self.beep(*tone, force=True)
            elif tone is not None:
                self.beep(*tone)
            if event.event_type == EventType.STATE_CHANGED:
                self.last_state = event.state

    def close(self) -> None:
        if self.enabled:
            pygame.mixer.quit()
            self.enabled = False
