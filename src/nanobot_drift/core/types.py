from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from nanobot_drift.core.constants import ClumpType, Outcome


@dataclass(frozen=True)
class RenderShip:
    """Snapshot of the ship for rendering purposes."""
    position: complex
    velocity: complex
    heading: float
    radius: float
    thrusting: bool


@dataclass(frozen=True)
class RenderClump:
    """Snapshot of a single clump."""
    id: int
    type: ClumpType
    tier: int
    position: complex
    radius: float
    latched: bool
    wobble_seed: int


@dataclass(frozen=True)
class RenderState:
    """
    Read-only snapshot of the whole simulation for rendering.

    Bullet and particle data are contiguous read-only arrays for efficient
    drawing; `particle_life` is the remaining-life fraction in [0, 1].
    """
    state: str
    outcome: Optional[Outcome]
    round: int
    total_rounds: int

    ship: RenderShip
    clumps: Tuple[RenderClump, ...]

    bullet_x: np.ndarray
    bullet_y: np.ndarray
    bullet_radius: np.ndarray

    particle_x: np.ndarray
    particle_y: np.ndarray
    particle_radius: np.ndarray
    particle_kind: np.ndarray
    particle_life: np.ndarray

    assimilation: float
    max_assimilation: float
    beacon: float
    score: int
    run_time: float
    app_time: float

    emp_cooldown: float
    emp_cooldown_max: float
    emp_charges: Optional[int]
    emp_pulse: float
    emp_pulse_max: float

    world_size: Tuple[float, float]
    seed: int
    username: str
    allow_abort: bool
    embedded: bool
    muted: bool

    @property
    def free_clumps(self) -> Tuple[RenderClump, ...]:
        return tuple(c for c in self.clumps if not c.latched)

    @property
    def latched_clumps(self) -> Tuple[RenderClump, ...]:
        return tuple(c for c in self.clumps if c.latched)


def frozen_copy(array: np.ndarray) -> np.ndarray:
    out = np.array(array, copy=True)
    out.flags.writeable = False
    return out
