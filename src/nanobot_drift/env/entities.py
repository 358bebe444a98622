import math
from dataclasses import dataclass

from nanobot_drift.core.constants import TIER_RADIUS, ClumpType


@dataclass
class Ship:
    """The player craft. One per run, reset at every round start."""

    position: complex = 0j
    velocity: complex = 0j
    heading: float = -math.pi / 2
    fire_cooldown: float = 0.0
    emp_cooldown: float = 0.0
    emp_pulse: float = 0.0
    thrusting: bool = False

    def reset(self, position: complex) -> None:
        self.position = position
        self.velocity = 0j
        self.heading = -math.pi / 2
        self.fire_cooldown = 0.0
        self.emp_cooldown = 0.0
        self.emp_pulse = 0.0
        self.thrusting = False


@dataclass(eq=False)
class Clump:
    """
    A swarm entity.

    While `latched` the clump is kinematically slaved to the ship: its
    position is recomputed from `latch_angle` and `latch_dist` every tick.
    `no_latch_t` counts down a grace period during which it cannot latch.
    `alive` is cleared when the clump is destroyed; the store drops dead
    clumps at the end of the collision pass.
    """

    id: int
    type: ClumpType
    tier: int
    position: complex
    velocity: complex
    wobble_seed: int = 0
    spin: float = 0.0
    latched: bool = False
    latch_angle: float = 0.0
    latch_dist: float = 0.0
    no_latch_t: float = 0.0
    alive: bool = True

    @property
    def radius(self) -> float:
        return TIER_RADIUS[self.tier]

    def detach(self, grace: float) -> None:
        self.latched = False
        self.no_latch_t = grace
