"""
Simulation context.

Defines SimState, the single value that owns every mutable piece of the
simulation: entities, meters, RNG, round configuration and the per-tick
event list. Every operation in the env package takes it explicitly.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from nanobot_drift.core.config import RoundConfig, SimConfig
from nanobot_drift.core.rng import Rng
from nanobot_drift.env.bullets import Bullets
from nanobot_drift.env.entities import Clump, Ship
from nanobot_drift.env.event import Event
from nanobot_drift.env.particles import Particles


@dataclass
class Meters:
    """Assimilation (loss) and beacon (win) meters plus score."""

    assimilation: float = 0.0
    max_assimilation: float = 0.0
    beacon: float = 0.0
    score: int = 0


@dataclass
class SimState:
    """
    Attributes:
        config: Simulation tunables.
        rng: The one random stream every draw goes through.
        world_size: Current viewport extents (the toroidal plane).
        ship: The player craft.
        bullets: Bullet arena.
        particles: Cosmetic particle arena.
        clumps: Live clumps; destroyed ones are dropped by `compact_clumps`.
        meters: Assimilation, beacon and score.
        round_config: Values derived from the round number.
        emp_charges: Remaining EMP uses, None when unlimited.
        spawn_timer: Director countdown to the next spawn.
        run_time: Seconds since the round started.
        app_time: Seconds since construction (drives cosmetic wobble).
        seed_phase: Per-seed phase offset for the interference wobble.
        events: Events emitted during the current tick.
    """

    config: SimConfig
    rng: Rng
    world_size: tuple[float, float]
    ship: Ship = field(default_factory=Ship)
    bullets: Optional[Bullets] = None
    particles: Optional[Particles] = None
    clumps: list[Clump] = field(default_factory=list)
    next_clump_id: int = 1
    meters: Meters = field(default_factory=Meters)
    round_config: RoundConfig = field(default_factory=RoundConfig)
    emp_charges: int | None = None
    spawn_timer: float = 0.0
    run_time: float = 0.0
    app_time: float = 0.0
    seed_phase: float = 0.0
    events: list[Event] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.bullets is None:
            max_bullets = int(math.ceil(self.config.bullet_lifetime / self.config.fire_cooldown)) + 2
            self.bullets = Bullets(max_bullets=max_bullets)
        if self.particles is None:
            self.particles = Particles(max_particles=self.config.max_particles)

    @property
    def round(self) -> int:
        return self.round_config.round

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def take_events(self) -> list[Event]:
        events, self.events = self.events, []
        return events

    def allocate_clump_id(self) -> int:
        clump_id = self.next_clump_id
        self.next_clump_id += 1
        return clump_id

    def free_clumps(self) -> list[Clump]:
        return [c for c in self.clumps if c.alive and not c.latched]

    def latched_clumps(self) -> list[Clump]:
        return [c for c in self.clumps if c.alive and c.latched]

    def free_clump_count(self) -> int:
        return sum(1 for c in self.clumps if c.alive and not c.latched)

    def compact_clumps(self) -> None:
        self.clumps = [c for c in self.clumps if c.alive]

    def clear_entities(self) -> None:
        self.bullets.clear()
        self.particles.clear()
        self.clumps = []
        self.next_clump_id = 1

    def center(self) -> complex:
        return complex(self.world_size[0] * 0.5, self.world_size[1] * 0.5)
