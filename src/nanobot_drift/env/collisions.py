"""
Collision detection and resolution.

Two passes per tick, in order: bullets against free clumps (destroy and
split), then the ship against free clumps (latch). Latched clumps take no
part in either pass.
"""

import logging
import math

import numpy as np

from nanobot_drift.core.constants import (
    DEBRIS_COUNT,
    METER_MAX,
    TIER_BEACON,
    TIER_SCORE,
    TYPE_BEACON_BONUS,
    TYPE_SCORE_BONUS,
    ParticleKind,
)
from nanobot_drift.core.mathutil import bearing, clamp, dist_sq, from_angle
from nanobot_drift.env.entities import Clump
from nanobot_drift.env.event import Event, EventType
from nanobot_drift.env.state import SimState

log = logging.getLogger(__name__)

SPLIT_CHILDREN = 2


def score_for(clump: Clump) -> int:
    return math.floor(TIER_SCORE[clump.tier] * TYPE_SCORE_BONUS[clump.type])


def beacon_gain_for(clump: Clump, charge_rate: float) -> float:
    return TIER_BEACON[clump.tier] * TYPE_BEACON_BONUS[clump.type] * charge_rate


def hit_clump(state: SimState, clump: Clump) -> list[Clump]:
    """
    Destroy a clump: award score and beacon, relieve assimilation and split.

    Args:
        state: Simulation context.
        clump: The clump that was hit. Marked dead here; the store drops it
            at the next compaction.

    Returns:
        The children created (two for tier > 0, none for tier 0).
    """
    rng = state.rng
    meters = state.meters

    gained = score_for(clump)
    meters.score += gained
    meters.beacon = clamp(
        meters.beacon + beacon_gain_for(clump, state.round_config.beacon_charge_rate),
        0.0,
        METER_MAX,
    )

    for _ in range(DEBRIS_COUNT[clump.tier]):
        vel = from_angle(rng.range(0, math.pi * 2)) * rng.range(40, 240) + clump.velocity * 0.35
        kind = ParticleKind.SPARK if rng.chance(0.4) else ParticleKind.DUST
        state.particles.spawn(clump.position, vel, rng.range(0.35, 0.85), rng.range(1.1, 2.4), kind)

    children = []
    if clump.tier > 0:
        for _ in range(SPLIT_CHILDREN):
            child = Clump(
                id=state.allocate_clump_id(),
                type=clump.type,
                tier=clump.tier - 1,
                position=clump.position,
                velocity=clump.velocity
                + from_angle(rng.range(0, math.pi * 2)) * rng.range(40, 160),
                wobble_seed=rng.next_u32(),
                spin=rng.range(-1.6, 1.6),
                no_latch_t=state.config.split_grace,
            )
            children.append(child)
        state.clumps.extend(children)

    clump.alive = False
    meters.assimilation = clamp(meters.assimilation - state.config.hit_relief, 0.0, METER_MAX)

    state.emit(
        Event(
            EventType.CLUMP_DESTROYED,
            clump_id=clump.id,
            clump_type=clump.type,
            tier=clump.tier,
            amount=gained,
        )
    )
    return children


def resolve_bullet_hits(state: SimState) -> int:
    """
    Bullets against free clumps. A bullet dies on its first hit and is
    skipped for the rest of the pass; children spawned by an earlier hit are
    valid targets for later bullets.

    Returns:
        Number of clumps destroyed.
    """
    bullets = state.bullets
    if bullets.num_active == 0:
        return 0

    hits = 0
    for idx in range(bullets.num_active):
        if not bullets.is_alive(idx):
            continue
        bullet_pos = bullets.position(idx)
        bullet_r = bullets.radius[idx]

        for clump in state.clumps:
            if not clump.alive or clump.latched:
                continue
            rr = (bullet_r + clump.radius) * (bullet_r + clump.radius)
            if dist_sq(bullet_pos, clump.position) <= rr:
                bullets.mark_dead(idx)
                hit_clump(state, clump)
                hits += 1
                break

    bullets.remove_expired()
    state.compact_clumps()
    return hits


def resolve_latches(state: SimState) -> int:
    """
    Ship against free clumps. An overlapping clump outside its grace period
    latches at its current bearing and kicks the ship away from it.

    Returns:
        Number of new latches.
    """
    config = state.config
    ship = state.ship
    free = [c for c in state.clumps if c.alive and not c.latched and c.no_latch_t <= 0]
    if not free:
        return 0

    positions = np.array([c.position for c in free], dtype=np.complex128)
    radii = np.array([c.radius for c in free], dtype=np.float64)
    reach = config.ship_radius + radii
    overlapping = np.abs(positions - ship.position) ** 2 <= reach * reach

    latched = 0
    for clump, hit in zip(free, overlapping):
        if not hit:
            continue
        clump.latched = True
        clump.latch_angle = bearing(ship.position, clump.position)
        clump.latch_dist = config.ship_radius + clump.radius * config.latch_dist_factor
        ship.velocity += from_angle(clump.latch_angle) * -config.latch_impulse
        latched += 1
        state.emit(Event(EventType.CLUMP_LATCHED, clump_id=clump.id, clump_type=clump.type, tier=clump.tier))

    if latched:
        log.debug(f"{latched} clump(s) latched, {len(state.latched_clumps())} total")
    return latched
