"""
Spawn scheduling.

Difficulty ramps linearly with round time over the first 90 seconds and then
holds: spawns come faster, the population ceiling rises, and the type mix
shifts from drifters toward seekers and latchers.
"""

import math

from nanobot_drift.core.constants import TIER_RADIUS, TYPE_SPEED_MULT, ClumpType
from nanobot_drift.core.mathutil import clamp, dist_sq, ease_out_cubic, from_angle, lerp
from nanobot_drift.env.entities import Clump
from nanobot_drift.env.event import Event, EventType
from nanobot_drift.env.state import SimState

RAMP_SECONDS = 90.0
SLOW_INTERVAL = 1.75
FAST_INTERVAL = 0.65
BASE_MAX_CLUMPS = 12
EXTRA_MAX_CLUMPS = 10
MIDDLE_TIER_CHANCE = 0.35


def difficulty(run_time: float) -> float:
    return clamp(run_time / RAMP_SECONDS, 0.0, 1.0)


def spawn_interval(d: float) -> float:
    return lerp(SLOW_INTERVAL, FAST_INTERVAL, ease_out_cubic(d))


def max_clumps(d: float) -> int:
    return math.floor(BASE_MAX_CLUMPS + d * EXTRA_MAX_CLUMPS)


def choose_type(roll: float, d: float) -> ClumpType:
    # Later checks override earlier ones
    clump_type = ClumpType.DRIFTER
    if d > 0.25 and roll < 0.25 + d * 0.25:
        clump_type = ClumpType.SEEKER
    if d > 0.55 and roll > 0.82:
        clump_type = ClumpType.LATCHER
    return clump_type


def spawn_clump(state: SimState, tier: int, clump_type: ClumpType) -> Clump | None:
    """
    Place a new clump just outside a random border edge, away from the ship.

    Returns:
        The new clump, or None when every placement attempt landed too close
        to the ship.
    """
    rng = state.rng
    width, height = state.world_size
    r = TIER_RADIUS[tier]
    keepout_sq = state.config.spawn_keepout * state.config.spawn_keepout

    for _ in range(state.config.spawn_attempts):
        side = rng.int(0, 3)
        if side == 0:
            pos = complex(-r, rng.range(0, height))
        elif side == 1:
            pos = complex(width + r, rng.range(0, height))
        elif side == 2:
            pos = complex(rng.range(0, width), -r)
        else:
            pos = complex(rng.range(0, width), height + r)

        if dist_sq(pos, state.ship.position) < keepout_sq:
            continue

        speed = rng.range(52, 110) * TYPE_SPEED_MULT[clump_type]
        vel = from_angle(rng.range(0, math.pi * 2)) * speed

        clump = Clump(
            id=state.allocate_clump_id(),
            type=clump_type,
            tier=tier,
            position=pos,
            velocity=vel,
            wobble_seed=rng.next_u32(),
            spin=rng.range(-1.2, 1.2),
        )
        state.clumps.append(clump)
        state.emit(Event(EventType.CLUMP_SPAWNED, clump_id=clump.id, clump_type=clump_type, tier=tier))
        return clump

    return None


def run_director(state: SimState, dt: float) -> None:
    """Advance the spawn timer and spawn while under the population ceiling."""
    d = difficulty(state.run_time)
    interval = spawn_interval(d)
    ceiling = max_clumps(d)
    state.spawn_timer -= dt

    while state.spawn_timer <= 0 and state.free_clump_count() < ceiling:
        state.spawn_timer += interval
        clump_type = choose_type(state.rng.next(), d)
        tier = 1 if state.rng.chance(MIDDLE_TIER_CHANCE) else 2
        spawn_clump(state, tier, clump_type)
