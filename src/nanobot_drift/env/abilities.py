import math

from nanobot_drift.core.constants import METER_MAX, ParticleKind
from nanobot_drift.core.mathutil import clamp, dist_sq, from_angle, normalize
from nanobot_drift.env.event import Event, EventType
from nanobot_drift.env.state import SimState

EMP_RING_PARTICLES = 44


def emp_available(state: SimState) -> bool:
    """Cooldown elapsed and, on the final round, a charge left."""
    charges_ok = state.emp_charges is None or state.emp_charges > 0
    return charges_ok and state.ship.emp_cooldown <= 0


def _away_from_ship(state: SimState, pos: complex) -> complex:
    away = pos - state.ship.position
    if abs(away) < 1e-3:
        away = complex(state.rng.range(-1, 1), state.rng.range(-1, 1))
    return normalize(away)


def trigger_emp(state: SimState) -> bool:
    """
    Fire the EMP burst if it is available.

    Every latched clump is detached and flung outward on top of the ship's
    velocity; free clumps inside the radius get an outward impulse and a
    short grace period; assimilation drops by the EMP relief. All of it
    resolves within the calling tick.

    Returns:
        True if the burst fired, False if it was gated (no state change).
    """
    if not emp_available(state):
        return False

    config = state.config
    ship = state.ship
    rng = state.rng

    ship.emp_cooldown = state.round_config.emp_cooldown_max
    ship.emp_pulse = config.emp_pulse
    if state.emp_charges is not None:
        state.emp_charges = max(0, state.emp_charges - 1)

    radius_sq = config.emp_radius * config.emp_radius
    detached = 0
    for clump in state.clumps:
        if not clump.alive:
            continue
        within = dist_sq(clump.position, ship.position) <= radius_sq

        if clump.latched:
            clump.detach(config.emp_detach_grace)
            clump.velocity = ship.velocity + _away_from_ship(state, clump.position) * config.emp_detach_speed
            detached += 1
        elif within:
            clump.velocity += _away_from_ship(state, clump.position) * config.emp_repel_speed
            clump.no_latch_t = max(clump.no_latch_t, config.emp_repel_grace)

    for i in range(EMP_RING_PARTICLES):
        angle = (i / EMP_RING_PARTICLES) * math.pi * 2
        pos = ship.position + from_angle(angle) * (config.emp_radius * 0.85)
        vel = from_angle(angle) * rng.range(60, 160) + ship.velocity * 0.15
        state.particles.spawn(pos, vel, rng.range(0.25, 0.55), rng.range(1.2, 2.3), ParticleKind.SPARK)

    meters = state.meters
    meters.assimilation = clamp(meters.assimilation - config.emp_relief, 0.0, METER_MAX)

    state.emit(Event(EventType.EMP_FIRED, amount=detached))
    return True
