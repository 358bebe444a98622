import math

from nanobot_drift.core.constants import ParticleKind
from nanobot_drift.core.intents import Intents
from nanobot_drift.core.mathutil import (
    clamp,
    from_angle,
    normalize,
    wrap_delta,
    wrap_position,
)
from nanobot_drift.env.entities import Clump
from nanobot_drift.env.event import Event, EventType
from nanobot_drift.env.state import SimState


def _spawn_thrust_particles(state: SimState) -> None:
    config = state.config
    if len(state.particles) > config.max_thrust_particles:
        return

    ship = state.ship
    rng = state.rng
    back = from_angle(ship.heading + math.pi)
    base = ship.position + back * 10
    for _ in range(2):
        jitter = from_angle(ship.heading + math.pi + rng.range(-0.7, 0.7)) * rng.range(18, 52)
        vel = back * rng.range(70, 150) + jitter + ship.velocity * 0.2
        state.particles.spawn(base, vel, rng.range(0.16, 0.28), rng.range(1.2, 2.2), ParticleKind.THRUST)


def update_ship(state: SimState, intents: Intents, dt: float) -> None:
    """
    Rotation, thrust, braking, drag, speed cap and toroidal integration.

    Args:
        state: Simulation context.
        intents: Held intents for this tick.
        dt: Clamped frame delta.
    """
    config = state.config
    ship = state.ship

    if intents.rotate_left:
        ship.heading -= config.rotation_speed * dt
    if intents.rotate_right:
        ship.heading += config.rotation_speed * dt

    # Heavy assimilation makes the hull wander off heading
    interference = clamp(
        (state.meters.assimilation - config.interference_threshold)
        / (100.0 - config.interference_threshold),
        0.0,
        1.0,
    )
    if interference > 0:
        wobble = math.sin(state.app_time * 6.2 + state.seed_phase) * 0.55
        ship.heading += wobble * interference * dt * 0.9

    ship.thrusting = intents.thrust
    if intents.thrust:
        ship.velocity += from_angle(ship.heading) * (config.thrust_accel * dt)
        _spawn_thrust_particles(state)

    if intents.brake:
        ship.velocity *= math.exp(-config.brake_damping * dt)

    ship.velocity *= math.exp(-config.ship_drag * dt)

    speed = abs(ship.velocity)
    if speed > config.max_speed:
        ship.velocity *= config.max_speed / speed

    ship.position = wrap_position(ship.position + ship.velocity * dt, state.world_size)


def fire(state: SimState) -> None:
    """Spawn a bullet from the muzzle plus a burst of sparks."""
    config = state.config
    ship = state.ship
    rng = state.rng

    direction = from_angle(ship.heading)
    pos = ship.position + direction * config.muzzle_offset
    vel = ship.velocity + direction * config.bullet_speed
    state.bullets.add_bullet(
        x=pos.real,
        y=pos.imag,
        vx=vel.real,
        vy=vel.imag,
        lifetime=config.bullet_lifetime,
        radius=config.bullet_radius,
    )

    for _ in range(6):
        angle = ship.heading + rng.range(-0.35, 0.35)
        spark_vel = from_angle(angle) * rng.range(80, 220) + ship.velocity * 0.25
        state.particles.spawn(pos, spark_vel, 0.25, 1.2, ParticleKind.SPARK)

    state.emit(Event(EventType.SHOT_FIRED))


def update_bullets(state: SimState, dt: float) -> None:
    state.bullets.update_all(dt, state.world_size)


def homing_impulse(state: SimState, clump: Clump, dt: float) -> complex:
    """
    Velocity nudge toward the ship for a free clump within detection range.

    Uses the wrap-aware shortest vector so clumps chase across the seams.
    """
    to_ship = wrap_delta(state.ship.position - clump.position, state.world_size)
    radius = state.config.homing_radius
    if to_ship.real * to_ship.real + to_ship.imag * to_ship.imag >= radius * radius:
        return 0j
    return normalize(to_ship) * (state.config.homing_rate(clump.type) * dt)


def update_clumps(state: SimState, dt: float) -> None:
    """Latched clumps orbit the ship; free clumps home, drift and damp."""
    config = state.config
    ship_pos = state.ship.position
    damping = math.exp(-config.clump_damping * dt)

    for clump in state.clumps:
        if not clump.alive:
            continue
        if clump.no_latch_t > 0:
            clump.no_latch_t = max(0.0, clump.no_latch_t - dt)

        if clump.latched:
            clump.latch_angle += clump.spin * dt
            offset = from_angle(clump.latch_angle) * clump.latch_dist
            clump.position = wrap_position(ship_pos + offset, state.world_size)
            continue

        clump.velocity += homing_impulse(state, clump, dt)
        clump.position = wrap_position(clump.position + clump.velocity * dt, state.world_size)
        clump.velocity *= damping


def update_particles(state: SimState, dt: float) -> None:
    state.particles.update_all(dt, state.world_size)


def tick_timers(state: SimState, dt: float) -> None:
    ship = state.ship
    ship.fire_cooldown = max(0.0, ship.fire_cooldown - dt)
    ship.emp_cooldown = max(0.0, ship.emp_cooldown - dt)
    ship.emp_pulse = max(0.0, ship.emp_pulse - dt)
