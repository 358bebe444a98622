from dataclasses import dataclass, field
from typing import Tuple

from omegaconf import DictConfig, OmegaConf

from nanobot_drift.core.constants import (
    BEACON_CHARGE_RATE,
    DEFAULT_SEED,
    EMP_BASE_COOLDOWN,
    EMP_COOLDOWN_PER_ROUND,
    FINAL_ROUND_BEACON_MULT,
    FINAL_ROUND_EMP_CHARGES,
    GAME_ID_DEFAULT,
    TOTAL_ROUNDS,
    ClumpType,
)


@dataclass
class SimConfig:
    """
    Tunables for the simulation core.

    Attributes:
        world_size: Initial viewport extents of the toroidal plane.
        max_frame_dt: Upper bound on a single tick's delta time.
        ship_radius: Ship collision radius.
        rotation_speed: Heading change while a rotate intent is held (rad/s).
        thrust_accel: Forward acceleration while thrusting.
        brake_damping: Exponential damping rate while braking.
        ship_drag: Continuous exponential drag on the ship.
        max_speed: Hard cap on ship speed.
        fire_cooldown: Time between shots.
        bullet_speed: Muzzle speed relative to the ship.
        bullet_lifetime: Seconds a bullet lives regardless of hits.
        bullet_radius: Bullet collision radius.
        muzzle_offset: Distance ahead of the ship where bullets spawn.
        clump_damping: Exponential damping on free clumps.
        homing_radius: Range inside which free clumps steer toward the ship.
        homing_drifter / homing_seeker / homing_latcher: Homing accelerations.
        spawn_keepout: Minimum spawn distance from the ship.
        spawn_attempts: Edge placement attempts before a spawn is skipped.
        initial_spawn_delay: Director timer at the start of a run.
        initial_clumps: Tier-2 drifters seeded at the start of a run.
        latch_impulse: Speed kick applied to the ship away from a new latch.
        latch_dist_factor: Fraction of the clump radius kept outside the hull.
        split_grace: noLatchT given to freshly split children.
        emp_radius: EMP repel radius.
        emp_detach_speed: Outward speed given to detached clumps.
        emp_repel_speed: Outward impulse given to nearby free clumps.
        emp_detach_grace / emp_repel_grace: noLatchT after an EMP.
        emp_pulse: Duration of the visual EMP ring.
        emp_relief: Assimilation removed by an EMP.
        hit_relief: Assimilation removed per destroyed clump.
        recovery_rate: Assimilation decay while nothing is latched.
        crowding_threshold: Free clump count above which pressure applies.
        crowding_pressure: Assimilation added per second while crowded.
        interference_threshold: Assimilation above which the heading drifts.
        max_particles: Hard cap on live particles.
        max_thrust_particles: Cap above which thrust exhaust is skipped.
    """

    world_size: Tuple[float, float] = (1280.0, 720.0)
    max_frame_dt: float = 0.05

    # Ship
    ship_radius: float = 14.0
    rotation_speed: float = 3.7
    thrust_accel: float = 260.0
    brake_damping: float = 2.2
    ship_drag: float = 0.45
    max_speed: float = 520.0

    # Weapons
    fire_cooldown: float = 0.14
    bullet_speed: float = 560.0
    bullet_lifetime: float = 1.15
    bullet_radius: float = 2.0
    muzzle_offset: float = 16.0

    # Clumps
    clump_damping: float = 0.08
    homing_radius: float = 420.0
    homing_drifter: float = 10.0
    homing_seeker: float = 26.0
    homing_latcher: float = 34.0
    spawn_keepout: float = 260.0
    spawn_attempts: int = 10
    initial_spawn_delay: float = 0.35
    initial_clumps: int = 4
    latch_impulse: float = 45.0
    latch_dist_factor: float = 0.65
    split_grace: float = 0.25

    # EMP
    emp_radius: float = 180.0
    emp_detach_speed: float = 420.0
    emp_repel_speed: float = 320.0
    emp_detach_grace: float = 0.55
    emp_repel_grace: float = 0.25
    emp_pulse: float = 0.25

    # Meters
    emp_relief: float = 8.0
    hit_relief: float = 0.8
    recovery_rate: float = 6.2
    crowding_threshold: int = 10
    crowding_pressure: float = 0.35
    interference_threshold: float = 70.0

    # Particles
    max_particles: int = 380
    max_thrust_particles: int = 360

    def homing_rate(self, clump_type: ClumpType) -> float:
        if clump_type == ClumpType.SEEKER:
            return self.homing_seeker
        if clump_type == ClumpType.LATCHER:
            return self.homing_latcher
        return self.homing_drifter


default_sim_config = SimConfig()


@dataclass(frozen=True)
class HostConfig:
    """Run identity supplied by the host (or the standalone bootstrap)."""

    game_id: str = GAME_ID_DEFAULT
    room_id: str = ""
    username: str = "Pilot"
    allow_abort: bool = True
    seed: int = DEFAULT_SEED


@dataclass(frozen=True)
class RoundConfig:
    """Values derived from the current round number."""

    round: int = 1
    total_rounds: int = field(default=TOTAL_ROUNDS)

    @property
    def is_final(self) -> bool:
        return self.round >= self.total_rounds

    @property
    def emp_cooldown_max(self) -> float:
        return EMP_BASE_COOLDOWN + EMP_COOLDOWN_PER_ROUND * (self.round - 1)

    @property
    def beacon_charge_rate(self) -> float:
        if self.is_final:
            return BEACON_CHARGE_RATE * FINAL_ROUND_BEACON_MULT
        return BEACON_CHARGE_RATE

    @property
    def emp_charges(self) -> int | None:
        """None means unlimited."""
        return FINAL_ROUND_EMP_CHARGES if self.is_final else None


def load_sim_config(cfg: DictConfig | None) -> SimConfig:
    """
    Build a SimConfig from the `sim` section of a Hydra/OmegaConf config.

    Args:
        cfg: Root config. Missing `sim` section means all defaults.

    Returns:
        A validated SimConfig instance.
    """
    if cfg is None or cfg.get("sim") is None:
        return SimConfig()

    merged = OmegaConf.merge(OmegaConf.structured(SimConfig), cfg.sim)
    sim = OmegaConf.to_object(merged)
    sim.world_size = tuple(float(v) for v in sim.world_size)
    return sim
