import logging
import math
from typing import Optional, assert_never

from nanobot_drift.core.config import HostConfig, RoundConfig, SimConfig, default_sim_config
from nanobot_drift.core.constants import TOTAL_ROUNDS, VERSION, ClumpType, Outcome
from nanobot_drift.core.intents import Intents
from nanobot_drift.core.mathutil import clamp
from nanobot_drift.core.rng import Rng
from nanobot_drift.core.types import RenderClump, RenderShip, RenderState, frozen_copy
from nanobot_drift.env.abilities import trigger_emp
from nanobot_drift.env.collisions import resolve_bullet_hits, resolve_latches
from nanobot_drift.env.director import run_director, spawn_clump
from nanobot_drift.env.event import Event, EventType
from nanobot_drift.env.game_state import (
    Boot,
    GameState,
    Paused,
    Playing,
    Result,
    RoundComplete,
    Title,
)
from nanobot_drift.env.meters import Verdict, evaluate, update_meters
from nanobot_drift.env.physics import (
    fire,
    tick_timers,
    update_bullets,
    update_clumps,
    update_particles,
    update_ship,
)
from nanobot_drift.env.state import Meters, SimState
from nanobot_drift.host.bridge import HostBridge
from nanobot_drift.host.messages import standalone_config, standalone_config_from_query

log = logging.getLogger(__name__)


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


class NanobotDriftEnv:
    """
    The simulation plus the round/game state machine.

    One call to `tick` runs to completion: drain host init, dispatch on the
    current game state, and (while playing) integrate, spawn, collide,
    update meters and evaluate the verdict. Events produced during the tick
    are returned for audio/visual handlers to consume afterwards.

    Attributes:
        config: Simulation tunables.
        bridge: Host handshake; a channel-less bridge when standalone.
        host_config: Identity of the current run.
        sim: The simulation context.
        game_state: Current state-machine variant.
        muted: Audio mute toggle, carried for the audio handler.
    """

    def __init__(
        self,
        config: SimConfig = default_sim_config,
        bridge: Optional[HostBridge] = None,
        query: str = "",
    ) -> None:
        self.config = config
        self.bridge = bridge if bridge is not None else HostBridge(channel=None)
        self.host_config = HostConfig()
        self.sim = SimState(
            config=config,
            rng=Rng(self.host_config.seed),
            world_size=tuple(config.world_size),
        )
        self.sim.ship.reset(self.sim.center())
        self.game_state: GameState = Boot()
        self.muted = False

        standalone = standalone_config_from_query(query) if query else None
        if standalone is not None:
            self.apply_init(standalone)

    # ------------------------------------------------------------------
    # Run / round lifecycle
    # ------------------------------------------------------------------

    def _set_state(self, new_state: GameState) -> None:
        if new_state != self.game_state:
            log.debug(f"{self.game_state.kind} -> {new_state.kind}")
        self.game_state = new_state
        self.sim.emit(Event(EventType.STATE_CHANGED, state=new_state.kind))

    def apply_init(self, host_config: HostConfig) -> None:
        """Adopt a new run identity: fresh RNG, cleared latch, back to Title."""
        self.host_config = host_config
        self.sim.rng = Rng(host_config.seed)
        self.sim.seed_phase = host_config.seed * 0.00001
        self.bridge.reset_outcome_latch()
        log.info(
            f"Init applied: game={host_config.game_id} room={host_config.room_id!r} "
            f"user={host_config.username!r} seed={host_config.seed}"
        )

        self._set_state(Title())
        self.configure_round(1)
        self.reset_run(keep_title=False)

    def reset_run(self, keep_title: bool) -> None:
        """
        Clear meters, entities and timers. Unless `keep_title`, seed the
        opening wave of large drifters.
        """
        sim = self.sim
        sim.run_time = 0.0
        sim.meters = Meters()
        sim.ship.reset(sim.center())
        sim.clear_entities()
        sim.spawn_timer = self.config.initial_spawn_delay

        if not keep_title:
            for _ in range(self.config.initial_clumps):
                spawn_clump(sim, 2, ClumpType.DRIFTER)

    def configure_round(self, round_number: int) -> None:
        self.sim.round_config = RoundConfig(round=round_number)
        self.sim.emp_charges = self.sim.round_config.emp_charges

    def start_round(self) -> None:
        self.reset_run(keep_title=False)
        self.configure_round(self.sim.round)
        log.info(f"Round {self.sim.round}/{TOTAL_ROUNDS} started")
        self._set_state(Playing())

    def begin_run(self) -> None:
        self.configure_round(1)
        self.start_round()

    def complete_round(self) -> None:
        log.info(f"Round {self.sim.round} complete, score={self.sim.meters.score}")
        self._set_state(RoundComplete())

    def advance_round(self) -> None:
        self.configure_round(min(self.sim.round + 1, TOTAL_ROUNDS))
        self.start_round()

    def return_to_title(self) -> None:
        self._set_state(Title())
        self.configure_round(1)
        self.reset_run(keep_title=True)

    def outcome_payload(self) -> dict:
        meters = self.sim.meters
        return {
            "score": meters.score,
            "timeSurvivedMs": int(_round_half_up(self.sim.run_time * 1000)),
            "maxAssimilation": _round_half_up(meters.max_assimilation, 1),
            "beaconCharge": _round_half_up(meters.beacon, 1),
            "seed": self.host_config.seed,
            "version": VERSION,
        }

    def end_run(self, outcome: Outcome) -> None:
        payload = self.outcome_payload()
        emitted = self.bridge.emit_outcome(outcome, payload)
        log.info(f"Run ended: {outcome} {payload} (sent={emitted})")

        self._set_state(Result(outcome=outcome, sent=True))
        self.sim.emit(Event(EventType.OUTCOME, outcome=outcome))

    def resize(self, width: float, height: float) -> None:
        """Change the viewport extents, keeping the ship on screen."""
        width, height = max(1.0, float(width)), max(1.0, float(height))
        self.sim.world_size = (width, height)
        ship = self.sim.ship
        ship.position = complex(clamp(ship.position.real, 0.0, width), clamp(ship.position.imag, 0.0, height))

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, intents: Optional[Intents], dt: float) -> list[Event]:
        """
        Advance one frame.

        Args:
            intents: Player intents for this frame; edge flags are consumed.
            dt: Raw frame delta in seconds, clamped to [0, max_frame_dt].

        Returns:
            Events emitted during this tick.
        """
        if intents is None:
            intents = Intents()
        dt = clamp(dt, 0.0, self.config.max_frame_dt)
        self.sim.app_time += dt

        host_config = self.bridge.poll_init()
        if host_config is not None:
            self.apply_init(host_config)

        if intents.consume("mute"):
            self.muted = not self.muted
            self.sim.emit(Event(EventType.MUTE_TOGGLED, muted=self.muted))

        match self.game_state:
            case Boot():
                if intents.consume("confirm"):
                    self.apply_init(standalone_config())
            case Title():
                if intents.consume("confirm"):
                    self.begin_run()
            case Paused():
                self._update_paused(intents)
            case RoundComplete():
                if intents.consume("confirm"):
                    self.advance_round()
            case Result():
                if not self.bridge.embedded and intents.consume("confirm"):
                    self.return_to_title()
            case Playing():
                self._update_playing(intents, dt)
            case _:
                assert_never(self.game_state)

        return self.sim.take_events()

    def _update_paused(self, intents: Intents) -> None:
        if intents.consume("pause") or intents.consume("confirm"):
            self._set_state(Playing())
        elif self.host_config.allow_abort and intents.consume("abort"):
            self.end_run(Outcome.ABORT)
        elif not self.bridge.embedded and intents.consume("restart"):
            self.return_to_title()

    def _update_playing(self, intents: Intents, dt: float) -> None:
        sim = self.sim
        sim.run_time += dt

        if intents.consume("pause"):
            self._set_state(Paused())
            return

        if self.host_config.allow_abort and intents.consume("abort"):
            self.end_run(Outcome.ABORT)
            return

        tick_timers(sim, dt)
        update_ship(sim, intents, dt)

        if intents.fire and sim.ship.fire_cooldown <= 0:
            sim.ship.fire_cooldown = self.config.fire_cooldown
            fire(sim)

        if intents.consume("emp"):
            trigger_emp(sim)

        run_director(sim, dt)

        update_bullets(sim, dt)
        update_clumps(sim, dt)
        update_particles(sim, dt)

        resolve_bullet_hits(sim)
        resolve_latches(sim)

        update_meters(sim, dt)

        verdict = evaluate(sim)
        match verdict:
            case Verdict.LOSE:
                self.end_run(Outcome.LOSE)
            case Verdict.WIN:
                self.end_run(Outcome.WIN)
            case Verdict.ROUND_COMPLETE:
                self.complete_round()
            case Verdict.CONTINUE:
                pass
            case _:
                assert_never(verdict)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> RenderState:
        """Read-only view of the simulation for renderers and scripted pilots."""
        sim = self.sim
        ship = sim.ship
        bullets = sim.bullets
        particles = sim.particles
        bullet_x, bullet_y, bullet_radius = bullets.get_active()
        n_p = particles.num_active

        return RenderState(
            state=self.game_state.kind,
            outcome=self.game_state.outcome if isinstance(self.game_state, Result) else None,
            round=sim.round,
            total_rounds=TOTAL_ROUNDS,
            ship=RenderShip(
                position=ship.position,
                velocity=ship.velocity,
                heading=ship.heading,
                radius=self.config.ship_radius,
                thrusting=ship.thrusting,
            ),
            clumps=tuple(
                RenderClump(
                    id=c.id,
                    type=c.type,
                    tier=c.tier,
                    position=c.position,
                    radius=c.radius,
                    latched=c.latched,
                    wobble_seed=c.wobble_seed,
                )
                for c in sim.clumps
                if c.alive
            ),
            bullet_x=frozen_copy(bullet_x),
            bullet_y=frozen_copy(bullet_y),
            bullet_radius=frozen_copy(bullet_radius),
            particle_x=frozen_copy(particles.x[:n_p]),
            particle_y=frozen_copy(particles.y[:n_p]),
            particle_radius=frozen_copy(particles.radius[:n_p]),
            particle_kind=frozen_copy(particles.kind[:n_p]),
            particle_life=frozen_copy(particles.life_fraction()),
            assimilation=sim.meters.assimilation,
            max_assimilation=sim.meters.max_assimilation,
            beacon=sim.meters.beacon,
            score=sim.meters.score,
            run_time=sim.run_time,
            app_time=sim.app_time,
            emp_cooldown=ship.emp_cooldown,
            emp_cooldown_max=sim.round_config.emp_cooldown_max,
            emp_charges=sim.emp_charges,
            emp_pulse=ship.emp_pulse,
            emp_pulse_max=self.config.emp_pulse,
            world_size=sim.world_size,
            seed=self.host_config.seed,
            username=self.host_config.username,
            allow_abort=self.host_config.allow_abort,
            embedded=self.bridge.embedded,
            muted=self.muted,
        )
