"""
Tests for difficulty ramping and clump spawning.
"""

import numpy as np

from nanobot_drift.core.config import SimConfig
from nanobot_drift.core.constants import TIER_RADIUS, ClumpType
from nanobot_drift.core.mathutil import dist_sq
from nanobot_drift.core.rng import Rng
from nanobot_drift.env.director import (
    choose_type,
    difficulty,
    max_clumps,
    run_director,
    spawn_clump,
    spawn_interval,
)
from nanobot_drift.env.event import EventType
from nanobot_drift.env.state import SimState


class TestDifficultyRamp:
    """The ramp tightens over 90 seconds and then holds."""

    def test_difficulty_endpoints(self):
        assert difficulty(0.0) == 0.0
        assert difficulty(45.0) == 0.5
        assert difficulty(90.0) == 1.0
        assert difficulty(500.0) == 1.0

    def test_interval_non_increasing(self):
        times = np.linspace(0.0, 120.0, 241)
        intervals = [spawn_interval(difficulty(t)) for t in times]
        assert all(b <= a for a, b in zip(intervals, intervals[1:]))
        assert intervals[0] == 1.75
        assert abs(intervals[-1] - 0.65) < 1e-12

    def test_ceiling_non_decreasing(self):
        times = np.linspace(0.0, 120.0, 241)
        ceilings = [max_clumps(difficulty(t)) for t in times]
        assert all(b >= a for a, b in zip(ceilings, ceilings[1:]))
        assert ceilings[0] == 12
        assert ceilings[-1] == 22

    def test_constant_after_ramp(self):
        assert spawn_interval(difficulty(90.0)) == spawn_interval(difficulty(300.0))
        assert max_clumps(difficulty(90.0)) == max_clumps(difficulty(300.0))


class TestChooseType:
    def test_early_is_drifter(self):
        assert choose_type(0.1, 0.0) == ClumpType.DRIFTER
        assert choose_type(0.95, 0.2) == ClumpType.DRIFTER

    def test_seekers_after_quarter(self):
        assert choose_type(0.1, 0.5) == ClumpType.SEEKER
        assert choose_type(0.6, 0.5) == ClumpType.DRIFTER

    def test_latchers_late(self):
        assert choose_type(0.9, 0.6) == ClumpType.LATCHER
        assert choose_type(0.9, 0.5) == ClumpType.DRIFTER


class TestSpawnClump:
    """Tests for edge placement and the ship keep-out."""

    def test_spawns_just_outside_an_edge(self, sim_state):
        width, height = sim_state.world_size
        r = TIER_RADIUS[2]
        for _ in range(50):
            clump = spawn_clump(sim_state, 2, ClumpType.DRIFTER)
            assert clump is not None
            pos = clump.position
            assert pos.real in (-r, width + r) or pos.imag in (-r, height + r)

    def test_respects_keepout(self, sim_state):
        keepout = sim_state.config.spawn_keepout
        for _ in range(50):
            clump = spawn_clump(sim_state, 1, ClumpType.SEEKER)
            assert dist_sq(clump.position, sim_state.ship.position) >= keepout * keepout

    def test_gives_up_when_every_attempt_is_too_close(self):
        state = SimState(config=SimConfig(spawn_keepout=1e6), rng=Rng(3), world_size=(1280.0, 720.0))
        state.ship.reset(state.center())

        assert spawn_clump(state, 2, ClumpType.DRIFTER) is None
        assert state.clumps == []
        assert state.take_events() == []

    def test_emits_spawn_event(self, sim_state):
        clump = spawn_clump(sim_state, 2, ClumpType.LATCHER)
        events = sim_state.take_events()
        assert len(events) == 1
        assert events[0].event_type == EventType.CLUMP_SPAWNED
        assert events[0].clump_id == clump.id
        assert events[0].clump_type == ClumpType.LATCHER

    def test_same_seed_same_spawns(self, sim_config):
        positions = []
        for _ in range(2):
            state = SimState(config=sim_config, rng=Rng(77), world_size=(1280.0, 720.0))
            state.ship.reset(state.center())
            positions.append([spawn_clump(state, 2, ClumpType.DRIFTER).position for _ in range(10)])
        assert positions[0] == positions[1]


class TestRunDirector:
    def test_spawns_when_timer_expires(self, sim_state):
        sim_state.spawn_timer = 0.01
        run_director(sim_state, 0.02)

        assert len(sim_state.clumps) == 1
        assert abs(sim_state.spawn_timer - (1.75 - 0.01)) < 1e-9

    def test_waits_for_timer(self, sim_state):
        sim_state.spawn_timer = 1.0
        run_director(sim_state, 0.02)
        assert sim_state.clumps == []

    def test_respects_population_ceiling(self, sim_state, make_clump):
        for i in range(12):
            make_clump(sim_state, complex(10.0 * i, 10.0))
        sim_state.spawn_timer = -5.0

        run_director(sim_state, 0.02)

        assert len(sim_state.clumps) == 12
