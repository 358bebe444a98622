"""
Tests for the numpy bullet and particle arenas.
"""

import math

import numpy as np

from nanobot_drift.core.constants import ParticleKind
from nanobot_drift.core.rng import Rng
from nanobot_drift.env.bullets import Bullets
from nanobot_drift.env.particles import Particles
from nanobot_drift.env.state import SimState

WORLD = (1000.0, 500.0)


class TestBullets:
    """Tests for bullet allocation, movement and compaction."""

    def test_add_until_full(self):
        bullets = Bullets(max_bullets=2)
        assert bullets.add_bullet(0, 0, 1, 1, 1.0, 2.0) == 0
        assert bullets.add_bullet(0, 0, 1, 1, 1.0, 2.0) == 1
        assert bullets.add_bullet(0, 0, 1, 1, 1.0, 2.0) == -1
        assert bullets.num_active == 2

    def test_movement_and_wrap(self):
        bullets = Bullets(max_bullets=4)
        bullets.add_bullet(990.0, 10.0, 200.0, -400.0, 1.0, 2.0)
        bullets.update_all(0.1, WORLD)

        assert bullets.num_active == 1
        np.testing.assert_allclose(bullets.x[0], 10.0)
        np.testing.assert_allclose(bullets.y[0], 470.0)

    def test_expiry(self):
        bullets = Bullets(max_bullets=4)
        bullets.add_bullet(0, 0, 0, 0, 0.05, 2.0)
        bullets.add_bullet(0, 0, 0, 0, 1.0, 2.0)
        bullets.update_all(0.1, WORLD)
        assert bullets.num_active == 1
        np.testing.assert_allclose(bullets.time_remaining[0], 0.9)

    def test_mark_dead_skipped_then_compacted(self):
        """A dead bullet is skipped immediately and compaction keeps order."""
        bullets = Bullets(max_bullets=4)
        for x in (1.0, 2.0, 3.0):
            bullets.add_bullet(x, 0, 0, 0, 1.0, 2.0)

        bullets.mark_dead(1)
        assert not bullets.is_alive(1)
        assert bullets.is_alive(0) and bullets.is_alive(2)

        bullets.remove_expired()
        assert bullets.num_active == 2
        xs, _, _ = bullets.get_active()
        np.testing.assert_array_equal(xs, [1.0, 3.0])

    def test_clear(self):
        bullets = Bullets(max_bullets=4)
        bullets.add_bullet(0, 0, 0, 0, 1.0, 2.0)
        bullets.clear()
        assert bullets.num_active == 0
        assert not bullets.is_alive(0)


class TestParticles:
    """Tests for the cosmetic particle arena."""

    def test_cap_skips_creation(self):
        particles = Particles(max_particles=3)
        for _ in range(5):
            particles.spawn(0j, 0j, 1.0, 1.0, ParticleKind.SPARK)
        assert len(particles) == 3

    def test_damping_and_expiry(self):
        particles = Particles(max_particles=8, damping=1.4)
        particles.spawn(10 + 10j, 100 + 0j, 0.5, 1.0, ParticleKind.DUST)
        particles.spawn(10 + 10j, 0j, 0.05, 1.0, ParticleKind.THRUST)

        particles.update_all(0.1, WORLD)

        assert len(particles) == 1
        assert particles.kind[0] == ParticleKind.DUST
        np.testing.assert_allclose(particles.x[0], 20.0)
        np.testing.assert_allclose(particles.vx[0], 100.0 * np.exp(-0.14))

    def test_life_fraction(self):
        particles = Particles(max_particles=8)
        particles.spawn(0j, 0j, 1.0, 1.0, ParticleKind.SPARK)
        particles.update_all(0.25, WORLD)
        np.testing.assert_allclose(particles.life_fraction(), [0.75])


class TestSimStateArenas:
    """Tests for the arenas a SimState builds for itself."""

    def test_sized_from_config(self, sim_config):
        state = SimState(config=sim_config, rng=Rng(1), world_size=WORLD)

        expected = int(math.ceil(sim_config.bullet_lifetime / sim_config.fire_cooldown)) + 2
        assert state.bullets.max_bullets == expected
        assert state.particles.max_particles == sim_config.max_particles

    def test_given_arenas_kept(self, sim_config):
        bullets = Bullets(max_bullets=3)
        particles = Particles(max_particles=5)
        state = SimState(
            config=sim_config, rng=Rng(1), world_size=WORLD, bullets=bullets, particles=particles
        )
        assert state.bullets is bullets
        assert state.particles is particles
