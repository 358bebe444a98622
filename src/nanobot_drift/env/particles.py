import numpy as np

from nanobot_drift.core.constants import ParticleKind
from nanobot_drift.core.mathutil import wrap_array


class Particles:
    """
    Cosmetic particle arena. Nothing in the simulation reads particles back;
    they only exist for the renderer.
    """

    def __init__(self, max_particles: int, damping: float = 1.4) -> None:
        self.num_active = 0
        self.max_particles = max_particles
        self.damping = damping

        self.x = np.zeros(max_particles, dtype=np.float64)
        self.y = np.zeros(max_particles, dtype=np.float64)
        self.vx = np.zeros(max_particles, dtype=np.float64)
        self.vy = np.zeros(max_particles, dtype=np.float64)
        self.life = np.zeros(max_particles, dtype=np.float64)
        self.max_life = np.ones(max_particles, dtype=np.float64)
        self.radius = np.zeros(max_particles, dtype=np.float64)
        self.kind = np.zeros(max_particles, dtype=np.uint8)

    def __len__(self) -> int:
        return self.num_active

    def spawn(
        self, pos: complex, vel: complex, life: float, radius: float, kind: ParticleKind
    ) -> None:
        if self.num_active >= self.max_particles:
            return

        slot = self.num_active
        self.x[slot] = pos.real
        self.y[slot] = pos.imag
        self.vx[slot] = vel.real
        self.vy[slot] = vel.imag
        self.life[slot] = life
        self.max_life[slot] = life
        self.radius[slot] = radius
        self.kind[slot] = kind
        self.num_active += 1

    def clear(self) -> None:
        self.num_active = 0

    def update_all(self, dt: float, world_size: tuple[float, float]) -> None:
        if self.num_active == 0:
            return

        s = slice(0, self.num_active)
        self.life[s] -= dt
        self.x[s] += self.vx[s] * dt
        self.y[s] += self.vy[s] * dt
        decay = np.exp(-self.damping * dt)
        self.vx[s] *= decay
        self.vy[s] *= decay
        wrap_array(self.x[s], world_size[0])
        wrap_array(self.y[s], world_size[1])

        keep = np.where(self.life[s] > 0)[0]
        if len(keep) == self.num_active:
            return
        for arr in (self.x, self.y, self.vx, self.vy, self.life, self.max_life, self.radius, self.kind):
            arr[: len(keep)] = arr[keep]
        self.num_active = len(keep)

    def life_fraction(self) -> np.ndarray:
        s = slice(0, self.num_active)
        return np.clip(self.life[s] / self.max_life[s], 0.0, 1.0)
