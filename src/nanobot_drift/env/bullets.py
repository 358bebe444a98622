import numpy as np

from nanobot_drift.core.mathutil import wrap_array


class Bullets:
    """
    Fixed-capacity bullet arena.

    Active bullets occupy slots [0, num_active). A bullet that hits something
    is marked dead in place (time_remaining = 0) so later checks in the same
    pass skip it; `remove_expired` compacts the arena afterwards.
    """

    def __init__(self, max_bullets: int) -> None:
        self.num_active = 0
        self.max_bullets = max_bullets

        self.x = np.zeros(self.max_bullets, dtype=np.float64)
        self.y = np.zeros(self.max_bullets, dtype=np.float64)
        self.vx = np.zeros(self.max_bullets, dtype=np.float64)
        self.vy = np.zeros(self.max_bullets, dtype=np.float64)
        self.time_remaining = np.zeros(self.max_bullets, dtype=np.float64)
        self.radius = np.zeros(self.max_bullets, dtype=np.float64)

    def add_bullet(
        self, x: float, y: float, vx: float, vy: float, lifetime: float, radius: float
    ) -> int:
        if self.num_active >= self.max_bullets:
            return -1

        slot = self.num_active
        self.x[slot] = x
        self.y[slot] = y
        self.vx[slot] = vx
        self.vy[slot] = vy
        self.time_remaining[slot] = lifetime
        self.radius[slot] = radius

        self.num_active += 1
        return slot

    def clear(self) -> None:
        self.num_active = 0

    def is_alive(self, idx: int) -> bool:
        return idx < self.num_active and self.time_remaining[idx] > 0

    def mark_dead(self, idx: int) -> None:
        if idx < self.num_active:
            self.time_remaining[idx] = 0.0

    def update_all(self, dt: float, world_size: tuple[float, float]) -> None:
        if self.num_active == 0:
            return

        active_slice = slice(0, self.num_active)
        self.time_remaining[active_slice] -= dt
        self.x[active_slice] += self.vx[active_slice] * dt
        self.y[active_slice] += self.vy[active_slice] * dt
        wrap_array(self.x[active_slice], world_size[0])
        wrap_array(self.y[active_slice], world_size[1])

        self.remove_expired()

    def remove_expired(self) -> None:
        if self.num_active == 0:
            return

        expired_mask = self.time_remaining[: self.num_active] <= 0
        if not np.any(expired_mask):
            return

        keep_indices = np.where(~expired_mask)[0]
        new_active_count = len(keep_indices)

        # Compact arrays - move kept bullets to front, preserving order
        for arr in (self.x, self.y, self.vx, self.vy, self.time_remaining, self.radius):
            arr[:new_active_count] = arr[keep_indices]

        self.num_active = new_active_count

    def get_active(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return (
            self.x[: self.num_active],
            self.y[: self.num_active],
            self.radius[: self.num_active],
        )

    def position(self, idx: int) -> complex:
        return complex(self.x[idx], self.y[idx])
