import math

import numpy as np

from nanobot_drift.core.intents import Intents
from nanobot_drift.core.types import RenderState


class ScriptedPilot:
    """
    A heuristic pilot driven purely by the render snapshot.

    It turns toward the nearest free clump (wrap-aware), thrusts when the
    target is far, fires when roughly aligned, and pops the EMP when the
    hull is getting crowded.

    Attributes:
        angle_threshold: Heading error inside which the pilot stops turning.
        fire_threshold: Heading error inside which the pilot fires.
        thrust_range: Targets further than this are chased.
        emp_latched: Number of latched clumps that triggers the EMP.
        emp_assimilation: Assimilation level that triggers the EMP.
    """

    def __init__(
        self,
        angle_threshold: float = np.deg2rad(6.0),
        fire_threshold: float = np.deg2rad(14.0),
        thrust_range: float = 320.0,
        emp_latched: int = 2,
        emp_assimilation: float = 60.0,
    ):
        self.angle_threshold = angle_threshold
        self.fire_threshold = fire_threshold
        self.thrust_range = thrust_range
        self.emp_latched = emp_latched
        self.emp_assimilation = emp_assimilation

    def _nearest_free(self, snapshot: RenderState) -> complex | None:
        free = snapshot.free_clumps
        if not free:
            return None

        width, height = snapshot.world_size
        diffs = np.array([c.position for c in free], dtype=np.complex128) - snapshot.ship.position

        # Wrap World Boundaries
        diffs.real = (diffs.real + width / 2) % width - width / 2
        diffs.imag = (diffs.imag + height / 2) % height - height / 2

        return complex(diffs[np.argmin(np.abs(diffs))])

    def get_intents(self, snapshot: RenderState) -> Intents:
        intents = Intents()

        if snapshot.state in ("title", "round_complete"):
            intents.confirm = True
            return intents
        if snapshot.state != "playing":
            return intents

        if (
            len(snapshot.latched_clumps) >= self.emp_latched
            or snapshot.assimilation > self.emp_assimilation
        ):
            intents.emp = True

        to_target = self._nearest_free(snapshot)
        if to_target is None:
            return intents

        desired = math.atan2(to_target.imag, to_target.real)
        error = (desired - snapshot.ship.heading + math.pi) % (2 * math.pi) - math.pi

        if error > self.angle_threshold:
            intents.rotate_right = True
        elif error < -self.angle_threshold:
            intents.rotate_left = True

        intents.fire = abs(error) < self.fire_threshold
        intents.thrust = abs(to_target) > self.thrust_range and abs(error) < math.pi / 4
        return intents
