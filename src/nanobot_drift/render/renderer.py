import logging
import math
import os
from typing import Tuple

import numpy as np
import pygame

from nanobot_drift.core.constants import STARFIELD_SEED_MIX, ClumpType, Outcome, ParticleKind
from nanobot_drift.core.rng import Rng
from nanobot_drift.core.types import RenderClump, RenderShip, RenderState
from nanobot_drift.render.input import KeyboardIntents

log = logging.getLogger(__name__)

# Constants for Rendering
BACKGROUND_COLOR = (6, 8, 16)
TEXT_COLOR = (225, 235, 255)
DIM_TEXT_COLOR = (140, 150, 175)
SHIP_COLOR = (120, 220, 255)
THRUST_COLOR = (255, 170, 60)
BULLET_COLOR = (255, 255, 200)
EMP_COLOR = (110, 180, 255)
PANEL_COLOR = (12, 16, 30, 210)

CLUMP_COLORS = {
    ClumpType.DRIFTER: (150, 160, 175),
    ClumpType.SEEKER: (110, 230, 150),
    ClumpType.LATCHER: (235, 90, 140),
}
LATCHED_TINT = (255, 60, 60)

PARTICLE_COLORS = {
    ParticleKind.SPARK: np.array([255, 220, 120]),
    ParticleKind.DUST: np.array([150, 150, 170]),
    ParticleKind.THRUST: np.array([255, 150, 60]),
}

ASSIMILATION_BAR_COLOR = (230, 70, 90)
BEACON_BAR_COLOR = (90, 200, 255)
BAR_BG = (40, 40, 60)

NUM_STARS = 140
CLUMP_VERTICES = 9


def emp_ring_radius(pulse: float, pulse_max: float) -> int:
    """Radius of the expanding EMP ring, from 20 at the burst to 180 as it fades."""
    progress = 1.0 - pulse / pulse_max
    return int(20 + 160 * progress)


class RenderSurfaceUnavailable(RuntimeError):
    """The display surface could not be created."""


class GameRenderer:
    """
    Renders a `RenderState` snapshot using Pygame.

    The window is drawn 1:1 in world units; a window resize is reported back
    so the simulation can adopt the new extents.
    """

    def __init__(
        self,
        world_size: Tuple[float, float],
        target_fps: int = 60,
        caption: str = "Nanobot Drift",
    ):
        self.target_fps = target_fps
        self.window_width = int(world_size[0])
        self.window_height = int(world_size[1])

        # Initialize Pygame
        if os.environ.get("HEADLESS"):
            log.warning("HEADLESS is set, rendering to the dummy SDL video driver")
            os.environ["SDL_VIDEODRIVER"] = "dummy"
        try:
            pygame.display.init()
            pygame.font.init()
            self.screen = pygame.display.set_mode(
                (self.window_width, self.window_height), pygame.RESIZABLE
            )
        except pygame.error as e:
            raise RenderSurfaceUnavailable(f"Cannot create display surface: {e}") from e
        pygame.display.set_caption(caption)

        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 16)
        self.big_font = pygame.font.SysFont("monospace", 40, bold=True)

        self.pending_resize: Tuple[int, int] | None = None
        self._star_key: Tuple[int, int, int] | None = None
        self._stars: list[Tuple[float, float, float, int]] = []

        # Precompute ship shape (nose along +x)
        self.ship_shape = [(16, 0), (-10, 9), (-5, 0), (-10, -9)]

    def close(self):
        pygame.quit()

    def handle_events(self, keyboard: KeyboardIntents, state: str) -> bool:
        """
        Pump the Pygame event queue.

        Returns:
            False once the window has been closed.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            elif event.type == pygame.VIDEORESIZE:
                self.window_width = max(1, event.w)
                self.window_height = max(1, event.h)
                self.screen = pygame.display.set_mode(
                    (self.window_width, self.window_height), pygame.RESIZABLE
                )
                self.pending_resize = (self.window_width, self.window_height)
            else:
                keyboard.handle_event(event, state)
        return True

    def take_resize(self) -> Tuple[int, int] | None:
        size, self.pending_resize = self.pending_resize, None
        return size

    def tick(self) -> float:
        """Wait for the next frame and return the elapsed time in seconds."""
        return self.clock.tick(self.target_fps) / 1000.0

    def render(self, state: RenderState):
        """Render the given frame."""
        self.screen.fill(BACKGROUND_COLOR)
        self._draw_stars(state)

        if state.state in ("playing", "paused", "round_complete", "result"):
            self._draw_particles(state)
            for clump in state.clumps:
                self._draw_clump(clump, state.app_time)
            self._draw_bullets(state)
            self._draw_ship(state.ship, state)
            self._draw_hud(state)

        self._draw_panel(state)
        pygame.display.flip()

    # ------------------------------------------------------------------
    # Background
    # ------------------------------------------------------------------

    def _draw_stars(self, state: RenderState):
        width, height = state.world_size
        key = (state.seed, int(width), int(height))
        if key != self._star_key:
            rng = Rng(state.seed ^ STARFIELD_SEED_MIX)
            self._stars = [
                (rng.range(0, width), rng.range(0, height), rng.range(0.5, 1.7), rng.int(60, 180))
                for _ in range(NUM_STARS)
            ]
            self._star_key = key

        for x, y, r, brightness in self._stars:
            twinkle = 0.85 + 0.15 * math.sin(state.app_time * 1.3 + x * 0.05)
            b = int(brightness * twinkle)
            pygame.draw.circle(self.screen, (b, b, min(255, b + 30)), (int(x), int(y)), max(1, round(r)))

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def _draw_ship(self, ship: RenderShip, state: RenderState):
        sx, sy = ship.position.real, ship.position.imag
        cos_a = math.cos(ship.heading)
        sin_a = math.sin(ship.heading)

        points = [(px * cos_a - py * sin_a + sx, px * sin_a + py * cos_a + sy) for px, py in self.ship_shape]
        pygame.draw.polygon(self.screen, SHIP_COLOR, points, width=2)

        if ship.thrusting:
            flame = 10 + 5 * math.sin(state.app_time * 40)
            tail = (sx - cos_a * (6 + flame), sy - sin_a * (6 + flame))
            pygame.draw.line(self.screen, THRUST_COLOR, (sx - cos_a * 6, sy - sin_a * 6), tail, 3)

        if state.emp_pulse > 0:
            radius = emp_ring_radius(state.emp_pulse, state.emp_pulse_max)
            pygame.draw.circle(self.screen, EMP_COLOR, (int(sx), int(sy)), radius, width=2)

    def _clump_outline(self, clump: RenderClump, app_time: float) -> list[Tuple[float, float]]:
        # Lumpy polygon derived from the clump's wobble seed
        cx, cy = clump.position.real, clump.position.imag
        phase = (clump.wobble_seed % 1000) / 1000.0 * math.tau
        points = []
        for i in range(CLUMP_VERTICES):
            theta = i / CLUMP_VERTICES * math.tau
            lump = 1.0 + 0.18 * math.sin(3 * theta + phase + app_time * 1.7)
            r = clump.radius * lump
            points.append((cx + r * math.cos(theta + phase), cy + r * math.sin(theta + phase)))
        return points

    def _draw_clump(self, clump: RenderClump, app_time: float):
        color = LATCHED_TINT if clump.latched else CLUMP_COLORS.get(clump.type, TEXT_COLOR)
        points = self._clump_outline(clump, app_time)
        pygame.draw.polygon(self.screen, color, points, width=2)
        pygame.draw.circle(
            self.screen, color, (int(clump.position.real), int(clump.position.imag)), max(2, int(clump.radius * 0.2))
        )

    def _draw_bullets(self, state: RenderState):
        for x, y, r in zip(state.bullet_x, state.bullet_y, state.bullet_radius):
            pygame.draw.circle(self.screen, BULLET_COLOR, (int(x), int(y)), max(1, int(r)))

    def _draw_particles(self, state: RenderState):
        if len(state.particle_x) == 0:
            return

        for i in range(len(state.particle_x)):
            life = float(state.particle_life[i])
            base = PARTICLE_COLORS.get(int(state.particle_kind[i]), PARTICLE_COLORS[ParticleKind.DUST])
            color = tuple(int(c) for c in base * (0.25 + 0.75 * life))
            radius = max(1, int(state.particle_radius[i] * (0.5 + 0.5 * life)))
            pygame.draw.circle(self.screen, color, (int(state.particle_x[i]), int(state.particle_y[i])), radius)

    # ------------------------------------------------------------------
    # HUD and panels
    # ------------------------------------------------------------------

    def _draw_bar(self, x: int, y: int, label: str, value: float, color):
        width, height = 220, 12
        fraction = max(0.0, min(1.0, value / 100.0))
        pygame.draw.rect(self.screen, BAR_BG, (x, y, width, height))
        pygame.draw.rect(self.screen, color, (x, y, int(width * fraction), height))
        text = self.font.render(f"{label} {value:5.1f}%", True, TEXT_COLOR)
        self.screen.blit(text, (x + width + 10, y - 3))

    def _draw_hud(self, state: RenderState):
        self._draw_bar(16, 16, "ASSIMILATION", state.assimilation, ASSIMILATION_BAR_COLOR)
        self._draw_bar(16, 38, "BEACON", state.beacon, BEACON_BAR_COLOR)

        if state.emp_charges == 0:
            emp = "EMP SPENT"
        elif state.emp_cooldown > 0:
            emp = f"EMP {state.emp_cooldown:4.1f}s"
        else:
            emp = "EMP READY"
        if state.emp_charges is not None and state.emp_charges > 0:
            emp += f" x{state.emp_charges}"

        lines = [
            f"ROUND {state.round}/{state.total_rounds}",
            f"SCORE {state.score}",
            f"TIME {state.run_time:6.1f}s",
            emp,
        ]
        if state.muted:
            lines.append("MUTED")

        y = 16
        for line in lines:
            text = self.font.render(line, True, TEXT_COLOR)
            self.screen.blit(text, (self.window_width - text.get_width() - 16, y))
            y += 20

    def _panel_lines(self, state: RenderState) -> list[str]:
        match state.state:
            case "boot":
                return ["NANOBOT DRIFT", "Waiting for host...", "Enter: play standalone"]
            case "title":
                return [
                    "NANOBOT DRIFT",
                    f"Pilot {state.username}",
                    "Shoot the clumps, charge the beacon",
                    "Enter / Space: launch",
                ]
            case "paused":
                lines = ["PAUSED", "Esc / Enter: resume"]
                if state.allow_abort:
                    lines.append("Q: abort run")
                if not state.embedded:
                    lines.append("R: restart")
                return lines
            case "round_complete":
                return [f"ROUND {state.round} COMPLETE", f"Score {state.score}", "Enter: next round"]
            case "result":
                headline = {
                    Outcome.WIN: "BEACON LIT",
                    Outcome.LOSE: "ASSIMILATED",
                    Outcome.ABORT: "RUN ABORTED",
                }.get(state.outcome, "RUN OVER")
                lines = [headline, f"Score {state.score}", f"Survived {state.run_time:.1f}s"]
                if not state.embedded:
                    lines.append("Enter: back to title")
                return lines
        return []

    def _draw_panel(self, state: RenderState):
        lines = self._panel_lines(state)
        if not lines:
            return

        overlay = pygame.Surface((self.window_width, self.window_height), pygame.SRCALPHA)
        overlay.fill(PANEL_COLOR)
        self.screen.blit(overlay, (0, 0))

        y = self.window_height // 2 - 30 * len(lines)
        for i, line in enumerate(lines):
            font = self.big_font if i == 0 else self.font
            color = TEXT_COLOR if i == 0 else DIM_TEXT_COLOR
            text = font.render(line, True, color)
            self.screen.blit(text, ((self.window_width - text.get_width()) // 2, y))
            y += text.get_height() + 14
