"""
Interactive Pygame Viewer for Lenia

Pulls frames from a LeniaSimulator and blits them to a window. The
simulator never waits on the window: if no frame is queued this loop
iteration simply keeps the last one on screen.

Updates come either from the viewer's own fixed-timestep loop (default,
supports pause) or from the simulator's background ticker (--ticker).

Controls:
  SPACE       Pause / Resume (fixed-timestep mode only)
  UP / +      Increase speed
  DOWN / -    Decrease speed
  R           Reset with the preset's seed pattern
  H           Toggle HUD overlay
  S           Save screenshot
  Q / ESC     Quit
"""

import os
import time
import numpy as np
import pygame

from .simulator import LeniaSimulator
from .presets import LeniaConfig, get_preset


class SurfaceSink:
    """Frame sink that converts RGBA frames to a pygame Surface."""

    def __init__(self):
        self.surface = None

    def draw_image(self, frame):
        # surfarray is (x, y) indexed
        rgb = np.ascontiguousarray(frame[..., :3].swapaxes(0, 1))
        self.surface = pygame.surfarray.make_surface(rgb)


class Viewer:

    def __init__(self, width=200, height=150, preset="classic", scale=None,
                 seed=None, use_ticker=False):
        overrides = {"cell_scale": scale} if scale else {}
        self.config = LeniaConfig.from_preset(preset, **overrides)
        self.preset_key = preset
        self.seed = seed
        self.sim = LeniaSimulator(width, height, config=self.config, seed=seed)
        self.sink = SurfaceSink()
        self.use_ticker = use_ticker

        self.canvas_w = width * self.config.cell_scale
        self.canvas_h = height * self.config.cell_scale
        self.running = True
        self.paused = False
        self.show_hud = True
        self.fps_history = []
        self.update_accumulator = 0.0

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return

        stats = self.sim.stats
        preset = get_preset(self.preset_key)
        line = (f"Lenia - {preset['name']}  |  Gen: {stats['generation']:,}  |  "
                f"Speed: {stats['speed']:.2f}x  |  "
                f"Alive: {stats['alive_pct']:.1f}%  |  "
                f"Dropped: {stats['dropped_frames']}  |  FPS: {fps:.0f}")
        if self.paused:
            line = "[PAUSED]  " + line

        bg_surface = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        text_surface = self.hud_font.render(line, True, (210, 215, 225))
        screen.blit(text_surface, (10, 6))

    def _save_screenshot(self, screen):
        screenshots_dir = os.path.join(os.getcwd(), "screenshots")
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir,
                            f"lenia_{self.preset_key}_{timestamp}.png")
        pygame.image.save(screen, path)
        print(f"Screenshot saved: {path}")

    def _handle_keydown(self, event, screen):
        key = event.key

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key == pygame.K_SPACE:
            self.paused = not self.paused

        elif key in (pygame.K_UP, pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.sim.increase_speed()

        elif key in (pygame.K_DOWN, pygame.K_MINUS, pygame.K_KP_MINUS):
            self.sim.decrease_speed()

        elif key == pygame.K_r:
            self.sim.reset()

        elif key == pygame.K_h:
            self.show_hud = not self.show_hud

        elif key == pygame.K_s:
            self._save_screenshot(screen)

    def run(self):
        """Main viewer loop."""
        pygame.init()
        screen = pygame.display.set_mode((self.canvas_w, self.canvas_h))
        pygame.display.set_caption("Lenia")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        if self.use_ticker:
            self.sim.start()

        tick = 1.0 / self.config.tick_rate
        last_time = time.time()

        try:
            while self.running:
                now = time.time()
                dt = min(now - last_time, 0.1)  # cap dt to avoid jumps
                last_time = now

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self._handle_keydown(event, screen)

                if not self.use_ticker and not self.paused:
                    self.update_accumulator += dt
                    while self.update_accumulator >= tick:
                        self.sim.update()
                        self.update_accumulator -= tick

                self.sim.try_render_into(self.sink)
                screen.fill((0, 0, 0))
                if self.sink.surface is not None:
                    screen.blit(self.sink.surface, (0, 0))

                self.fps_history.append(time.time() - now)
                if len(self.fps_history) > 30:
                    self.fps_history.pop(0)
                avg_fps = 1.0 / max(np.mean(self.fps_history), 0.001)
                self._draw_hud(screen, avg_fps)

                pygame.display.flip()
                clock.tick(60)
        finally:
            self.sim.shutdown()
            pygame.quit()
