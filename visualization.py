# visualization.py
"""
Handles the visualization of the orbit simulation using Pygame.
"""
import logging
import math
from typing import Any, Dict, Optional

import numpy as np
import pygame

from constants import (
    BACKGROUND_COLOR, BUTTON_BORDER_COLOR, BUTTON_COLOR, BUTTON_HOVER_COLOR,
    DEFAULT_WINDOW_SIZE, FADE_ALPHA_NO_TRAILS, FADE_ALPHA_TRAILS, FPS,
    FULLSCREEN, HUD_TEXT_COLOR, STAGE_NAMES, SWITCH_BUTTON_RECT, WINDOW_TITLE
)
from modes import Mode

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation, SimulationContext


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[Dict[str, Any]] = None):
#     - Inputs:
#       - vis_params: "visualization" section of config.json
#         ("fullscreen", "window_width", "window_height", "show_trails").
#     - Outputs: None
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, simulation: "Simulation") -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Handles Pygame events (pointer, keys, resize, quit)
#       by calling the simulation's input entry points, then renders the
#       current context to the screen. Never mutates simulation state
#       directly.


def hsva_color(hue: float, saturation: float, value: float, alpha: float) -> pygame.Color:
    """Builds a Color from HSB components (hue in degrees, the rest in 0-100)."""
    color = pygame.Color(0, 0, 0)
    color.hsva = (
        hue % 360.0,
        min(max(saturation, 0.0), 100.0),
        min(max(value, 0.0), 100.0),
        min(max(alpha, 0.0), 100.0),
    )
    return color


class Visualizer:
    """
    Renders the simulation state and routes user input into the simulation.
    """
    def __init__(self, vis_params: Optional[Dict[str, Any]] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()
        pygame.font.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            size = (display_info.current_w, display_info.current_h)
            self.screen = pygame.display.set_mode(size, pygame.FULLSCREEN)
        else:
            size = (
                vis_params.get('window_width', DEFAULT_WINDOW_SIZE[0]),
                vis_params.get('window_height', DEFAULT_WINDOW_SIZE[1]),
            )
            self.screen = pygame.display.set_mode(size, pygame.RESIZABLE)

        self.width, self.height = self.screen.get_size()
        self._create_surfaces()
        self.show_trails = bool(vis_params.get('show_trails', True))

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()

        try:
            self.font_main = pygame.font.SysFont("Segoe UI", 13)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_main = pygame.font.SysFont(None, 18)

        self.switch_button_rect = pygame.Rect(SWITCH_BUTTON_RECT)

        logging.info(f"Visualizer initialized with Pygame display ({self.width}x{self.height}).")

    def _create_surfaces(self) -> None:
        # A translucent background fill fades the previous frames into trails.
        self.fade_surface = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        # Everything alpha-blended is drawn here, then blitted over the screen.
        self.fx_surface = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        self.screen.fill(BACKGROUND_COLOR)

    # --- Event handling ---

    def handle_events(self, simulation: "Simulation") -> bool:
        """Processes pending events. Returns False when the user quits."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                if event.key == pygame.K_SPACE:
                    self.show_trails = not self.show_trails
                    logging.info(f"Trail rendering {'enabled' if self.show_trails else 'disabled'}.")
                elif event.key == pygame.K_m:
                    simulation.toggle_mode()
                elif event.key == pygame.K_r:
                    simulation.reset()
                simulation.start_sound()

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self.switch_button_rect.collidepoint(event.pos):
                    simulation.toggle_mode()
                    continue
                simulation.press_pointer(*event.pos)
                simulation.start_sound()

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                simulation.release_pointer()

            elif event.type == pygame.MOUSEMOTION:
                simulation.move_pointer(*event.pos)

            elif event.type == pygame.VIDEORESIZE:
                self.width, self.height = max(1, event.w), max(1, event.h)
                self._create_surfaces()
                simulation.resize(self.width, self.height)

        return True

    # --- Drawing ---

    def draw(self, simulation: "Simulation") -> bool:
        """
        Handles events, then draws the simulation and the HUD.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        if not self.handle_events(simulation):
            return False

        ctx = simulation.context

        # 1. Fade the previous frame. Trails are longer when the fade is weaker.
        fade_alpha = FADE_ALPHA_TRAILS if self.show_trails else FADE_ALPHA_NO_TRAILS
        self.fade_surface.fill((*BACKGROUND_COLOR, fade_alpha))
        self.screen.blit(self.fade_surface, (0, 0))

        # 2. Draw the scene onto the effects surface
        self.fx_surface.fill((0, 0, 0, 0))
        if self.show_trails:
            self._draw_trails(ctx)
        self._draw_wires(ctx)
        self._draw_particles(ctx)
        self._draw_black_hole(ctx)
        self._draw_ambient_field(ctx)
        self.screen.blit(self.fx_surface, (0, 0))

        # 3. HUD on top
        self._draw_hud(ctx)
        self._draw_switch_button(ctx.mode)

        pygame.display.flip()
        self.clock.tick(FPS)
        return True

    def _draw_trails(self, ctx: "SimulationContext") -> None:
        particles = ctx.particles
        alpha = 30 if ctx.mode is Mode.AUTO else 20
        for i, trail in enumerate(particles.trails):
            if len(trail) < 2:
                continue
            color = hsva_color(particles.hues[i], 80, 90, alpha)
            pygame.draw.lines(self.fx_surface, color, False, list(trail), 1)

    def _draw_wires(self, ctx: "SimulationContext") -> None:
        particles = ctx.particles
        color = hsva_color(200, 50, 60, 20)
        n = particles.particle_count
        for i in range(n):
            j = (i + 1) % n
            if abs(particles.orbits[i] - particles.orbits[j]) < 10:
                pygame.draw.line(self.fx_surface, color, tuple(particles.positions[i]), tuple(particles.positions[j]), 1)

    def _draw_particles(self, ctx: "SimulationContext") -> None:
        particles = ctx.particles
        spin = ctx.tick * (1.0 if ctx.mode is Mode.AUTO else 0.5)
        core_color = hsva_color(0, 0, 100, 60)
        for i in range(particles.particle_count):
            p = particles.state(i)
            center = (p.x, p.y)
            pygame.draw.circle(self.fx_surface, hsva_color(p.hue, 80, 80, 70), center, p.size)

            rotation = math.radians(p.angle + spin)
            hexagon = [
                (p.x + math.cos(rotation + math.radians(a)) * p.size,
                 p.y + math.sin(rotation + math.radians(a)) * p.size)
                for a in range(0, 360, 60)
            ]
            pygame.draw.polygon(self.fx_surface, hsva_color(p.hue, 80, 100, 80), hexagon, 1)
            pygame.draw.circle(self.fx_surface, core_color, center, max(1.0, p.size * 0.25))

    def _draw_black_hole(self, ctx: "SimulationContext") -> None:
        bh = ctx.black_hole
        if bh.size <= 0:
            return
        center = (bh.x, bh.y)
        rotation = math.radians(ctx.tick * 0.3)

        # Pulsing wave ring
        wave_radius = bh.size * (1 + math.sin(math.radians(ctx.tick * 0.5)) * 0.1)
        pygame.draw.circle(self.fx_surface, hsva_color(60, 80, 50, 10), center, wave_radius, 3)

        # Rays
        ray_color = hsva_color(60, 80, 50, 30)
        for a in range(0, 360, 15):
            theta = rotation + math.radians(a)
            end = (bh.x + math.cos(theta) * bh.size * 2, bh.y + math.sin(theta) * bh.size * 2)
            pygame.draw.line(self.fx_surface, ray_color, center, end, 2)

        # Accretion disk: a rotated ellipse as a polygon
        disk_rotation = rotation + math.radians(ctx.tick * 0.8)
        t = np.linspace(0, 2 * np.pi, 48, endpoint=False)
        ex = np.cos(t) * bh.size * 1.5
        ey = np.sin(t) * bh.size * 0.25
        cos_r, sin_r = math.cos(disk_rotation), math.sin(disk_rotation)
        disk = np.column_stack((bh.x + ex * cos_r - ey * sin_r, bh.y + ex * sin_r + ey * cos_r))
        pygame.draw.polygon(self.fx_surface, hsva_color(30, 60, 40, 20), disk.tolist())

        # Core and event horizon
        pygame.draw.circle(self.fx_surface, (0, 0, 0, 255), center, bh.size / 2)
        pygame.draw.circle(self.fx_surface, hsva_color(200, 50, 80, 30), center, bh.size * 0.6, 1)

    def _draw_ambient_field(self, ctx: "SimulationContext") -> None:
        ambient = ctx.ambient
        cx, cy = ctx.width / 2, ctx.height / 2
        hues = 180 + np.sin(np.radians(ctx.time + ambient.angles)) * 50

        for i, trail in ambient.trails.items():
            if len(trail) < 2:
                continue
            points = [(cx + x, cy + y) for x, y, _ in trail]
            pygame.draw.lines(self.fx_surface, hsva_color(hues[i], 100, 100, 30), False, points, 1)

        alphas = ambient.draw_alphas / 255.0 * 100.0
        for i in range(ambient.count):
            x, y = ambient.positions[i]
            pygame.draw.circle(
                self.fx_surface,
                hsva_color(hues[i], 100, 100, alphas[i]),
                (cx + x, cy + y),
                max(0.5, ambient.draw_sizes[i] / 2),
            )

    def _draw_hud(self, ctx: "SimulationContext") -> None:
        lines = [
            f"mode: {ctx.mode.label}",
            f"stage: {STAGE_NAMES[ctx.timeline.current]}",
            f"particle number: {ctx.particles.particle_count}",
        ]
        if ctx.mode is Mode.INTERACTIVE and ctx.microphone.available:
            lines.append(f"sound level: {ctx.sound_level:.2f}")
        lines.append(f"sound: {'on' if ctx.audio.started else 'click to start'}")

        y = 14
        for line in lines:
            surf = self.font_main.render(line, True, HUD_TEXT_COLOR)
            self.screen.blit(surf, (20, y))
            y += 20

    def _draw_switch_button(self, mode: Mode) -> None:
        is_hovered = self.switch_button_rect.collidepoint(pygame.mouse.get_pos())
        color = BUTTON_HOVER_COLOR if is_hovered else BUTTON_COLOR

        button = pygame.Surface(self.switch_button_rect.size, pygame.SRCALPHA)
        local_rect = button.get_rect()
        pygame.draw.rect(button, color, local_rect, border_radius=5)
        pygame.draw.rect(button, BUTTON_BORDER_COLOR, local_rect, 1, border_radius=5)
        self.screen.blit(button, self.switch_button_rect.topleft)

        text = "Switch to Interaction" if mode is Mode.AUTO else "Switch to Auto"
        text_surf = self.font_main.render(text, True, HUD_TEXT_COLOR)
        text_rect = text_surf.get_rect(center=self.switch_button_rect.center)
        self.screen.blit(text_surf, text_rect)

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
