# visualization.py
"""
Draws the particle formations with Pygame and collects pointer input.

The Visualizer is the rendering host: it owns the window, turns Pygame
events into simulation requests (quit, resize, next state, auto-cycle
toggle) and reports the raw pointer positions for the next tick. It only
reads the simulation's RenderFrame; it never touches particle state.
"""
import logging
from typing import Dict, Hashable, Optional, Tuple

import pygame

from constants import (
    BACKGROUND_COLOR, DEFAULT_DOT_SIZE, FULLSCREEN, HUD_COLOR, PARTICLE_COLOR,
    TRAIL_HEAD_GREY, TRAIL_TAIL_GREY, WINDOW_HEIGHT, WINDOW_WIDTH
)
from simulation import RenderFrame
from vector import lerp

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[dict] = None):
#     - Inputs:
#       - vis_params: the "visualization" section of config.json.
#         - "dot_size": int, diameter of a particle in pixels.
#         - "show_hud": bool, draw the active state name.
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, frame: RenderFrame, simulation: "Simulation") -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Handles Pygame events (which may resize the simulation
#       or request a state change) and renders the frame.
#
#   - pointers(self) -> Dict[Hashable, Tuple[float, float]]:
#     - Outputs: every pointer currently over the canvas, keyed by id
#       ("mouse" or the touch finger id).

class Visualizer:
    """
    Renders particles, trails and a small status line.
    """
    def __init__(self, vis_params: Optional[dict] = None):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()
        vis_params = vis_params if vis_params is not None else {}

        if FULLSCREEN:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = WINDOW_WIDTH, WINDOW_HEIGHT
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        self.sim_width = width
        self.sim_height = height
        pygame.display.set_caption("Particle Formations")
        self.clock = pygame.time.Clock()

        self.dot_size = int(vis_params.get('dot_size', DEFAULT_DOT_SIZE))
        self.show_hud = bool(vis_params.get('show_hud', True))
        self.dot_surface = self._pre_render_dot()
        self._touches: Dict[Hashable, Tuple[float, float]] = {}

        try:
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_main = pygame.font.SysFont(None, 18)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _pre_render_dot(self) -> pygame.Surface:
        """
        Pre-renders the particle dot once; per-particle visibility is applied
        with set_alpha() at blit time.
        """
        diameter = max(1, self.dot_size)
        surface = pygame.Surface((diameter, diameter), pygame.SRCALPHA)
        pygame.draw.circle(surface, PARTICLE_COLOR, (diameter / 2, diameter / 2), diameter / 2)
        return surface

    def pointers(self) -> Dict[Hashable, Tuple[float, float]]:
        found: Dict[Hashable, Tuple[float, float]] = dict(self._touches)
        if not found and pygame.mouse.get_focused():
            x, y = pygame.mouse.get_pos()
            if 0 <= x <= self.sim_width and 0 <= y <= self.sim_height:
                found["mouse"] = (float(x), float(y))
        return found

    def _handle_events(self, simulation: "Simulation") -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                if event.key == pygame.K_n:
                    logging.info("Next state requested by user.")
                    simulation.request_next()
                elif event.key == pygame.K_SPACE:
                    auto_cycle = not simulation.config.auto_cycle
                    simulation.apply_config(simulation.config.with_overrides(auto_cycle=auto_cycle))
                    logging.info(f"Auto-cycle {'enabled' if auto_cycle else 'disabled'} by user.")

            if event.type == pygame.VIDEORESIZE:
                self.sim_width, self.sim_height = event.w, event.h
                simulation.resize(event.w, event.h)

            if event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION):
                self._touches[event.finger_id] = (event.x * self.sim_width, event.y * self.sim_height)
            elif event.type == pygame.FINGERUP:
                self._touches.pop(event.finger_id, None)
        return True

    def _draw_trail(self, trail) -> None:
        count = len(trail)
        if count < 2:
            return
        width = max(1, self.dot_size // 2)
        # Trails are stored oldest first; the newest segment is the brightest.
        for i in range(count - 1):
            fraction = (count - 2 - i) / max(count - 2, 1)
            grey = int(lerp(TRAIL_HEAD_GREY, TRAIL_TAIL_GREY, fraction))
            pygame.draw.line(self.screen, (grey, grey, grey), trail[i], trail[i + 1], width)

    def draw(self, frame: RenderFrame, simulation: "Simulation") -> bool:
        """
        Draws all particles and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        if not self._handle_events(simulation):
            return False

        self.screen.fill(BACKGROUND_COLOR)

        if frame.draw_trails:
            for particle in frame.particles:
                self._draw_trail(particle.trail)

        radius = self.dot_surface.get_width() / 2
        for particle in frame.particles:
            if particle.alpha <= 0:
                continue
            self.dot_surface.set_alpha(int(particle.alpha))
            x, y = particle.position
            self.screen.blit(self.dot_surface, (x - radius, y - radius))

        if self.show_hud and frame.state is not None:
            text = self.font_main.render(frame.state, True, HUD_COLOR)
            self.screen.blit(text, (10, self.sim_height - text.get_height() - 10))

        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
