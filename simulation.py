# simulation.py
"""
Runs the two-phase tick of the formation animation.

This module defines the Simulation class. It owns the particle population
and the state machine, and advances both by one animation frame per call to
step(). It performs no drawing; the renderer reads frame().
"""
import logging
import time
from typing import Callable, Iterable, NamedTuple, Optional, Tuple

import numpy as np

import steering
from config import SimulationConfig
from controller import StateController
from formations import Bounds
from particle import ParticleSystem, ParticleView
from states import TickContext

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, config: SimulationConfig, width: float, height: float,
#              clock: Callable[[], float] = time.monotonic):
#     - Side Effects: populates the ParticleSystem and enters the initial state.
#
#   - step(self, pointers: Iterable = (), now: Optional[float] = None,
#          present: Optional[Iterable] = None) -> None:
#     - Inputs:
#       - pointers: active pointer/touch positions in canvas coordinates,
#         sampled once for this tick. Empty means no repulsion.
#       - present: every pointer over the canvas, moving or not; drives the
#         flock wind. Defaults to `pointers`.
#       - now: tick timestamp in seconds; defaults to clock().
#     - Side Effects:
#       1. Force phase: the active state applies its forces using a snapshot
#          of every particle taken before the tick; pointer repulsion follows.
#       2. Integration phase: every particle integrates once, wraps and
#          records its trail.
#       3. The state machine evaluates transitions (tick boundary).
#     - Invariants: particle count equals config.particle_count after the
#       call; |velocity| <= config.max_speed for every particle.


class RenderFrame(NamedTuple):
    """Everything the renderer needs for one frame."""
    state: Optional[str]
    draw_trails: bool
    particles: Tuple[ParticleView, ...]


class Simulation:
    """
    The particle system aggregate: population, active state and tick loop.
    """

    def __init__(self, config: SimulationConfig, width: float, height: float,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initializes the simulation.

        Args:
            config (SimulationConfig): Initial parameter snapshot.
            width (float): Canvas width.
            height (float): Canvas height.
            clock (Callable[[], float]): Time source in seconds, used when
                step() is called without an explicit timestamp.
        """
        self.config = config
        self.bounds = Bounds(float(width), float(height))
        self.clock = clock
        self.tick_count = 0

        self.particles = ParticleSystem(config, self.bounds)
        self.particles.populate(config.particle_count, self.bounds)
        self.controller = StateController(self.particles)
        self.controller.start(self._context(self.clock()))

        logging.info(
            f"Simulation initialized: {config.particle_count} particles, "
            f"max speed {config.max_speed}, max force {config.max_force}."
        )

    @property
    def state_name(self) -> Optional[str]:
        return self.controller.current_name

    def _context(self, now: float, pointers: Tuple[np.ndarray, ...] = (), snapshot=None,
                 present: Tuple[np.ndarray, ...] = ()) -> TickContext:
        return TickContext(self.config, self.bounds, now, pointers, snapshot, present)

    def apply_config(self, config: SimulationConfig) -> None:
        """
        Replaces the parameter snapshot. The new values are read from the next
        tick on; a different particle count rebuilds the population then.
        """
        self.config = config
        logging.info("Simulation parameters updated.")

    def resize(self, width: float, height: float, now: Optional[float] = None) -> None:
        """Adopts a new canvas size and lets the active state recompute its geometry."""
        self.bounds = Bounds(float(width), float(height))
        self.particles.bounds = self.bounds
        self.controller.reenter(self._context(self.clock() if now is None else now))
        logging.info(f"Canvas resized to {width:.0f}x{height:.0f}.")

    def request_next(self) -> None:
        self.controller.request_next()

    def request_state(self, name: str) -> None:
        self.controller.request(name)

    def _rebuild_if_needed(self, now: float) -> None:
        if len(self.particles) == self.config.particle_count:
            return
        logging.info(
            f"Particle count changed from {len(self.particles)} to "
            f"{self.config.particle_count}. Rebuilding population."
        )
        self.particles.populate(self.config.particle_count, self.bounds)
        self.controller.reenter(self._context(now))

    def step(self, pointers: Iterable = (), now: Optional[float] = None,
             present: Optional[Iterable] = None) -> None:
        """
        Executes one tick of the animation.
        """
        if now is None:
            now = self.clock()
        config = self.config
        self._rebuild_if_needed(now)

        active_pointers = tuple(np.asarray(p, dtype=np.float64) for p in pointers)
        if present is None:
            present_pointers = active_pointers
        else:
            present_pointers = tuple(np.asarray(p, dtype=np.float64) for p in present)
        ctx = self._context(now, active_pointers, self.particles.snapshot(), present_pointers)
        state = self.controller.current

        # 1. Force phase
        state.update(ctx)
        if state.repels_pointers and active_pointers:
            radius = state.repulsion_radius(config)
            repulsion = config.repulsion
            for particle in self.particles:
                steering.pointer_repel(
                    particle, active_pointers, radius, repulsion.force,
                    repulsion.exponent, repulsion.min_speed,
                )

        # 2. Integration phase
        self.particles.integrate(config.max_speed, state.wrap_vertical)

        # 3. Transitions happen only at the tick boundary
        self.controller.advance(ctx)
        self.tick_count += 1

    def frame(self) -> RenderFrame:
        state = self.controller.current
        draw_trails = state is not None and state.trail_length(self.config) > 0
        return RenderFrame(self.state_name, draw_trails, self.particles.views())

    def mean_speed(self) -> float:
        snapshot = self.particles.snapshot()
        if len(snapshot) == 0:
            return 0.0
        return float(np.mean(np.linalg.norm(snapshot.velocities, axis=1)))
