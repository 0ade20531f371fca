# states.py
"""
Animation states.

Each state drives the shared particle population through one formation. A
state has three hooks:

- enter(ctx): fully re-establishes targets, velocities, visibility and
  trails, so nothing leaks from the previous state. It is also called again
  on resize, so it must only recompute, never add or drop particles
  (Loading, which builds the population, rebuilds it to the same size).
- update(ctx): first phase of a tick; applies this tick's forces.
- exit(ctx): called once before the next state enters.

A state never switches itself. Loading raises its `complete` flag and the
StateController performs the transition at the tick boundary.
"""
import logging
import math
from typing import Dict, NamedTuple, Optional, Tuple, Type

import numpy as np

import formations
import steering
from config import SimulationConfig
from constants import CIRCLES, FLOCK, GRID, LOADING, WANDER, WAVE
from formations import Bounds
from particle import NeighborSnapshot, ParticleSystem
from vector import lerp, remap


class TickContext(NamedTuple):
    """Read-only inputs of one tick."""
    config: SimulationConfig
    bounds: Bounds
    now: float
    pointers: Tuple[np.ndarray, ...] = ()
    snapshot: Optional[NeighborSnapshot] = None
    # Every pointer over the canvas, including resting ones.
    present: Tuple[np.ndarray, ...] = ()


class AnimationState:
    """Base state: no forces, full wrap, pointer repulsion on."""
    name = "state"
    wrap_vertical = True
    repels_pointers = True

    def __init__(self, system: ParticleSystem, start_time: float):
        self.system = system
        self.start_time = start_time
        self.complete = False

    def elapsed(self, now: float) -> float:
        return now - self.start_time

    def trail_length(self, config: SimulationConfig) -> int:
        return config.trail_length(self.name)

    def repulsion_radius(self, config: SimulationConfig) -> float:
        return config.repulsion.radius

    def enter(self, ctx: TickContext) -> None:
        pass

    def update(self, ctx: TickContext) -> None:
        pass

    def exit(self, ctx: TickContext) -> None:
        logging.debug(f"Leaving state '{self.name}' after {self.elapsed(ctx.now):.2f}s.")

    def _reveal(self, config: SimulationConfig) -> None:
        length = self.trail_length(config)
        for particle in self.system:
            particle.alpha = 255.0
            particle.reset_trail(length)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start_time={self.start_time:.2f}, complete={self.complete})"


class LoadingState(AnimationState):
    """
    Intro animation.

    Two visible particles oscillate about the centre while the rest of the
    population waits invisible, half at the centre and half in the corners.
    After the configured number of turns the pair converges on the centre,
    the others fade in and the corner group is drawn inward. The state is
    complete once the pair is within epsilon of the centre and the fade has
    finished.
    """
    name = LOADING
    repels_pointers = False

    def __init__(self, system: ParticleSystem, start_time: float):
        super().__init__(system, start_time)
        self.rotation = 0.0
        self.phase = "rotate"
        self.pair = []
        self.center_group = []
        self.corner_group = []

    def enter(self, ctx: TickContext) -> None:
        params = ctx.config.loading
        center_x, center_y = ctx.bounds.center
        count = ctx.config.particle_count

        self.system.bounds = ctx.bounds
        self.system.clear()
        self.pair = [
            self.system.spawn(center_x, center_y + sign * params.distance)
            for sign in (-1.0, 1.0)[:min(2, count)]
        ]
        hidden = count - len(self.pair)
        half = hidden // 2
        self.center_group = [self.system.spawn(center_x, center_y, alpha=0.0) for _ in range(half)]
        self.corner_group = [
            self.system.spawn(*self._random_corner(ctx.bounds), alpha=0.0)
            for _ in range(hidden - half)
        ]
        self.system.reset_trails(0)

        self.rotation = 0.0
        self.phase = "rotate"
        self.complete = False
        logging.info(
            f"Loading: {len(self.pair)} visible, {len(self.center_group)} centre "
            f"and {len(self.corner_group)} corner particles."
        )

    def _random_corner(self, bounds: Bounds) -> Tuple[float, float]:
        corners = ((0.0, 0.0), (bounds.width, 0.0), (bounds.width, bounds.height), (0.0, bounds.height))
        return corners[int(self.system.rng.integers(4))]

    def update(self, ctx: TickContext) -> None:
        if self.complete:
            return
        params = ctx.config.loading
        center_x, center_y = ctx.bounds.center
        self.rotation += params.rotation_speed

        if self.phase == "rotate":
            offset = math.sin(self.rotation) * params.distance
            for particle, sign in zip(self.pair, (-1.0, 1.0)):
                particle.position[1] = center_y + sign * offset
            if self.rotation >= 2.0 * math.pi * params.rotations:
                self.phase = "converge"
                self.rotation = 0.0
            return

        for particle in self.pair:
            particle.position[1] = lerp(particle.position[1], center_y, params.converge_rate)

        # The fade runs at twice the rotation rate.
        self.rotation += params.rotation_speed
        progress = min(1.0, self.rotation / (math.pi * 0.5))
        if progress > 0.5:
            alpha = remap(progress, 0.5, 1.0, 0.0, 255.0)
            for particle in self.center_group:
                particle.alpha = alpha
            for particle in self.corner_group:
                particle.alpha = alpha
                particle.position[0] = lerp(particle.position[0], center_x, params.converge_rate)
                particle.position[1] = lerp(particle.position[1], center_y, params.converge_rate)

        settled = all(abs(p.position[1] - center_y) < params.epsilon for p in self.pair)
        if settled and progress >= 1.0:
            self.complete = True
            logging.info("Loading animation complete.")


class SeekingState(AnimationState):
    """A state whose particles steer toward per-particle targets."""

    def update(self, ctx: TickContext) -> None:
        config = ctx.config
        for particle in self.system:
            if particle.target is None:
                continue
            force = steering.seek(
                particle, particle.target, config.max_speed, config.max_force,
                config.arrival_radius, config.arrival_min_fraction,
            )
            particle.apply_force(force)


class GridState(SeekingState):
    """Particles settle on a grid. Targets are assigned once, in shuffled order."""
    name = GRID

    def enter(self, ctx: TickContext) -> None:
        params = ctx.config.grid
        points = formations.grid(
            len(self.system), params.rows, params.cols, ctx.bounds, params.margin_x, params.margin_y
        )
        if params.shuffle:
            points = formations.shuffled(points, self.system.rng)
        formations.assign_targets(self.system, points)
        self._reveal(ctx.config)
        logging.debug(f"Grid: {len(points)} targets for {len(self.system)} particles.")


class WaveState(SeekingState):
    """
    Particles follow two mirrored sine waves. The targets are recomputed
    every tick from a phase that advances with the time spent in the state.
    """
    name = WAVE

    def phase(self, now: float, speed: float) -> float:
        return max(0.0, self.elapsed(now)) * speed

    def _assign(self, ctx: TickContext) -> None:
        params = ctx.config.wave
        vertical = params.orientation == "vertical" or (
            params.orientation == "auto" and ctx.bounds.is_narrow
        )
        points = formations.wave_targets(
            len(self.system), params.amplitude, params.offset, self.phase(ctx.now, params.speed), ctx.bounds,
            params.cycles, params.margin, vertical, params.margin_fraction,
        )
        formations.assign_targets(self.system, points)

    def enter(self, ctx: TickContext) -> None:
        self._assign(ctx)
        self._reveal(ctx.config)

    def update(self, ctx: TickContext) -> None:
        self._assign(ctx)
        super().update(ctx)


class FlockState(AnimationState):
    """
    Boids. On entry every particle gets a fresh velocity around the configured
    heading; each tick applies the three flocking terms, the wind and the
    soft vertical boundary.
    """
    name = FLOCK
    wrap_vertical = False

    def repulsion_radius(self, config: SimulationConfig) -> float:
        return config.repulsion.radius + config.repulsion.flock_radius_bonus

    def enter(self, ctx: TickContext) -> None:
        params = ctx.config.flock
        rng = self.system.rng
        for particle in self.system:
            particle.velocity = steering.random_heading_velocity(
                rng, params.heading, params.heading_spread, params.min_start_speed, ctx.config.max_speed
            )
            particle.clear_target()
        self._reveal(ctx.config)

    def update(self, ctx: TickContext) -> None:
        config = ctx.config
        height = ctx.bounds.height
        snapshot = ctx.snapshot if ctx.snapshot is not None else self.system.snapshot()
        drift = steering.wind(ctx.present, height, config.flock.wind_x, config.flock.wind_tilt)
        top = height * config.boundary.top_fraction
        bottom = height - height * config.boundary.bottom_fraction
        for particle in self.system:
            particle.apply_force(steering.flock(
                particle, snapshot, config.flock, config.max_speed, config.max_force, config.arrival_radius
            ))
            particle.apply_force(drift)
            particle.apply_force(steering.boundary_force(particle, top, bottom, config.boundary.force))


class WanderState(AnimationState):
    """Unbiased drift: random start velocities and per-tick velocity jitter."""
    name = WANDER

    def enter(self, ctx: TickContext) -> None:
        for particle in self.system:
            particle.velocity = steering.random_velocity(self.system.rng, ctx.config.max_speed)
            particle.clear_target()
        self._reveal(ctx.config)

    def update(self, ctx: TickContext) -> None:
        for particle in self.system:
            steering.wander(particle, ctx.config.wander_jitter, self.system.rng)


class CirclesState(SeekingState):
    """Particles settle on a row of overlapping rings."""
    name = CIRCLES

    def enter(self, ctx: TickContext) -> None:
        params = ctx.config.circles
        points = formations.circles_overlapping(
            params.points, params.circle_count, params.radius, params.overlap, ctx.bounds
        )
        formations.assign_targets(self.system, points)
        self._reveal(ctx.config)


STATE_TYPES: Dict[str, Type[AnimationState]] = {
    cls.name: cls
    for cls in (LoadingState, GridState, WaveState, FlockState, WanderState, CirclesState)
}
