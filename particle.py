# particle.py
"""
Particle state and the particle collection.

This module defines the Particle class, which owns the kinematic state of a
single dot (position, velocity, per-tick acceleration, formation target,
trail and visibility), and the ParticleSystem class, which owns the shared
population, the seeded random generator and the viewport bounds.
"""
import logging
from collections import deque
from typing import Deque, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from config import SimulationConfig
from constants import SPAWN_INSET
from formations import Bounds
from vector import clamp, limit, vec

# --- Data Contracts ---
#
# class Particle:
#   - apply_force(force: np.ndarray) -> None
#     - Side Effects: accumulates into self.acceleration only.
#   - integrate(max_speed: float) -> None
#     - Side Effects: v += a; v = limit(v, max_speed); p += v; a = 0.
#     - Invariants: |velocity| <= max_speed afterwards. Must run exactly once
#       per tick, after every force of that tick has been applied.
#
# class ParticleSystem:
#   - __init__(self, config: SimulationConfig, bounds: Bounds)
#     - Side Effects: creates the RNG from config.seed and an empty population.
#   - snapshot(self) -> NeighborSnapshot
#     - Outputs: (N, 2) float64 copies of every position and velocity taken
#       before any particle of the current tick has integrated.


class ParticleView(NamedTuple):
    """What the renderer is allowed to see of a particle."""
    position: Tuple[float, float]
    trail: Tuple[Tuple[float, float], ...]
    alpha: float


class NeighborSnapshot(NamedTuple):
    positions: np.ndarray
    velocities: np.ndarray

    def __len__(self) -> int:
        return self.positions.shape[0]


class Particle:
    """
    A single point particle.

    The acceleration is a transient per-tick accumulator: forces are summed
    into it and integrate() consumes and resets it.
    """

    def __init__(self, x: float, y: float, alpha: float = 255.0):
        self.position = vec(x, y)
        self.velocity = vec()
        self.acceleration = vec()
        self.target: Optional[np.ndarray] = None
        self.trail: Deque[Tuple[float, float]] = deque(maxlen=0)
        self._alpha = 0.0
        self.alpha = alpha

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = clamp(float(value), 0.0, 255.0)

    def apply_force(self, force: np.ndarray) -> None:
        self.acceleration += force

    def integrate(self, max_speed: float) -> None:
        self.velocity += self.acceleration
        self.velocity = limit(self.velocity, max_speed)
        self.position += self.velocity
        self.acceleration[:] = 0.0

    def set_target(self, point) -> None:
        self.target = np.array(point, dtype=np.float64)

    def clear_target(self) -> None:
        self.target = None

    def reset_trail(self, length: int) -> None:
        """Drops the trail and sets the number of positions kept from now on."""
        self.trail = deque(maxlen=max(0, int(length)))

    def record_trail(self) -> None:
        if self.trail.maxlen:
            self.trail.append((float(self.position[0]), float(self.position[1])))

    def wrap_edges(self, width: float, height: float, wrap_vertical: bool = True) -> None:
        """
        Wraps the particle around the canvas edges.

        Horizontal edges always wrap. Vertical edges wrap only when asked to;
        states that keep particles inside vertically do it with a soft force.
        Wrapping clears the trail so no segment spans the whole canvas.
        """
        wrapped = False
        if self.position[0] < 0:
            self.position[0] = width
            wrapped = True
        elif self.position[0] > width:
            self.position[0] = 0.0
            wrapped = True
        if wrap_vertical:
            if self.position[1] < 0:
                self.position[1] = height
                wrapped = True
            elif self.position[1] > height:
                self.position[1] = 0.0
                wrapped = True
        if wrapped:
            self.trail.clear()

    def view(self) -> ParticleView:
        return ParticleView(
            position=(float(self.position[0]), float(self.position[1])),
            trail=tuple(self.trail),
            alpha=self.alpha,
        )

    def __repr__(self) -> str:
        return (
            f"Particle(pos=({self.position[0]:.2f}, {self.position[1]:.2f}), "
            f"vel=({self.velocity[0]:.2f}, {self.velocity[1]:.2f}), alpha={self.alpha:.0f})"
        )


class ParticleSystem:
    """
    A container for all particles of a run.

    The population is shared by every animation state. Its size is fixed per
    run and it is only rebuilt as a whole (see populate()/clear()).
    """

    def __init__(self, config: SimulationConfig, bounds: Bounds):
        """
        Initializes an empty particle system.

        Args:
            config (SimulationConfig): Simulation parameters; only the seed is read here.
            bounds (Bounds): The current canvas size.
        """
        self.particles: List[Particle] = []
        self.bounds = bounds
        # All randomness in the core is drawn from this generator so that a
        # seeded run is reproducible.
        self.rng = np.random.default_rng(config.seed)

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self.particles)

    def __getitem__(self, index: int) -> Particle:
        return self.particles[index]

    def clear(self) -> None:
        self.particles.clear()

    def spawn(self, x: float, y: float, alpha: float = 255.0) -> Particle:
        particle = Particle(x, y, alpha)
        self.particles.append(particle)
        return particle

    def populate(self, count: int, bounds: Optional[Bounds] = None) -> None:
        """Replaces the population with `count` visible particles at random positions."""
        if bounds is not None:
            self.bounds = bounds
        width, height = self.bounds
        inset_x = min(SPAWN_INSET, width / 2)
        inset_y = min(SPAWN_INSET, height / 2)
        positions = self.rng.uniform(
            low=[inset_x, inset_y],
            high=[width - inset_x, height - inset_y],
            size=(max(0, count), 2),
        )
        self.clear()
        for x, y in positions:
            self.spawn(x, y)
        logging.info(f"ParticleSystem populated with {len(self.particles)} particles on a {width:.0f}x{height:.0f} canvas.")

    def snapshot(self) -> NeighborSnapshot:
        count = len(self.particles)
        positions = np.empty((count, 2), dtype=np.float64)
        velocities = np.empty((count, 2), dtype=np.float64)
        for i, particle in enumerate(self.particles):
            positions[i] = particle.position
            velocities[i] = particle.velocity
        return NeighborSnapshot(positions, velocities)

    def integrate(self, max_speed: float, wrap_vertical: bool = True) -> None:
        """Second phase of a tick: integrates, wraps and records trails for every particle."""
        width, height = self.bounds
        for particle in self.particles:
            particle.integrate(max_speed)
            particle.wrap_edges(width, height, wrap_vertical)
            particle.record_trail()

    def reset_trails(self, length: int) -> None:
        for particle in self.particles:
            particle.reset_trail(length)

    def views(self) -> Tuple[ParticleView, ...]:
        return tuple(p.view() for p in self.particles)
