# steering.py
"""
Steering behaviours.

Every behaviour is a pure function of a particle, its environment and the
speed/force caps. They return a steering force already limited to max_force,
except pointer_repel() and wander(), which nudge the velocity directly.

Neighbour behaviours read a NeighborSnapshot taken at the start of the tick,
so the result does not depend on the order in which particles are updated.
The neighbour scans are O(N) per particle and run in Numba-jitted kernels.
"""
import math
from typing import Sequence

import numpy as np
from numba import jit

from config import FlockParams
from vector import from_angle, limit, magnitude, normalize, remap, set_magnitude, vec

# --- Data Contracts ---
#
# seek(particle, target, max_speed, max_force, arrival_radius, arrival_min_fraction) -> np.ndarray
# separate/align/cohere(particle, neighbors: NeighborSnapshot, radius, max_speed, max_force) -> np.ndarray
# flock(particle, neighbors, params: FlockParams, max_speed, max_force, arrival_radius) -> np.ndarray
#   - Outputs: a (2,) float64 force with |force| <= max_force (flock: each
#     term is limited before weighting).
#   - Invariants: neighbours at distance 0 (self, coincident particles) are
#     ignored; no neighbour in range gives an exact zero vector.
#
# pointer_repel(particle, pointers, radius, force, exponent, min_speed) -> np.ndarray
#   - Side Effects: adds the summed push to particle.velocity and floors the
#     speed at min_speed while pushed.
#   - Outputs: the summed push that was applied.


@jit(nopython=True)
def _separation_sum_numba(px, py, positions, radius):
    """Sum of unit vectors pointing away from each neighbour, each divided by its distance."""
    sx = 0.0
    sy = 0.0
    count = 0
    for j in range(positions.shape[0]):
        dx = px - positions[j, 0]
        dy = py - positions[j, 1]
        d = np.sqrt(dx * dx + dy * dy)
        if d > 0.0 and d < radius:
            # (diff / d) / d
            sx += dx / (d * d)
            sy += dy / (d * d)
            count += 1
    return sx, sy, count


@jit(nopython=True)
def _neighbor_mean_numba(px, py, positions, values, radius):
    """Mean of `values` over the neighbours strictly inside radius (excluding distance 0)."""
    mx = 0.0
    my = 0.0
    count = 0
    for j in range(positions.shape[0]):
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        d = np.sqrt(dx * dx + dy * dy)
        if d > 0.0 and d < radius:
            mx += values[j, 0]
            my += values[j, 1]
            count += 1
    if count > 0:
        mx /= count
        my /= count
    return mx, my, count


def seek(particle, target: np.ndarray, max_speed: float, max_force: float,
         arrival_radius: float = 0.0, arrival_min_fraction: float = 0.0) -> np.ndarray:
    """
    Steers toward target, slowing down inside the arrival radius.

    Outside the arrival radius the desired speed is max_speed. Inside it the
    desired speed ramps linearly from arrival_min_fraction * max_speed at
    the target up to max_speed at the radius, which brings the particle to
    rest on the target instead of orbiting it.
    """
    desired = target - particle.position
    dist = magnitude(desired)
    if dist < arrival_radius:
        speed = remap(dist, 0.0, arrival_radius, arrival_min_fraction * max_speed, max_speed)
    else:
        speed = max_speed
    desired = set_magnitude(desired, speed)
    return limit(desired - particle.velocity, max_force)


def separate(particle, neighbors, radius: float, max_speed: float, max_force: float) -> np.ndarray:
    sx, sy, count = _separation_sum_numba(
        float(particle.position[0]), float(particle.position[1]), neighbors.positions, float(radius)
    )
    if count == 0:
        return vec()
    average = vec(sx / count, sy / count)
    desired = set_magnitude(average, max_speed)
    if not desired.any():
        return vec()
    return limit(desired - particle.velocity, max_force)


def align(particle, neighbors, radius: float, max_speed: float, max_force: float) -> np.ndarray:
    mx, my, count = _neighbor_mean_numba(
        float(particle.position[0]), float(particle.position[1]),
        neighbors.positions, neighbors.velocities, float(radius)
    )
    if count == 0:
        return vec()
    desired = set_magnitude(vec(mx, my), max_speed)
    return limit(desired - particle.velocity, max_force)


def cohere(particle, neighbors, radius: float, max_speed: float, max_force: float,
           arrival_radius: float = 0.0) -> np.ndarray:
    mx, my, count = _neighbor_mean_numba(
        float(particle.position[0]), float(particle.position[1]),
        neighbors.positions, neighbors.positions, float(radius)
    )
    if count == 0:
        return vec()
    return seek(particle, vec(mx, my), max_speed, max_force, arrival_radius)


def flock(particle, neighbors, params: FlockParams, max_speed: float, max_force: float,
          arrival_radius: float = 0.0) -> np.ndarray:
    """
    Weighted sum of separation, alignment and cohesion.

    The weights decide the character of the swarm: a dominant separation
    weight disperses it, a dominant cohesion weight pulls it into clumps.
    """
    separation = separate(particle, neighbors, params.separation_distance, max_speed, max_force)
    alignment = align(particle, neighbors, params.alignment_distance, max_speed, max_force)
    cohesion = cohere(particle, neighbors, params.cohesion_distance, max_speed, max_force, arrival_radius)
    return (separation * params.separation_weight
            + alignment * params.alignment_weight
            + cohesion * params.cohesion_weight)


def pointer_repel(particle, pointers: Sequence[np.ndarray], radius: float, force: float,
                  exponent: float, min_speed: float) -> np.ndarray:
    """
    Pushes the particle directly away from every pointer closer than radius.

    The push magnitude is force * (1 - d / radius) ** exponent, so it is the
    full force on top of the pointer and exactly zero at the radius. A
    particle sitting exactly on a pointer is pushed along its own heading
    (or +x when at rest). While pushed, the speed never drops below min_speed.
    """
    total = vec()
    for point in pointers:
        away = particle.position - point
        dist = magnitude(away)
        if dist >= radius:
            continue
        if dist > 0.0:
            direction = away / dist
        else:
            direction = normalize(particle.velocity)
            if not direction.any():
                direction = vec(1.0, 0.0)
        strength = (1.0 - dist / radius) ** exponent
        push = direction * (force * strength)
        particle.velocity += push
        speed = magnitude(particle.velocity)
        if speed < min_speed:
            if speed > 0.0:
                particle.velocity *= min_speed / speed
            else:
                particle.velocity = direction * min_speed
        total += push
    return total


def wander(particle, jitter: float, rng: np.random.Generator) -> None:
    """Random walk: independent uniform nudges of each velocity axis."""
    if jitter <= 0.0:
        return
    particle.velocity += rng.uniform(-jitter, jitter, size=2)


def wind(pointers: Sequence[np.ndarray], height: float, base_x: float, tilt: float) -> np.ndarray:
    """
    Constant drift along x, tilted up or down by the mean pointer height.

    Pointers at the top tilt the drift by -tilt, pointers at the bottom by
    +tilt; no pointer means no tilt.
    """
    wind_y = 0.0
    if len(pointers) > 0:
        mean_y = sum(float(p[1]) for p in pointers) / len(pointers)
        wind_y = remap(mean_y, 0.0, height, -tilt, tilt)
    return vec(base_x, wind_y)


def boundary_force(particle, top: float, bottom: float, force: float) -> np.ndarray:
    """
    Soft vertical boundary: a gentle push back once the particle is above
    `top` or below `bottom`, instead of a bounce.
    """
    y = particle.position[1]
    if y < top:
        return vec(0.0, force * 0.5)
    if y > bottom:
        return vec(0.0, -force * 0.5)
    return vec()


def random_heading_velocity(rng: np.random.Generator, heading: float, spread: float,
                            min_speed: float, max_speed: float) -> np.ndarray:
    """A velocity pointing heading +/- spread radians with a random speed in [min_speed, max_speed]."""
    angle = heading + rng.uniform(-spread, spread)
    low = min(min_speed, max_speed)
    return from_angle(angle, rng.uniform(low, max_speed))


def random_velocity(rng: np.random.Generator, speed: float) -> np.ndarray:
    return from_angle(rng.uniform(0.0, 2.0 * math.pi), speed)
