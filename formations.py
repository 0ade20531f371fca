# formations.py
"""
Formation target generators.

Each generator is a pure function of its inputs: it returns an (M, 2)
float64 array of target points computed from the canvas bounds and the
formation geometry. Particles are mapped onto targets by index modulo M, so
the number of points does not have to match the particle count.
"""
import logging
import math
from typing import Iterable, NamedTuple, Tuple

import numpy as np

# --- Data Contracts ---
#
# grid(count, rows, cols, bounds, margin_x, margin_y) -> np.ndarray
#   - Outputs: (rows * cols, 2) points in row-major order, centred in bounds.
#     Non-positive rows/cols are derived from count.
#   - Invariants: never divides by zero; identical inputs give identical output.
#
# twin_wave(count_per_branch, amplitude, vertical_offset, phase_time, bounds, ...)
#   -> Tuple[np.ndarray, np.ndarray]
#   - Outputs: the two mirrored branches, each (count_per_branch, 2).
#
# circles_overlapping(count, circle_count, radius, overlap_fraction, bounds) -> np.ndarray
#   - Outputs: (circle_count * (count // circle_count), 2) points, at least
#     one point per circle.


class Bounds(NamedTuple):
    """Canvas size in simulation units."""
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    @property
    def is_narrow(self) -> bool:
        return self.width < self.height


def grid_dimensions(count: int, bounds: Bounds, margin_x: float = 0.1, margin_y: float = 0.15) -> Tuple[int, int]:
    """
    Picks (rows, cols) so that the cells of the available area are close to
    square and rows * cols >= count.
    """
    count = max(1, int(count))
    available_width = bounds.width * (1.0 - 2.0 * margin_x)
    available_height = bounds.height * (1.0 - 2.0 * margin_y)
    if available_width <= 0 or available_height <= 0:
        return 1, count
    aspect_ratio = available_width / available_height
    ideal_rows = math.sqrt(count / aspect_ratio)
    rows = max(1, round(ideal_rows))
    cols = max(1, round(ideal_rows * aspect_ratio), math.ceil(count / rows))
    return rows, cols


def resolve_grid_shape(count: int, rows: int, cols: int, bounds: Bounds,
                       margin_x: float = 0.1, margin_y: float = 0.15) -> Tuple[int, int]:
    """Fills in the non-positive side(s) of a requested grid shape from the particle count."""
    count = max(1, int(count))
    if rows > 0 and cols > 0:
        return rows, cols
    if cols > 0:
        return math.ceil(count / cols), cols
    if rows > 0:
        return rows, math.ceil(count / rows)
    return grid_dimensions(count, bounds, margin_x, margin_y)


def grid(count: int, rows: int, cols: int, bounds: Bounds,
         margin_x: float = 0.1, margin_y: float = 0.15) -> np.ndarray:
    """
    Evenly spaced grid points centred in bounds.

    The cell size is the largest square cell that fits the area left after
    the margins. A single row or column collapses that axis to the centre
    line instead of dividing by zero.

    Args:
        count (int): Particle count, used only when rows or cols is non-positive.
        rows (int): Number of rows.
        cols (int): Number of columns.
        bounds (Bounds): Canvas size.
        margin_x (float): Horizontal margin as a fraction of the width.
        margin_y (float): Vertical margin as a fraction of the height.

    Returns:
        np.ndarray: (rows * cols, 2) array in row-major order.
    """
    rows, cols = resolve_grid_shape(count, rows, cols, bounds, margin_x, margin_y)
    width, height = bounds
    grid_width = max(0.0, width - 2.0 * width * margin_x)
    grid_height = max(0.0, height - 2.0 * height * margin_y)

    cell_size = min(grid_width / max(cols - 1, 1), grid_height / max(rows - 1, 1))

    # Recentre the grid on the canvas.
    actual_width = cell_size * (cols - 1)
    actual_height = cell_size * (rows - 1)
    start_x = (width - actual_width) / 2.0
    start_y = (height - actual_height) / 2.0

    col_index, row_index = np.meshgrid(np.arange(cols), np.arange(rows))
    points = np.column_stack((
        start_x + col_index.ravel() * cell_size,
        start_y + row_index.ravel() * cell_size,
    )).astype(np.float64)
    logging.debug(f"Generated {rows}x{cols} grid with cell size {cell_size:.2f}.")
    return points


def shuffled(points: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Returns the points in a random order drawn from rng."""
    return points[rng.permutation(len(points))]


def twin_wave(count_per_branch: int, amplitude: float, vertical_offset: float,
              phase_time: float, bounds: Bounds, cycles: float = 1.0,
              margin: float = 100.0, vertical: bool = False,
              margin_fraction: float = 0.1) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two mirrored sine waves spanning the canvas.

    One branch adds the sine offset and the other subtracts it, which puts
    the branches half a period apart. Horizontal waves run across the width
    with a fixed pixel margin; vertical waves (narrow viewports) run down the
    height with a margin proportional to it.
    """
    points = max(1, int(count_per_branch))
    steps = max(points - 1, 1)
    i = np.arange(points, dtype=np.float64)
    phase = cycles * (i / steps) + phase_time
    swing = amplitude * np.sin(2.0 * math.pi * phase)
    center_x, center_y = bounds.center
    half_offset = vertical_offset / 2.0

    if vertical:
        margin_top = bounds.height * margin_fraction
        along = margin_top + i * (bounds.height - 2.0 * margin_top) / steps
        first = np.column_stack((center_x - half_offset + swing, along))
        second = np.column_stack((center_x + half_offset - swing, along))
    else:
        margin = min(margin, bounds.width / 2.0)
        along = margin + i * (bounds.width - 2.0 * margin) / steps
        first = np.column_stack((along, center_y - half_offset + swing))
        second = np.column_stack((along, center_y + half_offset - swing))
    return first, second


def wave_targets(count: int, amplitude: float, vertical_offset: float, phase_time: float,
                 bounds: Bounds, cycles: float = 1.0, margin: float = 100.0,
                 vertical: bool = False, margin_fraction: float = 0.1) -> np.ndarray:
    """Both wave branches as one target sequence: first half of the particles on the first branch."""
    first, second = twin_wave(max(1, count // 2), amplitude, vertical_offset, phase_time,
                              bounds, cycles, margin, vertical, margin_fraction)
    return np.vstack((first, second))


def circle_points(center: Tuple[float, float], radius: float, count: int) -> np.ndarray:
    count = max(1, int(count))
    angles = np.arange(count, dtype=np.float64) * (2.0 * math.pi / count)
    return np.column_stack((center[0] + radius * np.cos(angles), center[1] + radius * np.sin(angles)))


def circles_overlapping(count: int, circle_count: int, radius: float,
                        overlap_fraction: float, bounds: Bounds) -> np.ndarray:
    """
    Points distributed evenly around `circle_count` rings of equal radius.

    The ring centres sit on the horizontal centre line, spaced
    overlap_fraction * width apart and centred on the canvas, so neighbouring
    rings overlap when the spacing is smaller than the diameter.
    """
    circle_count = max(1, int(circle_count))
    per_circle = max(1, int(count) // circle_count)
    center_x, center_y = bounds.center
    rings = []
    for k in range(circle_count):
        offset = (k - (circle_count - 1) / 2.0) * overlap_fraction * bounds.width
        rings.append(circle_points((center_x + offset, center_y), radius, per_circle))
    return np.vstack(rings)


def assign_targets(particles: Iterable, points: np.ndarray) -> None:
    """Gives particle i the target points[i % len(points)]."""
    total = len(points)
    for i, particle in enumerate(particles):
        if total == 0:
            particle.clear_target()
        else:
            particle.set_target(points[i % total])
