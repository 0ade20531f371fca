# vector.py
"""
Small 2D vector helpers on top of NumPy.

Every vector in the simulation is a float64 array of shape (2,). Addition,
subtraction and scaling are plain NumPy arithmetic; the helpers below cover
the operations that need a guard against zero-length input.
"""
import math
import numpy as np


def vec(x: float = 0.0, y: float = 0.0) -> np.ndarray:
    """Creates a new 2D vector."""
    return np.array([x, y], dtype=np.float64)


def magnitude(v: np.ndarray) -> float:
    return math.hypot(v[0], v[1])


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of v, or the zero vector if v has no length."""
    m = magnitude(v)
    if m == 0.0:
        return vec()
    return v / m


def limit(v: np.ndarray, max_magnitude: float) -> np.ndarray:
    """Returns v scaled down so that its magnitude does not exceed max_magnitude."""
    m = magnitude(v)
    if m > max_magnitude and m > 0.0:
        return v * (max_magnitude / m)
    return v.copy()


def set_magnitude(v: np.ndarray, new_magnitude: float) -> np.ndarray:
    return normalize(v) * new_magnitude


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def from_angle(angle: float, length: float = 1.0) -> np.ndarray:
    return vec(math.cos(angle) * length, math.sin(angle) * length)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def clamp(x: float, low: float, high: float) -> float:
    """Clamp x to the inclusive range [low, high]."""
    return max(low, min(high, x))


def remap(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    """
    Linearly maps value from [in_min, in_max] onto [out_min, out_max].

    The result is not clamped. A degenerate input range maps everything to
    out_min.
    """
    span = in_max - in_min
    if span == 0:
        return out_min
    return out_min + (value - in_min) * (out_max - out_min) / span
