# interactions.py
"""
Pointer and touch sampling.

The renderer reports every pointer it currently sees (the mouse while it is
over the window, and each finger on a touch screen). PointerTracker turns
that into the per-tick snapshot the simulation consumes: only pointers that
moved since the previous sample repel particles, so a resting cursor does
not keep a hole punched into a formation.
"""
import logging
from typing import Dict, Hashable, List, Mapping, Tuple

import numpy as np

from vector import distance, vec


class PointerTracker:
    """Keeps the last known position of every pointer id between samples."""

    def __init__(self, min_move: float = 2.0):
        self.min_move = max(0.0, float(min_move))
        self._last: Dict[Hashable, np.ndarray] = {}

    def sample(self, pointers: Mapping[Hashable, Tuple[float, float]]) -> List[np.ndarray]:
        """
        Returns the positions of the pointers that count as active this tick.

        A pointer seen for the first time is active. A known pointer is active
        when it moved more than min_move since the previous sample (always,
        when min_move is zero). Pointers
        missing from `pointers` are forgotten.
        """
        active = []
        current: Dict[Hashable, np.ndarray] = {}
        for pointer_id, (x, y) in pointers.items():
            position = vec(float(x), float(y))
            previous = self._last.get(pointer_id)
            if previous is None or self.min_move == 0.0 or distance(position, previous) > self.min_move:
                active.append(position)
            current[pointer_id] = position

        released = set(self._last) - set(current)
        if released:
            logging.debug(f"Pointers released: {sorted(map(str, released))}.")
        self._last = current
        return active

    def reset(self) -> None:
        self._last.clear()
