# controller.py
"""
The formation state machine.

StateController owns the single active AnimationState and decides when to
replace it. Transitions only happen at a tick boundary, in advance(), for one
of three reasons, checked in this order:

1. an external request (request()/request_next()),
2. the active state raised its completion flag (Loading),
3. the active state's configured duration has elapsed (when auto-cycling).
"""
import logging
from typing import Optional

from constants import LOADING
from particle import ParticleSystem
from states import STATE_TYPES, AnimationState, TickContext

# --- Data Contracts ---
#
# class StateController:
#   - start(self, ctx: TickContext) -> None
#     - Side Effects: enters LOADING, or config.single_state when set.
#   - transition_to(self, name: str, ctx: TickContext) -> bool
#     - Outputs: False (and no change) if name is not a known state.
#     - Side Effects: exit() on the old state, enter() on the new one; the new
#       state's start time is ctx.now.
#   - advance(self, ctx: TickContext) -> bool
#     - Outputs: True if a transition happened.
#   - Invariants: exactly one active state after start(); LOADING is never
#     chosen as a successor.


class StateController:
    """Runs the Loading -> sequence[0] -> sequence[1] -> ... cycle."""

    def __init__(self, system: ParticleSystem):
        self.system = system
        self.current: Optional[AnimationState] = None
        self._pending: Optional[str] = None
        self._pending_next = False

    @property
    def current_name(self) -> Optional[str]:
        return self.current.name if self.current is not None else None

    def start(self, ctx: TickContext) -> None:
        initial = ctx.config.single_state or LOADING
        logging.info(f"Starting state machine in '{initial}'.")
        self.current = None
        self._pending = None
        self._pending_next = False
        self.transition_to(initial, ctx)

    def elapsed(self, now: float) -> float:
        if self.current is None:
            return 0.0
        return self.current.elapsed(now)

    def successor(self, name: str, ctx: TickContext) -> str:
        """The state that follows `name` in the configured cycle."""
        sequence = ctx.config.state_sequence
        if name in sequence:
            return sequence[(sequence.index(name) + 1) % len(sequence)]
        return sequence[0]

    def request(self, name: str) -> None:
        """Asks for a transition to `name` at the next tick boundary."""
        self._pending = name
        self._pending_next = False

    def request_next(self) -> None:
        """Asks for the successor of the active state at the next tick boundary."""
        self._pending = None
        self._pending_next = True

    def transition_to(self, name: str, ctx: TickContext) -> bool:
        state_type = STATE_TYPES.get(name)
        if state_type is None:
            logging.error(f"Unknown state '{name}' requested. Staying in '{self.current_name}'.")
            return False

        previous = self.current_name
        if self.current is not None:
            self.current.exit(ctx)
        self.current = state_type(self.system, ctx.now)
        self.current.enter(ctx)
        if previous is None:
            logging.info(f"Entered state '{name}'.")
        else:
            logging.info(f"Transitioned from '{previous}' to '{name}'.")
        return True

    def reenter(self, ctx: TickContext) -> None:
        """Recomputes the active state's geometry, e.g. after a resize. Keeps its start time."""
        if self.current is not None:
            logging.debug(f"Re-entering state '{self.current_name}'.")
            self.current.enter(ctx)

    def advance(self, ctx: TickContext) -> bool:
        if self.current is None:
            return False
        config = ctx.config

        if self._pending_next:
            self._pending_next = False
            return self.transition_to(self.successor(self.current.name, ctx), ctx)
        if self._pending is not None:
            name, self._pending = self._pending, None
            return self.transition_to(name, ctx)

        if config.single_state is not None:
            return False

        if self.current.complete:
            return self.transition_to(self.successor(self.current.name, ctx), ctx)

        if not config.auto_cycle:
            return False
        duration = config.duration(self.current.name)
        if duration is not None and self.current.elapsed(ctx.now) >= duration:
            return self.transition_to(self.successor(self.current.name, ctx), ctx)
        return False
