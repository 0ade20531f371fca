# config.py
"""
Immutable simulation configuration.

The "simulation_parameters" section of config.json is turned into a frozen
SimulationConfig. The core reads one snapshot per tick; replacing the
snapshot (see Simulation.apply_config) is the only way parameters change.

Invalid values are never fatal: out-of-range values are clamped and logged
instead of raised.
"""
import logging
import math
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from constants import (
    ALL_STATES, CIRCLES, DEFAULT_SEQUENCE, FLOCK, GRID, LOADING, WANDER, WAVE
)

# --- Data Contracts ---
#
# SimulationConfig.from_dict(params: Dict[str, Any], preset: Optional[str]) -> SimulationConfig
#   - Inputs:
#     - params: the "simulation_parameters" section of config.json. Nested
#       sections ("flock", "repulsion", "grid", "wave", "circles", "loading",
#       "boundary") map onto the matching *Params dataclass.
#     - preset: optional preset name ("desktop" | "mobile"). A "preset" key
#       inside params is used when the argument is None.
#   - Outputs: a frozen SimulationConfig.
#   - Invariants: every numeric field is inside its valid range; mappings are
#     read-only; state_sequence never contains LOADING.

DEFAULT_STATE_DURATIONS: Dict[str, Optional[float]] = {
    LOADING: None,  # completion-driven
    GRID: 12.0,
    WAVE: 12.0,
    FLOCK: 12.0,
    WANDER: 1.2,
    CIRCLES: 12.0,
}

DEFAULT_TRAIL_LENGTHS: Dict[str, int] = {
    LOADING: 0,
    GRID: 0,
    WAVE: 0,
    FLOCK: 10,
    WANDER: 0,
    CIRCLES: 0,
}

WAVE_ORIENTATIONS = ("auto", "horizontal", "vertical")


def _field_default(obj: Any, name: str) -> Any:
    for f in fields(obj):
        if f.name == name:
            return f.default
    raise KeyError(name)


def _sanitize(obj: Any, name: str, low: Optional[float] = None,
              high: Optional[float] = None, cast=float) -> None:
    """Coerces and clamps a field of a frozen dataclass in place, logging any change."""
    raw = getattr(obj, name)
    try:
        value = cast(raw)
    except (TypeError, ValueError, OverflowError):
        value = _field_default(obj, name)
        logging.warning(
            f"Configuration error: {type(obj).__name__}.{name}={raw!r} is not a valid "
            f"{cast.__name__}. Using default {value!r}."
        )
    if isinstance(value, float) and not math.isfinite(value):
        value = _field_default(obj, name)
        logging.warning(f"Configuration error: {type(obj).__name__}.{name} is not finite. Using default {value!r}.")
    clamped = value
    if low is not None and clamped < low:
        clamped = cast(low)
    if high is not None and clamped > high:
        clamped = cast(high)
    if clamped != value:
        logging.warning(
            f"Configuration error: {type(obj).__name__}.{name}={value!r} is out of range. "
            f"Clamped to {clamped!r}."
        )
    object.__setattr__(obj, name, clamped)


def _sanitize_bool(obj: Any, name: str) -> None:
    """Keeps a boolean field only if it is a real bool; anything else falls back to the default."""
    raw = getattr(obj, name)
    if not isinstance(raw, bool):
        value = _field_default(obj, name)
        logging.warning(
            f"Configuration error: {type(obj).__name__}.{name}={raw!r} is not a boolean. Using default {value!r}."
        )
        object.__setattr__(obj, name, value)


def _duration(state: str, seconds: Any) -> Optional[float]:
    """A state duration in seconds, None for no timer. Invalid values use the default."""
    if seconds is None:
        return None
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        value = float("nan")
    if not math.isfinite(value):
        default = DEFAULT_STATE_DURATIONS.get(state)
        logging.warning(f"Configuration error: duration {seconds!r} for '{state}' is invalid. Using {default!r}.")
        return default
    return max(0.0, value)


def _trail_length(state: str, length: Any) -> int:
    try:
        return max(0, int(length))
    except (TypeError, ValueError, OverflowError):
        default = DEFAULT_TRAIL_LENGTHS.get(state, 0)
        logging.warning(f"Configuration error: trail length {length!r} for '{state}' is invalid. Using {default}.")
        return default


def _as_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    logging.warning(f"Configuration error: {what} must be a mapping, got {value!r}. Ignored.")
    return {}


@dataclass(frozen=True)
class FlockParams:
    """Neighbourhood radii and weights of the three flocking terms, plus the drift."""
    separation_distance: float = 150.0
    alignment_distance: float = 300.0
    cohesion_distance: float = 150.0
    separation_weight: float = 0.75
    alignment_weight: float = 1.0
    cohesion_weight: float = 0.3
    # Constant drift pushed onto every flocking particle; the vertical tilt
    # follows the mean pointer height within [-wind_tilt, wind_tilt].
    wind_x: float = 0.2
    wind_tilt: float = 0.2
    # Initial velocities on entry: heading +/- heading_spread radians.
    heading: float = 0.0
    heading_spread: float = 0.2
    min_start_speed: float = 2.0

    def __post_init__(self):
        for name in ("separation_distance", "alignment_distance", "cohesion_distance",
                     "wind_tilt", "heading_spread", "min_start_speed"):
            _sanitize(self, name, low=0.0)
        for name in ("separation_weight", "alignment_weight", "cohesion_weight", "wind_x", "heading"):
            _sanitize(self, name)


@dataclass(frozen=True)
class RepulsionParams:
    radius: float = 300.0
    force: float = 20.0
    exponent: float = 5.0
    min_speed: float = 5.0
    # Flocking particles react to pointers from further away.
    flock_radius_bonus: float = 200.0

    def __post_init__(self):
        _sanitize(self, "radius", low=0.0)
        _sanitize(self, "force", low=0.0)
        _sanitize(self, "exponent", low=1.0)
        _sanitize(self, "min_speed", low=0.0)
        _sanitize(self, "flock_radius_bonus", low=0.0)


@dataclass(frozen=True)
class GridParams:
    # rows/cols <= 0 means "derive from the particle count".
    rows: int = 0
    cols: int = 0
    margin_x: float = 0.1
    margin_y: float = 0.15
    shuffle: bool = True

    def __post_init__(self):
        _sanitize(self, "rows", cast=int)
        _sanitize(self, "cols", cast=int)
        _sanitize(self, "margin_x", low=0.0, high=0.49)
        _sanitize(self, "margin_y", low=0.0, high=0.49)
        _sanitize_bool(self, "shuffle")


@dataclass(frozen=True)
class WaveParams:
    cycles: float = 1.0
    offset: float = 0.0
    amplitude: float = 300.0
    # Phase advance in cycles per second.
    speed: float = 0.03
    margin: float = 100.0
    margin_fraction: float = 0.1
    orientation: str = "auto"

    def __post_init__(self):
        for name in ("cycles", "offset", "amplitude", "speed"):
            _sanitize(self, name)
        _sanitize(self, "margin", low=0.0)
        _sanitize(self, "margin_fraction", low=0.0, high=0.49)
        if self.orientation not in WAVE_ORIENTATIONS:
            logging.warning(
                f"Configuration error: unknown wave orientation {self.orientation!r}. Using 'auto'."
            )
            object.__setattr__(self, "orientation", "auto")


@dataclass(frozen=True)
class CircleParams:
    circle_count: int = 3
    radius: float = 250.0
    overlap: float = 0.25
    points: int = 180

    def __post_init__(self):
        _sanitize(self, "circle_count", low=1, cast=int)
        _sanitize(self, "radius", low=0.0)
        _sanitize(self, "overlap")
        _sanitize(self, "points", low=1, cast=int)


@dataclass(frozen=True)
class LoadingParams:
    rotations: float = 2.5
    rotation_speed: float = 0.07
    distance: float = 7.0
    converge_rate: float = 0.1
    epsilon: float = 1.0

    def __post_init__(self):
        _sanitize(self, "rotations", low=0.0)
        _sanitize(self, "rotation_speed", low=1e-3)
        _sanitize(self, "distance", low=0.0)
        _sanitize(self, "converge_rate", low=1e-3, high=1.0)
        _sanitize(self, "epsilon", low=1e-6)


@dataclass(frozen=True)
class BoundaryParams:
    """Soft vertical boundary used while flocking, as fractions of the canvas height."""
    top_fraction: float = 0.15
    bottom_fraction: float = 0.15
    force: float = 0.8

    def __post_init__(self):
        _sanitize(self, "top_fraction", low=0.0, high=1.0)
        _sanitize(self, "bottom_fraction", low=0.0, high=1.0)
        _sanitize(self, "force", low=0.0)


_SECTIONS = {
    "flock": FlockParams,
    "repulsion": RepulsionParams,
    "grid": GridParams,
    "wave": WaveParams,
    "circles": CircleParams,
    "loading": LoadingParams,
    "boundary": BoundaryParams,
}

# Tuning presets for desktop and touch-screen displays. Values in config.json
# always win over the preset.
PRESETS: Dict[str, Dict[str, Any]] = {
    "desktop": {
        "particle_count": 72,
        "max_speed": 5.0,
        "repulsion": {"radius": 300.0, "min_speed": 5.0},
        "wave": {"speed": 0.03, "orientation": "horizontal"},
        "loading": {"distance": 7.0},
    },
    "mobile": {
        "particle_count": 50,
        "max_speed": 7.0,
        "repulsion": {"radius": 400.0, "min_speed": 5.0},
        "grid": {"cols": 4, "rows": 0, "margin_x": 0.0, "margin_y": 0.0},
        "wave": {"speed": 0.06, "orientation": "vertical"},
        "boundary": {"bottom_fraction": 0.3},
        "loading": {"distance": 14.0},
    },
}


def _deep_merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        elif isinstance(value, Mapping):
            base[key] = _deep_merge({}, value)
        else:
            base[key] = value
    return base


def _build_section(section_type, values: Mapping[str, Any]):
    known = {f.name for f in fields(section_type)}
    kwargs = {}
    for key, value in values.items():
        if key in known:
            kwargs[key] = value
        else:
            logging.warning(f"Ignoring unknown parameter '{key}' in section '{section_type.__name__}'.")
    return section_type(**kwargs)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable snapshot of every parameter the core reads.

    Durations are in seconds; a duration of None disables the timer for that
    state. Trail lengths are per state; zero disables trail recording.
    """
    seed: Optional[int] = None
    particle_count: int = 72
    max_speed: float = 5.0
    max_force: float = 2.0
    arrival_radius: float = 100.0
    # Desired speed at the target, as a fraction of max_speed.
    arrival_min_fraction: float = 0.0
    wander_jitter: float = 0.05
    state_durations: Mapping[str, Optional[float]] = field(default_factory=dict)
    state_sequence: Tuple[str, ...] = DEFAULT_SEQUENCE
    auto_cycle: bool = True
    single_state: Optional[str] = None
    trail_lengths: Mapping[str, int] = field(default_factory=dict)
    flock: FlockParams = field(default_factory=FlockParams)
    repulsion: RepulsionParams = field(default_factory=RepulsionParams)
    grid: GridParams = field(default_factory=GridParams)
    wave: WaveParams = field(default_factory=WaveParams)
    circles: CircleParams = field(default_factory=CircleParams)
    loading: LoadingParams = field(default_factory=LoadingParams)
    boundary: BoundaryParams = field(default_factory=BoundaryParams)

    def __post_init__(self):
        if self.seed is not None:
            _sanitize(self, "seed", cast=int)
        _sanitize(self, "particle_count", low=1, cast=int)
        _sanitize(self, "max_speed", low=0.0)
        _sanitize(self, "max_force", low=0.0)
        _sanitize(self, "arrival_radius", low=0.0)
        _sanitize(self, "arrival_min_fraction", low=0.0, high=1.0)
        _sanitize(self, "wander_jitter", low=0.0)
        _sanitize_bool(self, "auto_cycle")

        durations = dict(DEFAULT_STATE_DURATIONS)
        for name, seconds in _as_mapping(self.state_durations, "state_durations").items():
            if name not in ALL_STATES:
                logging.warning(f"Ignoring duration for unknown state '{name}'.")
                continue
            durations[name] = _duration(name, seconds)
        object.__setattr__(self, "state_durations", MappingProxyType(durations))

        trails = dict(DEFAULT_TRAIL_LENGTHS)
        for name, length in _as_mapping(self.trail_lengths, "trail_lengths").items():
            if name not in ALL_STATES:
                logging.warning(f"Ignoring trail length for unknown state '{name}'.")
                continue
            trails[name] = _trail_length(name, length)
        object.__setattr__(self, "trail_lengths", MappingProxyType(trails))

        sequence = []
        names = self.state_sequence
        if not isinstance(names, (list, tuple)):
            logging.warning(f"Configuration error: state_sequence must be a list, got {names!r}.")
            names = ()
        for name in names:
            if name == LOADING:
                logging.warning("Loading is the initial state only; removed from the state sequence.")
            elif not isinstance(name, str) or name not in ALL_STATES:
                logging.warning(f"Removed unknown state '{name}' from the state sequence.")
            else:
                sequence.append(name)
        if not sequence:
            logging.warning(f"Empty state sequence. Falling back to {DEFAULT_SEQUENCE}.")
            sequence = list(DEFAULT_SEQUENCE)
        object.__setattr__(self, "state_sequence", tuple(sequence))

        if self.single_state is not None and (
            not isinstance(self.single_state, str) or self.single_state not in ALL_STATES
        ):
            logging.warning(f"Unknown single_state '{self.single_state}'. Running the full sequence.")
            object.__setattr__(self, "single_state", None)

    def duration(self, state: str) -> Optional[float]:
        return self.state_durations.get(state)

    def trail_length(self, state: str) -> int:
        return self.trail_lengths.get(state, 0)

    def with_overrides(self, **changes) -> "SimulationConfig":
        """Returns a new snapshot with the given top-level fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, params: Mapping[str, Any], preset: Optional[str] = None) -> "SimulationConfig":
        params = dict(_as_mapping(params, "simulation_parameters"))
        preset = preset or params.pop("preset", None)
        params.pop("preset", None)

        merged: Dict[str, Any] = {}
        if preset is not None:
            if isinstance(preset, str) and preset in PRESETS:
                _deep_merge(merged, PRESETS[preset])
                logging.info(f"Applying '{preset}' parameter preset.")
            else:
                logging.warning(f"Unknown preset '{preset}'. Available: {sorted(PRESETS)}.")
        _deep_merge(merged, params)

        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in merged.items():
            if key in _SECTIONS:
                if isinstance(value, Mapping):
                    kwargs[key] = _build_section(_SECTIONS[key], value)
                else:
                    logging.warning(f"Configuration error: section '{key}' must be a mapping, got {value!r}. Using defaults.")
            elif key == "state_sequence":
                kwargs[key] = tuple(value) if isinstance(value, (list, tuple)) else value
            elif key in known:
                kwargs[key] = value
            else:
                logging.warning(f"Ignoring unknown simulation parameter '{key}'.")
        return cls(**kwargs)
