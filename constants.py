# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They cover the
rendering host (window, frame rate, colours) and the identifiers of the
animation states. Everything that is tuned per run lives in config.json and
is parsed by config.py.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FPS = 60
BACKGROUND_COLOR = (0, 0, 0)
PARTICLE_COLOR = (255, 255, 255)
DEFAULT_DOT_SIZE = 10
HUD_COLOR = (120, 120, 120)

# --- Trail rendering ---
# Grey level of the newest trail segment; older segments fade to black.
TRAIL_HEAD_GREY = 80
TRAIL_TAIL_GREY = 0

# --- Animation states ---
LOADING = "loading"
GRID = "grid"
WAVE = "wave"
FLOCK = "flock"
WANDER = "wander"
CIRCLES = "circles"

ALL_STATES = (LOADING, GRID, WAVE, FLOCK, WANDER, CIRCLES)

# Default formation cycle after loading has finished.
DEFAULT_SEQUENCE = (GRID, WAVE, FLOCK)

# Particles spawned by populate() keep this distance from the canvas edges.
SPAWN_INSET = 20.0
