# utils.py
"""
Host-side helpers: logging setup and loading the JSON run configuration.

Nothing in here is used by the simulation core itself; the core only ever
receives a SimulationConfig and logs through the root logger.
"""
import json
import logging
import logging.handlers
import os
from typing import Any, Dict

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'logs/formations.log'
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUPS = 5

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs: the whole run configuration; only its "logging" section is read
#     ("level", "format", "log_file"). An empty "log_file" logs to the
#     console only.
#   - Side Effects: replaces every handler of the root logger.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: the parsed JSON object.
#   - Side Effects: logs and re-raises FileNotFoundError and
#     json.JSONDecodeError; a document that is not a JSON object raises
#     ValueError.


def _file_handler(path: str) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Routes the root logger to the console and, unless disabled, to a
    rotating log file (1MB per file, 5 backups).
    """
    section = config.get('logging', {})
    level_name = str(section.get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(section.get('format', DEFAULT_LOG_FORMAT))
    handlers = [logging.StreamHandler()]
    log_file = section.get('log_file', DEFAULT_LOG_FILE)
    if log_file:
        handlers.append(_file_handler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if logging.getLevelName(level) != level_name:
        logging.warning(f"Unknown log level '{level_name}'. Using INFO.")
    logging.info(f"Logging to console{' and ' + log_file if log_file else ''} at {logging.getLevelName(level)}.")


def load_config(path: str) -> Dict[str, Any]:
    """Reads the run configuration from a JSON file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Invalid JSON in {path}: {e}")
        raise
    if not isinstance(config, dict):
        raise ValueError(f"{path} must contain a JSON object, got {type(config).__name__}.")
    logging.info(f"Configuration loaded: sections {sorted(config)}.")
    return config
