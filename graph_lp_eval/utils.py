"""Small utility functions for logging, filesystem and JSON artefacts.

These helpers are used by the command line driver to keep the engine modules
focused on prediction and evaluation.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging once with a level name such as ``\"DEBUG\"``.

    Raises:
        ValueError: If ``level`` is not a known logging level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def time_stamp() -> str:
    """Return an ISO-like UTC timestamp for naming artefact directories."""
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


def ensure_dir(path: str) -> None:
    """Create a directory if it does not already exist."""
    os.makedirs(path, exist_ok=True)


def new_run_dir(output_dir: str) -> str:
    """Create and return a fresh timestamp-named directory under ``output_dir``.

    A numeric suffix is appended when two runs start within the same second.
    """
    base = os.path.join(output_dir, time_stamp())
    path = base
    suffix = 1
    while os.path.exists(path):
        path = f"{base}-{suffix}"
        suffix += 1
    ensure_dir(path)
    return path


def write_json(path: str, obj: Dict[str, Any]) -> None:
    """Write a mapping as JSON to ``path`` with stable formatting."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def read_json(path: str) -> Dict[str, Any]:
    """Read a JSON mapping written by ``write_json``."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_config_copy(path: str, content: str) -> None:
    """Persist the configuration text used for a run."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
