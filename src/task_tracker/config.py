"""Load optional tracker configuration from `.task_tracker/config.yaml`."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from loguru import logger

from .constants import (
    CONFIG_FILE,
    DEFAULT_LOG_LEVEL,
    LOG_LEVEL_ENV,
    STATE_DIR_NAME,
    STORAGE_DIR,
    STORAGE_KEY_PATTERN,
    TASKS_KEY,
)
from .io_utils import _load_data_with_error

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def default_state_dir(base_dir: Path | None = None) -> Path:
    """Return the state directory under *base_dir* (default: cwd)."""
    return (base_dir or Path.cwd()).resolve() / STATE_DIR_NAME


def load_config(state_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        state_dir: Tracker state directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = state_dir / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if not path.exists():
        return {}, None
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def get_storage_config(config: dict[str, Any], state_dir: Path) -> dict[str, Any]:
    """Resolve the storage directory and key.

    Args:
        config: Tracker configuration dictionary.
        state_dir: Tracker state directory; relative `storage.dir` values resolve against it.

    Returns:
        A mapping with `dir` (Path) and `key` (str).
    """
    raw_dir = _get_nested(config, "storage", "dir")
    raw_key = _get_nested(config, "storage", "key")
    storage_dir = state_dir / STORAGE_DIR
    if isinstance(raw_dir, str) and raw_dir:
        candidate = Path(raw_dir).expanduser()
        storage_dir = candidate if candidate.is_absolute() else state_dir / candidate
    key = TASKS_KEY
    if isinstance(raw_key, str) and raw_key:
        if re.match(STORAGE_KEY_PATTERN, raw_key):
            key = raw_key
        else:
            logger.warning("Ignoring invalid storage.key {!r}; using {!r}", raw_key, TASKS_KEY)
    return {"dir": storage_dir, "key": key}


def get_log_level(config: dict[str, Any]) -> str:
    """Return the log level; the environment variable wins over the config file."""
    for raw in (os.getenv(LOG_LEVEL_ENV), config.get("log_level")):
        if isinstance(raw, str) and raw.strip().upper() in VALID_LOG_LEVELS:
            return raw.strip().upper()
    return DEFAULT_LOG_LEVEL


def get_seed_defaults(config: dict[str, Any]) -> bool:
    """Whether first-run initialization seeds the example tasks."""
    raw = config.get("seed_defaults")
    if isinstance(raw, bool):
        return raw
    return True
