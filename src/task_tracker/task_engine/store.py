"""File-backed key-value storage for the task collection.

:class:`LocalStorage` keeps one text blob per key in a directory
(``<state_dir>/storage/<key>.json``).  :class:`TaskRepository` stores the
whole collection as a single JSON array under one key.  Writes are atomic
(write-tmp-then-rename under an exclusive file lock): a write either fully
replaces the blob or fails and leaves the previous one in place.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from ..constants import LOCK_SUFFIX, STORAGE_KEY_PATTERN, STORAGE_SUFFIX, TASKS_KEY
from ..io_utils import FileLock, _atomic_write_text
from .errors import StoreLoadError, StoreWriteError
from .model import Task

_KEY_RE = re.compile(STORAGE_KEY_PATTERN)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize_tasks(tasks: Iterable[Task]) -> str:
    """Render *tasks* as a JSON array of wire dicts (order preserved)."""
    return json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False)


def deserialize_tasks(text: str, *, key: Optional[str] = None) -> list[Task]:
    """Parse a JSON array of wire dicts back into tasks.

    Raises :class:`StoreLoadError` on anything that is not exactly that shape.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StoreLoadError(f"Stored tasks are not valid JSON: {exc}", key=key) from exc
    if not isinstance(data, list):
        raise StoreLoadError(
            f"Stored tasks must be a JSON array, got {type(data).__name__}", key=key
        )
    tasks: list[Task] = []
    for index, raw in enumerate(data):
        try:
            tasks.append(Task.from_dict(raw))
        except ValueError as exc:
            raise StoreLoadError(f"Stored task #{index} is malformed: {exc}", key=key) from exc
    return tasks


# ---------------------------------------------------------------------------
# LocalStorage
# ---------------------------------------------------------------------------

class LocalStorage:
    """A directory-backed string key-value store.

    Parameters
    ----------
    root:
        Directory holding one ``<key>.json`` file per key.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}{STORAGE_SUFFIX}"

    def _lock(self, key: str) -> FileLock:
        return FileLock(self.root / f".{key}{LOCK_SUFFIX}")

    def get_item(self, key: str) -> Optional[str]:
        """Return the blob stored under *key*, or ``None`` if absent."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Replace the blob under *key* atomically."""
        path = self._path(key)
        with self._lock(key):
            _atomic_write_text(path, value)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        with self._lock(key):
            path.unlink(missing_ok=True)

    def keys(self) -> Iterator[str]:
        if not self.root.exists():
            return iter(())
        return iter(sorted(p.stem for p in self.root.glob(f"*{STORAGE_SUFFIX}")))


# ---------------------------------------------------------------------------
# TaskRepository
# ---------------------------------------------------------------------------

class TaskRepository:
    """Reads and writes the whole task collection under one storage key."""

    def __init__(self, storage: LocalStorage, key: str = TASKS_KEY) -> None:
        self.storage = storage
        self.key = key

    def load(self) -> Optional[list[Task]]:
        """Return the stored collection, or ``None`` if nothing is stored yet."""
        try:
            text = self.storage.get_item(self.key)
        except OSError as exc:
            raise StoreLoadError(f"Cannot read stored tasks: {exc}", key=self.key) from exc
        except UnicodeDecodeError as exc:
            raise StoreLoadError(f"Stored tasks are not valid UTF-8: {exc}", key=self.key) from exc
        if text is None:
            return None
        return deserialize_tasks(text, key=self.key)

    def save(self, tasks: Iterable[Task]) -> None:
        text = serialize_tasks(tasks)
        try:
            self.storage.set_item(self.key, text)
        except OSError as exc:
            raise StoreWriteError(f"Cannot write tasks under '{self.key}': {exc}") from exc
        logger.debug("Persisted tasks under key={} ({} bytes)", self.key, len(text))

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except OSError as exc:
            raise StoreWriteError(f"Cannot remove tasks under '{self.key}': {exc}") from exc
