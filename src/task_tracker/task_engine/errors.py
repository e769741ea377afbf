"""Exceptions raised by the task store."""

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for durable-store failures."""


class StoreLoadError(TaskStoreError):
    """The persisted blob exists but cannot be parsed into a task collection."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class StoreWriteError(TaskStoreError):
    """Writing the collection failed; the previous blob is left intact."""
