"""Task model for the tracker.

A :class:`Task` is the only entity.  It serializes to a "wire dict" with
camelCase keys (``dueDate``, ``createdAt``, ``updatedAt``, ``sharedWith``)
so the persisted blob stays readable by any client of the same layout.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from ..utils import _is_iso_date, _now_iso, _parse_iso


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    def next(self) -> "TaskStatus":
        """Status reached by one click on the status toggle (wraps around)."""
        order = list(TaskStatus)
        return order[(order.index(self) + 1) % len(order)]


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _generate_id() -> str:
    """Millisecond-timestamp ID.  Uniqueness is enforced by the store."""
    return str(time.time_ns() // 1_000_000)


# (attribute name, wire key) in serialization order.
WIRE_FIELDS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("title", "title"),
    ("description", "description"),
    ("status", "status"),
    ("priority", "priority"),
    ("due_date", "dueDate"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
    ("tags", "tags"),
    ("shared_with", "sharedWith"),
)

_WIRE_TO_ATTR = {wire: attr for attr, wire in WIRE_FIELDS}
_STRING_FIELDS = ("id", "title", "description", "dueDate", "createdAt", "updatedAt")
_LIST_FIELDS = ("tags", "sharedWith")

# Fields a caller may never overwrite through an update.
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A single tracked work item."""

    id: str = field(default_factory=_generate_id)
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: str = ""
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)
    tags: list[str] = field(default_factory=list)
    shared_with: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @classmethod
    def validate_dict(cls, data: Any) -> list[str]:
        """Check a wire dict and return a list of problems (empty = valid).

        Unlike the API request models this does not require a non-empty
        title; it only checks that persisted data has the expected shape.
        """
        if not isinstance(data, dict):
            return [f"Expected an object, got {type(data).__name__}"]
        errors: list[str] = []
        for _, wire in WIRE_FIELDS:
            if wire not in data:
                errors.append(f"'{wire}' is missing")
        for wire in _STRING_FIELDS:
            if wire in data and not isinstance(data[wire], str):
                errors.append(f"'{wire}' must be a string")
        status = data.get("status")
        valid_statuses = {e.value for e in TaskStatus}
        if "status" in data and (not isinstance(status, str) or status not in valid_statuses):
            errors.append(f"'status' must be one of {sorted(valid_statuses)}, got '{status}'")
        priority = data.get("priority")
        valid_prios = {e.value for e in TaskPriority}
        if "priority" in data and (not isinstance(priority, str) or priority not in valid_prios):
            errors.append(f"'priority' must be one of {sorted(valid_prios)}, got '{priority}'")
        for wire in _LIST_FIELDS:
            val = data.get(wire)
            if wire not in data:
                continue
            if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
                errors.append(f"'{wire}' must be an array of strings")
        for wire in ("createdAt", "updatedAt"):
            val = data.get(wire)
            if isinstance(val, str) and _parse_iso(val) is None:
                errors.append(f"'{wire}' is not an ISO-8601 timestamp: '{val}'")
        return errors

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire dict used for persistence and the API."""
        data: dict[str, Any] = {}
        for attr, wire in WIRE_FIELDS:
            value = getattr(self, attr)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, list):
                value = list(value)
            data[wire] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize a wire dict.

        Raises :class:`ValueError` if the dict does not have the expected
        shape; nothing is defaulted or repaired.
        """
        errors = cls.validate_dict(data)
        if errors:
            task_id = data.get("id") if isinstance(data, dict) else None
            raise ValueError(f"Invalid task {task_id!r}: " + "; ".join(errors))
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            status=TaskStatus(data["status"]),
            priority=TaskPriority(data["priority"]),
            due_date=data["dueDate"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            tags=list(data["tags"]),
            shared_with=list(data["sharedWith"]),
        )

    def copy(self) -> "Task":
        """Independent copy (list fields are not shared)."""
        return replace(self, tags=list(self.tags), shared_with=list(self.shared_with))

    # ------------------------------------------------------------------
    # Mutation helpers
    # ------------------------------------------------------------------

    def touch(self, timestamp: Optional[str] = None) -> None:
        """Bump ``updated_at`` to *timestamp* (default: now)."""
        self.updated_at = timestamp or _now_iso()

    def is_shared_with(self, identifier: str) -> bool:
        return identifier in self.shared_with


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def coerce_status(value: Any) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(str(value))
    except ValueError:
        raise ValueError(
            f"'status' must be one of {[e.value for e in TaskStatus]}, got '{value}'"
        ) from None


def coerce_priority(value: Any) -> TaskPriority:
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(str(value))
    except ValueError:
        raise ValueError(
            f"'priority' must be one of {[e.value for e in TaskPriority]}, got '{value}'"
        ) from None


def normalize_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Turn a partial update into attribute-keyed, type-coerced changes.

    Accepts attribute names (``due_date``) or wire keys (``dueDate``).
    Immutable fields are dropped; unknown keys and invalid enum values
    raise :class:`ValueError` so nothing is applied half-way.
    """
    known_attrs = {attr for attr, _ in WIRE_FIELDS}
    out: dict[str, Any] = {}
    for key, value in changes.items():
        attr = _WIRE_TO_ATTR.get(key, key)
        if attr not in known_attrs:
            raise ValueError(f"Unknown task field '{key}'")
        if attr in IMMUTABLE_FIELDS:
            continue
        if attr == "status":
            value = coerce_status(value)
        elif attr == "priority":
            value = coerce_priority(value)
        elif attr in ("tags", "shared_with"):
            if not isinstance(value, (list, tuple)):
                raise ValueError(f"'{key}' must be a list of strings")
            value = [str(v) for v in value]
            if attr == "shared_with":
                value = list(dict.fromkeys(value))
        elif attr == "due_date":
            value = "" if value is None else str(value)
            if value and not _is_iso_date(value):
                raise ValueError(f"'dueDate' must be an ISO calendar date, got '{value}'")
        else:
            if not isinstance(value, str):
                raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
        out[attr] = value
    return out
