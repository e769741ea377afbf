"""Derive filtered views of the task collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .model import Task, TaskPriority, TaskStatus

ALL = "all"

STATUS_CHOICES: tuple[str, ...] = (ALL,) + tuple(s.value for s in TaskStatus)
PRIORITY_CHOICES: tuple[str, ...] = (ALL,) + tuple(p.value for p in TaskPriority)


@dataclass(frozen=True)
class TaskFilter:
    """A (status, priority, search) filter specification."""

    status: str = ALL
    priority: str = ALL
    search: str = ""

    def __post_init__(self) -> None:
        if self.status not in STATUS_CHOICES:
            raise ValueError(f"'status' filter must be one of {list(STATUS_CHOICES)}, got '{self.status}'")
        if self.priority not in PRIORITY_CHOICES:
            raise ValueError(
                f"'priority' filter must be one of {list(PRIORITY_CHOICES)}, got '{self.priority}'"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskFilter":
        """Build from a loose mapping; missing or ``None`` values mean "all"."""
        return cls(
            status=str(data.get("status") or ALL),
            priority=str(data.get("priority") or ALL),
            search=str(data.get("search") or ""),
        )

    def matches(self, task: Task) -> bool:
        if self.status != ALL and task.status.value != self.status:
            return False
        if self.priority != ALL and task.priority.value != self.priority:
            return False
        if self.search:
            q = self.search.lower()
            if q not in task.title.lower() and q not in task.description.lower():
                return False
        return True


def filter_tasks(tasks: Iterable[Task], spec: TaskFilter) -> list[Task]:
    """Return the tasks matching every clause of *spec*, in their original order."""
    return [t for t in tasks if spec.matches(t)]
