"""Per-status counts over the full collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .model import Task, TaskStatus


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "pending": self.pending,
        }


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    counts = {status: 0 for status in TaskStatus}
    total = 0
    for task in tasks:
        total += 1
        if task.status in counts:
            counts[task.status] += 1
    return TaskStats(
        total=total,
        completed=counts[TaskStatus.COMPLETED],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        pending=counts[TaskStatus.TODO],
    )
