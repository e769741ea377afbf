"""Example tasks a new user sees on first run."""

from __future__ import annotations

from typing import Any

from .model import Task

DEFAULT_TASKS_VERSION = 1

DEFAULT_TASK_DATA: tuple[dict[str, Any], ...] = (
    {
        "id": "1",
        "title": "Complete React Todo App",
        "description": "Build a comprehensive todo application with authentication and real-time features",
        "status": "in-progress",
        "priority": "high",
        "dueDate": "2025-01-10",
        "createdAt": "2025-01-05T10:00:00.000Z",
        "updatedAt": "2025-01-05T10:00:00.000Z",
        "tags": ["React", "Frontend"],
        "sharedWith": [],
    },
    {
        "id": "2",
        "title": "Setup MongoDB Database",
        "description": "Configure MongoDB Atlas for production deployment",
        "status": "completed",
        "priority": "medium",
        "dueDate": "2025-01-08",
        "createdAt": "2025-01-04T14:30:00.000Z",
        "updatedAt": "2025-01-05T09:15:00.000Z",
        "tags": ["Database", "Backend"],
        "sharedWith": ["team@example.com"],
    },
    {
        "id": "3",
        "title": "Deploy to Production",
        "description": "Deploy frontend to Vercel and backend to Render",
        "status": "todo",
        "priority": "high",
        "dueDate": "2025-01-12",
        "createdAt": "2025-01-05T16:00:00.000Z",
        "updatedAt": "2025-01-05T16:00:00.000Z",
        "tags": ["Deployment", "DevOps"],
        "sharedWith": [],
    },
)


def default_tasks() -> list[Task]:
    """Fresh :class:`Task` objects for the default data (safe to mutate)."""
    return [Task.from_dict(d) for d in DEFAULT_TASK_DATA]
