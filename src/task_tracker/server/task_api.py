"""Task API endpoints.

This module provides a FastAPI router exposing the task engine (CRUD,
sharing, filtering and stats) to a local UI.  It is mounted under
``/api/tasks`` by :func:`task_tracker.server.api.create_app`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from ..task_engine.engine import ShareResult, TaskEngine
from ..task_engine.errors import StoreWriteError
from ..task_engine.model import TaskPriority, TaskStatus


# ---------------------------------------------------------------------------
# Pydantic request / response models
# ---------------------------------------------------------------------------

class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    dueDate: str = ""
    tags: list[str] = Field(default_factory=list)
    sharedWith: list[str] = Field(default_factory=list)


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    dueDate: Optional[str] = None
    tags: Optional[list[str]] = None


class ShareRequest(BaseModel):
    identifier: str


class TaskResponse(BaseModel):
    """Standard wrapper for task responses."""
    task: dict[str, Any]


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]]
    total: int


class ShareResponse(BaseModel):
    result: str
    task: dict[str, Any]


class StatsResponse(BaseModel):
    total: int
    completed: int
    inProgress: int
    pending: int


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_task_router(get_engine: Callable[[], TaskEngine]) -> APIRouter:
    """Create the task API router.

    Parameters
    ----------
    get_engine:
        A callable returning the initialized :class:`TaskEngine`.
    """
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])

    def _not_found(task_id: str) -> HTTPException:
        return HTTPException(status_code=404, detail=f"Task {task_id} not found")

    def _write_failed(exc: StoreWriteError) -> HTTPException:
        logger.error("Task write failed: {}", exc)
        return HTTPException(status_code=503, detail=str(exc))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @router.get("", response_model=TaskListResponse)
    async def list_tasks(
        status: Optional[str] = Query(None),
        priority: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
    ) -> TaskListResponse:
        engine = get_engine()
        try:
            tasks = engine.filter({"status": status, "priority": priority, "search": search})
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        data = [t.to_dict() for t in tasks]
        return TaskListResponse(tasks=data, total=len(data))

    @router.get("/stats", response_model=StatsResponse)
    async def get_stats() -> StatsResponse:
        return StatsResponse(**get_engine().stats().to_dict())

    @router.post("/reset", response_model=TaskListResponse)
    async def reset_tasks() -> TaskListResponse:
        try:
            tasks = get_engine().reset()
        except StoreWriteError as e:
            raise _write_failed(e)
        data = [t.to_dict() for t in tasks]
        return TaskListResponse(tasks=data, total=len(data))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @router.post("", response_model=TaskResponse, status_code=201)
    async def create_task(body: CreateTaskRequest) -> TaskResponse:
        engine = get_engine()
        try:
            task = engine.create_task(
                title=body.title,
                description=body.description,
                status=body.status,
                priority=body.priority,
                due_date=body.dueDate,
                tags=body.tags,
                shared_with=body.sharedWith,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StoreWriteError as e:
            raise _write_failed(e)
        return TaskResponse(task=task.to_dict())

    @router.get("/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str) -> TaskResponse:
        task = get_engine().get_task(task_id)
        if task is None:
            raise _not_found(task_id)
        return TaskResponse(task=task.to_dict())

    @router.patch("/{task_id}", response_model=TaskResponse)
    async def update_task(task_id: str, body: UpdateTaskRequest) -> TaskResponse:
        engine = get_engine()
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        try:
            task = engine.update_task(task_id, changes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StoreWriteError as e:
            raise _write_failed(e)
        if task is None:
            raise _not_found(task_id)
        return TaskResponse(task=task.to_dict())

    @router.delete("/{task_id}")
    async def delete_task(task_id: str) -> dict[str, str]:
        try:
            deleted = get_engine().delete_task(task_id)
        except StoreWriteError as e:
            raise _write_failed(e)
        if not deleted:
            raise _not_found(task_id)
        return {"status": "deleted"}

    @router.post("/{task_id}/cycle-status", response_model=TaskResponse)
    async def cycle_status(task_id: str) -> TaskResponse:
        try:
            task = get_engine().cycle_status(task_id)
        except StoreWriteError as e:
            raise _write_failed(e)
        if task is None:
            raise _not_found(task_id)
        return TaskResponse(task=task.to_dict())

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    @router.post("/{task_id}/share", response_model=ShareResponse)
    async def share_task(task_id: str, body: ShareRequest) -> ShareResponse:
        engine = get_engine()
        try:
            result = engine.share_task(task_id, body.identifier)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StoreWriteError as e:
            raise _write_failed(e)
        if result == ShareResult.NOT_FOUND:
            raise _not_found(task_id)
        if result == ShareResult.ALREADY_SHARED:
            raise HTTPException(
                status_code=409,
                detail=f"Task {task_id} is already shared with {body.identifier.strip()}",
            )
        task = engine.get_task(task_id)
        if task is None:
            raise _not_found(task_id)
        return ShareResponse(result=result.value, task=task.to_dict())

    @router.delete("/{task_id}/share/{identifier}", response_model=ShareResponse)
    async def unshare_task(task_id: str, identifier: str) -> ShareResponse:
        engine = get_engine()
        try:
            result = engine.unshare_task(task_id, identifier)
        except StoreWriteError as e:
            raise _write_failed(e)
        if result == ShareResult.NOT_FOUND:
            raise _not_found(task_id)
        if result == ShareResult.NOT_SHARED:
            raise HTTPException(
                status_code=404, detail=f"Task {task_id} is not shared with {identifier}"
            )
        task = engine.get_task(task_id)
        if task is None:
            raise _not_found(task_id)
        return ShareResponse(result=result.value, task=task.to_dict())

    return router
