"""Task engine: the single owner of the task collection.

This is the primary entry-point for all task manipulation.  It keeps the
ordered collection in memory and writes the whole collection through a
:class:`TaskRepository` on every mutation, inside one lock, so the in-memory
state and the persisted blob never drift apart.  If a write fails the
in-memory collection is rolled back to what is still on disk.
"""

from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence, Union

from loguru import logger

from ..config import get_seed_defaults, get_storage_config, load_config
from ..constants import SHARE_IDENTIFIER_PATTERN
from ..logging_utils import pretty
from ..utils import MonotonicClock
from .errors import StoreWriteError
from .filters import TaskFilter, filter_tasks
from .fixtures import DEFAULT_TASKS_VERSION, default_tasks
from .model import Task, _generate_id, normalize_changes
from .stats import TaskStats, compute_stats
from .store import LocalStorage, TaskRepository

Listener = Callable[[str, Optional[Task]], None]

_SHARE_IDENTIFIER_RE = re.compile(SHARE_IDENTIFIER_PATTERN)


class ShareResult(str, Enum):
    """Outcome of a share/unshare request."""

    SHARED = "shared"
    ALREADY_SHARED = "already_shared"
    UNSHARED = "unshared"
    NOT_SHARED = "not_shared"
    NOT_FOUND = "not_found"


def validate_share_identifier(identifier: str) -> str:
    """Return the trimmed identifier or raise :class:`ValueError`."""
    value = (identifier or "").strip()
    if not value:
        raise ValueError("Share identifier must not be empty")
    if not _SHARE_IDENTIFIER_RE.match(value):
        raise ValueError(f"'{value}' is not a valid email address")
    return value


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------

class _TaskTx:
    """In-memory transaction over the task list.

    Mutations mark the transaction dirty; the engine persists the list when
    the transaction exits and rolls back if persisting fails.
    """

    def __init__(self, tasks: list[Task]) -> None:
        self.tasks = tasks
        self.dirty = False
        self.events: list[tuple[str, Optional[Task]]] = []
        self._index: dict[str, int] = {t.id: i for i, t in enumerate(tasks)}

    def get(self, task_id: str) -> Optional[Task]:
        idx = self._index.get(task_id)
        return self.tasks[idx] if idx is not None else None

    def add(self, task: Task) -> Task:
        if task.id in self._index:
            raise ValueError(f"Task {task.id} already exists")
        self._index[task.id] = len(self.tasks)
        self.tasks.append(task)
        self.dirty = True
        return task

    def update(self, task_id: str, changes: dict[str, Any], timestamp: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            return None
        for key, value in changes.items():
            setattr(task, key, value)
        task.touch(timestamp)
        self.dirty = True
        return task

    def remove(self, task_id: str) -> Optional[Task]:
        idx = self._index.pop(task_id, None)
        if idx is None:
            return None
        task = self.tasks.pop(idx)
        self._index = {t.id: i for i, t in enumerate(self.tasks)}
        self.dirty = True
        return task

    def emit(self, event: str, task: Optional[Task] = None) -> None:
        self.events.append((event, task.copy() if task is not None else None))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TaskEngine:
    """Own the task collection and keep it in sync with durable storage.

    Parameters
    ----------
    repository:
        Where the collection is persisted.
    defaults:
        Tasks to seed on first run (nothing stored yet).  ``None`` means the
        built-in example tasks; pass ``[]`` to start empty.

    Call :meth:`initialize` once before anything else.
    """

    def __init__(
        self,
        repository: TaskRepository,
        *,
        defaults: Optional[Sequence[Task]] = None,
    ) -> None:
        self._repository = repository
        self._defaults = list(defaults) if defaults is not None else default_tasks()
        self._tasks: list[Task] = []
        self._initialized = False
        self._lock = threading.RLock()
        self._clock = MonotonicClock()
        self._listeners: list[Listener] = []

    @classmethod
    def from_state_dir(cls, state_dir: Path) -> "TaskEngine":
        """Build an engine from ``<state_dir>/config.yaml`` (all keys optional)."""
        config, err = load_config(state_dir)
        if err:
            logger.warning("Ignoring unreadable config: {}", err)
        storage_cfg = get_storage_config(config, state_dir)
        repository = TaskRepository(LocalStorage(storage_cfg["dir"]), storage_cfg["key"])
        defaults: Optional[list[Task]] = None if get_seed_defaults(config) else []
        return cls(repository, defaults=defaults)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> list[Task]:
        """Load the stored collection, seeding the defaults on first run.

        Raises :class:`StoreLoadError` if stored data cannot be parsed; the
        stored blob is left untouched so the caller can decide to
        :meth:`reset` or stop.
        """
        events: list[tuple[str, Optional[Task]]] = []
        with self._lock:
            try:
                stored = self._repository.load()
            except Exception:
                logger.warning("Failed to load tasks from key={}", self._repository.key)
                raise
            if stored is None:
                tasks = [t.copy() for t in self._defaults]
                self._repository.save(tasks)
                events.append(("store.seeded", None))
                logger.info("Seeded {} default tasks (version {})", len(tasks), DEFAULT_TASKS_VERSION)
            else:
                tasks = stored
                logger.info("Loaded {} tasks from key={}", len(tasks), self._repository.key)
            for t in tasks:
                self._clock.observe(t.updated_at)
            self._tasks = tasks
            self._initialized = True
            result = [t.copy() for t in self._tasks]
        self._notify(events)
        return result

    def reset(self) -> list[Task]:
        """Discard whatever is stored and start over from the default tasks."""
        with self._lock:
            self._repository.clear()
            tasks = [t.copy() for t in self._defaults]
            self._repository.save(tasks)
            self._tasks = tasks
            self._initialized = True
            result = [t.copy() for t in self._tasks]
        logger.info("Reset store to {} default tasks (version {})", len(result), DEFAULT_TASKS_VERSION)
        self._notify([("store.reset", None)])
        return result

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("TaskEngine.initialize() must be called first")

    @contextmanager
    def _transaction(self) -> Iterator[_TaskTx]:
        """Apply mutations, persist the whole list, roll back on failure."""
        with self._lock:
            self._require_initialized()
            snapshot = [t.copy() for t in self._tasks]
            tx = _TaskTx(self._tasks)
            try:
                yield tx
                if tx.dirty:
                    self._repository.save(tx.tasks)
            except StoreWriteError:
                self._tasks = snapshot
                logger.warning("Persisting tasks failed; in-memory collection rolled back")
                raise
            except BaseException:
                self._tasks = snapshot
                raise
        self._notify(tx.events)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Call *callback(event, task)* after each persisted change.

        Returns a function that removes the subscription.
        """
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _notify(self, events: list[tuple[str, Optional[Task]]]) -> None:
        for event, task in events:
            for callback in list(self._listeners):
                try:
                    callback(event, task)
                except Exception:
                    logger.exception("Task listener failed for event {}", event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all(self) -> list[Task]:
        """Every task, in insertion order."""
        with self._lock:
            self._require_initialized()
            return [t.copy() for t in self._tasks]

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            self._require_initialized()
            for t in self._tasks:
                if t.id == task_id:
                    return t.copy()
        return None

    def filter(self, spec: Union[TaskFilter, dict[str, Any], None] = None) -> list[Task]:
        if spec is None:
            spec = TaskFilter()
        elif isinstance(spec, dict):
            spec = TaskFilter.from_dict(spec)
        return filter_tasks(self.get_all(), spec)

    def stats(self) -> TaskStats:
        with self._lock:
            self._require_initialized()
            return compute_stats(self._tasks)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        description: str = "",
        status: str = "todo",
        priority: str = "medium",
        due_date: str = "",
        tags: Optional[list[str]] = None,
        shared_with: Optional[list[str]] = None,
    ) -> Task:
        """Create and persist a new task at the end of the collection."""
        fields = normalize_changes({
            "title": title,
            "description": description,
            "status": status,
            "priority": priority,
            "due_date": due_date,
            "tags": list(tags or []),
            "shared_with": list(shared_with or []),
        })
        with self._transaction() as tx:
            now = self._clock.now_iso()
            task = Task(id=self._unique_id(tx), created_at=now, updated_at=now, **fields)
            tx.add(task)
            tx.emit("task.created", task)
            result = task.copy()

        logger.info("Created task {}: {}", result.id, result.title)
        return result

    @staticmethod
    def _unique_id(tx: _TaskTx) -> str:
        candidate = _generate_id()
        while tx.get(candidate) is not None:
            candidate = str(int(candidate) + 1)
        return candidate

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Optional[Task]:
        """Merge *changes* into a task.  Returns the updated task or None.

        Fields absent from *changes* keep their values; ``id``,
        ``createdAt`` and ``updatedAt`` cannot be overwritten.
        """
        normalized = normalize_changes(changes)
        with self._transaction() as tx:
            task = tx.update(task_id, normalized, self._clock.now_iso())
            if task is None:
                return None
            tx.emit("task.updated", task)
            result = task.copy()

        logger.debug("Updated task {} with changes:\n{}", task_id, pretty(normalized))
        return result

    def delete_task(self, task_id: str) -> bool:
        """Remove a task; returns False (and changes nothing) if it is absent."""
        with self._transaction() as tx:
            task = tx.remove(task_id)
            if task is None:
                return False
            tx.emit("task.deleted", task)

        logger.info("Deleted task {}", task_id)
        return True

    def cycle_status(self, task_id: str) -> Optional[Task]:
        """Advance status todo -> in-progress -> completed -> todo."""
        with self._lock:
            task = self.get_task(task_id)
            if task is None:
                return None
            return self.update_task(task_id, {"status": task.status.next()})

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    def share_task(self, task_id: str, identifier: str) -> ShareResult:
        """Add *identifier* to the task's ``shared_with`` list.

        Sharing is advisory: nothing is sent and no access is granted.
        """
        identifier = validate_share_identifier(identifier)
        with self._transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return ShareResult.NOT_FOUND
            if task.is_shared_with(identifier):
                return ShareResult.ALREADY_SHARED
            tx.update(task_id, {"shared_with": task.shared_with + [identifier]}, self._clock.now_iso())
            tx.emit("task.shared", task)

        logger.debug("Shared task {} with {}", task_id, identifier)
        return ShareResult.SHARED

    def unshare_task(self, task_id: str, identifier: str) -> ShareResult:
        identifier = (identifier or "").strip()
        with self._transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return ShareResult.NOT_FOUND
            if not task.is_shared_with(identifier):
                return ShareResult.NOT_SHARED
            remaining = [s for s in task.shared_with if s != identifier]
            tx.update(task_id, {"shared_with": remaining}, self._clock.now_iso())
            tx.emit("task.unshared", task)

        logger.debug("Unshared task {} from {}", task_id, identifier)
        return ShareResult.UNSHARED
