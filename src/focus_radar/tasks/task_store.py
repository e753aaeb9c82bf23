# src/focus_radar/tasks/task_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from ..core.errors import ValidationError
from ..core.ports import TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)


class StoreEventKind(StrEnum):
    LOADED = "loaded"
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    BATCH_APPLIED = "batch_applied"


@dataclass(slots=True, frozen=True)
class StoreEvent:
    kind: StoreEventKind
    tasks: tuple[Task, ...]


@dataclass(slots=True, frozen=True)
class TaskMutation:
    """
    One batch entry.

    task_id set   -> replace the task with that id by `task`
    task_id None  -> append `task`
    """

    task: Task
    task_id: str | None = None


@dataclass(slots=True)
class BatchResult:
    replaced: list[str] = field(default_factory=list)
    appended: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.replaced) + len(self.appended)


StoreListener = Callable[[StoreEvent], None]


class TaskStore:
    """
    In-memory authoritative task collection for the running session.

    - load from the injected repo on init, final save on close()
    - every mutation saves (fire-and-forget: failures are logged by the repo,
      in-memory state is never rolled back)
    - listeners get one event per mutation; apply_batch emits exactly one

    Mutations build a new list and swap it in, so readers never observe
    a partially applied batch.
    """

    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo
        self._lock = threading.RLock()
        self._listeners: list[StoreListener] = []
        self._tasks: list[Task] = list(repo.load_tasks())
        logger.info("TaskStore ready total=%d", len(self._tasks))

    def close(self) -> None:
        with self._lock:
            self._repo.save_tasks(self._tasks)
        logger.info("TaskStore closed total=%d", len(self._tasks))

    # ---- observers ----

    def add_listener(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self, tasks: list[Task], kind: StoreEventKind) -> None:
        # caller holds the lock
        self._tasks = tasks
        self._repo.save_tasks(tasks)
        event = StoreEvent(kind=kind, tasks=tuple(tasks))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Store listener failed on %s", kind.value)

    # ---- reads ----

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            for t in self._tasks:
                if t.id == task_id:
                    return t
        return None

    def count(self) -> int:
        with self._lock:
            return len(self._tasks)

    # ---- mutations ----

    def add(self, task: Task) -> None:
        if not task.title or not task.title.strip():
            raise ValidationError("title is required")
        with self._lock:
            if any(t.id == task.id for t in self._tasks):
                raise ValidationError(f"duplicate task id: {task.id}")
            self._commit([*self._tasks, task], StoreEventKind.ADDED)
        logger.debug("Task added id=%s date=%s status=%s", task.id, task.date, task.status.value)

    def update(self, task: Task) -> None:
        """Replace by id. Unknown id is a no-op; callers check existence first."""
        with self._lock:
            if not any(t.id == task.id for t in self._tasks):
                logger.debug("Task update ignored (unknown id=%s)", task.id)
                return
            self._commit(
                [task if t.id == task.id else t for t in self._tasks],
                StoreEventKind.UPDATED,
            )

    def delete(self, task_id: str) -> None:
        with self._lock:
            remaining = [t for t in self._tasks if t.id != task_id]
            if len(remaining) == len(self._tasks):
                return
            self._commit(remaining, StoreEventKind.DELETED)
        logger.debug("Task deleted id=%s", task_id)

    def apply_batch(self, mutations: Iterable[TaskMutation]) -> BatchResult:
        """
        Apply mixed replace/append entries in order, as one commit.

        A replace whose target id is absent is skipped (logged); the other
        entries still apply. An append whose id already exists is skipped too.
        """
        entries: Sequence[TaskMutation] = list(mutations)
        result = BatchResult()

        with self._lock:
            nxt = list(self._tasks)
            for m in entries:
                if m.task_id is not None:
                    idx = next((i for i, t in enumerate(nxt) if t.id == m.task_id), None)
                    if idx is None:
                        logger.warning("Batch replace skipped: no task id=%s", m.task_id)
                        result.skipped.append(m.task_id)
                        continue
                    nxt[idx] = m.task
                    result.replaced.append(m.task_id)
                else:
                    if any(t.id == m.task.id for t in nxt):
                        logger.warning("Batch append skipped: duplicate id=%s", m.task.id)
                        result.skipped.append(m.task.id)
                        continue
                    nxt.append(m.task)
                    result.appended.append(m.task.id)

            self._commit(nxt, StoreEventKind.BATCH_APPLIED)

        logger.info(
            "Batch applied replaced=%d appended=%d skipped=%d",
            len(result.replaced),
            len(result.appended),
            len(result.skipped),
        )
        return result
