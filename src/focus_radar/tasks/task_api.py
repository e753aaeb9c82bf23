# src/focus_radar/tasks/task_api.py

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime

from ..core.errors import ValidationError
from .task_models import (
    Task,
    TaskCategory,
    TaskStatus,
    iso_timestamp,
    new_task_id,
    next_status,
    today_str,
    utc_now,
)
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def todays_tasks(store: TaskStore, today: str | None = None) -> list[Task]:
    day = today or today_str()
    return [t for t in store.list_tasks() if t.date == day]


def create_task(
    store: TaskStore,
    *,
    title: str,
    estimate_hours: float = 1.0,
    category: TaskCategory = TaskCategory.PROJECT,
    description: str | None = None,
    now: datetime | None = None,
) -> Task | None:
    """
    Plan a new task for today.
    Blank title -> None (nothing created), like an empty form submit.
    """
    if not title or not title.strip():
        return None
    if estimate_hours < 0:
        raise ValidationError("estimate_hours must be non-negative")

    now = now or utc_now()
    stamp = iso_timestamp(now)
    task = Task(
        id=new_task_id(),
        title=title.strip(),
        date=today_str(now),
        category=category,
        status=TaskStatus.TODO,
        estimate_hours=float(estimate_hours),
        actual_hours=0.0,
        created_at=stamp,
        updated_at=stamp,
        description=description,
    )
    store.add(task)
    return task


def cycle_status(store: TaskStore, task_id: str) -> Task | None:
    task = store.get(task_id)
    if task is None:
        return None
    updated = dataclasses.replace(task, status=next_status(task.status), updated_at=iso_timestamp())
    store.update(updated)
    logger.debug("Task status cycled id=%s %s -> %s", task_id, task.status, updated.status)
    return updated


def edit_task(
    store: TaskStore,
    task_id: str,
    *,
    title: str | None = None,
    category: TaskCategory | None = None,
    estimate_hours: float | None = None,
    description: str | None = None,
) -> Task | None:
    task = store.get(task_id)
    if task is None:
        return None

    changes: dict[str, object] = {}
    if title is not None:
        if not title.strip():
            raise ValidationError("title is required")
        changes["title"] = title.strip()
    if category is not None:
        changes["category"] = category
    if estimate_hours is not None:
        if estimate_hours < 0:
            raise ValidationError("estimate_hours must be non-negative")
        changes["estimate_hours"] = float(estimate_hours)
    if description is not None:
        changes["description"] = description

    if not changes:
        return task

    updated = dataclasses.replace(task, **changes, updated_at=iso_timestamp())
    store.update(updated)
    return updated


def log_hours(store: TaskStore, task_id: str, hours: float) -> Task | None:
    """Add performed hours to a task (actual hours never decrease)."""
    if hours < 0:
        raise ValidationError("hours must be non-negative")
    task = store.get(task_id)
    if task is None:
        return None
    updated = dataclasses.replace(
        task, actual_hours=task.actual_hours + float(hours), updated_at=iso_timestamp()
    )
    store.update(updated)
    return updated


def delete_task(store: TaskStore, task_id: str) -> None:
    store.delete(task_id)
