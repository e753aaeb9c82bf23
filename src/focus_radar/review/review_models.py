# src/focus_radar/review/review_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..tasks.task_models import Task, TaskCategory, TaskStatus


class ActionType(StrEnum):
    UPDATE_EXISTING = "update_existing"
    CREATE_NEW = "create_new"


@dataclass(slots=True, frozen=True)
class ReviewAction:
    """
    One proposed mutation derived from a reflection.

    update_existing uses task_id / status_change / add_actual_hours;
    create_new uses title / category / estimate_hours / initial_actual_hours / status_change.
    """

    type: ActionType
    task_id: str | None = None
    title: str | None = None
    status_change: TaskStatus | None = None
    add_actual_hours: float | None = None
    initial_actual_hours: float | None = None
    estimate_hours: float | None = None
    category: TaskCategory | None = None


@dataclass(slots=True, frozen=True)
class ReviewSuggestion:
    date: str
    actions: tuple[ReviewAction, ...] = ()
    summary: str | None = None


@dataclass(slots=True, frozen=True)
class ReviewRequest:
    reflection: str
    tasks: tuple[Task, ...]
    date: str
    language: str = "en"

    def to_payload(self) -> dict[str, Any]:
        """Wire shape sent to the collaborator."""
        return {
            "tasks": [
                {
                    "id": t.id,
                    "title": t.title,
                    "status": t.status.value,
                    "estimate": t.estimate_hours,
                    "actual_so_far": t.actual_hours,
                }
                for t in self.tasks
            ],
            "reflection": self.reflection,
            "date": self.date,
            "language": self.language,
        }


@dataclass(slots=True)
class ApplyResult:
    """What apply() did: indices that produced mutations and indices dropped."""

    applied_indices: list[int] = field(default_factory=list)
    dropped_indices: list[int] = field(default_factory=list)
    created_task_ids: list[str] = field(default_factory=list)
    updated_task_ids: list[str] = field(default_factory=list)
