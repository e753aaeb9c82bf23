# src/focus_radar/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    DROPPED = "dropped"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(str(raw))
        except ValueError:
            return cls.TODO


class TaskCategory(StrEnum):
    PROJECT = "project"
    LEARNING = "learning"
    COMMUNICATION = "communication"
    MISC = "misc"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskCategory:
        if not raw:
            return cls.MISC
        try:
            return cls(str(raw))
        except ValueError:
            return cls.MISC


def next_status(status: TaskStatus) -> TaskStatus:
    """Status cycle used by the planning view: todo -> in_progress -> done -> dropped -> todo."""
    match status:
        case TaskStatus.TODO:
            return TaskStatus.IN_PROGRESS
        case TaskStatus.IN_PROGRESS:
            return TaskStatus.DONE
        case TaskStatus.DONE:
            return TaskStatus.DROPPED
        case TaskStatus.DROPPED:
            return TaskStatus.TODO


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    date: str  # YYYY-MM-DD
    category: TaskCategory
    status: TaskStatus
    estimate_hours: float
    actual_hours: float
    created_at: str  # ISO-8601 UTC
    updated_at: str  # ISO-8601 UTC

    description: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Persisted shape (camelCase field names)."""
        rec: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "category": self.category.value,
            "status": self.status.value,
            "estimateHours": self.estimate_hours,
            "actualHours": self.actual_hours,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.description is not None:
            rec["description"] = self.description
        return rec

    @classmethod
    def from_record(cls, rec: dict[str, Any]) -> Task:
        """
        Build a Task from a persisted record.

        Raises KeyError/TypeError/ValueError on records missing id/title/date
        or carrying non-numeric hours; enum fields fall back to defaults.
        """
        desc = rec.get("description")
        return cls(
            id=str(rec["id"]),
            title=str(rec["title"]),
            date=str(rec["date"]),
            category=TaskCategory.from_raw(rec.get("category")),
            status=TaskStatus.from_raw(rec.get("status")),
            estimate_hours=float(rec.get("estimateHours") or 0.0),
            actual_hours=float(rec.get("actualHours") or 0.0),
            created_at=str(rec.get("createdAt") or ""),
            updated_at=str(rec.get("updatedAt") or ""),
            description=None if desc is None else str(desc),
        )


def new_task_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def iso_timestamp(now: datetime | None = None) -> str:
    dt = now if now is not None else utc_now()
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_str(now: datetime | None = None) -> str:
    """Calendar day (UTC) in YYYY-MM-DD form."""
    dt = now if now is not None else utc_now()
    return dt.astimezone(UTC).date().isoformat()
