# src/focus_radar/stats.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from .tasks.task_models import Task, TaskStatus

UNDERESTIMATE_THRESHOLD = 1.2
CAUTIOUS_THRESHOLD = 0.8


class CalibrationVerdict(StrEnum):
    UNDERESTIMATE = "underestimate"  # actual well above plan
    CAUTIOUS = "cautious"  # actual well below plan
    REALISTIC = "realistic"


@dataclass(slots=True, frozen=True)
class DayStats:
    date: str
    estimated: float
    actual: float

    @property
    def over_budget(self) -> bool:
        return self.actual > self.estimated


@dataclass(slots=True, frozen=True)
class WeeklyStats:
    days: tuple[DayStats, ...]
    total_estimate: float
    total_actual: float
    error_factor: float

    @property
    def verdict(self) -> CalibrationVerdict:
        if self.error_factor > UNDERESTIMATE_THRESHOLD:
            return CalibrationVerdict.UNDERESTIMATE
        if self.error_factor < CAUTIOUS_THRESHOLD:
            return CalibrationVerdict.CAUTIOUS
        return CalibrationVerdict.REALISTIC


def _counts_towards_stats(task: Task) -> bool:
    match task.status:
        case TaskStatus.DROPPED:
            return False
        case TaskStatus.TODO | TaskStatus.IN_PROGRESS | TaskStatus.DONE:
            return True


def error_factor(total_actual: float, total_estimate: float) -> float:
    """actual / estimate rounded to 2 decimals; 0.0 when nothing was estimated."""
    if total_estimate <= 0:
        return 0.0
    return round(total_actual / total_estimate, 2)


def format_error_factor(value: float) -> str:
    return f"{value:.2f}"


def compute_weekly_stats(tasks: Iterable[Task], today: date, *, days: int = 7) -> WeeklyStats:
    """Per-day estimate vs actual for the `days` days ending today (oldest first)."""
    by_date: dict[str, list[Task]] = {}
    for t in tasks:
        if _counts_towards_stats(t):
            by_date.setdefault(t.date, []).append(t)

    out: list[DayStats] = []
    total_est = 0.0
    total_act = 0.0
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        day_tasks = by_date.get(day, [])
        est = sum(t.estimate_hours for t in day_tasks)
        act = sum(t.actual_hours for t in day_tasks)
        total_est += est
        total_act += act
        out.append(DayStats(date=day, estimated=est, actual=act))

    return WeeklyStats(
        days=tuple(out),
        total_estimate=total_est,
        total_actual=total_act,
        error_factor=error_factor(total_act, total_est),
    )
