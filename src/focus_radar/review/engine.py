# src/focus_radar/review/engine.py

"""
Reconciliation engine.

Flow:
  idle --analyze--> analyzing --ok--> suggested --apply--> idle (batch emitted)
  analyzing --fail--> idle (last_error set)
  suggested --discard--> idle (nothing emitted)

The pure part (select_candidate_tasks / build_mutations) is separate from the
session object that holds UI-facing state and talks to the store.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from enum import StrEnum

from ..core.errors import AnalysisFailed
from ..core.ports import ReviewCollaborator
from ..tasks.task_models import (
    Task,
    TaskCategory,
    TaskStatus,
    iso_timestamp,
    new_task_id,
    today_str,
    utc_now,
)
from ..tasks.task_store import TaskMutation, TaskStore
from .review_models import ActionType, ApplyResult, ReviewAction, ReviewRequest, ReviewSuggestion

logger = logging.getLogger(__name__)

UNTITLED_TASK = "Untitled Task"
DEFAULT_NEW_ESTIMATE_HOURS = 1.0
ANALYSIS_ERROR_MESSAGE = "Could not analyze your reflection. Please try again."


class ReviewState(StrEnum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SUGGESTED = "suggested"


def select_candidate_tasks(tasks: Iterable[Task], today: str) -> list[Task]:
    """Today's tasks plus any in_progress carry-over, in store order."""
    return [t for t in tasks if t.date == today or t.status == TaskStatus.IN_PROGRESS]


def _new_task_from_action(action: ReviewAction, *, today: str, stamp: str) -> Task:
    title = (action.title or "").strip() or UNTITLED_TASK
    return Task(
        id=new_task_id(),
        title=title,
        date=today,
        category=action.category or TaskCategory.MISC,
        status=action.status_change or TaskStatus.DONE,
        # a zero estimate is treated as missing
        estimate_hours=float(action.estimate_hours or DEFAULT_NEW_ESTIMATE_HOURS),
        actual_hours=float(action.initial_actual_hours or 0.0),
        created_at=stamp,
        updated_at=stamp,
    )


def build_mutations(
    suggestion: ReviewSuggestion,
    accepted: Iterable[int],
    tasks: Sequence[Task],
    *,
    today: str,
    now: datetime | None = None,
) -> tuple[list[TaskMutation], ApplyResult]:
    """
    Translate accepted actions into store mutations (no side effects).

    Updates resolve against the tasks as modified by earlier actions of the
    same batch, so two accepted deltas on one task accumulate.
    An update_existing whose taskId does not resolve is dropped.
    """
    accepted_set = set(accepted)
    stamp = iso_timestamp(now)
    working: dict[str, Task] = {t.id: t for t in tasks}

    mutations: list[TaskMutation] = []
    result = ApplyResult()

    for index, action in enumerate(suggestion.actions):
        if index not in accepted_set:
            continue

        match action.type:
            case ActionType.UPDATE_EXISTING:
                existing = working.get(action.task_id) if action.task_id else None
                if existing is None:
                    logger.warning(
                        "Dropping update_existing #%d: unknown taskId=%s", index, action.task_id
                    )
                    result.dropped_indices.append(index)
                    continue

                updated = existing
                if action.status_change is not None:
                    updated = dataclasses.replace(updated, status=action.status_change)
                if action.add_actual_hours:
                    updated = dataclasses.replace(
                        updated, actual_hours=updated.actual_hours + action.add_actual_hours
                    )
                updated = dataclasses.replace(updated, updated_at=stamp)

                working[updated.id] = updated
                mutations.append(TaskMutation(task=updated, task_id=updated.id))
                result.applied_indices.append(index)
                result.updated_task_ids.append(updated.id)

            case ActionType.CREATE_NEW:
                task = _new_task_from_action(action, today=today, stamp=stamp)
                working[task.id] = task
                mutations.append(TaskMutation(task=task))
                result.applied_indices.append(index)
                result.created_task_ids.append(task.id)

    return mutations, result


class ReviewSession:
    """
    Holds one review flow: reflection, suggestion, accepted indices.

    The collaborator call is the only blocking step. While it runs the session
    is ANALYZING and further analyze() calls are ignored. abandon() bumps a
    generation counter so a late response is dropped instead of displayed.
    """

    def __init__(
        self,
        store: TaskStore,
        collaborator: ReviewCollaborator,
        *,
        language: str = "en",
        clock: Callable[[], datetime] = utc_now,
        on_applied: Callable[[ApplyResult], None] | None = None,
    ) -> None:
        self._store = store
        self._collaborator = collaborator
        self._clock = clock
        self._lock = threading.Lock()
        self._generation = 0

        self.language = language
        self.on_applied = on_applied

        self.state = ReviewState.IDLE
        self.reflection = ""
        self.suggestion: ReviewSuggestion | None = None
        self.accepted: set[int] = set()
        self.last_error: str | None = None

    # ---- queries ----

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> str:
        return today_str(self._clock())

    def candidate_tasks(self) -> list[Task]:
        return select_candidate_tasks(self._store.list_tasks(), self.today())

    # ---- transitions ----

    def analyze(self, reflection: str) -> ReviewSuggestion | None:
        text = (reflection or "").strip()
        if not text:
            return None

        with self._lock:
            if self.state != ReviewState.IDLE:
                logger.debug("analyze ignored in state=%s", self.state.value)
                return None
            self.state = ReviewState.ANALYZING
            self.reflection = reflection
            self.last_error = None
            self._generation += 1
            generation = self._generation

        request = ReviewRequest(
            reflection=text,
            tasks=tuple(self.candidate_tasks()),
            date=self.today(),
            language=self.language,
        )
        logger.info(
            "Review analyze started tasks=%d len=%d lang=%s",
            len(request.tasks),
            len(text),
            request.language,
        )

        try:
            suggestion = self._collaborator.analyze(request)
        except Exception as e:
            if not isinstance(e, AnalysisFailed):
                logger.exception("Review collaborator crashed")
            with self._lock:
                if generation == self._generation:
                    self.state = ReviewState.IDLE
                    self.last_error = ANALYSIS_ERROR_MESSAGE
            return None

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding late review response (session abandoned)")
                return None
            self.suggestion = suggestion
            self.accepted = set(range(len(suggestion.actions)))
            self.state = ReviewState.SUGGESTED
        return suggestion

    def toggle(self, index: int) -> bool:
        """Flip one action in/out of the accepted set; returns the new value."""
        with self._lock:
            if self.suggestion is None:
                raise RuntimeError("no suggestion to toggle")
            if not 0 <= index < len(self.suggestion.actions):
                raise IndexError(f"action index out of range: {index}")
            if index in self.accepted:
                self.accepted.discard(index)
                return False
            self.accepted.add(index)
            return True

    def set_accepted(self, index: int, accepted: bool) -> None:
        if self.is_accepted(index) != accepted:
            self.toggle(index)

    def is_accepted(self, index: int) -> bool:
        return index in self.accepted

    def apply(self) -> ApplyResult | None:
        with self._lock:
            if self.state != ReviewState.SUGGESTED or self.suggestion is None:
                return None
            suggestion = self.suggestion
            accepted = set(self.accepted)

        now = self._clock()
        mutations, result = build_mutations(
            suggestion,
            accepted,
            self._store.list_tasks(),
            today=today_str(now),
            now=now,
        )
        self._store.apply_batch(mutations)

        with self._lock:
            self._reset()
            self.reflection = ""

        logger.info(
            "Review applied actions=%d dropped=%d",
            len(result.applied_indices),
            len(result.dropped_indices),
        )
        if self.on_applied is not None:
            self.on_applied(result)
        return result

    def discard(self) -> None:
        with self._lock:
            if self.state != ReviewState.SUGGESTED:
                return
            self._reset()

    def abandon(self) -> None:
        """Navigation away: forget everything, including an in-flight request."""
        with self._lock:
            self._reset()
            self.reflection = ""
            self.last_error = None

    def _reset(self) -> None:
        # caller holds the lock
        self._generation += 1
        self.state = ReviewState.IDLE
        self.suggestion = None
        self.accepted = set()
