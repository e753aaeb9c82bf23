# tests/test_review_engine.py

from __future__ import annotations

import pytest

from focus_radar.review.engine import (
    ANALYSIS_ERROR_MESSAGE,
    ReviewSession,
    ReviewState,
    build_mutations,
    select_candidate_tasks,
)
from focus_radar.review.review_models import ActionType, ApplyResult, ReviewAction, ReviewSuggestion
from focus_radar.tasks.task_models import TaskCategory, TaskStatus
from focus_radar.tasks.task_store import TaskStore

from .fakes import FIXED_NOW, TODAY, FakeCollaborator, make_task


def _session(store: TaskStore, collaborator: FakeCollaborator, **kwargs) -> ReviewSession:
    return ReviewSession(store, collaborator, clock=lambda: FIXED_NOW, **kwargs)


def _update(task_id: str, **kwargs) -> ReviewAction:
    return ReviewAction(type=ActionType.UPDATE_EXISTING, task_id=task_id, **kwargs)


def _create(**kwargs) -> ReviewAction:
    return ReviewAction(type=ActionType.CREATE_NEW, **kwargs)


# ---- scope selection ----


def test_in_progress_carry_over_is_in_scope() -> None:
    old = make_task(
        "a", date="2024-01-01", status=TaskStatus.IN_PROGRESS, estimate_hours=2, actual_hours=0
    )
    old_done = make_task("b", date="2024-01-01", status=TaskStatus.DONE)
    today = make_task("c", date=TODAY, status=TaskStatus.TODO)

    picked = select_candidate_tasks([old, old_done, today], TODAY)

    assert [t.id for t in picked] == ["a", "c"]


def test_request_carries_candidates_language_and_date(store: TaskStore) -> None:
    store.add(make_task("a", date="2023-12-30", status=TaskStatus.IN_PROGRESS, actual_hours=1))
    store.add(make_task("b"))
    store.add(make_task("old", date="2023-12-30"))
    collaborator = FakeCollaborator()
    session = _session(store, collaborator, language="zh")

    session.analyze("  spent 2h on a  ")

    (request,) = collaborator.requests
    assert request.reflection == "spent 2h on a"
    assert request.date == TODAY
    assert request.language == "zh"
    payload = request.to_payload()
    assert [t["id"] for t in payload["tasks"]] == ["a", "b"]
    assert payload["tasks"][0] == {
        "id": "a",
        "title": "Task a",
        "status": "in_progress",
        "estimate": 2.0,
        "actual_so_far": 1,
    }


# ---- state machine ----


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_reflection_makes_no_request(store: TaskStore, text: str) -> None:
    collaborator = FakeCollaborator()
    session = _session(store, collaborator)

    assert session.analyze(text) is None
    assert collaborator.requests == []
    assert session.state == ReviewState.IDLE


def test_success_preselects_every_action(store: TaskStore) -> None:
    store.add(make_task("a"))
    suggestion = ReviewSuggestion(
        date=TODAY, summary="Nice", actions=(_update("a", add_actual_hours=1), _create(title="x"))
    )
    session = _session(store, FakeCollaborator(suggestion))

    assert session.analyze("did stuff") is suggestion
    assert session.state == ReviewState.SUGGESTED
    assert session.accepted == {0, 1}


def test_failure_returns_to_idle_with_error_and_no_mutation(store: TaskStore) -> None:
    store.add(make_task("a"))
    before = store.list_tasks()
    session = _session(store, FakeCollaborator(fail=True))

    assert session.analyze("did stuff") is None
    assert session.state == ReviewState.IDLE
    assert session.last_error == ANALYSIS_ERROR_MESSAGE
    assert session.suggestion is None
    assert store.list_tasks() == before


def test_error_is_cleared_on_retry(store: TaskStore) -> None:
    collaborator = FakeCollaborator(fail=True)
    session = _session(store, collaborator)
    session.analyze("first")
    collaborator.fail = False

    session.analyze("second")

    assert session.last_error is None
    assert session.state == ReviewState.SUGGESTED


def test_concurrent_analyze_is_ignored(store: TaskStore) -> None:
    nested: list[object] = []
    collaborator = FakeCollaborator()
    session = _session(store, collaborator)
    collaborator.hook = lambda: nested.append(session.analyze("again"))

    session.analyze("first")

    assert nested == [None]
    assert len(collaborator.requests) == 1
    assert session.state == ReviewState.SUGGESTED


def test_late_response_after_abandon_is_dropped(store: TaskStore) -> None:
    suggestion = ReviewSuggestion(date=TODAY, actions=(_create(title="x"),))
    collaborator = FakeCollaborator(suggestion)
    session = _session(store, collaborator)
    collaborator.hook = session.abandon

    assert session.analyze("did stuff") is None
    assert session.state == ReviewState.IDLE
    assert session.suggestion is None


def test_toggle_and_discard(store: TaskStore) -> None:
    suggestion = ReviewSuggestion(date=TODAY, actions=(_create(title="x"), _create(title="y")))
    session = _session(store, FakeCollaborator(suggestion))
    session.analyze("did stuff")

    assert session.toggle(1) is False
    assert session.accepted == {0}
    assert session.toggle(1) is True
    session.set_accepted(0, False)
    assert session.accepted == {1}
    with pytest.raises(IndexError):
        session.toggle(5)

    session.discard()

    assert session.state == ReviewState.IDLE
    assert session.suggestion is None
    assert store.count() == 0
    assert session.reflection == "did stuff"


# ---- apply ----


def test_apply_builds_one_batch_and_signals_completion(store: TaskStore) -> None:
    store.add(make_task("a", actual_hours=1))
    suggestion = ReviewSuggestion(
        date=TODAY,
        actions=(
            _update("a", status_change=TaskStatus.DONE, add_actual_hours=2),
            _create(title="Emails", category=TaskCategory.COMMUNICATION, initial_actual_hours=0.5),
            _create(title="rejected"),
        ),
    )
    applied: list[ApplyResult] = []
    events: list[object] = []
    store.add_listener(events.append)
    session = _session(store, FakeCollaborator(suggestion), on_applied=applied.append)
    session.analyze("finished a, did emails")
    session.toggle(2)

    result = session.apply()

    assert result is not None and applied == [result]
    assert result.applied_indices == [0, 1]
    assert len(events) == 1
    a = store.get("a")
    assert a.status == TaskStatus.DONE
    assert a.actual_hours == 3
    assert a.updated_at == "2024-01-02T18:30:00.000Z"
    assert a.date == TODAY
    titles = [t.title for t in store.list_tasks()]
    assert titles == ["Task a", "Emails"]
    assert session.state == ReviewState.IDLE
    assert session.suggestion is None
    assert session.reflection == ""


def test_add_actual_hours_accumulates_across_actions(store: TaskStore) -> None:
    store.add(make_task("a"))
    suggestion = ReviewSuggestion(
        date=TODAY, actions=(_update("a", add_actual_hours=2), _update("a", add_actual_hours=3))
    )
    session = _session(store, FakeCollaborator(suggestion))
    session.analyze("worked on a twice")

    session.apply()

    assert store.get("a").actual_hours == 5


def test_add_actual_hours_accumulates_across_reviews(store: TaskStore) -> None:
    store.add(make_task("a"))
    collaborator = FakeCollaborator(
        ReviewSuggestion(date=TODAY, actions=(_update("a", add_actual_hours=2),))
    )
    session = _session(store, collaborator)
    session.analyze("morning")
    session.apply()

    collaborator.suggestion = ReviewSuggestion(date=TODAY, actions=(_update("a", add_actual_hours=3),))
    session.analyze("afternoon")
    session.apply()

    assert store.get("a").actual_hours == 5


def test_unknown_task_id_is_dropped_without_error(store: TaskStore) -> None:
    store.add(make_task("a"))
    suggestion = ReviewSuggestion(
        date=TODAY,
        actions=(_update("nope", add_actual_hours=1), _update("a", add_actual_hours=1)),
    )
    session = _session(store, FakeCollaborator(suggestion))
    session.analyze("x")

    result = session.apply()

    assert result.dropped_indices == [0]
    assert result.applied_indices == [1]
    assert store.count() == 1
    assert store.get("a").actual_hours == 1


def test_create_new_defaults() -> None:
    suggestion = ReviewSuggestion(date="1999-12-31", actions=(_create(),))

    mutations, result = build_mutations(suggestion, {0}, [], today=TODAY, now=FIXED_NOW)

    (m,) = mutations
    assert m.task_id is None
    task = m.task
    assert task.title == "Untitled Task"
    assert task.status == TaskStatus.DONE
    assert task.estimate_hours == 1
    assert task.actual_hours == 0
    assert task.category == TaskCategory.MISC
    assert task.date == TODAY
    assert task.created_at == task.updated_at == "2024-01-02T18:30:00.000Z"
    assert result.created_task_ids == [task.id]


@pytest.mark.parametrize(("estimate", "expected"), [(0, 1.0), (0.0, 1.0), (2.5, 2.5)])
def test_create_new_zero_estimate_falls_back_to_default(estimate: float, expected: float) -> None:
    suggestion = ReviewSuggestion(date=TODAY, actions=(_create(title="x", estimate_hours=estimate),))

    (m,), _ = build_mutations(suggestion, {0}, [], today=TODAY, now=FIXED_NOW)

    assert m.task.estimate_hours == expected


def test_create_new_ids_are_fresh() -> None:
    suggestion = ReviewSuggestion(date=TODAY, actions=(_create(title="x"), _create(title="x")))
    mutations, _ = build_mutations(suggestion, {0, 1}, [], today=TODAY, now=FIXED_NOW)
    assert mutations[0].task.id != mutations[1].task.id


def test_empty_actions_apply_is_a_noop_that_clears_state(store: TaskStore) -> None:
    store.add(make_task("a"))
    before = store.list_tasks()
    session = _session(store, FakeCollaborator(ReviewSuggestion(date=TODAY, actions=())))

    assert session.analyze("nothing much") is not None
    assert session.state == ReviewState.SUGGESTED
    assert session.accepted == set()

    result = session.apply()

    assert result is not None
    assert result.applied_indices == []
    assert store.list_tasks() == before
    assert session.state == ReviewState.IDLE
    assert session.suggestion is None


def test_apply_without_suggestion_does_nothing(store: TaskStore) -> None:
    session = _session(store, FakeCollaborator())
    assert session.apply() is None
