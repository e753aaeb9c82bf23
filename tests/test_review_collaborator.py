# tests/test_review_collaborator.py

from __future__ import annotations

import json

import pytest

from focus_radar.core.errors import AnalysisFailed
from focus_radar.llm.offline import OfflineLLMClient
from focus_radar.review.collaborator import (
    REVIEW_SYSTEM_PROMPT,
    LLMReviewCollaborator,
    build_review_prompt,
    parse_suggestion,
)
from focus_radar.review.review_models import ActionType, ReviewRequest
from focus_radar.tasks.task_models import TaskCategory, TaskStatus

from .fakes import TODAY, FakeLLMClient, make_task


def _request(language: str = "en") -> ReviewRequest:
    return ReviewRequest(
        reflection="Finished the report, 3h. Also answered emails for an hour.",
        tasks=(make_task("t1", title="Write report"),),
        date=TODAY,
        language=language,
    )


def test_analyze_parses_actions() -> None:
    llm = FakeLLMClient()
    llm.reply_with(
        {
            "date": TODAY,
            "summary": "Solid day.",
            "actions": [
                {
                    "type": "update_existing",
                    "taskId": "t1",
                    "statusChange": "done",
                    "addActualHours": 3,
                },
                {
                    "type": "create_new",
                    "title": "Emails",
                    "category": "communication",
                    "initialActualHours": 1,
                    "estimateHours": 0.5,
                },
            ],
        }
    )

    suggestion = LLMReviewCollaborator(llm).analyze(_request())

    assert suggestion.date == TODAY
    assert suggestion.summary == "Solid day."
    update, create = suggestion.actions
    assert update.type == ActionType.UPDATE_EXISTING
    assert update.task_id == "t1"
    assert update.status_change == TaskStatus.DONE
    assert update.add_actual_hours == 3.0
    assert create.type == ActionType.CREATE_NEW
    assert create.category == TaskCategory.COMMUNICATION
    assert create.initial_actual_hours == 1.0
    assert create.estimate_hours == 0.5

    ((messages, system_prompt),) = llm.calls
    assert system_prompt == REVIEW_SYSTEM_PROMPT
    assert messages[-1]["role"] == "user"


def test_prompt_contains_date_language_tasks_and_reflection() -> None:
    prompt = build_review_prompt(_request(language="zh"))

    assert prompt.startswith(f"Context Date: {TODAY}")
    assert "Chinese (Simplified) (zh)" in prompt
    assert '"id": "t1"' in prompt
    assert '"actual_so_far": 0.0' in prompt
    assert "Finished the report, 3h." in prompt


def test_null_optional_fields_are_absent() -> None:
    raw = json.dumps(
        {
            "date": TODAY,
            "summary": None,
            "actions": [{"type": "update_existing", "taskId": "t1", "statusChange": None}],
        }
    )

    suggestion = parse_suggestion(raw)

    assert suggestion.summary is None
    (action,) = suggestion.actions
    assert action.status_change is None
    assert action.add_actual_hours is None


def test_json_wrapped_in_prose_is_extracted() -> None:
    raw = 'Here you go:\n```json\n{"date": "2024-01-02", "actions": []}\n```'
    assert parse_suggestion(raw).actions == ()


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "not json at all",
        "[1, 2]",
        json.dumps({"actions": []}),
        json.dumps({"date": TODAY}),
        json.dumps({"date": TODAY, "actions": {}}),
        json.dumps({"date": TODAY, "actions": ["x"]}),
        json.dumps({"date": TODAY, "actions": [{"type": "rename"}]}),
        json.dumps({"date": TODAY, "actions": [{"type": "create_new", "statusChange": "paused"}]}),
        json.dumps({"date": TODAY, "actions": [{"type": "create_new", "category": "sport"}]}),
        json.dumps({"date": TODAY, "actions": [{"type": "create_new", "estimateHours": "2h"}]}),
        json.dumps({"date": TODAY, "actions": [{"type": "create_new", "estimateHours": True}]}),
        json.dumps(
            {"date": TODAY, "actions": [{"type": "update_existing", "taskId": "t1", "addActualHours": -1}]}
        ),
    ],
)
def test_schema_violations_fail_without_partial_recovery(raw: str) -> None:
    with pytest.raises(AnalysisFailed):
        parse_suggestion(raw)


def test_llm_error_becomes_analysis_failed() -> None:
    llm = FakeLLMClient(error=RuntimeError("network down"))

    with pytest.raises(AnalysisFailed):
        LLMReviewCollaborator(llm).analyze(_request())


def test_bad_reply_becomes_analysis_failed() -> None:
    llm = FakeLLMClient(next_text="Sorry, I can't help with that.")

    with pytest.raises(AnalysisFailed):
        LLMReviewCollaborator(llm).analyze(_request())


def test_offline_client_yields_valid_empty_suggestion() -> None:
    suggestion = LLMReviewCollaborator(OfflineLLMClient()).analyze(_request())

    assert suggestion.date == TODAY
    assert suggestion.actions == ()
    assert suggestion.summary


@pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity", "1e400"])
def test_non_finite_hours_are_rejected(token: str) -> None:
    raw = (
        f'{{"date": "{TODAY}", "actions": '
        f'[{{"type": "update_existing", "taskId": "t1", "addActualHours": {token}}}]}}'
    )

    with pytest.raises(AnalysisFailed):
        parse_suggestion(raw)


def test_non_finite_initial_hours_are_rejected() -> None:
    raw = f'{{"date": "{TODAY}", "actions": [{{"type": "create_new", "initialActualHours": Infinity}}]}}'

    with pytest.raises(AnalysisFailed):
        parse_suggestion(raw)
