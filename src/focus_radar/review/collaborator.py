# src/focus_radar/review/collaborator.py

"""
LLM-backed review collaborator.

Builds a prompt from a ReviewRequest, streams the reply from the configured
LLM client and parses it into a ReviewSuggestion.

Strict: any transport error, empty reply, bad JSON or schema violation
becomes AnalysisFailed. No partial recovery of malformed payloads.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from ..core.errors import AnalysisFailed
from ..core.ports import LLMClient
from ..tasks.task_models import TaskCategory, TaskStatus
from .review_models import ActionType, ReviewAction, ReviewRequest, ReviewSuggestion

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "zh": "Chinese (Simplified)",
}

REVIEW_SYSTEM_PROMPT = """
You are the daily review module of a productivity app called "Focus Radar".
Your goal is to help the user reconcile their day by parsing their natural
language reflection against their planned tasks.

You receive:
1. A list of today's planned tasks (JSON).
2. The user's natural language description of what they actually did today.
3. A target language code (en or zh).

Rules:
- If the user worked on an existing task, emit an "update_existing" action with its taskId.
- If the user mentions work that is not in the list, emit a "create_new" action.
- Calculate time spent from the user's text.
- Determine the new status (e.g. "finished" -> "done").
- Be objective.
- The "summary" field MUST be in the target language.

Output format (STRICT JSON only, no Markdown, no extra text):
{
  "date": "YYYY-MM-DD",
  "summary": "very brief encouraging summary of the day",
  "actions": [
    {
      "type": "update_existing" | "create_new",
      "taskId": "id of existing task (update_existing only)",
      "title": "title for a new task (create_new only)",
      "statusChange": "todo" | "in_progress" | "done" | "dropped",
      "addActualHours": number (hours to ADD to the existing actual total),
      "initialActualHours": number (hours spent on a new task),
      "estimateHours": number (retrospective estimate for a new task),
      "category": "project" | "learning" | "communication" | "misc"
    }
  ]
}

"date" and "actions" are required. Omit fields that do not apply.
If nothing needs to change, return an empty "actions" list.
""".strip()


def build_review_prompt(request: ReviewRequest) -> str:
    payload = request.to_payload()
    lang_name = LANGUAGE_NAMES.get(request.language, "English")
    return (
        f"Context Date: {request.date}\n"
        f"Target Language: {lang_name} ({request.language})\n\n"
        "Current Tasks in System:\n"
        f"{json.dumps(payload['tasks'], ensure_ascii=False, indent=2)}\n\n"
        "User's Reflection:\n"
        f"\"{request.reflection}\"\n\n"
        "Generate a list of actions to update the system to match reality."
    )


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def _opt_str(obj: dict[str, Any], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise AnalysisFailed(f"'{key}' must be a string")
    return v


def _opt_hours(obj: dict[str, Any], key: str) -> float | None:
    v = obj.get(key)
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise AnalysisFailed(f"'{key}' must be a number")
    try:
        hours = float(v)
    except OverflowError as e:
        raise AnalysisFailed(f"'{key}' is out of range") from e
    if not math.isfinite(hours):
        raise AnalysisFailed(f"'{key}' must be finite")
    if hours < 0:
        raise AnalysisFailed(f"'{key}' must be non-negative")
    return hours


def _opt_status(obj: dict[str, Any]) -> TaskStatus | None:
    raw = _opt_str(obj, "statusChange")
    if raw is None:
        return None
    try:
        return TaskStatus(raw)
    except ValueError as e:
        raise AnalysisFailed(f"unknown statusChange: {raw}") from e


def _opt_category(obj: dict[str, Any]) -> TaskCategory | None:
    raw = _opt_str(obj, "category")
    if raw is None:
        return None
    try:
        return TaskCategory(raw)
    except ValueError as e:
        raise AnalysisFailed(f"unknown category: {raw}") from e


def _parse_action(obj: Any) -> ReviewAction:
    if not isinstance(obj, dict):
        raise AnalysisFailed("action must be an object")
    raw_type = obj.get("type")
    try:
        action_type = ActionType(str(raw_type))
    except ValueError as e:
        raise AnalysisFailed(f"unknown action type: {raw_type}") from e

    return ReviewAction(
        type=action_type,
        task_id=_opt_str(obj, "taskId"),
        title=_opt_str(obj, "title"),
        status_change=_opt_status(obj),
        add_actual_hours=_opt_hours(obj, "addActualHours"),
        initial_actual_hours=_opt_hours(obj, "initialActualHours"),
        estimate_hours=_opt_hours(obj, "estimateHours"),
        category=_opt_category(obj),
    )


def parse_suggestion(raw: str) -> ReviewSuggestion:
    """Parse collaborator output text. Raises AnalysisFailed on any violation."""
    if not raw or not raw.strip():
        raise AnalysisFailed("empty response")
    try:
        data = json.loads(_extract_json_object(raw))
    except json.JSONDecodeError as e:
        raise AnalysisFailed("response is not valid JSON") from e

    if not isinstance(data, dict):
        raise AnalysisFailed("response must be a JSON object")

    date = data.get("date")
    if not isinstance(date, str):
        raise AnalysisFailed("'date' is required")

    actions = data.get("actions")
    if not isinstance(actions, list):
        raise AnalysisFailed("'actions' is required")

    summary = _opt_str(data, "summary")

    return ReviewSuggestion(
        date=date,
        summary=summary,
        actions=tuple(_parse_action(a) for a in actions),
    )


class LLMReviewCollaborator:
    """ReviewCollaborator on top of any streaming LLMClient."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def analyze(self, request: ReviewRequest) -> ReviewSuggestion:
        prompt = build_review_prompt(request)
        raw = ""
        try:
            for piece in self._llm.stream_chat(
                [{"role": "user", "content": prompt}],
                REVIEW_SYSTEM_PROMPT,
            ):
                raw += piece
        except Exception as e:
            logger.warning("Review LLM call failed: %s", e)
            raise AnalysisFailed("review collaborator unavailable") from e

        try:
            suggestion = parse_suggestion(raw)
        except AnalysisFailed as e:
            logger.warning("Review response rejected: %s", e)
            logger.debug("Rejected review response raw=%r", raw[:2000])
            raise

        logger.info(
            "Review suggestion parsed date=%s actions=%d",
            suggestion.date,
            len(suggestion.actions),
        )
        return suggestion
