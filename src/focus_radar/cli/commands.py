# src/focus_radar/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..core.errors import ValidationError
from ..core.state import AppState
from ..review.engine import ReviewState
from ..review.review_models import ActionType, ReviewAction
from ..stats import compute_weekly_stats, format_error_factor
from ..storage.task_persistence import SUPPORTED_LANGUAGES
from ..tasks import task_api
from ..tasks.task_models import Task, TaskCategory, TaskStatus

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)

_STATUS_MARKS = {
    TaskStatus.TODO: "[ ]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.DONE: "[x]",
    TaskStatus.DROPPED: "[-]",
}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /plan, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_hours(value: float) -> str:
    return f"{value:g}h"


def _format_task(n: int, task: Task) -> str:
    actual = f" / {_fmt_hours(task.actual_hours)} done" if task.actual_hours > 0 else ""
    return (
        f"{n}. {_STATUS_MARKS[task.status]} {task.title} "
        f"({task.category.value}, est {_fmt_hours(task.estimate_hours)}{actual})"
    )


def _pick_task(state: AppState, raw: str) -> Task | None:
    """Resolve a 1-based number from the last listing."""
    try:
        n = int(raw)
    except ValueError:
        return None
    if not 1 <= n <= len(state.listed_task_ids):
        return None
    return state.task_store.get(state.listed_task_ids[n - 1])


def _parse_hours(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def _describe_action(state: AppState, action: ReviewAction) -> str:
    match action.type:
        case ActionType.UPDATE_EXISTING:
            task = state.task_store.get(action.task_id) if action.task_id else None
            parts = [f"UPDATE {task.title if task else 'Unknown Task'}"]
            if action.add_actual_hours:
                parts.append(f"+{_fmt_hours(action.add_actual_hours)} actual")
            if action.status_change:
                parts.append(f"status: {action.status_change.value}")
            return " | ".join(parts)
        case ActionType.CREATE_NEW:
            parts = [f"NEW {action.title or 'Untitled Task'}"]
            if action.initial_actual_hours:
                parts.append(f"{_fmt_hours(action.initial_actual_hours)} actual")
            parts.append(f"status: {(action.status_change or TaskStatus.DONE).value}")
            return " | ".join(parts)


def render_suggestion(state: AppState) -> str:
    review = state.review
    if review.suggestion is None:
        return "No suggestion pending."
    lines = [f"Suggestion: \"{review.suggestion.summary or ''}\""]
    if not review.suggestion.actions:
        lines.append("  (no actions)")
    for i, action in enumerate(review.suggestion.actions, start=1):
        mark = "[x]" if review.is_accepted(i - 1) else "[ ]"
        lines.append(f"  {i}. {mark} {_describe_action(state, action)}")
    lines.append("Use /toggle <n>, then /apply or /discard.")
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Language: {state.language}\n"
        f"  Tasks stored: {state.task_store.count()}\n"
        f"  Review: {state.review.state.value}\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_plan(state: AppState, args: list[str]) -> str:
    tasks = task_api.todays_tasks(state.task_store, state.review.today())
    state.listed_task_ids = [t.id for t in tasks]
    if not tasks:
        return "No tasks planned for today. Use /add <hours> <category> <title>."
    lines = [f"Plan for {state.review.today()}:"]
    lines.extend(_format_task(i, t) for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <hours> <category> <title...>
    /add <hours> <title...>          (category: project)
    """
    if len(args) < 2:
        return "Usage: /add <hours> [category] <title>"
    hours = _parse_hours(args[0])
    if hours is None:
        return f"Invalid hours: {args[0]}"

    rest = args[1:]
    category = TaskCategory.PROJECT
    if rest[0].lower() in {c.value for c in TaskCategory} and len(rest) > 1:
        category = TaskCategory(rest[0].lower())
        rest = rest[1:]

    task = task_api.create_task(
        state.task_store,
        title=" ".join(rest),
        estimate_hours=hours,
        category=category,
        now=state.review.now(),
    )
    if task is None:
        return "Title is required."
    return f"Added: {task.title} ({category.value}, est {_fmt_hours(hours)})"


def cmd_cycle(state: AppState, args: list[str]) -> str:
    task = _pick_task(state, args[0]) if args else None
    if task is None:
        return "Usage: /cycle <n> (numbers from /plan)"
    updated = task_api.cycle_status(state.task_store, task.id)
    if updated is None:
        return "Task no longer exists."
    return f"{updated.title}: {task.status.value} -> {updated.status.value}"


def cmd_log(state: AppState, args: list[str]) -> str:
    task = _pick_task(state, args[0]) if args else None
    hours = _parse_hours(args[1]) if len(args) > 1 else None
    if task is None or hours is None:
        return "Usage: /log <n> <hours> (numbers from /plan)"
    try:
        updated = task_api.log_hours(state.task_store, task.id, hours)
    except ValidationError as e:
        return str(e)
    if updated is None:
        return "Task no longer exists."
    return f"{updated.title}: actual {_fmt_hours(updated.actual_hours)}"


def cmd_del(state: AppState, args: list[str]) -> str:
    task = _pick_task(state, args[0]) if args else None
    if task is None:
        return "Usage: /del <n> (numbers from /plan)"
    task_api.delete_task(state.task_store, task.id)
    state.listed_task_ids = [i for i in state.listed_task_ids if i != task.id]
    return f"Deleted: {task.title}"


def cmd_review(state: AppState, args: list[str]) -> str:
    review = state.review
    if review.state == ReviewState.SUGGESTED:
        return render_suggestion(state)
    if review.state == ReviewState.ANALYZING:
        return "Already analyzing, please wait."

    reflection = " ".join(args)
    if not reflection.strip():
        candidates = review.candidate_tasks()
        lines = ["Usage: /review <what you actually did today>", "Context tasks:"]
        if not candidates:
            lines.append("  (none)")
        lines.extend(
            f"  {t.title} {_fmt_hours(t.actual_hours)}/{_fmt_hours(t.estimate_hours)}"
            for t in candidates
        )
        return "\n".join(lines)

    suggestion = review.analyze(reflection)
    if suggestion is None:
        return review.last_error or "Review was not started."
    return render_suggestion(state)


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if state.review.suggestion is None:
        return "No suggestion pending. Use /review first."
    try:
        index = int(args[0]) - 1 if args else -1
        accepted = state.review.toggle(index)
    except (ValueError, IndexError):
        return "Usage: /toggle <n> (numbers from the suggestion)"
    return f"Action {index + 1}: {'accepted' if accepted else 'rejected'}"


def cmd_apply(state: AppState, args: list[str]) -> str:
    result = state.review.apply()
    if result is None:
        return "No suggestion pending."
    created = len(result.created_task_ids)
    updated = len(result.updated_task_ids)
    msg = f"Day updated: {updated} task(s) updated, {created} created."
    if result.dropped_indices:
        msg += f" Skipped {len(result.dropped_indices)} action(s) referring to unknown tasks."
    return msg


def cmd_discard(state: AppState, args: list[str]) -> str:
    if state.review.state != ReviewState.SUGGESTED:
        return "No suggestion pending."
    state.review.discard()
    return "Suggestion discarded."


def cmd_stats(state: AppState, args: list[str]) -> str:
    today = date.fromisoformat(state.review.today())
    stats = compute_weekly_stats(state.task_store.list_tasks(), today)
    lines = [
        "Last 7 days (estimated / actual):",
        *(
            f"  {d.date}  {_fmt_hours(d.estimated):>6} / {_fmt_hours(d.actual):<6}"
            f"{'  over' if d.over_budget else ''}"
            for d in stats.days
        ),
        f"Planned: {_fmt_hours(stats.total_estimate)}  Actual: {_fmt_hours(stats.total_actual)}",
        f"Error factor: {format_error_factor(stats.error_factor)}x ({stats.verdict.value})",
    ]
    return "\n".join(lines)


def cmd_lang(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Language is {state.language}. Use /lang en or /lang zh."
    lang = args[0].lower()
    if lang not in SUPPORTED_LANGUAGES:
        return "Usage: /lang en | /lang zh"
    state.set_language(lang)
    return f"Language set to {lang}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show language, task count, review state.")
registry.register("plan", cmd_plan, help_text="List today's tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Plan a task: /add <hours> [category] <title>.")
registry.register("cycle", cmd_cycle, help_text="Cycle task status: /cycle <n>.")
registry.register("log", cmd_log, help_text="Add actual hours: /log <n> <hours>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <n>.", aliases=["rm"])
registry.register("review", cmd_review, help_text="Analyze your day: /review <reflection>.")
registry.register("toggle", cmd_toggle, help_text="Accept/reject a suggested action: /toggle <n>.")
registry.register("apply", cmd_apply, help_text="Apply accepted actions.")
registry.register("discard", cmd_discard, help_text="Drop the current suggestion.")
registry.register("stats", cmd_stats, help_text="Estimate vs actual over the last 7 days.")
registry.register("lang", cmd_lang, help_text="Set summary language: /lang en | /lang zh.")
