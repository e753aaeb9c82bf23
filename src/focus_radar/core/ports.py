# src/focus_radar/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..review.review_models import ReviewRequest, ReviewSuggestion
    from ..tasks.task_models import Task

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class ReviewCollaborator(Protocol):
    """
    Turns a reflection + candidate tasks into a structured suggestion.

    Must raise AnalysisFailed for any transport error, timeout or unusable payload.
    """
    def analyze(self, request: ReviewRequest) -> ReviewSuggestion: ...


class KeyValueStore(Protocol):
    """Raises PersistenceError on read/write failures."""
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class TaskRepo(Protocol):
    def load_tasks(self) -> list[Task]: ...
    def save_tasks(self, tasks: Iterable[Task]) -> bool: ...
