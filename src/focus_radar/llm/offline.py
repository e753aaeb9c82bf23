# src/focus_radar/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_CONTEXT_DATE = re.compile(r"Context Date:\s*(\d{4}-\d{2}-\d{2})")


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Review prompts -> a valid suggestion with no actions, so the flow can be
    exercised end to end without network access.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        match = _CONTEXT_DATE.search(user_text)
        day = match.group(1) if match else ""

        yield json.dumps(
            {
                "date": day,
                "summary": (
                    "Offline demo mode: no external LLM is configured. "
                    "Set FOCUS_OPENROUTER_API_KEY to get real suggestions."
                ),
                "actions": [],
            }
        )
