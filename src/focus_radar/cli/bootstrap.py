# src/focus_radar/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/LLM/review).
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..review.collaborator import LLMReviewCollaborator
from ..review.engine import ReviewSession
from ..storage.kv_store import SQLiteKeyValueStore
from ..storage.task_persistence import TaskPersistence
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_llm_client(settings: Settings) -> LLMClient:
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.info("Using offline LLM client: %s", e)
        return OfflineLLMClient()


def create_initial_state(*, settings: Settings | None = None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    persistence = TaskPersistence(SQLiteKeyValueStore(settings.store_db_path))
    language = persistence.load_language(default=settings.language)
    task_store = TaskStore(persistence)

    collaborator = LLMReviewCollaborator(llm if llm is not None else build_llm_client(settings))
    review = ReviewSession(task_store, collaborator, language=language)

    return AppState(
        settings=settings,
        persistence=persistence,
        task_store=task_store,
        review=review,
        language=language,
    )
