# src/focus_radar/core/state.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from ..review.engine import ReviewSession
from ..storage.task_persistence import TaskPersistence
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """
    Everything one running session owns.

    Built by cli.bootstrap and passed explicitly to connectors/commands;
    nothing in the core reads process-wide globals.
    """

    settings: Any
    persistence: TaskPersistence
    task_store: TaskStore
    review: ReviewSession
    language: str = "en"

    # Console-side view state: last listed tasks, so "/cycle 2" can address them by number.
    listed_task_ids: list[str] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def set_language(self, language: str) -> None:
        self.persistence.save_language(language)
        self.language = language
        self.review.language = language
        logger.info("Language set to %s", language)

    def close(self) -> None:
        """Teardown: final save of the collection."""
        self.review.abandon()
        self.task_store.close()
