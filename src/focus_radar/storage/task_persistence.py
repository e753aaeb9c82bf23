# src/focus_radar/storage/task_persistence.py

"""
Task collection <-> key/value store.

The whole collection lives under one versioned key as a JSON array of records.
Bump the suffix for an incompatible schema instead of migrating old data in place.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from ..core.errors import PersistenceError
from ..core.ports import KeyValueStore
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

TASKS_KEY = "focus_radar_tasks_v0"
LANGUAGE_KEY = "focus_radar_lang"

SUPPORTED_LANGUAGES = ("en", "zh")


class TaskPersistence:
    """Best-effort load/save: failures are logged, never raised."""

    def __init__(self, kv: KeyValueStore, *, key: str = TASKS_KEY) -> None:
        self._kv = kv
        self._key = key

    def load_tasks(self) -> list[Task]:
        try:
            raw = self._kv.get(self._key)
        except PersistenceError:
            logger.exception("Failed to read tasks key=%s; starting empty.", self._key)
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Failed to parse stored tasks key=%s; starting empty.", self._key)
            return []

        if not isinstance(data, list):
            logger.error("Stored tasks key=%s is not a JSON array; starting empty.", self._key)
            return []

        out: list[Task] = []
        for rec in data:
            if not isinstance(rec, dict):
                logger.warning("Skipping non-object task record: %r", rec)
                continue
            try:
                out.append(Task.from_record(rec))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping unreadable task record id=%s", rec.get("id"))
        logger.info("Loaded %d tasks from key=%s", len(out), self._key)
        return out

    def save_tasks(self, tasks: Iterable[Task]) -> bool:
        """Returns False when the write failed (in-memory state stays as is)."""
        try:
            payload = json.dumps([t.to_record() for t in tasks], ensure_ascii=False, allow_nan=False)
        except ValueError:
            logger.exception("Refusing to save tasks with non-finite hours key=%s", self._key)
            return False
        try:
            self._kv.set(self._key, payload)
        except PersistenceError:
            logger.exception("Failed to save tasks key=%s", self._key)
            return False
        return True

    def load_language(self, default: str = "en") -> str:
        try:
            raw = self._kv.get(LANGUAGE_KEY)
        except PersistenceError:
            logger.exception("Failed to read language preference.")
            return default
        if raw in SUPPORTED_LANGUAGES:
            return raw
        return default

    def save_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        try:
            self._kv.set(LANGUAGE_KEY, language)
        except PersistenceError:
            logger.exception("Failed to save language preference.")
