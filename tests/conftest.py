# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from focus_radar.core.state import AppState
from focus_radar.review.engine import ReviewSession
from focus_radar.storage.kv_store import SQLiteKeyValueStore
from focus_radar.storage.task_persistence import TaskPersistence
from focus_radar.tasks.task_store import TaskStore

from .fakes import FIXED_NOW, FakeCollaborator, MemoryKV


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the console commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment/.env.
    """
    return SimpleNamespace(
        app_name="focus-radar-test",
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
        language="en",
        llm_models=["fake/model"],
    )


@pytest.fixture()
def kv() -> MemoryKV:
    return MemoryKV()


@pytest.fixture()
def persistence(kv: MemoryKV) -> TaskPersistence:
    return TaskPersistence(kv)


@pytest.fixture()
def store(persistence: TaskPersistence) -> TaskStore:
    return TaskStore(persistence)


@pytest.fixture()
def collaborator() -> FakeCollaborator:
    return FakeCollaborator()


@pytest.fixture()
def state(settings: SimpleNamespace, collaborator: FakeCollaborator) -> AppState:
    """
    AppState wired with a deterministic collaborator and a fixed clock.

    NOTE: We keep the real SQLite key/value store here because its
    correctness is part of what we want to test.
    """
    persistence = TaskPersistence(SQLiteKeyValueStore(settings.store_db_path))
    task_store = TaskStore(persistence)
    review = ReviewSession(task_store, collaborator, clock=lambda: FIXED_NOW)
    return AppState(
        settings=settings,
        persistence=persistence,
        task_store=task_store,
        review=review,
    )
