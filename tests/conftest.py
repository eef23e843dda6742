# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktree.core.state import AppState
from tasktree.tasks.task_service import TaskService
from tasktree.tasks.task_store import TaskStore

from .fakes import FakeTaskRepo, chain_repo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktree-test",
        log_level="DEBUG",
        log_quiet_loggers=("tasktree.tasks.task_store", "tasktree.tasks.json_store"),
        console_enabled=False,
        store_backend="sqlite",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        tasks_json_path=tmp_path / "tasks.json",
    )


@pytest.fixture()
def repo() -> FakeTaskRepo:
    return chain_repo()


@pytest.fixture()
def service(repo: FakeTaskRepo) -> TaskService:
    return TaskService(repo)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired with a real SQLite store.

    NOTE: the store is real because command tests double as end-to-end checks
    of service + persistence.
    """
    store = TaskStore(settings.tasks_db_path)
    return AppState(settings=settings, task_store=store, service=TaskService(store))
