# src/tasktree/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task store backend and wires TaskService into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..tasks.json_store import JsonTaskStore
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.tasks_json_path.parent.mkdir(parents=True, exist_ok=True)


def create_task_store(settings) -> TaskRepo:
    backend = str(getattr(settings, "store_backend", "sqlite")).lower()
    if backend == "json":
        return JsonTaskStore(settings.tasks_json_path)
    if backend != "sqlite":
        logger.warning("Unknown store backend %r, falling back to sqlite.", backend)
    return TaskStore(settings.tasks_db_path)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = create_task_store(settings)
    return AppState(
        settings=settings,
        task_store=store,
        service=TaskService(store),
    )
