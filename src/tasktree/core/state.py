# src/tasktree/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_service import TaskService
from .ports import TaskRepo


@dataclass
class AppState:
    # Settings live on the state so front-ends never read global config.
    settings: Any

    task_store: TaskRepo
    service: TaskService

    # Serialises front-end handlers (console today, more connectors later).
    lock: threading.Lock = field(default_factory=threading.Lock)
