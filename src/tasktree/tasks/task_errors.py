# src/tasktree/tasks/task_errors.py

"""
Task error hierarchy:

- TaskError (base)
  ├── TaskValidationError  (rejected before any write)
  ├── TaskNotFoundError    (unknown id, no effect)
  └── TaskStorageError     (backend failure, not retried)
"""

from __future__ import annotations

from typing import Any


class TaskError(Exception):
    """Base class for every failure raised by the task core."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({ctx})"


class TaskValidationError(TaskError):
    pass


class TaskNotFoundError(TaskError):
    def __init__(self, task_id: int, message: str = "Task not found") -> None:
        super().__init__(message, context={"task_id": task_id})
        self.task_id = task_id


class TaskStorageError(TaskError):
    pass
