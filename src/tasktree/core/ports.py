# src/tasktree/core/ports.py

"""
Ports (interfaces) used by the core.

The tree logic and the service depend on this Protocol instead of a concrete
store, so SQLite / JSON / in-memory backends stay swappable and tests need no
persistence at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """Flat task table: select all, insert, update by id, delete by id, select children."""

    def list_tasks(self) -> list[Task]:
        """All tasks, ordered by (position, id)."""
        ...

    def get_task(self, task_id: int) -> Task | None: ...

    def list_children(self, parent_id: int | None) -> list[Task]: ...

    def next_position(self, parent_id: int | None) -> int:
        """Position that appends after the last sibling under parent_id."""
        ...

    def count_tasks(self) -> int: ...

    def insert_task(
        self,
        *,
        title: str,
        description: str | None = None,
        parent_id: int | None = None,
        position: int = 0,
        is_completed: bool = False,
    ) -> int: ...

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
    ) -> bool:
        """Returns False if no row matched."""
        ...

    def set_completed(self, task_ids: Iterable[int], is_completed: bool) -> int:
        """Batch write: all ids or none. Returns the number of rows changed."""
        ...

    def delete_tasks(self, task_ids: Iterable[int]) -> int:
        """Batch delete in the given order. Returns the number of rows removed."""
        ...
