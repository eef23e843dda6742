# src/tasktree/tasks/task_service.py

"""
Task operations consumed by front-ends (console, HTTP adapters, tests).

Every public method runs under one re-entrant lock, so a mutation and the
cascade it triggers finish before the next operation starts. Mutations return
the entity re-read from the store.

Errors:
- TaskValidationError: blank title (nothing written)
- TaskNotFoundError:   unknown id (nothing written)
- TaskStorageError:    backend failure (not retried)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from ..core.ports import TaskRepo
from .task_cascade import cascade_complete, cascade_uncomplete
from .task_errors import TaskError, TaskNotFoundError, TaskStorageError, TaskValidationError
from .task_models import Task
from .task_tree import (
    build_subtree,
    build_task_tree,
    children_index,
    find_deepest_tasks,
    search_tasks,
    task_path,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise TaskValidationError("Task title cannot be empty")
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    return description.strip() or None


class TaskService:
    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo
        self._lock = threading.RLock()

    @property
    def repo(self) -> TaskRepo:
        return self._repo

    # ---- helpers ----

    def _call(self, op: str, fn: Callable[[], T]) -> T:
        """Run fn under the lock; unexpected backend errors become TaskStorageError."""
        with self._lock:
            try:
                return fn()
            except TaskError:
                raise
            except Exception as e:
                logger.exception("Task operation %s failed", op)
                raise TaskStorageError(f"Task operation {op} failed: {e}", context={"op": op}) from e

    def _require(self, task_id: int) -> Task:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _reload(self, task_id: int) -> Task:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskStorageError("Task vanished after write", context={"task_id": task_id})
        return task

    def _insert(
        self,
        title: str,
        description: str | None,
        parent_id: int | None,
        position: int | None,
    ) -> Task:
        clean_title = _clean_title(title)
        if parent_id is not None:
            self._require(parent_id)
        if position is None:
            position = self._repo.next_position(parent_id)

        task_id = self._repo.insert_task(
            title=clean_title,
            description=_clean_description(description),
            parent_id=parent_id,
            position=position,
        )

        if parent_id is not None:
            # New incomplete work: a completed parent chain cannot stay completed.
            reopened = cascade_uncomplete(self._repo, parent_id)
            if reopened:
                logger.info("Task id=%s reopened ancestors=%s", task_id, reopened)

        logger.info("Task created id=%s parent_id=%s position=%s", task_id, parent_id, position)
        return self._reload(task_id)

    # ---- mutations ----

    def create_task(
        self,
        title: str,
        description: str | None = None,
        parent_id: int | None = None,
        position: int | None = None,
    ) -> Task:
        """Create a task; position=None appends after the last sibling."""
        return self._call("create", lambda: self._insert(title, description, parent_id, position))

    def create_sibling(self, anchor_id: int, title: str, description: str | None = None) -> Task:
        """Create a task next to anchor_id (same parent, appended last)."""

        def run() -> Task:
            _clean_title(title)
            anchor = self._require(anchor_id)
            return self._insert(title, description, anchor.parent_id, None)

        return self._call("create_sibling", run)

    def create_subtask(self, parent_id: int, title: str, description: str | None = None) -> Task:
        return self._call("create_subtask", lambda: self._insert(title, description, parent_id, None))

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        is_completed: bool | None = None,
        position: int | None = None,
    ) -> Task:
        """
        Partial update; None leaves a field unchanged, description="" clears it.

        is_completed=True completes the whole subtree,
        is_completed=False reopens the task and its completed ancestors.

        The completion cascade is written before the field changes, so a failed
        cascade leaves the task untouched. The two writes are not one
        transaction: if the field write fails after a successful cascade, the
        completion change stays.
        """

        def run() -> Task:
            clean_title = _clean_title(title) if title is not None else None
            self._require(task_id)

            if is_completed is True:
                changed = cascade_complete(self._repo, task_id)
                logger.info("Task completed id=%s cascade=%s", task_id, changed)
            elif is_completed is False:
                changed = cascade_uncomplete(self._repo, task_id)
                logger.info("Task reopened id=%s cascade=%s", task_id, changed)

            if clean_title is not None or description is not None or position is not None:
                self._repo.update_task_fields(
                    task_id,
                    title=clean_title,
                    description=description.strip() if description is not None else None,
                    position=position,
                )
                logger.info("Task updated id=%s", task_id)

            return self._reload(task_id)

        return self._call("update", run)

    def delete_task(self, task_id: int) -> list[int]:
        """Delete task_id and all descendants (children first). Returns the deleted ids."""

        def run() -> list[int]:
            self._require(task_id)
            by_parent = children_index(self._repo.list_tasks())

            # Post-order without recursion: a task is emitted once all its children are.
            ordered: list[int] = []
            seen = {task_id}
            stack = [(task_id, iter(by_parent.get(task_id, [])))]
            while stack:
                tid, kids = stack[-1]
                child = next(kids, None)
                if child is None:
                    stack.pop()
                    ordered.append(tid)
                elif child.id not in seen:
                    seen.add(child.id)
                    stack.append((child.id, iter(by_parent.get(child.id, []))))

            self._repo.delete_tasks(ordered)
            logger.info("Task deleted id=%s removed=%d", task_id, len(ordered))
            return ordered

        return self._call("delete", run)

    # ---- queries ----

    def get_all_tasks(self) -> list[Task]:
        return self._call("get_all", lambda: build_task_tree(self._repo.list_tasks()))

    def get_deepest_tasks(self) -> list[Task]:
        return self._call("get_deepest", lambda: find_deepest_tasks(self._repo.list_tasks()))

    def get_task(self, task_id: int) -> Task:
        return self._call("get", lambda: self._require(task_id))

    def get_task_tree(self, task_id: int) -> Task:
        def run() -> Task:
            subtree = build_subtree(self._repo.list_tasks(), task_id)
            if subtree is None:
                raise TaskNotFoundError(task_id)
            return subtree

        return self._call("get_tree", run)

    def get_task_path(self, task_id: int) -> list[Task]:
        def run() -> list[Task]:
            path = task_path(self._repo.list_tasks(), task_id)
            if not path:
                raise TaskNotFoundError(task_id)
            return path

        return self._call("get_path", run)

    def search_tasks(self, query: str) -> list[Task]:
        return self._call("search", lambda: search_tasks(self._repo.list_tasks(), query))
