# src/tasktree/tasks/task_cascade.py

"""
Completion cascades.

Two explicit operations keep completion state consistent across the hierarchy:

- cascade_complete:   a completed task completes its whole subtree;
- cascade_uncomplete: an incomplete task un-completes its completed ancestors.

Each operation first plans the affected ids from the flat list (pure), then
applies the whole plan with a single `set_completed` batch write. The stores
apply a batch all-or-nothing, so a cascade never leaves a half-written chain.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.ports import TaskRepo
from .task_errors import TaskNotFoundError, TaskStorageError
from .task_models import Task
from .task_tree import children_index, index_tasks

logger = logging.getLogger(__name__)


def plan_complete(flat_tasks: Sequence[Task], task_id: int) -> list[int]:
    """
    Ids in the subtree rooted at task_id (inclusive) that are not completed yet.

    Every node is visited exactly once. Returns [] for an unknown id.
    """
    by_id = index_tasks(flat_tasks)
    if task_id not in by_id:
        return []

    by_parent = children_index(flat_tasks)
    planned: list[int] = []
    seen: set[int] = set()
    stack = [task_id]

    while stack:
        tid = stack.pop()
        if tid in seen:
            continue
        seen.add(tid)
        if not by_id[tid].is_completed:
            planned.append(tid)
        # reversed so that siblings pop in position order
        stack.extend(c.id for c in reversed(by_parent.get(tid, [])))

    return planned


def plan_uncomplete(flat_tasks: Sequence[Task], task_id: int, *, include_self: bool = True) -> list[int]:
    """
    The task itself (if completed and include_self) plus its completed ancestor chain.

    The walk stops at the first ancestor that is already incomplete, at a root,
    at a dangling parent_id, or if an id repeats. It always terminates.
    """
    by_id = index_tasks(flat_tasks)
    task = by_id.get(task_id)
    if task is None:
        return []

    planned: list[int] = []
    if include_self and task.is_completed:
        planned.append(task.id)

    seen = {task.id}
    parent_id = task.parent_id
    while parent_id is not None and parent_id not in seen:
        parent = by_id.get(parent_id)
        if parent is None or not parent.is_completed:
            break
        planned.append(parent.id)
        seen.add(parent.id)
        parent_id = parent.parent_id

    return planned


def _apply(repo: TaskRepo, ids: list[int], value: bool, *, task_id: int) -> list[int]:
    if not ids:
        return []
    try:
        changed = repo.set_completed(ids, value)
    except TaskStorageError:
        raise
    except Exception as e:
        raise TaskStorageError(
            "Completion cascade failed", context={"task_id": task_id, "ids": ids}
        ) from e
    logger.debug("Cascade task_id=%s is_completed=%s ids=%s changed=%s", task_id, value, ids, changed)
    return ids


def cascade_complete(repo: TaskRepo, task_id: int) -> list[int]:
    """Mark task_id and every descendant completed. Returns the ids that changed."""
    flat = repo.list_tasks()
    if task_id not in index_tasks(flat):
        raise TaskNotFoundError(task_id)
    return _apply(repo, plan_complete(flat, task_id), True, task_id=task_id)


def cascade_uncomplete(repo: TaskRepo, task_id: int, *, include_self: bool = True) -> list[int]:
    """Mark task_id (optionally) and its completed ancestors incomplete. Returns the ids that changed."""
    flat = repo.list_tasks()
    if task_id not in index_tasks(flat):
        raise TaskNotFoundError(task_id)
    return _apply(repo, plan_uncomplete(flat, task_id, include_self=include_self), False, task_id=task_id)
