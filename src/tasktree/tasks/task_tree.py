# src/tasktree/tasks/task_tree.py

"""
Pure projections over the flat task list.

Tasks live in an id-keyed arena; parent/child links are id references.
Nothing here touches storage, and input records are never mutated: every
tree-shaped result is built from copies with fresh `children` lists.

Nesting depth is unbounded, so every walk uses an explicit stack.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from .task_models import Task

logger = logging.getLogger(__name__)


def _position_key(task: Task) -> int:
    return task.position


def index_tasks(flat_tasks: Iterable[Task]) -> dict[int, Task]:
    return {t.id: t for t in flat_tasks}


def children_index(flat_tasks: Iterable[Task]) -> dict[int | None, list[Task]]:
    """parent_id -> children, each list ordered by position (stable)."""
    out: dict[int | None, list[Task]] = {}
    for t in flat_tasks:
        out.setdefault(t.parent_id, []).append(t)
    for siblings in out.values():
        siblings.sort(key=_position_key)
    return out


def find_orphans(flat_tasks: Sequence[Task]) -> list[Task]:
    """Tasks whose parent_id points at a task that does not exist."""
    ids = {t.id for t in flat_tasks}
    return [t for t in flat_tasks if t.parent_id is not None and t.parent_id not in ids]


def build_task_tree(flat_tasks: Sequence[Task]) -> list[Task]:
    """
    Convert the flat list into a forest and return the roots.

    - Roots and every children list are ordered by position; the sort is
      stable, so equal positions keep input order.
    - Tasks with a dangling parent_id are dropped (logged as a warning).
    - Never raises.
    """
    orphan_ids = [t.id for t in find_orphans(flat_tasks)]
    if orphan_ids:
        logger.warning("Dropping %d orphaned task(s) from tree: ids=%s", len(orphan_ids), orphan_ids)

    nodes: dict[int, Task] = {}
    for t in flat_tasks:
        nodes[t.id] = replace(t, children=[])

    roots: list[Task] = []
    for t in flat_tasks:
        node = nodes[t.id]
        if t.parent_id is None:
            roots.append(node)
        elif t.parent_id in nodes:
            nodes[t.parent_id].children.append(node)

    for node in nodes.values():
        node.children.sort(key=_position_key)
    roots.sort(key=_position_key)
    return roots


def flatten_tree(roots: Iterable[Task]) -> list[Task]:
    """Pre-order flattening (root list order, then depth-first per root)."""
    # reversed so that siblings pop in list order
    stack = list(reversed(list(roots)))
    out: list[Task] = []
    while stack:
        task = stack.pop()
        out.append(task)
        stack.extend(reversed(task.children))
    return out


def find_deepest_tasks(flat_tasks: Sequence[Task]) -> list[Task]:
    """
    Return the actionable frontier: incomplete tasks with no incomplete child.

    Traversal rules (depth-first from each root):
    - completed task -> prune it and its whole subtree, even if some
      descendants are (inconsistently) still incomplete;
    - no incomplete child -> include the task;
    - otherwise -> recurse into the children, do not include the task.

    Result order is pre-order traversal order of the tree.
    """
    deepest: list[Task] = []
    stack = list(reversed(build_task_tree(flat_tasks)))

    while stack:
        task = stack.pop()
        if task.is_completed:
            continue
        if not any(not child.is_completed for child in task.children):
            deepest.append(task)
            continue
        stack.extend(reversed(task.children))

    return deepest


def task_path(flat_tasks: Sequence[Task], task_id: int) -> list[Task]:
    """
    Ancestor path from the root down to task_id (inclusive).

    Empty if task_id is unknown. Stops early at a dangling parent.
    """
    by_id = index_tasks(flat_tasks)
    task = by_id.get(task_id)
    if task is None:
        return []

    path = [task]
    seen = {task.id}
    while task.parent_id is not None:
        parent = by_id.get(task.parent_id)
        if parent is None or parent.id in seen:
            break
        path.append(parent)
        seen.add(parent.id)
        task = parent
    path.reverse()
    return path


def build_subtree(flat_tasks: Sequence[Task], root_id: int) -> Task | None:
    """One task with its nested descendants, or None if root_id is unknown."""
    by_parent = children_index(flat_tasks)
    root = index_tasks(flat_tasks).get(root_id)
    if root is None:
        return None

    top = replace(root, children=[])
    seen = {root.id}
    stack = [top]
    while stack:
        node = stack.pop()
        for child in by_parent.get(node.id, []):
            if child.id in seen:
                continue
            seen.add(child.id)
            copy = replace(child, children=[])
            node.children.append(copy)
            stack.append(copy)

    return top


def search_tasks(flat_tasks: Sequence[Task], query: str) -> list[Task]:
    """Case-insensitive substring match on title or description, in tree order."""
    needle = (query or "").strip().lower()
    if not needle:
        return []

    out: list[Task] = []
    for task in flatten_tree(build_task_tree(flat_tasks)):
        if needle in task.title.lower() or needle in (task.description or "").lower():
            out.append(task)
    return out
