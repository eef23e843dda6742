# src/tasktree/tasks/json_store.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .task_errors import TaskStorageError
from .task_models import Task, utc_now_iso

logger = logging.getLogger(__name__)


class JsonTaskStore:
    """
    Single-file JSON task store (implements core.ports.TaskRepo).

    The whole flat list lives in one file:
        {"next_id": 4, "tasks": [{...}, {...}]}

    Every write rewrites the file via a temp file + os.replace, so a batch
    (set_completed / delete_tasks) lands completely or not at all.
    Ids are never reused, even after deletes.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonTaskStore ready path=%s total=%s", self._path, self.count_tasks())

    @property
    def location(self) -> Path:
        return self._path

    def close(self) -> None:
        return

    # ---- file I/O ----

    def _load(self) -> tuple[int, list[Task]]:
        if not self._path.exists():
            return 1, []
        try:
            data = json.loads(self._path.read_text("utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise TaskStorageError(f"Cannot read task file: {e}", context={"path": str(self._path)}) from e

        # Bare lists are accepted too (plain exported task arrays).
        raw_tasks: Any = data.get("tasks", []) if isinstance(data, dict) else data
        if not isinstance(raw_tasks, list):
            raise TaskStorageError("Malformed task file: 'tasks' is not a list", context={"path": str(self._path)})

        tasks: list[Task] = []
        for raw in raw_tasks:
            if not isinstance(raw, dict) or raw.get("id") is None:
                logger.warning("Skipping malformed task entry in %s: %r", self._path, raw)
                continue
            try:
                tasks.append(Task.from_dict(raw))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed task entry in %s: %r", self._path, raw)

        max_id = max((t.id for t in tasks), default=0)
        next_id = data.get("next_id", 1) if isinstance(data, dict) else 1
        try:
            next_id = int(next_id)
        except (TypeError, ValueError):
            next_id = 1
        return max(next_id, max_id + 1), tasks

    def _save(self, next_id: int, tasks: list[Task]) -> None:
        payload = {
            "next_id": next_id,
            "tasks": [self._task_to_record(t) for t in tasks],
        }
        try:
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            logger.error("JsonTaskStore write failed path=%s: %s", self._path, e)
            raise TaskStorageError(f"Cannot write task file: {e}", context={"path": str(self._path)}) from e

    @staticmethod
    def _task_to_record(task: Task) -> dict[str, Any]:
        record = task.to_dict()
        record.pop("children", None)
        return record

    @staticmethod
    def _ordered(tasks: list[Task]) -> list[Task]:
        return sorted(tasks, key=lambda t: (t.position, t.id))

    # ---- queries ----

    def count_tasks(self) -> int:
        return len(self._load()[1])

    def list_tasks(self) -> list[Task]:
        return self._ordered(self._load()[1])

    def get_task(self, task_id: int) -> Task | None:
        for t in self._load()[1]:
            if t.id == task_id:
                return t
        return None

    def list_children(self, parent_id: int | None) -> list[Task]:
        return self._ordered([t for t in self._load()[1] if t.parent_id == parent_id])

    def next_position(self, parent_id: int | None) -> int:
        positions = [t.position for t in self._load()[1] if t.parent_id == parent_id]
        return max(positions) + 1 if positions else 0

    # ---- writes ----

    def insert_task(
        self,
        *,
        title: str,
        description: str | None = None,
        parent_id: int | None = None,
        position: int = 0,
        is_completed: bool = False,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")

        next_id, tasks = self._load()
        if parent_id is not None and not any(t.id == parent_id for t in tasks):
            raise TaskStorageError("Parent task does not exist", context={"parent_id": parent_id})

        now = utc_now_iso()
        task = Task(
            id=next_id,
            title=title.strip(),
            description=description or None,
            is_completed=bool(is_completed),
            parent_id=parent_id,
            position=int(position),
            created_at=now,
            updated_at=now,
        )
        tasks.append(task)
        self._save(next_id + 1, tasks)
        logger.debug("Task inserted id=%s parent_id=%s position=%s", task.id, parent_id, position)
        return task.id

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
    ) -> bool:
        next_id, tasks = self._load()
        for t in tasks:
            if t.id != task_id:
                continue
            if title is not None:
                t.title = title.strip()
            if description is not None:
                t.description = description or None
            if position is not None:
                t.position = int(position)
            t.updated_at = utc_now_iso()
            self._save(next_id, tasks)
            return True
        return False

    def set_completed(self, task_ids: Iterable[int], is_completed: bool) -> int:
        wanted = {int(i) for i in task_ids}
        if not wanted:
            return 0
        next_id, tasks = self._load()
        now = utc_now_iso()
        changed = 0
        for t in tasks:
            if t.id in wanted:
                t.is_completed = bool(is_completed)
                t.updated_at = now
                changed += 1
        if changed:
            self._save(next_id, tasks)
        return changed

    def delete_tasks(self, task_ids: Iterable[int]) -> int:
        doomed = {int(i) for i in task_ids}
        if not doomed:
            return 0
        next_id, tasks = self._load()
        kept = [t for t in tasks if t.id not in doomed]
        removed = len(tasks) - len(kept)
        if removed:
            self._save(next_id, kept)
        logger.debug("Tasks deleted ids=%s removed=%s", sorted(doomed), removed)
        return removed
