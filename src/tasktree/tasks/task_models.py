# src/tasktree/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(slots=True)
class Task:
    """
    One task record.

    Notes:
    - `children` is only filled in tree projections (see task_tree.py);
      stores always return flat records with an empty list.
    - Timestamps are ISO-8601 strings in UTC.
    """

    id: int
    title: str
    description: str | None = None
    is_completed: bool = False
    parent_id: int | None = None
    position: int = 0
    created_at: str = ""
    updated_at: str = ""

    children: list[Task] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def _fields_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "isCompleted": self.is_completed,
            "parentId": self.parent_id,
            "position": self.position,
            "children": [],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_dict(self) -> dict[str, Any]:
        """Wire shape (camelCase keys, nested children). Iterative, any depth."""
        top = self._fields_dict()
        stack: list[tuple[Task, dict[str, Any]]] = [(self, top)]
        while stack:
            task, out = stack.pop()
            for child in task.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                stack.append((child, child_out))
        return top

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Accepts both wire (camelCase) and storage (snake_case) keys."""

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in raw:
                return raw[camel]
            return raw.get(snake, default)

        parent = pick("parentId", "parent_id")
        return cls(
            id=int(raw["id"]),
            title=str(raw.get("title") or ""),
            description=raw.get("description") or None,
            is_completed=bool(pick("isCompleted", "is_completed", False)),
            parent_id=int(parent) if parent is not None else None,
            position=int(raw.get("position") or 0),
            created_at=str(pick("createdAt", "created_at", "") or ""),
            updated_at=str(pick("updatedAt", "updated_at", "") or ""),
        )
