# src/tasktree/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from .task_errors import TaskStorageError
from .task_models import Task, utc_now_iso

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store (implements core.ports.TaskRepo).

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Referential integrity:
    - parent_id REFERENCES tasks(id), foreign keys enabled per connection

    Thread-safety:
    - each method opens its own SQLite connection
    - batch writes (set_completed / delete_tasks) run in one transaction
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @property
    def location(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    @contextlib.contextmanager
    def _connect(self, op: str) -> Iterator[sqlite3.Connection]:
        """Open a connection; sqlite errors surface as TaskStorageError."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise TaskStorageError(f"Cannot open task database: {e}", context={"op": op}) from e
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("TaskStore %s failed: %s", op, e)
            raise TaskStorageError(f"Task store {op} failed: {e}", context={"op": op}) from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect("ensure_schema") as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    parent_id INTEGER REFERENCES tasks(id),
                    position INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("is_completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("parent_id", "INTEGER REFERENCES tasks(id)")
            add_col("position", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "TEXT NOT NULL DEFAULT ''")
            add_col("updated_at", "TEXT NOT NULL DEFAULT ''")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_parent ON tasks(parent_id, position)")

            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            description=row["description"] or None,
            is_completed=bool(row["is_completed"]),
            parent_id=int(row["parent_id"]) if row["parent_id"] is not None else None,
            position=int(row["position"] or 0),
            created_at=str(row["created_at"] or ""),
            updated_at=str(row["updated_at"] or ""),
        )

    # ---- queries ----

    def count_tasks(self) -> int:
        with self._connect("count") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_tasks(self) -> list[Task]:
        with self._connect("list") as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY position ASC, id ASC").fetchall()
            return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: int) -> Task | None:
        with self._connect("get") as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None

    def list_children(self, parent_id: int | None) -> list[Task]:
        with self._connect("list_children") as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE parent_id IS ?
                ORDER BY position ASC, id ASC
                """,
                (parent_id,),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def next_position(self, parent_id: int | None) -> int:
        with self._connect("next_position") as conn:
            (n,) = conn.execute(
                "SELECT COALESCE(MAX(position) + 1, 0) FROM tasks WHERE parent_id IS ?",
                (parent_id,),
            ).fetchone()
            return int(n)

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

        now = utc_now_iso()
        with self._connect("insert") as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(title, description, is_completed, parent_id, position, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title.strip(),
                    description or None,
                    int(bool(is_completed)),
                    parent_id,
                    int(position),
                    now,
                    now,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise TaskStorageError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task inserted id=%s parent_id=%s position=%s", task_id, parent_id, position)
            return task_id

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        position: int | None = None,
    ) -> bool:
        fields: list[str] = []
        params: list[Any] = []

        if title is not None:
            fields.append("title = ?")
            params.append(title.strip())

        if description is not None:
            fields.append("description = ?")
            params.append(description or None)

        if position is not None:
            fields.append("position = ?")
            params.append(int(position))

        fields.append("updated_at = ?")
        params.append(utc_now_iso())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        with self._connect("update") as conn:
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount == 1

    def set_completed(self, task_ids: Iterable[int], is_completed: bool) -> int:
        ids = [int(i) for i in task_ids]
        if not ids:
            return 0
        now = utc_now_iso()
        with self._connect("set_completed") as conn:
            changed = 0
            for tid in ids:
                cur = conn.execute(
                    "UPDATE tasks SET is_completed = ?, updated_at = ? WHERE id = ?",
                    (int(bool(is_completed)), now, tid),
                )
                changed += cur.rowcount
            conn.commit()
            return changed

    def delete_tasks(self, task_ids: Iterable[int]) -> int:
        ids = [int(i) for i in task_ids]
        if not ids:
            return 0
        with self._connect("delete") as conn:
            removed = 0
            for tid in ids:
                cur = conn.execute("DELETE FROM tasks WHERE id = ?", (tid,))
                removed += cur.rowcount
            conn.commit()
            logger.debug("Tasks deleted ids=%s removed=%s", ids, removed)
            return removed
