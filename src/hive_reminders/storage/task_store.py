# src/hive_reminders/storage/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from ..reminders.models import ReminderTask, parse_due_date

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite mirror of the household task list (the local task cache).

    The reminder engine only reads snapshot(); the CLI uses the CRUD helpers.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    due_date TEXT,
                    done INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("due_date", "TEXT")
            add_col("done", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_open_due ON tasks(done, due_date)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> ReminderTask:
        return ReminderTask(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            due_date=parse_due_date(row["due_date"]),
            completed=bool(row["done"]),
        )

    @staticmethod
    def _due_to_str(due_date: date | str | None) -> str | None:
        parsed = parse_due_date(due_date)
        return parsed.isoformat() if parsed else None

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(self, *, title: str, due_date: date | str | None = None, done: bool = False) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")

        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO tasks(title, due_date, done, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (title.strip(), self._due_to_str(due_date), int(bool(done)), now, now),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task added id=%s due=%s", task_id, due_date)
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> ReminderTask | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self, *, include_done: bool = True) -> list[ReminderTask]:
        sql = "SELECT * FROM tasks"
        if not include_done:
            sql += " WHERE done = 0"
        sql += " ORDER BY COALESCE(due_date, '9999-12-31') ASC, id ASC"
        conn = self._get_conn()
        try:
            return [self._row_to_task(r) for r in conn.execute(sql).fetchall()]
        finally:
            conn.close()

    def snapshot(self) -> list[ReminderTask]:
        """Read-only view handed to the reminder engine."""
        return self.list_tasks(include_done=True)

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        due_date: date | str | None = None,
        done: bool | None = None,
        clear_due_date: bool = False,
    ) -> bool:
        fields: list[str] = []
        params: list[Any] = []

        if title is not None:
            if not title.strip():
                raise ValueError("title must not be empty")
            fields.append("title = ?")
            params.append(title.strip())

        if clear_due_date:
            fields.append("due_date = NULL")
        elif due_date is not None:
            fields.append("due_date = ?")
            params.append(self._due_to_str(due_date))

        if done is not None:
            fields.append("done = ?")
            params.append(int(bool(done)))

        if not fields:
            return False

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        conn = self._get_conn()
        try:
            cur = conn.execute(f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?", params)
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def mark_done(self, task_id: int) -> bool:
        return self.update_task(task_id, done=True)

    def delete_task(self, task_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def replace_all(self, raw_tasks: Iterable[dict[str, Any]]) -> int:
        """
        Mirror a task list fetched from the backend (raw JSON records).

        Records keep their backend ids when present.
        """
        now = time.time()
        rows = []
        for raw in raw_tasks:
            task = ReminderTask.from_raw(raw)
            if not task.title:
                continue
            task_id = int(task.id) if isinstance(task.id, int) or str(task.id or "").isdigit() else None
            due = task.due_date.isoformat() if task.due_date else None
            rows.append((task_id, task.title, due, int(task.completed), now, now))

        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks")
            conn.executemany(
                "INSERT INTO tasks(id, title, due_date, done, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("TaskStore mirrored %d tasks", len(rows))
        return len(rows)
