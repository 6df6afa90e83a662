# src/hive_reminders/device/local_notifications.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from datetime import time as wall_time
from pathlib import Path
from typing import Any

from ..core.ports import SlotStore
from ..reminders.errors import PermissionDeniedError, PersistenceError, TransientSchedulingError
from ..reminders.models import DailyRecurrence, PermissionStatus, ReminderSpec

logger = logging.getLogger(__name__)

PERMISSION_SLOT = "notificationPermission"


@dataclass(frozen=True, slots=True)
class PendingNotification:
    handle: str
    title: str
    body: str
    data: dict[str, Any]
    next_fire_at: float
    repeat_hour: int | None
    repeat_minute: int | None

    @property
    def recurring(self) -> bool:
        return self.repeat_hour is not None


def next_daily_occurrence(now_ts: float, rec: DailyRecurrence) -> float:
    """
    Next local wall-clock hour:minute strictly after now.

    Computed on naive local wall time; `timestamp()` then applies the offset in
    force on that day, so a daily 10:00 stays at 10:00 across DST changes.
    """
    now = datetime.fromtimestamp(now_ts)
    at = wall_time(rec.hour, rec.minute)
    candidate = datetime.combine(now.date(), at)
    if candidate <= now:
        candidate = datetime.combine(now.date() + timedelta(days=1), at)
    return candidate.timestamp()


class LocalNotificationCenter:
    """
    Device-local notification scheduler backed by SQLite.

    Implements the NotificationScheduler port. Pending notifications live in
    one table; the dispatcher loop delivers the due ones. Daily-recurring
    entries are re-armed after delivery, one-shots are removed.

    Permission is kept in a slot so it survives restarts, like an OS setting.
    """

    def __init__(
        self,
        db_path: str | Path,
        slots: SlotStore,
        *,
        initial_permission: PermissionStatus = PermissionStatus.GRANTED,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._slots = slots
        self._initial_permission = initial_permission
        self._clock = clock
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notifications (
                    handle TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    next_fire_at REAL NOT NULL,
                    repeat_hour INTEGER,
                    repeat_minute INTEGER,
                    created_at REAL NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_due ON notifications(next_fire_at)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_pending(row: sqlite3.Row) -> PendingNotification:
        try:
            data = json.loads(row["data"] or "{}")
        except ValueError:
            data = {}
        return PendingNotification(
            handle=str(row["handle"]),
            title=str(row["title"]),
            body=str(row["body"]),
            data=data if isinstance(data, dict) else {},
            next_fire_at=float(row["next_fire_at"]),
            repeat_hour=row["repeat_hour"],
            repeat_minute=row["repeat_minute"],
        )

    # ---- permission ----

    def _permission(self) -> PermissionStatus:
        raw = self._slots.get_json(PERMISSION_SLOT)
        if raw is None:
            return self._initial_permission
        try:
            return PermissionStatus(raw)
        except ValueError:
            return PermissionStatus.UNDETERMINED

    def set_permission(self, status: PermissionStatus) -> None:
        self._slots.set_json(PERMISSION_SLOT, status.value)
        logger.info("Notification permission set to %s", status.value)

    async def get_permission_status(self) -> PermissionStatus:
        return self._permission()

    async def request_permission(self) -> PermissionStatus:
        """
        A prompt only appears while the status is undetermined; an explicit
        denial sticks until changed in system settings (set_permission).
        """
        status = self._permission()
        if status == PermissionStatus.UNDETERMINED:
            self.set_permission(PermissionStatus.GRANTED)
            return PermissionStatus.GRANTED
        return status

    # ---- NotificationScheduler ----

    async def schedule(self, spec: ReminderSpec) -> str:
        if self._permission() != PermissionStatus.GRANTED:
            raise PermissionDeniedError("notifications are not permitted")

        now_ts = self._clock()
        rec = spec.recurrence
        if rec is not None:
            fire_ts = next_daily_occurrence(now_ts, rec)
        elif spec.fire_at is not None:
            fire_ts = spec.fire_at.timestamp()
        else:
            fire_ts = now_ts

        handle = uuid.uuid4().hex
        try:
            data_str = json.dumps(spec.data or {}, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            data_str = "{}"

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO notifications(
                    handle, title, body, data, next_fire_at, repeat_hour, repeat_minute, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    handle,
                    spec.title,
                    spec.body,
                    data_str,
                    fire_ts,
                    rec.hour if rec else None,
                    rec.minute if rec else None,
                    now_ts,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise TransientSchedulingError(f"failed to store notification: {e}") from e
        finally:
            conn.close()

        logger.debug("Notification scheduled handle=%s at=%s recurring=%s", handle, fire_ts, rec is not None)
        return handle

    async def cancel(self, handle: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM notifications WHERE handle = ?", (handle,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to cancel notification {handle}: {e}") from e
        finally:
            conn.close()

    # ---- delivery side ----

    def list_pending(self) -> list[PendingNotification]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM notifications ORDER BY next_fire_at ASC").fetchall()
            return [self._row_to_pending(r) for r in rows]
        finally:
            conn.close()

    def list_due(self, *, now_ts: float, limit: int = 32) -> list[PendingNotification]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM notifications WHERE next_fire_at <= ? ORDER BY next_fire_at ASC LIMIT ?",
                (float(now_ts), int(limit)),
            ).fetchall()
            return [self._row_to_pending(r) for r in rows]
        finally:
            conn.close()

    def mark_delivered(self, note: PendingNotification, *, now_ts: float | None = None) -> None:
        """One-shots are removed; daily ones move to their next occurrence."""
        if now_ts is None:
            now_ts = self._clock()

        conn = self._get_conn()
        try:
            if note.recurring:
                rec = DailyRecurrence(hour=int(note.repeat_hour or 0), minute=int(note.repeat_minute or 0))
                conn.execute(
                    "UPDATE notifications SET next_fire_at = ? WHERE handle = ?",
                    (next_daily_occurrence(now_ts, rec), note.handle),
                )
            else:
                conn.execute("DELETE FROM notifications WHERE handle = ?", (note.handle,))
            conn.commit()
        finally:
            conn.close()
