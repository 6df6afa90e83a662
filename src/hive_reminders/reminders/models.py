# src/hive_reminders/reminders/models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from ..config import CADENCE_CEILING_MINUTES, CADENCE_FLOOR_MINUTES, DEFAULT_CADENCE_MINUTES

logger = logging.getLogger(__name__)

TaskId = int | str


class DueCategory(StrEnum):
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_TOMORROW = "due_tomorrow"
    DUE_THIS_WEEK = "due_this_week"
    DUE_LATER = "due_later"

    @classmethod
    def from_diff_days(cls, diff_days: int) -> DueCategory:
        if diff_days < 0:
            return cls.OVERDUE
        if diff_days == 0:
            return cls.DUE_TODAY
        if diff_days == 1:
            return cls.DUE_TOMORROW
        if diff_days <= 7:
            return cls.DUE_THIS_WEEK
        return cls.DUE_LATER


class PermissionStatus(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class RegistrarStatus(StrEnum):
    AVAILABLE = "available"
    RESTRICTED = "restricted"
    DENIED = "denied"


class BackgroundResult(StrEnum):
    """What the background handler reports back to the platform scheduler."""

    NEW_DATA = "new_data"
    NO_DATA = "no_data"
    FAILED = "failed"


def _local_day(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone().date()


def parse_due_date(raw: Any) -> date | None:
    """
    Accept a date, a datetime, or an ISO string ("2025-09-10" or a full timestamp).
    Anything unparseable means "no due date".

    Timestamps with an offset ("2025-09-09T22:00:00.000Z") count on the local
    calendar day they fall on.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return _local_day(raw)
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None

    text = raw.strip()
    try:
        return date.fromisoformat(text) if len(text) == 10 else _local_day(datetime.fromisoformat(text))
    except ValueError:
        logger.debug("Unparseable due date %r; treating as none", raw)
        return None


@dataclass(frozen=True, slots=True)
class ReminderTask:
    """Read-only snapshot of a task, as far as reminders care."""

    id: TaskId | None
    title: str
    due_date: date | None
    completed: bool = False

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ReminderTask:
        """
        Build from a cached task record. Accepts both the backend's field names
        ("titre", "done") and plain ones ("title", "completed").
        """
        title = raw.get("titre")
        if title is None:
            title = raw.get("title")
        completed = raw.get("done")
        if completed is None:
            completed = raw.get("completed", False)
        return cls(
            id=raw.get("id"),
            title=str(title or "").strip(),
            due_date=parse_due_date(raw.get("dueDate", raw.get("due_date"))),
            completed=bool(completed),
        )


@dataclass(frozen=True, slots=True)
class DailyRecurrence:
    hour: int
    minute: int = 0


@dataclass(frozen=True, slots=True)
class ReminderSpec:
    """
    One notification the planner wants to exist.

    At most one of fire_at / recurrence is set; neither means "deliver now".
    correlation_id is the task id, or None for tasks without an id
    (schedulable but not individually cancellable).
    """

    title: str
    body: str
    correlation_id: TaskId | None
    fire_at: datetime | None = None
    recurrence: DailyRecurrence | None = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


def clamp_cadence(raw: Any) -> int:
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_CADENCE_MINUTES
    return max(CADENCE_FLOOR_MINUTES, min(CADENCE_CEILING_MINUTES, minutes))


@dataclass(frozen=True, slots=True)
class Preferences:
    enabled: bool = True
    cadence_minutes: int = DEFAULT_CADENCE_MINUTES
    mode: str = "per-task"

    @classmethod
    def normalized(cls, raw: dict[str, Any] | None) -> Preferences:
        """
        Merge raw persisted values over defaults and clamp.

        Persisted JSON uses the app's camelCase keys ("frequencyMinutes");
        snake_case is accepted too.
        """
        raw = raw or {}
        cadence = raw.get("frequencyMinutes", raw.get("cadence_minutes", DEFAULT_CADENCE_MINUTES))
        enabled = raw.get("enabled", True)
        if isinstance(enabled, str):
            enabled = enabled.strip().lower() in {"1", "true", "yes", "on"}
        return cls(
            enabled=bool(enabled),
            cadence_minutes=clamp_cadence(cadence),
            mode="per-task",
        )

    def to_json(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "frequencyMinutes": self.cadence_minutes, "mode": self.mode}
