# src/hive_reminders/reminders/planner.py

from __future__ import annotations

"""
Reminder planner.

Pure mapping (tasks, now) -> list[ReminderSpec]. No I/O, no clock reads:
the caller passes `now`, and `now`'s tzinfo is taken as the local zone
(naive `now` means naive local wall time; the offset from a bare
`astimezone()` means the host zone, DST rules included).

Per open task with a due date:
- overdue        -> one daily-recurring reminder at 10:00
- due tomorrow   -> 18:00 the day before + 09:00 on the day
- due today      -> 09:00 + 17:00 on the day
- due this week  -> 09:00 on the day
- due later      -> nothing yet (a later pass picks it up)
One-shot times already in the past are dropped, never submitted.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone

from ..config import DEEP_LINK
from .models import DailyRecurrence, DueCategory, ReminderSpec, ReminderTask

logger = logging.getLogger(__name__)

DAY_BEFORE_AT = time(18, 0)
MORNING_AT = time(9, 0)
EVENING_AT = time(17, 0)
OVERDUE_DAILY = DailyRecurrence(hour=10, minute=0)

_TITLES = {
    DueCategory.OVERDUE: "Task overdue",
    DueCategory.DUE_TODAY: "Task due today",
    DueCategory.DUE_TOMORROW: "Task due tomorrow",
    DueCategory.DUE_THIS_WEEK: "Upcoming task",
    DueCategory.DUE_LATER: "Upcoming task",
}


def days_between(today: date, due: date) -> int:
    """Calendar-day difference; time of day never matters."""
    return (due - today).days


def reminder_title(category: DueCategory) -> str:
    return _TITLES[category]


def reminder_body(task_title: str, category: DueCategory, diff_days: int, due: date) -> str:
    if category == DueCategory.OVERDUE:
        rel = f"overdue ({abs(diff_days)}d)"
    elif category == DueCategory.DUE_TODAY:
        rel = "today"
    elif category == DueCategory.DUE_TOMORROW:
        rel = "tomorrow"
    elif category == DueCategory.DUE_THIS_WEEK:
        rel = f"in {diff_days}d"
    else:
        rel = f"on {due.isoformat()}"
    return f"{task_title} {rel}"


def _is_system_local(now: datetime) -> bool:
    """True for the fixed offsets `datetime.astimezone()` hands out for the host zone."""
    return isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset()


def _at(day: date, at: time, now: datetime) -> datetime:
    """
    Wall-clock `at` on `day`, in the zone of `now`.

    The offset is resolved for `day` itself, so 09:00 stays 09:00 across a DST change.
    """
    wall = datetime.combine(day, at)
    if now.tzinfo is None:
        return wall
    if _is_system_local(now):
        return wall.astimezone()
    return wall.replace(tzinfo=now.tzinfo)


def plan_task(task: ReminderTask, now: datetime) -> list[ReminderSpec]:
    """Specs for one task (0..2 of them)."""
    if task.completed or task.due_date is None or not task.title:
        return []

    due = task.due_date
    diff_days = days_between(now.date(), due)
    category = DueCategory.from_diff_days(diff_days)
    title = reminder_title(category)
    body = reminder_body(task.title, category, diff_days, due)
    data = {"taskId": task.id, "deepLink": DEEP_LINK}

    if category == DueCategory.OVERDUE:
        return [
            ReminderSpec(
                title=title,
                body=body,
                correlation_id=task.id,
                recurrence=OVERDUE_DAILY,
                data=data,
            )
        ]

    if category == DueCategory.DUE_LATER:
        return []

    candidates: list[datetime] = []
    if diff_days == 1:
        candidates.append(_at(due - timedelta(days=1), DAY_BEFORE_AT, now))
    candidates.append(_at(due, MORNING_AT, now))
    if diff_days == 0:
        candidates.append(_at(due, EVENING_AT, now))

    return [
        ReminderSpec(title=title, body=body, correlation_id=task.id, fire_at=when, data=dict(data))
        for when in candidates
        if when > now
    ]


def plan(tasks: Iterable[ReminderTask], now: datetime) -> list[ReminderSpec]:
    """Desired reminder set, in task iteration order."""
    specs: list[ReminderSpec] = []
    skipped = 0
    for task in tasks:
        task_specs = plan_task(task, now)
        if not task_specs:
            skipped += 1
        specs.extend(task_specs)
    logger.debug("Planned %d reminders (%d tasks without any)", len(specs), skipped)
    return specs
