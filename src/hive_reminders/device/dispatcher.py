# src/hive_reminders/device/dispatcher.py

"""
Notification dispatcher.

A small polling loop that plays the OS role of actually showing notifications:
- fetches due entries from the LocalNotificationCenter,
- hands each one to an injected messenger port,
- marks it delivered (one-shot removed, daily re-armed).

A failed delivery is left in place and retried on the next tick.
Rendering (console line, Matrix message) belongs to the connector, not here.
"""

from __future__ import annotations

import asyncio
import logging
import time

from ..core.ports import OutboundMessenger
from .local_notifications import LocalNotificationCenter

logger = logging.getLogger(__name__)


async def dispatch_due(
    center: LocalNotificationCenter,
    messenger: OutboundMessenger,
    *,
    now_ts: float | None = None,
    batch_limit: int = 32,
) -> int:
    """Deliver everything due right now. Returns how many were delivered."""
    if now_ts is None:
        now_ts = time.time()

    try:
        due = center.list_due(now_ts=now_ts, limit=int(batch_limit))
    except Exception:
        logger.exception("list_due failed")
        return 0

    delivered = 0
    for note in due:
        try:
            await messenger.send_notification(title=note.title, body=note.body, data=note.data)
        except Exception:
            logger.exception("Notification delivery failed handle=%s", note.handle)
            continue

        try:
            center.mark_delivered(note, now_ts=now_ts)
        except Exception:
            logger.exception("mark_delivered failed handle=%s", note.handle)
            continue
        delivered += 1
        logger.debug("Notification delivered handle=%s recurring=%s", note.handle, note.recurring)

    return delivered


async def run_notification_dispatcher(
    center: LocalNotificationCenter,
    messenger: OutboundMessenger,
    *,
    interval_seconds: float = 15.0,
    batch_limit: int = 32,
) -> None:
    """
    Deliver due notifications every interval_seconds.

    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.5, float(interval_seconds))

    while True:
        await dispatch_due(center, messenger, batch_limit=batch_limit)
        await asyncio.sleep(sleep_s)
