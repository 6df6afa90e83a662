# src/hive_reminders/connectors/console_messenger.py

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Any, TextIO

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleMessenger:
    """Shows fired notifications as timestamped lines on the terminal."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def send_notification(self, *, title: str, body: str, data: dict[str, Any] | None = None) -> None:
        stream = self._stream or sys.stdout
        task_id = (data or {}).get("taskId")
        suffix = f" (task #{task_id})" if task_id is not None else ""
        stream.write(f"[{_ts_local()}] [REMINDER] {title}: {body}{suffix}\n")
        stream.flush()


class FanoutMessenger:
    """Deliver to several connectors; one failing connector does not block the others."""

    def __init__(self, *messengers: Any) -> None:
        self._messengers = [m for m in messengers if m is not None]

    async def send_notification(self, *, title: str, body: str, data: dict[str, Any] | None = None) -> None:
        failures = 0
        for messenger in self._messengers:
            try:
                await messenger.send_notification(title=title, body=body, data=data)
            except Exception:
                failures += 1
                logger.exception("Connector %s failed to deliver", type(messenger).__name__)
        if self._messengers and failures == len(self._messengers):
            raise RuntimeError("no connector delivered the notification")
