# src/hive_reminders/reminders/background.py

from __future__ import annotations

"""
Background reminder check.

Invoked by the platform's periodic trigger, never by the app. Everything it
needs (preferences, permission, tasks) is read fresh on each call; the object
only holds references to the stores and ports wired at startup.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.ports import NotificationScheduler, TaskSource
from .handles import HandleLedger
from .models import BackgroundResult, PermissionStatus, ReminderSpec, ReminderTask
from .outcome import SchedulerGateway
from .planner import plan
from .reconciler import Reconciler
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Hive reminder"


def local_now() -> datetime:
    return datetime.now().astimezone()


def fallback_spec(tasks: list[ReminderTask]) -> ReminderSpec:
    """Generic immediate nudge used when nothing specific is due."""
    pending = [t for t in tasks if not t.completed]
    if pending:
        first = pending[0].title or "A task"
        body = f"{len(pending)} to do. Next: {first}"
    else:
        body = "No overdue tasks. Open the app to check."
    return ReminderSpec(title=FALLBACK_TITLE, body=body, correlation_id=None)


class BackgroundReminderCheck:
    def __init__(
        self,
        *,
        settings_store: SettingsStore,
        scheduler: NotificationScheduler,
        reconciler: Reconciler,
        task_source: TaskSource,
        fallback: HandleLedger | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._settings = settings_store
        self._gateway = SchedulerGateway(scheduler)
        self._reconciler = reconciler
        self._tasks = task_source
        self._fallback = fallback
        self._clock = clock

    async def __call__(self) -> BackgroundResult:
        try:
            return await self._run()
        except Exception:
            logger.exception("Background reminder check failed")
            return BackgroundResult.FAILED

    async def _drop_fallback(self) -> None:
        """Cancel the previous nudge; it is stale once a new pass runs."""
        if self._fallback is None:
            return
        for handle in self._fallback.load():
            await self._gateway.cancel(handle)
        self._fallback.clear()

    async def _run(self) -> BackgroundResult:
        await self._drop_fallback()

        # Re-read: the user may have disabled reminders after the trigger was queued.
        prefs = self._settings.get()
        if not prefs.enabled:
            await self._reconciler.clear()
            logger.info("Background check: reminders disabled")
            return BackgroundResult.NO_DATA

        if await self._gateway.permission() != PermissionStatus.GRANTED:
            await self._reconciler.clear()
            logger.info("Background check: notification permission not granted")
            return BackgroundResult.NO_DATA

        tasks = self._tasks.snapshot()
        report = await self._reconciler.reconcile(plan(tasks, self._clock()))
        if report.scheduled:
            return BackgroundResult.NEW_DATA

        res = await self._gateway.schedule(fallback_spec(tasks))
        if not res.ok:
            return BackgroundResult.FAILED
        if self._fallback is not None and res.value:
            self._fallback.replace([res.value])
        logger.info("Background check: fallback reminder sent")
        return BackgroundResult.NEW_DATA
