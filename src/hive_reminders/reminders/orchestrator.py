# src/hive_reminders/reminders/orchestrator.py

from __future__ import annotations

"""
Preference orchestrator.

The single entry point for every mutation path (task created/updated/completed,
settings changed, app cold start). Nothing else schedules notifications:

    prefs = settings.get()
    disabled -> clear reminders, unregister background trigger
    enabled  -> plan(tasks, now) -> reconcile -> cadence.apply(prefs)
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import NotificationScheduler, TaskSource
from .background import local_now
from .cadence import CadenceManager, CadenceOutcome
from .models import PermissionStatus, Preferences, ReminderSpec, ReminderTask
from .outcome import SchedulerGateway
from .planner import plan
from .reconciler import ReconcileReport, Reconciler
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApplyReport:
    prefs: Preferences
    reconcile: ReconcileReport | None = None
    cadence: CadenceOutcome | None = None
    error: str | None = None


class ReminderOrchestrator:
    def __init__(
        self,
        *,
        settings_store: SettingsStore,
        scheduler: NotificationScheduler,
        reconciler: Reconciler,
        cadence: CadenceManager,
        task_source: TaskSource,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.settings_store = settings_store
        self._gateway = SchedulerGateway(scheduler)
        self._reconciler = reconciler
        self._cadence = cadence
        self._tasks = task_source
        self._clock = clock

    async def apply_all(self, tasks: Iterable[ReminderTask] | None = None) -> ApplyReport:
        """Re-derive and re-apply the whole reminder state. Never raises."""
        prefs = self.settings_store.get()
        try:
            if not prefs.enabled:
                cleared = await self._reconciler.clear()
                cadence = await self._cadence.disable()
                return ApplyReport(prefs, cleared, cadence)

            source = list(tasks) if tasks is not None else self._snapshot()
            specs = plan(source, self._clock())
            report = await self._reconciler.reconcile(specs)
            cadence = await self._cadence.apply(prefs)
            if not cadence.ok:
                logger.warning("Background cadence not applied (%s)", cadence.failure)
            return ApplyReport(prefs, report, cadence)
        except Exception as e:
            logger.exception("apply_all failed")
            return ApplyReport(prefs, error=repr(e))

    async def update_preferences(self, **changes) -> ApplyReport:
        """Settings screen path: persist, then re-apply."""
        self.settings_store.update(changes)
        return await self.apply_all()

    async def ensure_permission(self) -> PermissionStatus:
        """Ask once for notification permission if it is not granted yet."""
        status = await self._gateway.permission()
        if status == PermissionStatus.GRANTED:
            return status
        status = await self._gateway.request_permission()
        logger.info("Notification permission after request: %s", status.value)
        return status

    async def send_test_burst(self, count: int = 3, seconds: int = 30) -> int:
        """
        Schedule `count` test notifications `seconds` apart.

        These are not tracked in the handle ledger; they fire once and are gone.
        """
        if await self.ensure_permission() != PermissionStatus.GRANTED:
            return 0
        now = self._clock()
        sent = 0
        for i in range(1, max(0, int(count)) + 1):
            spec = ReminderSpec(
                title="Test notification",
                body=f"Test {i}/{count}",
                correlation_id=None,
                fire_at=now + timedelta(seconds=i * max(1, int(seconds))),
            )
            if (await self._gateway.schedule(spec)).ok:
                sent += 1
        return sent

    def _snapshot(self) -> list[ReminderTask]:
        try:
            return self._tasks.snapshot()
        except Exception:
            # No readable tasks: reconcile against nothing, which clears stale reminders.
            logger.exception("Task snapshot unavailable")
            return []
