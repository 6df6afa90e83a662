# src/hive_reminders/reminders/reconciler.py

from __future__ import annotations

"""
Reminder reconciler.

Full replace, not an incremental diff:
1. read the handle ledger from the previous pass
2. cancel every handle in it (per-handle failures are skipped)
3. no permission -> clear the ledger and stop ("no reminders")
4. schedule every new reminder (per-reminder failures are skipped)
5. write the collected handles as the new ledger, in one write

Because every pass cancels everything currently persisted before adding anything,
interleaved foreground/background passes can never leave a live handle outside
the ledger; the last writer's set survives.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..core.ports import NotificationScheduler
from .handles import HandleLedger
from .models import PermissionStatus, ReminderSpec
from .outcome import SchedulerGateway

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconcileReport:
    cancelled: int = 0
    cancel_failures: int = 0
    scheduled: list[str] = field(default_factory=list)
    schedule_failures: int = 0
    permission_denied: bool = False
    persisted: bool = True


class Reconciler:
    def __init__(self, scheduler: NotificationScheduler, ledger: HandleLedger) -> None:
        self._gateway = SchedulerGateway(scheduler)
        self._ledger = ledger

    @property
    def ledger(self) -> HandleLedger:
        return self._ledger

    async def _cancel_previous(self, report: ReconcileReport) -> None:
        for handle in self._ledger.load():
            res = await self._gateway.cancel(handle)
            if res.ok:
                report.cancelled += 1
            else:
                report.cancel_failures += 1

    async def reconcile(self, specs: Sequence[ReminderSpec]) -> ReconcileReport:
        report = ReconcileReport()
        await self._cancel_previous(report)

        if await self._gateway.permission() != PermissionStatus.GRANTED:
            report.permission_denied = True
            report.persisted = self._ledger.clear()
            logger.warning(
                "Notification permission not granted; %d reminders dropped (cancelled %d)",
                len(specs),
                report.cancelled,
            )
            return report

        for spec in specs:
            res = await self._gateway.schedule(spec)
            if res.ok and res.value:
                report.scheduled.append(res.value)
            else:
                report.schedule_failures += 1

        report.persisted = self._ledger.replace(report.scheduled)
        logger.info(
            "Reconciled reminders: cancelled=%d scheduled=%d failed=%d",
            report.cancelled,
            len(report.scheduled),
            report.schedule_failures + report.cancel_failures,
        )
        return report

    async def clear(self) -> ReconcileReport:
        """Cancel everything in the ledger and leave it empty (reminders disabled)."""
        report = ReconcileReport()
        await self._cancel_previous(report)
        report.persisted = self._ledger.clear()
        logger.info("Cleared reminders: cancelled=%d failed=%d", report.cancelled, report.cancel_failures)
        return report
