# tests/test_reconciler.py

from __future__ import annotations

from datetime import datetime

import pytest

from hive_reminders.config import HANDLES_SLOT
from hive_reminders.reminders.handles import HandleLedger
from hive_reminders.reminders.models import PermissionStatus, ReminderSpec
from hive_reminders.reminders.reconciler import Reconciler

from .fakes import FakeNotificationScheduler, InMemorySlots


def _specs(*bodies: str) -> list[ReminderSpec]:
    return [
        ReminderSpec(title="Task due today", body=b, correlation_id=i, fire_at=datetime(2025, 9, 10, 17, 0))
        for i, b in enumerate(bodies, start=1)
    ]


@pytest.mark.asyncio
async def test_reconcile_twice_keeps_one_live_handle_per_spec(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    specs = _specs("Trash today", "Dishes today")

    await reconciler.reconcile(specs)
    await reconciler.reconcile(specs)

    assert len(scheduler.live) == 2
    assert set(ledger.load()) == set(scheduler.live)


@pytest.mark.asyncio
async def test_each_pass_replaces_the_previous_ledger(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    first = await reconciler.reconcile(_specs("a", "b", "c"))
    second = await reconciler.reconcile(_specs("d"))

    assert second.cancelled == 3
    assert ledger.load() == second.scheduled
    assert not set(first.scheduled) & set(ledger.load())
    assert list(scheduler.live) == second.scheduled


@pytest.mark.asyncio
async def test_one_bad_spec_does_not_abort_the_others(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    scheduler.fail_bodies = {"bad"}

    report = await reconciler.reconcile(_specs("ok1", "bad", "ok2"))

    assert report.schedule_failures == 1
    assert len(report.scheduled) == 2
    assert len(ledger.load()) == 2
    assert {s.body for s in scheduler.live.values()} == {"ok1", "ok2"}


@pytest.mark.asyncio
async def test_cancel_failures_are_skipped(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    first = await reconciler.reconcile(_specs("a", "b"))
    scheduler.fail_cancel = {first.scheduled[0]}

    report = await reconciler.reconcile(_specs("c"))

    assert report.cancel_failures == 1
    assert report.cancelled == 1
    assert ledger.load() == report.scheduled


@pytest.mark.asyncio
async def test_permission_denied_clears_everything(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    await reconciler.reconcile(_specs("a", "b"))
    scheduler.permission = PermissionStatus.DENIED

    report = await reconciler.reconcile(_specs("c"))

    assert report.permission_denied is True
    assert report.scheduled == []
    assert scheduler.live == {}
    assert ledger.load() == []


@pytest.mark.asyncio
async def test_clear_cancels_and_empties_ledger(
    reconciler: Reconciler, scheduler: FakeNotificationScheduler, ledger: HandleLedger
) -> None:
    await reconciler.reconcile(_specs("a", "b"))

    report = await reconciler.clear()

    assert report.cancelled == 2
    assert scheduler.live == {}
    assert ledger.load() == []


@pytest.mark.asyncio
async def test_unreadable_ledger_is_treated_as_empty(scheduler: FakeNotificationScheduler) -> None:
    slots = InMemorySlots({HANDLES_SLOT: "corrupt"})
    reconciler = Reconciler(scheduler, HandleLedger(slots))

    report = await reconciler.reconcile(_specs("a"))

    assert report.cancelled == 0
    assert slots.data[HANDLES_SLOT] == report.scheduled


@pytest.mark.asyncio
async def test_ledger_write_failure_is_reported_not_raised(
    scheduler: FakeNotificationScheduler, slots: InMemorySlots
) -> None:
    reconciler = Reconciler(scheduler, HandleLedger(slots))
    slots.fail_writes = True

    report = await reconciler.reconcile(_specs("a"))

    assert report.persisted is False
    assert len(report.scheduled) == 1
