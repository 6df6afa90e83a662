# tests/test_device.py

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from hive_reminders.device.background_registrar import AsyncioTriggerRegistrar
from hive_reminders.device.dispatcher import dispatch_due, run_notification_dispatcher
from hive_reminders.device.local_notifications import LocalNotificationCenter, next_daily_occurrence
from hive_reminders.reminders.errors import PermissionDeniedError, RegistrationRestrictedError
from hive_reminders.reminders.models import BackgroundResult, DailyRecurrence, PermissionStatus, ReminderSpec
from hive_reminders.reminders.outcome import FailureKind, SchedulerGateway
from hive_reminders.storage.kv_store import SlotStoreSQLite

from .fakes import BrokenSQLiteConnection, FakeMessenger

BASE = datetime(2025, 9, 10, 12, 0).astimezone()


def _center(tmp_path: Path, permission: PermissionStatus = PermissionStatus.GRANTED) -> LocalNotificationCenter:
    db = tmp_path / "state.sqlite3"
    return LocalNotificationCenter(db, SlotStoreSQLite(db), initial_permission=permission, clock=BASE.timestamp)


def _spec(body: str, **kw) -> ReminderSpec:
    return ReminderSpec(title="Task due today", body=body, correlation_id=1, data={"taskId": 1}, **kw)


@pytest.mark.asyncio
async def test_one_shot_is_delivered_once(tmp_path: Path) -> None:
    center = _center(tmp_path)
    messenger = FakeMessenger()
    await center.schedule(_spec("Trash today", fire_at=BASE + timedelta(hours=5)))

    early = await dispatch_due(center, messenger, now_ts=BASE.timestamp())
    on_time = await dispatch_due(center, messenger, now_ts=(BASE + timedelta(hours=6)).timestamp())
    again = await dispatch_due(center, messenger, now_ts=(BASE + timedelta(hours=7)).timestamp())

    assert (early, on_time, again) == (0, 1, 0)
    assert messenger.delivered[0].body == "Trash today"
    assert messenger.delivered[0].data == {"taskId": 1}
    assert center.list_pending() == []


@pytest.mark.asyncio
async def test_daily_reminder_is_rearmed(tmp_path: Path) -> None:
    center = _center(tmp_path)
    messenger = FakeMessenger()
    await center.schedule(_spec("Trash overdue (1d)", recurrence=DailyRecurrence(hour=10)))

    (pending,) = center.list_pending()
    first_fire = pending.next_fire_at
    assert first_fire > BASE.timestamp()

    assert await dispatch_due(center, messenger, now_ts=first_fire) == 1
    (rearmed,) = center.list_pending()
    assert rearmed.next_fire_at > first_fire
    assert rearmed.recurring


@pytest.mark.asyncio
async def test_immediate_spec_is_due_now(tmp_path: Path) -> None:
    center = _center(tmp_path)
    await center.schedule(ReminderSpec(title="Hive reminder", body="2 to do", correlation_id=None))

    assert len(center.list_due(now_ts=BASE.timestamp())) == 1


@pytest.mark.asyncio
async def test_failed_delivery_is_retried_next_tick(tmp_path: Path) -> None:
    center = _center(tmp_path)
    messenger = FakeMessenger(fail=True)
    await center.schedule(_spec("Trash today", fire_at=BASE))

    assert await dispatch_due(center, messenger, now_ts=BASE.timestamp()) == 0
    messenger.fail = False
    assert await dispatch_due(center, messenger, now_ts=BASE.timestamp()) == 1


@pytest.mark.asyncio
async def test_cancel_is_idempotent(tmp_path: Path) -> None:
    center = _center(tmp_path)
    handle = await center.schedule(_spec("Trash today", fire_at=BASE + timedelta(hours=1)))

    await center.cancel(handle)
    await center.cancel(handle)
    await center.cancel("never-existed")

    assert center.list_pending() == []


@pytest.mark.asyncio
async def test_permission_gates_scheduling(tmp_path: Path) -> None:
    center = _center(tmp_path, PermissionStatus.UNDETERMINED)

    with pytest.raises(PermissionDeniedError):
        await center.schedule(_spec("x", fire_at=BASE))

    assert await center.request_permission() == PermissionStatus.GRANTED
    assert await center.get_permission_status() == PermissionStatus.GRANTED

    center.set_permission(PermissionStatus.DENIED)
    assert await center.request_permission() == PermissionStatus.DENIED


@pytest.mark.asyncio
async def test_dispatcher_loop_delivers_until_cancelled(tmp_path: Path) -> None:
    db = tmp_path / "state.sqlite3"
    center = LocalNotificationCenter(db, SlotStoreSQLite(db))
    messenger = FakeMessenger()
    await center.schedule(ReminderSpec(title="Hive reminder", body="now", correlation_id=None))

    runner = asyncio.create_task(run_notification_dispatcher(center, messenger, interval_seconds=0.01))
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [d.body for d in messenger.delivered] == ["now"]


@pytest.mark.asyncio
async def test_registrar_registration_is_idempotent() -> None:
    calls: list[int] = []

    async def handler() -> BackgroundResult:
        calls.append(1)
        return BackgroundResult.NO_DATA

    registrar = AsyncioTriggerRegistrar()
    registrar.define("bg", handler)

    await registrar.register("bg", 1800)
    await registrar.register("bg", 3600)
    assert await registrar.is_registered("bg")
    assert await registrar.get_min_interval("bg") == 3600

    await registrar.set_min_interval("bg", 60)
    assert await registrar.get_min_interval("bg") == 900

    assert await registrar.fire("bg") == BackgroundResult.NO_DATA
    assert registrar.last_result("bg") == BackgroundResult.NO_DATA
    assert calls == [1]

    await registrar.unregister("bg")
    await registrar.unregister("bg")
    assert not await registrar.is_registered("bg")
    await registrar.shutdown()


@pytest.mark.asyncio
async def test_registrar_restricted_refuses() -> None:
    registrar = AsyncioTriggerRegistrar(restricted=True)

    async def handler() -> BackgroundResult:
        return BackgroundResult.NO_DATA

    registrar.define("bg", handler)
    with pytest.raises(RegistrationRestrictedError):
        await registrar.register("bg", 900)


@pytest.mark.asyncio
async def test_registrar_runs_handler_periodically() -> None:
    fired = asyncio.Event()

    async def handler() -> BackgroundResult:
        fired.set()
        return BackgroundResult.NEW_DATA

    registrar = AsyncioTriggerRegistrar(floor_seconds=0)
    registrar.define("bg", handler)
    await registrar.register("bg", 0)

    await asyncio.wait_for(fired.wait(), timeout=1.0)
    await registrar.shutdown()
    assert not await registrar.is_registered("bg")


def test_daily_occurrence_keeps_wall_time_across_dst_change(paris_tz) -> None:
    now_ts = datetime(2025, 10, 25, 12, 0).timestamp()

    nxt = next_daily_occurrence(now_ts, DailyRecurrence(hour=10))

    assert datetime.fromtimestamp(nxt) == datetime(2025, 10, 26, 10, 0)


@pytest.mark.asyncio
async def test_cancel_storage_failure_is_a_persistence_failure(tmp_path: Path, monkeypatch) -> None:
    center = _center(tmp_path)
    monkeypatch.setattr(center, "_get_conn", lambda: BrokenSQLiteConnection())

    res = await SchedulerGateway(center).cancel("abc")

    assert not res.ok
    assert res.failure == FailureKind.PERSISTENCE
