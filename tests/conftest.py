# tests/conftest.py

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from hive_reminders.cli.bootstrap import create_initial_state
from hive_reminders.core.state import AppState
from hive_reminders.reminders.cadence import CadenceManager
from hive_reminders.reminders.handles import HandleLedger
from hive_reminders.reminders.reconciler import Reconciler
from hive_reminders.reminders.settings_store import SettingsStore

from .fakes import FakeNotificationScheduler, FakeRegistrar, FakeTaskSource, InMemorySlots

# Wednesday noon, naive local wall time.
NOW = datetime(2025, 9, 10, 12, 0)


@pytest.fixture()
def paris_tz(monkeypatch: pytest.MonkeyPatch):
    """Host zone set to Europe/Paris (summer time ends 2025-10-26)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", "Europe/Paris")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture()
def slots() -> InMemorySlots:
    return InMemorySlots()


@pytest.fixture()
def scheduler() -> FakeNotificationScheduler:
    return FakeNotificationScheduler()


@pytest.fixture()
def registrar() -> FakeRegistrar:
    return FakeRegistrar()


@pytest.fixture()
def task_source() -> FakeTaskSource:
    return FakeTaskSource()


@pytest.fixture()
def settings_store(slots: InMemorySlots) -> SettingsStore:
    return SettingsStore(slots)


@pytest.fixture()
def ledger(slots: InMemorySlots) -> HandleLedger:
    return HandleLedger(slots)


@pytest.fixture()
def reconciler(scheduler: FakeNotificationScheduler, ledger: HandleLedger) -> Reconciler:
    return Reconciler(scheduler, ledger)


@pytest.fixture()
def cadence(registrar: FakeRegistrar) -> CadenceManager:
    return CadenceManager(registrar)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="hive-test",
        data_dir=tmp_path,
        state_db_path=tmp_path / "state.sqlite3",
        tasks_db_path=tmp_path / "tasks.sqlite3",
        dispatch_interval_seconds=0.01,
        notifications_granted=True,
        background_restricted=False,
        console_enabled=True,
        matrix_enabled=False,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired by the real composition root.

    Real SQLite stores and device adapters are used here because their
    wiring is part of what we want to test.
    """
    return create_initial_state(settings=settings)
