# tests/test_storage.py

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from hive_reminders.reminders.errors import PersistenceError
from hive_reminders.reminders.handles import HandleLedger
from hive_reminders.storage.kv_store import SlotStoreSQLite
from hive_reminders.storage.task_store import TaskStore

from .fakes import BrokenSQLiteConnection


def test_slots_roundtrip_and_replace(tmp_path: Path) -> None:
    slots = SlotStoreSQLite(tmp_path / "state.sqlite3")

    assert slots.get_json("missing") is None
    assert slots.set_json("taskReminderIds", ["a", "b"])
    assert slots.set_json("taskReminderIds", ["c"])
    assert slots.get_json("taskReminderIds") == ["c"]

    assert slots.delete("taskReminderIds")
    assert slots.get_json("taskReminderIds") is None


def test_slots_ignore_invalid_json(tmp_path: Path) -> None:
    db = tmp_path / "state.sqlite3"
    slots = SlotStoreSQLite(db)
    conn = sqlite3.connect(db)
    conn.execute("INSERT INTO slots(key, value, updated_at) VALUES ('broken', '{nope', 0)")
    conn.commit()
    conn.close()

    assert slots.get_json("broken") is None


def test_task_store_crud_and_snapshot(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")

    trash = store.add_task(title="Trash", due_date=date(2025, 9, 10))
    vacuum = store.add_task(title="Vacuum", due_date="2025-09-20")
    store.add_task(title="Someday")
    assert store.count_tasks() == 3

    assert store.mark_done(trash)
    assert store.update_task(vacuum, title="Vacuum upstairs")

    open_titles = [t.title for t in store.list_tasks(include_done=False)]
    assert open_titles == ["Vacuum upstairs", "Someday"]

    snap = {t.id: t for t in store.snapshot()}
    assert snap[trash].completed is True
    assert snap[vacuum].due_date == date(2025, 9, 20)

    assert store.update_task(vacuum, clear_due_date=True)
    assert store.get_task(vacuum).due_date is None

    assert store.delete_task(trash)
    assert store.get_task(trash) is None
    assert not store.delete_task(trash)


def test_task_store_rejects_blank_title(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    with pytest.raises(ValueError):
        store.add_task(title="   ")


def test_task_store_mirrors_backend_records(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.add_task(title="stale")

    n = store.replace_all(
        [
            {"id": 7, "titre": "Trash", "dueDate": "2025-09-10", "done": False},
            {"id": 8, "titre": "Dishes", "dueDate": "garbage", "done": True},
            {"titre": ""},
        ]
    )

    assert n == 2
    snap = {t.id: t for t in store.snapshot()}
    assert set(snap) == {7, 8}
    assert snap[7].due_date == date(2025, 9, 10)
    assert snap[8].due_date is None and snap[8].completed


def test_slot_write_failure_raises_persistence_error(tmp_path: Path, monkeypatch) -> None:
    slots = SlotStoreSQLite(tmp_path / "state.sqlite3")
    monkeypatch.setattr(slots, "_get_conn", lambda: BrokenSQLiteConnection())

    with pytest.raises(PersistenceError):
        slots.set_json("taskReminderIds", ["h1"])
    with pytest.raises(PersistenceError):
        slots.delete("taskReminderIds")

    assert HandleLedger(slots).replace(["h1"]) is False
