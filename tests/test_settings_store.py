# tests/test_settings_store.py

from __future__ import annotations

from hive_reminders.config import SETTINGS_SLOT
from hive_reminders.reminders.models import Preferences
from hive_reminders.reminders.settings_store import SettingsStore

from .fakes import InMemorySlots


def test_missing_value_yields_defaults(settings_store: SettingsStore) -> None:
    prefs = settings_store.get()
    assert prefs == Preferences(enabled=True, cadence_minutes=15, mode="per-task")


def test_cadence_is_clamped_on_update(settings_store: SettingsStore, slots: InMemorySlots) -> None:
    low = settings_store.update({"cadence_minutes": 5})
    assert low.cadence_minutes == 15
    assert slots.data[SETTINGS_SLOT]["frequencyMinutes"] == 15

    high = settings_store.update({"cadence_minutes": 10000})
    assert high.cadence_minutes == 240
    assert settings_store.get().cadence_minutes == 240


def test_update_merges_partial(settings_store: SettingsStore) -> None:
    settings_store.update(cadence_minutes=30)
    prefs = settings_store.update(enabled=False)

    assert prefs.enabled is False
    assert prefs.cadence_minutes == 30
    assert settings_store.get() == prefs


def test_out_of_range_persisted_value_is_normalized_on_read() -> None:
    slots = InMemorySlots({SETTINGS_SLOT: {"enabled": "false", "frequencyMinutes": 1, "mode": "digest"}})
    prefs = SettingsStore(slots).get()

    assert prefs.enabled is False
    assert prefs.cadence_minutes == 15
    assert prefs.mode == "per-task"


def test_garbage_value_falls_back_to_defaults() -> None:
    slots = InMemorySlots({SETTINGS_SLOT: ["not", "a", "dict"]})
    assert SettingsStore(slots).get() == Preferences()

    slots = InMemorySlots({SETTINGS_SLOT: {"frequencyMinutes": "often"}})
    assert SettingsStore(slots).get().cadence_minutes == 15


def test_read_failure_falls_back_to_defaults(settings_store: SettingsStore, slots: InMemorySlots) -> None:
    settings_store.update(enabled=False)
    slots.fail_reads = True
    assert settings_store.get() == Preferences()


def test_write_failure_still_returns_normalized_value(settings_store: SettingsStore, slots: InMemorySlots) -> None:
    slots.fail_writes = True
    prefs = settings_store.update(cadence_minutes=60)
    assert prefs.cadence_minutes == 60


def test_reset_restores_defaults(settings_store: SettingsStore) -> None:
    settings_store.update(enabled=False, cadence_minutes=60)
    assert settings_store.reset() == Preferences()
    assert settings_store.get() == Preferences()
