# src/hive_reminders/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..device.background_registrar import AsyncioTriggerRegistrar
from ..device.local_notifications import LocalNotificationCenter
from ..reminders.background import BackgroundReminderCheck
from ..reminders.orchestrator import ReminderOrchestrator
from ..reminders.reconciler import Reconciler
from ..reminders.settings_store import SettingsStore
from ..storage.kv_store import SlotStoreSQLite
from ..storage.task_store import TaskStore
from .ports import OutboundMessenger


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    slots: SlotStoreSQLite
    task_store: TaskStore
    notifications: LocalNotificationCenter
    registrar: AsyncioTriggerRegistrar

    settings_store: SettingsStore
    reconciler: Reconciler
    orchestrator: ReminderOrchestrator
    background_check: BackgroundReminderCheck

    messenger: OutboundMessenger
    closers: list[Any] = field(default_factory=list)
