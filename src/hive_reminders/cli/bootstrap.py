# src/hive_reminders/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires stores, device adapters and the reminder engine into AppState,
- defines the background handler once, by name, on the registrar.
"""

from __future__ import annotations

import logging

from ..config import BACKGROUND_TRIGGER_NAME, FALLBACK_SLOT, get_settings
from ..connectors.console_messenger import ConsoleMessenger, FanoutMessenger
from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..device.background_registrar import AsyncioTriggerRegistrar
from ..device.local_notifications import LocalNotificationCenter
from ..reminders.background import BackgroundReminderCheck
from ..reminders.cadence import CadenceManager
from ..reminders.handles import HandleLedger
from ..reminders.models import PermissionStatus
from ..reminders.orchestrator import ReminderOrchestrator
from ..reminders.reconciler import Reconciler
from ..reminders.settings_store import SettingsStore
from ..storage.kv_store import SlotStoreSQLite
from ..storage.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.state_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_messenger(settings) -> tuple[OutboundMessenger, list]:
    """Console and/or Matrix delivery, plus anything that needs closing on shutdown."""
    messengers: list = []
    closers: list = []
    if settings.console_enabled:
        messengers.append(ConsoleMessenger())
    if settings.matrix_enabled:
        from ..connectors.matrix_messenger import MatrixMessenger

        matrix = MatrixMessenger(settings)
        messengers.append(matrix)
        closers.append(matrix)
    if not messengers:
        # Something has to show the reminders.
        messengers.append(ConsoleMessenger())
    if len(messengers) == 1:
        return messengers[0], closers
    return FanoutMessenger(*messengers), closers


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    slots = SlotStoreSQLite(settings.state_db_path)
    task_store = TaskStore(settings.tasks_db_path)
    notifications = LocalNotificationCenter(
        settings.state_db_path,
        slots,
        initial_permission=(
            PermissionStatus.GRANTED if settings.notifications_granted else PermissionStatus.UNDETERMINED
        ),
    )
    registrar = AsyncioTriggerRegistrar(restricted=settings.background_restricted)

    settings_store = SettingsStore(slots)
    reconciler = Reconciler(notifications, HandleLedger(slots))
    orchestrator = ReminderOrchestrator(
        settings_store=settings_store,
        scheduler=notifications,
        reconciler=reconciler,
        cadence=CadenceManager(registrar),
        task_source=task_store,
    )
    background_check = BackgroundReminderCheck(
        settings_store=settings_store,
        scheduler=notifications,
        reconciler=reconciler,
        task_source=task_store,
        fallback=HandleLedger(slots, slot=FALLBACK_SLOT),
    )
    registrar.define(BACKGROUND_TRIGGER_NAME, background_check)

    messenger, closers = build_messenger(settings)

    return AppState(
        settings=settings,
        slots=slots,
        task_store=task_store,
        notifications=notifications,
        registrar=registrar,
        settings_store=settings_store,
        reconciler=reconciler,
        orchestrator=orchestrator,
        background_check=background_check,
        messenger=messenger,
        closers=closers,
    )
