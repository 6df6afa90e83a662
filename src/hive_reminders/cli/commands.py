# src/hive_reminders/cli/commands.py

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta
from pathlib import Path

from ..config import BACKGROUND_TRIGGER_NAME, CADENCE_CHOICES_MINUTES
from ..core.state import AppState
from ..reminders.models import PermissionStatus, parse_due_date
from ..reminders.orchestrator import ApplyReport

CommandHandler = Callable[[AppState, list[str]], "str | Awaitable[str]"]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(state, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_due_arg(raw: str, today: date) -> date | None:
    """YYYY-MM-DD, today, tomorrow or +N (days from today)."""
    word = raw.strip().lower()
    if word == "today":
        return today
    if word == "tomorrow":
        return today + timedelta(days=1)
    if word.startswith("+") and word[1:].isdigit():
        return today + timedelta(days=int(word[1:]))
    if len(word) == 10:
        return parse_due_date(word)
    return None


def _parse_id(args: list[str]) -> int | None:
    if not args or not args[0].lstrip("#").isdigit():
        return None
    return int(args[0].lstrip("#"))


def _summary(report: ApplyReport) -> str:
    if report.error:
        return f"Reminders not applied: {report.error}"
    if not report.prefs.enabled:
        return "Reminders are off; nothing scheduled."
    rec = report.reconcile
    if rec is not None and rec.permission_denied:
        return "Notification permission not granted; no reminders scheduled."
    n = len(rec.scheduled) if rec else 0
    bg = report.cadence
    bg_text = f"background check every {bg.interval_seconds // 60} min" if bg and bg.ok else "background check unavailable"
    return f"{n} reminder(s) scheduled; {bg_text}."


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.list_tasks(include_done=bool(args and args[0].lower() == "all"))
    if not tasks:
        return "No tasks."
    lines = ["Tasks:"]
    for t in tasks:
        mark = "x" if t.completed else " "
        due = t.due_date.isoformat() if t.due_date else "-"
        lines.append(f"  [{mark}] #{t.id} {t.title} (due {due})")
    return "\n".join(lines)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Take out trash tomorrow
    /add Vacuum 2025-09-20
    The last word is used as the due date when it looks like one.
    """
    if not args:
        return "Usage: /add <title> [YYYY-MM-DD|today|tomorrow|+N]"

    due = _parse_due_arg(args[-1], datetime.now().astimezone().date())
    words = args[:-1] if due is not None else args
    title = " ".join(words).strip()
    if not title:
        return "Task title is required."

    task_id = state.task_store.add_task(title=title, due_date=due)
    report = await state.orchestrator.apply_all()
    return f"Task #{task_id} added. {_summary(report)}"


async def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <task id>"
    if not state.task_store.mark_done(task_id):
        return f"No task #{task_id}."
    report = await state.orchestrator.apply_all()
    return f"Task #{task_id} completed. {_summary(report)}"


async def cmd_remove(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /remove <task id>"
    if not state.task_store.delete_task(task_id):
        return f"No task #{task_id}."
    report = await state.orchestrator.apply_all()
    return f"Task #{task_id} removed. {_summary(report)}"


async def cmd_settings(state: AppState, args: list[str]) -> str:
    """
    /settings                -> show preferences
    /settings on | off       -> enable/disable reminders
    /settings cadence 30     -> background check every 30 minutes
    /settings reset          -> defaults
    """
    choices = "/".join(str(c) for c in CADENCE_CHOICES_MINUTES)
    if not args:
        prefs = state.settings_store.get()
        return (
            "Reminder settings:\n"
            f"  Enabled: {'ON' if prefs.enabled else 'OFF'}\n"
            f"  Background cadence: {prefs.cadence_minutes} min (choices: {choices})"
        )

    sub = args[0].lower()
    if sub in ("on", "off"):
        report = await state.orchestrator.update_preferences(enabled=(sub == "on"))
    elif sub == "cadence":
        if len(args) < 2 or not args[1].isdigit():
            return f"Usage: /settings cadence <minutes> ({choices})"
        report = await state.orchestrator.update_preferences(cadence_minutes=int(args[1]))
    elif sub == "reset":
        state.settings_store.reset()
        report = await state.orchestrator.apply_all()
    else:
        return "Usage: /settings [on|off|cadence N|reset]"

    prefs = report.prefs
    return f"Reminders {'ON' if prefs.enabled else 'OFF'}, cadence {prefs.cadence_minutes} min. {_summary(report)}"


async def cmd_import(state: AppState, args: list[str]) -> str:
    """
    /import tasks.json
    Mirror a task list exported from the household backend (a JSON array of
    {"id", "titre", "dueDate", "done"} records, or {"tasks": [...]}).
    """
    if not args:
        return "Usage: /import <tasks.json>"

    path = Path(" ".join(args)).expanduser()
    try:
        payload = json.loads(path.read_text("utf-8"))
    except OSError as e:
        return f"Cannot read {path}: {e.strerror or e}"
    except ValueError:
        return f"{path} is not valid JSON."

    if isinstance(payload, dict):
        payload = payload.get("tasks")
    if not isinstance(payload, list):
        return "Expected a JSON array of tasks."

    n = state.task_store.replace_all(r for r in payload if isinstance(r, dict))
    report = await state.orchestrator.apply_all()
    return f"Imported {n} task(s). {_summary(report)}"


def cmd_pending(state: AppState, args: list[str]) -> str:
    pending = state.notifications.list_pending()
    if not pending:
        return "No pending notifications."
    lines = ["Pending notifications:"]
    for note in pending:
        when = datetime.fromtimestamp(note.next_fire_at).astimezone().strftime("%Y-%m-%d %H:%M")
        repeat = " (daily)" if note.recurring else ""
        lines.append(f"  {when}{repeat} {note.title}: {note.body}")
    return "\n".join(lines)


async def cmd_apply(state: AppState, args: list[str]) -> str:
    return _summary(await state.orchestrator.apply_all())


async def cmd_check(state: AppState, args: list[str]) -> str:
    result = await state.registrar.fire(BACKGROUND_TRIGGER_NAME)
    return f"Background check result: {result.value}"


async def cmd_testburst(state: AppState, args: list[str]) -> str:
    count = int(args[0]) if args and args[0].isdigit() else 3
    seconds = int(args[1]) if len(args) > 1 and args[1].isdigit() else 30
    sent = await state.orchestrator.send_test_burst(count, seconds)
    return f"{sent}/{count} test notification(s) scheduled, {seconds}s apart."


async def cmd_permission(state: AppState, args: list[str]) -> str:
    """
    /permission          -> show notification permission
    /permission grant    -> grant (as if toggled in system settings)
    /permission deny     -> deny
    """
    if args and args[0].lower() in ("grant", "deny"):
        granted = args[0].lower() == "grant"
        state.notifications.set_permission(PermissionStatus.GRANTED if granted else PermissionStatus.DENIED)
        report = await state.orchestrator.apply_all()
        return f"Permission {'granted' if granted else 'denied'}. {_summary(report)}"
    status = await state.notifications.get_permission_status()
    return f"Notification permission: {status.value}"


async def cmd_status(state: AppState, args: list[str]) -> str:
    prefs = state.settings_store.get()
    handles = state.reconciler.ledger.load()
    registered = await state.registrar.is_registered(BACKGROUND_TRIGGER_NAME)
    interval = await state.registrar.get_min_interval(BACKGROUND_TRIGGER_NAME)
    last = state.registrar.last_result(BACKGROUND_TRIGGER_NAME)
    permission = await state.notifications.get_permission_status()
    bg = f"every {interval}s" if registered else "not registered"
    return (
        "Status:\n"
        f"  Reminders: {'ON' if prefs.enabled else 'OFF'} (cadence {prefs.cadence_minutes} min)\n"
        f"  Permission: {permission.value}\n"
        f"  Tracked reminders: {len(handles)}\n"
        f"  Background check: {bg} (last result: {last.value if last else '-'})"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("tasks", cmd_tasks, help_text="List open tasks (/tasks all includes completed).")
registry.register("add", cmd_add, help_text="Add a task: /add <title> [YYYY-MM-DD|today|tomorrow|+N].")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.")
registry.register("remove", cmd_remove, help_text="Delete a task: /remove <id>.", aliases=["rm"])
registry.register("settings", cmd_settings, help_text="Reminder settings: /settings [on|off|cadence N|reset].")
registry.register("import", cmd_import, help_text="Replace tasks with a backend export: /import <tasks.json>.")
registry.register("pending", cmd_pending, help_text="Show notifications waiting to fire.")
registry.register("apply", cmd_apply, help_text="Re-plan and re-schedule all reminders.")
registry.register("check", cmd_check, help_text="Run the background reminder check now.")
registry.register("testburst", cmd_testburst, help_text="Send test notifications: /testburst [count] [seconds].")
registry.register("permission", cmd_permission, help_text="Notification permission: /permission [grant|deny].")
registry.register("status", cmd_status, help_text="Show reminder engine status.")
