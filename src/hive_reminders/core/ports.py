# src/hive_reminders/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder engine.

The engine depends on Protocols instead of concrete implementations.
This keeps the platform (notifications, background fetch), storage and
delivery connectors swappable and makes testing easier.
"""

from typing import Any, Awaitable, Callable, Protocol

from ..reminders.models import BackgroundResult, PermissionStatus, RegistrarStatus, ReminderSpec, ReminderTask


class NotificationScheduler(Protocol):
    """
    Platform notification facility.

    schedule() returns an opaque handle. cancel() must be idempotent
    (no error on a handle that already fired or never existed).
    Implementations may raise; the engine wraps calls in SchedulerGateway.
    """

    def schedule(self, spec: ReminderSpec) -> Awaitable[str]: ...
    def cancel(self, handle: str) -> Awaitable[None]: ...
    def get_permission_status(self) -> Awaitable[PermissionStatus]: ...
    def request_permission(self) -> Awaitable[PermissionStatus]: ...


class BackgroundTriggerRegistrar(Protocol):
    """Platform periodic wake-up facility (background fetch)."""

    def get_status(self) -> Awaitable[RegistrarStatus]: ...
    def is_registered(self, name: str) -> Awaitable[bool]: ...
    def get_min_interval(self, name: str) -> Awaitable[int | None]: ...
    def register(self, name: str, min_interval_seconds: int) -> Awaitable[None]: ...
    def set_min_interval(self, name: str, seconds: int) -> Awaitable[None]: ...
    def unregister(self, name: str) -> Awaitable[None]: ...


BackgroundHandler = Callable[[], Awaitable[BackgroundResult]]


class TaskSource(Protocol):
    """Read-only task snapshot available to foreground and background contexts."""

    def snapshot(self) -> list[ReminderTask]: ...


class SlotStore(Protocol):
    """
    Durable key/value slots holding JSON values (device-local storage).

    Writes may raise PersistenceError; readers treat any failure as "missing".
    """

    def get_json(self, key: str) -> Any | None: ...
    def set_json(self, key: str, value: Any) -> bool: ...
    def delete(self, key: str) -> bool: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how fired notifications reach the user.

    The connector decides how to render title/body (console line, Matrix message, ...).
    """

    def send_notification(self, *, title: str, body: str, data: dict[str, Any] | None = None) -> Awaitable[None]: ...
