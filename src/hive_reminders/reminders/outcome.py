# src/hive_reminders/reminders/outcome.py

from __future__ import annotations

"""
Result-style wrappers around the platform ports.

Adapters are free to raise (real platform SDKs do). The gateways below turn
every call into an Outcome; callers decide per call site whether a failure
is skipped or aborts the pass.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from ..core.ports import BackgroundTriggerRegistrar, NotificationScheduler
from .errors import (
    PermissionDeniedError,
    PersistenceError,
    RegistrationRestrictedError,
    UnsupportedOperationError,
)
from .models import PermissionStatus, RegistrarStatus, ReminderSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureKind(StrEnum):
    PERMISSION_DENIED = "permission_denied"
    TRANSIENT = "transient"
    PERSISTENCE = "persistence"
    RESTRICTED = "restricted"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    ok: bool
    value: T | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(ok=True, value=value)

    @classmethod
    def fail(cls, failure: FailureKind, detail: str = "") -> Outcome[T]:
        return cls(ok=False, failure=failure, detail=detail)


def classify(exc: BaseException) -> FailureKind:
    if isinstance(exc, PermissionDeniedError):
        return FailureKind.PERMISSION_DENIED
    if isinstance(exc, RegistrationRestrictedError):
        return FailureKind.RESTRICTED
    if isinstance(exc, (UnsupportedOperationError, NotImplementedError)):
        return FailureKind.UNSUPPORTED
    if isinstance(exc, PersistenceError):
        return FailureKind.PERSISTENCE
    return FailureKind.TRANSIENT


async def _attempt(op: str, call: Callable[[], Awaitable[T]]) -> Outcome[T]:
    try:
        return Outcome.success(await call())
    except Exception as e:
        kind = classify(e)
        if kind == FailureKind.TRANSIENT:
            logger.warning("%s failed: %r", op, e, exc_info=True)
        else:
            logger.info("%s failed (%s): %r", op, kind.value, e)
        return Outcome.fail(kind, repr(e))


class SchedulerGateway:
    """Outcome-returning facade over a NotificationScheduler."""

    def __init__(self, scheduler: NotificationScheduler) -> None:
        self._scheduler = scheduler

    async def schedule(self, spec: ReminderSpec) -> Outcome[str]:
        return await _attempt(f"schedule(task={spec.correlation_id})", lambda: self._scheduler.schedule(spec))

    async def cancel(self, handle: str) -> Outcome[None]:
        return await _attempt(f"cancel({handle})", lambda: self._scheduler.cancel(handle))

    async def permission(self) -> PermissionStatus:
        """Permission query; a failing query counts as denied."""
        res = await _attempt("get_permission_status", lambda: self._scheduler.get_permission_status())
        return res.value if res.ok and res.value is not None else PermissionStatus.DENIED

    async def request_permission(self) -> PermissionStatus:
        res = await _attempt("request_permission", lambda: self._scheduler.request_permission())
        return res.value if res.ok and res.value is not None else PermissionStatus.DENIED


class RegistrarGateway:
    """Outcome-returning facade over a BackgroundTriggerRegistrar."""

    def __init__(self, registrar: BackgroundTriggerRegistrar) -> None:
        self._registrar = registrar

    async def status(self) -> Outcome[RegistrarStatus]:
        return await _attempt("registrar.get_status", lambda: self._registrar.get_status())

    async def is_registered(self, name: str) -> Outcome[bool]:
        return await _attempt(f"is_registered({name})", lambda: self._registrar.is_registered(name))

    async def min_interval(self, name: str) -> Outcome[int | None]:
        return await _attempt(f"get_min_interval({name})", lambda: self._registrar.get_min_interval(name))

    async def register(self, name: str, seconds: int) -> Outcome[None]:
        return await _attempt(f"register({name}, {seconds})", lambda: self._registrar.register(name, seconds))

    async def set_min_interval(self, name: str, seconds: int) -> Outcome[None]:
        return await _attempt(f"set_min_interval({name}, {seconds})", lambda: self._registrar.set_min_interval(name, seconds))

    async def unregister(self, name: str) -> Outcome[None]:
        return await _attempt(f"unregister({name})", lambda: self._registrar.unregister(name))
