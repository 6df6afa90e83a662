# src/hive_reminders/reminders/cadence.py

from __future__ import annotations

"""
Background cadence manager.

Two states per trigger name: Registered(interval) and Unregistered.
apply(prefs) moves the platform to the state the preferences imply,
always checking "is it registered already?" first so repeated calls
(every app launch) never create duplicate triggers.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum

from ..config import BACKGROUND_TRIGGER_NAME, PLATFORM_MIN_INTERVAL_SECONDS
from ..core.ports import BackgroundTriggerRegistrar
from .models import Preferences, RegistrarStatus
from .outcome import FailureKind, RegistrarGateway

logger = logging.getLogger(__name__)


class CadenceState(StrEnum):
    REGISTERED = "registered"
    UNREGISTERED = "unregistered"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CadenceOutcome:
    state: CadenceState
    interval_seconds: int | None = None
    failure: FailureKind | None = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.state != CadenceState.FAILED


def interval_for(prefs: Preferences, *, floor_seconds: int = PLATFORM_MIN_INTERVAL_SECONDS) -> int:
    return max(int(floor_seconds), int(prefs.cadence_minutes) * 60)


class CadenceManager:
    def __init__(
        self,
        registrar: BackgroundTriggerRegistrar,
        *,
        name: str = BACKGROUND_TRIGGER_NAME,
        floor_seconds: int = PLATFORM_MIN_INTERVAL_SECONDS,
    ) -> None:
        self._gateway = RegistrarGateway(registrar)
        self._name = name
        self._floor = int(floor_seconds)

    @property
    def name(self) -> str:
        return self._name

    async def apply(self, prefs: Preferences) -> CadenceOutcome:
        if not prefs.enabled:
            return await self.disable()
        return await self._ensure_registered(interval_for(prefs, floor_seconds=self._floor))

    async def disable(self) -> CadenceOutcome:
        registered = await self._gateway.is_registered(self._name)
        if registered.ok and not registered.value:
            return CadenceOutcome(CadenceState.UNREGISTERED)

        # Unknown registration state: unregister anyway, it is idempotent on the platform.
        res = await self._gateway.unregister(self._name)
        if not res.ok:
            return CadenceOutcome(CadenceState.FAILED, failure=res.failure)
        logger.info("Background trigger %s unregistered", self._name)
        return CadenceOutcome(CadenceState.UNREGISTERED, changed=True)

    async def _ensure_registered(self, interval: int) -> CadenceOutcome:
        status = await self._gateway.status()
        if status.ok and status.value in (RegistrarStatus.RESTRICTED, RegistrarStatus.DENIED):
            logger.warning("Background registration refused by platform (%s)", status.value)
            return CadenceOutcome(CadenceState.FAILED, interval, FailureKind.RESTRICTED)

        registered = await self._gateway.is_registered(self._name)
        if not registered.ok:
            # Registering blind could create a duplicate trigger.
            return CadenceOutcome(CadenceState.FAILED, interval, registered.failure)

        if not registered.value:
            return await self._register(interval)

        current = await self._gateway.min_interval(self._name)
        if current.ok and current.value == interval:
            return CadenceOutcome(CadenceState.REGISTERED, interval)

        res = await self._gateway.set_min_interval(self._name, interval)
        if res.ok:
            logger.info("Background trigger %s interval -> %ss", self._name, interval)
            return CadenceOutcome(CadenceState.REGISTERED, interval, changed=True)
        if res.failure != FailureKind.UNSUPPORTED:
            return CadenceOutcome(CadenceState.FAILED, interval, res.failure)

        # No in-place update primitive: re-register.
        dropped = await self._gateway.unregister(self._name)
        if not dropped.ok:
            return CadenceOutcome(CadenceState.FAILED, interval, dropped.failure)
        return await self._register(interval)

    async def _register(self, interval: int) -> CadenceOutcome:
        res = await self._gateway.register(self._name, interval)
        if not res.ok:
            return CadenceOutcome(CadenceState.FAILED, interval, res.failure)
        logger.info("Background trigger %s registered every %ss", self._name, interval)
        return CadenceOutcome(CadenceState.REGISTERED, interval, changed=True)
