# src/hive_reminders/device/background_registrar.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..config import PLATFORM_MIN_INTERVAL_SECONDS
from ..core.ports import BackgroundHandler
from ..reminders.errors import RegistrationRestrictedError
from ..reminders.models import BackgroundResult, RegistrarStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Registration:
    interval_seconds: int
    runner: asyncio.Task[None]
    last_result: BackgroundResult | None = None


class AsyncioTriggerRegistrar:
    """
    In-process background-fetch facility.

    Handlers are defined once at startup (define), then registered/unregistered
    by name. A registered trigger runs its handler every interval on the event
    loop. Registration is idempotent: registering an existing name only updates
    its interval.
    """

    def __init__(self, *, restricted: bool = False, floor_seconds: int = PLATFORM_MIN_INTERVAL_SECONDS) -> None:
        self._restricted = restricted
        self._floor = int(floor_seconds)
        self._handlers: dict[str, BackgroundHandler] = {}
        self._registrations: dict[str, _Registration] = {}

    # ---- startup ----

    def define(self, name: str, handler: BackgroundHandler) -> None:
        if name in self._handlers:
            logger.warning("Background handler %s redefined", name)
        self._handlers[name] = handler

    # ---- BackgroundTriggerRegistrar ----

    async def get_status(self) -> RegistrarStatus:
        return RegistrarStatus.RESTRICTED if self._restricted else RegistrarStatus.AVAILABLE

    async def is_registered(self, name: str) -> bool:
        return name in self._registrations

    async def get_min_interval(self, name: str) -> int | None:
        reg = self._registrations.get(name)
        return reg.interval_seconds if reg else None

    async def register(self, name: str, min_interval_seconds: int) -> None:
        if self._restricted:
            raise RegistrationRestrictedError("background fetch is restricted")
        if name not in self._handlers:
            raise KeyError(f"no background handler defined for {name!r}")

        interval = self._clamp(min_interval_seconds)
        existing = self._registrations.get(name)
        if existing is not None:
            existing.interval_seconds = interval
            return

        runner = asyncio.get_running_loop().create_task(self._run(name), name=f"bg:{name}")
        self._registrations[name] = _Registration(interval_seconds=interval, runner=runner)
        logger.debug("Background trigger %s started (every %ss)", name, interval)

    async def set_min_interval(self, name: str, seconds: int) -> None:
        reg = self._registrations.get(name)
        if reg is None:
            raise KeyError(f"background trigger {name!r} is not registered")
        reg.interval_seconds = self._clamp(seconds)

    async def unregister(self, name: str) -> None:
        reg = self._registrations.pop(name, None)
        if reg is None:
            return
        reg.runner.cancel()
        logger.debug("Background trigger %s stopped", name)

    # ---- runtime ----

    def _clamp(self, seconds: int) -> int:
        seconds = int(seconds)
        if seconds < self._floor:
            logger.warning("Interval %ss below platform floor; using %ss", seconds, self._floor)
            return self._floor
        return seconds

    async def fire(self, name: str) -> BackgroundResult:
        """Run a defined handler now, as the OS would on a wake-up."""
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"no background handler defined for {name!r}")
        try:
            result = await handler()
        except Exception:
            logger.exception("Background handler %s raised", name)
            result = BackgroundResult.FAILED
        reg = self._registrations.get(name)
        if reg is not None:
            reg.last_result = result
        logger.info("Background trigger %s -> %s", name, result.value)
        return result

    def last_result(self, name: str) -> BackgroundResult | None:
        reg = self._registrations.get(name)
        return reg.last_result if reg else None

    async def _run(self, name: str) -> None:
        while True:
            reg = self._registrations.get(name)
            if reg is None:
                return
            await asyncio.sleep(reg.interval_seconds)
            await self.fire(name)

    async def shutdown(self) -> None:
        runners = [reg.runner for reg in self._registrations.values()]
        self._registrations.clear()
        for runner in runners:
            runner.cancel()
        for runner in runners:
            try:
                await runner
            except asyncio.CancelledError:
                pass
