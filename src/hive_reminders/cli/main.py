# src/hive_reminders/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, applies reminder preferences (cold start),
then runs until stopped:
- the notification dispatcher (delivers due reminders),
- the background trigger registered by the cadence manager,
- the console REPL (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from datetime import datetime

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..core.state import AppState
from ..device.dispatcher import run_notification_dispatcher
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console started.")
    print(f"[{_ts_local()}] [CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if not line:
            continue
        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, line)
        except Exception:
            logger.exception("Command failed: %s", line)
            reply = "Command failed (see logs)."

        if reply is None:
            reply = "Commands start with '/'. Use /help."
        print(f"[{_ts_local()}] {reply}")


async def _shutdown(state: AppState, dispatcher: asyncio.Task | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if dispatcher is not None:
        dispatcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await dispatcher

    try:
        await state.registrar.shutdown()
    except Exception:
        logger.debug("Registrar shutdown failed.", exc_info=True)

    for closer in state.closers:
        try:
            await closer.close()
        except Exception:
            logger.debug("Connector close failed.", exc_info=True)


async def run(state: AppState) -> None:
    settings = state.settings

    await state.orchestrator.ensure_permission()
    await state.orchestrator.apply_all()

    dispatcher = asyncio.create_task(
        run_notification_dispatcher(
            state.notifications,
            state.messenger,
            interval_seconds=settings.dispatch_interval_seconds,
        ),
        name="notification-dispatcher",
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) do not support loop signal handlers.
            pass

    try:
        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            waiter = asyncio.create_task(stop.wait())
            await asyncio.wait({console, waiter}, return_when=asyncio.FIRST_COMPLETED)
            waiter.cancel()
        else:
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            await stop.wait()
    finally:
        await _shutdown(state, dispatcher)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s reminders (log: %s)...", settings.app_name, log_file)
    state = create_initial_state(settings=settings)

    try:
        asyncio.run(run(state))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
