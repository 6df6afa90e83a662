# src/hive_reminders/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "hive.log"

# Loggers that fire on every tick (dispatcher poll, background wake-up, Matrix send).
# On the console they only show problems; the log file still gets everything.
TICK_LOGGERS = (
    "hive_reminders.device.dispatcher",
    "hive_reminders.device.background_registrar",
    "hive_reminders.connectors.matrix_messenger",
)

# Chatty third-party libraries and the level they are capped to.
LIBRARY_LEVELS = {
    "nio": logging.WARNING,
    "aiohttp": logging.WARNING,
    "asyncio": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable while the REPL is in use:
    - reminder engine, stores and CLI logs pass at the console level
    - tick loggers pass at WARNING+
    - anything else (third-party, captured py.warnings) only at ERROR+
    """

    def __init__(self, tick_loggers: tuple[str, ...] = TICK_LOGGERS) -> None:
        super().__init__()
        self._tick_loggers = tick_loggers

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(self._tick_loggers):
            return record.levelno >= logging.WARNING
        if name == "hive_reminders" or name.startswith("hive_reminders."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/hive",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backups: int = 3,
) -> Path:
    """
    Configure the root logger once, before the first log line.

    Reminders run unattended for days, so the file handler rotates
    (`max_bytes` per file, `backups` old files kept). Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name, level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(max(level, console_level))

    logging.captureWarnings(True)
    return log_file
