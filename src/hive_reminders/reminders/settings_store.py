# src/hive_reminders/reminders/settings_store.py

from __future__ import annotations

import logging
from typing import Any

from ..config import SETTINGS_SLOT
from ..core.ports import SlotStore
from .models import Preferences

logger = logging.getLogger(__name__)


class SettingsStore:
    """
    User reminder preferences, persisted as one JSON value under a fixed slot.

    - get() never fails: missing or unreadable values yield defaults.
    - update() merges, normalizes, persists (last write wins) and returns the new value.
    """

    def __init__(self, slots: SlotStore, *, slot: str = SETTINGS_SLOT) -> None:
        self._slots = slots
        self._slot = slot

    def get(self) -> Preferences:
        try:
            raw = self._slots.get_json(self._slot)
        except Exception:
            logger.exception("Failed to read preferences; using defaults")
            return Preferences()
        if raw is not None and not isinstance(raw, dict):
            logger.warning("Preferences slot holds %s, not an object; using defaults", type(raw).__name__)
            return Preferences()
        return Preferences.normalized(raw)

    def update(self, partial: dict[str, Any] | None = None, **changes: Any) -> Preferences:
        """
        update({"cadence_minutes": 30}) or update(enabled=False).

        Unknown keys are ignored; the returned value is what get() will read back.
        """
        merged = self.get().to_json()
        for key, value in {**(partial or {}), **changes}.items():
            if key == "enabled":
                merged["enabled"] = value
            elif key in ("cadence_minutes", "frequencyMinutes"):
                merged["frequencyMinutes"] = value
            else:
                logger.debug("Ignoring unknown preference key %r", key)

        prefs = Preferences.normalized(merged)
        self._write(prefs)
        logger.info("Preferences updated enabled=%s cadence=%smin", prefs.enabled, prefs.cadence_minutes)
        return prefs

    def reset(self) -> Preferences:
        prefs = Preferences()
        self._write(prefs)
        logger.info("Preferences reset to defaults")
        return prefs

    def _write(self, prefs: Preferences) -> None:
        try:
            if not self._slots.set_json(self._slot, prefs.to_json()):
                logger.warning("Preferences write was not persisted")
        except Exception:
            logger.exception("Failed to persist preferences")
