# src/hive_reminders/reminders/handles.py

from __future__ import annotations

import logging

from ..config import HANDLES_SLOT
from ..core.ports import SlotStore

logger = logging.getLogger(__name__)


class HandleLedger:
    """
    The persisted set of notification handles created by the reconciler.

    This is the only durable state the engine owns. It is always written as a
    whole value (never edited in place), so the last writer wins cleanly.
    """

    def __init__(self, slots: SlotStore, *, slot: str = HANDLES_SLOT) -> None:
        self._slots = slots
        self._slot = slot

    def load(self) -> list[str]:
        try:
            raw = self._slots.get_json(self._slot)
        except Exception:
            logger.exception("Failed to read handle ledger; treating as empty")
            return []
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("Handle ledger holds %s, not a list; treating as empty", type(raw).__name__)
            return []
        return [str(h) for h in raw if h]

    def replace(self, handles: list[str]) -> bool:
        try:
            ok = self._slots.set_json(self._slot, list(handles))
        except Exception:
            logger.exception("Failed to persist handle ledger (%d handles)", len(handles))
            return False
        if not ok:
            logger.warning("Handle ledger write was not persisted (%d handles)", len(handles))
        return bool(ok)

    def clear(self) -> bool:
        return self.replace([])
