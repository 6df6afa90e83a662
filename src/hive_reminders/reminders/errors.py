# src/hive_reminders/reminders/errors.py

"""
Failure taxonomy for the reminder engine.

Platform adapters raise these; the gateways in outcome.py turn them into
Outcome values so the engine never has to catch them itself.
"""

from __future__ import annotations


class ReminderError(Exception):
    """Base class for all reminder engine failures."""


class PermissionDeniedError(ReminderError):
    """Notification permission is not granted."""


class TransientSchedulingError(ReminderError):
    """A single schedule or cancel call failed."""


class PersistenceError(ReminderError):
    """Device-local storage (slots, pending notifications) could not be written."""


class RegistrationRestrictedError(ReminderError):
    """The OS refused background registration (restricted or denied)."""


class UnsupportedOperationError(ReminderError):
    """The platform has no primitive for this operation (e.g. in-place interval update)."""
