"""Reminder scheduling engine for the Hive household chore tracker."""

__version__ = "0.1.0"
