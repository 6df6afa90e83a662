"""
Reminder scheduling engine.

Components:
- models.py: data structures (ReminderTask, ReminderSpec, Preferences, enums)
- settings_store.py: persisted, normalized user preferences
- planner.py: pure (tasks, now) -> reminder specs
- handles.py + reconciler.py: full-replace reconciliation against the device
- cadence.py: background trigger registration tracking the cadence preference
- background.py: the handler the background trigger invokes
- orchestrator.py: single entry point sequencing all of the above
"""
