# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "HIVE_APP_NAME": "App display name (default: hive).",
    "HIVE_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "HIVE_DATA_DIR": "Local data directory (default: .local/hive).",
    "HIVE_STATE_DB_PATH": (
        "SQLite file with reminder settings, tracked reminder handles and pending "
        "notifications (default: <data_dir>/state.sqlite3)."
    ),
    "HIVE_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Device runtime
    "HIVE_DISPATCH_INTERVAL_SECONDS": "How often due notifications are delivered (default: 15, min 0.5).",
    "HIVE_NOTIFICATIONS_GRANTED": (
        "Start with notification permission granted (true/false, default: true). "
        "false => undetermined until the first request."
    ),
    "HIVE_BACKGROUND_RESTRICTED": "Pretend background fetch is restricted (true/false, default: false).",
    # Delivery connectors
    "HIVE_CONSOLE_ENABLED": "Print reminders and run the /command console (true/false, default: true).",
    "HIVE_MATRIX_ENABLED": "Deliver reminders to a Matrix room (true/false, default: false).",
    # Matrix
    "HIVE_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "HIVE_MATRIX_USER_ID": "Matrix user ID (bot).",
    "HIVE_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "HIVE_MATRIX_ROOM_ID": "Room that receives reminder notices.",
    "HIVE_MATRIX_STORE_PATH": "Matrix store path (default: <data_dir>/matrix_store).",
}
