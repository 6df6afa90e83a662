"""SQLite-backed local storage: key/value slots and the task snapshot."""
