# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TAKAHASHI_APP_NAME": "App display name (default: takahashi).",
    "TAKAHASHI_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TAKAHASHI_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "TAKAHASHI_DATA_DIR": "Local data directory for the store and logs (default: .local/takahashi).",
    "TAKAHASHI_STORE_DB_PATH": "Key-value store SQLite path (default: <data_dir>/store.sqlite3).",
    # Reminders
    "TAKAHASHI_NOTIFICATIONS_ENABLED": "Allow reminder notifications (true/false, default: true).",
    "TAKAHASHI_NOTIFICATION_POLL_SECONDS": "How often due reminders are checked (default: 1.0).",
    "TAKAHASHI_DEFAULT_LEAD_MINUTES": (
        "Lead time used when /add omits one: 5, 10, 15, 30, 60, 120, 180 or 360 (default: 5)."
    ),
    # Input limits
    "TAKAHASHI_TITLE_MAX_LENGTH": "Longer task/subtask titles are clipped (default: 30).",
}
