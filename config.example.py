# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKDESK_APP_NAME": "App display name (default: taskdesk).",
    "TASKDESK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # HTTP
    "TASKDESK_HOST": "Bind address (default: 127.0.0.1).",
    "TASKDESK_PORT": "Bind port (default: 5001).",
    "TASKDESK_CORS_ORIGIN": "Allowed frontend origin (default: http://localhost:3000; empty disables CORS).",
    # Paths (gitignored)
    "TASKDESK_DATA_DIR": "Local data directory for the database and log file (default: .local/taskdesk).",
    "TASKDESK_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Listing
    "TASKDESK_DEFAULT_PAGE_SIZE": "Page size when ?limit= is absent or invalid (default: 100).",
}
