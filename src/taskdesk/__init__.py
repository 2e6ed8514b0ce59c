"""taskdesk: a small task-tracking backend (SQLite + FastAPI)."""

__version__ = "0.1.0"
