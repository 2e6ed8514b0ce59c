# src/taskdesk/tasks/task_schema.py

"""
Schema manager for the `tasks` table.

Migration policy is additive only:
- create the table if missing
- use PRAGMA table_info to detect missing columns
- add columns with ALTER TABLE (with a safe default) only when needed
- never drop or rename anything
- rewrite older timestamp text into the fixed-width UTC form

Running it against an up-to-date database is a no-op.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from dataclasses import dataclass, field

from .errors import StorageError

logger = logging.getLogger(__name__)

# Bump when EXPECTED_COLUMNS grows.
SCHEMA_VERSION = 2

REQUIRED_COLUMNS = ("id", "title")

# Every field except id/title, with the declaration used by ALTER TABLE.
EXPECTED_COLUMNS: dict[str, str] = {
    "description": "TEXT DEFAULT ''",
    "completed": "INTEGER NOT NULL DEFAULT 0",
    "priority": "TEXT DEFAULT 'Normal'",
    "category": "TEXT DEFAULT ''",
    "due_date": "TEXT",
    "created_at": "TEXT",
    "completed_at": "TEXT",
    "position": "INTEGER NOT NULL DEFAULT 0",
}

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT DEFAULT '',
    completed INTEGER NOT NULL DEFAULT 0,
    priority TEXT DEFAULT 'Normal',
    category TEXT DEFAULT '',
    due_date TEXT,
    created_at TEXT,
    completed_at TEXT,
    position INTEGER NOT NULL DEFAULT 0
)
"""

# Timestamp columns kept in the fixed-width form written by format_ts().
TIMESTAMP_COLUMNS = ("created_at", "completed_at")
_CANONICAL_TS_GLOB = "????-??-??T??:??:??.??????+00:00"

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_tasks_position ON tasks(position)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_filters ON tasks(completed, category, priority)",
)


@dataclass(slots=True)
class SchemaReport:
    added_columns: list[str] = field(default_factory=list)
    version_before: int = 0
    version_after: int = 0
    normalized_timestamps: int = 0

    @property
    def changed(self) -> bool:
        return (
            bool(self.added_columns)
            or bool(self.normalized_timestamps)
            or self.version_before != self.version_after
        )


def table_columns(conn: sqlite3.Connection) -> set[str]:
    cur = conn.execute("PRAGMA table_info(tasks)")
    return {row[1] for row in cur.fetchall()}


def normalize_timestamps(conn: sqlite3.Connection) -> int:
    """
    Rewrite older timestamp text (`datetime('now')` style, or ISO with `Z`)
    into the fixed-width UTC form so that lexical order equals time order.

    Values SQLite cannot parse are left alone. Returns the number of values changed.
    """
    changed = 0
    for col in TIMESTAMP_COLUMNS:
        # strftime %f gives SS.SSS; pad to microseconds.
        cur = conn.execute(
            f"UPDATE tasks SET {col} = strftime('%Y-%m-%dT%H:%M:%f', {col}) || '000+00:00' "
            f"WHERE {col} IS NOT NULL AND {col} NOT GLOB ? "
            f"AND strftime('%Y-%m-%dT%H:%M:%f', {col}) IS NOT NULL",
            (_CANONICAL_TS_GLOB,),
        )
        if cur.rowcount > 0:
            logger.info("Schema migration: normalized %d %s values", cur.rowcount, col)
            changed += cur.rowcount
    return changed


def ensure_schema(conn: sqlite3.Connection) -> SchemaReport:
    """
    Bring the `tasks` table up to the expected shape.

    Raises StorageError if the database cannot be read or the table lacks
    the minimal id/title shape. Callers must treat that as fatal.
    """
    report = SchemaReport()
    try:
        (report.version_before,) = conn.execute("PRAGMA user_version").fetchone()
        conn.execute(_CREATE_TABLE)

        cols = table_columns(conn)
        missing_required = [c for c in REQUIRED_COLUMNS if c not in cols]
        if missing_required:
            raise StorageError(
                f"tasks table is missing required columns: {', '.join(missing_required)}"
            )

        for name, decl in EXPECTED_COLUMNS.items():
            if name in cols:
                continue
            conn.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
            report.added_columns.append(name)
            logger.info("Schema migration: added column %s", name)

        for stmt in _INDEXES:
            conn.execute(stmt)

        report.normalized_timestamps = normalize_timestamps(conn)

        if report.version_before < SCHEMA_VERSION:
            # PRAGMA does not take bound parameters; SCHEMA_VERSION is an int constant.
            conn.execute(f"PRAGMA user_version = {int(SCHEMA_VERSION)}")
            report.version_after = SCHEMA_VERSION
        else:
            report.version_after = report.version_before

        conn.commit()
    except sqlite3.Error as e:
        with contextlib.suppress(sqlite3.Error):
            conn.rollback()
        raise StorageError(f"Schema check failed: {e}") from e
    except StorageError:
        with contextlib.suppress(sqlite3.Error):
            conn.rollback()
        raise

    if report.changed:
        logger.info(
            "Schema updated version=%s->%s added=%s normalized_timestamps=%s",
            report.version_before,
            report.version_after,
            report.added_columns or "-",
            report.normalized_timestamps,
        )
    else:
        logger.debug("Schema up to date version=%s", report.version_after)
    return report
