# src/taskdesk/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable, Iterator
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from .errors import NotFoundError, StorageError, ValidationError
from .task_models import Priority, Task, completion_for, format_ts, parse_ts
from .task_query import SQLITE_INT_MAX, TaskQuery
from .task_schema import ensure_schema

logger = logging.getLogger(__name__)

_UNSET: Any = object()

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TaskStore:
    """
    SQLite task store.

    The schema is checked (and migrated additively) on construction; a failure
    there raises StorageError and the store must not be used.

    Thread-safety:
    - each method opens its own SQLite connection
    - every write is one transaction: UPDATE/INSERT plus the re-read of the row
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, clock: Clock | None = None) -> None:
        self._db_path = Path(db_path)
        self._clock = clock or _utc_now
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory for {self._db_path}: {e}") from e

        with self._connect() as conn:
            ensure_schema(conn)

        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """
        Yield a connection; commit on success, roll back on any error.

        sqlite3 errors are re-raised as StorageError.
        """
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.exception("Cannot open task database %s", self._db_path)
            raise StorageError(f"Cannot open task database: {e}") from e

        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            with contextlib.suppress(sqlite3.Error):
                conn.rollback()
            logger.exception("Task database error db=%s", self._db_path)
            raise StorageError(str(e)) from e
        except BaseException:
            with contextlib.suppress(sqlite3.Error):
                conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            completed=bool(row["completed"]),
            priority=str(row["priority"]) if row["priority"] is not None else "",
            category=str(row["category"] or ""),
            due_date=row["due_date"] or None,
            created_at=parse_ts(row["created_at"]),
            completed_at=parse_ts(row["completed_at"]),
            position=int(row["position"] or 0),
        )

    @staticmethod
    def _check_id(task_id: int) -> None:
        # Ids are SQLite INTEGERs; anything outside that range cannot exist.
        if not 1 <= int(task_id) <= SQLITE_INT_MAX:
            raise NotFoundError(task_id)

    @staticmethod
    def _fetch_row(conn: sqlite3.Connection, task_id: int) -> sqlite3.Row | None:
        cur = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
        return cur.fetchone()

    # ---- field normalization ----

    @staticmethod
    def _clean_title(title: Any) -> str:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Task title is required")
        return title.strip()

    @staticmethod
    def _clean_text(value: Any, default: str = "") -> str:
        if value is None:
            return default
        if not isinstance(value, str):
            raise ValidationError(f"Expected text, got {type(value).__name__}")
        return value

    @staticmethod
    def _clean_position(value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool):
            raise ValidationError("position must be an integer")
        try:
            position = int(value)
        except (TypeError, ValueError):
            raise ValidationError("position must be an integer") from None
        if not -SQLITE_INT_MAX - 1 <= position <= SQLITE_INT_MAX:
            raise ValidationError("position is out of range")
        return position

    @staticmethod
    def _clean_due_date(value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError("due_date must be an ISO date string")
        s = value.strip()
        if not s:
            return None
        try:
            date.fromisoformat(s)
        except ValueError:
            try:
                datetime.fromisoformat(s)
            except ValueError:
                raise ValidationError(f"due_date is not an ISO date: {s!r}") from None
        return s

    def _full_fields(
        self,
        *,
        title: Any,
        description: Any,
        completed: Any,
        priority: Any,
        category: Any,
        due_date: Any,
        position: Any,
    ) -> dict[str, Any]:
        """Validate a complete field set (create / replace) before any storage access."""
        done = completion_for(bool(completed), self._clock())
        return {
            "title": self._clean_title(title),
            "description": self._clean_text(description),
            "completed": 1 if done.completed else 0,
            "completed_at": format_ts(done.completed_at) if done.completed_at else None,
            "priority": self._clean_text(priority, Priority.NORMAL.value),
            "category": self._clean_text(category),
            "due_date": self._clean_due_date(due_date),
            "position": self._clean_position(position),
        }

    # ---- public API: reads ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_tasks(self, query: TaskQuery | None = None) -> list[Task]:
        """Return one ordered page of tasks matching `query` (empty list if none)."""
        query = query or TaskQuery()
        sql, params = query.to_sql()
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        logger.debug(
            "list_tasks sort=%s order=%s page=%s size=%s -> %d",
            query.sort.value,
            query.order.value,
            query.page,
            query.page_size,
            len(rows),
        )
        return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: int) -> Task:
        self._check_id(task_id)
        with self._connect() as conn:
            row = self._fetch_row(conn, task_id)
        if row is None:
            raise NotFoundError(task_id)
        return self._row_to_task(row)

    # ---- public API: writes ----

    def create_task(
        self,
        *,
        title: Any,
        description: Any = "",
        completed: Any = False,
        priority: Any = Priority.NORMAL.value,
        category: Any = "",
        due_date: Any = None,
        position: Any = 0,
    ) -> Task:
        fields = self._full_fields(
            title=title,
            description=description,
            completed=completed,
            priority=priority,
            category=category,
            due_date=due_date,
            position=position,
        )
        fields["created_at"] = format_ts(self._clock())

        cols = list(fields)
        placeholders = ", ".join("?" for _ in cols)
        with self._connect() as conn:
            cur = conn.execute(
                f"INSERT INTO tasks ({', '.join(cols)}) VALUES ({placeholders})",
                [fields[c] for c in cols],
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise StorageError("SQLite did not return lastrowid for tasks insert")
            row = self._fetch_row(conn, rowid)

        if row is None:
            raise StorageError(f"Inserted task id={rowid} could not be read back")
        task = self._row_to_task(row)
        logger.debug("Task created id=%s completed=%s", task.id, task.completed)
        return task

    def replace_task(
        self,
        task_id: int,
        *,
        title: Any,
        description: Any = "",
        completed: Any = False,
        priority: Any = Priority.NORMAL.value,
        category: Any = "",
        due_date: Any = None,
        position: Any = 0,
    ) -> Task:
        """
        Overwrite every mutable field. Omitted fields reset to their defaults and
        completed_at is recomputed from `completed` whatever it was before.
        """
        fields = self._full_fields(
            title=title,
            description=description,
            completed=completed,
            priority=priority,
            category=category,
            due_date=due_date,
            position=position,
        )
        task = self._update(task_id, fields)
        logger.debug("Task replaced id=%s completed=%s", task.id, task.completed)
        return task

    def patch_task(
        self,
        task_id: int,
        *,
        title: Any = _UNSET,
        description: Any = _UNSET,
        completed: Any = _UNSET,
        priority: Any = _UNSET,
        category: Any = _UNSET,
        due_date: Any = _UNSET,
        position: Any = _UNSET,
    ) -> Task:
        """
        Update only the supplied fields.

        Supplying `completed` also rewrites completed_at (now / cleared);
        completed_at itself cannot be supplied.
        """
        fields: dict[str, Any] = {}

        if title is not _UNSET:
            fields["title"] = self._clean_title(title)
        if description is not _UNSET:
            fields["description"] = self._clean_text(description)
        if priority is not _UNSET:
            fields["priority"] = self._clean_text(priority, Priority.NORMAL.value)
        if category is not _UNSET:
            fields["category"] = self._clean_text(category)
        if due_date is not _UNSET:
            fields["due_date"] = self._clean_due_date(due_date)
        if position is not _UNSET:
            fields["position"] = self._clean_position(position)
        if completed is not _UNSET:
            done = completion_for(bool(completed), self._clock())
            fields["completed"] = 1 if done.completed else 0
            fields["completed_at"] = format_ts(done.completed_at) if done.completed_at else None

        if not fields:
            raise ValidationError("No fields to update")

        task = self._update(task_id, fields)
        logger.debug("Task patched id=%s fields=%s", task.id, sorted(fields))
        return task

    def patch_task_fields(self, task_id: int, changes: dict[str, Any]) -> Task:
        """
        patch_task() for a loosely typed mapping (e.g. a decoded request body).

        Keys that are not patchable (id, created_at, completed_at, unknown names)
        are ignored; if nothing patchable is left this is a ValidationError.
        """
        allowed = {"title", "description", "completed", "priority", "category", "due_date", "position"}
        kwargs = {k: v for k, v in changes.items() if k in allowed}
        return self.patch_task(task_id, **kwargs)

    def _update(self, task_id: int, fields: dict[str, Any]) -> Task:
        self._check_id(task_id)
        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = [*fields.values(), int(task_id)]

        with self._connect() as conn:
            cur = conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", params)
            if cur.rowcount == 0:
                raise NotFoundError(task_id)
            row = self._fetch_row(conn, task_id)

        if row is None:
            raise NotFoundError(task_id)
        return self._row_to_task(row)

    def delete_task(self, task_id: int) -> None:
        self._check_id(task_id)
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            if cur.rowcount == 0:
                raise NotFoundError(task_id)
        logger.debug("Task deleted id=%s", task_id)
