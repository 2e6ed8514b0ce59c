# src/taskdesk/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    """
    Recognized priority values.

    Priority is stored as free text: anything outside this enum is kept as-is
    and ranks after NORMAL when sorting.
    """

    HIGH = "High"
    NORMAL = "Normal"


def format_ts(dt: datetime) -> str:
    # Fixed width so that lexical order in SQLite equals time order.
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(raw: str | None) -> datetime | None:
    """Parse a stored timestamp; legacy `datetime('now')` values are treated as UTC."""
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(str(raw).strip())
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True, slots=True)
class Completion:
    completed: bool
    completed_at: datetime | None


def completion_for(completed: bool, now: datetime) -> Completion:
    """
    The only way `completed` and `completed_at` are produced for a write.

    completed=True  -> completed_at = now
    completed=False -> completed_at = None
    """
    if completed:
        return Completion(completed=True, completed_at=now)
    return Completion(completed=False, completed_at=None)


@dataclass(slots=True)
class Task:
    id: int
    title: str
    description: str
    completed: bool
    priority: str
    category: str
    due_date: str | None
    created_at: datetime | None
    completed_at: datetime | None
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "category": self.category,
            "due_date": self.due_date,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "position": self.position,
        }
