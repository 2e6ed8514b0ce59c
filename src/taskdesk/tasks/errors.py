# src/taskdesk/tasks/errors.py

from __future__ import annotations


class TaskError(Exception):
    """Base class for task store errors."""


class ValidationError(TaskError):
    """Caller input violates a required constraint (blank title, empty patch, ...)."""


class NotFoundError(TaskError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found: id={task_id}")
        self.task_id = task_id


class StorageError(TaskError):
    """
    Underlying persistence failed (I/O, corruption, connectivity).

    When a sqlite3 error caused it, that error is chained as __cause__.
    """
