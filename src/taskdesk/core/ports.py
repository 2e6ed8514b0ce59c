# src/taskdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the API layer.

The HTTP app depends on this Protocol instead of the concrete SQLite store,
so the store stays swappable and the app is easy to test.
"""

from typing import Any, Protocol

from ..tasks.task_models import Task
from ..tasks.task_query import TaskQuery


class TaskRepo(Protocol):
    def count_tasks(self) -> int: ...

    def list_tasks(self, query: TaskQuery | None = None) -> list[Task]: ...

    def get_task(self, task_id: int) -> Task: ...

    def create_task(
            self,
            *,
            title: Any,
            description: Any = "",
            completed: Any = False,
            priority: Any = "Normal",
            category: Any = "",
            due_date: Any = None,
            position: Any = 0,
    ) -> Task: ...

    def replace_task(
            self,
            task_id: int,
            *,
            title: Any,
            description: Any = "",
            completed: Any = False,
            priority: Any = "Normal",
            category: Any = "",
            due_date: Any = None,
            position: Any = 0,
    ) -> Task: ...

    def patch_task_fields(self, task_id: int, changes: dict[str, Any]) -> Task: ...

    def delete_task(self, task_id: int) -> None: ...
