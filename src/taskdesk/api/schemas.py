# src/taskdesk/api/schemas.py

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ..tasks.task_models import Task


class TaskBody(BaseModel):
    """
    Body for POST /tasks and PUT /tasks/{id}.

    title is optional here so that a missing title reaches the store and is
    reported as a validation error (400) like a blank one.
    """

    title: str | None = None
    description: str | None = ""
    completed: bool | None = False
    priority: str | None = "Normal"
    category: str | None = ""
    due_date: str | None = None
    position: int | None = 0


class TaskPatchBody(BaseModel):
    """Body for PATCH /tasks/{id}; only fields present in the JSON are applied."""

    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: str | None = None
    category: str | None = None
    due_date: str | None = None
    position: int | None = None


class TaskOut(BaseModel):
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

    @classmethod
    def from_task(cls, task: Task) -> TaskOut:
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            priority=task.priority,
            category=task.category,
            due_date=task.due_date,
            created_at=task.created_at,
            completed_at=task.completed_at,
            position=task.position,
        )


class DeleteResult(BaseModel):
    success: bool = True
    message: str = "Task deleted"
