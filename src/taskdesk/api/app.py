# src/taskdesk/api/app.py

"""
HTTP layer.

No business rules live here: requests are parsed, handed to the task store,
and store errors are mapped to status codes:

    ValidationError -> 400
    NotFoundError   -> 404
    StorageError    -> 500 (opaque body; details go to the log)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.ports import TaskRepo
from ..tasks.errors import NotFoundError, StorageError, ValidationError
from ..tasks.task_query import DEFAULT_PAGE_SIZE, TaskQuery
from .schemas import DeleteResult, TaskBody, TaskOut, TaskPatchBody

logger = logging.getLogger(__name__)


def create_app(
    task_store: TaskRepo,
    *,
    cors_origin: str | None = "http://localhost:3000",
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> FastAPI:
    app = FastAPI(title="Task Manager API")
    app.state.task_store = task_store

    if cors_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[cors_origin],
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Task not found"})

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Database error"})

    @app.get("/")
    def root() -> dict[str, str]:
        return {"status": "running", "database": "SQLite", "message": "Task Manager API"}

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/tasks")
    def list_tasks(request: Request) -> list[TaskOut]:
        # Raw query params on purpose: malformed paging/sort values fall back to defaults.
        query = TaskQuery.from_params(request.query_params, default_page_size=default_page_size)
        return [TaskOut.from_task(t) for t in task_store.list_tasks(query)]

    @app.get("/tasks/{task_id}")
    def get_task(task_id: int) -> TaskOut:
        return TaskOut.from_task(task_store.get_task(task_id))

    @app.post("/tasks", status_code=201)
    def create_task(body: TaskBody) -> TaskOut:
        task = task_store.create_task(**body.model_dump())
        logger.info("Created task id=%s", task.id)
        return TaskOut.from_task(task)

    @app.put("/tasks/{task_id}")
    def replace_task(task_id: int, body: TaskBody) -> TaskOut:
        return TaskOut.from_task(task_store.replace_task(task_id, **body.model_dump()))

    @app.patch("/tasks/{task_id}")
    def patch_task(task_id: int, body: TaskPatchBody) -> TaskOut:
        changes = body.model_dump(exclude_unset=True)
        return TaskOut.from_task(task_store.patch_task_fields(task_id, changes))

    @app.delete("/tasks/{task_id}")
    def delete_task(task_id: int) -> DeleteResult:
        task_store.delete_task(task_id)
        logger.info("Deleted task id=%s", task_id)
        return DeleteResult()

    return app
