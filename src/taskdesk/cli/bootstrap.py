# src/taskdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- opens the task store (which verifies/migrates the schema),
- builds the HTTP app around it.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from ..api.app import create_app
from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    Raises StorageError when the database cannot be opened or migrated.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
    )


def build_app(state: AppState) -> FastAPI:
    settings = state.settings
    return create_app(
        state.task_store,
        cors_origin=getattr(settings, "cors_origin", None),
        default_page_size=int(getattr(settings, "default_page_size", 100)),
    )
