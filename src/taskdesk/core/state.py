# src/taskdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ports import TaskRepo


@dataclass
class AppState:
    # Settings object (taskdesk.config.Settings or a test double with the same fields).
    settings: Any
    task_store: TaskRepo
