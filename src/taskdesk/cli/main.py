# src/taskdesk/cli/main.py

"""
CLI entrypoint.

Initializes logging, opens the task store (schema check is fatal on failure),
then serves the HTTP API with uvicorn until interrupted.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from ..cli.bootstrap import build_app, create_initial_state
from ..config import get_settings
from ..logging_setup import setup_logging
from ..tasks.errors import StorageError

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except StorageError:
        # Never serve requests against an unverified schema.
        logger.exception("Task database unavailable at %s; refusing to start.", settings.tasks_db_path)
        sys.exit(1)

    app = build_app(state)

    logger.info("Serving on http://%s:%s", settings.host, settings.port)
    # TaskStore uses short-lived sqlite connections per call; no explicit close required.
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
