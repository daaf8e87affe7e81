# src/tim_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the reminder scanner in the
background, then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_store import TaskStoreError

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", "data")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "tim"))

    try:
        state = create_initial_state(settings=settings)
    except TaskStoreError as e:
        logger.error("%s", e)
        sys.exit(1)

    if state.scanner is not None:
        state.scanner.start()

    try:
        run_console_loop(state)
    finally:
        shutdown_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
