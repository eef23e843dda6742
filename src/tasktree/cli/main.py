# src/tasktree/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console REPL in the main
thread (or, with the console disabled, prints the actionable tasks and exits).
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import DEFAULT_QUIET_LOGGERS, setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        store = getattr(state, "task_store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tasktree")
    quiet = getattr(settings, "log_quiet_loggers", DEFAULT_QUIET_LOGGERS)
    setup_logging(log_dir=log_dir, console_level=console_level, quiet_loggers=quiet)

    logger.info("Starting %s...", getattr(settings, "app_name", "tasktree"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            print(command_registry.handle(state, "/next"))
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
