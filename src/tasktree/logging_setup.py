# src/tasktree/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

# Loggers that log every store round-trip; on the console they only show problems.
DEFAULT_QUIET_LOGGERS = ("tasktree.tasks.task_store", "tasktree.tasks.json_store")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable:
    - tasktree records pass, except quiet loggers below `quiet_level`
    - captured Python warnings and third-party records only at ERROR+
    """

    def __init__(self, quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS, quiet_level: int = logging.WARNING):
        super().__init__()
        self._quiet = tuple(quiet_loggers)
        self._quiet_level = quiet_level

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("tasktree."):
            return record.levelno >= logging.ERROR
        if self._quiet and name.startswith(self._quiet):
            return record.levelno >= self._quiet_level
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasktree",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
) -> Path:
    """
    Console handler (filtered, see _ConsoleNoiseFilter) plus a full debug log
    in <log_dir>/tasktree.log. Replaces existing root handlers, so call it once
    at startup. Returns the log file path.
    """
    log_file = Path(log_dir) / "tasktree.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter(quiet_loggers))
    root.addHandler(console)

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(fmt)
    root.addHandler(to_file)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)
    return log_file
