# src/tasktree/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a local default.
- Bootstrap and tests can inject their own settings object instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging_setup import DEFAULT_QUIET_LOGGERS

ENV_PREFIX = "TASKTREE"

STORE_BACKENDS = ("sqlite", "json")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the process environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = _env(name, default).strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_quiet_loggers: tuple[str, ...]

    # ---- Front-ends ----
    console_enabled: bool

    # ---- Storage ----
    store_backend: str
    data_dir: Path
    tasks_db_path: Path
    tasks_json_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasktree").strip() or "tasktree"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_quiet_loggers = _env_list(_k("LOG_QUIET"), DEFAULT_QUIET_LOGGERS)

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        store_backend = _env_choice(_k("STORE"), "sqlite", STORE_BACKENDS)
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasktree"))
        tasks_db_path = _env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3")
        tasks_json_path = _env_path(_k("JSON_PATH"), data_dir / "tasks.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_quiet_loggers=log_quiet_loggers,
            console_enabled=console_enabled,
            store_backend=store_backend,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            tasks_json_path=tasks_json_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
