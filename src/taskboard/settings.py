from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TASKBOARD_STORE: 'memory' (default), 'file' or 'sqlite'
    - TASKBOARD_FILE_PATH: path to the JSON store file. Default './data/taskboard.json'
    - TASKBOARD_SQLITE_PATH: path to sqlite db file. Default './data/taskboard.db'
    - TASKBOARD_VARIANT: workflow variant, 'classic' (default), 'urgent' or 'review'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name. Default 'INFO'
    """

    store_backend: str
    file_store_path: str
    sqlite_db_path: str
    workflow_variant: str
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("TASKBOARD_STORE", "memory").strip().lower()
    if backend not in {"memory", "file", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        store_backend=backend,
        file_store_path=_get_env("TASKBOARD_FILE_PATH", "./data/taskboard.json").strip(),
        sqlite_db_path=_get_env("TASKBOARD_SQLITE_PATH", "./data/taskboard.db").strip(),
        workflow_variant=_get_env("TASKBOARD_VARIANT", "classic").strip().lower(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
