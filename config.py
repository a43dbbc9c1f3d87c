"""
Item Admin configuration.

This module centralizes settings and logging setup. Values are read from
environment variables (and a local `.env` file when present).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


LOGGER_NAME = "item_admin"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

CONFLICT_POLICIES = ("ignore", "replace")


def _load_env() -> None:
    """Load environment variables from a local `.env` file if present."""

    # Real environment wins over the file.
    load_dotenv(override=False)


def _env_bool(name: str, default: bool) -> bool:
    """Parse a boolean environment variable safely."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    """Parse an integer environment variable safely."""

    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _project_root() -> Path:
    """Return the project root path (directory containing this file)."""

    return Path(__file__).resolve().parent


def _abs_path(maybe_relative: str) -> str:
    """Convert a relative path to an absolute path anchored at project root."""

    if maybe_relative == ":memory:":
        return maybe_relative
    p = Path(maybe_relative)
    if p.is_absolute():
        return str(p)
    return str((_project_root() / p).resolve())


@dataclass(frozen=True)
class Settings:
    """Typed configuration object for Item Admin."""

    database_path: str
    conflict_policy: str
    max_upload_files: int
    log_level: str
    debug: bool
    port: int


def get_settings() -> Settings:
    """Load environment variables and return a Settings instance."""

    _load_env()

    conflict_policy = (os.getenv("ITEM_CONFLICT_POLICY") or "ignore").strip().lower()
    if conflict_policy not in CONFLICT_POLICIES:
        raise ValueError(
            f"ITEM_CONFLICT_POLICY must be one of {', '.join(CONFLICT_POLICIES)}, got {conflict_policy!r}."
        )

    debug = _env_bool("DEBUG", False)
    log_level = "DEBUG" if debug else (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

    return Settings(
        database_path=_abs_path(os.getenv("DATABASE_PATH") or "data/items.db"),
        conflict_policy=conflict_policy,
        max_upload_files=max(1, _env_int("MAX_UPLOAD_FILES", 50)),
        log_level=log_level,
        debug=debug,
        port=_env_int("PORT", 8000),
    )


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure the application logger once and return it."""

    logger = logging.getLogger(LOGGER_NAME)
    level = logging.getLevelName(settings.log_level)
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger (e.g. `item_admin.pipeline.upload`)."""

    return logging.getLogger(f"{LOGGER_NAME}.{name}")
