"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .db import get_db_url

BACKENDS = ("memory", "sqlite")

DEFAULT_BACKEND = "memory"
DEFAULT_LIMIT = 10


def _bool_from_env(value: Optional[str], *, default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _positive_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


def _optional_seconds(name: str, value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


@dataclass(frozen=True)
class Settings:
    backend: str = DEFAULT_BACKEND
    database_url: Optional[str] = None
    default_limit: int = DEFAULT_LIMIT
    store_timeout_seconds: Optional[float] = None
    seed_demo_news: bool = False

    def resolved_database_url(self) -> str:
        """The configured URL, or the SQLite file under DATA_DIR."""
        return self.database_url or get_db_url()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``environ`` (defaults to ``os.environ``).

    Raises ValueError on unknown backends or malformed numbers.
    """
    env = os.environ if environ is None else environ

    backend = (env.get("LIVABILITY_BACKEND") or DEFAULT_BACKEND).strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"LIVABILITY_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    return Settings(
        backend=backend,
        database_url=env.get("DATABASE_URL") or None,
        default_limit=_positive_int("DEFAULT_LIMIT", env.get("DEFAULT_LIMIT"), DEFAULT_LIMIT),
        store_timeout_seconds=_optional_seconds("STORE_TIMEOUT_SECONDS", env.get("STORE_TIMEOUT_SECONDS")),
        seed_demo_news=_bool_from_env(env.get("SEED_DEMO_NEWS")),
    )
