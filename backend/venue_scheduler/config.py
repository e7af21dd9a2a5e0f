# backend/venue_scheduler/config.py
"""Runtime settings read from the environment (see .env)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from os import getenv
from pathlib import Path


class ParticipantPolicy(str, Enum):
    """What to do when an email is already live on a different event."""
    RELINK = "relink"
    SKIP = "skip"
    ERROR = "error"


def _normalize_db_url(url: str) -> str:
    """Normalize common Postgres URLs to the psycopg2 driver form."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def _clean(s: str | None) -> str | None:
    return s.strip().rstrip("/") if s and s.strip() else None


def _int_env(name: str, default: int) -> int:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str
    on_existing_participant: ParticipantPolicy
    default_page_limit: int
    max_page_limit: int
    log_level: str
    auto_migrate: bool
    cors_origins: list[str]


def load_settings() -> Settings:
    raw_url = getenv("DATABASE_URL")
    if raw_url:
        db_url = _normalize_db_url(raw_url)
    else:
        db_url = f"sqlite:///{(Path(__file__).resolve().parents[1] / 'venue.db')}"

    raw_policy = (getenv("ON_EXISTING_PARTICIPANT") or ParticipantPolicy.RELINK.value).strip().lower()
    try:
        policy = ParticipantPolicy(raw_policy)
    except ValueError:
        choices = ", ".join(p.value for p in ParticipantPolicy)
        raise ValueError(f"ON_EXISTING_PARTICIPANT must be one of {choices}, got {raw_policy!r}") from None

    default_limit = _int_env("DEFAULT_PAGE_LIMIT", 10)
    max_limit = _int_env("MAX_PAGE_LIMIT", 100)
    if default_limit > max_limit:
        raise ValueError("DEFAULT_PAGE_LIMIT cannot exceed MAX_PAGE_LIMIT")

    frontend = _clean(getenv("FRONTEND_ORIGIN")) or "http://localhost:5173"
    extra = [x for x in (_clean(p) for p in getenv("EXTRA_CORS_ORIGINS", "").split(",")) if x]
    origins = ["*"] if "*" in extra else sorted({frontend, *extra})

    return Settings(
        database_url=db_url,
        on_existing_participant=policy,
        default_page_limit=default_limit,
        max_page_limit=max_limit,
        log_level=(getenv("LOG_LEVEL") or "INFO").upper(),
        auto_migrate=getenv("AUTO_MIGRATE") == "1",
        cors_origins=origins,
    )


settings = load_settings()
