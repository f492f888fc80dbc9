"""Centralized configuration management for the Wortschatz library service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`wortschatz.settings` sees
# the same values regardless of entry point (API server, scripts or client).
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/wortschatz.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_CATEGORY_NAME = "Meine Favoriten"


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Server-side values (database, Redis, CORS) and client-side values (API base
    URL, paging, gloss language) live on the same object so that scripts and
    tests can build either half of the application from one source of truth.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Full SQLAlchemy-compatible database URL. Postgres URLs supplied in"
            " sync format (postgres:// or postgresql://) are coerced into the"
            " async psycopg driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the cache utilities.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        alias="LIBRARY_API_BASE_URL",
        description="Base URL the client gateway uses to reach the library API.",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        alias="LIBRARY_REQUEST_TIMEOUT",
        description="Per-request timeout applied by the client gateway.",
    )
    default_gloss_lang: str = Field(
        default="en",
        alias="DEFAULT_GLOSS_LANG",
        description="Gloss language stamped on favorites when the entry has none.",
    )
    default_category_name: str = Field(
        default=DEFAULT_CATEGORY_NAME,
        alias="DEFAULT_CATEGORY_NAME",
        description=(
            "Name of the category created on demand for favorites added without"
            " an explicit category, and preferred when restoring a selection."
        ),
    )
    library_page_size: int = Field(
        default=50,
        ge=1,
        le=200,
        alias="LIBRARY_PAGE_SIZE",
        description="Page size requested by client reloads.",
    )
    library_max_pages: int = Field(
        default=20,
        ge=1,
        alias="LIBRARY_MAX_PAGES",
        description="Upper bound on cursor pages followed during one reload.",
    )
    session_lifetime_hours: int = Field(
        default=24 * 30,
        ge=1,
        alias="SESSION_LIFETIME_HOURS",
        description="Lifetime of bearer tokens minted by the session service.",
    )
    selection_ttl_seconds: int = Field(
        default=60 * 60 * 24 * 90,
        ge=1,
        alias="SELECTION_TTL_SECONDS",
        description="Retention of the remembered category selection in Redis.",
    )
    category_cache_ttl_seconds: int = Field(
        default=300,
        ge=1,
        alias="CATEGORY_CACHE_TTL",
        description="TTL applied to cached category lists.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL or aiosqlite connection string, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - category lists and selections fall back to"
                " uncached reads when no local Redis is running"
            )

        if self.database_type == "sqlite":
            warnings.append(
                "DATABASE_URL is not set to PostgreSQL - using the SQLite file at"
                f" {DEFAULT_SQLITE_DATABASE_URL}"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_CATEGORY_NAME",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "get_settings",
]
