"""Centralized configuration management for the favorites catalog API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`favorites_api.settings`
# observes the same values.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_APP_NAME = "Favorite Movies & TV Shows API"
DEFAULT_APP_VERSION = "1.0.0"
DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/favorites.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
SQLITE_ASYNC_PREFIX = "sqlite+aiosqlite://"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class RateLimitRule:
    """Maximum number of requests accepted per client inside a fixed window."""

    max_requests: int
    window_seconds: int
    label: str


def _window_label(seconds: int) -> str:
    """Render a window length the way clients see it in ``retryAfter``."""

    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Every tunable of the service lives here: database location and pool sizing,
    startup behaviour, rate-limit windows and the shutdown grace period.  The
    helper properties keep URL normalisation and rule construction out of the
    modules that consume them.
    """

    _explicit_database_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        super().__init__(**values)
        self._explicit_database_url = bool(
            self.database_url and self.database_url.strip()
        )

    app_name: str = Field(default=DEFAULT_APP_NAME, alias="APP_NAME")
    app_version: str = Field(default=DEFAULT_APP_VERSION, alias="APP_VERSION")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV", "environment"),
        description="Deployment tag echoed by the health endpoint.",
    )
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    api_prefix: str = Field(
        default="/api",
        alias="API_PREFIX",
        description="Path prefix mounted in front of every catalog route.",
    )

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "SQLAlchemy database URL. PostgreSQL URLs supplied in sync format"
            " (postgres:// or postgresql://) are coerced into the async psycopg"
            " driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    db_pool_size: int = Field(default=5, ge=1, alias="DB_POOL_SIZE")
    db_pool_timeout: float = Field(
        default=60.0,
        gt=0,
        alias="DB_POOL_TIMEOUT",
        description="Seconds to wait for a pooled connection before failing.",
    )
    db_pool_recycle: int = Field(
        default=10,
        alias="DB_POOL_RECYCLE",
        description="Seconds after which pooled connections are recycled.",
    )
    db_connect_retry_seconds: float = Field(
        default=5.0,
        gt=0,
        alias="DB_CONNECT_RETRY_SECONDS",
        description="Fixed backoff between startup connection attempts.",
    )

    redis_url: str | None = Field(
        default=None,
        alias="REDIS_URL",
        description=(
            "Redis connection string backing the rate-limit counters. When unset"
            " or unreachable the counters are kept in process memory."
        ),
    )
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_general_max: int = Field(default=100, ge=1, alias="RATE_LIMIT_GENERAL_MAX")
    rate_limit_general_window: int = Field(
        default=15 * 60, ge=1, alias="RATE_LIMIT_GENERAL_WINDOW"
    )
    rate_limit_write_max: int = Field(default=20, ge=1, alias="RATE_LIMIT_WRITE_MAX")
    rate_limit_write_window: int = Field(
        default=15 * 60, ge=1, alias="RATE_LIMIT_WRITE_WINDOW"
    )
    rate_limit_search_max: int = Field(default=30, ge=1, alias="RATE_LIMIT_SEARCH_MAX")
    rate_limit_search_window: int = Field(
        default=60, ge=1, alias="RATE_LIMIT_SEARCH_WINDOW"
    )

    seed_on_startup: bool = Field(
        default=True,
        alias="SEED_ON_STARTUP",
        description="Insert the sample catalog when the table is empty at boot.",
    )
    shutdown_grace_seconds: float = Field(
        default=10.0,
        gt=0,
        alias="SHUTDOWN_GRACE_SECONDS",
        description="Seconds allowed for graceful shutdown before a forced exit.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of allowed CORS origins; '*' when unset.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url or not self.database_url.strip():
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith(SQLITE_ASYNC_PREFIX):
            return url

        raise RuntimeError(
            "Expected a PostgreSQL connection string or an sqlite+aiosqlite URL,"
            f" received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins; ``["*"]`` when none were configured."""

        if not self.cors_allow_origins_raw:
            return ["*"]

        origins = [
            origin.strip().rstrip("/")
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return origins or ["*"]

    @property
    def normalized_api_prefix(self) -> str:
        """Return the API prefix with a single leading slash and no trailing one."""

        prefix = "/" + self.api_prefix.strip().strip("/")
        return "" if prefix == "/" else prefix

    @property
    def rate_limit_rules(self) -> dict[str, RateLimitRule]:
        """Return the configured rule for each rate class."""

        return {
            "general": RateLimitRule(
                self.rate_limit_general_max,
                self.rate_limit_general_window,
                _window_label(self.rate_limit_general_window),
            ),
            "write": RateLimitRule(
                self.rate_limit_write_max,
                self.rate_limit_write_window,
                _window_label(self.rate_limit_write_window),
            ),
            "search": RateLimitRule(
                self.rate_limit_search_max,
                self.rate_limit_search_window,
                _window_label(self.rate_limit_search_window),
            ),
        }

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

        if not self._explicit_database_url and not self.use_sqlite:
            warnings.append(
                "DATABASE_URL is not set - falling back to the local SQLite file "
                f"{DEFAULT_SQLITE_DATABASE_URL}"
            )

        if self.rate_limit_enabled and not self.redis_url:
            warnings.append(
                "REDIS_URL is not set - rate-limit counters are kept in process "
                "memory and reset on restart"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_APP_NAME",
    "DEFAULT_APP_VERSION",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "LOG_FORMAT",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "RateLimitRule",
    "get_settings",
]
