from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from favorites_api.db.models import Base
from favorites_api.settings import AppSettings

logger = logging.getLogger(__name__)


def sanitize_database_url(url: str) -> str:
    """Hide the password portion of ``url`` so it can be logged safely."""

    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth, host_db = rest.split("@", 1)
        if ":" in auth:
            user, _ = auth.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth}@{host_db}"
    return url


def _is_memory_sqlite(url: str) -> bool:
    if not url.startswith("sqlite"):
        return False
    return ":memory:" in url or url.rstrip("/") == "sqlite+aiosqlite:"


def create_engine(settings: AppSettings) -> AsyncEngine:
    """Create the async SQLAlchemy engine described by ``settings``.

    PostgreSQL gets a bounded pool (``DB_POOL_SIZE`` connections, no overflow,
    ``DB_POOL_TIMEOUT`` seconds to acquire, ``DB_POOL_RECYCLE`` seconds before a
    connection is replaced).  In-memory SQLite shares one connection through
    :class:`StaticPool` so every session sees the same database.
    """

    url = settings.resolved_database_url

    if url.startswith("sqlite"):
        if _is_memory_sqlite(url):
            return create_async_engine(
                url,
                future=True,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        _ensure_sqlite_directory(url)
        return create_async_engine(
            url,
            future=True,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        url,
        future=True,
        echo=False,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
    )


def _ensure_sqlite_directory(url: str) -> None:
    _, _, path = url.partition(":///")
    if path:
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def ping(engine: AsyncEngine) -> None:
    """Open a connection and run ``SELECT 1``."""

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def connect_with_retry(
    engine: AsyncEngine,
    *,
    retry_seconds: float,
    max_attempts: int | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> int:
    """Block until the database answers, retrying with a fixed backoff.

    ``max_attempts`` of ``None`` retries forever.  Returns the number of attempts
    that were needed; re-raises the last error once ``max_attempts`` is spent.
    """

    attempt = 0
    while True:
        attempt += 1
        try:
            await ping(engine)
        except (SQLAlchemyError, OSError) as exc:
            if max_attempts is not None and attempt >= max_attempts:
                raise
            logger.error("Database connection failed: %s", exc)
            logger.info("Retrying database connection in %.0fs...", retry_seconds)
            await sleep(retry_seconds)
            continue

        logger.info("Database connected successfully")
        return attempt


async def sync_schema(engine: AsyncEngine) -> None:
    """Create missing tables; existing tables are left untouched."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database synchronized")


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
