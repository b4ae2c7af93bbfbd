"""Shared fixtures: an isolated app per test backed by in-memory SQLite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

from favorites_api.bootstrap import bootstrap  # noqa: E402
from favorites_api.context import AppContext  # noqa: E402
from favorites_api.db.connection import session_scope  # noqa: E402
from favorites_api.db.repositories import EntryRepository  # noqa: E402
from favorites_api.main import create_app  # noqa: E402
from favorites_api.settings import AppSettings  # noqa: E402

MEMORY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides: Any) -> AppSettings:
    """Settings for an isolated in-memory app; keyword overrides use field names."""

    values: dict[str, Any] = {
        "database_url": MEMORY_DATABASE_URL,
        "use_sqlite": False,
        "redis_url": None,
        "seed_on_startup": False,
        "rate_limit_enabled": True,
        "db_connect_retry_seconds": 0.01,
        "environment": "test",
    }
    values.update(overrides)
    return AppSettings(**values)


def entry_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Inception",
        "type": "Movie",
        "director": "Christopher Nolan",
        "budget": 160_000_000,
        "location": "Los Angeles, California",
        "duration": "148 minutes",
        "year": 2010,
    }
    payload.update(overrides)
    return payload


async def insert_entries(app: FastAPI, rows: Iterable[Mapping[str, Any]]) -> None:
    """Write rows straight through the repository, bypassing rate limits."""

    context: AppContext = app.state.context
    async with session_scope(context.session_factory) as session:
        await EntryRepository(session).bulk_create(rows)


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest_asyncio.fixture
async def app(settings: AppSettings) -> AsyncIterator[FastAPI]:
    application = create_app(settings)
    context: AppContext = application.state.context
    await bootstrap(context, max_attempts=1)
    yield application
    await context.aclose()


@pytest_asyncio.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def session(app: FastAPI) -> AsyncIterator[AsyncSession]:
    """Session bound to the same in-memory database as ``app``."""

    context: AppContext = app.state.context
    async with context.session_factory() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
