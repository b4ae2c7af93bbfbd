"""Unit tests for :mod:`favorites_api.db.connection`."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

import favorites_api.db.connection as connection
from favorites_api.db.connection import (
    connect_with_retry,
    create_engine,
    create_session_factory,
    sanitize_database_url,
    session_scope,
    sync_schema,
)
from favorites_api.db.repositories import EntryRepository
from tests.conftest import entry_payload, make_settings


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (
            "postgresql+psycopg://user:secret@db:5432/app",
            "postgresql+psycopg://user:***@db:5432/app",
        ),
        ("postgresql+psycopg://user@db/app", "postgresql+psycopg://user@db/app"),
        ("sqlite+aiosqlite:///./data/favorites.db", "sqlite+aiosqlite:///./data/favorites.db"),
        ("not a url", "not a url"),
    ],
)
def test_sanitize_database_url(raw: str, expected: str) -> None:
    assert sanitize_database_url(raw) == expected


@pytest.mark.asyncio
async def test_memory_sqlite_uses_static_pool() -> None:
    engine = create_engine(make_settings())
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_file_sqlite_creates_parent_directory(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "favorites.db"
    engine = create_engine(make_settings(database_url=f"sqlite+aiosqlite:///{target}"))
    try:
        await sync_schema(engine)
    finally:
        await engine.dispose()

    assert target.exists()


@pytest.mark.asyncio
async def test_connect_with_retry_waits_between_attempts(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    outcomes = [OperationalError("SELECT 1", {}, Exception("refused"))] * 2
    delays: list[float] = []

    async def _ping(engine) -> None:
        if outcomes:
            raise outcomes.pop()

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(connection, "ping", _ping)

    attempts = await connect_with_retry(object(), retry_seconds=5, sleep=_sleep)

    assert attempts == 3
    assert delays == [5, 5]


@pytest.mark.asyncio
async def test_connect_with_retry_gives_up_after_max_attempts(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _ping(engine) -> None:
        raise OSError("connection refused")

    async def _sleep(seconds: float) -> None:
        return None

    monkeypatch.setattr(connection, "ping", _ping)

    with pytest.raises(OSError):
        await connect_with_retry(object(), retry_seconds=0, max_attempts=2, sleep=_sleep)


@pytest.mark.asyncio
async def test_session_scope_rolls_back_on_error() -> None:
    engine = create_engine(make_settings())
    await sync_schema(engine)
    factory = create_session_factory(engine)

    with pytest.raises(RuntimeError):
        async with session_scope(factory) as session:
            await EntryRepository(session).create(entry_payload())
            raise RuntimeError("abort")

    async with session_scope(factory) as session:
        assert await EntryRepository(session).count() == 0
    await engine.dispose()
