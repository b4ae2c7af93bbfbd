"""Database-oriented helpers for the favorite entries table."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from favorites_api.db.models import FavoriteEntry
from favorites_api.schemas.entries import EntryType
from favorites_api.utils.timefmt import utcnow

_MUTABLE_COLUMNS = frozenset(
    {"title", "type", "director", "budget", "location", "duration", "year"}
)


@dataclass(frozen=True)
class EntryAggregates:
    """Raw figures behind the stats endpoint."""

    total: int
    movies: int
    tv_shows: int
    recent: int
    average_budget: Decimal | float | None


class EntryRepository:
    """Encapsulates SQLAlchemy operations required by the entries domain."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _title_filter(query: str) -> ColumnElement[bool]:
        return FavoriteEntry.title.contains(query, autoescape=True)

    async def count(self, *, title_contains: str | None = None) -> int:
        """Count rows, optionally restricted to titles containing a substring."""

        statement = select(func.count(FavoriteEntry.id))
        if title_contains is not None:
            statement = statement.where(self._title_filter(title_contains))
        result = await self._session.execute(statement)
        return int(result.scalar_one())

    async def list_page(self, *, offset: int, limit: int) -> Sequence[FavoriteEntry]:
        """Newest entries first."""

        statement = (
            select(FavoriteEntry)
            .order_by(FavoriteEntry.created_at.desc(), FavoriteEntry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(statement)
        return result.scalars().all()

    async def search_page(
        self, query: str, *, offset: int, limit: int
    ) -> Sequence[FavoriteEntry]:
        """Entries whose title contains ``query``, alphabetical by title."""

        statement = (
            select(FavoriteEntry)
            .where(self._title_filter(query))
            .order_by(FavoriteEntry.title.asc(), FavoriteEntry.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(statement)
        return result.scalars().all()

    async def get(self, entry_id: int) -> FavoriteEntry | None:
        return await self._session.get(FavoriteEntry, entry_id)

    async def find_by_title_and_year(self, title: str, year: int) -> FavoriteEntry | None:
        statement = (
            select(FavoriteEntry)
            .where(FavoriteEntry.title == title, FavoriteEntry.year == year)
            .limit(1)
        )
        result = await self._session.execute(statement)
        return result.scalars().first()

    async def find_by_title_excluding(
        self, title: str, *, exclude_id: int
    ) -> FavoriteEntry | None:
        """Return another entry that already uses ``title``."""

        statement = (
            select(FavoriteEntry)
            .where(FavoriteEntry.title == title, FavoriteEntry.id != exclude_id)
            .limit(1)
        )
        result = await self._session.execute(statement)
        return result.scalars().first()

    async def create(self, values: Mapping[str, Any]) -> FavoriteEntry:
        """Insert a single entry; both timestamps share the creation instant."""

        now = utcnow()
        entry = FavoriteEntry(
            **{key: values[key] for key in _MUTABLE_COLUMNS},
            created_at=now,
            updated_at=now,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def bulk_create(self, rows: Iterable[Mapping[str, Any]]) -> list[FavoriteEntry]:
        """Insert many entries in one flush; used by the seeder only."""

        now = utcnow()
        entries = [
            FavoriteEntry(
                **{key: row[key] for key in _MUTABLE_COLUMNS},
                created_at=now,
                updated_at=now,
            )
            for row in rows
        ]
        self._session.add_all(entries)
        await self._session.flush()
        return entries

    async def update(
        self, entry: FavoriteEntry, changes: Mapping[str, Any]
    ) -> FavoriteEntry:
        """Apply a partial update and refresh ``updated_at``."""

        for key, value in changes.items():
            if key in _MUTABLE_COLUMNS:
                setattr(entry, key, value)
        entry.updated_at = utcnow()
        await self._session.flush()
        return entry

    async def delete(self, entry: FavoriteEntry) -> None:
        await self._session.delete(entry)
        await self._session.flush()

    async def refresh(self, entry: FavoriteEntry) -> FavoriteEntry:
        """Reload ``entry`` from the database, discarding in-memory state."""

        await self._session.refresh(entry)
        return entry

    async def aggregates(self, *, recent_since_year: int) -> EntryAggregates:
        """Compute every stats figure in a single round trip."""

        statement = select(
            func.count(FavoriteEntry.id),
            func.coalesce(
                func.sum(case((FavoriteEntry.type == EntryType.MOVIE, 1), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((FavoriteEntry.type == EntryType.TV_SHOW, 1), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((FavoriteEntry.year >= recent_since_year, 1), else_=0)), 0
            ),
            func.avg(FavoriteEntry.budget),
        )
        result = await self._session.execute(statement)
        total, movies, tv_shows, recent, average_budget = result.one()
        return EntryAggregates(
            total=int(total),
            movies=int(movies),
            tv_shows=int(tv_shows),
            recent=int(recent),
            average_budget=average_budget,
        )

    async def commit(self) -> None:
        """Persist the pending unit of work before the response is built."""

        await self._session.commit()
