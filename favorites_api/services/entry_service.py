"""Business logic powering the favorite entries endpoints.

:class:`EntryService` coordinates the repository, the uniqueness rules and the
presentation conversions:

* ``create_entry`` rejects a second entry with the same title and year.
* ``update_entry`` rejects renaming onto a title owned by another entry; the
  check is title-only, unlike creation.
* ``list_entries``/``search_entries`` share the pagination helper.
* ``get_stats`` aggregates the whole catalogue in one query.

Inputs are already validated models; failures surface as
:mod:`favorites_api.errors` exceptions that the app turns into envelopes.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from favorites_api.db.models import FavoriteEntry
from favorites_api.db.repositories import EntryAggregates, EntryRepository
from favorites_api.dependencies import get_db
from favorites_api.errors import DuplicateEntryError, EntryNotFoundError
from favorites_api.schemas.entries import (
    EntryCreate,
    EntryListPayload,
    EntryRead,
    EntrySearchPayload,
    EntryStats,
    EntryUpdate,
    PaginationParams,
    SearchParams,
)
from favorites_api.services.pagination import build_pagination
from favorites_api.utils.timefmt import format_display_timestamp, utcnow

logger = logging.getLogger(__name__)

DUPLICATE_TITLE_AND_YEAR_MESSAGE = "An entry with this title and year already exists"
DUPLICATE_TITLE_MESSAGE = "An entry with this title already exists"
RECENT_YEARS = 10


def round_half_away_from_zero(value: Decimal | float | int | None) -> int:
    """Round an average to a whole number; ``None`` (no rows) becomes ``0``."""

    if value is None:
        return 0
    decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    return int(decimal_value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class EntryService:
    """Orchestrates entry persistence and response shaping."""

    def __init__(self, *, repository: EntryRepository) -> None:
        self._repository = repository

    @staticmethod
    def _to_read(entry: FavoriteEntry) -> EntryRead:
        return EntryRead.model_validate(entry)

    async def _require_entry(self, entry_id: int) -> FavoriteEntry:
        entry = await self._repository.get(entry_id)
        if entry is None:
            raise EntryNotFoundError()
        return entry

    async def create_entry(self, payload: EntryCreate) -> EntryRead:
        existing = await self._repository.find_by_title_and_year(
            payload.title, payload.year
        )
        if existing is not None:
            raise DuplicateEntryError(DUPLICATE_TITLE_AND_YEAR_MESSAGE)

        entry = await self._repository.create(payload.model_dump())
        await self._repository.commit()
        logger.info("Created entry %s (%s, %s)", entry.id, entry.title, entry.year)
        return self._to_read(entry)

    async def list_entries(self, params: PaginationParams) -> EntryListPayload:
        total = await self._repository.count()
        entries = await self._repository.list_page(
            offset=params.offset, limit=params.limit
        )
        return EntryListPayload(
            entries=[self._to_read(entry) for entry in entries],
            pagination=build_pagination(
                page=params.page, limit=params.limit, total=total
            ),
        )

    async def search_entries(self, params: SearchParams) -> EntrySearchPayload:
        total = await self._repository.count(title_contains=params.q)
        entries = await self._repository.search_page(
            params.q, offset=params.offset, limit=params.limit
        )
        return EntrySearchPayload(
            entries=[self._to_read(entry) for entry in entries],
            pagination=build_pagination(
                page=params.page, limit=params.limit, total=total
            ),
            search_query=params.q,
        )

    async def get_entry(self, entry_id: int) -> EntryRead:
        return self._to_read(await self._require_entry(entry_id))

    async def update_entry(self, entry_id: int, payload: EntryUpdate) -> EntryRead:
        entry = await self._require_entry(entry_id)
        changes = payload.changes()

        title = changes.get("title")
        if title is not None:
            owner = await self._repository.find_by_title_excluding(
                title, exclude_id=entry.id
            )
            if owner is not None:
                raise DuplicateEntryError(DUPLICATE_TITLE_MESSAGE)

        await self._repository.update(entry, changes)
        await self._repository.commit()
        refreshed = await self._repository.refresh(entry)
        logger.info("Updated entry %s (%s)", entry_id, ", ".join(sorted(changes)))
        return self._to_read(refreshed)

    async def delete_entry(self, entry_id: int) -> None:
        entry = await self._require_entry(entry_id)
        await self._repository.delete(entry)
        await self._repository.commit()
        logger.info("Deleted entry %s", entry_id)

    async def get_stats(self) -> EntryStats:
        now = utcnow()
        aggregates: EntryAggregates = await self._repository.aggregates(
            recent_since_year=now.year - RECENT_YEARS
        )
        return EntryStats(
            total_entries=aggregates.total,
            movies_count=aggregates.movies,
            tv_shows_count=aggregates.tv_shows,
            recent_entries=aggregates.recent,
            avg_budget=round_half_away_from_zero(aggregates.average_budget),
            generated_at=format_display_timestamp(now),
        )


def get_entry_service(session: AsyncSession = Depends(get_db)) -> EntryService:
    """FastAPI dependency wiring a request-scoped :class:`EntryService`."""

    return EntryService(repository=EntryRepository(session))


__all__ = [
    "DUPLICATE_TITLE_AND_YEAR_MESSAGE",
    "DUPLICATE_TITLE_MESSAGE",
    "EntryService",
    "get_entry_service",
    "round_half_away_from_zero",
]
