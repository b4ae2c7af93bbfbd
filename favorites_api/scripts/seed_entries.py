#!/usr/bin/env python
"""Seed the sample catalog of eight movies and eight TV shows.

The seeder only writes into an empty table, so running it repeatedly is safe.
The API runs it automatically at startup when ``SEED_ON_STARTUP`` is true.

Usage:
    python -m favorites_api.scripts.seed_entries
    python -m favorites_api.scripts.seed_entries --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from favorites_api.db.connection import (
    create_engine,
    create_session_factory,
    sanitize_database_url,
    session_scope,
    sync_schema,
)
from favorites_api.db.repositories import EntryRepository
from favorites_api.schemas.entries import EntryCreate, EntryType
from favorites_api.settings import LOG_FORMAT, get_settings

logger = logging.getLogger(__name__)

SAMPLE_ENTRIES: tuple[dict[str, object], ...] = (
    {
        "title": "The Dark Knight",
        "type": "Movie",
        "director": "Christopher Nolan",
        "budget": 185_000_000,
        "location": "Chicago, Illinois",
        "duration": "152 minutes",
        "year": 2008,
    },
    {
        "title": "Inception",
        "type": "Movie",
        "director": "Christopher Nolan",
        "budget": 160_000_000,
        "location": "Los Angeles, California",
        "duration": "148 minutes",
        "year": 2010,
    },
    {
        "title": "Interstellar",
        "type": "Movie",
        "director": "Christopher Nolan",
        "budget": 165_000_000,
        "location": "Alberta, Canada",
        "duration": "169 minutes",
        "year": 2014,
    },
    {
        "title": "The Matrix",
        "type": "Movie",
        "director": "The Wachowskis",
        "budget": 63_000_000,
        "location": "Sydney, Australia",
        "duration": "136 minutes",
        "year": 1999,
    },
    {
        "title": "Pulp Fiction",
        "type": "Movie",
        "director": "Quentin Tarantino",
        "budget": 8_000_000,
        "location": "Los Angeles, California",
        "duration": "154 minutes",
        "year": 1994,
    },
    {
        "title": "The Godfather",
        "type": "Movie",
        "director": "Francis Ford Coppola",
        "budget": 6_000_000,
        "location": "New York, New York",
        "duration": "175 minutes",
        "year": 1972,
    },
    {
        "title": "Avatar",
        "type": "Movie",
        "director": "James Cameron",
        "budget": 237_000_000,
        "location": "Los Angeles, California",
        "duration": "162 minutes",
        "year": 2009,
    },
    {
        "title": "Titanic",
        "type": "Movie",
        "director": "James Cameron",
        "budget": 200_000_000,
        "location": "Rosarito, Mexico",
        "duration": "194 minutes",
        "year": 1997,
    },
    {
        "title": "Breaking Bad",
        "type": "TV Show",
        "director": "Vince Gilligan",
        "budget": 3_000_000,
        "location": "Albuquerque, New Mexico",
        "duration": "5 seasons",
        "year": 2008,
    },
    {
        "title": "Game of Thrones",
        "type": "TV Show",
        "director": "David Benioff & D.B. Weiss",
        "budget": 15_000_000,
        "location": "Northern Ireland",
        "duration": "8 seasons",
        "year": 2011,
    },
    {
        "title": "The Office",
        "type": "TV Show",
        "director": "Greg Daniels",
        "budget": 2_000_000,
        "location": "Los Angeles, California",
        "duration": "9 seasons",
        "year": 2005,
    },
    {
        "title": "Stranger Things",
        "type": "TV Show",
        "director": "The Duffer Brothers",
        "budget": 8_000_000,
        "location": "Atlanta, Georgia",
        "duration": "4 seasons",
        "year": 2016,
    },
    {
        "title": "The Sopranos",
        "type": "TV Show",
        "director": "David Chase",
        "budget": 4_000_000,
        "location": "New Jersey, New York",
        "duration": "6 seasons",
        "year": 1999,
    },
    {
        "title": "The Wire",
        "type": "TV Show",
        "director": "David Simon",
        "budget": 2_500_000,
        "location": "Baltimore, Maryland",
        "duration": "5 seasons",
        "year": 2002,
    },
    {
        "title": "Friends",
        "type": "TV Show",
        "director": "Marta Kauffman & David Crane",
        "budget": 1_000_000,
        "location": "Los Angeles, California",
        "duration": "10 seasons",
        "year": 1994,
    },
    {
        "title": "The Crown",
        "type": "TV Show",
        "director": "Peter Morgan",
        "budget": 13_000_000,
        "location": "London, England",
        "duration": "6 seasons",
        "year": 2016,
    },
)


@dataclass(frozen=True)
class SeedResult:
    seeded: bool
    count: int


def sample_payloads() -> list[EntryCreate]:
    """Validate the sample rows through the same rules the API applies."""

    return [EntryCreate.model_validate(row) for row in SAMPLE_ENTRIES]


async def seed_sample_entries(session: AsyncSession) -> SeedResult:
    """Insert the sample catalog when the entries table is empty.

    Returns ``SeedResult(seeded=False, count=<existing rows>)`` when data is
    already present, otherwise ``SeedResult(seeded=True, count=<inserted rows>)``.
    """

    repository = EntryRepository(session)
    existing = await repository.count()
    if existing > 0:
        logger.info("Database contains %s entries - skipping seeding", existing)
        return SeedResult(seeded=False, count=existing)

    logger.info("Seeding sample data...")
    payloads = sample_payloads()
    created = await repository.bulk_create(payload.model_dump() for payload in payloads)
    movies = sum(1 for payload in payloads if payload.type is EntryType.MOVIE)
    logger.info(
        "Seeded %s entries (%s movies, %s TV shows)",
        len(created),
        movies,
        len(payloads) - movies,
    )
    return SeedResult(seeded=True, count=len(created))


async def main() -> int:
    """CLI entry point."""

    parser = argparse.ArgumentParser(
        description="Seed the sample movies and TV shows into an empty catalog"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the sample data without touching the database",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level_numeric, format=LOG_FORMAT)

    if args.dry_run:
        payloads = sample_payloads()
        print(f"✓ Validated {len(payloads)} sample entries")
        return 0

    print(f"🗄️  Database: {sanitize_database_url(settings.resolved_database_url)}")
    engine = create_engine(settings)
    try:
        await sync_schema(engine)
        async with session_scope(create_session_factory(engine)) as session:
            result = await seed_sample_entries(session)
    finally:
        await engine.dispose()

    if result.seeded:
        print(f"✅ Loaded {result.count} entries")
    else:
        print(f"ℹ️  Catalog already holds {result.count} entries; nothing to do")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
