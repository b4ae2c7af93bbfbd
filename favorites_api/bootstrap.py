"""Startup sequence run from the application lifespan.

The steps execute in order before the first request is served:

1. wait for the database, retrying with a fixed backoff;
2. create any missing tables;
3. insert the sample catalog into an empty table when seeding is enabled;
4. open the Redis connection used by the rate limiter, if one is configured.
"""

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import SQLAlchemyError

from favorites_api.context import AppContext
from favorites_api.db.connection import (
    connect_with_retry,
    sanitize_database_url,
    session_scope,
    sync_schema,
)
from favorites_api.scripts.seed_entries import SeedResult, seed_sample_entries

logger = logging.getLogger(__name__)


def log_preflight(context: AppContext) -> None:
    """Log the configuration the process is about to run with."""

    settings = context.settings
    for warning in settings.optional_config_warnings():
        logger.warning("  • %s", warning)

    logger.info("=" * 60)
    logger.info("%s - Database Preflight Check", settings.app_name)
    logger.info("=" * 60)
    logger.info("Environment: %s", settings.environment)
    logger.info("Database Type: %s", settings.database_type.upper())
    logger.info(
        "Database URL: %s", sanitize_database_url(settings.resolved_database_url)
    )
    logger.info("=" * 60)


async def seed_if_enabled(context: AppContext) -> SeedResult | None:
    """Run the sample seeder; failures are logged and startup continues."""

    if not context.settings.seed_on_startup:
        logger.info("Sample seeding disabled (SEED_ON_STARTUP=false)")
        return None

    try:
        async with session_scope(context.session_factory) as session:
            return await seed_sample_entries(session)
    except SQLAlchemyError as exc:
        logger.error("Seeding error: %s", exc)
        return None


async def warmup_redis(context: AppContext) -> None:
    if not context.redis.configured:
        return

    start = time.time()
    client = await context.redis.get()
    if client is None:
        logger.info("⚠ Redis warmup skipped (connection unavailable)")
        return
    elapsed = (time.time() - start) * 1000
    logger.info(f"✓ Redis connection warmed up ({elapsed:.0f}ms)")


async def bootstrap(context: AppContext, *, max_attempts: int | None = None) -> None:
    """Bring storage online and prepare the catalog for traffic."""

    log_preflight(context)
    await connect_with_retry(
        context.engine,
        retry_seconds=context.settings.db_connect_retry_seconds,
        max_attempts=max_attempts,
    )
    await sync_schema(context.engine)
    await seed_if_enabled(context)
    await warmup_redis(context)


__all__ = ["bootstrap", "log_preflight", "seed_if_enabled", "warmup_redis"]
