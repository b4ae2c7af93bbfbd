"""Per-application resources shared by every request."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from favorites_api.cache import RedisConnection
from favorites_api.db.connection import create_engine, create_session_factory
from favorites_api.rate_limit import RateLimiter
from favorites_api.settings import AppSettings


@dataclass
class AppContext:
    """Settings, storage handle and rate limiter owned by one app instance."""

    settings: AppSettings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    redis: RedisConnection
    rate_limiter: RateLimiter

    @classmethod
    def from_settings(cls, settings: AppSettings) -> AppContext:
        engine = create_engine(settings)
        redis = RedisConnection(settings.redis_url)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_factory(engine),
            redis=redis,
            rate_limiter=RateLimiter(
                settings.rate_limit_rules,
                redis=redis if redis.configured else None,
                enabled=settings.rate_limit_enabled,
            ),
        )

    async def aclose(self) -> None:
        """Release the connection pool and the Redis client."""

        await self.redis.close()
        await self.engine.dispose()


__all__ = ["AppContext"]
