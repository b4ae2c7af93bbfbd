from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = logging.getLogger(__name__)


def is_redis_connection_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents an unreachable Redis server."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError))


class RedisConnection:
    """Lazily connected Redis client shared by one application instance.

    The first failed connection attempt disables Redis for the lifetime of the
    instance so callers fall back to process memory without paying a connect
    timeout on every request.
    """

    def __init__(self, url: str | None) -> None:
        self._url = url
        self._client: Redis | None = None
        self._disabled = not url
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self._url is not None

    @property
    def disabled(self) -> bool:
        return self._disabled

    async def get(self) -> Redis | None:
        """Return the connected client, or ``None`` when Redis is unavailable."""

        if self._disabled:
            return None

        async with self._lock:
            if self._client is not None:
                return self._client
            if self._disabled:
                return None

            client = Redis.from_url(self._url, decode_responses=True, encoding="utf-8")
            try:
                await client.ping()
            except Exception as exc:
                if not is_redis_connection_error(exc):
                    raise
                logger.warning(
                    "Redis connection failed: %s. Rate-limit counters fall back to memory.",
                    exc,
                )
                self._disabled = True
                await client.aclose()
                return None

            self._client = client
            logger.info("Redis connection established successfully")
            return self._client

    def disable(self, exc: BaseException) -> None:
        """Stop using Redis after a runtime connection failure."""

        if not self._disabled:
            logger.warning(
                "Redis became unreachable: %s. Rate-limit counters fall back to memory.",
                exc,
            )
        self._disabled = True

    async def close(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
            except Exception as exc:
                if not is_redis_connection_error(exc):
                    raise
                logger.debug("Redis close failed: %s", exc)
            finally:
                self._client = None


__all__ = ["RedisConnection", "is_redis_connection_error"]
