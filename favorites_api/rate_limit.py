"""Fixed-window request limits keyed by client address and rate class.

Three classes exist: ``general`` covers every catalog route, ``write`` adds a
stricter budget to create/update/delete and ``search`` to the search route.
Counters live in Redis when ``REDIS_URL`` points at a reachable server and in
process memory otherwise.  Each window starts with the first request a client
makes in that class and resets completely when it expires.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from fastapi import Request

from favorites_api.cache import RedisConnection, is_redis_connection_error
from favorites_api.errors import RateLimitExceededError
from favorites_api.settings import RateLimitRule

logger = logging.getLogger(__name__)

GENERAL = "general"
WRITE = "write"
SEARCH = "search"

_KEY_PREFIX = "ratelimit"
_STATE_ATTRIBUTE = "rate_limit"

_MESSAGES = {
    GENERAL: "Too many requests from this IP, please try again later.",
    WRITE: "Too many write requests from this IP, please try again later.",
    SEARCH: "Too many search requests from this IP, please try again later.",
}


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against a rule."""

    rate_class: str
    rule: RateLimitRule
    count: int
    reset_seconds: int

    @property
    def allowed(self) -> bool:
        return self.count <= self.rule.max_requests

    @property
    def remaining(self) -> int:
        return max(self.rule.max_requests - self.count, 0)

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.rule.max_requests),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }


class InMemoryCounterStore:
    """Fixed-window counters held in a dict guarded by an ``asyncio.Lock``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_sweep = 0.0
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float, window_seconds: int) -> None:
        # At most once per window; drops clients whose window has ended.
        if now < self._next_sweep:
            return
        expired = [
            key for key, (expires_at, _) in self._windows.items() if expires_at <= now
        ]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + window_seconds

    async def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count a hit and return ``(count, seconds_until_reset)``."""

        async with self._lock:
            now = self._clock()
            self._sweep(now, window_seconds)
            expires_at, count = self._windows.get(key, (0.0, 0))
            if expires_at <= now:
                expires_at, count = now + window_seconds, 0
            count += 1
            self._windows[key] = (expires_at, count)
            return count, max(math.ceil(expires_at - now), 0)

    async def clear(self) -> None:
        async with self._lock:
            self._windows.clear()


class RedisCounterStore:
    """Fixed-window counters using ``INCR`` plus ``EXPIRE`` on first hit."""

    def __init__(self, connection: RedisConnection) -> None:
        self._connection = connection

    async def increment(self, key: str, window_seconds: int) -> tuple[int, int] | None:
        """Return ``(count, seconds_until_reset)`` or ``None`` when Redis is unusable."""

        client = await self._connection.get()
        if client is None:
            return None

        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, window_seconds, nx=True)
                pipe.ttl(key)
                count, _, ttl = await pipe.execute()
        except Exception as exc:
            if not is_redis_connection_error(exc):
                raise
            self._connection.disable(exc)
            return None

        if ttl is None or ttl < 0:
            ttl = window_seconds
        return int(count), int(ttl)


class RateLimiter:
    """Counts requests per client and rate class against the configured rules."""

    def __init__(
        self,
        rules: Mapping[str, RateLimitRule],
        *,
        redis: RedisConnection | None = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rules = dict(rules)
        self._enabled = enabled
        self._memory = InMemoryCounterStore(clock)
        self._redis = RedisCounterStore(redis) if redis is not None else None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def rule_for(self, rate_class: str) -> RateLimitRule:
        return self._rules[rate_class]

    async def hit(self, rate_class: str, client_id: str) -> RateLimitDecision:
        """Count one request from ``client_id`` against ``rate_class``."""

        rule = self.rule_for(rate_class)
        key = f"{_KEY_PREFIX}:{rate_class}:{client_id}"

        counted = None
        if self._redis is not None:
            counted = await self._redis.increment(key, rule.window_seconds)
        if counted is None:
            counted = await self._memory.increment(key, rule.window_seconds)

        count, reset_seconds = counted
        return RateLimitDecision(
            rate_class=rate_class,
            rule=rule,
            count=count,
            reset_seconds=reset_seconds,
        )

    async def reset(self) -> None:
        """Forget every in-memory counter."""

        await self._memory.clear()


def client_address(request: Request) -> str:
    """Best-effort client address used as the counter key."""

    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def _record_decision(request: Request, decision: RateLimitDecision) -> None:
    """Keep the most restrictive decision seen for the response headers."""

    current: RateLimitDecision | None = getattr(request.state, _STATE_ATTRIBUTE, None)
    if current is None or decision.remaining <= current.remaining:
        setattr(request.state, _STATE_ATTRIBUTE, decision)


def rate_limit_headers(request: Request) -> dict[str, str]:
    """Return the ``RateLimit-*`` headers recorded for ``request``, if any."""

    decision: RateLimitDecision | None = getattr(request.state, _STATE_ATTRIBUTE, None)
    return decision.headers() if decision is not None else {}


def rate_limit(rate_class: str) -> Callable[[Request], object]:
    """Build a FastAPI dependency enforcing ``rate_class`` for a route or router."""

    if rate_class not in _MESSAGES:
        raise ValueError(f"Unknown rate class: {rate_class}")

    async def _enforce(request: Request) -> None:
        limiter: RateLimiter = request.app.state.context.rate_limiter
        if not limiter.enabled:
            return

        decision = await limiter.hit(rate_class, client_address(request))
        _record_decision(request, decision)
        if decision.allowed:
            return

        logger.warning(
            "Rate limit exceeded for %s on %s (%s/%s)",
            client_address(request),
            rate_class,
            decision.count,
            decision.rule.max_requests,
        )
        headers = decision.headers()
        headers["Retry-After"] = str(decision.reset_seconds)
        raise RateLimitExceededError(
            _MESSAGES[rate_class],
            retry_after=decision.rule.label,
            headers=headers,
        )

    _enforce.__name__ = f"rate_limit_{rate_class}"
    return _enforce


__all__ = [
    "GENERAL",
    "SEARCH",
    "WRITE",
    "InMemoryCounterStore",
    "RateLimitDecision",
    "RateLimiter",
    "RedisCounterStore",
    "client_address",
    "rate_limit",
    "rate_limit_headers",
]
