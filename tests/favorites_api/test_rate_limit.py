"""Tests for the fixed-window rate limiter and its HTTP behaviour."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from favorites_api.bootstrap import bootstrap
from favorites_api.cache import RedisConnection
from favorites_api.main import create_app
from favorites_api.rate_limit import (
    GENERAL,
    SEARCH,
    WRITE,
    InMemoryCounterStore,
    RateLimiter,
    rate_limit,
)
from favorites_api.settings import RateLimitRule
from tests.conftest import entry_payload, make_settings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


RULES = {
    GENERAL: RateLimitRule(3, 60, "1 minute"),
    WRITE: RateLimitRule(1, 900, "15 minutes"),
    SEARCH: RateLimitRule(2, 60, "1 minute"),
}


@pytest.mark.asyncio
async def test_counter_store_resets_after_window() -> None:
    clock = FakeClock()
    store = InMemoryCounterStore(clock)

    assert await store.increment("k", 60) == (1, 60)
    clock.advance(20)
    assert await store.increment("k", 60) == (2, 40)
    clock.advance(40)
    assert await store.increment("k", 60) == (1, 60)


@pytest.mark.asyncio
async def test_counter_store_drops_expired_clients() -> None:
    clock = FakeClock()
    store = InMemoryCounterStore(clock)

    for index in range(1000):
        await store.increment(f"client-{index}", 60)
    assert len(store) == 1000

    clock.advance(61)
    assert await store.increment("late-client", 60) == (1, 60)
    assert len(store) == 1


@pytest.mark.asyncio
async def test_counter_store_keeps_live_windows_when_sweeping() -> None:
    clock = FakeClock()
    store = InMemoryCounterStore(clock)

    await store.increment("old", 60)
    clock.advance(50)
    await store.increment("fresh", 60)
    clock.advance(20)

    assert await store.increment("fresh", 60) == (2, 40)
    assert len(store) == 1


@pytest.mark.asyncio
async def test_limiter_blocks_after_max_requests() -> None:
    limiter = RateLimiter(RULES, clock=FakeClock())

    decisions = [await limiter.hit(GENERAL, "10.0.0.1") for _ in range(4)]

    assert [decision.allowed for decision in decisions] == [True, True, True, False]
    assert [decision.remaining for decision in decisions] == [2, 1, 0, 0]
    assert decisions[-1].headers() == {
        "RateLimit-Limit": "3",
        "RateLimit-Remaining": "0",
        "RateLimit-Reset": "60",
    }


@pytest.mark.asyncio
async def test_limiter_counts_clients_and_classes_separately() -> None:
    limiter = RateLimiter(RULES, clock=FakeClock())

    assert (await limiter.hit(WRITE, "10.0.0.1")).allowed
    assert not (await limiter.hit(WRITE, "10.0.0.1")).allowed
    assert (await limiter.hit(WRITE, "10.0.0.2")).allowed
    assert (await limiter.hit(GENERAL, "10.0.0.1")).allowed


@pytest.mark.asyncio
async def test_limiter_reset_clears_counters() -> None:
    limiter = RateLimiter(RULES, clock=FakeClock())
    await limiter.hit(WRITE, "10.0.0.1")

    await limiter.reset()

    assert (await limiter.hit(WRITE, "10.0.0.1")).count == 1


@pytest.mark.asyncio
async def test_unreachable_redis_falls_back_to_memory() -> None:
    connection = RedisConnection("redis://127.0.0.1:1/0")
    limiter = RateLimiter(RULES, redis=connection, clock=FakeClock())

    first = await limiter.hit(SEARCH, "10.0.0.1")
    second = await limiter.hit(SEARCH, "10.0.0.1")

    assert (first.count, second.count) == (1, 2)
    assert connection.disabled is True
    await connection.close()


def test_unknown_rate_class_is_rejected() -> None:
    with pytest.raises(ValueError):
        rate_limit("burst")


@pytest_asyncio.fixture
async def limited_client() -> AsyncIterator[AsyncClient]:
    settings = make_settings(
        rate_limit_general_max=5,
        rate_limit_write_max=2,
        rate_limit_search_max=1,
    )
    app = create_app(settings)
    await bootstrap(app.state.context, max_attempts=1)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await app.state.context.aclose()


@pytest.mark.asyncio
async def test_write_limit_returns_429(limited_client: AsyncClient) -> None:
    for index in range(2):
        ok = await limited_client.post(
            "/api/entries", json=entry_payload(title=f"Film {index}")
        )
        assert ok.status_code == 201

    blocked = await limited_client.post(
        "/api/entries", json=entry_payload(title="Film 3")
    )

    assert blocked.status_code == 429
    assert blocked.json() == {
        "success": False,
        "message": "Too many write requests from this IP, please try again later.",
        "retryAfter": "15 minutes",
    }
    assert blocked.headers["RateLimit-Limit"] == "2"
    assert blocked.headers["RateLimit-Remaining"] == "0"
    assert int(blocked.headers["Retry-After"]) > 0


@pytest.mark.asyncio
async def test_search_limit_returns_429(limited_client: AsyncClient) -> None:
    first = await limited_client.get("/api/entries/search", params={"q": "a"})
    second = await limited_client.get("/api/entries/search", params={"q": "a"})

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["message"] == (
        "Too many search requests from this IP, please try again later."
    )
    assert second.json()["retryAfter"] == "1 minute"


@pytest.mark.asyncio
async def test_general_limit_covers_every_catalog_route(
    limited_client: AsyncClient,
) -> None:
    statuses = [
        (await limited_client.get("/api/entries/stats")).status_code for _ in range(6)
    ]

    assert statuses == [200, 200, 200, 200, 200, 429]
    blocked = await limited_client.get("/api/entries")
    assert blocked.json()["message"] == (
        "Too many requests from this IP, please try again later."
    )


@pytest.mark.asyncio
async def test_successful_responses_carry_rate_limit_headers(
    limited_client: AsyncClient,
) -> None:
    response = await limited_client.get("/api/entries")

    assert response.headers["RateLimit-Limit"] == "5"
    assert response.headers["RateLimit-Remaining"] == "4"
    assert "RateLimit-Reset" in response.headers


@pytest.mark.asyncio
async def test_health_is_not_rate_limited(limited_client: AsyncClient) -> None:
    statuses = [(await limited_client.get("/health")).status_code for _ in range(8)]

    assert set(statuses) == {200}
    assert "RateLimit-Limit" not in (await limited_client.get("/health")).headers


@pytest.mark.asyncio
async def test_rate_limiting_can_be_disabled() -> None:
    app = create_app(make_settings(rate_limit_enabled=False, rate_limit_general_max=1))
    await bootstrap(app.state.context, max_attempts=1)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        statuses = [(await client.get("/api/entries")).status_code for _ in range(3)]
    await app.state.context.aclose()

    assert statuses == [200, 200, 200]
