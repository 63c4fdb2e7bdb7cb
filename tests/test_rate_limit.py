"""Tests for rate-limit counter stores and the login/registration limits."""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from app.config import settings
from app.core import redis_client
from app.core.rate_limit import InMemoryRateLimitStore, build_rate_limit_store
from app.core.redis_client import RedisRateLimitStore


async def test_memory_store_blocks_after_limit():
    store = InMemoryRateLimitStore()

    results = [await store.hit("login:1.2.3.4", limit=3, window=60) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert 0 < results[-1].retry_after <= 60


async def test_memory_store_keys_are_independent():
    store = InMemoryRateLimitStore()

    await store.hit("login:a", limit=1, window=60)

    assert not (await store.hit("login:a", limit=1, window=60)).allowed
    assert (await store.hit("login:b", limit=1, window=60)).allowed


async def test_memory_store_window_expires(monkeypatch):
    """A new window starts once the old one has elapsed."""
    store = InMemoryRateLimitStore()
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now)

    await store.hit("k", limit=1, window=10)
    assert not (await store.hit("k", limit=1, window=10)).allowed

    monkeypatch.setattr(time, "time", lambda: now + 11)
    assert (await store.hit("k", limit=1, window=10)).allowed


async def test_memory_store_reset():
    store = InMemoryRateLimitStore()
    await store.hit("k", limit=1, window=60)

    await store.reset()

    assert (await store.hit("k", limit=1, window=60)).allowed


async def test_memory_store_prunes_closed_windows(monkeypatch):
    """Keys whose window has closed are dropped instead of piling up."""
    store = InMemoryRateLimitStore(prune_interval=60)
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now)

    for ip in ("1.1.1.1", "2.2.2.2", "3.3.3.3"):
        await store.hit(f"login:{ip}", limit=5, window=10)
    await store.hit("register:4.4.4.4", limit=5, window=3600)
    assert len(store._windows) == 4

    monkeypatch.setattr(time, "time", lambda: now + 61)
    await store.hit("login:5.5.5.5", limit=5, window=10)

    assert set(store._windows) == {"register:4.4.4.4", "login:5.5.5.5"}


def redis_with_pipeline(*results) -> tuple[MagicMock, MagicMock]:
    """Async Redis double whose MULTI/EXEC returns ``results``."""
    mock_redis = MagicMock()
    pipe = mock_redis.pipeline.return_value
    pipe.execute = AsyncMock(return_value=list(results))
    return mock_redis, pipe


async def test_redis_store_counts_with_expiry():
    """The key is created with its expiry in the same transaction as the increment."""
    mock_redis, pipe = redis_with_pipeline(True, 1, 900)
    store = RedisRateLimitStore(redis_client=mock_redis)

    result = await store.hit("login:1.2.3.4", limit=5, window=900)

    assert result.allowed
    assert result.remaining == 4
    mock_redis.pipeline.assert_called_once_with(transaction=True)
    pipe.set.assert_called_once_with("ratelimit:login:1.2.3.4", 0, ex=900, nx=True)
    pipe.incr.assert_called_once_with("ratelimit:login:1.2.3.4")
    pipe.execute.assert_awaited_once()


async def test_redis_store_blocks_over_limit():
    mock_redis, _ = redis_with_pipeline(None, 6, 120)
    store = RedisRateLimitStore(redis_client=mock_redis)

    result = await store.hit("login:1.2.3.4", limit=5, window=900)

    assert not result.allowed
    assert result.remaining == 0
    assert 0 < result.retry_after <= 120


async def test_redis_store_fails_open():
    mock_redis, pipe = redis_with_pipeline()
    pipe.execute.side_effect = ConnectionError("redis down")
    store = RedisRateLimitStore(redis_client=mock_redis)

    result = await store.hit("login:1.2.3.4", limit=5, window=900)

    assert result.allowed


async def test_redis_store_yields_to_event_loop():
    """Other tasks keep running while the counter round trip is in flight."""
    mock_redis, pipe = redis_with_pipeline()
    ticks = 0

    async def slow_execute():
        await asyncio.sleep(0.3)
        return [True, 1, 900]

    async def ticker():
        nonlocal ticks
        while True:
            ticks += 1
            await asyncio.sleep(0.02)

    pipe.execute.side_effect = slow_execute
    store = RedisRateLimitStore(redis_client=mock_redis)
    task = asyncio.create_task(ticker())
    try:
        result = await store.hit("login:1.2.3.4", limit=5, window=900)
    finally:
        task.cancel()

    assert result.allowed
    assert ticks >= 5


async def test_redis_store_reset_deletes_prefixed_keys():
    mock_redis = MagicMock()
    mock_redis.keys = AsyncMock(return_value=["ratelimit:a", "ratelimit:b"])
    mock_redis.delete = AsyncMock()
    store = RedisRateLimitStore(redis_client=mock_redis)

    await store.reset()

    mock_redis.keys.assert_awaited_once_with("ratelimit:*")
    mock_redis.delete.assert_awaited_once_with("ratelimit:a", "ratelimit:b")


async def test_redis_health_check_awaits_ping(monkeypatch):
    client = MagicMock()
    client.ping = AsyncMock(side_effect=ConnectionError("redis down"))
    monkeypatch.setattr(redis_client, "_redis_client", client)

    assert await redis_client.check_redis_connection() is False

    client.ping = AsyncMock(return_value=True)
    assert await redis_client.check_redis_connection() is True


async def test_close_redis_connection_awaits_aclose(monkeypatch):
    client = MagicMock()
    client.aclose = AsyncMock()
    monkeypatch.setattr(redis_client, "_redis_client", client)

    await redis_client.close_redis_connection()

    client.aclose.assert_awaited_once()
    assert redis_client._redis_client is None


def test_build_store_rejects_unknown_backend():
    assert isinstance(build_rate_limit_store("memory"), InMemoryRateLimitStore)
    with pytest.raises(ValueError):
        build_rate_limit_store("memcached")


async def test_login_rate_limit_returns_429(client: AsyncClient, mock_db, make_result):
    """The request after the limit is spent gets 429 with Retry-After."""
    mock_db.execute.return_value = make_result()
    body = {"email": "nobody@example.com", "password": "whatever"}

    for _ in range(settings.login_rate_limit):
        response = await client.post("/api/v1/auth/login", json=body)
        assert response.status_code == 401

    response = await client.post("/api/v1/auth/login", json=body)

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
    assert response.json()["error"] == "RateLimitException"


async def test_registration_rate_limit_is_shared_between_routes(client: AsyncClient, mock_db):
    """Guest and provider registration draw from the same counter."""
    paths = ["/api/v1/auth/register-guest", "/api/v1/auth/register-provider"]

    # Rejected payloads still count against the limit
    for i in range(settings.register_rate_limit):
        response = await client.post(paths[i % 2], json={})
        assert response.status_code == 400

    response = await client.post(
        "/api/v1/auth/register-guest",
        json={"email": "g@example.com", "password": "secret1", "displayName": "G"},
    )

    assert response.status_code == 429
    mock_db.execute.assert_not_called()
