"""Redis client configuration and utilities."""

import time
from typing import cast

import redis.asyncio as redis

from app.config import settings
from app.core.rate_limit import RateLimitResult

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    The client connects lazily, on its first command.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        await client.ping()
        return True
    except Exception:
        return False


async def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisRateLimitStore:
    """Fixed-window counters shared by every instance pointing at the same Redis."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "ratelimit"):
        """Initialize rate limit store with Redis client."""
        self.redis = redis_client
        self.prefix = prefix

    async def hit(self, key: str, limit: int, window: int) -> RateLimitResult:
        """
        Count one request against ``key``.

        The key is created with its expiry before it is incremented, inside a
        single MULTI/EXEC, so a counter never exists without a TTL.

        Args:
            key: Rate limit key (e.g., scope and client IP)
            limit: Maximum number of requests per window
            window: Window length in seconds

        Returns:
            Outcome of the check
        """
        redis_key = f"{self.prefix}:{key}"
        now = int(time.time())
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.set(redis_key, 0, ex=window, nx=True)
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            _, count, ttl = await pipe.execute()
        except Exception:
            # On error, allow request (fail open)
            return RateLimitResult(allowed=True, remaining=limit, reset_at=now + window)

        count, ttl = cast(int, count), cast(int, ttl)
        reset_at = now + (ttl if ttl > 0 else window)
        return RateLimitResult(
            allowed=count <= limit,
            remaining=max(limit - count, 0),
            reset_at=reset_at,
        )

    async def reset(self) -> None:
        """Drop every counter under this store's prefix."""
        keys = cast(list[str], await self.redis.keys(f"{self.prefix}:*"))
        if keys:
            await self.redis.delete(*keys)
