"""Request counters backing the login and registration rate limits."""

import asyncio
import time
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request."""

    allowed: bool
    remaining: int
    reset_at: int

    @property
    def retry_after(self) -> int:
        """Seconds until the current window closes."""
        return max(self.reset_at - int(time.time()), 0)


class RateLimitStore(Protocol):
    """Counter store owned by a single application instance."""

    async def hit(self, key: str, limit: int, window: int) -> RateLimitResult: ...

    async def reset(self) -> None: ...


class InMemoryRateLimitStore:
    """
    Process-local fixed-window counters.

    Counters vanish on restart and are not shared between server instances,
    so this only deters abuse against a single process. Closed windows are
    swept at most once per ``prune_interval`` seconds.
    """

    def __init__(self, prune_interval: float = 60) -> None:
        # {key: (request_count, window_start_time, window_end_time)}
        self._windows: dict[str, tuple[int, float, float]] = {}
        self._lock = asyncio.Lock()
        self._prune_interval = prune_interval
        self._next_prune = 0.0

    def _prune(self, now: float) -> None:
        expired = [key for key, (_, _, end) in self._windows.items() if end <= now]
        for key in expired:
            del self._windows[key]
        self._next_prune = now + self._prune_interval

    async def hit(self, key: str, limit: int, window: int) -> RateLimitResult:
        async with self._lock:
            now = time.time()
            if now >= self._next_prune:
                self._prune(now)

            count, window_start, _ = self._windows.get(key, (0, now, now + window))

            if now - window_start >= window:
                count = 0
                window_start = now

            reset_at = int(window_start + window)
            if count >= limit:
                return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

            count += 1
            self._windows[key] = (count, window_start, window_start + window)
            return RateLimitResult(allowed=True, remaining=limit - count, reset_at=reset_at)

    async def reset(self) -> None:
        async with self._lock:
            self._windows.clear()


def build_rate_limit_store(backend: str) -> RateLimitStore:
    """
    Create the counter store selected by configuration.

    Args:
        backend: ``memory`` or ``redis``

    Returns:
        A fresh store instance
    """
    if backend == "redis":
        from app.core.redis_client import RedisRateLimitStore, get_redis_client

        return RedisRateLimitStore(get_redis_client())
    if backend == "memory":
        return InMemoryRateLimitStore()
    raise ValueError(f"Unknown rate limit backend: {backend}")
