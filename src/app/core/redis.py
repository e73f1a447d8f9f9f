"""Redis connection pool and fixed-window rate limiter.

Rate limit counters live in Redis under rl:{scope}:{client}:{window} keys so
every API process shares the same budget. Redis outages never block
traffic: the limiter fails open and logs a warning.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from src.app.config import get_settings

logger = structlog.get_logger(__name__)

# ── Module-level Redis pool (lazy init) ─────────────────────────────────────

_redis_pool: aioredis.Redis | None = None


def get_redis_pool() -> aioredis.Redis:
    """Get or create the Redis connection pool singleton."""
    global _redis_pool
    if _redis_pool is None:
        settings = get_settings()
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None


# ── Rate Limiter ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_in: int  # seconds until the current window ends


class FixedWindowRateLimiter:
    """Counts requests per (scope, client) in fixed time windows.

    Args:
        redis_client: Async Redis client (or compatible test double).
        window_seconds: Length of each counting window.
    """

    def __init__(self, redis_client: aioredis.Redis, window_seconds: int) -> None:
        self._redis = redis_client
        self._window = window_seconds

    def _key(self, scope: str, client_id: str, now: float) -> str:
        window_index = int(now // self._window)
        return f"rl:{scope}:{client_id}:{window_index}"

    async def hit(
        self, scope: str, client_id: str, limit: int, now: float | None = None
    ) -> RateLimitResult:
        """Record one request and report whether it fits in the budget."""
        now = time.time() if now is None else now
        key = self._key(scope, client_id, now)
        reset_in = self._window - int(now % self._window)

        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, self._window)
        except RedisError:
            logger.warning("rate_limit.redis_unavailable", scope=scope, exc_info=True)
            return RateLimitResult(allowed=True, limit=limit, remaining=limit, reset_in=reset_in)

        remaining = max(limit - int(count), 0)
        return RateLimitResult(
            allowed=int(count) <= limit,
            limit=limit,
            remaining=remaining,
            reset_in=reset_in,
        )
