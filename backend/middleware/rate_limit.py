"""
Rate limiting for the GigConnect API.

Two interchangeable limiters:
    - RateLimiter:       in-memory sliding window, key map bounded (LRU)
    - RedisRateLimiter:  fixed window shared across processes (INCR + EXPIRE)

The AppContext picks the Redis limiter when REDIS_URL is set.
"""
import time
import logging
from collections import OrderedDict
from typing import Optional

from fastapi import Request

from domain.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter.

    Tracks request timestamps per key ("ip:path"). At most `max_keys` keys
    are remembered; the least recently used key is evicted first.
    Not shared across worker processes (use RedisRateLimiter for that).
    """

    def __init__(self, max_keys: int = 10_000):
        self.max_keys = max_keys
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: "OrderedDict[str, list[float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._requests)

    def _window(self, key: str, window_seconds: int, now: float) -> list[float]:
        """Return the live timestamps for `key`, dropping expired ones."""
        cutoff = now - window_seconds
        timestamps = [ts for ts in self._requests.get(key, ()) if ts > cutoff]
        self._requests[key] = timestamps
        self._requests.move_to_end(key)
        while len(self._requests) > self.max_keys:
            self._requests.popitem(last=False)
        return timestamps

    async def hit(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        """
        Record a request and check it against the limit.

        Returns:
            (allowed, remaining)
        """
        now = time.time()
        timestamps = self._window(key, window_seconds, now)
        if len(timestamps) >= max_requests:
            return False, 0
        timestamps.append(now)
        return True, max_requests - len(timestamps)


class RedisRateLimiter:
    """Fixed-window limiter on Redis, shared by every API process."""

    def __init__(self, redis, prefix: str = "ratelimit"):
        self.redis = redis
        self.prefix = prefix

    async def hit(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        window = int(time.time() // window_seconds)
        redis_key = f"{self.prefix}:{key}:{window}"
        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, window_seconds)
        if count > max_requests:
            return False, 0
        return True, max_requests - count


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(max_requests: int = 10, window_seconds: int = 60, scope: Optional[str] = None):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.post("/signup", dependencies=[Depends(rate_limit(5, 900))])

    Args:
        max_requests: Maximum requests allowed in the window
        window_seconds: Time window in seconds
        scope: Key suffix; defaults to the request path
    """
    async def _check_rate_limit(request: Request):
        limiter = request.app.state.context.rate_limiter
        client_ip = _client_ip(request)
        route_key = scope or request.url.path
        key = f"{client_ip}:{route_key}"

        allowed, remaining = await limiter.hit(key, max_requests, window_seconds)
        if not allowed:
            logger.warning(
                f"Rate limit exceeded: {client_ip} on {route_key} "
                f"({max_requests}/{window_seconds}s)"
            )
            raise RateLimitError(
                details={"limit": max_requests, "window_seconds": window_seconds},
                headers={
                    "Retry-After": str(window_seconds),
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": str(remaining),
                },
            )

    return _check_rate_limit
