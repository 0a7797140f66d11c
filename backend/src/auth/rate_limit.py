"""Rate limiting for authentication endpoints.

Implements sliding window rate limiting to slow down brute force attacks.
Uses Redis so limits are shared across API instances.
"""

import hashlib
import logging
import time
from typing import Optional

from fastapi import Request
from redis import Redis
from redis.exceptions import RedisError

from config import get_settings
from errors import TooManyRequestsError

logger = logging.getLogger(__name__)


def get_redis_client() -> Optional[Redis]:
    """Get Redis client for rate limiting.

    Returns None if Redis is not available, allowing graceful degradation.
    """
    try:
        client = Redis.from_url(
            get_settings().REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=1,
        )
        client.ping()
        return client
    except RedisError as e:
        logger.warning(f"Redis unavailable, auth rate limiting disabled: {e}")
        return None


def _get_client_identifier(request: Request) -> str:
    """Extract a unique identifier for the client.

    Uses a combination of IP address and User-Agent to create a fingerprint.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"

    user_agent = request.headers.get("User-Agent", "")

    fingerprint = f"{ip}:{user_agent}"
    return hashlib.sha256(fingerprint.encode()).hexdigest()[:32]


class RateLimiter:
    """Rate limiter using Redis sliding window algorithm."""

    def __init__(self, redis: Optional[Redis] = None, max_attempts: Optional[int] = None,
                 window_seconds: Optional[int] = None):
        settings = get_settings()
        self.redis = redis
        self.max_attempts = max_attempts or settings.RATE_LIMIT_MAX_ATTEMPTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW
        self._connected = redis is not None

    def _client(self) -> Optional[Redis]:
        if not self._connected:
            self.redis = get_redis_client()
            self._connected = True
        return self.redis

    def hit(self, request: Request, endpoint: str = "auth") -> bool:
        """Record an attempt and report whether the client is over the limit.

        Returns:
            True if this attempt exceeds the allowed number in the window
        """
        redis = self._client()
        if redis is None:
            return False

        key = f"rate_limit:{endpoint}:{_get_client_identifier(request)}"
        now = time.time()

        try:
            redis.zremrangebyscore(key, 0, now - self.window_seconds)
            if redis.zcard(key) >= self.max_attempts:
                return True
            redis.zadd(key, {f"{now:.6f}": now})
            redis.expire(key, self.window_seconds)
        except RedisError as e:
            logger.warning(f"Rate limit check failed, allowing request: {e}")
            return False

        return False


# Global rate limiter instance (connects lazily on first use)
rate_limiter = RateLimiter()


def check_rate_limit(request: Request) -> None:
    """Check rate limit and raise 429 if exceeded.

    Use as a dependency in FastAPI endpoints:

        @router.post("/login")
        async def login(_: None = Depends(check_rate_limit)):
            ...
    """
    if rate_limiter.hit(request, "auth"):
        raise TooManyRequestsError(
            "Too many requests, please try again later.",
            headers={"Retry-After": str(rate_limiter.window_seconds)},
        )
