"""
Fixed-window throttling for the unauthenticated auth endpoints.

Keyed by client address, since signup and login happen before any user id is
known. Fails open: when Redis is unavailable requests are allowed.
"""
import logging
from dataclasses import dataclass

from fastapi import Depends, Request

from core.config import Settings, get_settings
from core.redis import RedisClient, WindowCounter, get_redis_client

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Result of a rate limit check, with values for response headers."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class RateLimitExceededError(Exception):
    """Raised when the auth rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Too many attempts, try again later")


async def check_rate_limit(
    counter: WindowCounter | None,
    key: str,
    limit: int,
    window_seconds: int,
) -> RateLimitResult:
    """Count one attempt against key and report whether it is allowed."""
    if counter is None:
        logger.warning("redis_unavailable", extra={"operation": "rate_limit"})
        return RateLimitResult(allowed=True, limit=limit, remaining=limit, retry_after=0)

    outcome = await counter.incr_window(key, window_seconds)
    if outcome is None:
        # Redis failed mid-request - fail open
        return RateLimitResult(allowed=True, limit=limit, remaining=limit, retry_after=0)

    count, ttl = outcome
    if count <= limit:
        return RateLimitResult(
            allowed=True, limit=limit, remaining=limit - count, retry_after=0,
        )
    logger.info("auth_rate_limited", extra={"key": key, "count": count})
    return RateLimitResult(
        allowed=False, limit=limit, remaining=0, retry_after=max(ttl, 1),
    )


def get_window_counter() -> WindowCounter | None:
    """Return the counter backing rate limits. Overridden in tests."""
    client: RedisClient | None = get_redis_client()
    if client is None or not client.is_connected:
        return None
    return client


async def limit_auth_attempts(
    request: Request,
    counter: WindowCounter | None = Depends(get_window_counter),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency applied to signup and login.

    Raises:
        RateLimitExceededError: When the client exceeded its attempts for the window.
    """
    client_host = request.client.host if request.client else "unknown"
    key = f"rate:auth:{request.url.path}:{client_host}"
    result = await check_rate_limit(
        counter, key, settings.auth_rate_limit, settings.auth_rate_window,
    )
    if not result.allowed:
        raise RateLimitExceededError(result)
