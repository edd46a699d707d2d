"""Redis client with connection pooling, timeouts, and explicit failure reporting."""
import logging
from typing import Protocol

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import NoScriptError, RedisError

from core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# Lua script for fixed window counting (auth rate limiting)
# Atomic: increments counter and sets expiry only on first hit in the window
FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local window = tonumber(ARGV[1])

local count = redis.call('INCR', key)
if count == 1 then
    redis.call('EXPIRE', key, window)
end
local ttl = redis.call('TTL', key)

return {count, ttl}
"""


class KeyValueStore(Protocol):
    """
    The narrow key-value contract used by sessions and the profile cache.

    Implementations must make each call atomic for its key and must raise
    StoreUnavailableError (never return a fabricated value) when the backing
    store cannot answer.
    """

    async def get(self, key: str) -> bytes | None:
        """Return the raw value, or None if the key is absent or expired."""
        ...

    async def set(self, key: str, value: str | bytes, ttl: int) -> None:
        """Store a value that expires after ttl seconds, replacing any previous value."""
        ...

    async def delete(self, *keys: str) -> None:
        """Remove keys. Deleting an absent key is not an error."""
        ...


class WindowCounter(Protocol):
    """Fixed-window counter used for rate limiting."""

    async def incr_window(self, key: str, window_seconds: int) -> tuple[int, int] | None:
        """Increment a counter, returning (count, ttl) or None if unavailable."""
        ...


class RedisClient:
    """
    Async Redis client with connection pooling.

    get/set/delete raise StoreUnavailableError when Redis is disabled, not
    connected, or failing, so each caller decides its own failure policy.
    incr_window returns None instead, since rate limiting always fails open.
    """

    def __init__(
        self,
        url: str,
        enabled: bool = True,
        pool_size: int = 20,
        socket_timeout: float = 2.0,
        client: Redis | None = None,
    ) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._socket_timeout = socket_timeout
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None
        self._injected_client = client
        self._fixed_window_sha: str | None = None

    async def connect(self) -> None:
        """Initialize connection pool and load Lua scripts."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            if self._injected_client is not None:
                self._client = self._injected_client
            else:
                self._pool = ConnectionPool.from_url(
                    self._url,
                    max_connections=self._pool_size,
                    socket_timeout=self._socket_timeout,
                    socket_connect_timeout=self._socket_timeout,
                )
                self._client = Redis(connection_pool=self._pool)
            # Verify connection
            await self._client.ping()
            await self._load_scripts()
            logger.info("Redis connected successfully")
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None

    async def _load_scripts(self) -> None:
        """Load Lua scripts and store their SHAs for evalsha calls."""
        if not self._client:
            return
        try:
            self._fixed_window_sha = await self._client.script_load(FIXED_WINDOW_SCRIPT)
            logger.info("Redis Lua scripts loaded")
        except RedisError as e:
            logger.warning("Failed to load Lua scripts: %s", e)

    async def close(self) -> None:
        """Close connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    def _require_client(self, operation: str) -> Redis:
        if self._client is None:
            raise StoreUnavailableError(operation, "not connected")
        return self._client

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    async def get(self, key: str) -> bytes | None:
        """Get value. Raises StoreUnavailableError if Redis cannot answer."""
        client = self._require_client("get")
        try:
            return await client.get(key)
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            raise StoreUnavailableError("get", str(e)) from e

    async def set(self, key: str, value: str | bytes, ttl: int) -> None:
        """Set value with expiry. Raises StoreUnavailableError if Redis cannot answer."""
        client = self._require_client("set")
        try:
            await client.set(key, value, ex=ttl)
        except RedisError as e:
            logger.warning("Redis SET failed: %s", e)
            raise StoreUnavailableError("set", str(e)) from e

    async def delete(self, *keys: str) -> None:
        """Delete key(s). Raises StoreUnavailableError if Redis cannot answer."""
        client = self._require_client("delete")
        try:
            await client.delete(*keys)
        except RedisError as e:
            logger.warning("Redis DELETE failed: %s", e)
            raise StoreUnavailableError("delete", str(e)) from e

    async def incr_window(self, key: str, window_seconds: int) -> tuple[int, int] | None:
        """
        Count a hit in a fixed window, with automatic script reload.

        Handles NOSCRIPT errors by reloading scripts and retrying once.

        Returns:
            (count, ttl) or None if Redis unavailable
        """
        # SHA is None when Redis was down at startup or the reload failed;
        # fail open in both cases
        if not self._client or self._fixed_window_sha is None:
            return None

        try:
            count, ttl = await self._client.evalsha(
                self._fixed_window_sha, 1, key, window_seconds,
            )
        except NoScriptError:
            # Redis restarted, scripts need reloading
            logger.warning("redis_script_reload", extra={"script": "fixed_window"})
            await self._load_scripts()
            if self._fixed_window_sha is None:
                return None
            try:
                count, ttl = await self._client.evalsha(
                    self._fixed_window_sha, 1, key, window_seconds,
                )
            except RedisError as e:
                logger.warning("Redis fixed window retry failed: %s", e)
                return None
        except RedisError as e:
            logger.warning("Redis fixed window failed: %s", e)
            return None
        return int(count), int(ttl)


# Global Redis client state using a container to avoid global statement
class _RedisState:
    """Container for global Redis client state."""

    client: RedisClient | None = None


_state = _RedisState()


def get_redis_client() -> RedisClient | None:
    """Get the global Redis client instance."""
    return _state.client


def set_redis_client(client: RedisClient | None) -> None:
    """Set the global Redis client instance."""
    _state.client = client
