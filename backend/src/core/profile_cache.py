"""
Read-through, write-invalidate cache of user profiles.

Coherency contract:
- Reads are best-effort. A hit may be up to TTL seconds stale relative to a
  write made by another process.
- Writes are strict. Any code path that changes a user's profile calls
  invalidate() before writing and refuses the write if that fails, then
  invalidates again once the write is committed. It never repopulates. The
  next read misses and loads the committed row, so a writer never leaves its
  own pre-write value reachable once it returns.
- The cache is never authoritative. A miss, a corrupt entry, or an
  unavailable store all degrade to loading from the database (fail open).
"""
import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from core.exceptions import StoreUnavailableError
from core.redis import KeyValueStore
from schemas.user import ProfileSource, UserProfile

logger = logging.getLogger(__name__)

# Cache schema version - included in all cache keys (e.g., "profile:v1:42")
#
# Bump this version when UserProfile fields are added, removed, or renamed.
# Old "profile:v1:..." keys are then never read and expire via TTL, which
# avoids cache invalidation during deployments.
PROFILE_SCHEMA_VERSION = 1

ProfileLoader = Callable[[int], Awaitable[UserProfile | None]]


class ProfileCache:
    """Cache of UserProfile projections keyed by user id."""

    DEFAULT_TTL = 3600  # 1 hour

    def __init__(self, store: KeyValueStore, ttl: int = DEFAULT_TTL) -> None:
        self._store = store
        self._ttl = ttl

    @staticmethod
    def _cache_key(user_id: int) -> str:
        """Generate cache key for a user's profile."""
        return f"profile:v{PROFILE_SCHEMA_VERSION}:{user_id}"

    async def read(self, user_id: int) -> UserProfile | None:
        """
        Get cached profile.

        Returns:
            UserProfile if found in cache, None on miss, corrupt entry, or
            unavailable store.
        """
        try:
            data = await self._store.get(self._cache_key(user_id))
        except StoreUnavailableError:
            logger.warning("profile_cache_unavailable", extra={"operation": "read", "user_id": user_id})
            return None
        if data is None:
            logger.debug("profile_cache_miss user_id=%s", user_id)
            return None
        try:
            profile = UserProfile.model_validate_json(data)
        except ValidationError:
            logger.warning("profile_cache_corrupt", extra={"user_id": user_id})
            return None
        logger.debug("profile_cache_hit user_id=%s", user_id)
        return profile

    async def write(self, user_id: int, profile: UserProfile, ttl: int | None = None) -> bool:
        """Cache a profile. Returns False if the store was unavailable."""
        try:
            await self._store.set(
                self._cache_key(user_id),
                profile.model_dump_json(),
                self._ttl if ttl is None else ttl,
            )
        except StoreUnavailableError:
            logger.warning("profile_cache_unavailable", extra={"operation": "write", "user_id": user_id})
            return False
        logger.debug("profile_cache_set user_id=%s", user_id)
        return True

    async def invalidate(self, user_id: int) -> bool:
        """
        Remove the cached profile regardless of its TTL.

        Retries once. Returns False if the entry could not be removed.
        """
        key = self._cache_key(user_id)
        for attempt in (1, 2):
            try:
                await self._store.delete(key)
            except StoreUnavailableError:
                logger.warning(
                    "profile_cache_unavailable",
                    extra={"operation": "invalidate", "user_id": user_id, "attempt": attempt},
                )
                continue
            logger.debug("profile_cache_invalidate user_id=%s", user_id)
            return True
        return False

    async def get_or_load(
        self,
        user_id: int,
        loader: ProfileLoader,
    ) -> tuple[UserProfile | None, ProfileSource]:
        """
        Read-through lookup.

        On a hit returns the cached profile. On a miss calls loader (the
        authoritative store) and caches what it returns. A None from the
        loader is not cached.
        """
        cached = await self.read(user_id)
        if cached is not None:
            return cached, ProfileSource.CACHE

        profile = await loader(user_id)
        if profile is not None:
            await self.write(user_id, profile)
        return profile, ProfileSource.DATABASE
