"""Tests for the auth endpoint rate limiter."""
from core.rate_limiter import check_rate_limit
from tests.fakes import InMemoryKeyValueStore


class TestCheckRateLimit:
    """Tests for check_rate_limit function."""

    async def test__check__allows_request_under_limit(
        self, kv_store: InMemoryKeyValueStore,
    ) -> None:
        """Requests under the limit are allowed with decreasing remaining count."""
        results = [
            await check_rate_limit(kv_store, "rate:auth:test", limit=3, window_seconds=60)
            for _ in range(3)
        ]

        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]

    async def test__check__blocks_request_over_limit(
        self, kv_store: InMemoryKeyValueStore,
    ) -> None:
        """The request after the limit is refused with a retry hint."""
        for _ in range(3):
            await check_rate_limit(kv_store, "rate:auth:test", limit=3, window_seconds=60)

        result = await check_rate_limit(kv_store, "rate:auth:test", limit=3, window_seconds=60)

        assert result.allowed is False
        assert result.remaining == 0
        assert 1 <= result.retry_after <= 60

    async def test__check__window_reset(self, kv_store: InMemoryKeyValueStore) -> None:
        """A new window starts counting from zero."""
        for _ in range(4):
            await check_rate_limit(kv_store, "rate:auth:test", limit=3, window_seconds=60)

        kv_store.expire_now("rate:auth:test")
        result = await check_rate_limit(kv_store, "rate:auth:test", limit=3, window_seconds=60)

        assert result.allowed is True
        assert result.remaining == 2

    async def test__check__no_counter_fails_open(self) -> None:
        """Without Redis every request is allowed."""
        result = await check_rate_limit(None, "rate:auth:test", limit=1, window_seconds=60)

        assert result.allowed is True

    async def test__check__counter_failure_fails_open(
        self, kv_store: InMemoryKeyValueStore,
    ) -> None:
        """A counter that cannot answer allows the request."""
        kv_store.available = False

        result = await check_rate_limit(kv_store, "rate:auth:test", limit=1, window_seconds=60)

        assert result.allowed is True
