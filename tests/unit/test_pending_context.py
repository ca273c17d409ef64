"""
Unit tests for pending_context.py - per-user conversation memory.

Tests coverage:
- InMemoryPendingContextStore: set/get/clear, overwrite, TTL expiry with a fake clock
- RedisPendingContextStore: key layout, SETEX with TTL, unreadable values
- get_pending_context_store() backend selection
"""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent.state.pending_context import (
    InMemoryPendingContextStore,
    PendingContext,
    RedisPendingContextStore,
    get_pending_context_store,
)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self):
        self.now = datetime(2025, 12, 8, 10, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# In-memory store
# ============================================================================


class TestInMemoryStore:
    """Test the default per-process store."""

    async def test_get_unknown_user(self, clock):
        store = InMemoryPendingContextStore(clock=clock)

        assert await store.get("nobody") is None

    async def test_set_then_get(self, clock):
        store = InMemoryPendingContextStore(clock=clock)
        await store.set("42", PendingContext("padel", "2025-12-09"))

        assert await store.get("42") == PendingContext("padel", "2025-12-09")

    async def test_set_overwrites_without_merging(self, clock):
        """A newer context with no date drops the remembered date."""
        store = InMemoryPendingContextStore(clock=clock)
        await store.set("42", PendingContext("padel", "2025-12-09"))
        await store.set("42", PendingContext("tennis-1", None))

        assert await store.get("42") == PendingContext("tennis-1", None)

    async def test_users_are_isolated(self, clock):
        store = InMemoryPendingContextStore(clock=clock)
        await store.set("42", PendingContext("padel", "2025-12-09"))

        assert await store.get("43") is None

    async def test_clear(self, clock):
        store = InMemoryPendingContextStore(clock=clock)
        await store.set("42", PendingContext("padel"))
        await store.clear("42")

        assert await store.get("42") is None
        assert len(store) == 0

    async def test_clear_unknown_user_is_noop(self, clock):
        store = InMemoryPendingContextStore(clock=clock)

        await store.clear("nobody")

    async def test_entry_valid_before_ttl(self, clock):
        store = InMemoryPendingContextStore(ttl=timedelta(minutes=30), clock=clock)
        await store.set("42", PendingContext("padel", "2025-12-09"))
        clock.advance(minutes=29)

        assert await store.get("42") is not None

    async def test_entry_expires_at_ttl(self, clock):
        store = InMemoryPendingContextStore(ttl=timedelta(minutes=30), clock=clock)
        await store.set("42", PendingContext("padel", "2025-12-09"))
        clock.advance(minutes=30)

        assert await store.get("42") is None
        assert len(store) == 0

    async def test_set_refreshes_ttl(self, clock):
        store = InMemoryPendingContextStore(ttl=timedelta(minutes=30), clock=clock)
        await store.set("42", PendingContext("padel"))
        clock.advance(minutes=20)
        await store.set("42", PendingContext("padel", "2025-12-09"))
        clock.advance(minutes=20)

        assert await store.get("42") == PendingContext("padel", "2025-12-09")

    async def test_no_ttl_never_expires(self, clock):
        store = InMemoryPendingContextStore(ttl=None, clock=clock)
        await store.set("42", PendingContext("padel"))
        clock.advance(days=365)

        assert await store.get("42") == PendingContext("padel")

    async def test_set_purges_users_who_never_returned(self, clock):
        """Expired entries of one-turn users do not pile up."""
        store = InMemoryPendingContextStore(ttl=timedelta(minutes=30), clock=clock)
        for user_id in range(1000):
            await store.set(str(user_id), PendingContext("padel", "2025-12-09"))
        clock.advance(days=1)

        await store.set("new-user", PendingContext("tennis-1"))

        assert len(store) == 1
        assert await store.get("new-user") == PendingContext("tennis-1")

    async def test_set_keeps_live_entries(self, clock):
        store = InMemoryPendingContextStore(ttl=timedelta(minutes=30), clock=clock)
        await store.set("42", PendingContext("padel"))
        clock.advance(minutes=10)

        await store.set("43", PendingContext("tennis-1"))

        assert len(store) == 2

    async def test_no_ttl_is_never_purged(self, clock):
        store = InMemoryPendingContextStore(ttl=None, clock=clock)
        await store.set("42", PendingContext("padel"))
        clock.advance(days=365)

        await store.set("43", PendingContext("tennis-1"))

        assert len(store) == 2


# ============================================================================
# Redis store
# ============================================================================


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    return client


class TestRedisStore:
    """Test the shared Redis-backed store."""

    async def test_set_uses_setex_with_ttl(self, redis_client):
        store = RedisPendingContextStore(redis_client, ttl=timedelta(minutes=30))

        await store.set("42", PendingContext("padel", "2025-12-09"))

        key, ttl_seconds, value = redis_client.setex.call_args.args
        assert key == "pending_context:42"
        assert ttl_seconds == 1800
        assert json.loads(value) == {"facility_id": "padel", "date": "2025-12-09"}

    async def test_get_decodes_value(self, redis_client):
        redis_client.get.return_value = json.dumps({"facility_id": "padel", "date": None})
        store = RedisPendingContextStore(redis_client)

        assert await store.get("42") == PendingContext("padel", None)
        redis_client.get.assert_awaited_once_with("pending_context:42")

    async def test_get_missing(self, redis_client):
        store = RedisPendingContextStore(redis_client)

        assert await store.get("42") is None

    async def test_unreadable_value_is_discarded(self, redis_client):
        redis_client.get.return_value = "{not json"
        store = RedisPendingContextStore(redis_client)

        assert await store.get("42") is None
        redis_client.delete.assert_awaited_once_with("pending_context:42")

    async def test_clear(self, redis_client):
        store = RedisPendingContextStore(redis_client)

        await store.clear("42")

        redis_client.delete.assert_awaited_once_with("pending_context:42")


# ============================================================================
# Backend selection
# ============================================================================


class TestStoreFactory:
    def setup_method(self):
        get_pending_context_store.cache_clear()

    def teardown_method(self):
        get_pending_context_store.cache_clear()

    def test_memory_backend_by_default(self):
        store = get_pending_context_store()

        assert isinstance(store, InMemoryPendingContextStore)
        assert store.ttl == timedelta(minutes=30)

    def test_redis_backend(self):
        settings = MagicMock(PENDING_CONTEXT_BACKEND="redis", PENDING_CONTEXT_TTL_MINUTES=10)
        fake_client = MagicMock()

        with patch("agent.state.pending_context.get_settings", return_value=settings), \
             patch("shared.redis_client.get_redis_client", return_value=fake_client):
            store = get_pending_context_store()

        assert isinstance(store, RedisPendingContextStore)
        assert store.client is fake_client
        assert store.ttl == timedelta(minutes=10)
