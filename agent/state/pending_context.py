"""
Pending booking context (conversation memory).

Remembers, per user, the single partially-resolved booking intent from a
previous turn ({facility_id, date}), so "book padel tomorrow" followed by
"at 5pm" completes into one booking.

Semantics:
    - one slot per user; set() overwrites, it never merges
    - cleared after a successful booking
    - entries expire after a TTL (clock injectable for tests)
    - same-user concurrent writes are last-write-wins

Two backends share the PendingContextStore protocol:
    - InMemoryPendingContextStore: per process (default)
    - RedisPendingContextStore: shared between workers (SETEX with TTL)
"""

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Protocol

from shared.config import get_settings

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "pending_context"


@dataclass(frozen=True)
class PendingContext:
    facility_id: str
    date: str | None = None


class PendingContextStore(Protocol):
    async def get(self, user_id: str) -> PendingContext | None: ...

    async def set(self, user_id: str, context: PendingContext) -> None: ...

    async def clear(self, user_id: str) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryPendingContextStore:
    """
    Process-local store. Expired entries are dropped on read, and every
    write sweeps the rest.

    Args:
        ttl: How long an entry stays valid; None disables expiry
        clock: Returns the current time (timezone-aware)
    """

    def __init__(
        self,
        ttl: timedelta | None = timedelta(minutes=30),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, tuple[PendingContext, datetime]] = {}

    async def get(self, user_id: str) -> PendingContext | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None

        context, stored_at = entry
        if self.ttl is not None and self.clock() - stored_at >= self.ttl:
            logger.debug("Pending context expired", extra={"user_id": user_id})
            self._entries.pop(user_id, None)
            return None

        return context

    async def set(self, user_id: str, context: PendingContext) -> None:
        now = self.clock()
        self._purge_expired(now)
        self._entries[user_id] = (context, now)

    async def clear(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    def _purge_expired(self, now: datetime) -> None:
        """Drop entries of users who never came back, so the map stays bounded by active users."""
        if self.ttl is None:
            return

        expired = [user_id for user_id, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl]
        for user_id in expired:
            del self._entries[user_id]
        if expired:
            logger.debug(f"Purged {len(expired)} expired pending contexts")

    def __len__(self) -> int:
        return len(self._entries)


class RedisPendingContextStore:
    """Redis-backed store: one JSON value per user at pending_context:{user_id}."""

    def __init__(self, client: Any, ttl: timedelta = timedelta(minutes=30)):
        self.client = client
        self.ttl = ttl

    @staticmethod
    def _key(user_id: str) -> str:
        return f"{REDIS_KEY_PREFIX}:{user_id}"

    async def get(self, user_id: str) -> PendingContext | None:
        raw = await self.client.get(self._key(user_id))
        if not raw:
            return None

        try:
            data = json.loads(raw)
            return PendingContext(facility_id=data["facility_id"], date=data.get("date"))
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning(f"Discarding unreadable pending context: {raw[:100]}", extra={"user_id": user_id})
            await self.client.delete(self._key(user_id))
            return None

    async def set(self, user_id: str, context: PendingContext) -> None:
        await self.client.setex(
            self._key(user_id),
            int(self.ttl.total_seconds()),
            json.dumps(asdict(context)),
        )

    async def clear(self, user_id: str) -> None:
        await self.client.delete(self._key(user_id))


@lru_cache
def get_pending_context_store() -> PendingContextStore:
    """
    Build the configured store once per process.

    PENDING_CONTEXT_BACKEND=redis selects Redis; anything else keeps the
    in-process store.
    """
    settings = get_settings()
    ttl = timedelta(minutes=settings.PENDING_CONTEXT_TTL_MINUTES)

    if settings.PENDING_CONTEXT_BACKEND.lower() == "redis":
        from shared.redis_client import get_redis_client

        logger.info("Pending context backend: redis")
        return RedisPendingContextStore(get_redis_client(), ttl=ttl)

    logger.info("Pending context backend: memory")
    return InMemoryPendingContextStore(ttl=ttl)
