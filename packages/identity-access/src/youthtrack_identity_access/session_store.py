"""Session persistence for the identity client.

The browser SDK keeps the session in localStorage so a reload picks it up
again. Here the same job is done by Redis: Upstash SDK in the cloud, fakeredis
for local dev, wrapped by a small adapter so the store never touches raw
clients.

Environment detection:
  - UPSTASH_REDIS_REST_URL set → Upstash SDK (staging/prod)
  - Otherwise → fakeredis (local dev, no cloud dependency)

Usage:
    from youthtrack_identity_access.session_store import get_session_store

    store = get_session_store()
    await store.save(session)
    session = await store.load()
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import ValidationError
from youthtrack_shared.auth_models import Session

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "youthtrack:auth:session"


class RedisAdapter:
    """The three string operations the session store needs, over either client."""

    def __init__(self, raw_client: Any) -> None:
        self._client = raw_client

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)


class SessionStore:
    """Keeps at most one serialized Session under a fixed key."""

    def __init__(self, adapter: RedisAdapter, key: str = DEFAULT_SESSION_KEY) -> None:
        self._redis = adapter
        self._key = key

    async def load(self) -> Session | None:
        raw = await self._redis.get(self._key)
        if not raw:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding unreadable session stored under '{self._key}'")
            await self._redis.delete(self._key)
            return None

    async def save(self, session: Session) -> None:
        await self._redis.set(self._key, session.model_dump_json())

    async def clear(self) -> None:
        await self._redis.delete(self._key)


# ============================================================================
# Singleton management
# ============================================================================

_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Return a lazily-initialized SessionStore singleton."""
    global _store
    if _store is not None:
        return _store

    if os.environ.get("UPSTASH_REDIS_REST_URL"):
        from upstash_redis.asyncio import Redis

        raw = Redis.from_env()
    else:
        from fakeredis.aioredis import FakeRedis

        raw = FakeRedis(decode_responses=True)

    _store = SessionStore(RedisAdapter(raw))
    return _store


def reset_session_store() -> None:
    """Reset the store singleton — used in tests."""
    global _store
    _store = None
