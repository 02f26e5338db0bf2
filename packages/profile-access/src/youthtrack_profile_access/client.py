"""Async database engine for the profile store.

Provides a lazy-initialized SQLAlchemy async engine backed by asyncpg, connected
to Supabase's PostgreSQL via the session-mode pooler (port 5432). asyncpg uses
prepared statements, which transaction-mode pooling does not support.

Usage:
    from youthtrack_profile_access.client import get_engine

    async with get_engine().begin() as conn:
        result = await conn.execute(select(users))
"""

from __future__ import annotations

import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Return a lazily-initialized async engine singleton.

    Reads SUPABASE_DB_URL and swaps a postgres:// or postgresql:// scheme for
    postgresql+asyncpg://.
    """
    global _engine
    if _engine is not None:
        return _engine

    db_url = os.environ.get("SUPABASE_DB_URL", "")
    if not db_url:
        raise RuntimeError(
            "SUPABASE_DB_URL environment variable is not set. "
            "Set it to the Supabase direct connection string (session pooler, port 5432)."
        )

    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql+asyncpg://", 1)

    _engine = create_async_engine(
        db_url,
        pool_size=5,
        max_overflow=0,
        pool_pre_ping=True,
    )
    return _engine


def reset_engine() -> None:
    """Reset the engine singleton — used in tests to inject mocks."""
    global _engine
    _engine = None
