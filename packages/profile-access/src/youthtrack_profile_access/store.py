"""Profile store: table-style reads and writes on ``users`` with equality filters.

Each method opens its own connection from the engine (``get_engine()`` unless
one is injected) and returns Profile models, never raw rows. Any SQLAlchemy
failure surfaces as ProfileStoreError carrying the database message, so
callers depend on this module rather than on SQLAlchemy.

Business verbs only: the bridge finds a profile by identity, by email or by
credentials, links an identity, and applies partial updates; provisioning
creates profiles and reissues access codes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from youthtrack_shared.profile_models import Profile

from youthtrack_profile_access.client import get_engine
from youthtrack_profile_access.tables import users

# Columns a caller may write through update_fields / create.
WRITABLE_COLUMNS = frozenset(c.name for c in users.columns) - {"id", "created_at", "updated_at"}


class ProfileStoreError(Exception):
    """A profile read or write failed in the database."""


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise ProfileStoreError(f"Failed to {action}: {e}") from e


def _to_profile(row: Any) -> Profile | None:
    if row is None:
        return None
    return Profile.model_validate(dict(row))


class ProfileStore:
    """Reads and writes member profiles."""

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine or get_engine()

    async def _fetch_one(self, *criteria: Any) -> Profile | None:
        async with self.engine.connect() as conn:
            result = await conn.execute(select(users).where(*criteria).limit(1))
            return _to_profile(result.mappings().fetchone())

    async def get(self, profile_id: str) -> Profile | None:
        with _store_errors("load profile"):
            return await self._fetch_one(users.c.id == profile_id)

    async def find_by_identity(self, identity_id: str) -> Profile | None:
        with _store_errors("look up profile by identity"):
            return await self._fetch_one(users.c.auth_user_id == identity_id)

    async def find_by_email(self, email: str) -> Profile | None:
        with _store_errors("look up profile by email"):
            return await self._fetch_one(users.c.email == email)

    async def find_by_credentials(self, email: str, access_code: str) -> Profile | None:
        """Exact match on both columns: a wrong email and a wrong code look the same."""
        with _store_errors("look up profile by access code"):
            return await self._fetch_one(
                users.c.email == email,
                users.c.access_code == access_code,
            )

    async def link_identity(self, profile_id: str, identity_id: str) -> None:
        await self.update_fields(profile_id, {"auth_user_id": identity_id})

    async def set_access_code(self, profile_id: str, access_code: str) -> None:
        await self.update_fields(profile_id, {"access_code": access_code})

    async def update_fields(self, profile_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update by profile id. Unknown columns are rejected."""
        unknown = set(fields) - WRITABLE_COLUMNS
        if unknown:
            raise ProfileStoreError(f"Cannot update unknown profile fields: {sorted(unknown)}")

        with _store_errors("update profile"):
            async with self.engine.begin() as conn:
                await conn.execute(
                    update(users)
                    .where(users.c.id == profile_id)
                    .values(**fields, updated_at=func.now())
                )

    async def create(self, fields: dict[str, Any]) -> Profile:
        """Insert a profile and return the stored row (server-generated id included)."""
        unknown = set(fields) - WRITABLE_COLUMNS
        if unknown:
            raise ProfileStoreError(f"Cannot create profile with unknown fields: {sorted(unknown)}")

        with _store_errors("create profile"):
            async with self.engine.begin() as conn:
                result = await conn.execute(insert(users).values(**fields).returning(users))
                row = result.mappings().fetchone()

        profile = _to_profile(row)
        if profile is None:
            raise ProfileStoreError("Failed to create profile: insert returned no row")
        return profile
