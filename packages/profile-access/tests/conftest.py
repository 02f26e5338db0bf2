"""Test fixtures for the profile store.

Provides a MockEngine/MockConnection that mimics the SQLAlchemy async engine,
recording executed statements and returning canned rows. The store takes the
engine in its constructor, so no patching is needed.
"""

from __future__ import annotations

from typing import Any

import pytest


class MockMappings:
    """Mimics result.mappings()."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = rows

    def fetchone(self) -> dict[str, Any] | None:
        return self._rows[0] if self._rows else None

    def all(self) -> list[dict[str, Any]]:
        return self._rows


class MockCursorResult:
    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self._rows = rows or []
        self.rowcount = len(self._rows)

    def mappings(self) -> MockMappings:
        return MockMappings(self._rows)


class MockConnection:
    """Mimics AsyncConnection with execute() recording."""

    def __init__(self) -> None:
        self.executed: list[Any] = []
        self._responses: list[MockCursorResult] = []
        self.error: Exception | None = None

    def queue_response(self, rows: list[dict[str, Any]]) -> None:
        self._responses.append(MockCursorResult(rows))

    async def execute(self, stmt: Any, parameters: Any = None) -> MockCursorResult:
        self.executed.append(stmt)
        if self.error is not None:
            raise self.error
        if self._responses:
            return self._responses.pop(0)
        return MockCursorResult()

    async def __aenter__(self) -> MockConnection:
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class MockEngine:
    """Mimics AsyncEngine: connect() and begin() share one MockConnection."""

    def __init__(self) -> None:
        self.conn = MockConnection()

    def connect(self) -> MockConnection:
        return self.conn

    def begin(self) -> MockConnection:
        return self.conn


@pytest.fixture
def mock_engine() -> MockEngine:
    return MockEngine()


@pytest.fixture
def joseph_row() -> dict[str, Any]:
    """A parent profile that has never logged in."""
    return {
        "id": "b5f0c1c2-0000-4000-8000-000000000001",
        "auth_user_id": None,
        "email": "pere.joseph@church.com",
        "full_name": "Joseph Mensah",
        "gender": "Male",
        "phone": "+233 20 000 0000",
        "family_category": "Parents",
        "family_name": "Mensah",
        "role": "Père",
        "access_code": "3456",
        "profile_picture": None,
        "bio": None,
        "created_at": None,
        "updated_at": None,
    }
