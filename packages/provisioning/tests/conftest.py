"""Test fixtures for provisioning.

The identity client and profile store are AsyncMocks specced on the real
classes, so a call to a method that doesn't exist fails the test. Tokens are
signed with a test secret in the same shape Supabase issues them.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from unittest.mock import AsyncMock

import jwt as pyjwt
import pytest
from youthtrack_identity_access.client import IdentityClient
from youthtrack_profile_access.store import ProfileStore
from youthtrack_shared.auth_models import Identity
from youthtrack_shared.profile_models import EnrollMemberRequest, Profile

JWT_SECRET = "super-secret-jwt-token-for-testing-only"


@pytest.fixture
def jwt_secret() -> str:
    return JWT_SECRET


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(sub: str = "identity-admin", secret: str = JWT_SECRET, **extra: object) -> str:
        payload: dict[str, object] = {
            "sub": sub,
            "email": "admin@church.com",
            "role": "authenticated",
            "aud": "authenticated",
            "exp": int(time.time()) + 3600,
            **extra,
        }
        return pyjwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def admin_profile() -> Profile:
    return Profile(
        id="p-admin",
        email="admin@church.com",
        full_name="Grace Boateng",
        role="Admin",
        access_code="4821",
        auth_user_id="identity-admin",
    )


@pytest.fixture
def identity() -> AsyncMock:
    client = AsyncMock(spec=IdentityClient)
    client.admin_create_user.return_value = Identity(
        id="identity-new", email="pere.joseph@church.com"
    )
    return client


@pytest.fixture
def profiles(admin_profile: Profile) -> AsyncMock:
    store = AsyncMock(spec=ProfileStore)

    async def create(fields: dict) -> Profile:
        return Profile(id="p-new", **fields)

    store.create.side_effect = create
    store.find_by_identity.return_value = admin_profile
    return store


@pytest.fixture
def joseph_request() -> EnrollMemberRequest:
    return EnrollMemberRequest(
        full_name="Joseph Mensah",
        gender="Male",
        email="pere.joseph@church.com",
        role="Père",
        phone="+233 20 000 0000",
        family_category="Parents",
        family_name="Mensah",
    )
