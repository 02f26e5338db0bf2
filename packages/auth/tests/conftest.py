"""Test fixtures for the access-code bridge.

Provides in-memory fakes that mirror the two boundaries the bridge talks to:

  - FakeIdentityBackend mirrors IdentityClient: accounts keyed by identity id,
    a current session, and an auth-state stream that awaits listeners just
    like the real client.
  - FakeProfileStore mirrors ProfileStore over a dict of Profile rows.

Both record calls so tests can assert what did (and did not) reach the
backend. Failures are injected per operation name.
"""

from __future__ import annotations

import itertools
from typing import Any

import pytest
from youthtrack_identity_access.client import IdentityError, Subscription
from youthtrack_profile_access.store import ProfileStoreError
from youthtrack_shared.auth_models import AuthChangeEvent, Identity, Session
from youthtrack_shared.profile_models import Profile

# ============================================================================
# FakeIdentityBackend — mirrors IdentityClient
# ============================================================================


class FakeIdentityBackend:
    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.session: Session | None = None
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, list[IdentityError]] = {}
        self._listeners: dict[int, Any] = {}
        self._ids = itertools.count(1)

    # -- helpers for tests --

    def add_account(self, identity_id: str, email: str, password: str) -> None:
        self.accounts[identity_id] = {"email": email, "password": password, "metadata": {}}

    def fail_next(self, operation: str, error: IdentityError, times: int = 1) -> None:
        self.failures.setdefault(operation, []).extend([error] * times)

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    async def _emit(self, event: AuthChangeEvent, session: Session | None) -> None:
        for callback in list(self._listeners.values()):
            await callback(event, session)

    # -- IdentityClient interface --

    def on_auth_state_change(self, callback: Any) -> Subscription:
        sub_id = next(self._ids)
        self._listeners[sub_id] = callback
        return Subscription(id=sub_id, _remove=lambda i: self._listeners.pop(i, None))

    async def get_session(self) -> Session | None:
        self._record("get_session")
        return self.session

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> Identity:
        self._record("sign_up", email, metadata)
        if any(a["email"] == email for a in self.accounts.values()):
            raise IdentityError("User already registered", 422)
        identity_id = f"identity-{next(self._ids)}"
        self.accounts[identity_id] = {
            "email": email,
            "password": password,
            "metadata": dict(metadata or {}),
        }
        return Identity(id=identity_id, email=email, user_metadata=dict(metadata or {}))

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        self._record("sign_in_with_password", email)
        for identity_id, account in self.accounts.items():
            if account["email"] == email and account["password"] == password:
                self.session = Session(
                    access_token=f"token-{next(self._ids)}",
                    refresh_token="refresh",
                    user=Identity(id=identity_id, email=email),
                )
                await self._emit(AuthChangeEvent.SIGNED_IN, self.session)
                return self.session
        raise IdentityError("Invalid login credentials", 400)

    async def sign_out(self) -> None:
        self._record("sign_out")
        self.session = None
        await self._emit(AuthChangeEvent.SIGNED_OUT, None)

    async def admin_update_password(self, identity_id: str, password: str) -> Identity:
        self._record("admin_update_password", identity_id)
        account = self.accounts.get(identity_id)
        if account is None:
            raise IdentityError("User not found", 404)
        account["password"] = password
        return Identity(id=identity_id, email=account["email"])

    async def admin_update_email(self, identity_id: str, email: str) -> Identity:
        self._record("admin_update_email", identity_id, email)
        account = self.accounts.get(identity_id)
        if account is None:
            raise IdentityError("User not found", 404)
        account["email"] = email
        return Identity(id=identity_id, email=email)

    async def emit_refresh(self) -> None:
        """Simulate the client refreshing the current session's tokens."""
        assert self.session is not None
        self.session = self.session.model_copy(update={"access_token": "refreshed"})
        await self._emit(AuthChangeEvent.TOKEN_REFRESHED, self.session)


# ============================================================================
# FakeProfileStore — mirrors ProfileStore
# ============================================================================


class FakeProfileStore:
    def __init__(self, profiles: list[Profile] | None = None) -> None:
        self.rows: dict[str, Profile] = {p.id: p for p in profiles or []}
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, Exception] = {}
        self.drop_links = False

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.failures:
            raise self.failures[operation]

    def _first(self, **criteria: Any) -> Profile | None:
        for profile in self.rows.values():
            if all(getattr(profile, k) == v for k, v in criteria.items()):
                return profile
        return None

    async def get(self, profile_id: str) -> Profile | None:
        self._record("get", profile_id)
        return self.rows.get(profile_id)

    async def find_by_identity(self, identity_id: str) -> Profile | None:
        self._record("find_by_identity", identity_id)
        return self._first(auth_user_id=identity_id)

    async def find_by_email(self, email: str) -> Profile | None:
        self._record("find_by_email", email)
        return self._first(email=email)

    async def find_by_credentials(self, email: str, access_code: str) -> Profile | None:
        self._record("find_by_credentials", email)
        return self._first(email=email, access_code=access_code)

    async def link_identity(self, profile_id: str, identity_id: str) -> None:
        self._record("link_identity", profile_id, identity_id)
        if not self.drop_links:
            self.rows[profile_id] = self.rows[profile_id].model_copy(
                update={"auth_user_id": identity_id}
            )

    async def set_access_code(self, profile_id: str, access_code: str) -> None:
        await self.update_fields(profile_id, {"access_code": access_code})

    async def update_fields(self, profile_id: str, fields: dict[str, Any]) -> None:
        self._record("update_fields", profile_id, fields)
        if profile_id in self.rows:
            self.rows[profile_id] = self.rows[profile_id].model_copy(update=fields)


# ============================================================================
# Fixtures
# ============================================================================

JOSEPH_ID = "b5f0c1c2-0000-4000-8000-000000000001"
ABENA_ID = "b5f0c1c2-0000-4000-8000-000000000002"


@pytest.fixture
def joseph() -> Profile:
    """A father who has never logged in."""
    return Profile(
        id=JOSEPH_ID,
        email="pere.joseph@church.com",
        full_name="Joseph Mensah",
        role="Père",
        access_code="3456",
        family_category="Parents",
        family_name="Mensah",
    )


@pytest.fixture
def abena() -> Profile:
    """A youth committee member whose identity already exists."""
    return Profile(
        id=ABENA_ID,
        email="abena.owusu@church.com",
        full_name="Abena Owusu",
        role="Youth Committee",
        access_code="7281",
        auth_user_id="identity-abena",
    )


@pytest.fixture
def identity() -> FakeIdentityBackend:
    return FakeIdentityBackend()


@pytest.fixture
def profiles(joseph: Profile, abena: Profile) -> FakeProfileStore:
    return FakeProfileStore([joseph, abena])


@pytest.fixture
def notices() -> list:
    return []


@pytest.fixture
def store_failure() -> ProfileStoreError:
    return ProfileStoreError(
        "Failed to update profile: value too long for type character varying(2000)"
    )
