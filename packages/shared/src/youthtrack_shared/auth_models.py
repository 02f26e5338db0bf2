"""Auth domain models: shared by the access-code bridge, the identity client
and the provisioning service.

Identity and Session mirror what Supabase's GoTrue returns. The bridge treats
both as opaque: it reads ``Identity.id``/``Identity.email`` and passes the
Session around without looking inside it.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel

from youthtrack_shared.models import PlatformResult


class AuthUser(BaseModel):
    """Decoded Supabase JWT claims."""

    user_id: str
    email: str
    role: str = "authenticated"
    exp: int


class Identity(BaseModel):
    """A backend identity (GoTrue user). Owned by the backend, referenced by id."""

    id: str
    email: str = ""
    user_metadata: dict[str, Any] = {}


class Session(BaseModel):
    """Token bundle issued by the backend for the current identity."""

    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_at: int | None = None  # epoch seconds
    user: Identity

    def is_expired(self, now: float | None = None, margin: int = 10) -> bool:
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return self.expires_at - margin <= current


class AuthChangeEvent(str, Enum):
    """Events emitted on the identity client's auth-state stream."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class AuthErrorKind(str, Enum):
    """Why an auth operation failed."""

    INVALID_CREDENTIAL = "invalid_credential"
    ACCOUNT_CREATION_FAILED = "account_creation_failed"
    AUTHENTICATION_FAILED = "authentication_failed"
    AUTH_SETUP_FAILED = "auth_setup_failed"
    NOT_AUTHENTICATED = "not_authenticated"
    PERSISTENCE_ERROR = "persistence_error"
    UNEXPECTED = "unexpected"


# What the login screen shows for each failure. PERSISTENCE_ERROR carries
# the backend's own message instead.
ERROR_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.INVALID_CREDENTIAL: "Invalid email or access code",
    AuthErrorKind.ACCOUNT_CREATION_FAILED: "Failed to create authentication account",
    AuthErrorKind.AUTHENTICATION_FAILED: "Authentication failed",
    AuthErrorKind.AUTH_SETUP_FAILED: "Authentication setup failed",
    AuthErrorKind.NOT_AUTHENTICATED: "Not authenticated",
    AuthErrorKind.PERSISTENCE_ERROR: "Failed to save changes",
    AuthErrorKind.UNEXPECTED: "An unexpected error occurred",
}


class AuthResult(PlatformResult):
    """Outcome of sign-in or profile update: ``error`` is set only on failure."""

    error_kind: AuthErrorKind | None = None

    @property
    def error(self) -> str | None:
        return None if self.success else self.message

    @classmethod
    def ok(cls, message: str) -> AuthResult:
        return cls(success=True, message=message)

    @classmethod
    def failure(cls, kind: AuthErrorKind, message: str | None = None) -> AuthResult:
        return cls(success=False, message=message or ERROR_MESSAGES[kind], error_kind=kind)
