"""Supabase JWT verification for privileged endpoints.

The provisioning API checks the caller's bearer token locally with the
project's JWT secret instead of a round trip to GoTrue, then looks the caller's
role up in the profile store.
"""

from __future__ import annotations

import jwt as pyjwt
from youthtrack_shared.auth_models import AuthUser


def verify_token(token: str, jwt_secret: str) -> AuthUser:
    """Decode and validate a Supabase access token.

    Args:
        token: The raw JWT string from the Authorization header.
        jwt_secret: The Supabase JWT secret (Settings → API → JWT Secret).

    Returns:
        AuthUser with user_id (the identity id), email, role, and expiry.

    Raises:
        pyjwt.ExpiredSignatureError: Token has expired.
        pyjwt.InvalidSignatureError: Signature doesn't match the secret.
        pyjwt.InvalidAudienceError: Not a user token (e.g. the anon key).
        pyjwt.MissingRequiredClaimError: ``exp`` or ``sub`` missing.
        pyjwt.DecodeError: Malformed token.
    """
    payload = pyjwt.decode(
        token,
        jwt_secret,
        algorithms=["HS256"],
        audience="authenticated",
        options={"require": ["exp", "sub"]},
    )

    return AuthUser(
        user_id=payload["sub"],
        email=payload.get("email", ""),
        role=payload.get("role", "authenticated"),
        exp=payload["exp"],
    )


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
