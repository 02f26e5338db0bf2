"""Access codes: the 4-digit credential members log in with.

The backend identity still needs a password, so one is derived from the code.
The derivation is the identity function: existing identities were created with
the bare code as their password, and changing it would lock every member out
until their credential is repaired.
"""

from __future__ import annotations

import secrets

from youthtrack_shared.profile_models import is_access_code

MISSING_FIELDS = "Please enter both email and access code"
BAD_CODE_FORMAT = "Access code must be exactly 4 digits"


def generate_access_code(previous: str | None = None) -> str:
    """Return a random code in 1000..9999, never equal to ``previous``."""
    while True:
        code = str(1000 + secrets.randbelow(9000))
        if code != previous:
            return code


def derive_password(access_code: str) -> str:
    return access_code


def check_login_form(email: str, access_code: str) -> str | None:
    """Validate the login form before calling the bridge. Returns an error or None."""
    if not email.strip() or not access_code:
        return MISSING_FIELDS
    if not is_access_code(access_code):
        return BAD_CODE_FORMAT
    return None
