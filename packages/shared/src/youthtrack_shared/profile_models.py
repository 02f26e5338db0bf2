"""Profile boundary models: the application's own record of a person.

A Profile row lives in the ``users`` table and is distinct from the backend
identity that logs in. ``auth_user_id`` links the two and stays null until the
member's first successful login (or until provisioning creates both at once).

Request/Result pairs for provisioning follow the same pattern as the auth
models: all Results extend PlatformResult.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from youthtrack_shared.models import PlatformResult


class Role(str, Enum):
    """The fixed set of roles a member can hold."""

    ADMIN = "Admin"
    PASTOR = "Pastor"
    YOUTH_COMMITTEE = "Youth Committee"
    PERE = "Père"
    MERE = "Mère"


def is_access_code(value: str) -> bool:
    """True when ``value`` is exactly four ASCII digits."""
    return len(value) == 4 and value.isascii() and value.isdigit()


class Profile(BaseModel):
    """A row of the ``users`` table."""

    id: str
    email: str
    full_name: str
    role: str
    access_code: str
    gender: str | None = None
    phone: str | None = None
    family_category: str | None = None
    family_name: str | None = None
    profile_picture: str | None = None
    bio: str | None = None
    auth_user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ResolvedUser(BaseModel):
    """The read-only view of a Profile exposed once a session is established."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    full_name: str
    role: str
    access_code: str
    family_category: str | None = None
    family_name: str | None = None
    profile_picture: str | None = None
    bio: str | None = None

    @classmethod
    def from_profile(cls, profile: Profile) -> ResolvedUser:
        return cls(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            access_code=profile.access_code,
            family_category=profile.family_category,
            family_name=profile.family_name,
            profile_picture=profile.profile_picture,
            bio=profile.bio,
        )


class ProfileUpdate(BaseModel):
    """Partial update a signed-in member may apply to their own profile.

    Only explicitly set fields are written: use ``model_dump(exclude_unset=True)``.
    ``email``, ``full_name`` and ``access_code`` may be left out but never
    cleared; the columns are NOT NULL.
    """

    model_config = ConfigDict(extra="forbid")

    email: str | None = None
    full_name: str | None = None
    family_category: str | None = None
    family_name: str | None = None
    access_code: str | None = None
    profile_picture: str | None = None
    bio: str | None = None

    @field_validator("email", "full_name", "access_code")
    @classmethod
    def _required_column(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("cannot be cleared")
        return value

    @field_validator("access_code")
    @classmethod
    def _four_digits(cls, value: str) -> str:
        if not is_access_code(value):
            raise ValueError("Access code must be exactly 4 digits")
        return value


# ============================================================================
# Provisioning Request/Result Pairs
# ============================================================================


class EnrollMemberRequest(BaseModel):
    """Admin form for a new member. The access code is generated server-side."""

    full_name: str
    gender: str
    email: str
    role: Role
    phone: str | None = None
    family_category: str | None = None
    family_name: str | None = None
    bio: str | None = None


class EnrollMemberResult(PlatformResult):
    """On success carries the new profile and its code for out-of-band delivery."""

    access_code: str | None = None
    user: Profile | None = None
    error: str | None = None


class ReissueAccessCodeRequest(BaseModel):
    profile_id: str


class ReissueAccessCodeResult(PlatformResult):
    profile_id: str
    access_code: str | None = None
