"""Member provisioning: the privileged side of access-code authentication.

Admins enroll members (a confirmed backend identity plus a linked profile, in
one step) and reissue access codes. Both run with the service-role key, so
every HTTP caller is checked with ``authorize_admin`` first.

The identity's password is always the derived access code. Keeping the two in
step here means a member's first login goes straight through the bridge's
returning-member path without a credential repair.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from youthtrack_auth.access_code import derive_password, generate_access_code
from youthtrack_auth.jwt import bearer_token, verify_token
from youthtrack_identity_access.client import IdentityClient, IdentityError
from youthtrack_profile_access.store import ProfileStore, ProfileStoreError
from youthtrack_shared.profile_models import (
    EnrollMemberRequest,
    EnrollMemberResult,
    Profile,
    ReissueAccessCodeResult,
    Role,
)

logger = logging.getLogger(__name__)

ACCOUNT_CREATION_FAILED = "Failed to create authentication account"
PROFILE_CREATION_FAILED = "Failed to create user profile"


class AdminAccessError(Exception):
    """The caller may not use provisioning. ``status_code`` is 401 or 403."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def authorize_admin(
    authorization: str | None, profiles: ProfileStore, jwt_secret: str
) -> Profile:
    """Return the caller's profile if the bearer token belongs to an Admin."""
    if not authorization:
        raise AdminAccessError(401, "No authorization header")

    token = bearer_token(authorization)
    if token is None:
        raise AdminAccessError(401, "Authentication failed")
    try:
        caller = verify_token(token, jwt_secret)
    except pyjwt.PyJWTError as e:
        logger.warning(f"Rejected provisioning token: {e}")
        raise AdminAccessError(401, "Authentication failed") from e

    try:
        profile = await profiles.find_by_identity(caller.user_id)
    except ProfileStoreError as e:
        logger.error(f"Could not load caller profile for {caller.user_id}: {e}")
        profile = None

    if profile is None or profile.role != Role.ADMIN.value:
        raise AdminAccessError(403, "Unauthorized: Admin access required")
    return profile


async def enroll(
    request: EnrollMemberRequest, identity: IdentityClient, profiles: ProfileStore
) -> EnrollMemberResult:
    """Create a member's identity and profile. A failed profile insert removes the identity."""
    code = generate_access_code()
    role = request.role.value

    try:
        account = await identity.admin_create_user(
            request.email,
            derive_password(code),
            metadata={"full_name": request.full_name, "role": role},
            email_confirm=True,
        )
    except IdentityError as e:
        logger.warning(f"Identity creation failed for {request.email}: {e.message}")
        return EnrollMemberResult(
            success=False, message=ACCOUNT_CREATION_FAILED, error=ACCOUNT_CREATION_FAILED
        )

    fields = request.model_dump(mode="json")
    fields.update(access_code=code, auth_user_id=account.id)
    try:
        profile = await profiles.create(fields)
    except ProfileStoreError as e:
        logger.error(f"Profile insert failed for {request.email}: {e}")
        try:
            await identity.admin_delete_user(account.id)
        except IdentityError as cleanup:
            logger.error(f"Could not remove orphaned identity {account.id}: {cleanup.message}")
        return EnrollMemberResult(
            success=False, message=PROFILE_CREATION_FAILED, error=PROFILE_CREATION_FAILED
        )

    logger.info(f"Enrolled profile {profile.id} ({role})")
    return EnrollMemberResult(
        success=True,
        message="User created successfully",
        access_code=code,
        user=profile,
    )


async def reissue_access_code(
    profile_id: str, identity: IdentityClient, profiles: ProfileStore
) -> ReissueAccessCodeResult:
    """Give a member a new access code and move their identity's password along with it.

    A failed password update is only logged: the bridge repairs the credential
    the next time the member signs in with the new code.
    """
    try:
        profile = await profiles.get(profile_id)
        if profile is None:
            return ReissueAccessCodeResult(
                success=False, message=f"Profile {profile_id} not found", profile_id=profile_id
            )

        code = generate_access_code(previous=profile.access_code)
        await profiles.set_access_code(profile_id, code)
    except ProfileStoreError as e:
        logger.error(f"Access code reissue failed for {profile_id}: {e}")
        return ReissueAccessCodeResult(success=False, message=str(e), profile_id=profile_id)

    if profile.auth_user_id:
        try:
            await identity.admin_update_password(profile.auth_user_id, derive_password(code))
        except IdentityError as e:
            logger.warning(
                f"Password for identity {profile.auth_user_id} not updated ({e.message}); "
                "it will be repaired at next sign-in"
            )

    logger.info(f"Reissued access code for profile {profile_id}")
    return ReissueAccessCodeResult(
        success=True, message="Access code updated", profile_id=profile_id, access_code=code
    )
