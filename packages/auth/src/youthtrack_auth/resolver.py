"""Find the profile that belongs to an authenticated identity.

Fast path is the stored link (``auth_user_id``). Profiles created before their
member's first login have no link yet, so the fallback matches on email and
writes the link, then reads it back by identity id to be sure the write landed.

An identity with no profile at all is an inconsistent state (someone exists in
auth but not in ``users``). It is logged and reported as None; the caller
treats that exactly like being signed out.
"""

from __future__ import annotations

import logging

from youthtrack_profile_access.store import ProfileStore
from youthtrack_shared.auth_models import Identity
from youthtrack_shared.profile_models import Profile

logger = logging.getLogger(__name__)


class ProfileResolver:
    def __init__(self, profiles: ProfileStore) -> None:
        self._profiles = profiles

    async def resolve(self, identity: Identity) -> Profile | None:
        profile = await self._profiles.find_by_identity(identity.id)
        if profile is not None:
            return profile

        by_email = await self._profiles.find_by_email(identity.email) if identity.email else None
        if by_email is None:
            logger.error(
                f"Profile resolution inconsistent: identity {identity.id} "
                f"({identity.email or 'no email'}) has no matching profile"
            )
            return None

        logger.info(f"Linking profile {by_email.id} to identity {identity.id}")
        await self._profiles.link_identity(by_email.id, identity.id)

        linked = await self._profiles.find_by_identity(identity.id)
        if linked is None:
            logger.error(
                f"Profile resolution inconsistent: link of profile {by_email.id} "
                f"to identity {identity.id} did not persist"
            )
        return linked
