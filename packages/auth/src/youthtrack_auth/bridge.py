"""Access-code authentication bridge.

Members log in with their email and a 4-digit access code. The identity
backend (GoTrue) only knows email + password, so the bridge reconciles the two:

  sign_in_with_access_code
    1. The (email, code) pair must match a profile row, else InvalidCredential.
       A wrong email and a wrong code are indistinguishable on purpose.
    2. The backend password is derived from the code.
    3. First login (profile not linked): create the identity, store its id on
       the profile, sign in.
    4. Returning member: sign in; if the stored password has drifted from the
       code (e.g. code reissued, out-of-band reset), force-set it once and retry.

The bridge never returns the profile. A successful sign-in makes the identity
client emit SIGNED_IN, the session observer (``_on_auth_state_change``)
resolves the profile, and the resolved user lands in the AuthContext. That
context is the only place anyone reads "who is signed in" from.

Every public operation returns an AuthResult (or nothing, for sign_out) and
never raises: unexpected exceptions are logged and reported as UNEXPECTED.
"""

from __future__ import annotations

import logging

from youthtrack_identity_access.client import IdentityClient, IdentityError, Subscription
from youthtrack_profile_access.store import ProfileStore, ProfileStoreError
from youthtrack_shared.auth_models import AuthChangeEvent, AuthErrorKind, AuthResult, Session
from youthtrack_shared.profile_models import Profile, ProfileUpdate, ResolvedUser

from youthtrack_auth.access_code import derive_password
from youthtrack_auth.notices import Notice, Notifier, log_notice
from youthtrack_auth.resolver import ProfileResolver
from youthtrack_auth.state import AuthContext

logger = logging.getLogger(__name__)


class AccessCodeBridge:
    """Owns the auth-state subscription and the sign-in/out/update operations."""

    def __init__(
        self,
        identity: IdentityClient,
        profiles: ProfileStore,
        context: AuthContext | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self._identity = identity
        self._profiles = profiles
        self._resolver = ProfileResolver(profiles)
        self.context = context or AuthContext()
        self._notify = notify or log_notice
        self._subscription: Subscription | None = None
        # Identity whose profile is currently in context.user
        self._resolved_identity_id: str | None = None

    # ------------------------------------------------------------------
    # Session observer
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to auth-state changes and pick up any persisted session."""
        if self._subscription is not None:
            return
        self.context.publish(loading=True)
        self._subscription = self._identity.on_auth_state_change(self._on_auth_state_change)

        try:
            session = await self._identity.get_session()
        except Exception:
            logger.exception("Could not read the persisted session")
            session = None

        if session is None:
            self.context.publish(session=None, loading=False)
        else:
            await self._apply_session(session)

    def stop(self) -> None:
        """Unsubscribe from the identity client. Safe to call twice."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _on_auth_state_change(
        self, event: AuthChangeEvent, session: Session | None
    ) -> None:
        logger.debug(f"Auth state change: {event.value}")
        if session is None:
            self._resolved_identity_id = None
            self.context.publish(user=None, session=None, loading=False)
            return
        await self._apply_session(session)

    async def _apply_session(self, session: Session) -> None:
        if self.context.user is not None and self._resolved_identity_id == session.user.id:
            # Same identity (token refresh, or the start-up check racing the listener)
            self.context.publish(session=session, loading=False)
            return

        self.context.publish(session=session)
        try:
            profile = await self._resolver.resolve(session.user)
        except Exception:
            logger.exception(f"Profile resolution failed for identity {session.user.id}")
            profile = None

        if profile is None:
            self._resolved_identity_id = None
            self.context.publish(user=None, loading=False)
        else:
            self._resolved_identity_id = session.user.id
            self.context.publish(user=ResolvedUser.from_profile(profile), loading=False)

    # ------------------------------------------------------------------
    # Credential bridge
    # ------------------------------------------------------------------

    async def sign_in_with_access_code(self, email: str, access_code: str) -> AuthResult:
        """Authenticate with email + access code. The code is not re-validated here."""
        self.context.publish(loading=True)
        try:
            return await self._sign_in(email, access_code)
        except Exception:
            logger.exception("Sign in error")
            return AuthResult.failure(AuthErrorKind.UNEXPECTED)
        finally:
            self.context.publish(loading=False)

    async def _sign_in(self, email: str, access_code: str) -> AuthResult:
        profile = await self._profiles.find_by_credentials(email, access_code)
        if profile is None:
            return AuthResult.failure(AuthErrorKind.INVALID_CREDENTIAL)

        password = derive_password(access_code)
        if profile.auth_user_id is None:
            failure = await self._first_login(profile, password)
        else:
            failure = await self._returning_login(profile, profile.auth_user_id, password)
        if failure is not None:
            return failure

        self._notify(
            Notice(title="Login Successful", description=f"Welcome back, {profile.full_name}!")
        )
        return AuthResult.ok(f"Signed in as {profile.full_name}")

    async def _first_login(self, profile: Profile, password: str) -> AuthResult | None:
        try:
            identity = await self._identity.sign_up(
                profile.email,
                password,
                {"full_name": profile.full_name, "role": profile.role},
            )
        except IdentityError as e:
            logger.warning(f"Identity creation failed for profile {profile.id}: {e.message}")
            return AuthResult.failure(AuthErrorKind.ACCOUNT_CREATION_FAILED)

        try:
            await self._profiles.link_identity(profile.id, identity.id)
        except ProfileStoreError as e:
            # The resolver's email fallback links it on the next resolution
            logger.error(f"Error linking identity {identity.id} to profile {profile.id}: {e}")

        try:
            await self._identity.sign_in_with_password(profile.email, password)
        except IdentityError as e:
            logger.warning(f"Sign in right after sign up failed for {profile.id}: {e.message}")
            return AuthResult.failure(AuthErrorKind.AUTHENTICATION_FAILED)
        return None

    async def _returning_login(
        self, profile: Profile, identity_id: str, password: str
    ) -> AuthResult | None:
        try:
            await self._identity.sign_in_with_password(profile.email, password)
            return None
        except IdentityError as e:
            logger.warning(
                f"Sign in failed for profile {profile.id} ({e.message}); "
                "repairing the stored credential"
            )

        try:
            await self._identity.admin_update_password(identity_id, password)
        except IdentityError as e:
            logger.error(
                f"Credential repair failed for identity {identity_id}: {e.message}"
            )
            return AuthResult.failure(AuthErrorKind.AUTH_SETUP_FAILED)

        try:
            await self._identity.sign_in_with_password(profile.email, password)
        except IdentityError as e:
            logger.error(f"Sign in after credential repair failed for {profile.id}: {e.message}")
            return AuthResult.failure(AuthErrorKind.AUTHENTICATION_FAILED)
        return None

    # ------------------------------------------------------------------
    # Sign-out and profile mutation
    # ------------------------------------------------------------------

    async def sign_out(self) -> None:
        try:
            await self._identity.sign_out()
        except IdentityError as e:
            self._notify(Notice(title="Sign Out Error", description=e.message, variant="destructive"))
            return
        self._notify(Notice(title="Signed Out", description="You have been successfully signed out."))

    async def update_profile(self, updates: ProfileUpdate) -> AuthResult:
        """Write a partial update, then merge it into the resolved user without re-reading.

        A new email goes to the linked identity before the profile row, since
        sign-in looks the profile up by email and then signs the identity in
        with that same email. If the profile write fails the identity's email
        is put back.
        """
        user = self.context.user
        if user is None:
            return AuthResult.failure(AuthErrorKind.NOT_AUTHENTICATED)

        fields = updates.model_dump(exclude_unset=True)
        if not fields:
            return AuthResult.ok("Nothing to update")

        identity_id = self._resolved_identity_id
        new_email = fields.get("email")
        moves_email = identity_id is not None and new_email is not None and new_email != user.email

        try:
            if moves_email:
                # The linked identity signs in with the profile's email: move it first
                await self._identity.admin_update_email(identity_id, new_email)
            try:
                await self._profiles.update_fields(user.id, fields)
            except Exception:
                if moves_email:
                    await self._restore_login_email(identity_id, user.email)
                raise
        except (IdentityError, ProfileStoreError) as e:
            logger.warning(f"Profile update for {user.id} not saved: {e}")
            return AuthResult.failure(AuthErrorKind.PERSISTENCE_ERROR, str(e))
        except Exception:
            logger.exception("Update profile error")
            return AuthResult.failure(AuthErrorKind.UNEXPECTED, "Failed to update profile")

        # The user may have signed out while the write was in flight
        if self.context.user is not None and self.context.user.id == user.id:
            self.context.publish(user=self.context.user.model_copy(update=fields))

        self._notify(
            Notice(title="Profile Updated", description="Your profile has been successfully updated.")
        )
        return AuthResult.ok("Profile updated")

    async def _restore_login_email(self, identity_id: str, email: str) -> None:
        try:
            await self._identity.admin_update_email(identity_id, email)
        except IdentityError as e:
            logger.error(
                f"Identity {identity_id} keeps its new email after a failed profile write: "
                f"{e.message}"
            )
