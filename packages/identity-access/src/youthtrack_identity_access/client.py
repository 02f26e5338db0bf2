"""Supabase GoTrue client for the access-code bridge and provisioning.

Talks to the `/auth/v1` REST API directly with httpx. Covers only what this
platform consumes: sign-up, password sign-in, sign-out, session lookup and
refresh, token introspection, and the admin calls that need the service role
key (set password, change email, create user, delete user).

Transport concerns stop here. Every request has a timeout and is retried with
exponential backoff when it never reached GoTrue (connect errors, pool
timeouts). Reads (GET) are also retried on any transport error; writes are not,
because a write that timed out may already have been applied and a retry would
turn that into a misleading "already registered". Callers such as the bridge
never deal with flaky networks themselves. HTTP error responses are not retried:
they become IdentityError with the backend's message and status.

Auth-state changes are published to subscribers the same way the browser SDK
does it: `on_auth_state_change(callback)` returns a Subscription, and each
SIGNED_IN / SIGNED_OUT / TOKEN_REFRESHED is awaited on every listener in
registration order.

Usage:
    from youthtrack_identity_access.client import get_client

    client = get_client()
    sub = client.on_auth_state_change(handle_change)
    session = await client.sign_in_with_password(email, password)
    sub.unsubscribe()
"""

from __future__ import annotations

import itertools
import logging
import os
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from youthtrack_shared.auth_models import AuthChangeEvent, Identity, Session

from youthtrack_identity_access.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)

AuthStateCallback = Callable[[AuthChangeEvent, Session | None], Awaitable[None]]

# Failures that happen before the request is on the wire
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class IdentityError(Exception):
    """The identity backend refused a request (or was unreachable)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass(frozen=True)
class Subscription:
    """Handle returned by on_auth_state_change."""

    id: int
    _remove: Callable[[int], None]

    def unsubscribe(self) -> None:
        self._remove(self.id)


def _is_retryable_read(exc: BaseException) -> bool:
    """Any transport failure of an idempotent request is safe to send again."""
    if not isinstance(exc, (httpx.TransportError, httpx.TimeoutException)):
        return False
    try:
        return exc.request.method in IDEMPOTENT_METHODS
    except RuntimeError:
        return False


def _error_message(response: httpx.Response) -> str:
    """Pull GoTrue's error text out of whichever field this endpoint used."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for field in ("msg", "error_description", "message", "error"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {response.status_code}"


def _to_identity(data: dict[str, Any]) -> Identity:
    return Identity(
        id=data["id"],
        email=data.get("email") or "",
        user_metadata=data.get("user_metadata") or {},
    )


def _to_session(body: dict[str, Any]) -> Session:
    expires_at = body.get("expires_at")
    if expires_at is None and body.get("expires_in"):
        expires_at = int(time.time()) + int(body["expires_in"])
    return Session(
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token") or "",
        token_type=body.get("token_type") or "bearer",
        expires_at=expires_at,
        user=_to_identity(body["user"]),
    )


class IdentityClient:
    """Async GoTrue client holding the current session for this process."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        service_role_key: str | None = None,
        session_store: SessionStore | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = url.rstrip("/") + "/auth/v1"
        self._anon_key = anon_key
        self._service_role_key = service_role_key
        self._store = session_store or get_session_store()
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._listeners: dict[int, AuthStateCallback] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"apikey": self._anon_key},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None

    @retry(
        retry=retry_if_exception_type(CONNECT_ERRORS) | retry_if_exception(_is_retryable_read),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _send(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        api_key: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token or self._anon_key}"}
        if api_key:
            headers["apikey"] = api_key
        return await self._get_http().request(method, path, headers=headers, **kwargs)

    async def _call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._send(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise IdentityError(f"Identity service unreachable: {e}") from e
        if response.is_error:
            raise IdentityError(_error_message(response), response.status_code)
        if not response.content:
            return {}
        return response.json()

    async def _admin_call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self._service_role_key:
            raise IdentityError("Admin operations require SUPABASE_SERVICE_ROLE_KEY", 403)
        return await self._call(
            method,
            path,
            token=self._service_role_key,
            api_key=self._service_role_key,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Auth-state stream
    # ------------------------------------------------------------------

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        """Register a listener; keep the returned handle to unsubscribe."""
        sub_id = next(self._ids)
        self._listeners[sub_id] = callback
        return Subscription(id=sub_id, _remove=self._remove_listener)

    def _remove_listener(self, sub_id: int) -> None:
        self._listeners.pop(sub_id, None)

    async def _emit(self, event: AuthChangeEvent, session: Session | None) -> None:
        for callback in list(self._listeners.values()):
            try:
                await callback(event, session)
            except Exception:
                logger.exception(f"Auth state listener failed on {event.value}")

    async def _set_session(self, session: Session | None, event: AuthChangeEvent) -> None:
        if session is None:
            await self._store.clear()
        else:
            await self._store.save(session)
        await self._emit(event, session)

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    async def get_session(self) -> Session | None:
        """Return the stored session, refreshing it first if it has expired."""
        session = await self._store.load()
        if session is None or not session.is_expired():
            return session

        if not session.refresh_token:
            await self._set_session(None, AuthChangeEvent.SIGNED_OUT)
            return None

        try:
            body = await self._call(
                "POST",
                "/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": session.refresh_token},
            )
        except IdentityError as e:
            logger.warning(f"Session refresh failed ({e.message}); signing out locally")
            await self._set_session(None, AuthChangeEvent.SIGNED_OUT)
            return None

        refreshed = _to_session(body)
        await self._set_session(refreshed, AuthChangeEvent.TOKEN_REFRESHED)
        return refreshed

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> Identity:
        """Create an identity. Emits SIGNED_IN when the project auto-confirms."""
        body = await self._call(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )
        user_data = body.get("user") or body
        if not user_data.get("id"):
            raise IdentityError("Sign up returned no user")
        if body.get("access_token"):
            await self._set_session(_to_session(body), AuthChangeEvent.SIGNED_IN)
        return _to_identity(user_data)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        body = await self._call(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = _to_session(body)
        await self._set_session(session, AuthChangeEvent.SIGNED_IN)
        return session

    async def sign_out(self) -> None:
        """Revoke the session remotely and always drop it locally.

        Raises IdentityError after the local sign-out when the backend refused
        the revocation for a reason other than the token already being gone.
        """
        session = await self._store.load()
        error: IdentityError | None = None
        if session is not None:
            try:
                await self._call("POST", "/logout", token=session.access_token)
            except IdentityError as e:
                if e.status not in (401, 403, 404):
                    error = e
        await self._set_session(None, AuthChangeEvent.SIGNED_OUT)
        if error is not None:
            raise error

    async def get_user(self, access_token: str) -> Identity:
        """Resolve an access token to the identity it was issued for."""
        return _to_identity(await self._call("GET", "/user", token=access_token))

    # ------------------------------------------------------------------
    # Admin operations (service role key)
    # ------------------------------------------------------------------

    async def admin_update_password(self, identity_id: str, password: str) -> Identity:
        body = await self._admin_call(
            "PUT", f"/admin/users/{identity_id}", json={"password": password}
        )
        return _to_identity(body)

    async def admin_update_email(self, identity_id: str, email: str) -> Identity:
        """Change the login email without a confirmation round trip."""
        body = await self._admin_call(
            "PUT",
            f"/admin/users/{identity_id}",
            json={"email": email, "email_confirm": True},
        )
        return _to_identity(body)

    async def admin_create_user(
        self,
        email: str,
        password: str,
        *,
        metadata: dict[str, Any] | None = None,
        email_confirm: bool = True,
    ) -> Identity:
        body = await self._admin_call(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": metadata or {},
            },
        )
        return _to_identity(body.get("user") or body)

    async def admin_delete_user(self, identity_id: str) -> None:
        await self._admin_call("DELETE", f"/admin/users/{identity_id}")


# ============================================================================
# Singleton management
# ============================================================================

_client: IdentityClient | None = None


def get_client() -> IdentityClient:
    """Return a lazily-initialized IdentityClient singleton.

    Reads SUPABASE_URL and SUPABASE_ANON_KEY (required), plus
    SUPABASE_SERVICE_ROLE_KEY for admin calls and SUPABASE_HTTP_TIMEOUT.
    """
    global _client
    if _client is not None:
        return _client

    url = os.environ.get("SUPABASE_URL", "")
    anon_key = os.environ.get("SUPABASE_ANON_KEY", "")
    if not url or not anon_key:
        raise RuntimeError(
            "SUPABASE_URL and SUPABASE_ANON_KEY environment variables must be set."
        )

    _client = IdentityClient(
        url,
        anon_key,
        service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        session_store=get_session_store(),
        timeout=float(os.environ.get("SUPABASE_HTTP_TIMEOUT", "10")),
    )
    return _client


def reset_client() -> None:
    """Reset the client singleton — used in tests to inject mocks."""
    global _client
    _client = None


def set_client(client: IdentityClient) -> None:
    """Inject a client — used in tests."""
    global _client
    _client = client
