"""Test fixtures for the GoTrue identity client.

Provides a RoutingTransport that answers requests by (method, path) with
canned GoTrue-shaped responses and records every request for assertion, and a
SessionStore backed by fakeredis so persistence runs against a real Redis API.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from fakeredis.aioredis import FakeRedis
from youthtrack_identity_access.client import IdentityClient
from youthtrack_identity_access.session_store import RedisAdapter, SessionStore

SUPABASE_URL = "http://127.0.0.1:54321"
ANON_KEY = "anon-key-for-tests"
SERVICE_KEY = "service-role-key-for-tests"


class RoutingTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport keyed by (method, path).

    A route value may be a Response (returned every time), a list of
    Responses (popped in order), or a callable taking the request.
    Unrouted requests get a 404 in GoTrue's error shape.
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None) -> None:
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"msg": "Not found"})
        if isinstance(route, list):
            return route.pop(0) if route else httpx.Response(500, json={"msg": "exhausted"})
        if callable(route):
            return route(request)
        # Fresh copy: a Response object must not be handed to httpx twice
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(RedisAdapter(FakeRedis(decode_responses=True)))


@pytest.fixture
def transport() -> RoutingTransport:
    return RoutingTransport()


@pytest.fixture
def identity_client(transport: RoutingTransport, session_store: SessionStore) -> IdentityClient:
    return IdentityClient(
        SUPABASE_URL,
        ANON_KEY,
        service_role_key=SERVICE_KEY,
        session_store=session_store,
        transport=transport,
    )
