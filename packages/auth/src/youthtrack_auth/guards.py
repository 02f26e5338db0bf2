"""Role-based route guard for pages that need a signed-in member.

Each role has a home dashboard. A member who opens a page their role may not
see is sent to their own home instead of an error page; anyone not signed in is
sent to the login page. While the auth state is still loading no decision is
made.
"""

from __future__ import annotations

from collections.abc import Collection
from enum import Enum

from pydantic import BaseModel
from youthtrack_shared.profile_models import Role

from youthtrack_auth.state import AuthState

LOGIN_ROUTE = "/login"

ROLE_HOME_ROUTES: dict[str, str] = {
    Role.ADMIN.value: "/admin",
    Role.PASTOR.value: "/church",
    Role.YOUTH_COMMITTEE.value: "/youth",
    Role.PERE.value: "/parent",
    Role.MERE.value: "/parent",
}


class GuardOutcome(str, Enum):
    WAIT = "wait"
    ALLOW = "allow"
    REDIRECT = "redirect"


class GuardDecision(BaseModel):
    outcome: GuardOutcome
    redirect_to: str | None = None


def home_route_for(role: str) -> str:
    return ROLE_HOME_ROUTES.get(role, "/")


def guard(state: AuthState, allowed_roles: Collection[str] | None = None) -> GuardDecision:
    """Decide what a protected page should do for the current auth state."""
    if state.loading:
        return GuardDecision(outcome=GuardOutcome.WAIT)
    if state.user is None:
        return GuardDecision(outcome=GuardOutcome.REDIRECT, redirect_to=LOGIN_ROUTE)
    if allowed_roles is not None and state.user.role not in allowed_roles:
        return GuardDecision(
            outcome=GuardOutcome.REDIRECT, redirect_to=home_route_for(state.user.role)
        )
    return GuardDecision(outcome=GuardOutcome.ALLOW)
