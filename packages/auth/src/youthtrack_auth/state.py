"""The process-wide auth state slot and its observer interface.

One AuthContext per application, created at start-up and handed to whatever
renders screens. Only the bridge writes to it; everyone else reads immutable
AuthState snapshots or subscribes to be told when a new one is published.

``loading`` starts True and means "don't know yet": it turns False once the
first session check or profile resolution has finished, whatever the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict
from youthtrack_shared.auth_models import Session
from youthtrack_shared.profile_models import ResolvedUser

logger = logging.getLogger(__name__)

StateListener = Callable[["AuthState"], None]


class AuthState(BaseModel):
    """Immutable snapshot of who is signed in."""

    model_config = ConfigDict(frozen=True)

    user: ResolvedUser | None = None
    session: Session | None = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class AuthContext:
    """Holds the current AuthState and notifies subscribers on change."""

    def __init__(self) -> None:
        self._state = AuthState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> ResolvedUser | None:
        return self._state.user

    @property
    def session(self) -> Session | None:
        return self._state.session

    @property
    def loading(self) -> bool:
        return self._state.loading

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, **changes: Any) -> AuthState:
        """Replace fields of the current state; listeners only hear about real changes."""
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return self._state
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Auth state subscriber failed")
        return new_state
