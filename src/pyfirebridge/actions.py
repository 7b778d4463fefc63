"""Actions dispatched to the store.

Every action is an immutable pydantic model. Object and subscription actions
carry a ``scope`` tag naming the type they concern, so a reducer can route a
generic ``ObjectErrored`` to the right slice of state by comparing tags.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from pyfirebridge.exceptions import AuthError, SubscriptionError


def scope_of(target: Any) -> str:
    """Return the scope tag for a type, an instance, or an explicit tag.

    Types may override their tag with a ``__scope__`` class attribute.
    """
    if isinstance(target, str):
        return target
    cls = target if isinstance(target, type) else type(target)
    explicit = getattr(cls, "__scope__", None)
    if isinstance(explicit, str) and explicit:
        return explicit
    return cls.__qualname__


class Action(BaseModel):
    """Base for everything dispatched through a store."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ScopedAction(Action):
    """An action that only concerns the type named by ``scope``."""

    scope: str

    def is_for(self, target: Any) -> bool:
        return self.scope == scope_of(target)


# ---------------------------------------------------------------------------
# Object actions
# ---------------------------------------------------------------------------


class ObjectAdded(ScopedAction):
    """An object was added in Firebase and should be stored in the app state."""

    object: Any


class ObjectChanged(ScopedAction):
    """An object was changed in Firebase and should be modified in the app state."""

    object: Any


class ObjectRemoved(ScopedAction):
    """An object was removed in Firebase and should be removed from the app state."""

    object: Any


class ObjectErrored(ScopedAction):
    """An event for the scoped object type could not be parsed."""

    error: SubscriptionError


class ObjectSubscribed(ScopedAction):
    """The subscription flag of the scoped state type changed."""

    subscribed: bool


# ---------------------------------------------------------------------------
# User actions
# ---------------------------------------------------------------------------


class AuthenticationAction(Action):
    """Base for actions reporting a change in who is authenticated."""


class SeriousErrorAction(Action):
    """Base for failures the user should be told about."""


class AuthenticationEvent(StrEnum):
    SIGNED_UP = "signed_up"
    PASSWORD_CHANGED = "password_changed"
    EMAIL_CHANGED = "email_changed"
    PASSWORD_RESET = "password_reset"


class UserLoggedIn(AuthenticationAction):
    """The user has just logged in with email and password."""

    user_id: str


class UserIdentified(AuthenticationAction):
    """The user is already authenticated (e.g. a restored session)."""

    user_id: str


class UserLoggedOut(AuthenticationAction):
    """The user has been unauthenticated."""


class UserAuthenticationAction(AuthenticationAction):
    """A non-login authentication event completed successfully."""

    event: AuthenticationEvent


class UserAuthFailed(SeriousErrorAction):
    """An authentication operation failed."""

    error: AuthError


class ActionCreatorDispatched(Action):
    """Diagnostic marker returned by producers that dispatch on their own."""

    dispatched_in: str


S = TypeVar("S")

Dispatch = Callable[[Action], None]

ActionProducer = Callable[[S, Dispatch], Action | None]
"""A deferred computation run with ``(state, dispatch)``.

It may return one immediate action and/or dispatch further actions later.
"""
