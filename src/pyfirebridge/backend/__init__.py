"""Structural interfaces for the backend collaborators.

The bridge never imports a concrete backend client. Anything that satisfies
these protocols can be subscribed to or authenticated against; the REST
implementation in :mod:`pyfirebridge.backend.rest` is one of them, test
doubles are another.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol


class ChildEvent(StrEnum):
    """Change-notification kinds a query can be observed for."""

    CHILD_ADDED = "child_added"
    CHILD_CHANGED = "child_changed"
    CHILD_REMOVED = "child_removed"


class Snapshot(Protocol):
    """One event occurrence. Only valid for the duration of the callback."""

    @property
    def key(self) -> str: ...

    @property
    def value(self) -> Any: ...

    def exists(self) -> bool: ...


SnapshotCallback = Callable[[Snapshot], None]


class Query(Protocol):
    """A location (or filtered view) that can be observed for child events."""

    def observe(self, event: ChildEvent, callback: SnapshotCallback) -> Any:
        """Register *callback* for *event* and return an opaque listener handle."""
        ...

    def remove_listener(self, handle: Any) -> None: ...

    def description(self) -> str: ...


class UserHandle(Protocol):
    """The currently authenticated user."""

    @property
    def uid(self) -> str: ...

    def update_password(self, new_password: str, callback: Callable[[BaseException | None], None]) -> None: ...

    def update_email(self, email: str, callback: Callable[[BaseException | None], None]) -> None: ...


UserCallback = Callable[[UserHandle | None, BaseException | None], None]
ErrorCallback = Callable[[BaseException | None], None]


class AuthBackend(Protocol):
    """Email/password authentication capability."""

    @property
    def current_user(self) -> UserHandle | None: ...

    def sign_in(self, email: str, password: str, callback: UserCallback) -> None: ...

    def create_user(self, email: str, password: str, callback: UserCallback) -> None: ...

    def send_password_reset(self, email: str, callback: ErrorCallback) -> None: ...

    def sign_out(self) -> None:
        """Sign out synchronously, raising on failure."""
        ...


__all__ = [
    "AuthBackend",
    "ChildEvent",
    "ErrorCallback",
    "Query",
    "Snapshot",
    "SnapshotCallback",
    "UserCallback",
    "UserHandle",
]
