"""Custom exception hierarchy for pyfirebridge.

Two disjoint families describe failures that end up inside actions:

* :class:`SubscriptionError` for the read/decode path (``ObjectErrored``)
* :class:`AuthError` for the write/auth path (``UserAuthFailed``)

The remaining classes are raised by the REST backend and configuration
layer and never cross an action-producer boundary.
"""

from __future__ import annotations


class FirebridgeError(Exception):
    """Base exception for all pyfirebridge errors."""


class FirebridgeConfigError(FirebridgeError):
    """Invalid or missing configuration."""


class FirebridgeTransportError(FirebridgeError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FirebaseApiError(FirebridgeError):
    """The backend answered with an application-level error.

    ``code`` is the upper-case error identifier reported by Firebase
    (e.g. ``EMAIL_NOT_FOUND``, ``INVALID_PASSWORD``).
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


# ---------------------------------------------------------------------------
# Subscription errors
# ---------------------------------------------------------------------------


class SubscriptionError(FirebridgeError):
    """A single change-notification could not be turned into an object.

    The error is terminal for that event only; the listener stays registered.
    """

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"{type(self).__name__} at {path}")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return isinstance(other, SubscriptionError) and self.path == other.path

    def __hash__(self) -> int:
        return hash((type(self), self.path))


class NoDataError(SubscriptionError):
    """The snapshot for the event contained no data."""


class MalformedDataError(SubscriptionError):
    """The snapshot value is not a JSON object."""


class DecodeError(SubscriptionError):
    """The JSON object could not be decoded into the target type."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(path, f"Could not decode object at {path}: {cause}")


# ---------------------------------------------------------------------------
# Authentication errors
# ---------------------------------------------------------------------------


class AuthError(FirebridgeError):
    """Base for every failure surfaced through ``UserAuthFailed``."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return getattr(self, "cause", None) is getattr(other, "cause", None)

    def __hash__(self) -> int:
        return hash(type(self))


class _CausedAuthError(AuthError):
    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"{type(self).__name__}: {cause}")


class LogInError(_CausedAuthError):
    """The user could not log in."""


class SignUpError(_CausedAuthError):
    """The user could not sign up."""


class ChangePasswordError(_CausedAuthError):
    """The password for the user could not be changed."""


class ChangeEmailError(_CausedAuthError):
    """The email for the user could not be changed."""


class ResetPasswordError(_CausedAuthError):
    """The password reset email could not be sent."""


class LogOutError(_CausedAuthError):
    """The user could not be signed out."""


class LogInMissingUserIdError(AuthError):
    """The log-in call returned neither a user nor an error."""


class SignUpFailedLogInError(AuthError):
    """The user was signed up, but could not be logged in."""


class CurrentUserNotFoundError(AuthError):
    """No user is currently authenticated."""
