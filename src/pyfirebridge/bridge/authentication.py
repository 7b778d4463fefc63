"""Authentication bridge.

Every operation returns an action producer that performs a single backend
call and dispatches its outcome. Failures are wrapped in ``UserAuthFailed``;
nothing is raised back to the caller of the producer.
"""

from __future__ import annotations

import logging
from typing import Any

from pyfirebridge.actions import (
    Action,
    ActionProducer,
    AuthenticationEvent,
    Dispatch,
    UserAuthenticationAction,
    UserAuthFailed,
    UserIdentified,
    UserLoggedIn,
    UserLoggedOut,
)
from pyfirebridge.backend import AuthBackend, UserHandle
from pyfirebridge.exceptions import (
    ChangeEmailError,
    ChangePasswordError,
    CurrentUserNotFoundError,
    LogInError,
    LogInMissingUserIdError,
    LogOutError,
    ResetPasswordError,
    SignUpError,
    SignUpFailedLogInError,
)

_logger = logging.getLogger(__name__)


class FirebaseAccess:
    """Action producers for email/password authentication.

    Usage::

        access = FirebaseAccess(auth)
        store.run(access.log_in_user("ann@example.com", "secret"))
    """

    def __init__(self, auth: AuthBackend) -> None:
        self._auth = auth

    def get_user_id(self) -> str | None:
        """Return the authenticated user's id, or ``None`` if not authenticated."""
        user = self._auth.current_user
        if user is None:
            return None
        return user.uid

    def identify_user(self) -> ActionProducer[Any]:
        """Dispatch ``UserIdentified`` when a user is already authenticated."""
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            user = auth.current_user
            if user is not None:
                dispatch(UserIdentified(user_id=user.uid))
            return None

        return producer

    def log_in_user(self, email: str, password: str) -> ActionProducer[Any]:
        """Authenticate with email and password.

        Dispatches ``UserLoggedIn`` on success, otherwise ``UserAuthFailed``.
        """
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            def on_result(user: UserHandle | None, error: BaseException | None) -> None:
                if error is not None:
                    _logger.debug("Log in failed: %s", error)
                    dispatch(UserAuthFailed(error=LogInError(error)))
                elif user is not None:
                    dispatch(UserLoggedIn(user_id=user.uid))
                else:
                    dispatch(UserAuthFailed(error=LogInMissingUserIdError()))

            try:
                auth.sign_in(email, password, on_result)
            except Exception as exc:
                _logger.debug("Log in could not start: %s", exc)
                dispatch(UserAuthFailed(error=LogInError(exc)))
            return None

        return producer

    def sign_up_user(self, email: str, password: str) -> ActionProducer[Any]:
        """Create a user with email and password, then log them in.

        Dispatches ``UserAuthenticationAction(SIGNED_UP)`` followed by
        ``UserLoggedIn`` on success.
        """
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            def on_result(user: UserHandle | None, error: BaseException | None) -> None:
                if error is not None:
                    _logger.debug("Sign up failed: %s", error)
                    dispatch(UserAuthFailed(error=SignUpError(error)))
                elif user is not None:
                    dispatch(UserAuthenticationAction(event=AuthenticationEvent.SIGNED_UP))
                    dispatch(UserLoggedIn(user_id=user.uid))
                else:
                    dispatch(UserAuthFailed(error=SignUpFailedLogInError()))

            try:
                auth.create_user(email, password, on_result)
            except Exception as exc:
                _logger.debug("Sign up could not start: %s", exc)
                dispatch(UserAuthFailed(error=SignUpError(exc)))
            return None

        return producer

    def change_user_password(self, new_password: str) -> ActionProducer[Any]:
        """Change the current user's password."""
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            user = auth.current_user
            if user is None:
                dispatch(UserAuthFailed(error=CurrentUserNotFoundError()))
                return None

            def on_result(error: BaseException | None) -> None:
                if error is not None:
                    dispatch(UserAuthFailed(error=ChangePasswordError(error)))
                else:
                    dispatch(UserAuthenticationAction(event=AuthenticationEvent.PASSWORD_CHANGED))

            try:
                user.update_password(new_password, on_result)
            except Exception as exc:
                dispatch(UserAuthFailed(error=ChangePasswordError(exc)))
            return None

        return producer

    def change_user_email(self, email: str) -> ActionProducer[Any]:
        """Change the current user's email address."""
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            user = auth.current_user
            if user is None:
                dispatch(UserAuthFailed(error=CurrentUserNotFoundError()))
                return None

            def on_result(error: BaseException | None) -> None:
                if error is not None:
                    dispatch(UserAuthFailed(error=ChangeEmailError(error)))
                else:
                    dispatch(UserAuthenticationAction(event=AuthenticationEvent.EMAIL_CHANGED))

            try:
                user.update_email(email, on_result)
            except Exception as exc:
                dispatch(UserAuthFailed(error=ChangeEmailError(exc)))
            return None

        return producer

    def reset_password(self, email: str) -> ActionProducer[Any]:
        """Send the user a password reset email."""
        auth = self._auth

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            def on_result(error: BaseException | None) -> None:
                if error is not None:
                    dispatch(UserAuthFailed(error=ResetPasswordError(error)))
                else:
                    dispatch(UserAuthenticationAction(event=AuthenticationEvent.PASSWORD_RESET))

            try:
                auth.send_password_reset(email, on_result)
            except Exception as exc:
                dispatch(UserAuthFailed(error=ResetPasswordError(exc)))
            return None

        return producer

    def log_out_user(self, _state: Any, dispatch: Dispatch) -> Action | None:
        """Unauthenticate the current user and dispatch ``UserLoggedOut``.

        This is itself an action producer: pass it to ``store.run`` directly.
        """
        try:
            self._auth.sign_out()
        except Exception as exc:
            _logger.debug("Log out failed: %s", exc)
            dispatch(UserAuthFailed(error=LogOutError(exc)))
        else:
            dispatch(UserLoggedOut())
        return None
