from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from pyfirebridge._transport import IdentityToolkitTransport, parse_error_code
from pyfirebridge.actions import (
    Action,
    AuthenticationEvent,
    UserAuthenticationAction,
    UserAuthFailed,
    UserLoggedIn,
)
from pyfirebridge.backend.rest import RestAuth, RestUser
from pyfirebridge.bridge.authentication import FirebaseAccess
from pyfirebridge.config import FirebridgeConfig
from pyfirebridge.exceptions import FirebaseApiError, FirebridgeTransportError, LogInError
from pyfirebridge.models.user import AuthUser


class _FakeTransport:
    def __init__(self, responses: dict[str, dict[str, Any] | Exception]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append((endpoint, dict(payload)))
        response = self._responses[endpoint]
        if isinstance(response, Exception):
            raise response
        return response


_SIGN_IN_OK: dict[str, Any] = {
    "localId": "u42",
    "email": "a@b.com",
    "idToken": "token-1",
    "refreshToken": "refresh-1",
}


@pytest.mark.asyncio
async def test_log_in_through_rest_backend() -> None:
    transport = _FakeTransport({"/accounts:signInWithPassword": _SIGN_IN_OK})
    auth = RestAuth(transport)
    access = FirebaseAccess(auth)
    dispatched: list[Action] = []

    assert access.log_in_user("a@b.com", "pw")(None, dispatched.append) is None
    assert dispatched == []
    await auth.drain()

    assert dispatched == [UserLoggedIn(user_id="u42")]
    assert access.get_user_id() == "u42"
    assert auth.id_token == "token-1"
    assert transport.calls == [
        (
            "/accounts:signInWithPassword",
            {"email": "a@b.com", "password": "pw", "returnSecureToken": True},
        )
    ]


@pytest.mark.asyncio
async def test_api_error_becomes_log_in_error() -> None:
    cause = FirebaseApiError("INVALID_PASSWORD", code="INVALID_PASSWORD")
    auth = RestAuth(_FakeTransport({"/accounts:signInWithPassword": cause}))
    dispatched: list[Action] = []

    FirebaseAccess(auth).log_in_user("a@b.com", "bad")(None, dispatched.append)
    await auth.drain()

    assert dispatched == [UserAuthFailed(error=LogInError(cause))]
    assert auth.current_user is None


@pytest.mark.asyncio
async def test_response_without_local_id_reports_no_user_and_no_error() -> None:
    auth = RestAuth(_FakeTransport({"/accounts:signUp": {"kind": "identitytoolkit#SignupNewUserResponse"}}))
    outcomes: list[tuple[Any, Any]] = []

    auth.create_user("a@b.com", "pw", lambda user, error: outcomes.append((user, error)))
    await auth.drain()

    assert outcomes == [(None, None)]


@pytest.mark.asyncio
async def test_sign_up_then_change_password_refreshes_token() -> None:
    transport = _FakeTransport(
        {
            "/accounts:signUp": _SIGN_IN_OK,
            "/accounts:update": {"localId": "u42", "idToken": "token-2"},
        }
    )
    auth = RestAuth(transport)
    access = FirebaseAccess(auth)
    dispatched: list[Action] = []

    access.sign_up_user("a@b.com", "pw")(None, dispatched.append)
    await auth.drain()
    access.change_user_password("new-pw")(None, dispatched.append)
    await auth.drain()

    assert dispatched == [
        UserAuthenticationAction(event=AuthenticationEvent.SIGNED_UP),
        UserLoggedIn(user_id="u42"),
        UserAuthenticationAction(event=AuthenticationEvent.PASSWORD_CHANGED),
    ]
    assert transport.calls[-1] == (
        "/accounts:update",
        {"idToken": "token-1", "returnSecureToken": True, "password": "new-pw"},
    )
    assert auth.id_token == "token-2"


@pytest.mark.asyncio
async def test_password_reset_and_sign_out() -> None:
    transport = _FakeTransport({"/accounts:sendOobCode": {"email": "a@b.com"}})
    auth = RestAuth(transport)
    user = auth.restore(AuthUser.from_api(_SIGN_IN_OK))
    assert isinstance(user, RestUser)
    errors: list[BaseException | None] = []

    auth.send_password_reset("a@b.com", errors.append)
    await auth.drain()
    auth.sign_out()

    assert errors == [None]
    assert transport.calls == [("/accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": "a@b.com"})]
    assert auth.current_user is None


# ------------------------------------------------------------------
# Identity Toolkit transport
# ------------------------------------------------------------------


class _FakePostResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakePostResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeHttp:
    def __init__(self, status: int, text: str) -> None:
        self._response = _FakePostResponse(status, text)
        self.requests: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> _FakePostResponse:
        self.requests.append({"url": url, **kwargs})
        return self._response


def test_parse_error_code() -> None:
    assert parse_error_code("EMAIL_NOT_FOUND") == "EMAIL_NOT_FOUND"
    assert parse_error_code("WEAK_PASSWORD : Password should be at least 6 characters") == "WEAK_PASSWORD"


@pytest.mark.asyncio
async def test_transport_returns_body_and_sends_api_key() -> None:
    http = _FakeHttp(200, '{"localId": "u1"}')
    transport = IdentityToolkitTransport(FirebridgeConfig(api_key="k"), http)  # type: ignore[arg-type]

    body = await transport.post_json("/accounts:signUp", {"email": "a@b.com"})

    assert body == {"localId": "u1"}
    request = http.requests[0]
    assert request["url"] == "https://identitytoolkit.googleapis.com/v1/accounts:signUp"
    assert request["params"] == {"key": "k"}


@pytest.mark.asyncio
async def test_transport_maps_error_body_to_api_error() -> None:
    http = _FakeHttp(400, '{"error": {"code": 400, "message": "EMAIL_EXISTS"}}')
    transport = IdentityToolkitTransport(FirebridgeConfig(api_key="k"), http)  # type: ignore[arg-type]

    with pytest.raises(FirebaseApiError) as exc_info:
        await transport.post_json("/accounts:signUp", {})

    assert exc_info.value.code == "EMAIL_EXISTS"
    assert exc_info.value.endpoint == "/accounts:signUp"


@pytest.mark.asyncio
async def test_transport_rejects_invalid_json() -> None:
    http = _FakeHttp(502, "<html>bad gateway</html>")
    transport = IdentityToolkitTransport(FirebridgeConfig(api_key="k"), http)  # type: ignore[arg-type]

    with pytest.raises(FirebridgeTransportError) as exc_info:
        await transport.post_json("/accounts:update", {})

    assert exc_info.value.status_code == 502


def test_log_in_without_running_loop_dispatches_failure() -> None:
    auth = RestAuth(_FakeTransport({"/accounts:signInWithPassword": _SIGN_IN_OK}))
    dispatched: list[Action] = []

    FirebaseAccess(auth).log_in_user("a@b.com", "pw")(None, dispatched.append)

    assert len(dispatched) == 1
    failed = dispatched[0]
    assert isinstance(failed, UserAuthFailed)
    assert isinstance(failed.error, LogInError)
    assert isinstance(failed.error.cause, RuntimeError)
