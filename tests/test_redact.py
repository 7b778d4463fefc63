from __future__ import annotations

from pyfirebridge._redact import redact_for_log, redact_url
from pyfirebridge.models import AuthUser


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "email": "a@b.com",
        "password": "pw",
        "idToken": "TOKEN",
        "nested": [{"refreshToken": "REFRESH"}],
        "requestType": "PASSWORD_RESET",
    }

    redacted = redact_for_log(payload)
    assert redacted["email"] == "a@b.com"
    assert redacted["password"] == "<redacted>"
    assert redacted["idToken"] == "<redacted>"
    assert redacted["nested"][0]["refreshToken"] == "<redacted>"
    assert redacted["requestType"] == "PASSWORD_RESET"
    assert payload["password"] == "pw"


def test_redact_for_log_dumps_models_by_alias() -> None:
    user = AuthUser.from_api({"localId": "u1", "idToken": "secret"})
    redacted = redact_for_log(user)
    assert redacted["localId"] == "u1"
    assert redacted["idToken"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)
    assert redacted["value"] == "x" * 10 + "…<truncated>"


def test_redact_url_drops_query() -> None:
    url = "https://example.firebaseio.com/a.json?auth=secret"
    assert redact_url(url) == "https://example.firebaseio.com/a.json?<redacted>"
    assert redact_url("https://example.firebaseio.com/a") == "https://example.firebaseio.com/a"
