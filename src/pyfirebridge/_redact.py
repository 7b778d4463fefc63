"""Helpers for safe debug logging.

Identity Toolkit requests carry passwords and ID tokens, and stream URLs carry
the ``auth`` token in their query string. Everything logged at DEBUG level
goes through :func:`redact_for_log` or :func:`redact_url` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"

_MAX_DEPTH = 20

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "newpassword",
        "oobcode",
        "key",
        "auth",
        "authorization",
        "cookie",
    }
)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    # idToken, refreshToken, accessToken, ...
    return lowered in _SENSITIVE_KEYS or lowered.endswith("token")


def _truncate(value: str, max_string: int) -> str:
    if len(value) <= max_string:
        return value
    return f"{value[:max_string]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with secrets replaced, suitable for debug logs.

    Mapping keys named like a credential (``password``, ``*Token``, ``key``
    ...) have their values replaced by ``"<redacted>"``. Pydantic models are
    dumped by alias first. Long strings are truncated to *max_string*.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _truncate(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)

    if isinstance(value, Mapping):
        return {
            str(k): REDACTED
            if _is_sensitive(str(k))
            else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return _truncate(repr(value), max_string)


def redact_url(url: str) -> str:
    """Drop the query string (which carries the API key or auth token)."""
    base, sep, _query = url.partition("?")
    return f"{base}?{REDACTED}" if sep else base
