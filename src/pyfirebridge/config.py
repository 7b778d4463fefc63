"""Client configuration for pyfirebridge."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfirebridge._constants import AUTH_BASE_URL, ID_KEY
from pyfirebridge.exceptions import FirebridgeConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FirebridgeConfig:
    """Client configuration.

    Parameters
    ----------
    api_key : str
        Web API key of the Firebase project. Required for authentication.
    database_url : str
        Realtime Database URL (e.g. ``"https://my-app.firebaseio.com"``).
    auth_base_url : str
        Identity Toolkit base URL. Override to point at the auth emulator.
    id_key : str
        Field under which a snapshot's key is injected before decoding.
    request_timeout : float
        Total timeout in seconds for a single authentication request.
    stream_reconnect : bool
        Reopen a Realtime Database stream after the server closes it.
    stream_reconnect_delay : float
        Seconds to wait before reopening a closed stream.
    api_trace_enabled : bool
        Log redacted request and response bodies at DEBUG level.
    """

    api_key: str
    database_url: str = ""
    auth_base_url: str = AUTH_BASE_URL
    id_key: str = ID_KEY
    request_timeout: float = 30.0
    stream_reconnect: bool = True
    stream_reconnect_delay: float = 2.0
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.api_key:
            raise FirebridgeConfigError("api_key must be non-empty")
        if not self.id_key:
            raise FirebridgeConfigError("id_key must be non-empty")
        if self.database_url:
            object.__setattr__(self, "database_url", self.database_url.rstrip("/"))
        object.__setattr__(self, "auth_base_url", self.auth_base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> FirebridgeConfig:
        """Create configuration from environment variables.

        Reads ``FIREBRIDGE_API_KEY``, ``FIREBRIDGE_DATABASE_URL`` and the
        optional ``FIREBRIDGE_*`` variables below. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FIREBRIDGE_API_KEY": "api_key",
            "FIREBRIDGE_DATABASE_URL": "database_url",
            "FIREBRIDGE_AUTH_BASE_URL": "auth_base_url",
            "FIREBRIDGE_ID_KEY": "id_key",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("FIREBRIDGE_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        delay_env = env.get("FIREBRIDGE_STREAM_RECONNECT_DELAY")
        if delay_env is not None and "stream_reconnect_delay" not in overrides:
            config_kwargs["stream_reconnect_delay"] = float(delay_env)

        if "stream_reconnect" not in overrides:
            config_kwargs["stream_reconnect"] = _env_bool(env.get("FIREBRIDGE_STREAM_RECONNECT"), True)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("FIREBRIDGE_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)
        if "api_key" not in config_kwargs:
            raise FirebridgeConfigError("FIREBRIDGE_API_KEY is not set")

        return cls(**config_kwargs)
