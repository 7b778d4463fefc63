"""HTTP transport for the Identity Toolkit REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyfirebridge._constants import USER_AGENT
from pyfirebridge._redact import redact_for_log, redact_url
from pyfirebridge.config import FirebridgeConfig
from pyfirebridge.exceptions import FirebaseApiError, FirebridgeTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the REST auth backend.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`IdentityToolkitTransport`) concrete.
    """

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        ...


def parse_error_code(message: str) -> str:
    """Extract the error identifier from a Firebase error message.

    Messages look like ``"EMAIL_NOT_FOUND"`` or
    ``"WEAK_PASSWORD : Password should be at least 6 characters"``.
    """
    return message.split(":", 1)[0].strip()


def raise_for_error_body(body: Any, *, status: int, endpoint: str) -> None:
    """Raise :class:`FirebaseApiError` for an ``{"error": {...}}`` response body."""
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        raise FirebridgeTransportError(
            f"HTTP {status} from {endpoint}",
            status_code=status,
            endpoint=endpoint,
        )
    message = str(error.get("message") or f"HTTP {status}")
    raise FirebaseApiError(message, code=parse_error_code(message), endpoint=endpoint)


class IdentityToolkitTransport:
    """JSON-over-HTTPS transport authenticated with the project's API key."""

    def __init__(self, config: FirebridgeConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST *payload* to ``<auth_base_url><endpoint>`` and return the JSON body.

        Raises :class:`FirebaseApiError` when the backend reports an error and
        :class:`FirebridgeTransportError` for network or decoding failures.
        """
        url = f"{self._config.auth_base_url}{endpoint}"
        headers = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("POST %s", redact_url(url))
        if self._config.api_trace_enabled:
            _logger.debug("Request body %s: %s", endpoint, redact_for_log(payload))

        try:
            async with self._http.post(
                url,
                params={"key": self._config.api_key},
                data=json.dumps(payload),
                headers=headers,
                timeout=timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise FirebridgeTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise FirebridgeTransportError(
                f"Request to {endpoint} timed out",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text) if text else {}
        except json.JSONDecodeError as exc:
            raise FirebridgeTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response %s (%s): %s", endpoint, status, redact_for_log(body))

        if status != 200:
            raise_for_error_body(body, status=status, endpoint=endpoint)

        if not isinstance(body, dict):
            raise FirebridgeTransportError(
                f"Response from {endpoint} is not a JSON object",
                status_code=status,
                endpoint=endpoint,
            )
        return body
