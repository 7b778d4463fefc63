"""Firebase REST backend.

Implements the :mod:`pyfirebridge.backend` protocols on top of ``aiohttp``:

- :class:`RestAuth` talks to the Identity Toolkit API
- :class:`RestDatabase` / :class:`RestQuery` stream a Realtime Database
  location and deliver child events to registered listeners

All callbacks are invoked on the event loop the backend was used from.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

import aiohttp
from pydantic import ValidationError

from pyfirebridge._constants import (
    PASSWORD_RESET_REQUEST,
    SEND_OOB_CODE_ENDPOINT,
    SIGN_IN_ENDPOINT,
    SIGN_UP_ENDPOINT,
    STREAM_ACCEPT,
    STREAM_AUTH_REVOKED,
    STREAM_CANCEL,
    STREAM_KEEP_ALIVE,
    STREAM_PATCH,
    STREAM_PUT,
    UPDATE_ENDPOINT,
    USER_AGENT,
)
from pyfirebridge._redact import redact_url
from pyfirebridge._transport import Transport
from pyfirebridge.backend import ChildEvent, ErrorCallback, SnapshotCallback, UserCallback
from pyfirebridge.backend._stream import ChildCache, ChildChange, ServerSentEvent, ServerSentEventParser
from pyfirebridge.config import FirebridgeConfig
from pyfirebridge.exceptions import FirebridgeConfigError, FirebridgeError, FirebridgeTransportError
from pyfirebridge.models.user import AuthUser

_logger = logging.getLogger(__name__)


class _TaskRunner:
    """Schedules fire-and-forget coroutines and keeps them referenced."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._tasks: set[asyncio.Task[None]] = set()

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        try:
            loop = self._loop or asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled coroutine has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class RestUser:
    """The signed-in user, updated in place when its token is refreshed."""

    def __init__(self, auth: RestAuth, user: AuthUser) -> None:
        self._auth = auth
        self._user = user

    @property
    def uid(self) -> str:
        return self._user.uid

    @property
    def email(self) -> str | None:
        return self._user.email

    @property
    def id_token(self) -> str:
        return self._user.id_token

    @property
    def model(self) -> AuthUser:
        return self._user

    def update_password(self, new_password: str, callback: ErrorCallback) -> None:
        self._auth.spawn(self._update({"password": new_password}, callback))

    def update_email(self, email: str, callback: ErrorCallback) -> None:
        self._auth.spawn(self._update({"email": email}, callback))

    async def _update(self, fields: dict[str, str], callback: ErrorCallback) -> None:
        payload = {"idToken": self._user.id_token, "returnSecureToken": True, **fields}
        try:
            response = await self._auth.transport.post_json(UPDATE_ENDPOINT, payload)
        except FirebridgeError as exc:
            callback(exc)
            return

        refreshed = {**self._user.raw, **response}
        refreshed.setdefault("localId", self._user.uid)
        refreshed.setdefault("idToken", self._user.id_token)
        try:
            self._user = AuthUser.from_api(refreshed)
        except ValidationError:
            _logger.debug("Account update response could not refresh the user", exc_info=True)
        callback(None)


class RestAuth:
    """Email/password authentication against the Identity Toolkit API."""

    def __init__(self, transport: Transport, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.transport = transport
        self._runner = _TaskRunner(loop)
        self._user: RestUser | None = None

    @property
    def current_user(self) -> RestUser | None:
        return self._user

    @property
    def id_token(self) -> str | None:
        user = self._user
        return user.id_token if user is not None else None

    def restore(self, user: AuthUser) -> RestUser:
        """Adopt a previously persisted user as the current user."""
        self._user = RestUser(self, user)
        return self._user

    def sign_in(self, email: str, password: str, callback: UserCallback) -> None:
        self.spawn(self._authenticate(SIGN_IN_ENDPOINT, email, password, callback))

    def create_user(self, email: str, password: str, callback: UserCallback) -> None:
        self.spawn(self._authenticate(SIGN_UP_ENDPOINT, email, password, callback))

    def send_password_reset(self, email: str, callback: ErrorCallback) -> None:
        self.spawn(self._send_password_reset(email, callback))

    def sign_out(self) -> None:
        self._user = None

    async def drain(self) -> None:
        """Wait for in-flight operations (and their callbacks) to complete."""
        await self._runner.drain()

    def spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        self._runner.spawn(coro)

    async def _authenticate(self, endpoint: str, email: str, password: str, callback: UserCallback) -> None:
        payload = {"email": email, "password": password, "returnSecureToken": True}
        try:
            response = await self.transport.post_json(endpoint, payload)
            user = AuthUser.from_api(response) if response.get("localId") else None
        except (FirebridgeError, ValidationError) as exc:
            callback(None, exc)
            return

        if user is None:
            callback(None, None)
            return
        self._user = RestUser(self, user)
        callback(self._user, None)

    async def _send_password_reset(self, email: str, callback: ErrorCallback) -> None:
        payload = {"requestType": PASSWORD_RESET_REQUEST, "email": email}
        try:
            await self.transport.post_json(SEND_OOB_CODE_ENDPOINT, payload)
        except FirebridgeError as exc:
            callback(exc)
            return
        callback(None)


# ---------------------------------------------------------------------------
# Realtime Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RestSnapshot:
    """Snapshot delivered to child listeners."""

    key: str
    value: Any

    def exists(self) -> bool:
        return self.value is not None


class RestDatabase:
    """A Realtime Database reachable over REST.

    Parameters
    ----------
    token_provider
        Returns the ID token appended as ``auth=`` to stream requests, or
        ``None`` for unauthenticated reads.
    """

    def __init__(
        self,
        config: FirebridgeConfig,
        http_session: aiohttp.ClientSession,
        *,
        token_provider: Callable[[], str | None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if not config.database_url:
            raise FirebridgeConfigError("database_url is required for Realtime Database access")
        self.config = config
        self.http = http_session
        self._token_provider = token_provider
        self._loop = loop
        self._queries: dict[str, RestQuery] = {}

    def reference(self, path: str) -> RestQuery:
        """Return the (shared) query for *path*."""
        normalized = "/".join(segment for segment in path.split("/") if segment)
        query = self._queries.get(normalized)
        if query is None:
            query = RestQuery(self, normalized, loop=self._loop)
            self._queries[normalized] = query
        return query

    def url_for(self, path: str) -> str:
        return f"{self.config.database_url}/{path}" if path else self.config.database_url

    def auth_token(self) -> str | None:
        return self._token_provider() if self._token_provider is not None else None

    async def close(self) -> None:
        """Stop every running stream."""
        for query in list(self._queries.values()):
            await query.stop()


class RestQuery:
    """A streamed database location.

    The stream is opened when the first listener is registered and closed
    once the last one is removed.
    """

    def __init__(self, database: RestDatabase, path: str, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._database = database
        self._path = path
        self._loop = loop
        self._listeners: dict[int, tuple[ChildEvent, SnapshotCallback]] = {}
        self._handles = itertools.count(1)
        self._cache = ChildCache()
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def description(self) -> str:
        return self._database.url_for(self._path)

    def observe(self, event: ChildEvent, callback: SnapshotCallback) -> int:
        handle = next(self._handles)
        self._listeners[handle] = (event, callback)
        loop = self._loop or asyncio.get_running_loop()

        if event == ChildEvent.CHILD_ADDED and len(self._cache):
            # Late listeners still see every existing child once.
            for key, value in self._cache.items():
                loop.call_soon(self._invoke, handle, RestSnapshot(key=key, value=value))

        if not self.is_running:
            self._cancelled = False
            self._task = loop.create_task(self._run())
            _logger.debug("Stream started for %s", redact_url(self.description()))
        return handle

    def remove_listener(self, handle: Any) -> None:
        self._listeners.pop(handle, None)
        if not self._listeners and self._task is not None:
            self._task.cancel()
            self._task = None
            self._cache.clear()
            _logger.debug("Stream stopped for %s", redact_url(self.description()))

    async def stop(self) -> None:
        task = self._task
        self._task = None
        self._listeners.clear()
        self._cache.clear()
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def handle_event(self, sse: ServerSentEvent) -> bool:
        """Apply one stream event; return ``False`` when the stream must end."""
        if sse.event == STREAM_KEEP_ALIVE:
            return True
        if sse.event == STREAM_CANCEL:
            _logger.warning("Stream for %s cancelled by the server: %s", redact_url(self.description()), sse.data)
            self._cancelled = True
            return False
        if sse.event == STREAM_AUTH_REVOKED:
            _logger.warning("Stream credentials for %s expired", redact_url(self.description()))
            return False
        if sse.event not in (STREAM_PUT, STREAM_PATCH):
            _logger.debug("Ignoring stream event %s", sse.event)
            return True

        try:
            body = json.loads(sse.data)
        except json.JSONDecodeError:
            _logger.debug("Stream event %s carried invalid JSON", sse.event, exc_info=True)
            return True
        if not isinstance(body, dict):
            return True

        path = str(body.get("path") or "/")
        data = body.get("data")
        if sse.event == STREAM_PUT:
            changes = self._cache.apply_put(path, data)
        else:
            changes = self._cache.apply_patch(path, data)
        for change in changes:
            self._deliver(change)
        return True

    def _deliver(self, change: ChildChange) -> None:
        snapshot = RestSnapshot(key=change.key, value=change.value)
        for handle, (event, _callback) in list(self._listeners.items()):
            if event == change.event:
                self._invoke(handle, snapshot)

    def _invoke(self, handle: int, snapshot: RestSnapshot) -> None:
        listener = self._listeners.get(handle)
        if listener is None:
            return
        try:
            listener[1](snapshot)
        except Exception:
            _logger.exception("Child listener failed for %s", redact_url(self.description()))

    async def _run(self) -> None:
        config = self._database.config
        while True:
            try:
                await self._consume()
            except FirebridgeTransportError:
                _logger.debug("Stream failed for %s", redact_url(self.description()), exc_info=True)
            except aiohttp.ClientError:
                _logger.debug("Stream connection lost for %s", redact_url(self.description()), exc_info=True)

            if self._cancelled or not config.stream_reconnect:
                return
            await asyncio.sleep(config.stream_reconnect_delay)

    async def _consume(self) -> None:
        params: dict[str, str] = {}
        token = self._database.auth_token()
        if token:
            params["auth"] = token

        url = f"{self.description()}.json"
        headers = {"accept": STREAM_ACCEPT, "user-agent": USER_AGENT}
        async with self._database.http.get(url, params=params, headers=headers) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise FirebridgeTransportError(
                    f"HTTP {resp.status} opening stream: {text[:200]}",
                    status_code=resp.status,
                    endpoint=self._path,
                )
            parser = ServerSentEventParser()
            async for raw_line in resp.content:
                sse = parser.feed_line(raw_line.decode("utf-8", errors="replace"))
                if sse is not None and not self.handle_event(sse):
                    return
