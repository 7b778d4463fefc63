"""High-level async client wiring the REST backend to the bridges."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from pyfirebridge._transport import IdentityToolkitTransport
from pyfirebridge.backend.rest import RestAuth, RestDatabase, RestQuery
from pyfirebridge.bridge.authentication import FirebaseAccess
from pyfirebridge.bridge.decode import Decoder
from pyfirebridge.bridge.subscribing import ObjectSubscriptions
from pyfirebridge.config import FirebridgeConfig
from pyfirebridge.exceptions import FirebridgeError

_logger = logging.getLogger(__name__)


class FirebridgeClient:
    """Async client owning the HTTP session and REST backend.

    Usage::

        async with FirebridgeClient(config) as client:
            store.run(client.access.log_in_user("ann@example.com", "secret"))
            people = client.subscriptions(Person)
            store.run(people.subscribe(client.reference("people"), store.state["people"]))
    """

    def __init__(
        self,
        config: FirebridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._auth: RestAuth | None = None
        self._database: RestDatabase | None = None
        self._access: FirebaseAccess | None = None
        self._subscriptions: dict[Any, ObjectSubscriptions] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FirebridgeClient:
        loop = asyncio.get_running_loop()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        transport = IdentityToolkitTransport(self._config, self._http_session)
        self._auth = RestAuth(transport, loop=loop)
        self._access = FirebaseAccess(self._auth)
        if self._config.database_url:
            auth = self._auth
            self._database = RestDatabase(
                self._config,
                self._http_session,
                token_provider=lambda: auth.id_token,
                loop=loop,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._auth is not None:
            await self._auth.drain()
        if self._database is not None:
            await self._database.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._auth = None
        self._database = None
        self._access = None
        self._subscriptions.clear()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def auth(self) -> RestAuth:
        if self._auth is None:
            raise FirebridgeError("Client not initialized. Use 'async with FirebridgeClient(...) as client:'")
        return self._auth

    @property
    def access(self) -> FirebaseAccess:
        if self._access is None:
            raise FirebridgeError("Client not initialized. Use 'async with FirebridgeClient(...) as client:'")
        return self._access

    @property
    def database(self) -> RestDatabase:
        if self._database is None:
            raise FirebridgeError("No database available (set config.database_url and enter the client)")
        return self._database

    def reference(self, path: str) -> RestQuery:
        """Return the streamed query for a database path."""
        return self.database.reference(path)

    def subscriptions(self, object_type: type, *, decoder: Decoder | None = None) -> ObjectSubscriptions:
        """Return the subscription bridge for *object_type*.

        The same instance is returned for repeated calls so teardown can find
        the listeners registered earlier.
        """
        bridge = self._subscriptions.get(object_type)
        if bridge is None:
            bridge = ObjectSubscriptions(object_type, decoder=decoder, id_key=self._config.id_key)
            self._subscriptions[object_type] = bridge
            _logger.debug("Created subscription bridge for %s", bridge.scope)
        return bridge
