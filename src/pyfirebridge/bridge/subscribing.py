"""Subscription bridge.

Registers child listeners on a query exactly once per subscribing state and
translates every fired event into an object action scoped to the subscribed
object type:

- ``child_added``   -> ``ObjectAdded``
- ``child_changed`` -> ``ObjectChanged``
- ``child_removed`` -> ``ObjectRemoved``

Any of those events may instead produce ``ObjectErrored`` when the snapshot
has no data or cannot be decoded.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from pyfirebridge._constants import ID_KEY
from pyfirebridge.actions import (
    Action,
    ActionCreatorDispatched,
    ActionProducer,
    Dispatch,
    ObjectSubscribed,
    scope_of,
)
from pyfirebridge.backend import ChildEvent, Query, Snapshot, SnapshotCallback
from pyfirebridge.bridge.decode import Decoder, decode_snapshot, default_decoder

_logger = logging.getLogger(__name__)

_CHILD_EVENTS: tuple[ChildEvent, ...] = (
    ChildEvent.CHILD_ADDED,
    ChildEvent.CHILD_CHANGED,
    ChildEvent.CHILD_REMOVED,
)


def _listener(
    event: ChildEvent,
    *,
    dispatch: Dispatch,
    decoder: Decoder,
    scope: str,
    path: str,
    id_key: str,
) -> SnapshotCallback:
    def on_snapshot(snapshot: Snapshot) -> None:
        dispatch(
            decode_snapshot(
                snapshot,
                event=event,
                decoder=decoder,
                scope=scope,
                path=path,
                id_key=id_key,
            )
        )

    return on_snapshot


class ObjectSubscriptions:
    """Subscribe a record type to a Firebase query.

    Parameters
    ----------
    object_type
        The record type events are decoded into. Its scope tag is attached to
        every object action.
    decoder
        Callable building an object from a JSON mapping. Defaults to
        ``object_type.model_validate`` for pydantic models, or calling
        ``object_type(**data)``.
    id_key
        Field under which the snapshot key is injected.
    """

    def __init__(
        self,
        object_type: type,
        *,
        decoder: Decoder | None = None,
        id_key: str = ID_KEY,
    ) -> None:
        self._object_type = object_type
        self._scope = scope_of(object_type)
        self._decoder = decoder if decoder is not None else default_decoder(object_type)
        self._id_key = id_key
        self._handles: dict[str, list[tuple[Query, Any]]] = {}
        self._lock = threading.Lock()

    @property
    def scope(self) -> str:
        return self._scope

    def is_registered(self, query: Query) -> bool:
        with self._lock:
            return query.description() in self._handles

    def subscribe(self, query: Query, subscribing_state: Any) -> ActionProducer[Any]:
        """Return an action producer that activates the subscription.

        When ``subscribing_state.subscribed`` is already true the producer is
        a no-op returning ``None``, as it is when this instance already holds
        listeners for the query. Otherwise it dispatches
        ``ObjectSubscribed(subscribed=True)`` scoped to the state's type
        before registering any listener, so no event can race the flag.
        """
        state_scope = scope_of(subscribing_state)

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            if subscribing_state.subscribed:
                return None

            path = query.description()
            with self._lock:
                if path in self._handles:
                    _logger.debug("%s already has listeners on %s", self._scope, path)
                    return None
                self._handles[path] = []

            dispatch(ObjectSubscribed(scope=state_scope, subscribed=True))

            handles: list[tuple[Query, Any]] = []
            for event in _CHILD_EVENTS:
                callback = _listener(
                    event,
                    dispatch=dispatch,
                    decoder=self._decoder,
                    scope=self._scope,
                    path=path,
                    id_key=self._id_key,
                )
                handles.append((query, query.observe(event, callback)))

            with self._lock:
                self._handles[path] = handles
            _logger.debug("Subscribed %s to %s", self._scope, path)
            return ActionCreatorDispatched(dispatched_in="subscribe_to_objects")

        return producer

    def unsubscribe(self, query: Query, subscribing_state: Any) -> ActionProducer[Any]:
        """Return an action producer that tears the subscription down.

        Removes the listeners registered by :meth:`subscribe` for *query* and
        dispatches ``ObjectSubscribed(subscribed=False)``. A no-op when the
        state is not subscribed, or when this instance recorded no listeners
        for the query (the flag is then left untouched).
        """
        state_scope = scope_of(subscribing_state)

        def producer(_state: Any, dispatch: Dispatch) -> Action | None:
            if not subscribing_state.subscribed:
                return None

            path = query.description()
            with self._lock:
                handles = self._handles.pop(path, [])
            if not handles:
                _logger.warning(
                    "No listeners of %s recorded for %s; keeping the subscribed flag", self._scope, path
                )
                return None
            for owner, handle in handles:
                owner.remove_listener(handle)

            dispatch(ObjectSubscribed(scope=state_scope, subscribed=False))
            _logger.debug("Unsubscribed %s from %s (%d listeners removed)", self._scope, path, len(handles))
            return ActionCreatorDispatched(dispatched_in="unsubscribe_from_objects")

        return producer


def subscribe_to_objects(
    object_type: type,
    query: Query,
    subscribing_state: Any,
    *,
    decoder: Decoder | None = None,
    id_key: str = ID_KEY,
) -> ActionProducer[Any]:
    """Shortcut for ``ObjectSubscriptions(object_type).subscribe(...)``.

    Teardown requires keeping the :class:`ObjectSubscriptions` instance.
    """
    return ObjectSubscriptions(object_type, decoder=decoder, id_key=id_key).subscribe(query, subscribing_state)
