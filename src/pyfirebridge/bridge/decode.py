"""Snapshot decode pipeline.

Turns one change-notification snapshot into either a typed object action or
an ``ObjectErrored`` action:

1. no data (missing snapshot or null value) -> :class:`NoDataError`
2. value is not a JSON object -> :class:`MalformedDataError`
3. inject the snapshot key under ``id`` and run the decoder; a decoder
   failure -> :class:`DecodeError`, otherwise the event-specific action.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pyfirebridge._constants import ID_KEY
from pyfirebridge.actions import Action, ObjectAdded, ObjectChanged, ObjectErrored, ObjectRemoved
from pyfirebridge.backend import ChildEvent, Snapshot
from pyfirebridge.exceptions import DecodeError, MalformedDataError, NoDataError

Decoder = Callable[[Mapping[str, Any]], Any]

_ACTION_FOR_EVENT: dict[ChildEvent, type[ObjectAdded] | type[ObjectChanged] | type[ObjectRemoved]] = {
    ChildEvent.CHILD_ADDED: ObjectAdded,
    ChildEvent.CHILD_CHANGED: ObjectChanged,
    ChildEvent.CHILD_REMOVED: ObjectRemoved,
}


def default_decoder(object_type: type) -> Decoder:
    """Return the decoder used when none is given for *object_type*.

    Pydantic models are validated with ``model_validate``; other types are
    called with the JSON object's keys as keyword arguments.
    """
    validate = getattr(object_type, "model_validate", None)
    if callable(validate):
        return lambda data: validate(dict(data))

    def _construct(data: Mapping[str, Any]) -> Any:
        return object_type(**data)

    return _construct


def extract_object_json(snapshot: Snapshot, path: str, *, id_key: str = ID_KEY) -> dict[str, Any]:
    """Validate and extract the JSON object carried by *snapshot*.

    The returned dict is a copy with ``id_key`` set to the snapshot key,
    overriding any id already present in the payload.
    """
    value = snapshot.value
    if not snapshot.exists() or value is None:
        raise NoDataError(path)
    if not isinstance(value, Mapping):
        raise MalformedDataError(path)

    data = dict(value)
    data[id_key] = snapshot.key
    return data


def decode_snapshot(
    snapshot: Snapshot,
    *,
    event: ChildEvent,
    decoder: Decoder,
    scope: str,
    path: str,
    id_key: str = ID_KEY,
) -> Action:
    """Run the pipeline for one snapshot and return the action to dispatch.

    Never raises for bad data; every failure becomes an ``ObjectErrored``.
    """
    try:
        data = extract_object_json(snapshot, path, id_key=id_key)
    except (NoDataError, MalformedDataError) as exc:
        return ObjectErrored(scope=scope, error=exc)

    try:
        obj = decoder(data)
    except Exception as exc:
        return ObjectErrored(scope=scope, error=DecodeError(path, exc))

    return _ACTION_FOR_EVENT[event](scope=scope, object=obj)
