"""Reducer helpers for subscribed object collections.

Object actions are generic and carry a ``scope`` tag; these helpers only
react to actions whose tag matches the object (or state) type they were
built for, and return the incoming state unchanged otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from pyfirebridge._constants import ID_KEY
from pyfirebridge.actions import (
    Action,
    ObjectAdded,
    ObjectChanged,
    ObjectErrored,
    ObjectRemoved,
    ObjectSubscribed,
    scope_of,
)
from pyfirebridge.exceptions import SubscriptionError


class SubscribingState(BaseModel):
    """Sub-state holding whether its objects are subscribed to in Firebase."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    subscribed: bool = False


class CollectionState(SubscribingState):
    """Subscribed objects keyed by id, plus the last decode error."""

    objects: dict[str, Any] = Field(default_factory=dict)
    last_error: SubscriptionError | None = None


C = TypeVar("C", bound=CollectionState)


def object_id(obj: Any, id_key: str = ID_KEY) -> str:
    """Return the id a decoded object was stored under."""
    if isinstance(obj, Mapping):
        return str(obj[id_key])
    return str(getattr(obj, id_key))


def collection_reducer(
    object_type: Any,
    *,
    state_type: type[C] = CollectionState,  # type: ignore[assignment]
    id_key: str = ID_KEY,
) -> Callable[[Action, C | None], C]:
    """Build a reducer maintaining a :class:`CollectionState` for *object_type*.

    ``ObjectSubscribed`` is matched against *state_type*; the other object
    actions are matched against *object_type*.
    """
    object_scope = scope_of(object_type)
    state_scope = scope_of(state_type)

    def reducer(action: Action, state: C | None) -> C:
        current = state if state is not None else state_type()

        if isinstance(action, ObjectSubscribed):
            if action.scope != state_scope:
                return current
            return current.model_copy(update={"subscribed": action.subscribed})

        if isinstance(action, (ObjectAdded, ObjectChanged, ObjectRemoved, ObjectErrored)):
            if action.scope != object_scope:
                return current
        else:
            return current

        if isinstance(action, ObjectErrored):
            return current.model_copy(update={"last_error": action.error})

        objects = dict(current.objects)
        key = object_id(action.object, id_key)
        if isinstance(action, ObjectRemoved):
            objects.pop(key, None)
        else:
            objects[key] = action.object
        return current.model_copy(update={"objects": objects})

    return reducer


def combine_reducers(
    **slices: Callable[[Action, Any], Any],
) -> Callable[[Action, dict[str, Any] | None], dict[str, Any]]:
    """Combine per-slice reducers into one reducer over a dict of slices.

    The returned dict is a new object only when a slice changed.
    """

    def reducer(action: Action, state: dict[str, Any] | None) -> dict[str, Any]:
        current = state or {}
        updated: dict[str, Any] = {}
        changed = state is None
        for name, slice_reducer in slices.items():
            before = current.get(name)
            after = slice_reducer(action, before)
            updated[name] = after
            if after is not before:
                changed = True
        return updated if changed else current

    return reducer
