"""Realtime Database stream parsing and child-event folding.

The REST streaming API reports ``put``/``patch`` events against a path below
the streamed location. Child listeners need ``child_added``,
``child_changed`` and ``child_removed`` instead, so :class:`ChildCache` keeps
the last known value of every direct child and derives those events.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pyfirebridge.backend import ChildEvent


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched server-sent event."""

    event: str
    data: str


class ServerSentEventParser:
    """Incremental ``text/event-stream`` parser fed one line at a time."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed_line(self, line: str) -> ServerSentEvent | None:
        """Consume a line; return an event when a blank line terminates one."""
        line = line.rstrip("\r\n")
        if not line:
            if not self._event and not self._data:
                return None
            event = ServerSentEvent(event=self._event or "message", data="\n".join(self._data))
            self._event = ""
            self._data = []
            return event

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None


@dataclass(frozen=True)
class ChildChange:
    """A derived child event and the snapshot value it carries."""

    event: ChildEvent
    key: str
    value: Any


def _split_path(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _set_nested(target: dict[str, Any], segments: list[str], value: Any) -> None:
    head, *rest = segments
    if not rest:
        if value is None:
            target.pop(head, None)
        else:
            target[head] = copy.deepcopy(value)
        return

    child = target.get(head)
    if not isinstance(child, dict):
        if value is None:
            return
        child = {}
    else:
        child = dict(child)
    _set_nested(child, rest, value)
    if child:
        target[head] = child
    else:
        target.pop(head, None)


class ChildCache:
    """Last known value of every direct child of a streamed location."""

    def __init__(self) -> None:
        self._children: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._children)

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self._children.items()))

    def clear(self) -> None:
        self._children.clear()

    def apply_put(self, path: str, data: Any) -> list[ChildChange]:
        """Apply a ``put`` event and return the resulting child events."""
        segments = _split_path(path)
        if not segments:
            return self._replace_all(data)

        key, *rest = segments
        if not rest:
            return self._set_child(key, data)

        previous = self._children.get(key)
        updated: dict[str, Any] = dict(previous) if isinstance(previous, dict) else {}
        _set_nested(updated, rest, data)
        return self._set_child(key, updated or None)

    def apply_patch(self, path: str, data: Any) -> list[ChildChange]:
        """Apply a ``patch`` event (a multi-location update under *path*)."""
        if not isinstance(data, dict):
            return []
        base = "/".join(_split_path(path))
        changes: list[ChildChange] = []
        for sub_key, value in data.items():
            changes.extend(self.apply_put(f"{base}/{sub_key}", value))
        return self._coalesce(changes)

    def _replace_all(self, data: Any) -> list[ChildChange]:
        incoming: dict[str, Any]
        if isinstance(data, dict):
            incoming = data
        elif isinstance(data, list):
            # Sequential integer keys arrive as an array with null gaps.
            incoming = {str(i): v for i, v in enumerate(data) if v is not None}
        else:
            incoming = {}
        changes: list[ChildChange] = []
        for key in [k for k in self._children if k not in incoming]:
            changes.extend(self._set_child(key, None))
        for key, value in incoming.items():
            changes.extend(self._set_child(str(key), value))
        return changes

    def _set_child(self, key: str, value: Any) -> list[ChildChange]:
        previous = self._children.get(key)
        if value is None:
            if key not in self._children:
                return []
            del self._children[key]
            return [ChildChange(ChildEvent.CHILD_REMOVED, key, previous)]

        stored = copy.deepcopy(value)
        if key not in self._children:
            self._children[key] = stored
            return [ChildChange(ChildEvent.CHILD_ADDED, key, stored)]
        if previous == stored:
            return []
        self._children[key] = stored
        return [ChildChange(ChildEvent.CHILD_CHANGED, key, stored)]

    @staticmethod
    def _coalesce(changes: list[ChildChange]) -> list[ChildChange]:
        """Collapse several changes of one child (from a deep patch) into the net event."""
        first: dict[str, ChildChange] = {}
        last: dict[str, ChildChange] = {}
        order: list[str] = []
        for change in changes:
            if change.key not in first:
                first[change.key] = change
                order.append(change.key)
            last[change.key] = change

        result: list[ChildChange] = []
        for key in order:
            start, end = first[key], last[key]
            if start.event == ChildEvent.CHILD_ADDED and end.event == ChildEvent.CHILD_REMOVED:
                continue
            if start.event == ChildEvent.CHILD_REMOVED and end.event == ChildEvent.CHILD_ADDED:
                if start.value != end.value:
                    result.append(ChildChange(ChildEvent.CHILD_CHANGED, key, end.value))
                continue
            if start.event == ChildEvent.CHILD_ADDED:
                result.append(ChildChange(ChildEvent.CHILD_ADDED, key, end.value))
            elif end.event == ChildEvent.CHILD_REMOVED:
                result.append(ChildChange(ChildEvent.CHILD_REMOVED, key, start.value))
            else:
                result.append(end)
        return result
