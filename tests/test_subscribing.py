from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from pyfirebridge.actions import (
    Action,
    ActionCreatorDispatched,
    ObjectAdded,
    ObjectChanged,
    ObjectErrored,
    ObjectRemoved,
    ObjectSubscribed,
)
from pyfirebridge.backend import ChildEvent
from pyfirebridge.bridge.subscribing import ObjectSubscriptions, subscribe_to_objects
from pyfirebridge.exceptions import DecodeError, MalformedDataError, NoDataError
from pyfirebridge.state.reducers import SubscribingState


class Person(BaseModel):
    id: str
    name: str


class PeopleState(SubscribingState):
    pass


@dataclass
class _Snapshot:
    key: str
    value: Any
    present: bool = True

    def exists(self) -> bool:
        return self.present


class _FakeQuery:
    def __init__(self, path: str = "https://example.firebaseio.com/people") -> None:
        self._path = path
        self.listeners: dict[int, tuple[ChildEvent, Callable[[Any], None]]] = {}
        self.removed: list[int] = []
        self._next = 0

    def observe(self, event: ChildEvent, callback: Callable[[Any], None]) -> int:
        self._next += 1
        self.listeners[self._next] = (event, callback)
        return self._next

    def remove_listener(self, handle: Any) -> None:
        self.removed.append(handle)
        self.listeners.pop(handle, None)

    def description(self) -> str:
        return self._path

    def fire(self, event: ChildEvent, snapshot: _Snapshot) -> None:
        for registered, callback in list(self.listeners.values()):
            if registered == event:
                callback(snapshot)


def _recorder() -> tuple[list[Action], Callable[[Action], None]]:
    dispatched: list[Action] = []
    return dispatched, dispatched.append


def test_already_subscribed_registers_nothing() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()

    producer = subscribe_to_objects(Person, query, PeopleState(subscribed=True))

    assert producer(None, dispatch) is None
    assert query.listeners == {}
    assert dispatched == []


def test_first_activation_dispatches_subscribed_before_registering() -> None:
    dispatched: list[Action] = []
    listener_counts: list[int] = []
    query = _FakeQuery()

    def dispatch(action: Action) -> None:
        listener_counts.append(len(query.listeners))
        dispatched.append(action)

    result = subscribe_to_objects(Person, query, PeopleState())(None, dispatch)

    assert dispatched == [ObjectSubscribed(scope="PeopleState", subscribed=True)]
    assert listener_counts == [0]
    assert sorted(event for event, _ in query.listeners.values()) == sorted(ChildEvent)
    assert result == ActionCreatorDispatched(dispatched_in="subscribe_to_objects")


def test_child_added_decodes_object_with_snapshot_key_as_id() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u1", value={"name": "Ann"}))

    assert dispatched == [ObjectAdded(scope="Person", object=Person(id="u1", name="Ann"))]


def test_each_event_kind_maps_to_its_action() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    query.fire(ChildEvent.CHILD_CHANGED, _Snapshot(key="u1", value={"name": "Anna"}))
    query.fire(ChildEvent.CHILD_REMOVED, _Snapshot(key="u1", value={"name": "Anna"}))

    assert isinstance(dispatched[0], ObjectChanged)
    assert isinstance(dispatched[1], ObjectRemoved)
    assert dispatched[1].object == Person(id="u1", name="Anna")


def test_missing_snapshot_dispatches_no_data_error_with_query_path() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    for event in ChildEvent:
        query.fire(event, _Snapshot(key="u1", value=None, present=False))

    assert len(dispatched) == 3
    for action in dispatched:
        assert isinstance(action, ObjectErrored)
        assert action.scope == "Person"
        assert isinstance(action.error, NoDataError)
        assert action.error.path == query.description()


def test_non_object_value_dispatches_malformed_data_error() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u1", value="Ann"))
    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u2", value=["Ann"]))

    errors = [action.error for action in dispatched if isinstance(action, ObjectErrored)]
    assert [type(error) for error in errors] == [MalformedDataError, MalformedDataError]
    assert dispatched[0] == ObjectErrored(scope="Person", error=MalformedDataError(query.description()))


def test_missing_field_dispatches_decode_error_and_listener_keeps_working() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u1", value={"nickname": "A"}))
    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u2", value={"name": "Bob"}))

    errored, added = dispatched
    assert isinstance(errored, ObjectErrored)
    assert isinstance(errored.error, DecodeError)
    assert errored.error.cause is not None
    assert added == ObjectAdded(scope="Person", object=Person(id="u2", name="Bob"))


def test_custom_decoder_is_used() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()

    def decoder(data: Any) -> tuple[str, str]:
        return (data["id"], data["name"].upper())

    subscribe_to_objects(Person, query, PeopleState(), decoder=decoder)(None, dispatch)
    dispatched.clear()
    query.fire(ChildEvent.CHILD_ADDED, _Snapshot(key="u1", value={"name": "ann"}))

    assert dispatched == [ObjectAdded(scope="Person", object=("u1", "ANN"))]


def test_unsubscribe_removes_listeners_and_resets_flag() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    people = ObjectSubscriptions(Person)

    people.subscribe(query, PeopleState())(None, dispatch)
    assert people.is_registered(query)
    handles = set(query.listeners)

    result = people.unsubscribe(query, PeopleState(subscribed=True))(None, dispatch)

    assert set(query.removed) == handles
    assert query.listeners == {}
    assert not people.is_registered(query)
    assert dispatched[-1] == ObjectSubscribed(scope="PeopleState", subscribed=False)
    assert result == ActionCreatorDispatched(dispatched_in="unsubscribe_from_objects")

    # A fresh activation is possible again.
    people.subscribe(query, PeopleState())(None, dispatch)
    assert len(query.listeners) == 3


def test_unsubscribe_when_not_subscribed_is_noop() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()

    assert ObjectSubscriptions(Person).unsubscribe(query, PeopleState())(None, dispatch) is None
    assert dispatched == []
    assert query.removed == []


def test_stale_subscribe_producer_does_not_register_twice() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()
    people = ObjectSubscriptions(Person)
    stale = PeopleState()

    assert people.subscribe(query, stale)(None, dispatch) is not None
    assert people.subscribe(query, stale)(None, dispatch) is None

    assert len(query.listeners) == 3
    assert dispatched == [ObjectSubscribed(scope="PeopleState", subscribed=True)]

    people.unsubscribe(query, PeopleState(subscribed=True))(None, dispatch)
    assert query.listeners == {}
    assert dispatched[-1] == ObjectSubscribed(scope="PeopleState", subscribed=False)


def test_unsubscribe_without_recorded_listeners_keeps_flag() -> None:
    query = _FakeQuery()
    dispatched, dispatch = _recorder()

    subscribe_to_objects(Person, query, PeopleState())(None, dispatch)
    dispatched.clear()

    other = ObjectSubscriptions(Person)
    assert other.unsubscribe(query, PeopleState(subscribed=True))(None, dispatch) is None

    assert dispatched == []
    assert query.removed == []
    assert len(query.listeners) == 3
