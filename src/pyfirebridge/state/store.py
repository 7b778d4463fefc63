"""Deterministic in-memory store.

This is the only component allowed to apply actions to application state.
Backend callbacks may arrive on foreign threads; ``dispatch`` serialises them
so reducers always run one action at a time.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Generic, TypeVar

from pyfirebridge.actions import Action, ActionProducer

_logger = logging.getLogger(__name__)

S = TypeVar("S")

Reducer = Callable[[Action, S], S]
StateListener = Callable[[S], None]


class Store(Generic[S]):
    """Single source of truth for application state.

    Given the same sequence of actions, the store produces the same states.
    Actions dispatched while another action is being applied (from a reducer
    listener, or from another thread) are queued and applied in order.
    """

    def __init__(self, reducer: Reducer[S], state: S) -> None:
        self._reducer = reducer
        self._state = state
        self._listeners: list[StateListener[S]] = []
        self._pending: deque[Action] = deque()
        self._lock = threading.RLock()
        self._dispatching = False

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: StateListener[S]) -> Callable[[], None]:
        """Call *listener* with the new state after every applied action.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, action: Action) -> None:
        """Apply *action* to the current state."""
        with self._lock:
            self._pending.append(action)
            if self._dispatching:
                return
            self._dispatching = True
            try:
                while self._pending:
                    current = self._pending.popleft()
                    _logger.debug("Applying %s", type(current).__name__)
                    self._state = self._reducer(current, self._state)
                    for listener in list(self._listeners):
                        listener(self._state)
            except BaseException:
                self._pending.clear()
                raise
            finally:
                self._dispatching = False

    def run(self, producer: ActionProducer[S]) -> Action | None:
        """Invoke an action producer and dispatch its immediate action, if any."""
        action = producer(self._state, self.dispatch)
        if action is not None:
            self.dispatch(action)
        return action
