"""State/store layer.

This package holds the reference store that applies dispatched actions, and
reducer helpers that route type-scoped object actions to their collection.
"""

from pyfirebridge.state.reducers import CollectionState, SubscribingState, collection_reducer, combine_reducers
from pyfirebridge.state.store import Store

__all__ = [
    "CollectionState",
    "Store",
    "SubscribingState",
    "collection_reducer",
    "combine_reducers",
]
