"""Bridges between backend callbacks and store actions.

This package contains the subscription bridge (child events -> object
actions), the decode pipeline it shares, and the authentication bridge
(auth operations -> user actions).
"""

from pyfirebridge.bridge.authentication import FirebaseAccess
from pyfirebridge.bridge.decode import Decoder, decode_snapshot, default_decoder
from pyfirebridge.bridge.subscribing import ObjectSubscriptions, subscribe_to_objects

__all__ = [
    "Decoder",
    "FirebaseAccess",
    "ObjectSubscriptions",
    "decode_snapshot",
    "default_decoder",
    "subscribe_to_objects",
]
