"""pyfirebridge - Bridge Firebase change notifications and auth into store actions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfirebridge")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfirebridge.actions import (
    Action,
    ActionCreatorDispatched,
    ActionProducer,
    AuthenticationAction,
    AuthenticationEvent,
    Dispatch,
    ObjectAdded,
    ObjectChanged,
    ObjectErrored,
    ObjectRemoved,
    ObjectSubscribed,
    ScopedAction,
    SeriousErrorAction,
    UserAuthenticationAction,
    UserAuthFailed,
    UserIdentified,
    UserLoggedIn,
    UserLoggedOut,
    scope_of,
)
from pyfirebridge.backend import AuthBackend, ChildEvent, Query, Snapshot, UserHandle
from pyfirebridge.bridge import FirebaseAccess, ObjectSubscriptions, subscribe_to_objects
from pyfirebridge.client import FirebridgeClient
from pyfirebridge.config import FirebridgeConfig
from pyfirebridge.exceptions import (
    AuthError,
    ChangeEmailError,
    ChangePasswordError,
    CurrentUserNotFoundError,
    DecodeError,
    FirebaseApiError,
    FirebridgeConfigError,
    FirebridgeError,
    FirebridgeTransportError,
    LogInError,
    LogInMissingUserIdError,
    LogOutError,
    MalformedDataError,
    NoDataError,
    ResetPasswordError,
    SignUpError,
    SignUpFailedLogInError,
    SubscriptionError,
)
from pyfirebridge.models import AuthUser, FirebaseModel
from pyfirebridge.state import CollectionState, Store, SubscribingState, collection_reducer, combine_reducers

__all__ = [
    "__version__",
    "Action",
    "ActionCreatorDispatched",
    "ActionProducer",
    "AuthBackend",
    "AuthError",
    "AuthUser",
    "AuthenticationAction",
    "AuthenticationEvent",
    "ChangeEmailError",
    "ChangePasswordError",
    "ChildEvent",
    "CollectionState",
    "CurrentUserNotFoundError",
    "DecodeError",
    "Dispatch",
    "FirebaseAccess",
    "FirebaseApiError",
    "FirebaseModel",
    "FirebridgeClient",
    "FirebridgeConfig",
    "FirebridgeConfigError",
    "FirebridgeError",
    "FirebridgeTransportError",
    "LogInError",
    "LogInMissingUserIdError",
    "LogOutError",
    "MalformedDataError",
    "NoDataError",
    "ObjectAdded",
    "ObjectChanged",
    "ObjectErrored",
    "ObjectRemoved",
    "ObjectSubscribed",
    "ObjectSubscriptions",
    "Query",
    "ResetPasswordError",
    "ScopedAction",
    "SeriousErrorAction",
    "SignUpError",
    "SignUpFailedLogInError",
    "Snapshot",
    "Store",
    "SubscribingState",
    "SubscriptionError",
    "UserAuthFailed",
    "UserAuthenticationAction",
    "UserHandle",
    "UserIdentified",
    "UserLoggedIn",
    "UserLoggedOut",
    "collection_reducer",
    "combine_reducers",
    "scope_of",
    "subscribe_to_objects",
]
