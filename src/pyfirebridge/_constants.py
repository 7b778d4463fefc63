"""Internal constants shared across the library."""

#: Field under which a snapshot's key is injected before decoding.
ID_KEY = "id"

AUTH_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
USER_AGENT = "pyfirebridge"

# ------------------------------------------------------------------
# Identity Toolkit endpoints (relative to AUTH_BASE_URL)
# ------------------------------------------------------------------

SIGN_IN_ENDPOINT = "/accounts:signInWithPassword"
SIGN_UP_ENDPOINT = "/accounts:signUp"
UPDATE_ENDPOINT = "/accounts:update"
SEND_OOB_CODE_ENDPOINT = "/accounts:sendOobCode"

PASSWORD_RESET_REQUEST = "PASSWORD_RESET"

# ------------------------------------------------------------------
# Realtime Database streaming
# ------------------------------------------------------------------

STREAM_ACCEPT = "text/event-stream"
STREAM_KEEP_ALIVE = "keep-alive"
STREAM_PUT = "put"
STREAM_PATCH = "patch"
STREAM_CANCEL = "cancel"
STREAM_AUTH_REVOKED = "auth_revoked"
