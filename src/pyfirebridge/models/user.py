"""Authenticated user model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """User returned by a successful Identity Toolkit call.

    Parameters
    ----------
    uid : str
        The authenticated user's ID (``localId``).
    email : str or None
        The user's email address, when reported.
    id_token : str
        Short-lived token authorising account updates and database reads.
    refresh_token : str or None
        Token used to mint new ID tokens.
    raw : dict
        Full response body for access to additional fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str = Field(alias="localId")
    email: str | None = None
    id_token: str = Field(alias="idToken")
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> AuthUser:
        return cls.model_validate({**payload, "raw": payload})
