"""Data models."""

from pyfirebridge.models._base import FirebaseModel
from pyfirebridge.models.user import AuthUser

__all__ = [
    "AuthUser",
    "FirebaseModel",
]
