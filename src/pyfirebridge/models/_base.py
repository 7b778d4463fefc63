"""Base model for objects decoded from Firebase snapshots.

Every record type subscribed to through the bridge may inherit from
:class:`FirebaseModel`, which provides:

* ``alias_generator=to_camel`` so camelCase database keys map
  automatically to snake_case fields.
* A required ``id`` field, filled from the snapshot key.
* :meth:`FirebaseModel.from_json` and :meth:`FirebaseModel.to_json` for
  converting to and from the database representation. The bridge decodes
  through ``model_validate`` directly.

Inheriting is optional: the bridge accepts any callable decoder.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class FirebaseModel(BaseModel):
    """Base for record types stored under a Firebase collection."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        if not value:
            raise ValueError("id must be non-empty")
        return value

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> FirebaseModel:
        """Build an instance from a JSON object, raising ``ValidationError`` on failure."""
        return cls.model_validate(dict(data))

    def to_json(self) -> dict[str, Any]:
        """Dump to the database representation (camelCase keys, without ``id``)."""
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
