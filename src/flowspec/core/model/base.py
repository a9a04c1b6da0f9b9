"""
Shared base for Model types.

Attributes are snake_case in Python and camelCase on the wire; both spellings
are accepted on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel


class ModelBase(BaseModel):
    """Base class for every serializable Model type."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    @model_serializer(mode="wrap")
    def _omit_unset_optionals(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        # Only this model's own keys; None inside free-form dicts is data.
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        """Wire form: camelCase keys, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True)
