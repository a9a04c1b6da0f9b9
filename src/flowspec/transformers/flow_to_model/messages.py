"""
Message construction for the transformer.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ...core.model import EventSource, MessageField, MessageKind, MessageMetadata, make_message
from ...core.type_extractor import TypeInfo
from ...core.type_strings import is_object_type, parse_object_members, runtime_field_type


def _initial_fields(info: TypeInfo | None) -> list[MessageField]:
    if info is None:
        return []
    return [MessageField(name=f.name, type=f.type, required=f.required) for f in info.data_fields]


def _flatten_state_envelope(fields: list[MessageField]) -> list[MessageField]:
    """Replace a ``data: { ... }`` envelope with its members, dropping ``type``."""
    data = next((f for f in fields if f.name == "data" and is_object_type(f.type)), None)
    if data is None:
        return fields
    kept = [f for f in fields if f.name not in ("type", "data")]
    inner = [MessageField(name=n, type=t, required=r) for n, t, r in parse_object_members(data.type)]
    return kept + inner


def create_message(name: str, info: TypeInfo | None, kind: MessageKind | str) -> Any:
    """
    Build a message named ``name`` with the fields known for it.

    Events are created with an internal source; integrations override it.
    """
    kind = MessageKind(kind)
    fields = _initial_fields(info)
    if kind == MessageKind.STATE:
        fields = _flatten_state_envelope(fields)
    message = make_message(kind, name, fields)
    message.metadata = MessageMetadata(version=1)
    return message


def prefer_new_fields(new: Any, existing: Any) -> bool:
    """Whether ``new`` should replace ``existing``: it knows more fields."""
    return len(new.fields) > len(existing.fields)


def integration_messages(integrations: Iterable[Any]) -> list[Any]:
    """
    Messages contributed by integrations.

    Events coming from an integration are external.
    """
    out = []
    for integration in integrations:
        for tp in integration.messages:
            fields = []
            for name, annotation in tp.fields.items():
                type_str, required = runtime_field_type(annotation)
                fields.append(MessageField(name=name, type=type_str, required=required))
            message = make_message(tp.kind, tp.name, fields)
            message.metadata = MessageMetadata(version=1)
            if message.kind == MessageKind.EVENT:
                message.source = EventSource.EXTERNAL
            out.append(message)
    return out
