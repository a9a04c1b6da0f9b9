"""
Message markers.

``Command``, ``Event`` and ``State`` name a message type in flow source::

    CreateItem = Command["CreateItem", {"itemId": str, "description": str}]

    class ItemCreated(Event):
        id: str

Subscripting returns a ``MessageType`` value that example steps accept as a
type argument (``.when[CreateItem](...)``). The same declarations are read
statically by the type extractor, so the field information does not depend
on the code being executed.
"""

from __future__ import annotations

import re
from typing import Any, ClassVar, get_args, get_origin

from ..core.errors import DSLError

_LITERAL_RE = re.compile(r"""Literal\[\s*(['"])(.+?)\1\s*\]""")


class MessageType:
    """A named message type with its kind and declared fields."""

    __slots__ = ("name", "kind", "fields")

    def __init__(self, name: str, kind: str, fields: dict[str, Any] | None = None):
        self.name = name
        self.kind = kind
        self.fields = dict(fields or {})

    def __call__(self, **data: Any) -> dict[str, Any]:
        """Build a ``{type, data}`` envelope for this message."""
        return {"type": self.name, "data": data}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MessageType):
            return NotImplemented
        return (self.name, self.kind) == (other.name, other.kind)

    def __hash__(self) -> int:
        return hash((self.name, self.kind))

    def __repr__(self) -> str:
        return f"{self.kind.capitalize()}[{self.name!r}]"


class _Marker:
    kind: ClassVar[str]

    def __class_getitem__(cls, params: Any) -> MessageType:
        if not isinstance(params, tuple):
            params = (params,)
        name = params[0]
        if not isinstance(name, str):
            raise DSLError(f"{cls.__name__}[...] needs the message name as its first argument")
        fields = params[1] if len(params) > 1 else {}
        if not isinstance(fields, dict):
            raise DSLError(f"{cls.__name__}[{name!r}, ...] fields must be a dict")
        return MessageType(name, cls.kind, fields)


class Command(_Marker):
    kind = "command"


class Event(_Marker):
    kind = "event"


class State(_Marker):
    kind = "state"


MARKERS: dict[str, type[_Marker]] = {"command": Command, "event": Event, "state": State}


def _unwrap_alias(tp: Any) -> Any:
    # ``type X = ...`` aliases (3.12+)
    while hasattr(tp, "__value__") and not isinstance(tp, (MessageType, type)):
        tp = tp.__value__
    return tp


def _class_discriminator(cls: type) -> str | None:
    annotation = cls.__dict__.get("__annotations__", {}).get("type")
    if annotation is None:
        return None
    if isinstance(annotation, str):
        match = _LITERAL_RE.search(annotation)
        return match.group(2) if match else None
    if get_origin(annotation) is not None:
        args = get_args(annotation)
        if args and isinstance(args[0], str):
            return args[0]
    return None


def message_name(tp: Any) -> str:
    """
    Discriminator of a message type.

    Accepts a ``MessageType``, a class (its ``type: Literal["X"]`` annotation,
    else its name), a ``type`` alias or a plain string.
    """
    tp = _unwrap_alias(tp)
    if isinstance(tp, MessageType):
        return tp.name
    if isinstance(tp, str):
        return tp
    if isinstance(tp, type):
        return _class_discriminator(tp) or tp.__name__
    raise DSLError(f"Cannot use {tp!r} as a message type")


def message_kind(tp: Any) -> str | None:
    """Explicit kind of a message type, or None when it carries no marker."""
    tp = _unwrap_alias(tp)
    if isinstance(tp, MessageType):
        return tp.kind
    if isinstance(tp, type):
        for marker_kind, marker in MARKERS.items():
            if issubclass(tp, marker):
                return marker_kind
    return None
