"""
Message types: commands, events and states with their field lists.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import Field

from .base import ModelBase


class MessageKind(StrEnum):
    """Discriminator of the Message union."""

    COMMAND = "command"
    EVENT = "event"
    STATE = "state"


class EventSource(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class MessageField(ModelBase):
    """
    Field definition for a message.

    ``type`` uses the structural type language (``string``, ``Array<...>``,
    ``{ a: T; b?: U }``).
    """

    name: str
    type: str = Field(description="Field type (e.g. string, number, Date, Array<string>)")
    required: bool = True
    description: str | None = None
    default_value: Any = Field(default=None, description="Default value for optional fields")


class MessageMetadata(ModelBase):
    version: int = Field(default=1, description="Version number for schema evolution")


class _MessageBase(ModelBase):
    name: str = Field(description="Message name")
    fields: list[MessageField] = Field(default_factory=list)
    description: str | None = None
    metadata: MessageMetadata | None = None

    @property
    def kind(self) -> MessageKind:
        return MessageKind(self.type)  # type: ignore[attr-defined]


class CommandMessage(_MessageBase):
    """Command that triggers state changes."""

    type: Literal["command"] = "command"


class EventMessage(_MessageBase):
    """Event representing something that has happened."""

    type: Literal["event"] = "event"
    source: EventSource = EventSource.INTERNAL


class StateMessage(_MessageBase):
    """State/read model representing a view of data."""

    type: Literal["state"] = "state"


Message = Annotated[
    Union[CommandMessage, EventMessage, StateMessage],
    Field(discriminator="type"),
]

MESSAGE_CLASSES: dict[MessageKind, type[_MessageBase]] = {
    MessageKind.COMMAND: CommandMessage,
    MessageKind.EVENT: EventMessage,
    MessageKind.STATE: StateMessage,
}


def make_message(
    kind: MessageKind | str,
    name: str,
    fields: list[MessageField] | None = None,
    description: str | None = None,
) -> CommandMessage | EventMessage | StateMessage:
    """Construct the message class matching ``kind``."""
    cls = MESSAGE_CLASSES[MessageKind(kind)]
    return cls(name=name, fields=list(fields or []), description=description)  # type: ignore[return-value]
