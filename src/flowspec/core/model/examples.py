"""
Behavior specifications: Spec -> Rule -> Example (Given/When/Then).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Union

from pydantic import Field, model_validator

from .base import ModelBase
from .messages import MessageKind

REF_KEYS: dict[MessageKind, str] = {
    MessageKind.COMMAND: "command_ref",
    MessageKind.EVENT: "event_ref",
    MessageKind.STATE: "state_ref",
}


class MessageRef(ModelBase):
    """
    Reference to a message by name plus example data.

    Exactly one of ``event_ref``, ``command_ref`` or ``state_ref`` is set.
    """

    event_ref: str | None = None
    command_ref: str | None = None
    state_ref: str | None = None
    example_data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _exactly_one_ref(self) -> MessageRef:
        refs = [r for r in (self.event_ref, self.command_ref, self.state_ref) if r is not None]
        if len(refs) != 1:
            raise ValueError("exactly one of eventRef, commandRef or stateRef must be set")
        return self

    @property
    def kind(self) -> MessageKind:
        if self.command_ref is not None:
            return MessageKind.COMMAND
        if self.state_ref is not None:
            return MessageKind.STATE
        return MessageKind.EVENT

    @property
    def name(self) -> str:
        return getattr(self, REF_KEYS[self.kind])

    def retarget(self, kind: MessageKind | str, name: str | None = None) -> None:
        """Move the reference to ``kind`` (and optionally rename it) in place."""
        new_name = self.name if name is None else name
        setattr(self, REF_KEYS[self.kind], None)
        setattr(self, REF_KEYS[MessageKind(kind)], new_name)


class ErrorType(StrEnum):
    ILLEGAL_STATE = "IllegalStateError"
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFoundError"


class ErrorOutcome(ModelBase):
    """Expected error instead of resulting messages."""

    error_type: ErrorType
    message: str | None = None


Outcome = Union[ErrorOutcome, MessageRef]


class Example(ModelBase):
    description: str = Field(description="Example description")
    given: list[MessageRef] | None = None
    when: MessageRef | list[MessageRef] | None = None
    then: list[Outcome] = Field(default_factory=list)

    def refs(self) -> list[MessageRef]:
        """Every message reference in given/when/then order."""
        out = list(self.given or [])
        if isinstance(self.when, list):
            out.extend(self.when)
        elif self.when is not None:
            out.append(self.when)
        out.extend(t for t in self.then if isinstance(t, MessageRef))
        return out


class Rule(ModelBase):
    description: str = Field(description="Rule description")
    id: str | None = None
    examples: list[Example] = Field(default_factory=list)


class Spec(ModelBase):
    name: str = Field(default="", description="Spec name/feature name")
    rules: list[Rule] = Field(default_factory=list)
