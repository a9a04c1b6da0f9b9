"""
Given/When/Then processing.

Every message reference in an example is resolved to a declared message,
its ref key is aligned with the message's classification and the message is
added to the Model's message table.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ...core.model import Example, Flow, MessageKind, MessageRef, SliceKind
from ...core.type_extractor import INFERRED_TYPE, TypeInfo
from .example_shapes import ExampleShapeHints, collect_example_hints
from .messages import create_message, prefer_new_fields

logger = logging.getLogger(__name__)

Resolver = Callable[[str, Any, Any], tuple[str, TypeInfo | None]]


@dataclass
class ProcessingState:
    """Shared tables filled while walking the examples of every flow."""

    resolve: Resolver
    messages: dict[str, Any] = field(default_factory=dict)
    hints: ExampleShapeHints = field(default_factory=dict)

    def add_message(self, message: Any) -> None:
        existing = self.messages.get(message.name)
        if existing is None or prefer_new_fields(message, existing):
            self.messages[message.name] = message


def settle_ref(ref: MessageRef, expected: MessageKind, state: ProcessingState) -> None:
    """
    Resolve ``ref`` in place and register the message it points to.

    An explicitly classified type moves the ref to its own key. A type
    classified only by its name does not: the position wins and the
    disagreement is logged.
    """
    name, info = state.resolve(ref.name, expected, ref.example_data)
    kind = expected
    if info is not None and info.classification != expected:
        if info.explicit:
            kind = MessageKind(info.classification)
        else:
            logger.warning(
                "%s is named like a %s but used as a %s; keeping %s",
                name,
                info.classification,
                expected,
                expected,
            )
    if kind != ref.kind or name != ref.name:
        ref.retarget(kind, name)

    if name == INFERRED_TYPE:
        return
    state.add_message(create_message(name, info, kind))
    collect_example_hints(name, ref.example_data, state.hints)


def process_given(example: Example, state: ProcessingState) -> None:
    for ref in example.given or []:
        settle_ref(ref, ref.kind, state)


def process_when(example: Example, slice_kind: SliceKind, state: ProcessingState) -> None:
    """A single when is a command in command slices and an event elsewhere; arrays are events."""
    if example.when is None:
        return
    if isinstance(example.when, list):
        for ref in example.when:
            settle_ref(ref, MessageKind.EVENT, state)
        return
    expected = MessageKind.COMMAND if slice_kind == SliceKind.COMMAND else MessageKind.EVENT
    settle_ref(example.when, expected, state)


def process_then(example: Example, state: ProcessingState) -> None:
    for item in example.then:
        if isinstance(item, MessageRef):
            settle_ref(item, item.kind, state)


def process_flow(flow: Flow, state: ProcessingState) -> None:
    for slice_ in flow.slices:
        for rule in slice_.server.specs.rules:
            for example in rule.examples:
                process_given(example, state)
                process_when(example, slice_.kind, state)
                process_then(example, state)
