"""
Fluent builders for slices and examples.

A slice is added to the open flow when its builder is created; modifiers
chain on the builder and the ``with`` block scopes the slice's client and
server declarations::

    with command("Create item").stream("item-${id}").via(Notifier):
        ...

Examples chain Given/When/Then steps. A step is either called with data
directly (the type is inferred later) or subscripted with a message type
first::

    example("adds an item").given[ItemList]({...}).when[AddItem]({...}).then[ItemAdded]({...})
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import DSLError
from ..core.model import CommandSlice, QuerySlice, ReactSlice, SliceKind
from . import context
from .graphql import request_text
from .integrations import Integration, integration_name
from .messages import message_kind, message_name

logger = logging.getLogger(__name__)


class SliceBuilder:
    """Chainable slice declaration; also a context manager scoping the slice."""

    def __init__(self, kind: SliceKind, name: str, id: str | None = None):
        cls = {SliceKind.COMMAND: CommandSlice, SliceKind.QUERY: QuerySlice, SliceKind.REACT: ReactSlice}[kind]
        self.slice = cls(name=name, id=id)
        context.add_slice(self.slice)
        logger.debug("Added %s slice %s", kind, name)

    def stream(self, pattern: str) -> SliceBuilder:
        self.slice.stream = pattern
        return self

    def via(self, *integrations: Integration | str | list[Integration | str]) -> SliceBuilder:
        names: list[str] = []
        for item in integrations:
            items = item if isinstance(item, (list, tuple)) else [item]
            names.extend(integration_name(i) for i in items)
        self.slice.via = names
        return self

    def retries(self, count: int) -> SliceBuilder:
        self.slice.additional_instructions = f"retries: {count}"
        return self

    def additional_instructions(self, text: str) -> SliceBuilder:
        self.slice.additional_instructions = text
        return self

    def description(self, text: str) -> SliceBuilder:
        self.slice.description = text
        return self

    def request(self, request: Any) -> SliceBuilder:
        """
        Attach the request document (a string or a parsed GraphQL document).

        Raises:
            DSLError: On react slices, or if the request is neither form
        """
        if isinstance(self.slice, ReactSlice):
            raise DSLError(f"React slice '{self.slice.name}' cannot have a request")
        self.slice.request = request_text(request)
        return self

    def __enter__(self) -> SliceBuilder:
        ctx = context.current_context()
        if ctx.slice is not self.slice:
            raise DSLError(f"Slice '{self.slice.name}' is no longer the active slice")
        return self

    def __exit__(self, *exc_info: object) -> None:
        ctx = context.current_context()
        if ctx.slice is self.slice:
            ctx.slice = None
            context.end_block()


# =============================================================================
# Examples
# =============================================================================


class _Step:
    """
    One Given/When/Then step.

    ``step(data)`` records untyped data; ``step[T](data)`` records data typed
    as message ``T``.
    """

    def __init__(self, builder: ExampleBuilder, phase: str, tp: Any = None):
        self._builder = builder
        self._phase = phase
        self._tp = tp

    def __getitem__(self, tp: Any) -> _Step:
        return _Step(self._builder, self._phase, tp)

    def __call__(self, data: Any) -> ExampleBuilder:
        return self._builder._record(self._phase, data, self._tp)


class ExampleBuilder:
    """Records Given/When/Then data on the example it was created for."""

    def __init__(self, description: str):
        self.example = context.record_example(description)
        self._last_phase: str | None = None

    @property
    def given(self) -> _Step:
        return _Step(self, "given")

    @property
    def when(self) -> _Step:
        return _Step(self, "when")

    @property
    def then(self) -> _Step:
        return _Step(self, "then")

    @property
    def and_(self) -> _Step:
        return _Step(self, "and")

    def _record(self, phase: str, data: Any, tp: Any) -> ExampleBuilder:
        name = message_name(tp) if tp is not None else None
        kind = message_kind(tp) if tp is not None else None
        items = data if isinstance(data, list) else [data]
        ctx = context.current_context()
        if ctx.example is not self.example:
            raise DSLError(f"Example '{self.example.description}' is no longer active")

        append = phase == "and"
        if append:
            if self._last_phase is None:
                raise DSLError("and_ must follow given, when or then")
            phase = self._last_phase

        if phase == "given":
            context.record_given(items, name, kind, append=append)
        elif phase == "when":
            context.record_when(data, name, append=append)
        else:
            context.record_then(items, name, append=append)
        self._last_phase = phase
        return self
