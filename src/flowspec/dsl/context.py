"""
Building state for the flow currently being declared.

DSL calls append to the open flow, slice, spec, rule and example. Each
``record_*`` function raises ``DSLError`` naming what is missing when it is
called out of place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from ..core.errors import DSLError, make_dsl_error
from ..core.model import (
    ClientBlock,
    ClientSpecs,
    CommandServer,
    CommandSlice,
    DataSink,
    DataSource,
    ErrorOutcome,
    ErrorType,
    Example,
    Flow,
    MessageRef,
    QueryServer,
    QuerySlice,
    ReactServer,
    ReactSlice,
    Rule,
    Spec,
)
from ..core.type_extractor import INFERRED_TYPE
from .registry import current_registry

logger = logging.getLogger(__name__)

SpecTarget = Literal["client", "server"]
AnySlice = CommandSlice | QuerySlice | ReactSlice

REF_FOR_KIND = {"event": "event_ref", "command": "command_ref", "state": "state_ref"}


@dataclass
class FlowContext:
    flow: Flow
    slice: AnySlice | None = None
    target: SpecTarget | None = None
    spec_open: bool = False
    rule: Rule | None = None
    example: Example | None = None


# =============================================================================
# Context access
# =============================================================================


def current_context() -> FlowContext:
    ctx = current_registry().context
    if ctx is None:
        raise DSLError("No active flow. Wrap slices in 'with flow(...)'.")
    return ctx


def current_slice() -> AnySlice:
    ctx = current_context()
    if ctx.slice is None:
        raise DSLError("No active slice")
    return ctx.slice


def current_example() -> tuple[AnySlice, Example]:
    ctx = current_context()
    if ctx.slice is None:
        raise DSLError("No active slice")
    if ctx.example is None or ctx.rule is None:
        raise DSLError("No active example context")
    return ctx.slice, ctx.example


# =============================================================================
# Flow and slices
# =============================================================================


def start_flow(name: str, id: str | None = None) -> FlowContext:
    registry = current_registry()
    if registry.context is not None:
        raise make_dsl_error(
            f"flow('{name}') cannot be nested inside flow('{registry.context.flow.name}')",
            file=registry.current_module,
        )
    flow = Flow(name=name, id=id, source_file=registry.current_module)
    registry.context = FlowContext(flow=flow)
    return registry.context


def finish_flow() -> Flow:
    registry = current_registry()
    ctx = current_context()
    registry.context = None
    return registry.register(ctx.flow)


def abandon_flow() -> None:
    current_registry().context = None


def add_slice(slice_: AnySlice) -> None:
    ctx = current_context()
    ctx.flow.slices.append(slice_)
    ctx.slice = slice_
    ctx.target = None
    ctx.spec_open = False
    ctx.rule = None
    ctx.example = None


def start_client_block(description: str = "") -> None:
    ctx = current_context()
    slice_ = current_slice()
    if isinstance(slice_, ReactSlice):
        raise DSLError(f"React slice '{slice_.name}' has no client block")
    slice_.client = ClientBlock(description=description)
    ctx.target = "client"


def start_server_block(description: str = "") -> None:
    ctx = current_context()
    slice_ = current_slice()
    if isinstance(slice_, CommandSlice):
        slice_.server = CommandServer(description=description)
    elif isinstance(slice_, QuerySlice):
        slice_.server = QueryServer(description=description)
    else:
        slice_.server = ReactServer(description=description or None)
    ctx.target = "server"
    ctx.spec_open = False
    ctx.rule = None
    ctx.example = None


def end_block() -> None:
    ctx = current_context()
    ctx.target = None
    ctx.spec_open = False
    ctx.rule = None
    ctx.example = None


# =============================================================================
# Specs, rules and examples
# =============================================================================


def push_spec(name: str) -> None:
    ctx = current_context()
    if ctx.target is None:
        raise DSLError("No active spec target. Use specs() inside client() or server().")
    slice_ = current_slice()
    if ctx.target == "client" and not isinstance(slice_, ReactSlice):
        slice_.client.specs = ClientSpecs(name=name)
    elif ctx.target == "server":
        slice_.server.specs = Spec(name=name)
    ctx.spec_open = True
    ctx.rule = None
    ctx.example = None


def record_should(text: str) -> None:
    ctx = current_context()
    if ctx.target != "client":
        raise DSLError("should() can only be used inside client()")
    slice_ = current_slice()
    if isinstance(slice_, ReactSlice):
        raise DSLError(f"React slice '{slice_.name}' has no client block")
    if slice_.client.specs is None:
        slice_.client.specs = ClientSpecs()
    slice_.client.specs.rules.append(text)


def record_rule(description: str, id: str | None = None) -> Rule:
    ctx = current_context()
    if not ctx.spec_open:
        raise DSLError("No active spec context. Use rule() inside specs().")
    if ctx.target != "server":
        raise DSLError("rule() can only be used inside server()")
    rule = Rule(description=description, id=id)
    current_slice().server.specs.rules.append(rule)
    ctx.rule = rule
    ctx.example = None
    return rule


def record_example(description: str) -> Example:
    ctx = current_context()
    if ctx.rule is None:
        raise DSLError("No active rule context. Use example() inside rule().")
    example = Example(description=description)
    ctx.rule.examples.append(example)
    ctx.example = example
    return example


# =============================================================================
# Message payloads
# =============================================================================


def ensure_message_format(item: Any) -> tuple[str, dict[str, Any]]:
    """
    Split an example payload into ``(type, data)``.

    - ``{"type": "X", "data": {...}}`` is an envelope
    - ``{"type": "X", ...}`` carries the type next to the data
    - anything else is untyped data (type ``InferredType``)

    Raises:
        DSLError: If the payload is not a dict
    """
    if not isinstance(item, dict):
        raise DSLError(f"Invalid message format: expected a dict, got {type(item).__name__}")
    kind = item.get("type")
    if isinstance(kind, str):
        if isinstance(item.get("data"), dict):
            return kind, item["data"]
        if "__messageCategory" in item:
            return kind, {k: v for k, v in item.items() if k not in ("type", "__messageCategory")}
        return kind, {k: v for k, v in item.items() if k != "type"}
    return INFERRED_TYPE, item


def _ref(ref_key: str, name: str, data: dict[str, Any]) -> MessageRef:
    return MessageRef(**{ref_key: name, "example_data": data})


def _typed_or_inferred(item: Any, name: str | None) -> tuple[str, dict[str, Any]]:
    kind, data = ensure_message_format(item)
    return (name or kind), data


def given_ref(item: Any, name: str | None = None, kind: str | None = None) -> MessageRef:
    """Given items: explicit kinds pick the ref key, everything else is an event."""
    ref_name, data = _typed_or_inferred(item, name)
    return _ref(REF_FOR_KIND.get(kind or "event", "event_ref"), ref_name, data)


def outcome(item: Any, slice_kind: str, name: str | None = None) -> MessageRef | ErrorOutcome:
    """Then items: an error outcome, else a ref keyed by the slice kind."""
    ref_name, data = _typed_or_inferred(item, name)
    if ref_name == "Error" or "errorType" in data:
        return ErrorOutcome(
            error_type=ErrorType(data.get("errorType") or ErrorType.ILLEGAL_STATE),
            message=data.get("message"),
        )
    ref_key = {"command": "event_ref", "query": "state_ref", "react": "command_ref"}.get(slice_kind, "event_ref")
    return _ref(ref_key, ref_name, data)


def record_given(items: list[Any], name: str | None = None, kind: str | None = None, append: bool = False) -> None:
    _, example = current_example()
    refs = [given_ref(item, name, kind) for item in items]
    if append and example.given:
        example.given.extend(refs)
    else:
        example.given = refs


def record_when(data: Any, name: str | None = None, append: bool = False) -> None:
    slice_, example = current_example()
    as_array = slice_.type == "react" or (slice_.type == "query" and isinstance(data, list))
    if as_array or append:
        items = data if isinstance(data, list) else [data]
        refs = [_ref("event_ref", *_typed_or_inferred(item, name)) for item in items]
        if append:
            existing = example.when if isinstance(example.when, list) else ([example.when] if example.when else [])
            example.when = existing + refs
        else:
            example.when = refs
        return
    if isinstance(data, list):
        if len(data) != 1:
            raise DSLError(f"{slice_.type.capitalize()} slice '{slice_.name}' takes a single when() message")
        data = data[0]
    example.when = _ref("command_ref", *_typed_or_inferred(data, name))


def record_then(items: list[Any], name: str | None = None, append: bool = False) -> None:
    slice_, example = current_example()
    outcomes = [outcome(item, slice_.type, name) for item in items]
    if append:
        example.then.extend(outcomes)
    else:
        example.then = outcomes


# =============================================================================
# Data items
# =============================================================================


def set_slice_data(items: list[DataSink | DataSource]) -> None:
    """
    Attach data items to the current slice's server block.

    Command slices keep sinks, query slices keep sources, react slices keep both.

    Raises:
        DSLError: If a query slice is given a sink
    """
    slice_ = current_slice()
    sinks = [i for i in items if isinstance(i, DataSink)]
    sources = [i for i in items if isinstance(i, DataSource)]
    if isinstance(slice_, QuerySlice):
        if sinks:
            raise make_dsl_error(
                "Query slices cannot have data sinks, only sources", file=current_registry().current_module
            )
        slice_.server.data = sources or None
    elif isinstance(slice_, CommandSlice):
        slice_.server.data = sinks or None
    else:
        slice_.server.data = list(items) or None
