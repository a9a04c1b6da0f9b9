"""
Flow-level DSL functions: flow, slices, client/server blocks, specs, rules,
examples and data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..core.model import DataSink, DataSource, Flow, SliceKind
from . import context
from .builders import ExampleBuilder, SliceBuilder
from .data_flow import DataItemBuilder

logger = logging.getLogger(__name__)


@contextmanager
def flow(name: str, id: str | None = None) -> Iterator[Flow]:
    """
    Declare a flow; it is registered when the block exits.

    A block that raises is not registered.
    """
    logger.debug("Starting flow definition: %s", name)
    ctx = context.start_flow(name, id)
    try:
        yield ctx.flow
    except BaseException:
        context.abandon_flow()
        raise
    context.finish_flow()


def command(name: str, id: str | None = None) -> SliceBuilder:
    return SliceBuilder(SliceKind.COMMAND, name, id)


def query(name: str, id: str | None = None) -> SliceBuilder:
    return SliceBuilder(SliceKind.QUERY, name, id)


def react(name: str, id: str | None = None) -> SliceBuilder:
    return SliceBuilder(SliceKind.REACT, name, id)


@contextmanager
def client(description: str = "") -> Iterator[None]:
    context.start_client_block(description)
    try:
        yield
    finally:
        context.end_block()


@contextmanager
def server(description: str = "") -> Iterator[None]:
    context.start_server_block(description)
    try:
        yield
    finally:
        context.end_block()


@contextmanager
def specs(name: str = "") -> Iterator[None]:
    context.push_spec(name)
    yield


def should(text: str) -> None:
    context.record_should(text)


@contextmanager
def rule(description: str, id: str | None = None) -> Iterator[None]:
    context.record_rule(description, id)
    yield


def example(description: str) -> ExampleBuilder:
    return ExampleBuilder(description)


def data(items: list[DataItemBuilder | DataSink | DataSource]) -> None:
    """
    Attach data sinks/sources to the current slice.

    Raises:
        DSLError: If a query slice is given a sink
    """
    context.set_slice_data([item.build() if isinstance(item, DataItemBuilder) else item for item in items])
