"""
Flow statements: one ``with flow(...)`` block per flow.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Mapping
from typing import Any

from ...core.model import (
    ApiOrigin,
    DatabaseDestination,
    DatabaseOrigin,
    DataSink,
    DataSource,
    Flow,
    IntegrationDestination,
    IntegrationOrigin,
    ProjectionOrigin,
    ReadModelOrigin,
    StreamDestination,
    TargetType,
    TopicDestination,
)
from .emit import call, const, expr_stmt, identifier, method, name, value_to_expr, with_block
from .gwt import rule_block

_RETRIES = re.compile(r"^retries: (\d+)$")


# =============================================================================
# Data items
# =============================================================================


def _systems(systems: list[str]) -> list[ast.expr]:
    return [name(identifier(s)) for s in systems]


def source_expr(item: DataSource) -> ast.expr:
    expr = method(call("source"), "state", const(item.target.name))
    origin = item.origin
    if isinstance(origin, ProjectionOrigin):
        expr = method(expr, "from_projection", const(origin.name), const(origin.id_field))
    elif isinstance(origin, ReadModelOrigin):
        expr = method(expr, "from_read_model", const(origin.name))
    elif isinstance(origin, DatabaseOrigin):
        args = [const(origin.collection)]
        if origin.query is not None:
            args.append(value_to_expr(origin.query))
        expr = method(expr, "from_database", *args)
    elif isinstance(origin, ApiOrigin):
        args = [const(origin.endpoint)]
        if origin.method:
            args.append(const(origin.method))
        expr = method(expr, "from_api", *args)
    elif isinstance(origin, IntegrationOrigin):
        expr = method(expr, "from_integration", *_systems(origin.systems))
    return _item_options(expr, item)


def sink_expr(item: DataSink) -> ast.expr:
    target = item.target
    if target.type == TargetType.COMMAND:
        args = [const(target.name)]
        if target.fields:
            args.append(value_to_expr(target.fields))
        expr = method(call("sink"), "command", *args)
    else:
        expr = method(call("sink"), target.type.value, const(target.name))

    destination = item.destination
    if isinstance(destination, StreamDestination):
        expr = method(expr, "to_stream", const(destination.pattern))
    elif isinstance(destination, DatabaseDestination):
        expr = method(expr, "to_database", const(destination.collection))
    elif isinstance(destination, TopicDestination):
        expr = method(expr, "to_topic", const(destination.name))
    elif isinstance(destination, IntegrationDestination):
        args = _systems(destination.systems)
        if destination.message is not None and target.type == TargetType.COMMAND:
            args = args[:1] + [const(destination.message.name), const(destination.message.type)]
        expr = method(expr, "to_integration", *args)

    if item.with_state is not None:
        expr = method(expr, "with_state", source_expr(item.with_state))
    return _item_options(expr, item)


def _item_options(expr: ast.expr, item: DataSink | DataSource) -> ast.expr:
    if item.transform:
        expr = method(expr, "transform", const(item.transform))
    if item.additional_instructions:
        expr = method(expr, "additional_instructions", const(item.additional_instructions))
    return expr


def data_stmt(items: list[Any]) -> ast.stmt:
    exprs = [sink_expr(i) if isinstance(i, DataSink) else source_expr(i) for i in items]
    return expr_stmt(call("data", ast.List(elts=exprs, ctx=ast.Load())))


# =============================================================================
# Slices
# =============================================================================


def _slice_header(slice_: Any) -> ast.expr:
    kwargs = {"id": const(slice_.id)} if slice_.id else {}
    expr: ast.expr = call(slice_.type, const(slice_.name), **kwargs)
    if slice_.description:
        expr = method(expr, "description", const(slice_.description))
    if slice_.stream:
        expr = method(expr, "stream", const(slice_.stream))
    if slice_.via:
        expr = method(expr, "via", *_systems(slice_.via))
    if slice_.additional_instructions:
        retries = _RETRIES.match(slice_.additional_instructions)
        if retries:
            expr = method(expr, "retries", const(int(retries.group(1))))
        else:
            expr = method(expr, "additional_instructions", const(slice_.additional_instructions))
    request = getattr(slice_, "request", None)
    if request:
        expr = method(expr, "request", call("gql", const(request)))
    return expr


def _client_block(client: Any) -> ast.stmt | None:
    if client.specs is None and not client.description:
        return None
    body: list[ast.stmt] = []
    if client.specs is not None:
        shoulds = [expr_stmt(call("should", const(text))) for text in client.specs.rules]
        body.append(with_block(call("specs", const(client.specs.name)), shoulds))
    args = [const(client.description)] if client.description else []
    return with_block(call("client", *args), body)


def _server_block(server: Any, idents: Mapping[str, str]) -> ast.stmt | None:
    spec = server.specs
    if not (server.description or server.data or spec.name or spec.rules):
        return None
    body: list[ast.stmt] = []
    if server.data:
        body.append(data_stmt(server.data))
    if spec.name or spec.rules:
        rules = [rule_block(r, idents) for r in spec.rules]
        body.append(with_block(call("specs", const(spec.name)), rules))
    args = [const(server.description)] if server.description else []
    return with_block(call("server", *args), body)


def slice_block(slice_: Any, idents: Mapping[str, str]) -> ast.With:
    body: list[ast.stmt] = []
    client = getattr(slice_, "client", None)
    if client is not None:
        block = _client_block(client)
        if block is not None:
            body.append(block)
    server = _server_block(slice_.server, idents)
    if server is not None:
        body.append(server)
    return with_block(_slice_header(slice_), body)


def flow_block(flow: Flow, idents: Mapping[str, str]) -> ast.With:
    kwargs = {"id": const(flow.id)} if flow.id else {}
    return with_block(call("flow", const(flow.name), **kwargs), [slice_block(s, idents) for s in flow.slices])
