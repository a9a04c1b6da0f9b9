"""
Small AST construction helpers shared by the generators.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

_NON_IDENT = re.compile(r"\W+")


def name(id: str) -> ast.Name:
    return ast.Name(id=id, ctx=ast.Load())


def const(value: Any) -> ast.Constant:
    return ast.Constant(value=value)


def call(func: str | ast.expr, *args: ast.expr, **kwargs: ast.expr) -> ast.Call:
    target = name(func) if isinstance(func, str) else func
    return ast.Call(
        func=target,
        args=list(args),
        keywords=[ast.keyword(arg=k, value=v) for k, v in kwargs.items()],
    )


def method(receiver: ast.expr, attr: str, *args: ast.expr) -> ast.Call:
    return ast.Call(func=ast.Attribute(value=receiver, attr=attr, ctx=ast.Load()), args=list(args), keywords=[])


def subscript(value: ast.expr, *items: ast.expr) -> ast.Subscript:
    sl = items[0] if len(items) == 1 else ast.Tuple(elts=list(items), ctx=ast.Load())
    return ast.Subscript(value=value, slice=sl, ctx=ast.Load())


def with_block(context: ast.expr, body: list[ast.stmt]) -> ast.With:
    return ast.With(items=[ast.withitem(context_expr=context)], body=body or [ast.Pass()])


def expr_stmt(value: ast.expr) -> ast.Expr:
    return ast.Expr(value=value)


def assign(target: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[ast.Name(id=target, ctx=ast.Store())], value=value)


def identifier(text: str) -> str:
    """A Python identifier for ``text`` (``"order-service"`` -> ``OrderService``)."""
    if text.isidentifier():
        return text
    parts = [p for p in _NON_IDENT.split(text) if p]
    ident = "".join(p[:1].upper() + p[1:] for p in parts) or "_"
    return f"_{ident}" if ident[0].isdigit() else ident


def value_to_expr(value: Any) -> ast.expr:
    """
    Literal expression for example data.

    ``datetime`` values become ``datetime(...)`` calls; anything else that
    is not JSON-like is emitted as its string form.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return const(value)
    if isinstance(value, datetime):
        parts = [value.year, value.month, value.day, value.hour, value.minute, value.second]
        if value.microsecond:
            parts.append(value.microsecond)
        while len(parts) > 3 and parts[-1] == 0:
            parts.pop()
        return call("datetime", *(const(p) for p in parts))
    if isinstance(value, date):
        return call("datetime", const(value.year), const(value.month), const(value.day))
    if isinstance(value, Mapping):
        return ast.Dict(keys=[const(str(k)) for k in value], values=[value_to_expr(v) for v in value.values()])
    if isinstance(value, (list, tuple)):
        return ast.List(elts=[value_to_expr(v) for v in value], ctx=ast.Load())
    return const(str(value))
