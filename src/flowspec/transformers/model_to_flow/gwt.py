"""
Given/When/Then chains.

Each example becomes one expression statement::

    example("adds an item").given[ItemList]({...}).when[AddItem]({...}).then[ItemAdded]({...})

Additional given and then items chain with ``.and_[T](...)``.
"""

from __future__ import annotations

import ast
from collections.abc import Mapping
from typing import Any

from ...core.model import ErrorOutcome, Example, MessageRef, Rule
from .emit import call, const, expr_stmt, name, value_to_expr, with_block

DEFAULT_RULE_DESCRIPTION = "Generated rule description"
DEFAULT_EXAMPLE_DESCRIPTION = "Generated example description"


def _step(chain: ast.expr, attr: str, type_ident: str | None, data: ast.expr) -> ast.Call:
    func: ast.expr = ast.Attribute(value=chain, attr=attr, ctx=ast.Load())
    if type_ident is not None:
        func = ast.Subscript(value=func, slice=name(type_ident), ctx=ast.Load())
    return ast.Call(func=func, args=[data], keywords=[])


def _ref_step(chain: ast.expr, attr: str, ref: MessageRef, idents: Mapping[str, str], as_list: bool = False) -> ast.Call:
    data = value_to_expr(ref.example_data)
    if as_list:
        data = ast.List(elts=[data], ctx=ast.Load())
    return _step(chain, attr, idents.get(ref.name), data)


def _error_data(outcome: ErrorOutcome) -> ast.expr:
    data: dict[str, Any] = {"errorType": outcome.error_type.value}
    if outcome.message is not None:
        data["message"] = outcome.message
    return value_to_expr(data)


def example_chain(example: Example, idents: Mapping[str, str]) -> ast.expr:
    chain: ast.expr = call("example", const(example.description or DEFAULT_EXAMPLE_DESCRIPTION))

    for i, ref in enumerate(example.given or []):
        chain = _ref_step(chain, "given" if i == 0 else "and_", ref, idents)

    if isinstance(example.when, list):
        for i, ref in enumerate(example.when):
            if i == 0:
                chain = _ref_step(chain, "when", ref, idents, as_list=True)
            else:
                chain = _ref_step(chain, "and_", ref, idents)
    elif example.when is not None:
        chain = _ref_step(chain, "when", example.when, idents)

    for i, item in enumerate(example.then):
        attr = "then" if i == 0 else "and_"
        if isinstance(item, ErrorOutcome):
            chain = _step(chain, attr, None, _error_data(item))
        else:
            chain = _ref_step(chain, attr, item, idents)
    return chain


def rule_block(rule: Rule, idents: Mapping[str, str]) -> ast.With:
    args: list[ast.expr] = [const(rule.description or DEFAULT_RULE_DESCRIPTION)]
    kwargs = {"id": const(rule.id)} if rule.id else {}
    body: list[ast.stmt] = [expr_stmt(example_chain(e, idents)) for e in rule.examples]
    return with_block(call("rule", *args, **kwargs), body)
