"""
Usage analysis over generated source.

The generator emits a preliminary file declaring every message and
integration, then re-parses it here to find which of them the flow blocks
actually reference.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass
class UsageAnalysis:
    types: set[str] = field(default_factory=set)
    integrations: set[str] = field(default_factory=set)
    functions: set[str] = field(default_factory=set)


def _is_flow_block(stmt: ast.stmt) -> bool:
    if not isinstance(stmt, ast.With) or not stmt.items:
        return False
    expr = stmt.items[0].context_expr
    return isinstance(expr, ast.Call) and isinstance(expr.func, ast.Name) and expr.func.id == "flow"


def flow_statements(tree: ast.Module) -> list[ast.stmt]:
    """Top-level ``with flow(...)`` blocks; declarations and imports are skipped."""
    return [stmt for stmt in tree.body if _is_flow_block(stmt)]


def analyze_code_usage(
    code: str,
    type_names: Iterable[str],
    integration_names: Iterable[str],
    function_names: Iterable[str],
) -> UsageAnalysis:
    """
    Find which declared names the flow blocks of ``code`` reference.

    Raises:
        SyntaxError: If ``code`` cannot be parsed
    """
    tree = ast.parse(code)
    referenced: set[str] = set()
    for stmt in flow_statements(tree):
        for node in ast.walk(stmt):
            if isinstance(node, ast.Name):
                referenced.add(node.id)
    return UsageAnalysis(
        types=referenced & set(type_names),
        integrations=referenced & set(integration_names),
        functions=referenced & set(function_names),
    )
