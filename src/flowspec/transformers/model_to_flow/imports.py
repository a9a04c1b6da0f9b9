"""
Import statements for generated flow files.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable, Mapping

DSL_FUNCTIONS = (
    "client",
    "command",
    "data",
    "example",
    "flow",
    "gql",
    "query",
    "react",
    "rule",
    "server",
    "should",
    "sink",
    "source",
    "specs",
)
MARKERS = ("Command", "Event", "State")
TYPING_NAMES = ("Any", "Literal", "NotRequired")


def _import_from(module: str, names: Iterable[str]) -> ast.ImportFrom:
    return ast.ImportFrom(module=module, names=[ast.alias(name=n) for n in sorted(set(names))], level=0)


def names_in(statements: Iterable[ast.stmt]) -> set[str]:
    found: set[str] = set()
    for stmt in statements:
        for node in ast.walk(stmt):
            if isinstance(node, ast.Name):
                found.add(node.id)
    return found


def build_imports(
    body: list[ast.stmt],
    flow_import: str,
    integration_sources: Mapping[str, str],
    integration_import: str | None = None,
) -> list[ast.stmt]:
    """
    Imports for ``body``: stdlib first, then the DSL, then integrations.

    Args:
        body: Declarations and flow blocks of the file
        flow_import: Module the DSL names are imported from
        integration_sources: Integration identifier -> module it lives in
        integration_import: Single module to import every integration from
    """
    used = names_in(body)
    imports: list[ast.stmt] = []

    if "datetime" in used:
        imports.append(_import_from("datetime", ["datetime"]))
    typing_names = [n for n in TYPING_NAMES if n in used]
    if typing_names:
        imports.append(_import_from("typing", typing_names))

    dsl_names = [n for n in (*MARKERS, *DSL_FUNCTIONS) if n in used]
    if dsl_names:
        imports.append(_import_from(flow_import, dsl_names))

    by_module: dict[str, list[str]] = {}
    for ident, source in integration_sources.items():
        if ident in used:
            by_module.setdefault(integration_import or source, []).append(ident)
    for module in sorted(by_module):
        imports.append(_import_from(module, by_module[module]))
    return imports
