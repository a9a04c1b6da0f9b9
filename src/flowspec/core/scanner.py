"""
Static import scanner.

Lists every import specifier a module references so the graph builder can
resolve them ahead of execution:

- ``import a.b.c``            -> ``a``, ``a.b``, ``a.b.c``
- ``from .pkg import x, y``   -> ``.pkg`` plus optional candidates ``.pkg.x``, ``.pkg.y``
- ``importlib.import_module("m")`` / ``import_module("m")`` / ``__import__("m")``

Names imported with ``from`` may be submodules or plain attributes, so they
are reported as optional candidates: the graph builder keeps a candidate only when it
resolves to a file in the virtual tree.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, replace

from .paths import specifier_for, submodule_specifier

DYNAMIC_IMPORT_FUNCS = frozenset({"import_module", "__import__"})


@dataclass(frozen=True)
class ImportRef:
    """A specifier found in source; ``optional`` marks from-import candidates."""

    spec: str
    optional: bool = False
    line: int = 1
    column: int = 1


def _dotted_prefixes(name: str) -> list[str]:
    parts = name.split(".")
    return [".".join(parts[: i + 1]) for i in range(len(parts))]


def _dynamic_specifier(node: ast.Call) -> str | None:
    func = node.func
    if isinstance(func, ast.Attribute):
        name = func.attr
    elif isinstance(func, ast.Name):
        name = func.id
    else:
        return None
    if name not in DYNAMIC_IMPORT_FUNCS or not node.args:
        return None
    first = node.args[0]
    if isinstance(first, ast.Constant) and isinstance(first.value, str):
        return first.value
    return None


class ImportScanner(ast.NodeVisitor):
    """Collects import references in source order."""

    def __init__(self) -> None:
        self.refs: list[ImportRef] = []
        self._seen: dict[str, int] = {}

    def _add(self, spec: str, node: ast.stmt | ast.expr, optional: bool = False) -> None:
        if not spec:
            return
        idx = self._seen.get(spec)
        if idx is None:
            self._seen[spec] = len(self.refs)
            self.refs.append(ImportRef(spec, optional, node.lineno, node.col_offset + 1))
        elif self.refs[idx].optional and not optional:
            # A hard import wins over an earlier candidate of the same name
            self.refs[idx] = replace(self.refs[idx], optional=False)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            for prefix in _dotted_prefixes(alias.name):
                self._add(prefix, node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        spec = specifier_for(node.level, node.module)
        if node.level == 0 and node.module:
            for prefix in _dotted_prefixes(node.module):
                self._add(prefix, node)
        else:
            self._add(spec, node)
        for alias in node.names:
            if alias.name != "*":
                self._add(submodule_specifier(spec, alias.name), node, optional=True)

    def visit_Call(self, node: ast.Call) -> None:
        spec = _dynamic_specifier(node)
        if spec is not None:
            self._add(spec, node)
        self.generic_visit(node)


def _scan(source: str | ast.Module, filename: str) -> list[ImportRef]:
    tree = ast.parse(source, filename=filename) if isinstance(source, str) else source
    scanner = ImportScanner()
    scanner.visit(tree)
    return scanner.refs


def parse_import_refs(source: str | ast.Module, filename: str = "<flow>") -> list[ImportRef]:
    """Return import references including optional from-import candidates."""
    return _scan(source, filename)


def parse_imports(source: str | ast.Module, filename: str = "<flow>") -> list[str]:
    """
    Return every import specifier referenced by a module.

    Static imports, relative imports and literal dynamic imports are listed
    in source order without duplicates. From-import candidates are not included.

    Raises:
        SyntaxError: If the source cannot be parsed
    """
    return [ref.spec for ref in _scan(source, filename) if not ref.optional]
