"""
Module graph builder.

Starting from the entry files, every reachable module in the virtual tree is
read, parsed, scanned for imports and compiled. Type declarations are
extracted on the way so the transformer can resolve example references
without re-reading any file.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import CodeType
from typing import Any

from ..core import paths
from ..core.scanner import parse_import_refs
from ..core.type_extractor import DataField, TypeInfo, parse_shape_definitions, parse_type_definitions
from ..core.vfs import FileStore
from .resolver import Resolved, resolve_specifier

logger = logging.getLogger(__name__)


@dataclass
class ModuleNode:
    """
    One compiled module.

    Attributes:
        path: Absolute graph path
        code: Compiled module body
        imports: Specifiers in source order
        resolved: Specifier -> resolution target
        locations: Specifier -> (line, column) of the import
    """

    path: str
    code: CodeType
    imports: list[str]
    resolved: dict[str, Resolved]
    locations: dict[str, tuple[int, int]] = field(default_factory=dict)


Graph = dict[str, ModuleNode]


@dataclass
class BuildGraphResult:
    graph: Graph
    vfs_files: list[str]
    externals: list[str]
    import_map: dict[str, Any]
    types_by_file: dict[str, dict[str, TypeInfo]] = field(default_factory=dict)
    type_map: dict[str, str] = field(default_factory=dict)
    shapes: dict[str, list[DataField]] = field(default_factory=dict)


def search_roots_for(root_dir: str) -> list[str]:
    """Directories absolute specifiers are looked up under."""
    root = paths.normalize(root_dir)
    parent = paths.dirname(root)
    return [root] if parent == root else [root, parent]


def transpile(source: str | ast.Module, path: str) -> CodeType:
    """
    Compile a module body for the sandbox.

    Raises:
        SyntaxError: If the source is malformed
    """
    return compile(source, path, "exec", dont_inherit=True)


async def build_graph(
    entry_files: list[str],
    vfs: FileStore,
    import_map: Mapping[str, Any],
    root_dir: str,
) -> BuildGraphResult:
    """
    Build the graph of every module reachable from ``entry_files``.

    Files missing from the store are skipped; running a module that imports
    one fails with a "not in graph" error.

    Raises:
        SyntaxError: If a reachable file cannot be parsed
    """
    graph: Graph = {}
    visited: set[str] = set()
    externals: set[str] = set()
    types_by_file: dict[str, dict[str, TypeInfo]] = {}
    type_map: dict[str, str] = {}
    shapes: dict[str, list[DataField]] = {}
    roots = search_roots_for(root_dir)

    async def process_imports(tree: ast.Module, path: str) -> ModuleNode:
        node = ModuleNode(path=path, code=transpile(tree, path), imports=[], resolved={})
        for ref in parse_import_refs(tree, path):
            target = await resolve_specifier(vfs, ref.spec, path, import_map, roots)
            if ref.optional and (target.kind != "vfs" or target.missing):
                continue
            node.imports.append(ref.spec)
            node.resolved[ref.spec] = target
            node.locations[ref.spec] = (ref.line, ref.column)
            if target.kind == "vfs":
                await build_rec(target.path or "")
            elif target.kind == "external":
                externals.add(ref.spec)
        return node

    async def build_rec(abs_path: str) -> None:
        path = paths.normalize(abs_path)
        if path in visited:
            return
        visited.add(path)

        data = await vfs.read(path)
        if data is None:
            logger.debug("Missing in file store: %s", path)
            return

        source = data.decode("utf-8")
        tree = ast.parse(source, filename=path)

        file_types = parse_type_definitions(tree, path)
        types_by_file[path] = file_types
        for info in file_types.values():
            type_map[info.declared_name or info.string_literal] = info.string_literal
        shapes.update(parse_shape_definitions(tree, path))

        graph[path] = await process_imports(tree, path)

    for entry in entry_files:
        await build_rec(entry)

    result = BuildGraphResult(
        graph=graph,
        vfs_files=sorted(graph),
        externals=sorted(externals),
        import_map=dict(import_map),
        types_by_file=types_by_file,
        type_map=type_map,
        shapes=shapes,
    )
    logger.debug("Graph built: modules=%d externals=%d", len(graph), len(externals))
    return result
