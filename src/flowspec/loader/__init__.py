"""
Module graph loader: build, auto-map externals, run.

``execute_graph`` is a generic "run this graph" primitive. It knows nothing
about flows; the DSL calls made by the executed files populate the registry.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..core.vfs import FileStore
from ..dsl.registry import Registry
from .graph import BuildGraphResult, Graph, ModuleNode, build_graph, transpile
from .importmap import create_enhanced_import_map
from .resolver import Resolved, resolve_specifier
from .runtime import GraphRuntime, run_graph

logger = logging.getLogger(__name__)


@dataclass
class ExecuteResult:
    build: BuildGraphResult
    registry: Registry
    flows_count: int
    integrations_count: int
    auto_mapped: list[str]

    @property
    def graph(self) -> Graph:
        return self.build.graph

    @property
    def vfs_files(self) -> list[str]:
        return self.build.vfs_files

    @property
    def externals(self) -> list[str]:
        return self.build.externals


def _auto_map(externals: list[str], enhanced: Mapping[str, Any]) -> dict[str, Any]:
    mapped: dict[str, Any] = {}
    for spec in externals:
        if spec in enhanced:
            continue
        try:
            mapped[spec] = importlib.import_module(spec)
        except ImportError as e:
            # Left external; running the importer reports it
            logger.debug("Could not auto-map %s: %s", spec, e)
            continue
        logger.debug("Auto-mapped external: %s", spec)
    return mapped


async def execute_graph(
    entry_files: list[str],
    vfs: FileStore,
    import_map: Mapping[str, Any] | None = None,
    root_dir: str = "/",
    registry: Registry | None = None,
) -> ExecuteResult:
    """
    Build the graph, auto-map externals, run the entry files.

    A fresh registry is used unless one is supplied.

    Raises:
        GraphError: If a module is not in the graph or an external cannot be loaded
        SyntaxError: If a reachable file cannot be parsed
    """
    registry = registry if registry is not None else Registry()
    enhanced = create_enhanced_import_map(import_map)

    first = await build_graph(entry_files, vfs, enhanced, root_dir)

    auto_mapped = _auto_map(first.externals, enhanced)
    if auto_mapped:
        enhanced = {**enhanced, **auto_mapped}
        final = await build_graph(entry_files, vfs, enhanced, root_dir)
    else:
        final = first

    run_graph(entry_files, final.graph, registry, root_dir)

    result = ExecuteResult(
        build=final,
        registry=registry,
        flows_count=len(registry.flows),
        integrations_count=len(registry.integrations),
        auto_mapped=sorted(auto_mapped),
    )
    logger.debug(
        "execute_graph done. modules=%d flows=%d integrations=%d externals=%d automapped=%d",
        len(final.graph),
        result.flows_count,
        result.integrations_count,
        len(final.externals),
        len(auto_mapped),
    )
    return result


__all__ = [
    "BuildGraphResult",
    "ExecuteResult",
    "Graph",
    "GraphRuntime",
    "ModuleNode",
    "Resolved",
    "build_graph",
    "create_enhanced_import_map",
    "execute_graph",
    "resolve_specifier",
    "run_graph",
    "transpile",
]
