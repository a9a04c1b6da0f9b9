"""
Flow discovery and build caching.

``get_flows`` finds the flow entry files under a root, executes the graph
they reach and returns what the run registered. Results are cached per
``cache_key`` and reused while no reachable file changes.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .core import paths
from .core.errors import ConfigError, FlowSpecError
from .core.manifest import DEFAULT_PATTERN
from .core.model import Flow, Model
from .core.type_extractor import DataField, TypeInfo
from .core.vfs import FileStore
from .loader import ExecuteResult, execute_graph
from .transformers import flows_to_model

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset(
    {
        "__pycache__",
        ".venv",
        "venv",
        ".git",
        "node_modules",
        "build",
        "dist",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
    }
)


@dataclass
class FlowsResult:
    """Flows captured from one build plus everything needed to transform them."""

    flows: list[Flow]
    vfs_files: list[str]
    externals: list[str]
    types_by_file: dict[str, dict[str, TypeInfo]] = field(default_factory=dict)
    type_map: dict[str, str] = field(default_factory=dict)
    integrations: list[Any] = field(default_factory=list)
    export_names: dict[str, str] = field(default_factory=dict)
    integration_sources: dict[str, str] = field(default_factory=dict)
    shapes: dict[str, list[DataField]] = field(default_factory=dict)

    @classmethod
    def from_execution(cls, result: ExecuteResult) -> FlowsResult:
        registry = result.registry
        return cls(
            flows=registry.get_all_flows(),
            vfs_files=result.vfs_files,
            externals=result.externals,
            types_by_file=result.build.types_by_file,
            type_map=result.build.type_map,
            integrations=list(registry.integrations),
            export_names=dict(registry.export_names),
            integration_sources=dict(registry.integration_sources),
            shapes=result.build.shapes,
        )

    def to_model(self) -> Model:
        return flows_to_model(
            self.flows,
            types_by_file=self.types_by_file,
            integrations=self.integrations,
            export_names=self.export_names,
            integration_sources=self.integration_sources,
            shapes=self.shapes,
        )


@dataclass
class _CacheEntry:
    entries: list[str]
    import_map_id: int | None
    digests: dict[str, str | None]
    result: FlowsResult


_cache: dict[str, _CacheEntry] = {}


def clear_get_flows_cache() -> None:
    _cache.clear()


# =============================================================================
# Discovery
# =============================================================================


def _is_ignored(path: str, root: str, ignore_dirs: frozenset[str]) -> bool:
    relative = path[len(root) :] if path.startswith(root) else path
    return any(part in ignore_dirs for part in relative.split("/")[:-1])


async def discover_entries(
    vfs: FileStore,
    root: str,
    pattern: str = DEFAULT_PATTERN,
    ignore_dirs: Iterable[str] = (),
) -> list[str]:
    """
    Sorted entry files under ``root`` whose path matches ``pattern``.

    Raises:
        ConfigError: If ``pattern`` is not a valid regular expression
    """
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid discovery pattern {pattern!r}: {e}") from e
    root = paths.normalize(root)
    ignored = IGNORED_DIRS | frozenset(ignore_dirs)
    entries = [
        entry.path
        for entry in await vfs.list_tree(root)
        if entry.type == "file" and regex.search(entry.path) and not _is_ignored(entry.path, root, ignored)
    ]
    return sorted(entries)


# =============================================================================
# Caching
# =============================================================================


async def _digest(vfs: FileStore, path: str) -> str | None:
    data = await vfs.read(path)
    return hashlib.sha256(data).hexdigest() if data is not None else None


def _tracked_files(result: ExecuteResult) -> list[str]:
    """Reachable files plus relative targets that were missing when the graph was built."""
    tracked = set(result.vfs_files)
    for node in result.graph.values():
        for target in node.resolved.values():
            if target.kind == "vfs" and target.path:
                tracked.add(target.path)
    return sorted(tracked)


async def _is_fresh(vfs: FileStore, entry: _CacheEntry, entries: list[str], import_map: Any) -> bool:
    if entry.entries != entries:
        return False
    if entry.import_map_id != (id(import_map) if import_map is not None else None):
        return False
    for path, digest in entry.digests.items():
        if await _digest(vfs, path) != digest:
            return False
    return True


# =============================================================================
# Entry point
# =============================================================================


async def get_flows(
    vfs: FileStore,
    root: str,
    pattern: str = DEFAULT_PATTERN,
    import_map: Mapping[str, Any] | None = None,
    cache_key: str | None = None,
    ignore_dirs: Iterable[str] = (),
) -> FlowsResult:
    """
    Discover, build and run the flow files under ``root``.

    Args:
        vfs: File store holding the sources
        root: Discovery root (absolute graph path)
        pattern: Regular expression selecting entry files
        import_map: Specifier -> module overrides
        cache_key: Reuse the previous result for this key while no reachable
            file, entry or import map changed
        ignore_dirs: Directory names skipped in addition to the defaults

    Raises:
        FlowSpecError: If no entry file matches
        GraphError: If a module is not in the graph or an external cannot be loaded
    """
    entries = await discover_entries(vfs, root, pattern, ignore_dirs)
    logger.debug("Discovered %d flow files under %s", len(entries), root)
    if not entries:
        raise FlowSpecError(f"No flow files found under {root} matching {pattern}")

    if cache_key is not None:
        cached = _cache.get(cache_key)
        if cached is not None and await _is_fresh(vfs, cached, entries, import_map):
            logger.debug("get_flows cache hit: %s", cache_key)
            return cached.result

    executed = await execute_graph(entries, vfs, import_map, root_dir=root)
    result = FlowsResult.from_execution(executed)

    if cache_key is not None:
        _cache[cache_key] = _CacheEntry(
            entries=entries,
            import_map_id=id(import_map) if import_map is not None else None,
            digests={path: await _digest(vfs, path) for path in _tracked_files(executed)},
            result=result,
        )
    return result
