"""
Specifier resolution for the module graph.

Order per specifier:

1. the import map (caller-supplied overrides)
2. a file (or package directory) in the virtual tree
3. otherwise ``external``: left to the host interpreter at run time
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from ..core import paths
from ..core.vfs import FileStore

logger = logging.getLogger(__name__)

ResolvedKind = Literal["vfs", "mapped", "external", "namespace"]


@dataclass(frozen=True)
class Resolved:
    """
    Where a specifier points.

    Attributes:
        kind: vfs, mapped, external or namespace
        spec: The specifier as written in source
        path: Graph path for vfs targets, directory for namespace targets
        value: The mapped object for mapped targets
        missing: True for a relative vfs target with no file behind it
    """

    kind: ResolvedKind
    spec: str
    path: str | None = None
    value: Any = None
    missing: bool = False

    @classmethod
    def vfs(cls, spec: str, path: str, missing: bool = False) -> Resolved:
        return cls("vfs", spec, path=path, missing=missing)

    @classmethod
    def mapped(cls, spec: str, value: Any) -> Resolved:
        return cls("mapped", spec, value=value)

    @classmethod
    def external(cls, spec: str) -> Resolved:
        return cls("external", spec)

    @classmethod
    def namespace(cls, spec: str, path: str) -> Resolved:
        return cls("namespace", spec, path=path)


async def _first_existing(vfs: FileStore, base: str) -> str | None:
    for candidate in paths.candidates(base):
        if await vfs.read(candidate) is not None:
            return candidate
    return None


async def _has_children(vfs: FileStore, directory: str) -> bool:
    return any(entry.type == "file" for entry in await vfs.list_tree(directory))


async def resolve_specifier(
    vfs: FileStore,
    spec: str,
    importer: str,
    import_map: Mapping[str, Any],
    search_roots: Sequence[str],
) -> Resolved:
    """Resolve one specifier found in ``importer``."""
    if spec in import_map:
        return Resolved.mapped(spec, import_map[spec])

    if paths.is_relative(spec):
        base = paths.relative_base(importer, spec)
        found = await _first_existing(vfs, base)
        if found is not None:
            return Resolved.vfs(spec, found)
        if await _has_children(vfs, base):
            return Resolved.namespace(spec, base)
        # Keeps the path in the table so running the importer fails loudly
        return Resolved.vfs(spec, paths.candidates(base)[0], missing=True)

    for root in search_roots:
        base = paths.absolute_base(root, spec)
        found = await _first_existing(vfs, base)
        if found is not None:
            return Resolved.vfs(spec, found)
    for root in search_roots:
        base = paths.absolute_base(root, spec)
        if await _has_children(vfs, base):
            return Resolved.namespace(spec, base)

    logger.debug("Specifier %s from %s is external", spec, importer)
    return Resolved.external(spec)
