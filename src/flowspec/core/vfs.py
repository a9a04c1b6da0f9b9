"""
Virtual file-system contract used by the graph loader.

The loader never touches the host file system directly for graph files; it
only calls ``read`` and ``list_tree`` on a store. Two stores ship with the
package: an in-memory store (tests, sandboxed sources) and a local-disk store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

from .paths import dirname, normalize, to_posix


@dataclass(frozen=True)
class TreeEntry:
    """One entry returned by ``list_tree``."""

    path: str
    type: Literal["file", "dir"]


@runtime_checkable
class FileStore(Protocol):
    """Minimal async file-store interface consumed by the loader."""

    async def read(self, path: str) -> bytes | None: ...

    async def list_tree(self, root: str) -> list[TreeEntry]: ...


class InMemoryFileStore:
    """
    File store backed by a dict of absolute posix paths.

    Directories are implied by file paths.
    """

    def __init__(self, files: dict[str, str | bytes] | None = None):
        self._files: dict[str, bytes] = {}
        for path, content in (files or {}).items():
            self.write(path, content)

    def write(self, path: str, content: str | bytes) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._files[normalize(path)] = data

    def remove(self, path: str) -> None:
        self._files.pop(normalize(path), None)

    def rename(self, old: str, new: str) -> None:
        self._files[normalize(new)] = self._files.pop(normalize(old))

    async def read(self, path: str) -> bytes | None:
        return self._files.get(normalize(path))

    async def list_tree(self, root: str) -> list[TreeEntry]:
        root = normalize(root).rstrip("/") or "/"
        prefix = root if root.endswith("/") else root + "/"
        entries: list[TreeEntry] = []
        dirs: set[str] = set()
        for path in sorted(self._files):
            if not path.startswith(prefix):
                continue
            entries.append(TreeEntry(path=path, type="file"))
            parent = dirname(path)
            while parent.startswith(prefix) and parent not in dirs:
                dirs.add(parent)
                parent = dirname(parent)
        entries.extend(TreeEntry(path=d, type="dir") for d in sorted(dirs))
        return entries


class LocalFileStore:
    """File store reading from the local disk."""

    async def read(self, path: str) -> bytes | None:
        p = Path(path)
        if not p.is_file():
            return None
        return await asyncio.to_thread(p.read_bytes)

    async def list_tree(self, root: str) -> list[TreeEntry]:
        base = Path(root)
        if not base.is_dir():
            return []
        return await asyncio.to_thread(self._walk, base)

    @staticmethod
    def _walk(base: Path) -> list[TreeEntry]:
        entries: list[TreeEntry] = []
        for p in sorted(base.rglob("*")):
            kind: Literal["file", "dir"] = "dir" if p.is_dir() else "file"
            entries.append(TreeEntry(path=to_posix(str(p.resolve())), type=kind))
        return entries
