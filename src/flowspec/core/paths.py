"""
Posix path helpers and import-specifier utilities for the virtual file tree.

Graph paths are always absolute posix strings, independent of the host OS.
Specifiers use Python import syntax: ``"." * level + "dotted.name"`` for
relative imports and plain dotted names for absolute ones.
"""

from __future__ import annotations

CANDIDATE_EXTS: tuple[str, ...] = (".py",)
INDEX_FILE = "__init__.py"


def to_posix(path: str) -> str:
    return path.replace("\\", "/")


def normalize(path: str) -> str:
    """Collapse ``.``/``..`` segments and duplicate slashes."""
    path = to_posix(path)
    absolute = path.startswith("/")
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not absolute:
                parts.append("..")
            continue
        parts.append(segment)
    joined = "/".join(parts)
    if absolute:
        return "/" + joined
    return joined or "."


def join(*parts: str) -> str:
    cleaned = [to_posix(p) for p in parts if p]
    if not cleaned:
        return "."
    # An absolute segment restarts the path, like os.path.join
    start = 0
    for i, p in enumerate(cleaned):
        if p.startswith("/"):
            start = i
    return normalize("/".join(cleaned[start:]))


def dirname(path: str) -> str:
    path = to_posix(path).rstrip("/")
    idx = path.rfind("/")
    if idx > 0:
        return path[:idx]
    if idx == 0:
        return "/"
    return "."


def basename(path: str) -> str:
    return to_posix(path).rstrip("/").rsplit("/", 1)[-1]


def is_relative(spec: str) -> bool:
    return spec.startswith(".")


def specifier_for(level: int, module: str | None) -> str:
    """Build a specifier from an ``ImportFrom`` level and module name."""
    return "." * level + (module or "")


def submodule_specifier(spec: str, name: str) -> str:
    """Specifier for ``name`` imported from ``spec`` (``from spec import name``)."""
    if spec.strip(".") == "":
        return spec + name
    return f"{spec}.{name}"


def split_relative(spec: str) -> tuple[int, str]:
    """Split ``"..pkg.mod"`` into ``(2, "pkg.mod")``."""
    stripped = spec.lstrip(".")
    return len(spec) - len(stripped), stripped


def package_dir(importer: str) -> str:
    """Directory that relative imports in ``importer`` are anchored to."""
    return dirname(importer)


def relative_base(importer: str, spec: str) -> str:
    """
    Compute the extension-less base path a relative specifier points at.

    ``from . import x`` in ``/a/b/m.py`` anchors at ``/a/b``; every extra
    leading dot climbs one directory.
    """
    level, dotted = split_relative(spec)
    base = package_dir(importer)
    for _ in range(level - 1):
        base = dirname(base)
    if dotted:
        base = join(base, *dotted.split("."))
    return base


def absolute_base(root: str, spec: str) -> str:
    return join(root, *spec.split("."))


def candidates(base: str) -> list[str]:
    """
    Candidate files for an extension-less base path, in resolution order.

    The base itself (when it already names a file), then ``base + ext`` for
    every candidate extension, then the package index file.
    """
    out: list[str] = []
    if base.endswith(CANDIDATE_EXTS):
        out.append(base)
    out.extend(base + ext for ext in CANDIDATE_EXTS)
    out.append(join(base, INDEX_FILE))
    return out


def module_name_for(path: str, root: str) -> str:
    """Dotted module name of ``path`` relative to ``root`` (best effort)."""
    path = normalize(path)
    root = normalize(root).rstrip("/")
    rel = path[len(root) + 1 :] if path.startswith(root + "/") else path.lstrip("/")
    if rel.endswith("/" + INDEX_FILE) or rel == INDEX_FILE:
        rel = dirname(rel) if "/" in rel else ""
    for ext in CANDIDATE_EXTS:
        if rel.endswith(ext):
            rel = rel[: -len(ext)]
            break
    return rel.replace("/", ".") or "__main__"
