"""Tests for graph path helpers and specifier resolution."""

from __future__ import annotations

import pytest

from flowspec.core import paths
from flowspec.core.vfs import InMemoryFileStore
from flowspec.loader.resolver import resolve_specifier


class TestNormalize:
    def test_collapses_dots_and_slashes(self) -> None:
        assert paths.normalize("/a//b/./c/../d") == "/a/b/d"

    def test_backslashes_become_posix(self) -> None:
        assert paths.normalize("\\a\\b") == "/a/b"

    def test_cannot_climb_above_root(self) -> None:
        assert paths.normalize("/../a") == "/a"

    def test_relative_path_keeps_leading_parent(self) -> None:
        assert paths.normalize("../a/b") == "../a/b"


class TestRelativeBase:
    def test_single_dot_anchors_at_importer_directory(self) -> None:
        assert paths.relative_base("/proj/flows/items.py", ".shared") == "/proj/flows/shared"

    def test_each_extra_dot_climbs_one_directory(self) -> None:
        assert paths.relative_base("/proj/flows/items.py", "..shared.types") == "/proj/shared/types"

    def test_bare_dot_is_the_package_itself(self) -> None:
        assert paths.relative_base("/proj/flows/items.py", ".") == "/proj/flows"


class TestCandidates:
    def test_order_is_file_then_package(self) -> None:
        assert paths.candidates("/proj/shared") == ["/proj/shared.py", "/proj/shared/__init__.py"]

    def test_base_with_extension_is_tried_first(self) -> None:
        assert paths.candidates("/proj/x.py")[0] == "/proj/x.py"


class TestModuleName:
    def test_nested_module(self) -> None:
        assert paths.module_name_for("/proj/flows/items.py", "/proj") == "flows.items"

    def test_package_index(self) -> None:
        assert paths.module_name_for("/proj/flows/__init__.py", "/proj") == "flows"


# =============================================================================
# Specifier resolution
# =============================================================================


@pytest.fixture
def tree() -> InMemoryFileStore:
    return InMemoryFileStore(
        {
            "/proj/flows/items.py": "",
            "/proj/flows/shared.py": "",
            "/proj/pkg/__init__.py": "",
            "/proj/ns/inner.py": "",
        }
    )


class TestResolveSpecifier:
    @pytest.mark.asyncio
    async def test_import_map_wins(self, tree: InMemoryFileStore) -> None:
        sentinel = object()
        target = await resolve_specifier(tree, ".shared", "/proj/flows/items.py", {".shared": sentinel}, ["/proj"])
        assert target.kind == "mapped"
        assert target.value is sentinel

    @pytest.mark.asyncio
    async def test_relative_file(self, tree: InMemoryFileStore) -> None:
        target = await resolve_specifier(tree, ".shared", "/proj/flows/items.py", {}, ["/proj"])
        assert target.kind == "vfs"
        assert target.path == "/proj/flows/shared.py"
        assert not target.missing

    @pytest.mark.asyncio
    async def test_absolute_package(self, tree: InMemoryFileStore) -> None:
        target = await resolve_specifier(tree, "pkg", "/proj/flows/items.py", {}, ["/proj"])
        assert target.path == "/proj/pkg/__init__.py"

    @pytest.mark.asyncio
    async def test_directory_without_index_is_namespace(self, tree: InMemoryFileStore) -> None:
        target = await resolve_specifier(tree, "ns", "/proj/flows/items.py", {}, ["/proj"])
        assert target.kind == "namespace"
        assert target.path == "/proj/ns"

    @pytest.mark.asyncio
    async def test_missing_relative_target_is_kept_as_missing(self, tree: InMemoryFileStore) -> None:
        target = await resolve_specifier(tree, ".nothing", "/proj/flows/items.py", {}, ["/proj"])
        assert target.kind == "vfs"
        assert target.missing
        assert target.path == "/proj/flows/nothing.py"

    @pytest.mark.asyncio
    async def test_unknown_absolute_is_external(self, tree: InMemoryFileStore) -> None:
        target = await resolve_specifier(tree, "requests", "/proj/flows/items.py", {}, ["/proj"])
        assert target.kind == "external"
