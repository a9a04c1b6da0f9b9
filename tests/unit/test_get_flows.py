"""Tests for flow discovery and build caching."""

from __future__ import annotations

import pytest

from flowspec.core.errors import ConfigError, FlowSpecError
from flowspec.core.vfs import InMemoryFileStore, LocalFileStore
from flowspec.get_flows import discover_entries, get_flows

SHARED = 'from flowspec import Command\n\nCreateItem = Command["CreateItem", {"itemId": str}]\n'

USES_SHARED = '''\
from flowspec import command, example, flow, rule, server, specs

from .shared import CreateItem

with flow("items"):
    with command("Create item"):
        with server():
            with specs("s"):
                with rule("r"):
                    example("e").when[CreateItem]({"itemId": "a"})
'''


@pytest.fixture
def project() -> InMemoryFileStore:
    return InMemoryFileStore(
        {
            "/proj/items.flow.py": USES_SHARED,
            "/proj/shared.py": SHARED,
            "/proj/notes.py": "NOTES = 1\n",
        }
    )


# =============================================================================
# Discovery
# =============================================================================


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_default_pattern(self):
        store = InMemoryFileStore(
            {
                "/proj/b/orders_flow.py": "",
                "/proj/a/items.flow.py": "",
                "/proj/mail.integration.py": "",
                "/proj/helpers.py": "",
                "/proj/flowchart.py": "",
            }
        )
        assert await discover_entries(store, "/proj") == [
            "/proj/a/items.flow.py",
            "/proj/b/orders_flow.py",
            "/proj/mail.integration.py",
        ]

    @pytest.mark.asyncio
    async def test_ignored_directories(self):
        store = InMemoryFileStore(
            {
                "/proj/items.flow.py": "",
                "/proj/.venv/lib/x.flow.py": "",
                "/proj/__pycache__/y.flow.py": "",
                "/proj/archive/old.flow.py": "",
            }
        )
        entries = await discover_entries(store, "/proj", ignore_dirs=["archive"])
        assert entries == ["/proj/items.flow.py"]

    @pytest.mark.asyncio
    async def test_custom_pattern(self):
        store = InMemoryFileStore({"/proj/specs/items.py": "", "/proj/other.py": ""})
        assert await discover_entries(store, "/proj", pattern=r"/specs/") == ["/proj/specs/items.py"]

    @pytest.mark.asyncio
    async def test_invalid_pattern(self):
        with pytest.raises(ConfigError, match="Invalid discovery pattern"):
            await discover_entries(InMemoryFileStore(), "/proj", pattern="(")

    @pytest.mark.asyncio
    async def test_no_entries(self):
        with pytest.raises(FlowSpecError, match="No flow files found under /proj"):
            await get_flows(InMemoryFileStore({"/proj/helpers.py": ""}), "/proj")

    @pytest.mark.asyncio
    async def test_local_file_store(self, tmp_path, items_source: str):
        (tmp_path / "flows").mkdir()
        (tmp_path / "flows" / "items.flow.py").write_text(items_source)
        result = await get_flows(LocalFileStore(), tmp_path.resolve().as_posix())
        assert [f.name for f in result.flows] == ["items"]


# =============================================================================
# Caching
# =============================================================================


class TestCache:
    @pytest.mark.asyncio
    async def test_result_lists_reachable_files(self, project: InMemoryFileStore):
        result = await get_flows(project, "/proj")
        assert result.vfs_files == ["/proj/items.flow.py", "/proj/shared.py"]
        assert [f.name for f in result.flows] == ["items"]

    @pytest.mark.asyncio
    async def test_hit_when_nothing_changed(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj", cache_key="k")
        assert await get_flows(project, "/proj", cache_key="k") is first

    @pytest.mark.asyncio
    async def test_no_key_never_caches(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj")
        assert await get_flows(project, "/proj") is not first

    @pytest.mark.asyncio
    async def test_unreachable_change_keeps_hit(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj", cache_key="k")
        project.write("/proj/notes.py", "NOTES = 2\n")
        assert await get_flows(project, "/proj", cache_key="k") is first

    @pytest.mark.asyncio
    async def test_reachable_change_misses(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj", cache_key="k")
        project.write("/proj/shared.py", SHARED.replace('"itemId": str', '"itemId": str, "note": str'))
        second = await get_flows(project, "/proj", cache_key="k")
        assert second is not first
        assert second.types_by_file["/proj/shared.py"]["CreateItem"].field_names == ["itemId", "note"]

    @pytest.mark.asyncio
    async def test_deleted_entry_misses(self, project: InMemoryFileStore):
        project.write("/proj/other.flow.py", "")
        first = await get_flows(project, "/proj", cache_key="k")
        project.remove("/proj/other.flow.py")
        assert await get_flows(project, "/proj", cache_key="k") is not first

    @pytest.mark.asyncio
    async def test_renamed_entry_misses(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj", cache_key="k")
        project.rename("/proj/items.flow.py", "/proj/items_flow.py")
        second = await get_flows(project, "/proj", cache_key="k")
        assert second is not first
        assert second.vfs_files[0] == "/proj/items_flow.py"

    @pytest.mark.asyncio
    async def test_new_import_map_misses(self, project: InMemoryFileStore):
        mapping = {"extra": {}}
        first = await get_flows(project, "/proj", import_map=mapping, cache_key="k")
        assert await get_flows(project, "/proj", import_map=mapping, cache_key="k") is first
        assert await get_flows(project, "/proj", import_map={"extra": {}}, cache_key="k") is not first

    @pytest.mark.asyncio
    async def test_missing_target_appearing_misses(self):
        store = InMemoryFileStore({"/proj/a.flow.py": "try:\n    from .late import X\nexcept Exception:\n    X = None\n"})
        first = await get_flows(store, "/proj", cache_key="k")
        store.write("/proj/late.py", "X = 1\n")
        second = await get_flows(store, "/proj", cache_key="k")
        assert second is not first
        assert "/proj/late.py" in second.vfs_files

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, project: InMemoryFileStore):
        first = await get_flows(project, "/proj", cache_key="a")
        other = await get_flows(project, "/proj", cache_key="b")
        assert other is not first
        assert await get_flows(project, "/proj", cache_key="a") is first
