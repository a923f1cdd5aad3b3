"""Unit tests for plughost.plugins.index."""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from plughost.plugins.index import PluginIndex, PluginRecord
from plughost.schema.errors import IndexStoreError


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    return tmp_path / "plugin" / "index.yaml"


class TestEmptyIndex:
    def test_missing_file_reads_empty(self, index_path: Path) -> None:
        index = PluginIndex(index_path)
        assert len(index) == 0
        assert index.installed("greeter") is None
        assert index.command_plugin("greet") is None
        assert index.source_plugin("git") is None
        assert not index_path.exists()

    def test_plugin_path_unknown_raises(self, index_path: Path) -> None:
        with pytest.raises(IndexStoreError):
            PluginIndex(index_path).plugin_path("ghost")


class TestRegisterPlugin:
    def test_register_and_lookup(self, index_path: Path) -> None:
        index = PluginIndex(index_path)
        record = index.register_plugin(
            "greeter", "/pkgs/greeter", ["/pkgs/greeter/lib"], ["greet"], ["mirror"]
        )
        assert isinstance(record, PluginRecord)
        assert index.installed("greeter") == "/pkgs/greeter"
        assert index.plugin_path("greeter") == Path("/pkgs/greeter")
        assert index.load_paths("greeter") == ["/pkgs/greeter/lib"]
        assert index.command_plugin("greet") == "greeter"
        assert index.source_plugin("mirror") == "greeter"
        assert "greeter" in index

    def test_persists_across_instances(self, index_path: Path) -> None:
        PluginIndex(index_path).register_plugin("a", "/a", ["/a/lib"], ["foo"], [])
        PluginIndex(index_path).register_plugin("b", "/b", [], [], ["bar"])

        reloaded = PluginIndex(index_path)
        assert [r.name for r in reloaded.records()] == ["a", "b"]
        assert reloaded.command_plugin("foo") == "a"
        assert reloaded.source_plugin("bar") == "b"

    def test_file_is_yaml_document(self, index_path: Path) -> None:
        PluginIndex(index_path).register_plugin("a", "/a", [], ["foo"], [])
        document = yaml.safe_load(index_path.read_text(encoding="utf-8"))
        assert document["commands"] == {"foo": "a"}
        assert document["plugins"]["a"]["path"] == "/a"

    def test_reregistration_overwrites_record(self, index_path: Path) -> None:
        index = PluginIndex(index_path)
        index.register_plugin("a", "/old", [], ["foo", "old-cmd"], [])
        index.register_plugin("a", "/new", [], ["foo"], [])
        assert index.installed("a") == "/new"
        assert index.command_plugin("old-cmd") is None
        assert index.command_plugin("foo") == "a"

    def test_later_plugin_shadows_shared_name(self, index_path: Path) -> None:
        index = PluginIndex(index_path)
        index.register_plugin("first", "/1", [], [], ["git"])
        index.register_plugin("second", "/2", [], [], ["git"])
        assert index.source_plugin("git") == "second"
        assert index.installed("first") == "/1"

    def test_repr(self, index_path: Path) -> None:
        index = PluginIndex(index_path)
        index.register_plugin("a", "/a", [], [], [])
        assert "a" in repr(index)


class TestCorruptIndex:
    def test_unparsable_yaml_raises(self, index_path: Path) -> None:
        index_path.parent.mkdir(parents=True)
        index_path.write_text("plugins: [unclosed\n", encoding="utf-8")
        with pytest.raises(IndexStoreError, match="Failed to read"):
            PluginIndex(index_path)

    def test_invalid_record_raises(self, index_path: Path) -> None:
        index_path.parent.mkdir(parents=True)
        index_path.write_text("plugins:\n  a: {name: a}\n", encoding="utf-8")
        with pytest.raises(IndexStoreError, match="malformed"):
            PluginIndex(index_path)
