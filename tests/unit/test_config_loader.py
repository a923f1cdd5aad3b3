"""Unit tests for plughost.config.loader."""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from plughost.config.defaults import DEFAULT_CONFIG
from plughost.config.loader import CONFIG_FILE_NAMES, ConfigLoader, find_config_file
from plughost.schema.config import HostConfig
from plughost.schema.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("PLUGHOST_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# find_config_file
# ---------------------------------------------------------------------------


class TestFindConfigFile:
    def test_yaml_name_preferred(self) -> None:
        assert CONFIG_FILE_NAMES[0] == "plughost.yaml"

    def test_finds_file_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / ".plughost.yml").write_text("{}\n", encoding="utf-8")
        assert find_config_file(tmp_path) == (tmp_path / ".plughost.yml").resolve()

    def test_walks_up_to_parent(self, tmp_path: Path) -> None:
        (tmp_path / "plughost.yaml").write_text("{}\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / "plughost.yaml").resolve()

    def test_nearest_file_wins(self, tmp_path: Path) -> None:
        (tmp_path / "plughost.yaml").write_text("{}\n", encoding="utf-8")
        nested = tmp_path / "app"
        nested.mkdir()
        (nested / "plughost.yml").write_text("{}\n", encoding="utf-8")
        assert find_config_file(nested) == (nested / "plughost.yml").resolve()


# ---------------------------------------------------------------------------
# ConfigLoader.load_file
# ---------------------------------------------------------------------------


class TestLoadFile:
    def test_absolute_values_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("user_dir: /srv/plughost\nmanifest_name: hooks.py\n", encoding="utf-8")
        config = ConfigLoader().load_file(path)
        assert config.user_dir == "/srv/plughost"
        assert config.manifest_name == "hooks.py"

    def test_relative_directories_resolve_against_file(self, tmp_path: Path) -> None:
        project = tmp_path / "project"
        project.mkdir()
        path = project / "plughost.yaml"
        path.write_text(
            "user_dir: .home\napp_dir: app\nplugin_paths: [vendor/plugins, /opt/plugins]\n",
            encoding="utf-8",
        )
        config = ConfigLoader().load_file(path)
        base = project.resolve()
        assert config.user_dir == str(base / ".home")
        assert config.app_dir == str(base / "app")
        assert config.plugin_paths == [str(base / "vendor/plugins"), "/opt/plugins"]
        assert config.root == base / "app" / "plugin"

    def test_home_is_expanded(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("user_dir: ~/ph\n", encoding="utf-8")
        assert ConfigLoader().load_file(path).user_dir == str(Path("~/ph").expanduser())

    def test_single_plugin_path_string_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("plugin_paths: plugins\n", encoding="utf-8")
        config = ConfigLoader().load_file(path)
        assert config.plugin_paths == [str(tmp_path.resolve() / "plugins")]

    def test_empty_file_yields_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("", encoding="utf-8")
        assert ConfigLoader().load_file(path) == HostConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Could not read"):
            ConfigLoader().load_file(tmp_path / "nonexistent.yaml")

    def test_unparsable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("key: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            ConfigLoader().load_file(path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader().load_file(path)

    def test_invalid_values_rejected_with_cause(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("manifest_name: ''\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader().load_file(path)
        assert exc_info.value.__cause__ is not None
        assert exc_info.value.context["source"] == str(path.resolve())


# ---------------------------------------------------------------------------
# ConfigLoader.load_env
# ---------------------------------------------------------------------------


class TestLoadEnv:
    def test_none_without_variables(self) -> None:
        assert ConfigLoader().load_env() is None

    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MYTOOL_MANIFEST_NAME", "hooks.py")
        config = ConfigLoader(env_prefix="MYTOOL_").load_env()
        assert config is not None
        assert config.manifest_name == "hooks.py"

    def test_invalid_value_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUGHOST_MANIFEST_NAME", "")
        with pytest.raises(ConfigurationError, match="environment"):
            ConfigLoader().load_env()


# ---------------------------------------------------------------------------
# ConfigLoader.load
# ---------------------------------------------------------------------------


class TestLoad:
    def test_defaults_when_nothing_found(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("plughost.config.loader.find_config_file", lambda start: None)
        assert ConfigLoader().load(start_dir=tmp_path) == DEFAULT_CONFIG

    def test_explicit_path_wins_over_discovery(self, tmp_path: Path) -> None:
        (tmp_path / "plughost.yaml").write_text("manifest_name: found.py\n", encoding="utf-8")
        explicit = tmp_path / "other.yaml"
        explicit.write_text("manifest_name: explicit.py\n", encoding="utf-8")
        config = ConfigLoader().load(explicit, start_dir=tmp_path)
        assert config.manifest_name == "explicit.py"

    def test_discovers_from_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / "plughost.yaml").write_text("manifest_name: found.py\n", encoding="utf-8")
        nested = tmp_path / "src"
        nested.mkdir()
        assert ConfigLoader().load(start_dir=nested).manifest_name == "found.py"

    def test_env_overlays_file_and_extends_plugin_paths(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "plughost.yaml").write_text(
            "user_dir: /file-dir\nplugin_paths: [/file]\n", encoding="utf-8"
        )
        monkeypatch.setenv("PLUGHOST_USER_DIR", "/env-dir")
        monkeypatch.setenv("PLUGHOST_PLUGIN_PATHS", os.pathsep.join(["/env", "/file"]))

        config = ConfigLoader().load(start_dir=tmp_path)
        assert config.user_dir == "/env-dir"
        assert config.plugin_paths == ["/file", "/env"]

    def test_broken_discovered_file_is_reported(self, tmp_path: Path) -> None:
        (tmp_path / "plughost.yaml").write_text("key: [bad yaml", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigLoader().load(start_dir=tmp_path)
