"""Unit tests for plughost.schema.config.HostConfig."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from plughost.schema.config import HostConfig
from plughost.schema.errors import ConfigurationError


class TestDefaults:
    def test_default_values(self) -> None:
        config = HostConfig()
        assert config.user_dir == "~/.plughost"
        assert config.app_dir is None
        assert config.manifest_name == "plugins.py"
        assert config.plugin_paths == []

    def test_none_plugin_paths_normalised(self) -> None:
        assert HostConfig.model_validate({"plugin_paths": None}).plugin_paths == []

    def test_validate_assignment(self) -> None:
        config = HostConfig()
        with pytest.raises(ValidationError):
            config.plugin_paths = 3  # type: ignore[assignment]


class TestDirectoryLayout:
    def test_global_root_when_no_app(self, tmp_path: Path) -> None:
        config = HostConfig(user_dir=str(tmp_path))
        assert config.local_root is None
        assert config.root == tmp_path / "plugin"
        assert config.root == config.global_root

    def test_local_root_wins_when_app_configured(self, tmp_path: Path) -> None:
        config = HostConfig(user_dir=str(tmp_path / "user"), app_dir=str(tmp_path / "app"))
        assert config.root == tmp_path / "app" / "plugin"
        assert config.global_root == tmp_path / "user" / "plugin"

    def test_derived_directories(self, tmp_path: Path) -> None:
        config = HostConfig(user_dir=str(tmp_path))
        assert config.cache_dir == config.root / "cache"
        assert config.packages_dir == config.root / "packages"
        assert config.index_path == config.root / "index.yaml"

    def test_user_dir_expands_home(self) -> None:
        assert "~" not in str(HostConfig().global_root)


class TestLoaders:
    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "plughost.yaml"
        path.write_text("manifest_name: manifest.py\nplugin_paths: [/a]\n", encoding="utf-8")
        config = HostConfig.from_yaml(path)
        assert config.manifest_name == "manifest.py"
        assert config.plugin_paths == ["/a"]

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            HostConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_env_ignores_other_prefixes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTHER_USER_DIR", "/nope")
        monkeypatch.setenv("PHTEST_APP_DIR", "/app")
        config = HostConfig.from_env(prefix="PHTEST_")
        assert config.app_dir == "/app"
        assert config.user_dir == "~/.plughost"

    def test_from_mapping_wraps_validation_errors(self) -> None:
        with pytest.raises(ConfigurationError, match="settings.yaml") as exc_info:
            HostConfig.from_mapping({"plugin_paths": 5}, source="settings.yaml")
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_from_mapping_does_not_mutate_input(self) -> None:
        data: dict[str, object] = {"plugin_paths": None}
        assert HostConfig.from_mapping(data).plugin_paths == []
        assert data == {"plugin_paths": None}


class TestMerge:
    def test_override_non_default_values(self) -> None:
        base = HostConfig(user_dir="/base", manifest_name="base.py")
        merged = base.merge(HostConfig(user_dir="/override"))
        assert merged.user_dir == "/override"
        assert merged.manifest_name == "base.py"

    def test_plugin_paths_union_preserves_order(self) -> None:
        base = HostConfig(plugin_paths=["/a", "/b"])
        merged = base.merge(HostConfig(plugin_paths=["/b", "/c"]))
        assert merged.plugin_paths == ["/a", "/b", "/c"]

    def test_inputs_not_mutated(self) -> None:
        base = HostConfig(plugin_paths=["/a"])
        override = HostConfig(plugin_paths=["/b"])
        base.merge(override)
        assert base.plugin_paths == ["/a"]
        assert override.plugin_paths == ["/b"]
