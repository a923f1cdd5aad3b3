"""Host configuration schema for plughost.

``HostConfig`` is a Pydantic v2 model that acts as the validated,
strongly-typed boundary object between raw configuration sources (YAML files,
environment variables, in-memory dicts) and the plugin host.

It also owns the plugin directory layout: where the index file lives,
where installed plugin packages are copied to, and where cached artefacts go.

Shipped in this module
----------------------
- HostConfig     — Pydantic v2 model with class-method loaders and
                   directory-layout properties
"""
from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from plughost.schema.errors import ConfigurationError


class HostConfig(BaseModel):
    """Validated runtime configuration for a plugin host.

    All fields have sensible defaults so that a host can start with zero
    configuration.

    Parameters
    ----------
    user_dir:
        Per-user data directory; the *global* plugin root lives beneath it.
        Defaults to ``"~/.plughost"``.
    app_dir:
        Optional application config directory.  When set, plugins are kept
        in a *local* root beneath it instead of the global one.
    manifest_name:
        File name every plugin package must carry at its root.
    plugin_paths:
        Directories searched by :class:`~plughost.plugins.installer.PathInstaller`
        for plugin packages named on the command line or in a declaration.
    """

    model_config = {"extra": "allow", "validate_assignment": True}

    user_dir: str = Field(default="~/.plughost")
    app_dir: str | None = Field(default=None)
    manifest_name: str = Field(default="plugins.py", min_length=1)
    plugin_paths: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalise_plugin_paths(cls, values: Any) -> Any:  # noqa: ANN401
        """Ensure ``plugin_paths`` is always a list, not None."""
        if isinstance(values, dict) and values.get("plugin_paths") is None:
            values["plugin_paths"] = []
        return values

    # ------------------------------------------------------------------
    # Directory layout
    # ------------------------------------------------------------------

    @property
    def global_root(self) -> Path:
        """Plugin root shared by every application of the current user."""
        return Path(self.user_dir).expanduser() / "plugin"

    @property
    def local_root(self) -> Path | None:
        """Plugin root of the configured application, if any."""
        if self.app_dir is None:
            return None
        return Path(self.app_dir).expanduser() / "plugin"

    @property
    def root(self) -> Path:
        """The plugin root in effect: local when an app is configured, else global."""
        local = self.local_root
        return local if local is not None else self.global_root

    @property
    def cache_dir(self) -> Path:
        return self.root / "cache"

    @property
    def packages_dir(self) -> Path:
        return self.root / "packages"

    @property
    def index_path(self) -> Path:
        return self.root / "index.yaml"

    # ------------------------------------------------------------------
    # Class-method loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: str | Path) -> "HostConfig":
        """Load and validate configuration from a YAML file.

        Parameters
        ----------
        path:
            Filesystem path to a YAML file.

        Returns
        -------
        HostConfig

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        pydantic.ValidationError
            If the parsed data fails validation.
        """
        resolved = Path(path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {resolved}")
        with resolved.open(encoding="utf-8") as fh:
            raw: object = yaml.safe_load(fh)
        data: dict[str, object] = dict(raw) if isinstance(raw, dict) else {}
        return cls.model_validate(data)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object], source: str = "<mapping>") -> "HostConfig":
        """Validate *data*, reporting failures as :class:`ConfigurationError`.

        *source* names where the data came from and is attached to the
        error context.

        >>> HostConfig.from_mapping({"manifest_name": "manifest.py"}).manifest_name
        'manifest.py'
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid plughost configuration in {source}: {exc}",
                context={"source": source, "errors": exc.errors()},
            ) from exc

    @classmethod
    def from_env(cls, prefix: str = "PLUGHOST_") -> "HostConfig":
        """Build configuration from environment variables.

        Variables are mapped by stripping the ``prefix`` and lower-casing the
        remainder.  For example ``PLUGHOST_USER_DIR=/srv/ph`` maps to
        ``user_dir="/srv/ph"``.

        ``PLUGHOST_PLUGIN_PATHS`` accepts either a JSON list or an
        ``os.pathsep``-separated string.

        Parameters
        ----------
        prefix:
            Environment variable prefix to scan.  Defaults to
            ``"PLUGHOST_"``.

        Returns
        -------
        HostConfig

        Raises
        ------
        ConfigurationError
            If a variable holds an invalid value.
        """
        data: dict[str, object] = {}
        list_fields = {"plugin_paths"}

        for raw_key, raw_value in os.environ.items():
            if not raw_key.startswith(prefix):
                continue
            key = raw_key[len(prefix):].lower()
            if key in list_fields:
                try:
                    parsed = json.loads(raw_value)
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, list):
                    data[key] = [str(item) for item in parsed]
                else:
                    data[key] = [item for item in raw_value.split(os.pathsep) if item]
            else:
                data[key] = raw_value

        return cls.from_mapping(data, source=f"{prefix}* environment variables")

    def merge(self, overrides: "HostConfig") -> "HostConfig":
        """Produce a new ``HostConfig`` with non-default values from *overrides*.

        Fields in *overrides* that differ from the class default take
        precedence over the corresponding field in *self*.  ``plugin_paths``
        is merged (ordered union) rather than replaced outright.

        Parameters
        ----------
        overrides:
            Another ``HostConfig`` whose non-default values win.

        Returns
        -------
        HostConfig
            New, merged configuration.  Neither *self* nor *overrides* is
            mutated.
        """
        base_data = self.model_dump()
        override_data = overrides.model_dump()
        default_data = HostConfig().model_dump()

        merged = dict(base_data)
        for key, override_value in override_data.items():
            if override_value == default_data.get(key):
                continue
            if key == "plugin_paths":
                existing: list[str] = list(merged.get("plugin_paths") or [])
                seen: set[str] = set(existing)
                for item in override_value:
                    if item not in seen:
                        existing.append(item)
                        seen.add(item)
                merged["plugin_paths"] = existing
            else:
                merged[key] = override_value

        return HostConfig.model_validate(merged)
