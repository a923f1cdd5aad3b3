"""Durable plugin index (the Registry Store).

The index records, for every installed plugin, where its package lives,
which module search paths it contributes, and which commands and source
types its manifest declared.  It answers the point lookups the host needs at
dispatch time without executing any plugin code.

The index is a YAML document at ``HostConfig.index_path``::

    plugins:
      greeter:
        name: greeter
        path: /home/me/.plughost/plugin/packages/greeter
        load_paths: [/home/me/.plughost/plugin/packages/greeter/lib]
        commands: [greet]
        sources: []
    commands: {greet: greeter}
    sources: {}

Shipped in this module
----------------------
- PluginRecord   — one persisted plugin entry
- PluginIndex    — file-backed store with point lookups
"""
from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from plughost.schema.errors import IndexStoreError

logger = logging.getLogger(__name__)


class PluginRecord(BaseModel):
    """Persisted description of one installed plugin."""

    name: str
    path: str
    load_paths: list[str] = Field(default_factory=list)
    commands: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


class PluginIndex:
    """File-backed mapping of plugin name → :class:`PluginRecord`.

    Command and source names map to the plugin that most recently declared
    them; registering a second plugin for an already-owned name silently
    takes ownership.

    Parameters
    ----------
    index_path:
        Location of the YAML index file.  It is created on first write.
        A missing file reads as an empty index.

    Raises
    ------
    IndexStoreError
        If an existing index file cannot be parsed.
    """

    def __init__(self, index_path: str | Path) -> None:
        self._path = Path(index_path)
        self._plugins: dict[str, PluginRecord] = {}
        self._commands: dict[str, str] = {}
        self._sources: dict[str, str] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register_plugin(
        self,
        name: str,
        path: str,
        load_paths: Iterable[str],
        commands: Iterable[str],
        sources: Iterable[str],
    ) -> PluginRecord:
        """Record *name* and persist the index.

        An existing record of the same name is replaced, and the names it
        previously owned are released before the new ones are claimed.

        Returns
        -------
        PluginRecord
            The record that was written.
        """
        record = PluginRecord(
            name=name,
            path=str(path),
            load_paths=[str(p) for p in load_paths],
            commands=list(commands),
            sources=list(sources),
        )

        self._release(name)
        self._plugins[name] = record
        for command in record.commands:
            self._commands[command] = name
        for source in record.sources:
            self._sources[source] = name

        self._save()
        logger.debug(
            "Registered plugin %r in index (commands=%s, sources=%s)",
            name,
            record.commands,
            record.sources,
        )
        return record

    def _release(self, name: str) -> None:
        self._commands = {k: v for k, v in self._commands.items() if v != name}
        self._sources = {k: v for k, v in self._sources.items() if v != name}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def installed(self, name: str) -> str | None:
        """Return the install path of plugin *name*, or ``None``."""
        record = self._plugins.get(name)
        return record.path if record is not None else None

    def command_plugin(self, command: str) -> str | None:
        """Return the name of the plugin owning *command*, or ``None``."""
        return self._commands.get(command)

    def source_plugin(self, source: str) -> str | None:
        """Return the name of the plugin owning source type *source*, or ``None``."""
        return self._sources.get(source)

    def plugin_path(self, name: str) -> Path:
        """Return the install path of plugin *name*.

        Raises
        ------
        IndexStoreError
            If *name* is not in the index.
        """
        return Path(self._record(name).path)

    def load_paths(self, name: str) -> list[str]:
        """Return the ordered module search paths of plugin *name*."""
        return list(self._record(name).load_paths)

    def records(self) -> list[PluginRecord]:
        """Return all records sorted by plugin name."""
        return [self._plugins[name] for name in sorted(self._plugins)]

    def _record(self, name: str) -> PluginRecord:
        try:
            return self._plugins[name]
        except KeyError:
            raise IndexStoreError(
                f"Plugin {name!r} is not in the plugin index.",
                context={"plugin": name, "index": str(self._path)},
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return f"PluginIndex(path={str(self._path)!r}, plugins={sorted(self._plugins)})"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with self._path.open(encoding="utf-8") as fh:
                raw: object = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            raise IndexStoreError(
                f"Failed to read plugin index at {self._path}: {exc}",
                context={"index": str(self._path)},
            ) from exc

        data: dict[str, object] = dict(raw) if isinstance(raw, dict) else {}
        try:
            plugins = {
                name: PluginRecord.model_validate(entry)
                for name, entry in dict(data.get("plugins") or {}).items()
            }
        except (TypeError, ValueError, ValidationError) as exc:
            raise IndexStoreError(
                f"Plugin index at {self._path} is malformed: {exc}",
                context={"index": str(self._path)},
            ) from exc

        self._plugins = plugins
        self._commands = {str(k): str(v) for k, v in dict(data.get("commands") or {}).items()}
        self._sources = {str(k): str(v) for k, v in dict(data.get("sources") or {}).items()}
        logger.debug("Loaded plugin index from %s (%d plugins)", self._path, len(plugins))

    def _save(self) -> None:
        document = {
            "plugins": {name: rec.model_dump() for name, rec in self._plugins.items()},
            "commands": dict(self._commands),
            "sources": dict(self._sources),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=".index-", suffix=".yaml"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(document, fh, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            raise IndexStoreError(
                f"Failed to write plugin index at {self._path}: {exc}",
                context={"index": str(self._path)},
            ) from exc
