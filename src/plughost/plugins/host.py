"""Plugin host: install orchestration and capability dispatch.

:class:`PluginHost` is the object an embedding tool talks to.  It installs
plugins (copying packages, validating them, and discovering their
capabilities), answers whether a command or source type is provided by any
plugin, and routes requests to the owning plugin's handler, loading the
plugin on first use.

Example
-------
::

    host = PluginHost(HostConfig(user_dir="/tmp/ph"))
    host.install(["greeter"], {"path": "./plugins/greeter"})
    if host.has_command("greet"):
        host.exec_command("greet", ["world"])

Error propagation is deliberately different between the two install entry
points: :meth:`PluginHost.install` reports plugin failures and returns,
while :meth:`PluginHost.install_from_declaration` reports and re-raises.
"""
from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from plughost.capabilities.contracts import SourceHandler
from plughost.capabilities.ledger import CapabilityKind, CapabilityLedger
from plughost.config.defaults import DEFAULT_CONFIG
from plughost.plugins.declaration import DeclarationBuilder
from plughost.plugins.index import PluginIndex
from plughost.plugins.installer import InstalledPackage, PackageInstaller, PathInstaller
from plughost.plugins.registrar import Registrar
from plughost.schema.config import HostConfig
from plughost.schema.errors import (
    MalformedPluginError,
    PluginError,
    UndefinedCommandError,
    UnknownSourceError,
)

logger = logging.getLogger(__name__)


class PluginHost:
    """Installs plugins and dispatches commands and sources to them.

    Parameters
    ----------
    config:
        Host configuration.  Defaults to ``DEFAULT_CONFIG``.
    installer:
        Package installer.  Defaults to a :class:`PathInstaller` writing to
        ``config.packages_dir`` and searching ``config.plugin_paths``.
    index:
        Plugin index.  Defaults to one stored at ``config.index_path``,
        opened on first use.
    ledger:
        Live capability ledger.  Defaults to a new empty one.
    """

    def __init__(
        self,
        config: HostConfig | None = None,
        installer: PackageInstaller | None = None,
        index: PluginIndex | None = None,
        ledger: CapabilityLedger | None = None,
    ) -> None:
        self._config = config if config is not None else DEFAULT_CONFIG
        self._installer = installer
        self._index = index
        self._ledger = ledger if ledger is not None else CapabilityLedger()
        self._registrar: Registrar | None = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def config(self) -> HostConfig:
        return self._config

    @property
    def ledger(self) -> CapabilityLedger:
        return self._ledger

    @property
    def root(self) -> Path:
        """Directory holding all plugin-related data."""
        return self._config.root

    @property
    def cache(self) -> Path:
        return self._config.cache_dir

    @property
    def index(self) -> PluginIndex:
        if self._index is None:
            self._index = PluginIndex(self._config.index_path)
        return self._index

    @property
    def installer(self) -> PackageInstaller:
        if self._installer is None:
            self._installer = PathInstaller(
                self._config.packages_dir,
                search_paths=self._config.plugin_paths,
                manifest_name=self._config.manifest_name,
            )
        return self._installer

    @property
    def registrar(self) -> Registrar:
        if self._registrar is None:
            self._registrar = Registrar(
                self.index, self._ledger, manifest_name=self._config.manifest_name
            )
        return self._registrar

    def reset(self) -> None:
        """Forget loaded handlers and drop the cached index.

        The index is re-read from disk on next use.
        """
        self._ledger.clear()
        self._index = None
        self._registrar = None

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def install(self, names: Sequence[str], options: Mapping[str, Any] | None = None) -> None:
        """Install and register the plugins called *names*.

        Plugin failures (a missing package, a missing manifest, a manifest
        that raises) are logged and not raised.  When one occurs, every
        package directory installed by this call is removed; plugins
        registered before the failure stay in the index.
        """
        names = list(names)
        installed: dict[str, InstalledPackage] | None = None
        try:
            installed = self.installer.install(names, dict(options or {}))
            self.save_plugins(names, installed)
        except PluginError as exc:
            if installed:
                for package in installed.values():
                    shutil.rmtree(package.full_path, ignore_errors=True)
            logger.error("Failed to install plugin %s: %s", ", ".join(names), exc)

    def install_from_declaration(
        self,
        path: str | Path | None = None,
        block: Callable[[DeclarationBuilder], object] | None = None,
    ) -> None:
        """Install the plugins requested by a declaration.

        Parameters
        ----------
        path:
            YAML declaration file, used when *block* is not given.
        block:
            Callable that fills in the :class:`DeclarationBuilder` it receives.

        Plugins already in the index are not registered again.  Source
        plugins inferred from typed sources are installed as optional.

        Raises
        ------
        Exception
            Every failure is logged and re-raised.
        """
        try:
            builder = DeclarationBuilder()
            if block is not None:
                block(builder)
            elif path is not None:
                builder.eval_file(path)
            else:
                raise ValueError("Either a declaration path or a block is required.")

            if not builder.dependencies:
                return

            plugins = [
                dep.name for dep in builder.dependencies if not self.index.installed(dep.name)
            ]
            installed = self.installer.install_definition(builder.dependencies)
            self.save_plugins(plugins, installed, builder.inferred_plugins)
        except Exception as exc:
            logger.error("Failed to install plugin: %s", exc)
            raise

    def save_plugins(
        self,
        plugins: Iterable[str],
        packages: Mapping[str, InstalledPackage],
        optional_plugins: Iterable[str] = (),
    ) -> None:
        """Validate and register each of *plugins* from *packages*."""
        optional = set(optional_plugins)
        for name in plugins:
            package = packages[name]
            self.validate_plugin(package.full_path)
            if self.registrar.register_discovery(name, package, name in optional):
                logger.info("Installed plugin %s", name)

    def validate_plugin(self, plugin_path: str | Path) -> None:
        """Check that *plugin_path* holds a manifest file.

        Raises
        ------
        MalformedPluginError
            If the manifest is missing.
        """
        manifest = Path(plugin_path) / self._config.manifest_name
        if not manifest.is_file():
            raise MalformedPluginError(
                f"{self._config.manifest_name} was not found in the plugin.",
                context={"path": str(plugin_path)},
            )

    def installed(self, name: str) -> str | None:
        """Return the install path of plugin *name*, or ``None``."""
        return self.index.installed(name)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def has_command(self, command: str) -> bool:
        """Return whether any installed plugin provides *command*."""
        return self.index.command_plugin(command) is not None

    def exec_command(self, command: str, args: Sequence[str] = ()) -> Any:  # noqa: ANN401
        """Run *command* through the plugin that provides it.

        Raises
        ------
        UndefinedCommandError
            If no installed plugin provides *command*.
        """
        if not self.has_command(command):
            raise UndefinedCommandError(
                f"Command `{command}` not found", context={"command": command}
            )

        self.registrar.ensure_loaded(command, CapabilityKind.COMMAND)
        handler_cls = self._ledger.commands.get(command)
        if handler_cls is None:
            raise MalformedPluginError(
                f"Plugin {self.index.command_plugin(command)!r} did not declare "
                f"command `{command}` when loaded.",
                context={"command": command},
            )
        return handler_cls().exec(command, list(args))

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def has_source(self, name: str) -> bool:
        """Return whether any installed plugin provides source type *name*."""
        return self.index.source_plugin(str(name)) is not None

    def source(self, name: str) -> type[SourceHandler]:
        """Return the handler class for source type *name*.

        Raises
        ------
        UnknownSourceError
            If no installed plugin provides *name*.
        """
        if not self.has_source(name):
            raise UnknownSourceError(f"Source {name} not found", context={"source": name})

        self.registrar.ensure_loaded(name, CapabilityKind.SOURCE)
        handler_cls = self._ledger.sources.get(name)
        if handler_cls is None:
            raise MalformedPluginError(
                f"Plugin {self.index.source_plugin(name)!r} did not declare "
                f"source {name} when loaded.",
                context={"source": name},
            )
        return handler_cls

    def resolve_source(
        self, name: str, options: Mapping[str, Any] | None = None
    ) -> SourceHandler:
        """Return a handler instance for source type *name* built from *options*."""
        return self.source(name)(dict(options or {}))

    def source_from_lock(self, locked_options: Mapping[str, Any]) -> SourceHandler:
        """Rebuild a source handler from the options stored in a lock file.

        The ``remote`` entry becomes the handler's ``uri``.
        """
        handler_cls = self.source(locked_options["type"])
        return handler_cls({**locked_options, "uri": locked_options.get("remote")})

    def __repr__(self) -> str:
        return f"PluginHost(root={str(self.root)!r}, ledger={self._ledger!r})"
