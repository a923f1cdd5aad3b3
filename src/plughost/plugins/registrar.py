"""Dual-mode plugin registrar.

A plugin's manifest is executed in two different situations:

*Discovery* (install time)
    The manifest runs against a fresh scratch :class:`CapabilityLedger`.
    What it declares is inspected, conflict-checked, and committed to the
    plugin index.  The live ledger is snapshotted beforehand and restored
    afterwards whatever happens, so a failed or rejected registration never
    leaves handlers behind that dispatch could route to.

*Dispatch* (first use at runtime)
    The manifest runs against the live ledger, which keeps its declarations
    for the rest of the process.  Subsequent requests for any capability it
    declared are served without executing it again.

Both modes share :func:`execute_manifest`; they differ only in the ledger
that receives the declarations and in whether success is written to the
index.

Shipped in this module
----------------------
- add_to_load_path   — prepend plugin paths to ``sys.path``
- execute_manifest   — run a manifest file against a ledger
- Registrar          — discovery and dispatch registration
"""
from __future__ import annotations

import importlib.machinery
import importlib.util
import logging
import re
import shutil
import sys
import types
from collections.abc import Iterable
from pathlib import Path

from plughost.capabilities.ledger import CapabilityKind, CapabilityLedger, activate
from plughost.plugins.index import PluginIndex
from plughost.plugins.installer import InstalledPackage
from plughost.schema.errors import MalformedPluginError, PluginError

logger = logging.getLogger(__name__)

_UNSAFE_MODULE_CHARS = re.compile(r"\W")


def add_to_load_path(load_paths: Iterable[str]) -> None:
    """Prepend *load_paths* to ``sys.path``, keeping their order.

    Entries are never removed or de-duplicated.
    """
    paths = [str(p) for p in load_paths]
    sys.path[0:0] = paths
    logger.debug("Prepended %s to sys.path", paths)


def execute_manifest(manifest: Path, ledger: CapabilityLedger) -> types.ModuleType:
    """Execute the manifest file at *manifest*, declaring into *ledger*.

    *ledger* is the active ledger while the module body runs.  If the module
    defines a callable ``register``, it is then called with *ledger*.

    The source is read and compiled on every call and no bytecode is
    written or read, so a reinstalled manifest always runs as it is on disk.
    The module is not inserted into ``sys.modules``.

    Returns
    -------
    types.ModuleType
        The executed manifest module.
    """
    module_name = "plughost_manifest_" + _UNSAFE_MODULE_CHARS.sub("_", str(manifest.parent.name))
    loader = importlib.machinery.SourceFileLoader(module_name, str(manifest))
    spec = importlib.util.spec_from_file_location(module_name, manifest, loader=loader)
    if spec is None:
        raise PluginError(
            f"Could not create module spec for {manifest}.",
            context={"path": str(manifest)},
        )
    module = importlib.util.module_from_spec(spec)
    code = compile(manifest.read_bytes(), str(manifest), "exec", dont_inherit=True)

    with activate(ledger):
        exec(code, module.__dict__)  # noqa: S102
        register = getattr(module, "register", None)
        if callable(register):
            register(ledger)

    logger.debug("Executed manifest %s", manifest)
    return module


class Registrar:
    """Runs plugin manifests in discovery or dispatch mode.

    Parameters
    ----------
    index:
        The plugin index discovery commits to and dispatch reads from.
    ledger:
        The live ledger dispatch populates.  Discovery never leaves it
        changed.
    manifest_name:
        File name of the manifest at each package root.
    """

    def __init__(
        self,
        index: PluginIndex,
        ledger: CapabilityLedger,
        manifest_name: str = "plugins.py",
    ) -> None:
        self._index = index
        self._ledger = ledger
        self._manifest_name = manifest_name

    @property
    def ledger(self) -> CapabilityLedger:
        return self._ledger

    @property
    def index(self) -> PluginIndex:
        return self._index

    # ------------------------------------------------------------------
    # Discovery mode
    # ------------------------------------------------------------------

    def register_discovery(
        self,
        name: str,
        package: InstalledPackage,
        optional: bool = False,
    ) -> bool:
        """Execute *package*'s manifest in isolation and record the result.

        Parameters
        ----------
        name:
            Plugin name to record the capabilities under.
        package:
            The installed package.
        optional:
            When true, the plugin is discarded (its package directory is
            deleted) if any source type it declares is already owned by a
            different plugin.

        Returns
        -------
        bool
            ``True`` if the plugin was written to the index, ``False`` if it
            was discarded as a conflicting optional plugin.

        Raises
        ------
        MalformedPluginError
            If executing the manifest raised.  The message is
            ``"<ExceptionType>: <message>"`` of the original error.
        """
        saved = self._ledger.snapshot()
        scratch = CapabilityLedger()
        path = Path(package.full_path)

        try:
            add_to_load_path(package.load_paths)
            try:
                execute_manifest(path / self._manifest_name, scratch)
            except Exception as exc:
                raise MalformedPluginError(
                    f"{type(exc).__name__}: {exc}",
                    context={"plugin": name, "path": str(path)},
                ) from exc

            if optional and self._conflicting_sources(name, scratch):
                logger.info(
                    "Skipping optional plugin %r: its sources are already provided.", name
                )
                shutil.rmtree(path, ignore_errors=True)
                return False

            self._index.register_plugin(
                name,
                str(path),
                package.load_paths,
                list(scratch.commands),
                list(scratch.sources),
            )
            return True
        finally:
            self._ledger.restore(saved)

    def _conflicting_sources(self, name: str, scratch: CapabilityLedger) -> list[str]:
        conflicts = []
        for source in scratch.sources:
            owner = self._index.source_plugin(source)
            if owner is not None and owner != name:
                conflicts.append(source)
        return conflicts

    # ------------------------------------------------------------------
    # Dispatch mode
    # ------------------------------------------------------------------

    def ensure_loaded(self, name: str, kind: CapabilityKind) -> None:
        """Make sure the plugin owning capability *name* has been loaded.

        Does nothing if *name* is already in the live ledger.  Otherwise the
        owning plugin's load paths are prepended to ``sys.path`` and its
        manifest is executed against the live ledger.

        Raises
        ------
        PluginError
            If no plugin in the index owns *name*.
        Exception
            Whatever the manifest raised; it is logged and re-raised.
        """
        if self._ledger.has(name, kind):
            return

        if kind is CapabilityKind.COMMAND:
            plugin = self._index.command_plugin(name)
        else:
            plugin = self._index.source_plugin(name)
        if plugin is None:
            raise PluginError(
                f"No plugin provides {kind.value} {name!r}.",
                context={"name": name, "kind": kind.value},
            )
        self.load_plugin(plugin)

    def load_plugin(self, plugin: str) -> None:
        """Execute the manifest of installed *plugin* against the live ledger.

        If the manifest raises, the live ledger is restored to its state
        before the load, so nothing the manifest declared stays reachable.
        """
        saved = self._ledger.snapshot()
        try:
            path = self._index.plugin_path(plugin)
            add_to_load_path(self._index.load_paths(plugin))
            execute_manifest(path / self._manifest_name, self._ledger)
        except Exception as exc:
            self._ledger.restore(saved)
            logger.error("Failed loading plugin %s: %s", plugin, exc)
            raise
        logger.debug("Loaded plugin %r", plugin)
