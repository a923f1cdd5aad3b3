"""Plugin subsystem for plughost.

Plugins are directories carrying a ``plugins.py`` manifest.  The manifest
declares commands and dependency-source types through :mod:`plughost.plugins.api`.

- :class:`PluginHost`   — install plugins, dispatch commands and sources
- :class:`Registrar`    — discovery / dispatch execution of manifests
- :class:`PluginIndex`  — persisted record of installed plugins
- :class:`PathInstaller` — copies plugin packages from local directories
"""
from __future__ import annotations

from plughost.plugins.declaration import DeclarationBuilder, Dependency
from plughost.plugins.host import PluginHost
from plughost.plugins.index import PluginIndex, PluginRecord
from plughost.plugins.installer import InstalledPackage, PackageInstaller, PathInstaller
from plughost.plugins.registrar import Registrar, add_to_load_path, execute_manifest

__all__ = [
    "DeclarationBuilder",
    "Dependency",
    "InstalledPackage",
    "PackageInstaller",
    "PathInstaller",
    "PluginHost",
    "PluginIndex",
    "PluginRecord",
    "Registrar",
    "add_to_load_path",
    "execute_manifest",
]
