"""plughost — capability registration and dispatch for package-manager plugins.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick-start
-----------
>>> import plughost
>>> plughost.__version__
'0.1.0'

>>> from plughost import HostConfig, PluginHost
>>> host = PluginHost(HostConfig(user_dir="/tmp/plughost-doctest"))
>>> host.has_command("greet")
False
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
from plughost.schema.config import HostConfig
from plughost.schema.errors import (
    ConfigurationError,
    DeclarationError,
    ErrorSeverity,
    IndexStoreError,
    InstallError,
    MalformedPluginError,
    PlugHostError,
    PluginError,
    UndefinedCommandError,
    UnknownSourceError,
)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
from plughost.config.defaults import DEFAULT_CONFIG
from plughost.config.loader import ConfigLoader, find_config_file

# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------
from plughost.capabilities.contracts import CommandHandler, SourceHandler
from plughost.capabilities.ledger import CapabilityKind, CapabilityLedger, LedgerSnapshot

# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------
from plughost.plugins.declaration import DeclarationBuilder, Dependency
from plughost.plugins.host import PluginHost
from plughost.plugins.index import PluginIndex, PluginRecord
from plughost.plugins.installer import InstalledPackage, PackageInstaller, PathInstaller
from plughost.plugins.registrar import Registrar

__all__ = [
    "__version__",
    # schema — errors
    "ErrorSeverity",
    "PlugHostError",
    "ConfigurationError",
    "IndexStoreError",
    "PluginError",
    "MalformedPluginError",
    "UndefinedCommandError",
    "UnknownSourceError",
    "InstallError",
    "DeclarationError",
    # schema — config
    "HostConfig",
    # config
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "find_config_file",
    # capabilities
    "CommandHandler",
    "SourceHandler",
    "CapabilityKind",
    "CapabilityLedger",
    "LedgerSnapshot",
    # plugins
    "PluginHost",
    "Registrar",
    "PluginIndex",
    "PluginRecord",
    "PackageInstaller",
    "PathInstaller",
    "InstalledPackage",
    "DeclarationBuilder",
    "Dependency",
]
