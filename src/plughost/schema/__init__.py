"""Schema package for plughost.

Exports the error taxonomy and the validated configuration model.
"""
from __future__ import annotations

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

__all__ = [
    # Errors
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
    # Config
    "HostConfig",
]
