"""Config package for plughost.

Provides configuration discovery, loading, and sensible defaults.
"""
from __future__ import annotations

from plughost.config.defaults import DEFAULT_CONFIG
from plughost.config.loader import CONFIG_FILE_NAMES, ConfigLoader, find_config_file

__all__ = [
    "CONFIG_FILE_NAMES",
    "ConfigLoader",
    "DEFAULT_CONFIG",
    "find_config_file",
]
