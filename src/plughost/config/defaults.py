"""Default configuration constants for plughost.

``DEFAULT_CONFIG`` provides a baseline ``HostConfig`` using the global plugin
root under the user's home directory.  It is the starting point used by
``ConfigLoader.load()`` when no config file is found.
"""
from __future__ import annotations

from plughost.schema.config import HostConfig

DEFAULT_CONFIG: HostConfig = HostConfig(
    user_dir="~/.plughost",
    app_dir=None,
    manifest_name="plugins.py",
    plugin_paths=[],
)
"""Baseline ``HostConfig`` used when no file or env config is present."""
