"""Locate and load plughost configuration.

A plughost config file is a YAML mapping of ``HostConfig`` fields.  When no
file is named explicitly it is looked up by walking from a starting
directory towards the filesystem root, so a project's config is found from
any of its subdirectories.  Relative directories in the file (``user_dir``,
``app_dir``, ``plugin_paths``) are resolved against the file's own
directory, not against the working directory of the process.

``PLUGHOST_*`` environment variables are overlaid last.

Shipped in this module
----------------------
- CONFIG_FILE_NAMES  — file names recognised as a plughost config
- find_config_file   — nearest config file at or above a directory
- ConfigLoader       — file, environment and discovered configuration
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from plughost.config.defaults import DEFAULT_CONFIG
from plughost.schema.config import HostConfig
from plughost.schema.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES: tuple[str, ...] = (
    "plughost.yaml",
    "plughost.yml",
    ".plughost.yaml",
    ".plughost.yml",
)

_DIRECTORY_FIELDS: tuple[str, ...] = ("user_dir", "app_dir")


def find_config_file(start: str | Path) -> Path | None:
    """Return the nearest config file in *start* or one of its parents.

    Within one directory the names in ``CONFIG_FILE_NAMES`` are tried in
    order.  Returns ``None`` when no directory up to the root holds one.
    """
    directory = Path(start).expanduser().resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_FILE_NAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    return None


def _resolve_directory(value: object, base: Path) -> object:
    if not isinstance(value, str):
        return value
    path = Path(value).expanduser()
    return str(path if path.is_absolute() else base / path)


def _resolve_directories(raw: Mapping[str, object], base: Path) -> dict[str, object]:
    data = dict(raw)
    for key in _DIRECTORY_FIELDS:
        if key in data:
            data[key] = _resolve_directory(data[key], base)
    paths = data.get("plugin_paths")
    if isinstance(paths, str):
        paths = [paths]
    if isinstance(paths, list):
        data["plugin_paths"] = [_resolve_directory(entry, base) for entry in paths]
    return data


class ConfigLoader:
    """Builds the ``HostConfig`` a host runs with.

    Parameters
    ----------
    env_prefix:
        Prefix of the environment variables overlaid on file configuration.

    Examples
    --------
    >>> loader = ConfigLoader(env_prefix="PLUGHOST_DOCTEST_")
    >>> loader.load_env() is None
    True
    """

    def __init__(self, env_prefix: str = "PLUGHOST_") -> None:
        self._env_prefix = env_prefix

    @property
    def env_prefix(self) -> str:
        return self._env_prefix

    def load_file(self, path: str | Path) -> HostConfig:
        """Load the config file at *path*.

        An empty file yields the defaults.  Relative directories are
        resolved against the directory holding *path*.

        Raises
        ------
        ConfigurationError
            If the file cannot be read or parsed, is not a mapping, or
            fails validation.
        """
        resolved = Path(path).expanduser().resolve()
        try:
            text = resolved.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Could not read plughost config {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc
        try:
            raw: object = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Could not parse plughost config {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"plughost config {resolved} must be a mapping, not {type(raw).__name__}.",
                context={"path": str(resolved)},
            )
        logger.debug("Loaded plughost config from %s", resolved)
        return HostConfig.from_mapping(
            _resolve_directories(raw, resolved.parent), source=str(resolved)
        )

    def load_env(self) -> HostConfig | None:
        """Return the configuration set through the environment, if any."""
        if not any(key.startswith(self._env_prefix) for key in os.environ):
            return None
        return HostConfig.from_env(prefix=self._env_prefix)

    def load(
        self,
        path: str | Path | None = None,
        start_dir: str | Path | None = None,
    ) -> HostConfig:
        """Return the effective configuration.

        Parameters
        ----------
        path:
            Explicit config file.  When omitted the nearest config file at or
            above *start_dir* is used, and ``DEFAULT_CONFIG`` when there is
            none.
        start_dir:
            Where discovery starts.  Defaults to the working directory.

        Environment variables are merged on top; ``plugin_paths`` from the
        environment extend those of the file.
        """
        if path is not None:
            config = self.load_file(path)
        else:
            found = find_config_file(start_dir if start_dir is not None else Path.cwd())
            if found is None:
                logger.debug("No plughost config file found; using defaults.")
                config = DEFAULT_CONFIG
            else:
                logger.info("Using plughost config %s", found)
                config = self.load_file(found)

        env_config = self.load_env()
        if env_config is not None:
            config = config.merge(env_config)
            logger.debug("Applied %s* environment overlay.", self._env_prefix)
        return config
