"""Package installers that put plugin packages on disk.

The host does not care how a plugin package is obtained; it only needs an
object satisfying :class:`PackageInstaller` that returns, for each requested
plugin, where the package ended up and which module search paths it adds.

:class:`PathInstaller` is the installer shipped with plughost.  It copies
plugin directories from the local filesystem into the host's packages
directory.  Remote fetching is left to other installer implementations.

Shipped in this module
----------------------
- InstalledPackage  — location of an installed plugin package
- PackageInstaller  — protocol the host consumes
- PathInstaller     — copies plugin directories from local paths
"""
from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from plughost.plugins.declaration import Dependency
from plughost.schema.errors import InstallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstalledPackage:
    """An installed plugin package.

    Attributes
    ----------
    name:
        Plugin name.
    full_path:
        Root directory of the installed package.
    load_paths:
        Absolute module search paths the package contributes, in order.
    """

    name: str
    full_path: Path
    load_paths: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class PackageInstaller(Protocol):
    """What the plugin host needs from a package installer.

    Both methods raise :class:`~plughost.schema.errors.InstallError` when a
    package cannot be provided, after removing whatever the call copied.
    """

    def install(
        self, names: Sequence[str], options: Mapping[str, Any]
    ) -> dict[str, InstalledPackage]:
        """Install the plugins called *names* and return where each landed."""
        ...

    def install_definition(
        self, dependencies: Iterable[Dependency]
    ) -> dict[str, InstalledPackage]:
        """Install every dependency of a declaration and return where each landed."""
        ...


class PathInstaller:
    """Installs plugin packages by copying directories from local paths.

    A package for plugin ``name`` is looked up, in order:

    1. at the explicit ``path`` option, either directly (when it holds a
       manifest) or as ``<path>/<name>``;
    2. as ``<search_dir>/<name>`` for each configured search directory.

    The package is copied to ``<packages_dir>/<name>``, replacing any
    previous copy.  Its load path is ``<copy>/lib`` when that directory
    exists, otherwise the package root, unless a ``load_paths`` option lists
    paths relative to the package root.

    Parameters
    ----------
    packages_dir:
        Destination directory for installed packages.
    search_paths:
        Directories searched for packages when no ``path`` option applies.
    manifest_name:
        Manifest file name, used to recognise a package directory.
    """

    def __init__(
        self,
        packages_dir: str | Path,
        search_paths: Iterable[str | Path] = (),
        manifest_name: str = "plugins.py",
    ) -> None:
        self._packages_dir = Path(packages_dir)
        self._search_paths = [Path(p).expanduser() for p in search_paths]
        self._manifest_name = manifest_name

    @property
    def packages_dir(self) -> Path:
        return self._packages_dir

    def install(
        self, names: Sequence[str], options: Mapping[str, Any]
    ) -> dict[str, InstalledPackage]:
        """Install each of *names* using the shared *options*.

        Raises
        ------
        InstallError
            If a package cannot be found or copied.  Packages copied
            earlier in the same call are removed first.
        """
        return self._install_all((name, options) for name in names)

    def install_definition(
        self, dependencies: Iterable[Dependency]
    ) -> dict[str, InstalledPackage]:
        """Install each dependency using its own options.

        Cleans up after a failure the same way as :meth:`install`.
        """
        return self._install_all((dep.name, dep.options) for dep in dependencies)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _install_all(
        self, requests: Iterable[tuple[str, Mapping[str, Any]]]
    ) -> dict[str, InstalledPackage]:
        installed: dict[str, InstalledPackage] = {}
        try:
            for name, options in requests:
                installed[name] = self._install_one(name, options)
        except InstallError:
            for package in installed.values():
                shutil.rmtree(package.full_path, ignore_errors=True)
            if installed:
                logger.debug("Removed partially installed plugins %s", sorted(installed))
            raise
        return installed

    def _install_one(self, name: str, options: Mapping[str, Any]) -> InstalledPackage:
        source = self._locate(name, options)
        dest = self._packages_dir / name
        try:
            if dest.exists():
                shutil.rmtree(dest)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(source, dest, symlinks=True)
        except OSError as exc:
            raise InstallError(
                f"Could not copy plugin {name!r} from {source}: {exc}",
                context={"plugin": name, "source": str(source)},
            ) from exc

        load_paths = self._load_paths(dest, options.get("load_paths"))
        logger.debug("Copied plugin %r from %s to %s", name, source, dest)
        return InstalledPackage(name=name, full_path=dest, load_paths=load_paths)

    def _locate(self, name: str, options: Mapping[str, Any]) -> Path:
        candidates: list[Path] = []
        explicit = options.get("path")
        if explicit:
            base = Path(str(explicit)).expanduser()
            candidates.extend([base, base / name])
        candidates.extend(search_dir / name for search_dir in self._search_paths)

        for candidate in candidates:
            if (candidate / self._manifest_name).is_file():
                return candidate.resolve()
        # A directory without a manifest still installs; validation rejects it later.
        for candidate in candidates:
            if candidate.is_dir() and candidate.name == name:
                return candidate.resolve()

        raise InstallError(
            f"Could not find plugin package {name!r}.",
            context={"plugin": name, "searched": [str(c) for c in candidates]},
        )

    @staticmethod
    def _load_paths(root: Path, requested: object) -> tuple[str, ...]:
        if requested:
            entries = [requested] if isinstance(requested, str) else list(requested)  # type: ignore[call-overload]
            return tuple(str(root / str(entry)) for entry in entries)
        lib = root / "lib"
        return (str(lib),) if lib.is_dir() else (str(root),)
