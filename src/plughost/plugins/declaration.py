"""Install declarations: which plugins a project wants.

A declaration is either a YAML file or a Python callable that receives a
:class:`DeclarationBuilder`.  Only plugin-related constructs are honoured;
ordinary dependency entries (``gems``) are accepted and ignored, so a
project's full dependency file can be fed in unchanged.

.. code-block:: yaml

    plugins:
      - greeter
      - name: mirror-tools
        path: ./vendor/mirror-tools
    sources:
      - url: https://git.example/repo.git
        type: git

A source entry with a ``type`` implies that a plugin providing that source
type is needed; it is added as ``plughost-source-<type>`` and reported in
:attr:`DeclarationBuilder.inferred_plugins`.  Inferred plugins are installed
as *optional*: they are dropped when another installed plugin already serves
the same source type.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from plughost.schema.errors import DeclarationError

logger = logging.getLogger(__name__)

INFERRED_SOURCE_PREFIX = "plughost-source-"

_KNOWN_KEYS = frozenset({"plugins", "sources", "gems"})


@dataclass
class Dependency:
    """A plugin requested by a declaration, with its install options."""

    name: str
    options: dict[str, Any] = field(default_factory=dict)


class DeclarationBuilder:
    """Collects plugin dependencies from a declaration.

    Examples
    --------
    >>> builder = DeclarationBuilder()
    >>> builder.plugin("greeter")
    >>> builder.source("https://git.example/repo.git", type="git")
    >>> [d.name for d in builder.dependencies]
    ['greeter', 'plughost-source-git']
    >>> builder.inferred_plugins
    ['plughost-source-git']
    """

    def __init__(self) -> None:
        self.dependencies: list[Dependency] = []
        self.inferred_plugins: list[str] = []

    def plugin(self, name: str, **options: Any) -> None:
        """Request plugin *name*; *options* are passed to the installer."""
        if not name:
            raise DeclarationError("Plugin declarations need a name.")
        if any(dep.name == name for dep in self.dependencies):
            raise DeclarationError(
                f"Plugin {name!r} is declared more than once.",
                context={"plugin": name},
            )
        self.dependencies.append(Dependency(name=name, options=dict(options)))

    def source(self, url: str, type: str | None = None, **options: Any) -> None:  # noqa: A002
        """Record a dependency source; typed sources infer a source plugin."""
        if type is None:
            return
        plugin_name = f"{INFERRED_SOURCE_PREFIX}{type}"
        if any(dep.name == plugin_name for dep in self.dependencies):
            return
        self.plugin(plugin_name)
        self.inferred_plugins.append(plugin_name)
        logger.debug("Inferred plugin %r from source %s", plugin_name, url)

    def gem(self, *args: Any, **options: Any) -> None:
        """Ordinary dependencies are not plugins; ignored."""

    # ------------------------------------------------------------------
    # File evaluation
    # ------------------------------------------------------------------

    def eval_file(self, path: str | Path) -> None:
        """Evaluate the YAML declaration at *path* into this builder.

        Relative ``path`` options are resolved against the file's directory.

        Raises
        ------
        DeclarationError
            If the file is missing, unparsable, or uses unknown keys.
        """
        resolved = Path(path)
        try:
            with resolved.open(encoding="utf-8") as fh:
                raw: object = yaml.safe_load(fh)
        except OSError as exc:
            raise DeclarationError(
                f"Could not read declaration {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc
        except yaml.YAMLError as exc:
            raise DeclarationError(
                f"Failed to parse declaration {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc

        if raw is None:
            return
        if not isinstance(raw, dict):
            raise DeclarationError(
                f"Declaration {resolved} must be a mapping.",
                context={"path": str(resolved)},
            )
        unknown = sorted(set(raw) - _KNOWN_KEYS)
        if unknown:
            raise DeclarationError(
                f"Undefined declaration entries {unknown} in {resolved}.",
                context={"path": str(resolved), "keys": unknown},
            )

        base_dir = resolved.parent
        for entry in raw.get("plugins") or []:
            name, options = self._split_entry(entry, resolved)
            if "path" in options:
                options["path"] = str(base_dir / str(options["path"]))
            self.plugin(name, **options)

        for entry in raw.get("sources") or []:
            if isinstance(entry, str):
                self.source(entry)
                continue
            if not isinstance(entry, dict) or "url" not in entry:
                raise DeclarationError(
                    f"Source entries in {resolved} need a url.",
                    context={"path": str(resolved)},
                )
            options = dict(entry)
            url = str(options.pop("url"))
            self.source(url, **options)

    @staticmethod
    def _split_entry(entry: object, origin: Path) -> tuple[str, dict[str, Any]]:
        if isinstance(entry, str):
            return entry, {}
        if isinstance(entry, dict) and "name" in entry:
            options = dict(entry)
            return str(options.pop("name")), options
        raise DeclarationError(
            f"Plugin entries in {origin} must be a name or a mapping with a name.",
            context={"path": str(origin)},
        )
