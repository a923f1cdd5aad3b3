"""Handler contracts that plugin-provided capabilities must satisfy.

A plugin extends the host with two kinds of capability:

- a *command* — an extra subcommand of the host tool, implemented by a
  :class:`CommandHandler` subclass;
- a *source* — an extra dependency-source type (``git``, ``svn``, a private
  registry, ...), implemented by a :class:`SourceHandler` subclass.

The host never instantiates a handler until a request for it is dispatched.

Example
-------
::

    class Hello(CommandHandler):
        def exec(self, command, args):
            print("hello", *args)

    class MirrorSource(SourceHandler):
        pass

    src = MirrorSource({"uri": "https://mirror.example/repo"})
    assert src.to_lock()["remote"] == "https://mirror.example/repo"
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any


class CommandHandler(ABC):
    """Base class for plugin commands.

    A fresh instance is created for every dispatched invocation, so
    subclasses may keep per-invocation state on ``self``.
    """

    @abstractmethod
    def exec(self, command: str, args: Sequence[str]) -> Any:  # noqa: ANN401
        """Run *command* with the remaining command-line *args*.

        Parameters
        ----------
        command:
            The command name the handler was registered under.  A single
            handler class may be registered for several names.
        args:
            Arguments following the command name.

        Returns
        -------
        Any
            Whatever the handler chooses; the host passes it back to the caller.
        """


class SourceHandler:
    """Base class for plugin dependency sources.

    Instances are built from an options mapping — either the options a user
    wrote next to a dependency, or the options persisted in a lock file.  The
    ``uri`` option identifies the source; two handlers of the same class with
    the same ``uri`` are equal.

    Parameters
    ----------
    options:
        Source options.  Copied; the caller's mapping is never mutated.

    Attributes
    ----------
    options:
        The full options mapping.
    uri:
        Location of the source, ``options["uri"]``.
    name:
        Display name; ``options["name"]`` when given, otherwise the class name.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: dict[str, Any] = dict(options or {})
        self.uri: str | None = self.options.get("uri")
        self.name: str = str(self.options.get("name") or type(self).__name__)

    @property
    def source_type(self) -> str | None:
        """The source type name these options were resolved under."""
        return self.options.get("type")

    def options_to_lock(self) -> dict[str, Any]:
        """Extra options to persist in the lock file.  Override to add some."""
        return {}

    def to_lock(self) -> dict[str, Any]:
        """Return the mapping written to the lock file for this source.

        The ``uri`` is written back as ``remote`` so that
        :meth:`~plughost.plugins.host.PluginHost.source_from_lock` can rebuild
        an equal handler from it.
        """
        locked: dict[str, Any] = {"type": self.source_type, "remote": self.uri}
        locked.update(self.options_to_lock())
        return locked

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SourceHandler):
            return NotImplemented
        return type(self) is type(other) and self.uri == other.uri

    def __hash__(self) -> int:
        return hash((type(self), self.uri))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(uri={self.uri!r})"
