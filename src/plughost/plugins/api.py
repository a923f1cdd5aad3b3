"""Public surface for plugin manifests.

Every plugin package ships a ``plugins.py`` manifest at its root.  The host
executes it whenever it needs to learn or load the plugin's capabilities.
A manifest declares capabilities in any of three equivalent ways:

.. code-block:: python

    from plughost.plugins import api

    # 1. decorators
    @api.command("greet")
    class Greet(api.CommandHandler):
        def exec(self, command, args):
            return f"hello {' '.join(args)}"

    # 2. direct calls
    class Mirror(api.SourceHandler):
        pass

    api.declare_source("mirror", Mirror)

    # 3. an explicit registration callback, invoked with the target ledger
    def register(ledger):
        ledger.add_command("greet-loudly", Greet)

Declarations made outside a manifest execution raise
:class:`~plughost.schema.errors.PluginError`.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from plughost.capabilities.contracts import CommandHandler, SourceHandler
from plughost.capabilities.ledger import declare_command, declare_source

__all__ = [
    "CommandHandler",
    "SourceHandler",
    "command",
    "declare_command",
    "declare_source",
    "source",
]

C = TypeVar("C", bound=type[CommandHandler])
S = TypeVar("S", bound=type[SourceHandler])


def command(*names: str) -> Callable[[C], C]:
    """Return a class decorator declaring the class as handler for *names*."""

    def decorator(cls: C) -> C:
        for name in names:
            declare_command(name, cls)
        return cls

    return decorator


def source(*names: str) -> Callable[[S], S]:
    """Return a class decorator declaring the class as source for *names*."""

    def decorator(cls: S) -> S:
        for name in names:
            declare_source(name, cls)
        return cls

    return decorator
