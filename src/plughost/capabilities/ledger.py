"""In-memory capability ledger: command/source name → handler class.

A :class:`CapabilityLedger` is what plugin manifests write into when they
declare capabilities.  The host keeps one *live* ledger that dispatch routes
against; install-time discovery builds a throwaway *scratch* ledger per
plugin so that a half-registered or conflicting plugin never reaches the live
one.

Manifests reach "the ledger currently being populated" through the *active
ledger*, a :class:`contextvars.ContextVar` that the registrar sets around a
manifest execution with :func:`activate` and resets afterwards.

Shipped in this module
----------------------
- CapabilityKind    — ``command`` / ``source`` discriminator
- LedgerSnapshot    — immutable copy of a ledger's contents
- CapabilityLedger  — the two mutable maps plus declaration helpers
- activate          — context manager installing the active ledger
- active_ledger     — return the active ledger or raise
- declare_command   — add a command to the active ledger
- declare_source    — add a source to the active ledger
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum

from plughost.capabilities.contracts import CommandHandler, SourceHandler
from plughost.schema.errors import PluginError

logger = logging.getLogger(__name__)


class CapabilityKind(str, Enum):
    """The two kinds of capability a plugin can provide."""

    COMMAND = "command"
    SOURCE = "source"


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of a :class:`CapabilityLedger`.

    Attributes
    ----------
    commands:
        Command name → handler class at snapshot time.
    sources:
        Source name → handler class at snapshot time.
    """

    commands: dict[str, type[CommandHandler]] = field(default_factory=dict)
    sources: dict[str, type[SourceHandler]] = field(default_factory=dict)


class CapabilityLedger:
    """Mutable command and source tables populated by plugin manifests.

    Not thread-safe: the registration protocol assumes strictly sequential
    access.

    Examples
    --------
    >>> class Hello(CommandHandler):
    ...     def exec(self, command, args): return "hi"
    >>> ledger = CapabilityLedger()
    >>> ledger.add_command("hello", Hello)
    >>> ledger.has_command("hello")
    True
    """

    def __init__(self) -> None:
        self.commands: dict[str, type[CommandHandler]] = {}
        self.sources: dict[str, type[SourceHandler]] = {}

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def add_command(self, name: str, handler_cls: type[CommandHandler]) -> None:
        """Register *handler_cls* to handle command *name*.

        A later declaration for the same name replaces the earlier one.

        Raises
        ------
        TypeError
            If *handler_cls* is not a subclass of ``CommandHandler``.
        """
        if not (isinstance(handler_cls, type) and issubclass(handler_cls, CommandHandler)):
            raise TypeError(
                f"Cannot register {handler_cls!r} for command {name!r}: "
                "it must be a subclass of CommandHandler."
            )
        self.commands[name] = handler_cls
        logger.debug("Declared command %r -> %s", name, handler_cls.__qualname__)

    def add_source(self, name: str, handler_cls: type[SourceHandler]) -> None:
        """Register *handler_cls* to handle source type *name*.

        Raises
        ------
        TypeError
            If *handler_cls* is not a subclass of ``SourceHandler``.
        """
        if not (isinstance(handler_cls, type) and issubclass(handler_cls, SourceHandler)):
            raise TypeError(
                f"Cannot register {handler_cls!r} for source {name!r}: "
                "it must be a subclass of SourceHandler."
            )
        self.sources[name] = handler_cls
        logger.debug("Declared source %r -> %s", name, handler_cls.__qualname__)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def has_command(self, name: str) -> bool:
        return name in self.commands

    def has_source(self, name: str) -> bool:
        return name in self.sources

    def has(self, name: str, kind: CapabilityKind) -> bool:
        """Return whether *name* is declared as a capability of *kind*."""
        if kind is CapabilityKind.COMMAND:
            return self.has_command(name)
        return self.has_source(name)

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        """Return an immutable copy of the current contents."""
        return LedgerSnapshot(commands=dict(self.commands), sources=dict(self.sources))

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Replace the current contents with those of *snapshot*."""
        self.commands = dict(snapshot.commands)
        self.sources = dict(snapshot.sources)

    def clear(self) -> None:
        self.commands = {}
        self.sources = {}

    def __len__(self) -> int:
        return len(self.commands) + len(self.sources)

    def __repr__(self) -> str:
        return (
            f"CapabilityLedger(commands={sorted(self.commands)}, "
            f"sources={sorted(self.sources)})"
        )


# ---------------------------------------------------------------------------
# Active ledger
# ---------------------------------------------------------------------------

_ACTIVE_LEDGER: ContextVar[CapabilityLedger | None] = ContextVar(
    "plughost_active_ledger", default=None
)


@contextmanager
def activate(ledger: CapabilityLedger) -> Iterator[CapabilityLedger]:
    """Make *ledger* the active ledger for the duration of the block.

    The previously active ledger (usually none) is reinstated on exit, even
    when the block raises.
    """
    token = _ACTIVE_LEDGER.set(ledger)
    try:
        yield ledger
    finally:
        _ACTIVE_LEDGER.reset(token)


def active_ledger() -> CapabilityLedger:
    """Return the ledger the running manifest declares into.

    Raises
    ------
    PluginError
        If called outside of a manifest execution.
    """
    ledger = _ACTIVE_LEDGER.get()
    if ledger is None:
        raise PluginError(
            "Capabilities can only be declared while a plugin manifest is being executed."
        )
    return ledger


def declare_command(name: str, handler_cls: type[CommandHandler]) -> None:
    """Declare a command on the active ledger."""
    active_ledger().add_command(name, handler_cls)


def declare_source(name: str, handler_cls: type[SourceHandler]) -> None:
    """Declare a source type on the active ledger."""
    active_ledger().add_source(name, handler_cls)
