"""Error taxonomy for plughost.

All exceptions raised by plughost derive from ``PlugHostError`` so that
callers can catch the entire family with a single ``except PlugHostError``
clause while still being able to distinguish individual failure modes.

Shipped in this module
----------------------
- ErrorSeverity          — ordered severity enum
- PlugHostError          — root exception with severity and context payload
- ConfigurationError     — bad or unreadable host configuration
- IndexStoreError        — unreadable or unwritable plugin index
- PluginError            — base for every plugin-related failure
- MalformedPluginError   — manifest missing, or manifest execution raised
- UndefinedCommandError  — no plugin owns the requested command
- UnknownSourceError     — no plugin owns the requested source type
- InstallError           — the package installer could not provide a plugin
- DeclarationError       — an install declaration could not be evaluated

``PluginHost.install`` treats every ``PluginError`` as a recoverable,
report-only failure; see :mod:`plughost.plugins.host`.
"""
from __future__ import annotations

from enum import Enum


class ErrorSeverity(str, Enum):
    """Ordered severity levels for ``PlugHostError`` instances.

    Severity is purely advisory metadata — it does not change the
    exception-handling semantics, but it lets logging and alerting
    infrastructure filter by impact level.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class PlugHostError(Exception):
    """Root exception for all plughost failures.

    Parameters
    ----------
    message:
        Human-readable description of what went wrong.
    severity:
        Advisory ``ErrorSeverity`` level.  Defaults to ``HIGH``.
    context:
        Optional dict of structured metadata (plugin names, paths, etc.)
        that helps diagnostics without requiring log scraping.

    Examples
    --------
    >>> try:
    ...     raise PlugHostError("something broke", ErrorSeverity.MEDIUM)
    ... except PlugHostError as exc:
    ...     print(exc.severity.value)
    medium
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.severity: ErrorSeverity = severity
        self.context: dict[str, object] = context or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"message={str(self)!r}, "
            f"severity={self.severity.value!r})"
        )


class ConfigurationError(PlugHostError):
    """Raised when configuration loading or validation fails.

    Examples: missing config file, bad YAML, a field of the wrong type.
    """


class IndexStoreError(PlugHostError):
    """Raised when the persisted plugin index cannot be read or written."""


class PluginError(PlugHostError):
    """Raised when a plugin cannot be installed, registered, or loaded."""


class MalformedPluginError(PluginError):
    """Raised when a plugin package is structurally or behaviourally broken.

    Covers a missing manifest file and any exception raised while the
    manifest executes.  In the latter case the message carries the
    original exception's class name and message.
    """


class UndefinedCommandError(PluginError):
    """Raised when a command is dispatched that no installed plugin owns."""


class UnknownSourceError(PluginError):
    """Raised when a source type is requested that no installed plugin owns."""


class InstallError(PluginError):
    """Raised by an installer that cannot locate or copy a plugin package."""


class DeclarationError(PluginError):
    """Raised when an install declaration uses an unsupported construct."""
