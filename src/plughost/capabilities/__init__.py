"""Capability contracts and the in-memory capability ledger."""
from __future__ import annotations

from plughost.capabilities.contracts import CommandHandler, SourceHandler
from plughost.capabilities.ledger import (
    CapabilityKind,
    CapabilityLedger,
    LedgerSnapshot,
    activate,
    active_ledger,
    declare_command,
    declare_source,
)

__all__ = [
    "CapabilityKind",
    "CapabilityLedger",
    "CommandHandler",
    "LedgerSnapshot",
    "SourceHandler",
    "activate",
    "active_ledger",
    "declare_command",
    "declare_source",
]
