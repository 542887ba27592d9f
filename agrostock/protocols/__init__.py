"""
Agrostock Protocols.

Defines interfaces for external system integration.
"""

from agrostock.protocols.clock import Clock
from agrostock.protocols.events import EventSink
from agrostock.protocols.store import LEDGER_STATE_FIELDS, LedgerStore

__all__ = [
    "Clock",
    "EventSink",
    "LEDGER_STATE_FIELDS",
    "LedgerStore",
]
