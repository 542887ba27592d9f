"""
Agrostock Adapters.

Implementations of protocols for external systems.
"""

from agrostock.adapters.clock import FixedClock, SystemClock
from agrostock.adapters.django_store import DjangoLedgerStore
from agrostock.adapters.memory import InMemoryLedgerStore
from agrostock.adapters.noop import LoggingEventSink, NoopEventSink
from agrostock.adapters.signals import SignalEventSink
from agrostock.adapters.sinks import get_event_sinks, reset_event_sinks

__all__ = [
    "DjangoLedgerStore",
    "FixedClock",
    "InMemoryLedgerStore",
    "LoggingEventSink",
    "NoopEventSink",
    "SignalEventSink",
    "SystemClock",
    "get_event_sinks",
    "reset_event_sinks",
]
