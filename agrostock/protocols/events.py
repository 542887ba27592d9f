"""
Event Sink Protocol — Interface for publishing ledger events.

Agrostock defines this protocol; message brokers, webhooks or in-process
listeners implement it. Publication is fire-and-forget: the engine never
retries, and a failing sink never undoes a committed change.

Topics:
    inventory.created, lot.created, ledger.deleted
    stock.added, quantity.reserved, quantity.released,
    sale.completed, stock.damaged
    levels.updated, lot.quality.updated, lot.expiry.updated
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EventSink(Protocol):
    """Protocol for ledger event publication."""

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """
        Publish one event.

        Args:
            topic: Dotted event name, e.g. "quantity.reserved"
            payload: JSON-serializable data (Decimals already as str)
        """
        ...
