"""
Signal Event Sink — re-broadcasts ledger events as a Django signal.

This is the default sink. Other apps in the project subscribe to
agrostock.signals.ledger_event without agrostock knowing about them.

Usage in settings.py:
    AGROSTOCK = {
        "EVENT_SINKS": ["agrostock.adapters.signals.SignalEventSink"],
    }
"""

from __future__ import annotations

from typing import Any

from agrostock.signals import ledger_event


class SignalEventSink:
    """EventSink that sends agrostock.signals.ledger_event."""

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        # Receiver errors are returned by send_robust, never raised.
        ledger_event.send_robust(sender=self.__class__, topic=topic, payload=payload)
