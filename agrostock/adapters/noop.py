"""
Noop and logging event sinks — trivial adapters for development and testing.

Usage in settings.py:
    AGROSTOCK = {
        "EVENT_SINKS": ["agrostock.adapters.noop.LoggingEventSink"],
    }
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger('agrostock')


class NoopEventSink:
    """
    No-operation event sink.

    Drops every event. Suitable for tests and scripts that don't care
    about downstream notifications.
    """

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        return None


class LoggingEventSink:
    """Event sink that writes each event to the agrostock logger."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        logger.log(self.level, "ledger.event.%s", topic, extra={"payload": payload})
