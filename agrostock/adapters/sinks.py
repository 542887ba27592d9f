"""
Event sink loading — builds the configured EventSinks from settings.

Usage:
    from agrostock.adapters import get_event_sinks

    for sink in get_event_sinks():
        sink.publish("stock.added", payload)

Settings:
    AGROSTOCK = {
        "EVENT_SINKS": [
            "agrostock.adapters.signals.SignalEventSink",
            "myproject.kafka.KafkaEventSink",
        ],
    }

A path that cannot be imported raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from agrostock.conf import agrostock_settings
from agrostock.protocols.events import EventSink

logger = logging.getLogger(__name__)


# Cached sink instances
_lock = threading.Lock()
_event_sinks: list[EventSink] | None = None


def get_event_sinks() -> list[EventSink]:
    """
    Return the configured event sinks.

    Returns:
        List of EventSink instances (possibly empty)

    Raises:
        ImproperlyConfigured: If a sink cannot be imported or lacks publish()
    """
    global _event_sinks

    if _event_sinks is None:
        with _lock:
            if _event_sinks is None:  # double-checked
                sinks = []
                for path in agrostock_settings.EVENT_SINKS:
                    try:
                        sink_class = import_string(path)
                    except ImportError as e:
                        raise ImproperlyConfigured(
                            f"Failed to import event sink '{path}': {e}"
                        ) from e

                    sink = sink_class()
                    if not isinstance(sink, EventSink):
                        raise ImproperlyConfigured(
                            f"Event sink '{path}' does not implement publish(topic, payload)"
                        )
                    sinks.append(sink)
                    logger.debug("Loaded event sink: %s", path)
                _event_sinks = sinks

    return _event_sinks


def reset_event_sinks() -> None:
    """Reset the cached sinks. Useful for testing."""
    global _event_sinks
    _event_sinks = None
