"""
Agrostock configuration.

Usage in settings.py:
    AGROSTOCK = {
        "EVENT_SINKS": ["agrostock.adapters.signals.SignalEventSink"],
        "EXPIRING_SOON_DAYS": 7,
        "MAX_CONFLICT_RETRIES": 3,
        "REDUCE_BATCH_TOTAL_ON_OUTFLOW": False,
        "REFRESH_BATCH_SIZE": 200,
        "STOCK_COUNT_INTERVAL_DAYS": 30,
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


@dataclass
class AgrostockSettings:
    """Agrostock configuration settings."""

    # Event sinks notified after each committed mutation (dotted paths)
    EVENT_SINKS: list[str] = field(
        default_factory=lambda: ["agrostock.adapters.signals.SignalEventSink"]
    )

    # Days before expiry at which a batch reports EXPIRING_SOON
    EXPIRING_SOON_DAYS: int = 7

    # Re-read/re-check/re-apply attempts after a lost compare-and-swap
    MAX_CONFLICT_RETRIES: int = 3

    # Batch ledgers keep total_quantity on sale/damage unless this is set
    REDUCE_BATCH_TOTAL_ON_OUTFLOW: bool = False

    # Batch size for refresh_statuses processing
    REFRESH_BATCH_SIZE: int = 200

    # Days until an inventory is due for its next physical stock count
    STOCK_COUNT_INTERVAL_DAYS: int = 30


def get_agrostock_settings() -> AgrostockSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "AGROSTOCK", {})
    return AgrostockSettings(**{
        k: v for k, v in user_settings.items()
        if k in AgrostockSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_agrostock_settings(), name)


agrostock_settings = _LazySettings()
