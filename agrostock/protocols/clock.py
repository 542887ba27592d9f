"""
Clock Protocol — source of the current time.

Injected into the engine so expiry rules can be tested deterministically.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for time sources."""

    def now(self) -> datetime:
        """Current moment as an aware datetime."""
        ...
