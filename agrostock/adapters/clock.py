"""
Clocks — implementations of the Clock protocol.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from django.utils import timezone


class SystemClock:
    """Wall clock, honouring Django's USE_TZ setting."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """
    Clock frozen at a given moment, advanced by hand.

    Usage:
        clock = FixedClock(timezone.now())
        clock.advance(days=8)
    """

    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def advance(self, **delta) -> datetime:
        self.moment = self.moment + timedelta(**delta)
        return self.moment
