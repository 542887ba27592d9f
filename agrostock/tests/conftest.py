"""
Pytest fixtures for Agrostock tests.

Engine tests run against InMemoryLedgerStore by default. Modules that
need the database override the `store` fixture with a DjangoLedgerStore.
"""

import itertools
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from agrostock.actor import ActorContext
from agrostock.adapters import FixedClock, InMemoryLedgerStore
from agrostock.buckets import Buckets
from agrostock.models import LedgerKind, QualityGrade, QuantityLedger
from agrostock.services.reservations import ReservationEngine
from agrostock.status import derive_status


class RecordingSink:
    """EventSink that keeps every published event."""

    def __init__(self):
        self.events = []

    def publish(self, topic, payload):
        self.events.append((topic, payload))

    @property
    def topics(self):
        return [topic for topic, _ in self.events]


class BrokenSink:
    """EventSink that always fails."""

    def publish(self, topic, payload):
        raise RuntimeError('broker down')


@pytest.fixture
def now():
    return datetime(2026, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(store, sink, clock):
    return ReservationEngine(store=store, sinks=[sink], clock=clock)


# =========================================================================
# ACTORS
# =========================================================================


@pytest.fixture
def producer():
    """Owner of every ledger built by the factories below."""
    return ActorContext(username='maria', producer_id=42)


@pytest.fixture
def other_producer():
    return ActorContext(username='joao', producer_id=99)


@pytest.fixture
def system_actor():
    return ActorContext.system('order-fulfilment')


# =========================================================================
# LEDGER FACTORIES
# =========================================================================


def _dec(value):
    return Decimal(str(value))


@pytest.fixture
def make_inventory(store, clock):
    """
    Insert an aggregate ledger; total is available + reserved.

    Usage:
        ledger_id = make_inventory(available='70', reserved='30', min_stock_level=Decimal('10'))
    """
    def _make(available='100', reserved='0', sold='0', damaged='0', product_id=7, **fields):
        ledger = QuantityLedger(
            kind=LedgerKind.AGGREGATE,
            producer_id=fields.pop('producer_id', 42),
            product_id=product_id,
            quantity_unit=fields.pop('quantity_unit', 'kg'),
            **fields,
        )
        ledger.buckets = Buckets(
            total=_dec(available) + _dec(reserved),
            available=_dec(available),
            reserved=_dec(reserved),
            sold=_dec(sold),
            damaged=_dec(damaged),
        )
        ledger.status = derive_status(ledger, clock.now())
        return store.insert(ledger)

    return _make


@pytest.fixture
def make_lot(store, clock):
    """
    Insert a batch ledger; total is the sum of all four buckets.

    Expires in 30 days and is graded A unless told otherwise.
    """
    lot_numbers = itertools.count(1)

    def _make(available='50', reserved='0', sold='0', damaged='0', product_id=7, **fields):
        fields.setdefault('expiry_date', clock.now() + timedelta(days=30))
        fields.setdefault('quality_grade', QualityGrade.GRADE_A)
        fields.setdefault('lot_number', f'LOT-{next(lot_numbers):04d}')
        ledger = QuantityLedger(
            kind=LedgerKind.BATCH,
            producer_id=fields.pop('producer_id', 42),
            product_id=product_id,
            quantity_unit=fields.pop('quantity_unit', 'kg'),
            **fields,
        )
        ledger.buckets = Buckets(
            total=_dec(available) + _dec(reserved) + _dec(sold) + _dec(damaged),
            available=_dec(available),
            reserved=_dec(reserved),
            sold=_dec(sold),
            damaged=_dec(damaged),
        )
        ledger.status = derive_status(ledger, clock.now())
        return store.insert(ledger)

    return _make
