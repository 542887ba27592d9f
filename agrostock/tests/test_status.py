"""
Tests for the status policy and read-only predicates.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from agrostock.buckets import Buckets
from agrostock.models import LedgerKind, LedgerStatus, QualityGrade, QuantityLedger
from agrostock.status import (
    derive_status,
    is_expired,
    is_expiring_soon,
    is_low_stock,
    is_overstocked,
    utilization_percentage,
)


def inventory(total='100', available=None, reserved='0', **fields):
    ledger = QuantityLedger(kind=LedgerKind.AGGREGATE, producer_id=1, product_id=1,
                            quantity_unit='kg', **fields)
    total = Decimal(total)
    available = total - Decimal(reserved) if available is None else Decimal(available)
    ledger.buckets = Buckets(total=total, available=available, reserved=Decimal(reserved))
    return ledger


def lot(available='50', damaged='0', **fields):
    fields.setdefault('quality_grade', QualityGrade.GRADE_A)
    ledger = QuantityLedger(kind=LedgerKind.BATCH, producer_id=1, product_id=1,
                            quantity_unit='kg', lot_number='LOT-1', **fields)
    ledger.buckets = Buckets(
        total=Decimal(available) + Decimal(damaged),
        available=Decimal(available),
        damaged=Decimal(damaged),
    )
    return ledger


class TestAggregateStatus:
    """Tests for derive_status() on inventories."""

    def test_low_stock(self, now):
        """Available at or below the minimum reports LOW_STOCK."""
        ledger = inventory(total='100', available='5', min_stock_level=Decimal('10'))

        assert derive_status(ledger, now) == LedgerStatus.LOW_STOCK

    def test_low_stock_at_exact_minimum(self, now):
        ledger = inventory(total='10', min_stock_level=Decimal('10'))

        assert derive_status(ledger, now) == LedgerStatus.LOW_STOCK

    def test_out_of_stock_wins_over_low_stock(self, now):
        ledger = inventory(total='20', available='0', reserved='20', min_stock_level=Decimal('10'))

        assert derive_status(ledger, now) == LedgerStatus.OUT_OF_STOCK

    def test_overstock(self, now):
        ledger = inventory(total='600', max_stock_level=Decimal('500'))

        assert derive_status(ledger, now) == LedgerStatus.OVERSTOCK

    def test_low_stock_wins_over_overstock(self, now):
        ledger = inventory(total='600', available='5', min_stock_level=Decimal('10'),
                           max_stock_level=Decimal('500'))

        assert derive_status(ledger, now) == LedgerStatus.LOW_STOCK

    def test_in_stock_without_levels(self, now):
        assert derive_status(inventory(), now) == LedgerStatus.IN_STOCK


class TestBatchStatus:
    """Tests for derive_status() on lots."""

    def test_expired_beats_sold_out(self, now):
        """A lot that expired yesterday with nothing left is EXPIRED."""
        ledger = lot(available='0', expiry_date=now - timedelta(days=1))

        assert derive_status(ledger, now) == LedgerStatus.EXPIRED

    def test_expired_beats_damaged(self, now):
        ledger = lot(damaged='5', expiry_date=now - timedelta(hours=1))

        assert derive_status(ledger, now) == LedgerStatus.EXPIRED

    def test_expiring_soon_beats_damaged(self, now):
        ledger = lot(damaged='5', expiry_date=now + timedelta(days=3))

        assert derive_status(ledger, now) == LedgerStatus.EXPIRING_SOON

    def test_expiring_window_is_configurable(self, now):
        ledger = lot(expiry_date=now + timedelta(days=10))

        assert derive_status(ledger, now) == LedgerStatus.AVAILABLE
        assert derive_status(ledger, now, expiring_days=14) == LedgerStatus.EXPIRING_SOON

    def test_damaged_beats_quality_issue(self, now):
        ledger = lot(damaged='1', quality_grade=QualityGrade.REJECT)

        assert derive_status(ledger, now) == LedgerStatus.DAMAGED

    def test_rejected_grade(self, now):
        ledger = lot(quality_grade=QualityGrade.REJECT)

        assert derive_status(ledger, now) == LedgerStatus.QUALITY_ISSUE

    def test_sold_out(self, now):
        assert derive_status(lot(available='0'), now) == LedgerStatus.SOLD_OUT

    def test_available_without_expiry(self, now):
        assert derive_status(lot(), now) == LedgerStatus.AVAILABLE


class TestPredicates:

    def test_low_stock_and_overstock_need_levels(self):
        ledger = inventory(total='0')

        assert not is_low_stock(ledger)
        assert not is_overstocked(ledger)

    def test_expiring_soon_excludes_expired(self, now):
        expired = lot(expiry_date=now - timedelta(days=1))
        soon = lot(expiry_date=now + timedelta(days=2))

        assert is_expired(expired, now)
        assert not is_expiring_soon(expired, now)
        assert is_expiring_soon(soon, now)
        assert not is_expiring_soon(soon, now, days=1)
        assert not is_expired(lot(), now)

    @pytest.mark.parametrize('total, available, expected', [
        ('100', '70', Decimal('30.00')),
        ('3', '1', Decimal('66.67')),
        ('8', '7', Decimal('12.50')),
        ('0', '0', Decimal('0.00')),
    ])
    def test_utilization_percentage(self, total, available, expected):
        ledger = inventory(total=total, available=available,
                           reserved=str(Decimal(total) - Decimal(available)))

        assert utilization_percentage(ledger) == expected
