"""
Status policy — isolated, testable, reusable.

Derives a ledger's status from its quantities, its stock thresholds
(aggregate) and its time-based facts (batch). Status is a projection:
it is recomputed after every bucket change and never set on its own.

Examples:
    - Inventory with available=5, min=10: LOW_STOCK
    - Lot expired yesterday with available=0: EXPIRED (not SOLD_OUT)
    - Lot expired and damaged: EXPIRED (not DAMAGED)
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from agrostock.models.enums import LedgerStatus, QualityGrade

EXPIRING_SOON_DAYS = 7

HUNDRED = Decimal('100')
CENTS = Decimal('0.01')


def derive_status(ledger, now: datetime, expiring_days: int = EXPIRING_SOON_DAYS) -> LedgerStatus:
    """
    Derive the status of a ledger at the given moment.

    Args:
        ledger: QuantityLedger (persisted or not)
        now: Current moment (aware datetime)
        expiring_days: Window for EXPIRING_SOON on batches

    Returns:
        LedgerStatus, first matching rule wins
    """
    if ledger.is_batch:
        return _batch_status(ledger, now, expiring_days)
    return _aggregate_status(ledger)


def _aggregate_status(ledger) -> LedgerStatus:
    if ledger.available_quantity == 0:
        return LedgerStatus.OUT_OF_STOCK
    if is_low_stock(ledger):
        return LedgerStatus.LOW_STOCK
    if is_overstocked(ledger):
        return LedgerStatus.OVERSTOCK
    return LedgerStatus.IN_STOCK


def _batch_status(ledger, now: datetime, expiring_days: int) -> LedgerStatus:
    # Order matters: an expired, damaged lot is EXPIRED.
    if is_expired(ledger, now):
        return LedgerStatus.EXPIRED
    if ledger.expiry_date is not None and ledger.expiry_date < now + timedelta(days=expiring_days):
        return LedgerStatus.EXPIRING_SOON
    if ledger.damaged_quantity > 0:
        return LedgerStatus.DAMAGED
    if ledger.quality_grade == QualityGrade.REJECT:
        return LedgerStatus.QUALITY_ISSUE
    if ledger.available_quantity == 0:
        return LedgerStatus.SOLD_OUT
    return LedgerStatus.AVAILABLE


# ══════════════════════════════════════════════════════════════
# PREDICATES
# ══════════════════════════════════════════════════════════════


def is_low_stock(ledger) -> bool:
    """Available at or below the minimum stock level (False when unset)."""
    if ledger.min_stock_level is None:
        return False
    return ledger.available_quantity <= ledger.min_stock_level


def is_overstocked(ledger) -> bool:
    """Total above the maximum stock level (False when unset)."""
    if ledger.max_stock_level is None:
        return False
    return ledger.total_quantity > ledger.max_stock_level


def is_expired(ledger, now: datetime) -> bool:
    return ledger.expiry_date is not None and ledger.expiry_date < now


def is_expiring_soon(ledger, now: datetime, days: int = EXPIRING_SOON_DAYS) -> bool:
    """Expires within `days` but has not expired yet."""
    if ledger.expiry_date is None or is_expired(ledger, now):
        return False
    return ledger.expiry_date < now + timedelta(days=days)


def utilization_percentage(ledger) -> Decimal:
    """
    Share of total no longer available, in percent.

    (total - available) / total * 100, rounded half-up to 2 places.
    Zero when total is zero.
    """
    total = ledger.total_quantity
    if not total:
        return Decimal('0.00')
    used = total - ledger.available_quantity
    return (used * HUNDRED / total).quantize(CENTS, rounding=ROUND_HALF_UP)
