"""
Ledger queries — read-only operations.

All methods are classmethods on LedgerQueries and use no locking. The
threshold filters mirror the predicates in agrostock.status, evaluated in
the database instead of on stored status.
"""

from datetime import datetime, timedelta

from django.db.models import F, Q, QuerySet
from django.utils import timezone

from agrostock.conf import agrostock_settings
from agrostock.models import LedgerMovement, QualityGrade, QuantityLedger


class LedgerQueries:
    """Read-only ledger query methods."""

    @classmethod
    def get(cls, ledger_id: int) -> QuantityLedger | None:
        """Live ledger by id, or None."""
        return QuantityLedger.objects.live().filter(pk=ledger_id).first()

    @classmethod
    def inventory_for_product(cls, product_id: int) -> QuantityLedger | None:
        """The live aggregate ledger of a product, or None."""
        return QuantityLedger.objects.live().aggregates().for_product(product_id).first()

    @classmethod
    def lots_for_product(cls, product_id: int) -> QuerySet:
        """Live batch ledgers of a product, oldest first."""
        return (
            QuantityLedger.objects.live().batches()
            .for_product(product_id)
            .order_by('created_at', 'id')
        )

    # ══════════════════════════════════════════════════════════════
    # STOCK THRESHOLDS (inventories)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def low_stock(cls, producer_id: int) -> QuerySet:
        """Inventories at or below their minimum stock level."""
        return QuantityLedger.objects.live().aggregates().for_producer(producer_id).filter(
            min_stock_level__isnull=False,
            available_quantity__lte=F('min_stock_level'),
        )

    @classmethod
    def out_of_stock(cls, producer_id: int) -> QuerySet:
        return QuantityLedger.objects.live().aggregates().for_producer(producer_id).filter(
            available_quantity=0,
        )

    @classmethod
    def overstocked(cls, producer_id: int) -> QuerySet:
        """Inventories holding more than their maximum stock level."""
        return QuantityLedger.objects.live().aggregates().for_producer(producer_id).filter(
            max_stock_level__isnull=False,
            total_quantity__gt=F('max_stock_level'),
        )

    @classmethod
    def requiring_stock_count(cls, producer_id: int, now: datetime | None = None) -> QuerySet:
        """
        Inventories due for a physical stock count, most overdue first.

        Inventories never counted are due and come first.
        """
        now = now or timezone.now()
        return (
            QuantityLedger.objects.live().aggregates().for_producer(producer_id)
            .filter(Q(next_stock_count_due__isnull=True) | Q(next_stock_count_due__lte=now))
            .order_by(F('next_stock_count_due').asc(nulls_first=True), 'id')
        )

    # ══════════════════════════════════════════════════════════════
    # EXPIRY (lots)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def expiring_lots(cls, days: int | None = None, now: datetime | None = None) -> QuerySet:
        """
        Lots expiring within the next `days` that have not expired yet.

        Args:
            days: Window (default: EXPIRING_SOON_DAYS)
            now: Reference moment (default: timezone.now())
        """
        now = now or timezone.now()
        if days is None:
            days = agrostock_settings.EXPIRING_SOON_DAYS
        return (
            QuantityLedger.objects.live().batches()
            .expiring_before(now + timedelta(days=days))
            .filter(expiry_date__gte=now)
            .order_by('expiry_date', 'id')
        )

    @classmethod
    def expired_lots(cls, now: datetime | None = None) -> QuerySet:
        now = now or timezone.now()
        return QuantityLedger.objects.live().batches().expired(now).order_by('expiry_date', 'id')

    @classmethod
    def available_lots_for_sale(cls, parent_id: int, now: datetime | None = None) -> QuerySet:
        """
        Lots of an inventory that still have sellable stock.

        Excludes expired and rejected lots. Ordered by expiry, soonest first,
        lots without expiry last.
        """
        now = now or timezone.now()
        return (
            QuantityLedger.objects.live().batches()
            .filter(parent_id=parent_id, available_quantity__gt=0)
            .filter(Q(expiry_date__isnull=True) | Q(expiry_date__gte=now))
            .exclude(quality_grade=QualityGrade.REJECT)
            .order_by(F('expiry_date').asc(nulls_last=True), 'id')
        )

    # ══════════════════════════════════════════════════════════════
    # HISTORY
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def movement_history(cls, ledger_id: int, days: int = 30,
                         now: datetime | None = None) -> QuerySet:
        """Movements of a ledger over the last `days`, oldest first."""
        now = now or timezone.now()
        return LedgerMovement.objects.filter(
            ledger_id=ledger_id,
            timestamp__gte=now - timedelta(days=days),
        ).order_by('timestamp', 'id')
