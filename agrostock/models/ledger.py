"""
QuantityLedger model — four-bucket stock record for a product or a lot.
"""

from datetime import datetime
from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from agrostock.buckets import Buckets
from agrostock.models.enums import LedgerKind, LedgerStatus, QualityGrade


def _quantity_field(verbose_name, **kwargs):
    return models.DecimalField(
        max_digits=13,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=verbose_name,
        **kwargs,
    )


class QuantityLedgerQuerySet(models.QuerySet):
    """Custom QuerySet for QuantityLedger with convenience filters."""

    def live(self):
        """Ledgers not soft-deleted."""
        return self.filter(deleted=False)

    def aggregates(self):
        return self.filter(kind=LedgerKind.AGGREGATE)

    def batches(self):
        return self.filter(kind=LedgerKind.BATCH)

    def for_producer(self, producer_id):
        return self.filter(producer_id=producer_id)

    def for_product(self, product_id):
        return self.filter(product_id=product_id)

    def expiring_before(self, moment: datetime):
        """Batches whose expiry falls before the given moment."""
        return self.filter(expiry_date__isnull=False, expiry_date__lt=moment)

    def expired(self, now: datetime):
        """Batches past their expiry date."""
        return self.expiring_before(now)


class QuantityLedger(models.Model):
    """
    Quantity of a product (AGGREGATE) or of one lot (BATCH).

    Buckets:
    - available: free for new reservations
    - reserved: set aside for in-progress orders
    - sold: cumulative quantity sold
    - damaged: cumulative quantity written off

    Rules:
    - Buckets change ONLY through the ReservationEngine
    - status is a projection of the buckets (see agrostock.status),
      stored so it can be filtered on
    - version is bumped by every update and guards concurrent writers
    """

    kind = models.CharField(
        max_length=20,
        choices=LedgerKind.choices,
        verbose_name=_('Kind'),
    )

    # Ownership
    producer_id = models.PositiveBigIntegerField(
        db_index=True,
        verbose_name=_('Producer ID'),
    )
    product_id = models.PositiveBigIntegerField(
        db_index=True,
        verbose_name=_('Product ID'),
    )

    # Batch identity
    lot_number = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Lot number'),
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='lots',
        verbose_name=_('Inventory'),
        help_text=_('Aggregate ledger this lot belongs to, if any.'),
    )

    quantity_unit = models.CharField(
        max_length=20,
        verbose_name=_('Unit'),
        help_text=_('e.g. kg, t, crate. Immutable once set.'),
    )

    # Buckets
    total_quantity = _quantity_field(_('Total'))
    available_quantity = _quantity_field(_('Available'))
    reserved_quantity = _quantity_field(_('Reserved'))
    sold_quantity = _quantity_field(_('Sold'))
    damaged_quantity = _quantity_field(_('Damaged'))

    # Aggregate only
    min_stock_level = models.DecimalField(
        max_digits=13, decimal_places=3, null=True, blank=True,
        verbose_name=_('Minimum stock level'),
    )
    max_stock_level = models.DecimalField(
        max_digits=13, decimal_places=3, null=True, blank=True,
        verbose_name=_('Maximum stock level'),
    )
    reorder_quantity = models.DecimalField(
        max_digits=13, decimal_places=3, null=True, blank=True,
        verbose_name=_('Reorder quantity'),
    )
    cost_per_unit = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True,
        verbose_name=_('Cost per unit'),
    )
    last_stock_count = models.DateTimeField(
        null=True, blank=True,
        verbose_name=_('Last stock count'),
    )
    next_stock_count_due = models.DateTimeField(
        null=True, blank=True, db_index=True,
        verbose_name=_('Next stock count due'),
    )

    # Batch only
    expiry_date = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiry date'),
    )
    harvest_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Harvest date'),
    )
    quality_grade = models.CharField(
        max_length=20,
        choices=QualityGrade.choices,
        blank=True,
        default='',
        verbose_name=_('Quality grade'),
    )
    quality_notes = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Quality notes'),
    )

    status = models.CharField(
        max_length=20,
        choices=LedgerStatus.choices,
        db_index=True,
        verbose_name=_('Status'),
    )
    version = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Version'),
    )

    # Audit
    created_by = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_by = models.CharField(max_length=150, blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)
    deleted = models.BooleanField(default=False, verbose_name=_('Deleted'))

    objects = QuantityLedgerQuerySet.as_manager()

    class Meta:
        verbose_name = _('Quantity ledger')
        verbose_name_plural = _('Quantity ledgers')
        constraints = [
            models.CheckConstraint(
                condition=Q(total_quantity__gte=0),
                name='ledger_total_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(available_quantity__gte=0),
                name='ledger_available_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__gte=0),
                name='ledger_reserved_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(sold_quantity__gte=0),
                name='ledger_sold_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(damaged_quantity__gte=0),
                name='ledger_damaged_non_negative',
            ),
            models.UniqueConstraint(
                fields=['product_id'],
                condition=Q(kind='aggregate', deleted=False),
                name='unique_live_inventory_per_product',
            ),
            models.UniqueConstraint(
                fields=['lot_number'],
                condition=Q(kind='batch', deleted=False),
                name='unique_live_lot_number',
            ),
        ]
        indexes = [
            models.Index(fields=['producer_id', 'kind', 'status'], name='agrostock_ledger_owner_idx'),
            models.Index(fields=['product_id', 'kind'], name='agrostock_ledger_product_idx'),
        ]

    # ══════════════════════════════════════════════════════════════
    # CONSTRUCTION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def open(cls, kind: str, total_quantity: Decimal, **fields) -> 'QuantityLedger':
        """
        Build an unsaved ledger holding total_quantity, all of it available.

        Raises:
            ValueError: If total_quantity is negative
        """
        if total_quantity is None or total_quantity < 0:
            raise ValueError("total_quantity must be non-negative")
        ledger = cls(kind=kind, **fields)
        ledger.buckets = Buckets.opening(total_quantity)
        return ledger

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def is_aggregate(self) -> bool:
        return self.kind == LedgerKind.AGGREGATE

    @property
    def is_batch(self) -> bool:
        return self.kind == LedgerKind.BATCH

    @property
    def buckets(self) -> Buckets:
        return Buckets(
            total=self.total_quantity,
            available=self.available_quantity,
            reserved=self.reserved_quantity,
            sold=self.sold_quantity,
            damaged=self.damaged_quantity,
        )

    @buckets.setter
    def buckets(self, value: Buckets):
        self.total_quantity = value.total
        self.available_quantity = value.available
        self.reserved_quantity = value.reserved
        self.sold_quantity = value.sold
        self.damaged_quantity = value.damaged

    def __str__(self) -> str:
        if self.is_batch:
            label = f"Lot {self.lot_number}"
        else:
            label = f"Inventory #{self.pk or '?'}"
        return (
            f"{label} [product {self.product_id}]: "
            f"{self.available_quantity}/{self.total_quantity} {self.quantity_unit}"
        )
