"""
LedgerMovement model — Immutable history of bucket changes.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from agrostock.models.enums import LedgerStatus, MovementKind


def _delta_field(verbose_name):
    return models.DecimalField(
        max_digits=13,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=verbose_name,
    )


class LedgerMovement(models.Model):
    """
    Immutable record of one committed ledger mutation.

    Rules:
    - NEVER update() or delete()
    - Written in the same transaction as the ledger update it describes
    - Deltas are signed: positive = bucket grew
    """

    ledger = models.ForeignKey(
        'agrostock.QuantityLedger',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Ledger'),
    )
    kind = models.CharField(
        max_length=20,
        choices=MovementKind.choices,
        verbose_name=_('Kind'),
    )
    quantity = models.DecimalField(
        max_digits=13,
        decimal_places=3,
        verbose_name=_('Quantity'),
    )

    total_delta = _delta_field(_('Total change'))
    available_delta = _delta_field(_('Available change'))
    reserved_delta = _delta_field(_('Reserved change'))
    sold_delta = _delta_field(_('Sold change'))
    damaged_delta = _delta_field(_('Damaged change'))

    status_after = models.CharField(
        max_length=20,
        choices=LedgerStatus.choices,
        verbose_name=_('Status after'),
    )

    reference = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Reference'),
        help_text=_('Order reference for reservations and sales.'),
    )
    reason = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Reason'),
    )
    actor = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Actor'))
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))

    class Meta:
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['ledger', 'timestamp'], name='agrostock_movement_ledger_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Movements are immutable. "
                "Record a new movement instead."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Movements are immutable and cannot be deleted.")

    def set_deltas(self, deltas: dict[str, Decimal]):
        """Fill the *_delta fields from a Buckets.delta() mapping."""
        for name, value in deltas.items():
            setattr(self, f'{name}_delta', value)

    def __str__(self) -> str:
        return f"{self.kind} {self.quantity} | {self.reason or self.reference}"
