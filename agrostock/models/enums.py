"""
Enums for Agrostock models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LedgerKind(models.TextChoices):
    """
    Shape of a quantity ledger.

    AGGREGATE: All stock of a product held by one producer.
               Carries stock thresholds (min, max, reorder).
    BATCH:     One traceable lot of a product.
               Carries expiry, harvest date and quality grade.
    """
    AGGREGATE = 'aggregate', _('Inventory')
    BATCH = 'batch', _('Lot')


class LedgerStatus(models.TextChoices):
    """
    Derived status of a ledger. Never set directly, see agrostock.status.

    The first four apply to aggregate ledgers, the rest to batches.
    """
    IN_STOCK = 'in_stock', _('In stock')
    LOW_STOCK = 'low_stock', _('Low stock')
    OUT_OF_STOCK = 'out_of_stock', _('Out of stock')
    OVERSTOCK = 'overstock', _('Overstock')

    AVAILABLE = 'available', _('Available')
    EXPIRING_SOON = 'expiring_soon', _('Expiring soon')
    EXPIRED = 'expired', _('Expired')
    DAMAGED = 'damaged', _('Damaged')
    QUALITY_ISSUE = 'quality_issue', _('Quality issue')
    SOLD_OUT = 'sold_out', _('Sold out')


class QualityGrade(models.TextChoices):
    """Quality grade of a lot."""
    PREMIUM = 'premium', _('Premium')              # Superior characteristics
    GRADE_A = 'grade_a', _('Grade A')              # Meets all standards
    GRADE_B = 'grade_b', _('Grade B')              # Minor imperfections
    GRADE_C = 'grade_c', _('Grade C')              # Suitable for processing
    ORGANIC = 'organic', _('Organic')              # Certified organic
    EXPORT = 'export', _('Export')                 # International export
    DOMESTIC = 'domestic', _('Domestic')           # Domestic market
    PROCESSING = 'processing', _('Processing')     # Manufacturing input
    REJECT = 'reject', _('Reject')                 # Below standard


class MovementKind(models.TextChoices):
    """Kind of bucket movement recorded in the ledger history."""
    ADD = 'add', _('Stock added')
    RESERVE = 'reserve', _('Reserved')
    RELEASE = 'release', _('Released')
    SALE = 'sale', _('Sale completed')
    DAMAGE = 'damage', _('Damaged')
    ADJUST = 'adjust', _('Attributes updated')
