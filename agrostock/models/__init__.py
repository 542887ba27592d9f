"""
Agrostock Models.

Core models for the quantity ledger:
- QuantityLedger: Four-bucket stock record for a product or a lot
- LedgerMovement: Immutable history of bucket changes
"""

from agrostock.models.enums import LedgerKind, LedgerStatus, MovementKind, QualityGrade
from agrostock.models.ledger import QuantityLedger
from agrostock.models.movement import LedgerMovement

__all__ = [
    'LedgerKind',
    'LedgerStatus',
    'MovementKind',
    'QualityGrade',
    'QuantityLedger',
    'LedgerMovement',
]
