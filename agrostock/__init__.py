"""
Django Agrostock — quantity ledger and reservation engine.

Usage:
    from agrostock import ledger, ActorContext, LedgerError

    actor = ActorContext(username='maria', producer_id=42)
    result = ledger.reserve(inventory_id, Decimal('30'), actor, order_ref='SO-118')
    if not result.ok:
        print(result.error.code)  # e.g. INSUFFICIENT_AVAILABLE
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'ledger':
        from agrostock.service import Ledger
        return Ledger
    elif name == 'LedgerError':
        from agrostock.exceptions import LedgerError
        return LedgerError
    elif name == 'LedgerResult':
        from agrostock.results import LedgerResult
        return LedgerResult
    elif name == 'ActorContext':
        from agrostock.actor import ActorContext
        return ActorContext
    elif name == 'QuantityLedger':
        from agrostock.models.ledger import QuantityLedger
        return QuantityLedger
    elif name == 'LedgerMovement':
        from agrostock.models.movement import LedgerMovement
        return LedgerMovement
    elif name == 'LedgerKind':
        from agrostock.models.enums import LedgerKind
        return LedgerKind
    elif name == 'LedgerStatus':
        from agrostock.models.enums import LedgerStatus
        return LedgerStatus
    elif name == 'QualityGrade':
        from agrostock.models.enums import QualityGrade
        return QualityGrade
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ledger',
    'LedgerError',
    'LedgerResult',
    'ActorContext',
    'QuantityLedger',
    'LedgerMovement',
    'LedgerKind',
    'LedgerStatus',
    'QualityGrade',
]

__version__ = '0.1.0'
