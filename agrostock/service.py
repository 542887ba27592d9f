"""
Ledger Service — the single public interface for ledger operations.

Usage:
    from agrostock import ledger, ActorContext

    actor = ActorContext(username='maria', producer_id=42)
    inventory = ledger.create_inventory(actor, product_id=7,
                                        initial_quantity=Decimal('100'),
                                        quantity_unit='kg').unwrap()
    ledger.reserve(inventory.pk, Decimal('30'), actor, order_ref='SO-118')
"""

import threading

from agrostock.services.lifecycle import LedgerLifecycle
from agrostock.services.maintenance import refresh_statuses
from agrostock.services.queries import LedgerQueries
from agrostock.services.reservations import ReservationEngine


class Ledger(LedgerQueries):
    """
    Facade over the default ORM-backed engine.

    Mutations return LedgerResult; queries (inherited from LedgerQueries)
    return models and querysets.
    """

    _lock = threading.Lock()
    _engine: ReservationEngine | None = None
    _lifecycle: LedgerLifecycle | None = None

    @classmethod
    def engine(cls) -> ReservationEngine:
        if cls._engine is None:
            with cls._lock:
                if cls._engine is None:
                    cls._engine = ReservationEngine()
        return cls._engine

    @classmethod
    def lifecycle(cls) -> LedgerLifecycle:
        if cls._lifecycle is None:
            with cls._lock:
                if cls._lifecycle is None:
                    cls._lifecycle = LedgerLifecycle(cls.engine())
        return cls._lifecycle

    # ══════════════════════════════════════════════════════════════
    # BUCKETS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_stock(cls, ledger_id, quantity, actor, reason='Stock added'):
        return cls.engine().add_stock(ledger_id, quantity, actor, reason=reason)

    @classmethod
    def reserve(cls, ledger_id, quantity, actor, order_ref=''):
        return cls.engine().reserve(ledger_id, quantity, actor, order_ref=order_ref)

    @classmethod
    def release(cls, ledger_id, quantity, actor, reason='Reservation released'):
        return cls.engine().release(ledger_id, quantity, actor, reason=reason)

    @classmethod
    def complete_sale(cls, ledger_id, quantity, actor, order_ref=''):
        return cls.engine().complete_sale(ledger_id, quantity, actor, order_ref=order_ref)

    @classmethod
    def mark_damaged(cls, ledger_id, quantity, actor, reason='Damaged'):
        return cls.engine().mark_damaged(ledger_id, quantity, actor, reason=reason)

    # ══════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_inventory(cls, actor, product_id, initial_quantity, quantity_unit, **fields):
        return cls.lifecycle().create_inventory(actor, product_id, initial_quantity, quantity_unit, **fields)

    @classmethod
    def create_lot(cls, actor, product_id, lot_number, quantity, **fields):
        return cls.lifecycle().create_lot(actor, product_id, lot_number, quantity, **fields)

    @classmethod
    def update_stock_levels(cls, ledger_id, actor, **levels):
        return cls.lifecycle().update_stock_levels(ledger_id, actor, **levels)

    @classmethod
    def update_quality(cls, ledger_id, actor, quality_grade, quality_notes=''):
        return cls.lifecycle().update_quality(ledger_id, actor, quality_grade, quality_notes)

    @classmethod
    def update_expiry_date(cls, ledger_id, actor, expiry_date):
        return cls.lifecycle().update_expiry_date(ledger_id, actor, expiry_date)

    @classmethod
    def update_cost(cls, ledger_id, actor, cost_per_unit):
        return cls.lifecycle().update_cost(ledger_id, actor, cost_per_unit)

    @classmethod
    def record_stock_count(cls, ledger_id, actor, next_count_in_days=None):
        return cls.lifecycle().record_stock_count(ledger_id, actor, next_count_in_days)

    @classmethod
    def delete(cls, ledger_id, actor):
        return cls.lifecycle().delete(ledger_id, actor)

    # ══════════════════════════════════════════════════════════════
    # MAINTENANCE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def refresh_statuses(cls, now=None, dry_run=False):
        return refresh_statuses(now=now, dry_run=dry_run)
