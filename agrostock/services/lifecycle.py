"""
Ledger lifecycle — create, re-configure and retire ledgers.

Buckets are never touched here beyond the opening quantity. Attribute
updates (levels, cost, stock counts, quality, expiry) go through
ReservationEngine.mutate() so they share its version check and retries.

Duplicate inventories and lot numbers are refused by the store itself
(unique constraints in the database, the same rules in memory), which
surfaces as LEDGER_EXISTS.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation

from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from agrostock.actor import ActorContext
from agrostock.buckets import MAX_QUANTITY, parse_quantity
from agrostock.conf import agrostock_settings
from agrostock.exceptions import LedgerError
from agrostock.models import LedgerKind, QualityGrade, QuantityLedger
from agrostock.results import LedgerResult
from agrostock.services.reservations import ReservationEngine, ledger_payload
from agrostock.status import derive_status

logger = logging.getLogger('agrostock')

LOT_NUMBER_MIN_LENGTH = 3
LOT_NUMBER_MAX_LENGTH = 50
COST_QUANTUM = Decimal('0.01')

LEVEL_FIELDS = ('min_stock_level', 'max_stock_level', 'reorder_quantity')


def _invalid(field: str, message: str, **data) -> LedgerResult:
    return LedgerResult.failure(LedgerError('INVALID_LEDGER', message, field=field, **data))


def _parse_cost(value) -> Decimal | None:
    """Positive cost with at most 2 decimal places, or None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        cost = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not cost.is_finite() or cost <= 0 or cost >= MAX_QUANTITY:
        return None
    if cost != cost.quantize(COST_QUANTUM):
        return None
    return cost


def _invalid_cost(value) -> LedgerResult:
    return _invalid(
        'cost_per_unit',
        'Cost per unit must be greater than zero with at most 2 decimal places',
        value=str(value),
    )


def _as_datetime(value) -> datetime:
    """Expiry as an aware datetime; a bare date means the start of that day."""
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value)
        return value
    return timezone.make_aware(datetime.combine(value, time.min))


def _local_day(moment: datetime) -> date:
    return timezone.localtime(moment).date()


class LedgerLifecycle:
    """
    Creation, configuration and soft deletion of ledgers.

    Usage:
        lifecycle = LedgerLifecycle()
        result = lifecycle.create_inventory(actor, product_id=7,
                                            initial_quantity=Decimal('100'),
                                            quantity_unit='kg')
    """

    def __init__(self, engine: ReservationEngine | None = None):
        self.engine = engine if engine is not None else ReservationEngine()

    @property
    def store(self):
        return self.engine.store

    @property
    def clock(self):
        return self.engine.clock

    # ══════════════════════════════════════════════════════════════
    # CREATION
    # ══════════════════════════════════════════════════════════════

    def create_inventory(
        self,
        actor: ActorContext,
        product_id: int,
        initial_quantity,
        quantity_unit: str,
        cost_per_unit=None,
        min_stock_level=None,
        max_stock_level=None,
        reorder_quantity=None,
        producer_id: int | None = None,
    ) -> LedgerResult:
        """
        Open the aggregate ledger of a product.

        Args:
            actor: Caller; the inventory belongs to actor.producer_id
                unless a system actor names producer_id
            product_id: Product the inventory tracks
            initial_quantity: Opening stock (zero allowed)
            quantity_unit: Unit of measure, immutable afterwards

        Errors:
            INVALID_QUANTITY, INVALID_LEDGER, OWNERSHIP_MISMATCH,
            LEDGER_EXISTS, STORAGE_UNAVAILABLE
        """
        qty = parse_quantity(initial_quantity, allow_zero=True)
        if qty is None:
            return LedgerResult.failure(LedgerError('INVALID_QUANTITY', requested=initial_quantity))

        owner = self._resolve_owner(actor, producer_id)
        if isinstance(owner, LedgerResult):
            return owner

        if product_id is None:
            return _invalid('product_id', 'Product is required')
        if not quantity_unit or not str(quantity_unit).strip():
            return _invalid('quantity_unit', 'Quantity unit is required')

        levels = self._validate_levels(min_stock_level, max_stock_level, reorder_quantity)
        if isinstance(levels, LedgerResult):
            return levels

        cost = None
        if cost_per_unit is not None:
            cost = _parse_cost(cost_per_unit)
            if cost is None:
                return _invalid_cost(cost_per_unit)

        ledger = QuantityLedger.open(
            LedgerKind.AGGREGATE,
            qty,
            producer_id=owner,
            product_id=product_id,
            quantity_unit=str(quantity_unit).strip(),
            cost_per_unit=cost,
            created_by=actor.username,
            updated_by=actor.username,
            **levels,
        )
        return self._insert(ledger, actor, 'inventory.created')

    def create_lot(
        self,
        actor: ActorContext,
        product_id: int | None,
        lot_number: str,
        quantity,
        quantity_unit: str | None = None,
        parent_id: int | None = None,
        harvest_date: date | None = None,
        expiry_date: date | datetime | None = None,
        quality_grade: str = QualityGrade.GRADE_A,
        quality_notes: str = '',
        producer_id: int | None = None,
    ) -> LedgerResult:
        """
        Open the batch ledger of one lot.

        With parent_id, product, producer and unit come from the parent
        inventory; product_id and quantity_unit may then be omitted.

        Errors:
            INVALID_QUANTITY, INVALID_LEDGER, LEDGER_NOT_FOUND, WRONG_KIND,
            OWNERSHIP_MISMATCH, LEDGER_EXISTS, STORAGE_UNAVAILABLE
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return LedgerResult.failure(LedgerError('INVALID_QUANTITY', requested=quantity))

        lot_number = (lot_number or '').strip()
        if not lot_number:
            return _invalid('lot_number', 'Lot number is required')
        if not LOT_NUMBER_MIN_LENGTH <= len(lot_number) <= LOT_NUMBER_MAX_LENGTH:
            return _invalid(
                'lot_number',
                f'Lot number must be between {LOT_NUMBER_MIN_LENGTH} '
                f'and {LOT_NUMBER_MAX_LENGTH} characters',
            )

        try:
            grade = QualityGrade(quality_grade or QualityGrade.GRADE_A)
        except ValueError:
            return _invalid('quality_grade', 'Unknown quality grade', quality_grade=quality_grade)

        now = self.clock.now()
        today = _local_day(now)
        if harvest_date is not None and harvest_date > today:
            return _invalid('harvest_date', 'Harvest date cannot be in the future')

        expiry = None
        if expiry_date is not None:
            expiry = _as_datetime(expiry_date)
            error = self._check_expiry(expiry, harvest_date, now)
            if error is not None:
                return error

        if parent_id is not None:
            try:
                parent = self.store.find_by_id(parent_id)
            except DatabaseError as e:
                return self.engine.storage_failure(parent_id, e)
            if parent is None:
                return LedgerResult.failure(LedgerError('LEDGER_NOT_FOUND', ledger_id=parent_id))
            if not parent.is_aggregate:
                return LedgerResult.failure(LedgerError(
                    'WRONG_KIND', 'Parent must be an inventory', ledger_id=parent_id,
                ))
            if not actor.owns(parent):
                return LedgerResult.failure(LedgerError(
                    'OWNERSHIP_MISMATCH', ledger_id=parent_id, producer_id=actor.producer_id,
                ))
            if product_id is not None and product_id != parent.product_id:
                return _invalid('product_id', 'Lot product differs from its inventory')
            if quantity_unit and quantity_unit.strip() != parent.quantity_unit:
                return _invalid('quantity_unit', 'Lot unit differs from its inventory')
            owner = parent.producer_id
            product_id = parent.product_id
            quantity_unit = parent.quantity_unit
        else:
            owner = self._resolve_owner(actor, producer_id)
            if isinstance(owner, LedgerResult):
                return owner
            if product_id is None:
                return _invalid('product_id', 'Product is required')
            if not quantity_unit or not quantity_unit.strip():
                return _invalid('quantity_unit', 'Quantity unit is required')

        ledger = QuantityLedger.open(
            LedgerKind.BATCH,
            qty,
            producer_id=owner,
            product_id=product_id,
            parent_id=parent_id,
            lot_number=lot_number,
            quantity_unit=quantity_unit.strip(),
            harvest_date=harvest_date,
            expiry_date=expiry,
            quality_grade=grade,
            quality_notes=quality_notes or '',
            created_by=actor.username,
            updated_by=actor.username,
        )
        return self._insert(ledger, actor, 'lot.created')

    # ══════════════════════════════════════════════════════════════
    # UPDATES
    # ══════════════════════════════════════════════════════════════

    def update_stock_levels(self, ledger_id: int, actor: ActorContext,
                            min_stock_level=None, max_stock_level=None,
                            reorder_quantity=None) -> LedgerResult:
        """
        Replace the stock thresholds of an inventory. None clears a level.

        Errors:
            INVALID_LEDGER, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, WRONG_KIND
        """
        levels = self._validate_levels(min_stock_level, max_stock_level, reorder_quantity)
        if isinstance(levels, LedgerResult):
            return levels

        def step(ledger, now):
            if not ledger.is_aggregate:
                return self._wrong_kind(ledger, 'Stock levels apply to inventories only')
            for name, value in levels.items():
                setattr(ledger, name, value)

        event_data = {name: str(value) if value is not None else None for name, value in levels.items()}
        return self.engine.mutate(
            ledger_id, actor, step,
            topic='levels.updated',
            reason='Stock levels updated',
            fields=tuple(levels),
            event_data=event_data,
        )

    def update_quality(self, ledger_id: int, actor: ActorContext,
                       quality_grade: str, quality_notes: str = '') -> LedgerResult:
        """
        Re-grade a lot. Grading REJECT turns it into QUALITY_ISSUE.

        Errors:
            INVALID_LEDGER, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, WRONG_KIND
        """
        try:
            grade = QualityGrade(quality_grade)
        except ValueError:
            return _invalid('quality_grade', 'Unknown quality grade', quality_grade=quality_grade)

        event_data = {'quality_grade': str(grade)}

        def step(ledger, now):
            if not ledger.is_batch:
                return self._wrong_kind(ledger, 'Quality applies to lots only')
            event_data['previous_grade'] = str(ledger.quality_grade)
            ledger.quality_grade = grade
            ledger.quality_notes = quality_notes or ''

        return self.engine.mutate(
            ledger_id, actor, step,
            topic='lot.quality.updated',
            reason=f'Quality graded {grade.value}',
            fields=('quality_grade', 'quality_notes'),
            event_data=event_data,
        )

    def update_expiry_date(self, ledger_id: int, actor: ActorContext,
                           expiry_date: date | datetime) -> LedgerResult:
        """
        Move the expiry date of a lot.

        Errors:
            INVALID_LEDGER, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, WRONG_KIND
        """
        if expiry_date is None:
            return _invalid('expiry_date', 'Expiry date is required')
        expiry = _as_datetime(expiry_date)

        def step(ledger, now):
            if not ledger.is_batch:
                return self._wrong_kind(ledger, 'Expiry applies to lots only')
            result = self._check_expiry(expiry, ledger.harvest_date, now)
            if result is not None:
                return result.error
            ledger.expiry_date = expiry

        return self.engine.mutate(
            ledger_id, actor, step,
            topic='lot.expiry.updated',
            reason='Expiry date updated',
            fields=('expiry_date',),
            event_data={'expiry_date': expiry.isoformat()},
        )

    def update_cost(self, ledger_id: int, actor: ActorContext, cost_per_unit) -> LedgerResult:
        """
        Re-price an inventory.

        Errors:
            INVALID_LEDGER, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, WRONG_KIND
        """
        cost = _parse_cost(cost_per_unit)
        if cost is None:
            return _invalid_cost(cost_per_unit)

        event_data = {'cost_per_unit': str(cost)}

        def step(ledger, now):
            if not ledger.is_aggregate:
                return self._wrong_kind(ledger, 'Cost applies to inventories only')
            previous = ledger.cost_per_unit
            event_data['previous_cost'] = str(previous) if previous is not None else None
            ledger.cost_per_unit = cost

        return self.engine.mutate(
            ledger_id, actor, step,
            topic='inventory.cost.updated',
            reason='Cost per unit updated',
            fields=('cost_per_unit',),
            event_data=event_data,
        )

    def record_stock_count(self, ledger_id: int, actor: ActorContext,
                           next_count_in_days: int | None = None) -> LedgerResult:
        """
        Record a physical stock count of an inventory and schedule the next.

        Args:
            next_count_in_days: Days until the next count is due
                (default: STOCK_COUNT_INTERVAL_DAYS)

        Errors:
            INVALID_LEDGER, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, WRONG_KIND
        """
        days = next_count_in_days
        if days is None:
            days = agrostock_settings.STOCK_COUNT_INTERVAL_DAYS
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            return _invalid('next_count_in_days', 'Days until the next count must be a non-negative integer')

        event_data = {'counted_by': actor.username}

        def step(ledger, now):
            if not ledger.is_aggregate:
                return self._wrong_kind(ledger, 'Stock counts apply to inventories only')
            ledger.last_stock_count = now
            ledger.next_stock_count_due = now + timedelta(days=days)
            event_data['last_stock_count'] = ledger.last_stock_count.isoformat()
            event_data['next_stock_count_due'] = ledger.next_stock_count_due.isoformat()

        return self.engine.mutate(
            ledger_id, actor, step,
            topic='inventory.stock.counted',
            reason='Stock counted',
            fields=('last_stock_count', 'next_stock_count_due'),
            event_data=event_data,
        )

    # ══════════════════════════════════════════════════════════════
    # DELETION
    # ══════════════════════════════════════════════════════════════

    def delete(self, ledger_id: int, actor: ActorContext) -> LedgerResult:
        """
        Soft-delete a ledger.

        An inventory must hold nothing (total and reserved zero); a lot must
        have no reservations and no sales.

        Errors:
            LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH, DELETE_BLOCKED,
            CONCURRENT_UPDATE_CONFLICT, STORAGE_UNAVAILABLE
        """
        attempts = agrostock_settings.MAX_CONFLICT_RETRIES + 1

        for attempt in range(1, attempts + 1):
            try:
                ledger = self.store.find_by_id(ledger_id)
            except DatabaseError as e:
                return self.engine.storage_failure(ledger_id, e)

            if ledger is None:
                return LedgerResult.failure(LedgerError('LEDGER_NOT_FOUND', ledger_id=ledger_id))
            if not actor.owns(ledger):
                return LedgerResult.failure(LedgerError(
                    'OWNERSHIP_MISMATCH', ledger_id=ledger_id, producer_id=actor.producer_id,
                ))

            blocked = self._delete_blocker(ledger)
            if blocked is not None:
                logger.info("ledger.delete_blocked", extra={"ledger_id": ledger_id, "reason": blocked})
                return LedgerResult.failure(LedgerError(
                    'DELETE_BLOCKED', blocked, ledger_id=ledger_id,
                ))

            try:
                deleted = self.store.soft_delete(ledger_id, actor.username, expected_version=ledger.version)
            except DatabaseError as e:
                return self.engine.storage_failure(ledger_id, e)

            if deleted:
                ledger.deleted = True
                ledger.version += 1
                ledger.updated_by = actor.username
                logger.info("ledger.deleted", extra={"ledger_id": ledger_id, "actor": actor.username})
                self.engine.publish_after_commit('ledger.deleted', ledger_payload(ledger, actor=actor.username))
                return LedgerResult.success(ledger)

            logger.warning(
                "ledger.conflict",
                extra={"ledger_id": ledger_id, "attempt": attempt, "seen_version": ledger.version},
            )

        return LedgerResult.failure(LedgerError(
            'CONCURRENT_UPDATE_CONFLICT', ledger_id=ledger_id, attempts=attempts,
        ))

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _insert(self, ledger: QuantityLedger, actor: ActorContext, topic: str) -> LedgerResult:
        ledger.status = derive_status(ledger, self.clock.now(), agrostock_settings.EXPIRING_SOON_DAYS)
        try:
            self.store.insert(ledger)
        except IntegrityError as e:
            logger.info("ledger.create_conflict", extra={"kind": ledger.kind, "error": str(e)})
            if ledger.is_batch:
                message = 'Lot number already exists'
            else:
                message = 'Inventory already exists for this product'
            return LedgerResult.failure(LedgerError(
                'LEDGER_EXISTS',
                message,
                product_id=ledger.product_id,
                lot_number=ledger.lot_number,
            ))
        except DatabaseError as e:
            return self.engine.storage_failure(None, e)

        logger.info(
            "ledger.created",
            extra={
                "ledger_id": ledger.pk,
                "kind": ledger.kind,
                "qty": str(ledger.total_quantity),
                "actor": actor.username,
            },
        )
        self.engine.publish_after_commit(topic, ledger_payload(ledger, actor=actor.username))
        return LedgerResult.success(ledger)

    @staticmethod
    def _resolve_owner(actor: ActorContext, producer_id: int | None):
        """Producer id owning a new ledger, or a failed LedgerResult."""
        if producer_id is None:
            producer_id = actor.producer_id
        if producer_id is None:
            return _invalid('producer_id', 'Producer is required')
        if not actor.is_system and producer_id != actor.producer_id:
            return LedgerResult.failure(LedgerError(
                'OWNERSHIP_MISMATCH', producer_id=actor.producer_id,
            ))
        return producer_id

    @staticmethod
    def _validate_levels(min_level, max_level, reorder):
        """
        Validated threshold fields as a dict, or a failed LedgerResult.

        Levels use the quantity precision, so the status derived here is the
        one the stored row derives to.
        """
        levels = {}
        for name, value in zip(LEVEL_FIELDS, (min_level, max_level, reorder)):
            if value is None:
                levels[name] = None
                continue
            level = parse_quantity(value, allow_zero=name != 'reorder_quantity')
            if level is None:
                return _invalid(
                    name,
                    'Stock levels must be non-negative quantities with at most 3 decimal places',
                    value=str(value),
                )
            levels[name] = level

        low = levels['min_stock_level']
        high = levels['max_stock_level']
        if low is not None and high is not None and high < low:
            return _invalid('max_stock_level', 'Maximum stock level must be at least the minimum')
        return levels

    @staticmethod
    def _check_expiry(expiry: datetime, harvest_date: date | None, now: datetime) -> LedgerResult | None:
        expiry_day = _local_day(expiry)
        if expiry_day < _local_day(now):
            return _invalid('expiry_date', 'Expiry date cannot be in the past')
        if harvest_date is not None and expiry_day < harvest_date:
            return _invalid('expiry_date', 'Expiry date cannot be before harvest date')
        return None

    @staticmethod
    def _wrong_kind(ledger: QuantityLedger, message: str) -> LedgerError:
        return LedgerError('WRONG_KIND', message, ledger_id=ledger.pk, kind=ledger.kind)

    @staticmethod
    def _delete_blocker(ledger: QuantityLedger) -> str | None:
        if ledger.reserved_quantity > 0:
            return 'Ledger has reserved quantity'
        if ledger.is_aggregate and ledger.total_quantity > 0:
            return 'Inventory still holds stock'
        if ledger.is_batch and ledger.sold_quantity > 0:
            return 'Lot has recorded sales'
        return None
