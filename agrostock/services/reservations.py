"""
Reservation engine — the only writer of ledger buckets.

Every operation follows the same path:

    find -> check owner -> check guard -> apply transition -> derive status
         -> conditional write (version CAS) -> publish after commit

A lost compare-and-swap means another writer got in first. The engine then
re-reads the ledger and re-checks the guard against the fresh values, up to
MAX_CONFLICT_RETRIES times, before giving up with CONCURRENT_UPDATE_CONFLICT.

Outcomes come back as LedgerResult values, never as exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any

from django.db import DatabaseError

from agrostock.actor import ActorContext
from agrostock.adapters.clock import SystemClock
from agrostock.adapters.django_store import DjangoLedgerStore
from agrostock.adapters.sinks import get_event_sinks
from agrostock.buckets import parse_quantity
from agrostock.conf import agrostock_settings
from agrostock.exceptions import LedgerError
from agrostock.models import LedgerMovement, LedgerStatus, MovementKind, QuantityLedger
from agrostock.results import LedgerResult
from agrostock.status import derive_status

logger = logging.getLogger('agrostock')

# A step inspects the freshly read ledger, returns an error to abort,
# returns NO_CHANGE when the ledger already holds the wanted state,
# or modifies the ledger in place and returns None.
NO_CHANGE = object()

Step = Callable[[QuantityLedger, Any], Any]


def ledger_payload(ledger: QuantityLedger, **extra) -> dict[str, Any]:
    """Event payload describing a ledger after a committed change."""
    payload = {
        'ledger_id': ledger.pk,
        'kind': ledger.kind,
        'producer_id': ledger.producer_id,
        'product_id': ledger.product_id,
        'status': str(ledger.status),
        'version': ledger.version,
        'total_quantity': str(ledger.total_quantity),
        'available_quantity': str(ledger.available_quantity),
        'reserved_quantity': str(ledger.reserved_quantity),
        'sold_quantity': str(ledger.sold_quantity),
        'damaged_quantity': str(ledger.damaged_quantity),
    }
    if ledger.is_batch:
        payload['lot_number'] = ledger.lot_number
        payload['inventory_id'] = ledger.parent_id
    for key, value in extra.items():
        payload[key] = str(value) if isinstance(value, Decimal) else value
    return payload


class ReservationEngine:
    """
    Quantity ledger operations.

    Usage:
        engine = ReservationEngine()
        actor = ActorContext(username='maria', producer_id=42)

        result = engine.reserve(ledger_id, Decimal('30'), actor, order_ref='SO-118')
        if not result.ok:
            return result.error.as_dict()

    Args:
        store: LedgerStore (default: DjangoLedgerStore)
        sinks: EventSinks to publish to (default: AGROSTOCK["EVENT_SINKS"])
        clock: Clock used for status derivation (default: SystemClock)
    """

    def __init__(self, store=None, sinks=None, clock=None):
        self.store = store if store is not None else DjangoLedgerStore()
        self.clock = clock if clock is not None else SystemClock()
        self._sinks = list(sinks) if sinks is not None else None

    @property
    def sinks(self):
        if self._sinks is not None:
            return self._sinks
        return get_event_sinks()

    # ══════════════════════════════════════════════════════════════
    # OPERATIONS
    # ══════════════════════════════════════════════════════════════

    def add_stock(self, ledger_id: int, quantity, actor: ActorContext,
                  reason: str = 'Stock added') -> LedgerResult:
        """
        Receive more stock into a ledger.

        Raises total and available by quantity.

        Errors:
            INVALID_QUANTITY, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return self._invalid_quantity(quantity)

        def step(ledger, now):
            ledger.buckets = ledger.buckets.add(qty)

        return self.mutate(
            ledger_id, actor, step,
            movement_kind=MovementKind.ADD,
            quantity=qty,
            reason=reason,
            topic='stock.added',
            event_data={'quantity': qty, 'reason': reason},
        )

    def reserve(self, ledger_id: int, quantity, actor: ActorContext,
                order_ref: str = '') -> LedgerResult:
        """
        Set stock aside for an order.

        Moves quantity from available to reserved. A lot must also
        currently report AVAILABLE.

        Errors:
            INVALID_QUANTITY, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH,
            INSUFFICIENT_AVAILABLE, NOT_AVAILABLE
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return self._invalid_quantity(quantity)

        def step(ledger, now):
            if ledger.available_quantity < qty:
                return LedgerError(
                    'INSUFFICIENT_AVAILABLE',
                    ledger_id=ledger.pk,
                    available=ledger.available_quantity,
                    requested=qty,
                )
            if ledger.is_batch:
                current = derive_status(ledger, now, agrostock_settings.EXPIRING_SOON_DAYS)
                if current != LedgerStatus.AVAILABLE:
                    return LedgerError(
                        'NOT_AVAILABLE',
                        ledger_id=ledger.pk,
                        status=str(current),
                    )
            ledger.buckets = ledger.buckets.reserve(qty)

        return self.mutate(
            ledger_id, actor, step,
            movement_kind=MovementKind.RESERVE,
            quantity=qty,
            reference=order_ref,
            topic='quantity.reserved',
            event_data={'quantity': qty, 'order_ref': order_ref},
        )

    def release(self, ledger_id: int, quantity, actor: ActorContext,
                reason: str = 'Reservation released') -> LedgerResult:
        """
        Return reserved stock to available (order cancelled or changed).

        Errors:
            INVALID_QUANTITY, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH,
            INSUFFICIENT_RESERVED
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return self._invalid_quantity(quantity)

        def step(ledger, now):
            if ledger.reserved_quantity < qty:
                return self._insufficient_reserved(ledger, qty)
            ledger.buckets = ledger.buckets.release(qty)

        return self.mutate(
            ledger_id, actor, step,
            movement_kind=MovementKind.RELEASE,
            quantity=qty,
            reason=reason,
            topic='quantity.released',
            event_data={'quantity': qty, 'reason': reason},
        )

    def complete_sale(self, ledger_id: int, quantity, actor: ActorContext,
                      order_ref: str = '') -> LedgerResult:
        """
        Turn reserved stock into sold stock.

        Called by order fulfilment on behalf of the buyer, so the
        producer ownership check does not apply. An inventory also
        drops the sold quantity from its total.

        Errors:
            INVALID_QUANTITY, LEDGER_NOT_FOUND, INSUFFICIENT_RESERVED
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return self._invalid_quantity(quantity)

        def step(ledger, now):
            if ledger.reserved_quantity < qty:
                return self._insufficient_reserved(ledger, qty)
            ledger.buckets = ledger.buckets.sell(qty, reduce_total=self._reduces_total(ledger))

        return self.mutate(
            ledger_id, actor, step,
            movement_kind=MovementKind.SALE,
            quantity=qty,
            reference=order_ref,
            topic='sale.completed',
            event_data={'quantity': qty, 'order_ref': order_ref},
            check_owner=False,
        )

    def mark_damaged(self, ledger_id: int, quantity, actor: ActorContext,
                     reason: str = 'Damaged') -> LedgerResult:
        """
        Write off damaged stock.

        Draws from available first, then from reserved. An inventory
        also drops the damaged quantity from its total.

        Errors:
            INVALID_QUANTITY, LEDGER_NOT_FOUND, OWNERSHIP_MISMATCH,
            INSUFFICIENT_AVAILABLE
        """
        qty = parse_quantity(quantity)
        if qty is None:
            return self._invalid_quantity(quantity)

        def step(ledger, now):
            on_hand = ledger.buckets.on_hand
            if on_hand < qty:
                return LedgerError(
                    'INSUFFICIENT_AVAILABLE',
                    ledger_id=ledger.pk,
                    available=on_hand,
                    requested=qty,
                )
            ledger.buckets = ledger.buckets.damage(qty, reduce_total=self._reduces_total(ledger))

        return self.mutate(
            ledger_id, actor, step,
            movement_kind=MovementKind.DAMAGE,
            quantity=qty,
            reason=reason,
            topic='stock.damaged',
            event_data={'quantity': qty, 'reason': reason},
        )

    # ══════════════════════════════════════════════════════════════
    # WRITE PATH
    # ══════════════════════════════════════════════════════════════

    def mutate(
        self,
        ledger_id: int,
        actor: ActorContext,
        step: Step,
        *,
        topic: str | None,
        movement_kind: str | None = MovementKind.ADJUST,
        quantity: Decimal = Decimal('0'),
        reference: str = '',
        reason: str = '',
        fields: Iterable[str] = (),
        event_data: dict[str, Any] | None = None,
        check_owner: bool = True,
    ) -> LedgerResult:
        """
        Read, check, change and conditionally write one ledger.

        Args:
            ledger_id: Ledger to change
            actor: Caller
            step: Guard and transition, see Step
            topic: Event topic published after commit (None: no event)
            movement_kind: Kind of history row to record (None: no row)
            quantity: Quantity recorded on the movement
            reference: Order reference recorded on the movement
            reason: Reason recorded on the movement
            fields: Non-bucket columns the step changes
            event_data: Extra payload keys for the event
            check_owner: Enforce producer ownership

        Returns:
            LedgerResult with the ledger as committed; changed is False
            when the step returned NO_CHANGE and nothing was written
        """
        fields = tuple(fields)
        attempts = agrostock_settings.MAX_CONFLICT_RETRIES + 1

        for attempt in range(1, attempts + 1):
            try:
                ledger = self.store.find_by_id(ledger_id)
            except DatabaseError as e:
                return self.storage_failure(ledger_id, e)

            if ledger is None:
                return LedgerResult.failure(LedgerError('LEDGER_NOT_FOUND', ledger_id=ledger_id))

            if check_owner and not actor.owns(ledger):
                logger.warning(
                    "ledger.ownership_denied",
                    extra={
                        "ledger_id": ledger_id,
                        "actor": actor.username,
                        "producer_id": actor.producer_id,
                    },
                )
                return LedgerResult.failure(LedgerError(
                    'OWNERSHIP_MISMATCH',
                    ledger_id=ledger_id,
                    producer_id=actor.producer_id,
                ))

            now = self.clock.now()
            expected_version = ledger.version
            before = ledger.buckets

            error = step(ledger, now)
            if error is NO_CHANGE:
                logger.debug("ledger.unchanged", extra={"ledger_id": ledger_id, "topic": topic})
                return LedgerResult.success(ledger, changed=False)
            if error is not None:
                logger.info(
                    "ledger.rejected",
                    extra={"ledger_id": ledger_id, "code": error.code, "topic": topic},
                )
                return LedgerResult.failure(error)

            ledger.status = derive_status(ledger, now, agrostock_settings.EXPIRING_SOON_DAYS)
            ledger.updated_by = actor.username

            movement = None
            if movement_kind is not None:
                movement = LedgerMovement(
                    kind=movement_kind,
                    quantity=quantity,
                    status_after=ledger.status,
                    reference=reference,
                    reason=reason,
                    actor=actor.username,
                    timestamp=now,
                )
                movement.set_deltas(before.delta(ledger.buckets))

            try:
                written = self.store.apply_delta(
                    ledger_id, expected_version, ledger, fields=fields, movement=movement,
                )
            except DatabaseError as e:
                return self.storage_failure(ledger_id, e)

            if written:
                logger.info(
                    f"ledger.{movement_kind or 'refresh'}",
                    extra={
                        "ledger_id": ledger_id,
                        "qty": str(quantity),
                        "status": str(ledger.status),
                        "version": ledger.version,
                        "actor": actor.username,
                    },
                )
                if topic is not None:
                    self.publish_after_commit(topic, ledger_payload(
                        ledger, actor=actor.username, **(event_data or {}),
                    ))
                return LedgerResult.success(ledger)

            logger.warning(
                "ledger.conflict",
                extra={"ledger_id": ledger_id, "attempt": attempt, "seen_version": expected_version},
            )

        return LedgerResult.failure(LedgerError(
            'CONCURRENT_UPDATE_CONFLICT',
            ledger_id=ledger_id,
            attempts=attempts,
        ))

    # ══════════════════════════════════════════════════════════════
    # EVENTS
    # ══════════════════════════════════════════════════════════════

    def publish_after_commit(self, topic: str, payload: dict[str, Any]) -> None:
        """Publish to every sink once the store has made the write durable."""
        self.store.on_commit(lambda: self.publish(topic, payload))

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """
        Publish an event to every sink.

        The ledger change is already committed, so a failing sink is
        logged and skipped.
        """
        try:
            sinks = self.sinks
        except Exception:
            logger.exception("ledger.event.sinks_unavailable", extra={"topic": topic})
            return

        for sink in sinks:
            try:
                sink.publish(topic, payload)
            except Exception:
                logger.exception(
                    "ledger.event.publish_failed",
                    extra={
                        "topic": topic,
                        "sink": type(sink).__name__,
                        "ledger_id": payload.get('ledger_id'),
                    },
                )

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def _reduces_total(ledger: QuantityLedger) -> bool:
        return ledger.is_aggregate or agrostock_settings.REDUCE_BATCH_TOTAL_ON_OUTFLOW

    @staticmethod
    def _invalid_quantity(value) -> LedgerResult:
        return LedgerResult.failure(LedgerError('INVALID_QUANTITY', requested=value))

    @staticmethod
    def _insufficient_reserved(ledger: QuantityLedger, qty: Decimal) -> LedgerError:
        return LedgerError(
            'INSUFFICIENT_RESERVED',
            ledger_id=ledger.pk,
            reserved=ledger.reserved_quantity,
            requested=qty,
        )

    @staticmethod
    def storage_failure(ledger_id, exc: Exception) -> LedgerResult:
        logger.error(
            "ledger.storage_unavailable",
            extra={"ledger_id": ledger_id, "error": str(exc)},
        )
        return LedgerResult.failure(LedgerError(
            'STORAGE_UNAVAILABLE',
            ledger_id=ledger_id,
            cause=str(exc),
        ))
