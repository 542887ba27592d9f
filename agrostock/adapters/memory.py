"""
In-memory Ledger Store — LedgerStore kept in a dict.

For unit tests and local experiments that don't need a database. A single
lock makes apply_delta() an atomic compare-and-swap on the ledger version,
so it is safe to share between threads.

WARNING: Nothing survives the process. Do NOT use in production.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterable

from django.db import IntegrityError
from django.utils import timezone

from agrostock.models import LedgerMovement, QuantityLedger
from agrostock.protocols.store import LEDGER_STATE_FIELDS


class InMemoryLedgerStore:
    """Thread-safe LedgerStore over a dict of detached model instances."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: dict[int, QuantityLedger] = {}
        self._next_id = 1
        self.movements: list[LedgerMovement] = []

    def find_by_id(self, ledger_id: int) -> QuantityLedger | None:
        with self._lock:
            row = self._rows.get(ledger_id)
            if row is None or row.deleted:
                return None
            return copy.copy(row)

    def apply_delta(
        self,
        ledger_id: int,
        expected_version: int,
        after: QuantityLedger,
        fields: Iterable[str] = (),
        movement: LedgerMovement | None = None,
    ) -> bool:
        with self._lock:
            row = self._rows.get(ledger_id)
            if row is None or row.deleted or row.version != expected_version:
                return False

            for name in (*LEDGER_STATE_FIELDS, *fields):
                setattr(row, name, getattr(after, name))
            row.version = expected_version + 1
            row.updated_at = timezone.now()

            if movement is not None:
                movement.ledger_id = ledger_id
                self.movements.append(movement)

        after.version = expected_version + 1
        return True

    def insert(self, ledger: QuantityLedger) -> int:
        with self._lock:
            self._check_unique(ledger)
            ledger.pk = self._next_id
            self._next_id += 1
            ledger.created_at = ledger.updated_at = timezone.now()
            self._rows[ledger.pk] = copy.copy(ledger)
            return ledger.pk

    def soft_delete(self, ledger_id: int, actor: str, expected_version: int | None = None) -> bool:
        with self._lock:
            row = self._rows.get(ledger_id)
            if row is None or row.deleted:
                return False
            if expected_version is not None and row.version != expected_version:
                return False
            row.deleted = True
            row.updated_by = actor
            row.version += 1
            return True

    def _check_unique(self, ledger: QuantityLedger) -> None:
        """Same rules as the conditional unique constraints on the table."""
        for row in self._rows.values():
            if row.deleted or row.kind != ledger.kind:
                continue
            if ledger.is_aggregate and row.product_id == ledger.product_id:
                raise IntegrityError(
                    f"unique_live_inventory_per_product: product {ledger.product_id}"
                )
            if ledger.is_batch and row.lot_number == ledger.lot_number:
                raise IntegrityError(
                    f"unique_live_lot_number: lot {ledger.lot_number}"
                )

    def on_commit(self, callback: Callable[[], None]) -> None:
        # Writes are durable as soon as apply_delta() returns.
        callback()

    def snapshot(self, ledger_id: int) -> QuantityLedger | None:
        """Stored row regardless of the deleted flag (for assertions)."""
        with self._lock:
            row = self._rows.get(ledger_id)
            return copy.copy(row) if row is not None else None
