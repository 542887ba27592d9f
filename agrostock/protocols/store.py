"""
Ledger Store Protocol — Durable storage for quantity ledgers.

The engine never writes a ledger row itself. It reads through find_by_id()
and commits through apply_delta(), a single atomic compare-and-swap keyed
on the ledger's version.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agrostock.models import LedgerMovement, QuantityLedger


# Columns every apply_delta() call writes in addition to the requested ones.
LEDGER_STATE_FIELDS = (
    'total_quantity',
    'available_quantity',
    'reserved_quantity',
    'sold_quantity',
    'damaged_quantity',
    'status',
    'updated_by',
)


@runtime_checkable
class LedgerStore(Protocol):
    """
    Protocol for ledger persistence.

    Implementations must make apply_delta() atomic: either the row still
    carries expected_version and every field plus the movement is written,
    or nothing is written and False is returned.

    Infrastructure failures propagate as django.db.DatabaseError.
    """

    def find_by_id(self, ledger_id: int) -> QuantityLedger | None:
        """
        Load a live (not soft-deleted) ledger.

        Returns:
            A fresh instance the caller may modify, or None
        """
        ...

    def apply_delta(
        self,
        ledger_id: int,
        expected_version: int,
        after: QuantityLedger,
        fields: Iterable[str] = (),
        movement: LedgerMovement | None = None,
    ) -> bool:
        """
        Conditionally persist `after`.

        Args:
            ledger_id: Ledger to update
            expected_version: Version the caller read and checked against
            after: Ledger carrying the new values
            fields: Extra columns to write beyond LEDGER_STATE_FIELDS
            movement: Unsaved history row to record with the change

        Returns:
            True if written; False if the row changed or vanished meanwhile.
            On True, after.version holds the new version.
        """
        ...

    def insert(self, ledger: QuantityLedger) -> int:
        """Persist a new ledger and return its id."""
        ...

    def soft_delete(self, ledger_id: int, actor: str, expected_version: int | None = None) -> bool:
        """Flag a ledger as deleted. Returns False if nothing matched."""
        ...

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the current write is durable."""
        ...
