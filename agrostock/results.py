"""
LedgerResult — outcome of an engine call.

Guard failures are ordinary outcomes, not exceptions:
    result = engine.reserve(ledger_id, Decimal('5'), actor, order_ref='SO-9')
    if result.ok:
        ledger = result.ledger
    else:
        log(result.error.as_dict())

Callers that prefer exceptions use result.unwrap().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from agrostock.exceptions import LedgerError

if TYPE_CHECKING:
    from agrostock.models.ledger import QuantityLedger


@dataclass(frozen=True)
class LedgerResult:
    """Either a committed ledger or the error that prevented the change."""

    ledger: QuantityLedger | None = None
    error: LedgerError | None = None
    # False when the ledger already held the requested state and nothing was written
    changed: bool = True

    @classmethod
    def success(cls, ledger: QuantityLedger, changed: bool = True) -> LedgerResult:
        return cls(ledger=ledger, changed=changed)

    @classmethod
    def failure(cls, error: LedgerError) -> LedgerResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str | None:
        return self.error.code if self.error else None

    def unwrap(self) -> QuantityLedger:
        """Return the ledger or raise the error."""
        if self.error is not None:
            raise self.error
        return self.ledger
