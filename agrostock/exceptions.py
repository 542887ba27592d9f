"""
Exceptions for Agrostock.

All errors are LedgerError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Error carrying a machine-readable code and context data.

    Subclasses declare ``_default_messages`` mapping each code to the
    message used when none is given explicitly.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")


class LedgerError(BaseError):
    """
    Structured error for ledger operations.

    Engine operations return it inside a LedgerResult rather than raising:
        result = engine.reserve(ledger_id, Decimal('10'), actor, order_ref='SO-1')
        if not result.ok and result.error.code == 'INSUFFICIENT_AVAILABLE':
            print(f"Only {result.error.available} available")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INVALID_QUANTITY': 'Quantity must be a positive decimal',
        'INSUFFICIENT_AVAILABLE': 'Requested quantity is not available',
        'INSUFFICIENT_RESERVED': 'Requested quantity is not reserved',
        'NOT_AVAILABLE': 'Lot is not available for reservation',
        'LEDGER_NOT_FOUND': 'Ledger not found',
        'OWNERSHIP_MISMATCH': 'Ledger belongs to another producer',
        'CONCURRENT_UPDATE_CONFLICT': 'Ledger was modified concurrently',
        'STORAGE_UNAVAILABLE': 'Ledger storage is unavailable',
        'INVALID_LEDGER': 'Invalid ledger data',
        'WRONG_KIND': 'Operation not supported for this ledger kind',
        'LEDGER_EXISTS': 'Ledger already exists',
        'DELETE_BLOCKED': 'Ledger cannot be deleted',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
