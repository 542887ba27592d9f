"""
Bucket math — pure quantity transitions, no I/O.

A ledger holds its stock in four buckets (available, reserved, sold,
damaged) plus total_quantity. Each transition returns a new Buckets value;
guards live in the engine, which checks them before calling in.

Examples:
    Buckets.opening(Decimal('100')).reserve(Decimal('30'))
    # Buckets(total=100, available=70, reserved=30, sold=0, damaged=0)
"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

ZERO = Decimal('0')
QUANTUM = Decimal('0.001')
MAX_QUANTITY = Decimal('10') ** 10

BUCKET_FIELDS = ('total', 'available', 'reserved', 'sold', 'damaged')


def parse_quantity(value, allow_zero: bool = False) -> Decimal | None:
    """
    Coerce user input to a ledger quantity.

    Accepts Decimal, int or numeric str (floats go through str()).
    At most 3 decimal places and 10 integer digits.

    Returns:
        The Decimal, or None if the value is not a valid quantity
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not quantity.is_finite() or quantity >= MAX_QUANTITY:
        return None
    if quantity < 0 or (quantity == 0 and not allow_zero):
        return None
    if quantity != quantity.quantize(QUANTUM):
        return None
    return quantity


@dataclass(frozen=True)
class Buckets:
    """Immutable snapshot of a ledger's quantities."""

    total: Decimal
    available: Decimal
    reserved: Decimal = ZERO
    sold: Decimal = ZERO
    damaged: Decimal = ZERO

    def __post_init__(self):
        for name in BUCKET_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"Bucket '{name}' would become negative: {self}")

    @classmethod
    def opening(cls, total: Decimal) -> 'Buckets':
        """Freshly registered stock: everything is available."""
        return cls(total=total, available=total)

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    def add(self, quantity: Decimal) -> 'Buckets':
        return replace(
            self,
            total=self.total + quantity,
            available=self.available + quantity,
        )

    def reserve(self, quantity: Decimal) -> 'Buckets':
        return replace(
            self,
            available=self.available - quantity,
            reserved=self.reserved + quantity,
        )

    def release(self, quantity: Decimal) -> 'Buckets':
        """Move reserved stock back to available, clamped to what is reserved."""
        moved = min(quantity, self.reserved)
        return replace(
            self,
            available=self.available + moved,
            reserved=self.reserved - moved,
        )

    def sell(self, quantity: Decimal, reduce_total: bool) -> 'Buckets':
        return replace(
            self,
            total=self.total - quantity if reduce_total else self.total,
            reserved=self.reserved - quantity,
            sold=self.sold + quantity,
        )

    def damage(self, quantity: Decimal, reduce_total: bool) -> 'Buckets':
        """Damage stock, drawing from available first and then from reserved."""
        from_available = min(quantity, self.available)
        from_reserved = quantity - from_available
        return replace(
            self,
            total=self.total - quantity if reduce_total else self.total,
            available=self.available - from_available,
            reserved=self.reserved - from_reserved,
            damaged=self.damaged + quantity,
        )

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @property
    def on_hand(self) -> Decimal:
        """Physically present and sellable: available + reserved."""
        return self.available + self.reserved

    @property
    def accounted(self) -> Decimal:
        """Everything ever booked into the ledger, across all four buckets."""
        return self.available + self.reserved + self.sold + self.damaged

    def delta(self, after: 'Buckets') -> dict[str, Decimal]:
        """Signed per-bucket change from self to after."""
        return {
            name: getattr(after, name) - getattr(self, name)
            for name in BUCKET_FIELDS
        }
