"""
ActorContext — who is calling the ledger.

Passed explicitly into every engine and lifecycle call.

Usage:
    actor = ActorContext(username='maria', producer_id=42)
    system = ActorContext.system('order-fulfilment')
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Identity and ownership scope of the caller."""

    username: str
    producer_id: int | None = None
    is_system: bool = False

    @classmethod
    def system(cls, name: str = 'system') -> 'ActorContext':
        """Internal workflow acting on any producer's ledgers."""
        return cls(username=name, is_system=True)

    def owns(self, ledger) -> bool:
        if self.is_system:
            return True
        return self.producer_id is not None and self.producer_id == ledger.producer_id
