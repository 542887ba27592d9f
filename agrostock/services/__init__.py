"""
Ledger services — modular organization of ledger operations.

    from agrostock.services import ReservationEngine, LedgerLifecycle, LedgerQueries
"""

from agrostock.services.lifecycle import LedgerLifecycle
from agrostock.services.maintenance import refresh_statuses
from agrostock.services.queries import LedgerQueries
from agrostock.services.reservations import ReservationEngine

__all__ = [
    'LedgerLifecycle',
    'LedgerQueries',
    'ReservationEngine',
    'refresh_statuses',
]
