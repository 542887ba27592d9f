"""
Ledger maintenance — periodic jobs.

A lot's status can go stale without any bucket moving: the clock alone
takes it from AVAILABLE to EXPIRING_SOON to EXPIRED. refresh_statuses()
re-derives those statuses and writes the ones that changed.

Run it from cron or a task queue:
    python manage.py refresh_ledger_statuses
"""

import logging
from datetime import datetime, timedelta

from agrostock.actor import ActorContext
from agrostock.adapters.clock import FixedClock
from agrostock.conf import agrostock_settings
from agrostock.models import LedgerStatus, QuantityLedger
from agrostock.results import LedgerResult
from agrostock.services.reservations import NO_CHANGE, ReservationEngine
from agrostock.status import derive_status

logger = logging.getLogger('agrostock')

REFRESH_ACTOR = ActorContext.system('status-refresh')


def stale_ledgers(now: datetime):
    """
    Yield live lots whose stored status differs from the derived one.

    Only lots with an expiry inside the EXPIRING_SOON window can drift,
    and an EXPIRED lot stays expired. Rows are read in pk order, in chunks
    of REFRESH_BATCH_SIZE.
    """
    days = agrostock_settings.EXPIRING_SOON_DAYS
    batch_size = agrostock_settings.REFRESH_BATCH_SIZE
    candidates = (
        QuantityLedger.objects.live().batches()
        .expiring_before(now + timedelta(days=days))
        .exclude(status=LedgerStatus.EXPIRED)
        .order_by('pk')
    )

    last_pk = 0
    while True:
        chunk = list(candidates.filter(pk__gt=last_pk)[:batch_size])
        if not chunk:
            return
        for ledger in chunk:
            if derive_status(ledger, now, days) != ledger.status:
                yield ledger
        last_pk = chunk[-1].pk


def refresh_ledger(engine: ReservationEngine, ledger_id: int,
                   actor: ActorContext = REFRESH_ACTOR) -> LedgerResult:
    """
    Re-derive and persist the status of one ledger.

    The check runs on the freshly read row, so a ledger some other writer
    already brought up to date is left alone (result.changed is False).
    """
    event_data = {}

    def step(ledger, now):
        if derive_status(ledger, now, agrostock_settings.EXPIRING_SOON_DAYS) == ledger.status:
            return NO_CHANGE
        event_data['previous_status'] = str(ledger.status)

    return engine.mutate(
        ledger_id, actor, step,
        topic='status.changed',
        movement_kind=None,
        event_data=event_data,
    )


def refresh_statuses(now: datetime | None = None, engine: ReservationEngine | None = None,
                     dry_run: bool = False) -> int:
    """
    Persist re-derived statuses of lots that time has moved on.

    Each write goes through the engine, so it is version-checked and
    publishes status.changed like any other change.

    Args:
        now: Reference moment (default: the engine's clock)
        engine: Engine to write through (default: ORM-backed engine)
        dry_run: Count stale lots without writing

    Returns:
        Number of ledgers refreshed (or that would be, with dry_run)
    """
    if engine is None:
        engine = ReservationEngine(clock=FixedClock(now) if now is not None else None)
    now = now or engine.clock.now()

    count = 0
    for ledger in stale_ledgers(now):
        if dry_run:
            count += 1
            continue

        result = refresh_ledger(engine, ledger.pk)
        if result.ok:
            count += int(result.changed)
        else:
            logger.warning(
                "ledger.refresh_failed",
                extra={"ledger_id": ledger.pk, "code": result.code},
            )

    if count:
        logger.info(
            "ledger.statuses_refreshed",
            extra={"refreshed": count, "dry_run": dry_run},
        )
    return count
