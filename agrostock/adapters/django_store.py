"""
Django Ledger Store — LedgerStore backed by the Django ORM.

Every write is a single conditional UPDATE:

    UPDATE agrostock_quantityledger
       SET ..., version = version + 1
     WHERE id = :id AND version = :seen AND deleted = false

run under transaction.atomic() together with the movement row, so a
concurrent writer makes the statement match zero rows instead of
overwriting a change it never saw.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from agrostock.models import LedgerMovement, QuantityLedger
from agrostock.protocols.store import LEDGER_STATE_FIELDS

logger = logging.getLogger('agrostock')


class DjangoLedgerStore:
    """ORM implementation of the LedgerStore protocol."""

    def __init__(self, using: str | None = None):
        self.using = using

    def _ledgers(self):
        return QuantityLedger.objects.using(self.using)

    def find_by_id(self, ledger_id: int) -> QuantityLedger | None:
        return self._ledgers().live().filter(pk=ledger_id).first()

    def apply_delta(
        self,
        ledger_id: int,
        expected_version: int,
        after: QuantityLedger,
        fields: Iterable[str] = (),
        movement: LedgerMovement | None = None,
    ) -> bool:
        values = {
            name: getattr(after, name)
            for name in (*LEDGER_STATE_FIELDS, *fields)
        }
        values['version'] = F('version') + 1
        values['updated_at'] = timezone.now()

        with transaction.atomic(using=self.using):
            updated = self._ledgers().filter(
                pk=ledger_id,
                version=expected_version,
                deleted=False,
            ).update(**values)

            if not updated:
                return False

            if movement is not None:
                movement.ledger_id = ledger_id
                movement.save(using=self.using)

        after.version = expected_version + 1
        after.updated_at = values['updated_at']
        return True

    def insert(self, ledger: QuantityLedger) -> int:
        with transaction.atomic(using=self.using):
            ledger.save(using=self.using)
        logger.debug("ledger.inserted", extra={"ledger_id": ledger.pk, "kind": ledger.kind})
        return ledger.pk

    def soft_delete(self, ledger_id: int, actor: str, expected_version: int | None = None) -> bool:
        qs = self._ledgers().filter(pk=ledger_id, deleted=False)
        if expected_version is not None:
            qs = qs.filter(version=expected_version)
        return bool(qs.update(
            deleted=True,
            updated_by=actor,
            updated_at=timezone.now(),
            version=F('version') + 1,
        ))

    def on_commit(self, callback: Callable[[], None]) -> None:
        transaction.on_commit(callback, using=self.using, robust=True)
