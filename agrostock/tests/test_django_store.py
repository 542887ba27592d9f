"""
Tests for the engine on top of DjangoLedgerStore.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from agrostock.adapters import DjangoLedgerStore
from agrostock.models import LedgerMovement, LedgerStatus, MovementKind, QuantityLedger

pytestmark = pytest.mark.django_db


@pytest.fixture
def store(db):
    return DjangoLedgerStore()


class TestEngineOnDatabase:

    def test_reserve_persists_buckets_status_and_movement(self, engine, producer, make_inventory,
                                                           django_capture_on_commit_callbacks):
        ledger_id = make_inventory(available='100', min_stock_level=Decimal('80'))

        with django_capture_on_commit_callbacks(execute=True):
            result = engine.reserve(ledger_id, Decimal('30'), producer, order_ref='SO-1')

        assert result.ok
        ledger = QuantityLedger.objects.get(pk=ledger_id)
        assert ledger.available_quantity == Decimal('70')
        assert ledger.reserved_quantity == Decimal('30')
        assert ledger.status == LedgerStatus.LOW_STOCK
        assert ledger.version == 2
        assert ledger.updated_by == 'maria'

        movement = ledger.movements.get()
        assert movement.kind == MovementKind.RESERVE
        assert movement.reference == 'SO-1'
        assert movement.available_delta == Decimal('-30')
        assert movement.status_after == LedgerStatus.LOW_STOCK

    def test_event_waits_for_commit(self, engine, producer, sink, make_inventory,
                                    django_capture_on_commit_callbacks):
        ledger_id = make_inventory()

        with django_capture_on_commit_callbacks() as callbacks:
            engine.add_stock(ledger_id, Decimal('5'), producer)
            assert sink.events == []

        assert len(callbacks) == 1
        callbacks[0]()
        assert sink.topics == ['stock.added']

    def test_rolled_back_change_publishes_nothing(self, engine, producer, sink, make_inventory,
                                                  django_capture_on_commit_callbacks):
        ledger_id = make_inventory(available='10')

        with django_capture_on_commit_callbacks(execute=True):
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    engine.reserve(ledger_id, Decimal('4'), producer).unwrap()
                    raise RuntimeError('order rejected downstream')

        assert QuantityLedger.objects.get(pk=ledger_id).available_quantity == Decimal('10')
        assert LedgerMovement.objects.count() == 0
        assert sink.events == []

    def test_full_sale_cycle(self, engine, producer, system_actor, make_inventory):
        ledger_id = make_inventory(available='100')

        engine.reserve(ledger_id, Decimal('30'), producer).unwrap()
        engine.complete_sale(ledger_id, Decimal('30'), system_actor).unwrap()

        ledger = QuantityLedger.objects.get(pk=ledger_id)
        assert (ledger.total_quantity, ledger.available_quantity, ledger.sold_quantity) == (
            Decimal('70'), Decimal('70'), Decimal('30'),
        )
        assert list(ledger.movements.values_list('kind', flat=True)) == ['reserve', 'sale']


class TestDjangoLedgerStore:
    """Tests for the store's compare-and-swap."""

    def test_stale_version_writes_nothing(self, store, make_inventory):
        ledger_id = make_inventory(available='10')
        first = store.find_by_id(ledger_id)
        second = store.find_by_id(ledger_id)

        first.available_quantity = Decimal('9')
        first.reserved_quantity = Decimal('1')
        assert store.apply_delta(ledger_id, first.version, first)

        second.available_quantity = Decimal('5')
        second.reserved_quantity = Decimal('5')
        movement = LedgerMovement(kind=MovementKind.RESERVE, quantity=Decimal('5'),
                                  status_after=LedgerStatus.IN_STOCK)
        assert not store.apply_delta(ledger_id, second.version, second, movement=movement)

        row = QuantityLedger.objects.get(pk=ledger_id)
        assert row.available_quantity == Decimal('9')
        assert row.version == 2
        assert movement.pk is None

    def test_extra_fields_are_written(self, store, make_inventory):
        ledger_id = make_inventory()
        ledger = store.find_by_id(ledger_id)
        ledger.min_stock_level = Decimal('20')

        assert store.apply_delta(ledger_id, ledger.version, ledger, fields=('min_stock_level',))
        assert QuantityLedger.objects.get(pk=ledger_id).min_stock_level == Decimal('20')

    def test_soft_delete_hides_ledger(self, store, make_inventory):
        ledger_id = make_inventory(available='0')

        assert store.soft_delete(ledger_id, 'maria')
        assert store.find_by_id(ledger_id) is None
        assert not store.soft_delete(ledger_id, 'maria')
        assert QuantityLedger.objects.get(pk=ledger_id).deleted

    def test_soft_delete_checks_version(self, store, make_inventory):
        ledger_id = make_inventory(available='0')

        assert not store.soft_delete(ledger_id, 'maria', expected_version=7)
        assert store.find_by_id(ledger_id) is not None

    def test_database_rejects_negative_bucket(self, make_inventory):
        ledger_id = make_inventory(available='1')

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                QuantityLedger.objects.filter(pk=ledger_id).update(available_quantity=Decimal('-1'))

    def test_movements_are_immutable(self, engine, producer, make_inventory):
        ledger_id = make_inventory()
        engine.add_stock(ledger_id, Decimal('1'), producer).unwrap()
        movement = LedgerMovement.objects.get()

        with pytest.raises(ValueError):
            movement.save()
        with pytest.raises(ValueError):
            movement.delete()
