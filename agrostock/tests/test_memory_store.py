"""
Tests for InMemoryLedgerStore and the lifecycle running on it, without a database.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError

from agrostock.models import LedgerKind, QuantityLedger
from agrostock.services.lifecycle import LedgerLifecycle


@pytest.fixture
def lifecycle(engine):
    return LedgerLifecycle(engine)


def _inventory(product_id=7):
    return QuantityLedger.open(LedgerKind.AGGREGATE, Decimal('1'),
                               producer_id=42, product_id=product_id, quantity_unit='kg')


def _lot(lot_number):
    return QuantityLedger.open(LedgerKind.BATCH, Decimal('1'), producer_id=42, product_id=7,
                               lot_number=lot_number, quantity_unit='kg')


class TestUniqueness:

    def test_one_live_inventory_per_product(self, store):
        store.insert(_inventory())

        with pytest.raises(IntegrityError):
            store.insert(_inventory())

        assert store.insert(_inventory(product_id=8))

    def test_one_live_lot_per_number(self, store):
        store.insert(_lot('LOT-1'))

        with pytest.raises(IntegrityError):
            store.insert(_lot('LOT-1'))

    def test_inventory_and_lot_do_not_clash(self, store):
        store.insert(_inventory())

        assert store.insert(_lot('LOT-1'))

    def test_soft_delete_frees_the_key(self, store):
        first = store.insert(_inventory())
        store.soft_delete(first, 'maria')

        assert store.insert(_inventory()) != first


class TestLifecycleWithoutDatabase:

    def test_duplicate_inventory(self, lifecycle, producer):
        lifecycle.create_inventory(producer, 7, Decimal('1'), 'kg').unwrap()

        result = lifecycle.create_inventory(producer, 7, Decimal('1'), 'kg')

        assert result.code == 'LEDGER_EXISTS'
        assert result.error.data['product_id'] == 7

    def test_duplicate_lot_number(self, lifecycle, producer):
        inventory = lifecycle.create_inventory(producer, 7, Decimal('0'), 'kg').unwrap()
        lifecycle.create_lot(producer, None, 'LOT-77', Decimal('5'), parent_id=inventory.pk).unwrap()

        result = lifecycle.create_lot(producer, 9, 'LOT-77', Decimal('5'), 'kg')

        assert result.code == 'LEDGER_EXISTS'
        assert result.error.data['lot_number'] == 'LOT-77'

    def test_failed_create_publishes_nothing(self, lifecycle, producer, sink):
        lifecycle.create_inventory(producer, 7, Decimal('1'), 'kg').unwrap()

        lifecycle.create_inventory(producer, 7, Decimal('1'), 'kg')

        assert sink.topics == ['inventory.created']
