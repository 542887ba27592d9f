"""
Tests for the read-only admin.
"""

from datetime import timedelta

import pytest
from django.contrib import admin
from django.urls import reverse
from django.utils import timezone

from agrostock.adapters import DjangoLedgerStore
from agrostock.models import LedgerMovement, LedgerStatus, QuantityLedger

pytestmark = pytest.mark.django_db


@pytest.fixture
def store(db):
    return DjangoLedgerStore()


class TestLedgerAdmin:

    def test_registered_read_only(self, rf, admin_user):
        request = rf.get('/')
        request.user = admin_user

        for model in (QuantityLedger, LedgerMovement):
            model_admin = admin.site._registry[model]
            assert not model_admin.has_add_permission(request)
            assert not model_admin.has_change_permission(request)
            assert not model_admin.has_delete_permission(request)

    def test_changelist_renders(self, admin_client, make_inventory, make_lot):
        make_inventory()
        make_lot()

        response = admin_client.get(reverse('admin:agrostock_quantityledger_changelist'))

        assert response.status_code == 200

    def test_refresh_status_action(self, admin_client, make_lot):
        lot = make_lot(expiry_date=timezone.now() - timedelta(days=1))
        QuantityLedger.objects.filter(pk=lot).update(status=LedgerStatus.AVAILABLE)

        admin_client.post(
            reverse('admin:agrostock_quantityledger_changelist'),
            {'action': 'refresh_status', '_selected_action': [lot]},
        )

        assert QuantityLedger.objects.get(pk=lot).status == LedgerStatus.EXPIRED

    def test_refresh_status_action_skips_current_ledgers(self, admin_client, make_inventory):
        ledger_id = make_inventory()

        response = admin_client.post(
            reverse('admin:agrostock_quantityledger_changelist'),
            {'action': 'refresh_status', '_selected_action': [ledger_id]},
            follow=True,
        )

        assert QuantityLedger.objects.get(pk=ledger_id).version == 1
        assert '0 ledger(s) refreshed.' in response.content.decode()
