"""
Agrostock Admin — read-only views for production debugging.

- QuantityLedger: read-only buckets, status and audit fields,
  with a "refresh status" action
- LedgerMovement: read-only history

Ledgers only change through the engine (agrostock.ledger).
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from agrostock.actor import ActorContext
from agrostock.models import LedgerMovement, QuantityLedger
from agrostock.status import utilization_percentage

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# LEDGER ADMIN (read-only)
# =========================================================================


class LedgerMovementInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = LedgerMovement
    extra = 0
    fields = ['timestamp', 'kind', 'quantity', 'available_delta', 'reserved_delta',
              'status_after', 'reference', 'reason', 'actor']
    readonly_fields = fields
    ordering = ['-timestamp', '-id']
    show_change_link = True


@admin.register(QuantityLedger)
class QuantityLedgerAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Ledger admin — read-only. Buckets only change via the engine."""

    list_display = ['id', 'kind', 'product_id', 'lot_number', 'producer_id',
                    'available_quantity', 'reserved_quantity', 'total_quantity',
                    'quantity_unit', 'status', 'utilization_display', 'expiry_date']
    list_filter = ['kind', 'status', 'quality_grade', 'deleted']
    search_fields = ['lot_number', 'product_id', 'producer_id']
    readonly_fields = [field.name for field in QuantityLedger._meta.fields]
    ordering = ['-updated_at']
    inlines = [LedgerMovementInline]
    actions = ['refresh_status']

    @admin.display(description=_('Utilization %'))
    def utilization_display(self, obj):
        return utilization_percentage(obj)

    @admin.action(description=_('Refresh derived status'))
    def refresh_status(self, request, queryset):
        from agrostock import ledger
        from agrostock.services.maintenance import refresh_ledger

        actor = ActorContext.system(f'admin:{request.user.get_username()}')
        count = 0
        for item in queryset.filter(deleted=False):
            result = refresh_ledger(ledger.engine(), item.pk, actor)
            if result.ok:
                count += int(result.changed)
            else:
                logger.warning("refresh_status: ledger %s failed: %s", item.pk, result.code)

        self.message_user(request, _('{count} ledger(s) refreshed.').format(count=count))


# =========================================================================
# MOVEMENT ADMIN (read-only history)
# =========================================================================


@admin.register(LedgerMovement)
class LedgerMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Movement admin — read-only. Immutable history."""

    list_display = ['timestamp', 'ledger', 'kind', 'quantity', 'status_after',
                    'reference', 'actor']
    list_filter = ['kind', 'timestamp']
    search_fields = ['reference', 'reason', 'actor']
    readonly_fields = [field.name for field in LedgerMovement._meta.fields]
    date_hierarchy = 'timestamp'
