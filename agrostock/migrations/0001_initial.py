"""
Initial migration for Agrostock models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


LEDGER_STATUS_CHOICES = [
    ('in_stock', 'In stock'),
    ('low_stock', 'Low stock'),
    ('out_of_stock', 'Out of stock'),
    ('overstock', 'Overstock'),
    ('available', 'Available'),
    ('expiring_soon', 'Expiring soon'),
    ('expired', 'Expired'),
    ('damaged', 'Damaged'),
    ('quality_issue', 'Quality issue'),
    ('sold_out', 'Sold out'),
]


class Migration(migrations.Migration):
    """Create Agrostock models: QuantityLedger, LedgerMovement."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='QuantityLedger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('aggregate', 'Inventory'), ('batch', 'Lot')], max_length=20, verbose_name='Kind')),
                ('producer_id', models.PositiveBigIntegerField(db_index=True, verbose_name='Producer ID')),
                ('product_id', models.PositiveBigIntegerField(db_index=True, verbose_name='Product ID')),
                ('lot_number', models.CharField(blank=True, default='', max_length=50, verbose_name='Lot number')),
                ('quantity_unit', models.CharField(help_text='e.g. kg, t, crate. Immutable once set.', max_length=20, verbose_name='Unit')),
                ('total_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Total')),
                ('available_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Available')),
                ('reserved_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Reserved')),
                ('sold_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Sold')),
                ('damaged_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Damaged')),
                ('min_stock_level', models.DecimalField(blank=True, decimal_places=3, max_digits=13, null=True, verbose_name='Minimum stock level')),
                ('max_stock_level', models.DecimalField(blank=True, decimal_places=3, max_digits=13, null=True, verbose_name='Maximum stock level')),
                ('reorder_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=13, null=True, verbose_name='Reorder quantity')),
                ('cost_per_unit', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Cost per unit')),
                ('last_stock_count', models.DateTimeField(blank=True, null=True, verbose_name='Last stock count')),
                ('next_stock_count_due', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Next stock count due')),
                ('expiry_date', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Expiry date')),
                ('harvest_date', models.DateField(blank=True, null=True, verbose_name='Harvest date')),
                ('quality_grade', models.CharField(blank=True, choices=[('premium', 'Premium'), ('grade_a', 'Grade A'), ('grade_b', 'Grade B'), ('grade_c', 'Grade C'), ('organic', 'Organic'), ('export', 'Export'), ('domestic', 'Domestic'), ('processing', 'Processing'), ('reject', 'Reject')], default='', max_length=20, verbose_name='Quality grade')),
                ('quality_notes', models.TextField(blank=True, default='', verbose_name='Quality notes')),
                ('status', models.CharField(choices=LEDGER_STATUS_CHOICES, db_index=True, max_length=20, verbose_name='Status')),
                ('version', models.PositiveIntegerField(default=1, verbose_name='Version')),
                ('created_by', models.CharField(blank=True, default='', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_by', models.CharField(blank=True, default='', max_length=150)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted', models.BooleanField(default=False, verbose_name='Deleted')),
                ('parent', models.ForeignKey(blank=True, help_text='Aggregate ledger this lot belongs to, if any.', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='agrostock.quantityledger', verbose_name='Inventory')),
            ],
            options={
                'verbose_name': 'Quantity ledger',
                'verbose_name_plural': 'Quantity ledgers',
                'indexes': [
                    models.Index(fields=['producer_id', 'kind', 'status'], name='agrostock_ledger_owner_idx'),
                    models.Index(fields=['product_id', 'kind'], name='agrostock_ledger_product_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('total_quantity__gte', 0)), name='ledger_total_non_negative'),
                    models.CheckConstraint(condition=models.Q(('available_quantity__gte', 0)), name='ledger_available_non_negative'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__gte', 0)), name='ledger_reserved_non_negative'),
                    models.CheckConstraint(condition=models.Q(('sold_quantity__gte', 0)), name='ledger_sold_non_negative'),
                    models.CheckConstraint(condition=models.Q(('damaged_quantity__gte', 0)), name='ledger_damaged_non_negative'),
                    models.UniqueConstraint(condition=models.Q(('kind', 'aggregate'), ('deleted', False)), fields=('product_id',), name='unique_live_inventory_per_product'),
                    models.UniqueConstraint(condition=models.Q(('kind', 'batch'), ('deleted', False)), fields=('lot_number',), name='unique_live_lot_number'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LedgerMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('add', 'Stock added'), ('reserve', 'Reserved'), ('release', 'Released'), ('sale', 'Sale completed'), ('damage', 'Damaged'), ('adjust', 'Attributes updated')], max_length=20, verbose_name='Kind')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=13, verbose_name='Quantity')),
                ('total_delta', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Total change')),
                ('available_delta', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Available change')),
                ('reserved_delta', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Reserved change')),
                ('sold_delta', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Sold change')),
                ('damaged_delta', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=13, verbose_name='Damaged change')),
                ('status_after', models.CharField(choices=LEDGER_STATUS_CHOICES, max_length=20, verbose_name='Status after')),
                ('reference', models.CharField(blank=True, default='', help_text='Order reference for reservations and sales.', max_length=100, verbose_name='Reference')),
                ('reason', models.CharField(blank=True, default='', max_length=255, verbose_name='Reason')),
                ('actor', models.CharField(blank=True, default='', max_length=150, verbose_name='Actor')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('ledger', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='agrostock.quantityledger', verbose_name='Ledger')),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'ordering': ['timestamp', 'id'],
                'indexes': [
                    models.Index(fields=['ledger', 'timestamp'], name='agrostock_movement_ledger_idx'),
                ],
            },
        ),
    ]
