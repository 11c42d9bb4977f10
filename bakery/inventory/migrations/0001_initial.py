# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('locations', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('reserved_qty', models.PositiveIntegerField(default=0)),
                ('location', models.CharField(blank=True, max_length=100)),
                ('batch_number', models.CharField(blank=True, max_length=100)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('last_updated', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_records', to='catalog.product')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_records', to='locations.warehouse')),
            ],
            options={
                'db_table': 'inventory',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['product', 'warehouse'], name='idx_inventory_product_wh'), models.Index(fields=['expiry_date'], name='idx_inventory_expiry')],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity__gte', models.F('reserved_qty'))), name='inventory_reserved_lte_quantity')],
            },
        ),
        migrations.CreateModel(
            name='InventoryMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_type', models.CharField(choices=[('ADD', 'Stock Added'), ('REMOVE', 'Stock Removed'), ('SET', 'Stock Level Set'), ('TRANSFER_OUT', 'Transfer Out'), ('TRANSFER_IN', 'Transfer In'), ('RESERVE', 'Reserved'), ('RELEASE', 'Reservation Released'), ('RECEIVE', 'Purchase Received'), ('SALE', 'Sale')], max_length=20)),
                ('quantity', models.PositiveIntegerField()),
                ('previous_quantity', models.PositiveIntegerField()),
                ('new_quantity', models.PositiveIntegerField()),
                ('reason', models.CharField(choices=[('received', 'Stock Received'), ('damaged', 'Damaged Goods'), ('expired', 'Expired Items'), ('theft', 'Theft/Loss'), ('return', 'Customer Return'), ('transfer', 'Transfer'), ('count_error', 'Count Error'), ('correction', 'Correction'), ('sale', 'Sale'), ('other', 'Other')], default='other', max_length=30)),
                ('reference', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('inventory', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to='inventory.inventoryrecord')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_movements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'inventory_movements',
                'ordering': ['-timestamp', '-id'],
            },
        ),
    ]
