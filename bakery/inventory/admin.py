from django.contrib import admin
from .models import InventoryRecord, InventoryMovement


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = ['product', 'warehouse', 'quantity', 'reserved_qty', 'batch_number', 'expiry_date', 'last_updated']
    list_filter = ['warehouse', 'product__category']
    search_fields = ['product__name', 'product__sku', 'batch_number']
    readonly_fields = ['quantity', 'reserved_qty', 'created_at', 'last_updated']


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    list_display = ['inventory', 'movement_type', 'quantity', 'previous_quantity', 'new_quantity', 'reason', 'user', 'timestamp']
    list_filter = ['movement_type', 'reason', 'timestamp']
    search_fields = ['inventory__product__name', 'inventory__product__sku', 'reference', 'notes']
    readonly_fields = [f.name for f in InventoryMovement._meta.fields]
