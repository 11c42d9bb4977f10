from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    fields = ['product', 'quantity', 'unit_price', 'total_price', 'received_qty']
    readonly_fields = ['total_price', 'received_qty']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'supplier', 'warehouse', 'status', 'order_date', 'expected_date', 'total_amount']
    list_filter = ['status', 'supplier', 'order_date']
    search_fields = ['po_number', 'supplier__name', 'notes']
    readonly_fields = ['po_number', 'total_amount', 'received_date', 'created_at', 'updated_at']
    inlines = [PurchaseOrderItemInline]
