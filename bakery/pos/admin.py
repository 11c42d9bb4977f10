from django.contrib import admin
from .models import POSSession, POSOrder, POSOrderItem, POSPayment, POSReceipt


class POSOrderItemInline(admin.TabularInline):
    model = POSOrderItem
    extra = 0
    readonly_fields = ['total_price']


class POSPaymentInline(admin.TabularInline):
    model = POSPayment
    extra = 0
    readonly_fields = ['processed_at', 'created_at']


@admin.register(POSSession)
class POSSessionAdmin(admin.ModelAdmin):
    list_display = ['id', 'cashier', 'is_active', 'starting_cash', 'ending_cash', 'total_sales', 'start_time']
    list_filter = ['is_active']
    search_fields = ['cashier__email']
    readonly_fields = ['total_sales', 'total_transactions', 'start_time', 'end_time']


@admin.register(POSOrder)
class POSOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'cashier', 'status', 'total_amount', 'paid_amount', 'is_offline', 'created_at']
    list_filter = ['status', 'is_offline']
    search_fields = ['order_number', 'cashier__email']
    readonly_fields = ['order_number', 'subtotal', 'tax_amount', 'total_amount', 'paid_amount',
                       'change_amount', 'synced_at', 'created_at', 'updated_at']
    inlines = [POSOrderItemInline, POSPaymentInline]


@admin.register(POSReceipt)
class POSReceiptAdmin(admin.ModelAdmin):
    list_display = ['receipt_number', 'order', 'type', 'created_at']
    list_filter = ['type']
    search_fields = ['receipt_number', 'order__order_number']
