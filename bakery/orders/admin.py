from django.contrib import admin
from .models import Order, OrderItem, Delivery


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['total_price']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'status', 'payment_status', 'total_amount', 'order_date']
    list_filter = ['status', 'payment_status', 'customer__customer_type']
    search_fields = ['order_number', 'customer__first_name', 'customer__last_name', 'customer__email']
    readonly_fields = ['order_number', 'subtotal', 'tax_amount', 'total_amount', 'order_date', 'created_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ['delivery_number', 'order', 'status', 'scheduled_date', 'driver_name', 'city', 'zip_code']
    list_filter = ['status', 'scheduled_date']
    search_fields = ['delivery_number', 'order__order_number', 'driver_name', 'tracking_number']
    readonly_fields = ['delivery_number', 'actual_date', 'created_at', 'updated_at']
