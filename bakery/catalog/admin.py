from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['sku', 'name', 'category', 'selling_price', 'tax_rate', 'unit_type', 'status', 'updated_at']
    list_filter = ['category', 'status', 'unit_type', 'tax_type']
    search_fields = ['sku', 'name', 'barcode']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
