from django.contrib import admin
from .models import Warehouse


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['name', 'city', 'state', 'zip_code', 'is_active', 'created_at']
    list_filter = ['is_active', 'city']
    search_fields = ['name', 'city', 'address']
    readonly_fields = ['created_at', 'updated_at']
