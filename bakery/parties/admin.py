from django.contrib import admin
from .models import Customer, CustomerAddress, Supplier


class CustomerAddressInline(admin.TabularInline):
    model = CustomerAddress
    extra = 0


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'phone', 'customer_type', 'city', 'is_active', 'created_at']
    list_filter = ['customer_type', 'is_active', 'tax_type']
    search_fields = ['first_name', 'last_name', 'email', 'phone', 'company_name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [CustomerAddressInline]


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_person', 'phone', 'email', 'city', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'contact_person', 'email', 'phone']
    readonly_fields = ['created_at', 'updated_at']
