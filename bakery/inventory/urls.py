from django.urls import path
from .views import (
    inventory_list_create, inventory_detail,
    inventory_adjust, inventory_transfer, inventory_reserve, inventory_release, inventory_movements,
    inventory_summary, inventory_low_stock, inventory_expiring,
)

urlpatterns = [
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/summary/', inventory_summary, name='inventory-summary'),
    path('inventory/low-stock/', inventory_low_stock, name='inventory-low-stock'),
    path('inventory/expiring/', inventory_expiring, name='inventory-expiring'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('inventory/<int:pk>/adjust/', inventory_adjust, name='inventory-adjust'),
    path('inventory/<int:pk>/transfer/', inventory_transfer, name='inventory-transfer'),
    path('inventory/<int:pk>/reserve/', inventory_reserve, name='inventory-reserve'),
    path('inventory/<int:pk>/release/', inventory_release, name='inventory-release'),
    path('inventory/<int:pk>/movements/', inventory_movements, name='inventory-movements'),
]
