from django.urls import path
from .views import (
    register,
    customer_list_create, customer_detail, customer_status, customer_type,
    customer_address_list_create, customer_address_detail,
    supplier_list_create, supplier_detail, supplier_status,
)

urlpatterns = [
    path('auth/register/', register, name='customer-register'),

    # Customer endpoints
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/status/', customer_status, name='customer-status'),
    path('customers/<int:pk>/type/', customer_type, name='customer-type'),
    path('customers/<int:pk>/addresses/', customer_address_list_create, name='customer-address-list-create'),
    path('customers/<int:pk>/addresses/<int:address_id>/', customer_address_detail, name='customer-address-detail'),

    # Supplier endpoints
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
    path('suppliers/<int:pk>/status/', supplier_status, name='supplier-status'),
]
