from django.urls import path
from .views import product_list_create, product_detail, product_status, public_product_list

urlpatterns = [
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/status/', product_status, name='product-status'),

    # Storefront
    path('public/products/', public_product_list, name='public-product-list'),
]
