from django.urls import path
from .views import (
    order_list_create, order_detail, order_status, order_cancel,
    order_item_create, order_item_detail, order_summary,
    delivery_list_create, delivery_detail, delivery_status, delivery_assign,
    delivery_routes, delivery_summary,
)

urlpatterns = [
    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/summary/', order_summary, name='order-summary'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
    path('orders/<int:pk>/items/', order_item_create, name='order-item-create'),
    path('orders/<int:pk>/items/<int:item_id>/', order_item_detail, name='order-item-detail'),

    # Delivery endpoints
    path('deliveries/', delivery_list_create, name='delivery-list-create'),
    path('deliveries/routes/', delivery_routes, name='delivery-routes'),
    path('deliveries/summary/', delivery_summary, name='delivery-summary'),
    path('deliveries/<int:pk>/', delivery_detail, name='delivery-detail'),
    path('deliveries/<int:pk>/status/', delivery_status, name='delivery-status'),
    path('deliveries/<int:pk>/assign/', delivery_assign, name='delivery-assign'),
]
