from django.urls import path
from .views import (
    purchase_order_list_create, purchase_order_detail, purchase_order_status,
    purchase_order_item_create, purchase_order_item_detail, purchase_order_item_receive,
)

urlpatterns = [
    path('purchase-orders/', purchase_order_list_create, name='purchase-order-list-create'),
    path('purchase-orders/<int:pk>/', purchase_order_detail, name='purchase-order-detail'),
    path('purchase-orders/<int:pk>/status/', purchase_order_status, name='purchase-order-status'),
    path('purchase-orders/<int:pk>/items/', purchase_order_item_create, name='purchase-order-item-create'),
    path('purchase-orders/<int:pk>/items/<int:item_id>/', purchase_order_item_detail, name='purchase-order-item-detail'),
    path('purchase-orders/<int:pk>/items/<int:item_id>/receive/', purchase_order_item_receive,
         name='purchase-order-item-receive'),
]
