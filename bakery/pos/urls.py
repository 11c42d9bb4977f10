from django.urls import path
from .views import (
    pos_order_list_create, pos_order_detail, pos_payment_list_create, pos_receipt_list_create,
    pos_session, pos_session_active, pos_utils, pos_daily_report,
)

urlpatterns = [
    path('pos/orders/', pos_order_list_create, name='pos-order-list-create'),
    path('pos/orders/<int:pk>/', pos_order_detail, name='pos-order-detail'),
    path('pos/payments/', pos_payment_list_create, name='pos-payment-list-create'),
    path('pos/receipts/', pos_receipt_list_create, name='pos-receipt-list-create'),
    path('pos/session/', pos_session, name='pos-session'),
    path('pos/session/active/', pos_session_active, name='pos-session-active'),
    path('pos/utils/', pos_utils, name='pos-utils'),
    path('pos/reports/daily/', pos_daily_report, name='pos-daily-report'),
]
