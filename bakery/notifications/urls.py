from django.urls import path
from .views import (
    notification_list_create, notification_detail, notification_status, notification_bulk,
    notification_templates, notification_summary, notification_stats,
)

urlpatterns = [
    path('notifications/', notification_list_create, name='notification-list-create'),
    path('notifications/bulk/', notification_bulk, name='notification-bulk'),
    path('notifications/templates/', notification_templates, name='notification-templates'),
    path('notifications/summary/', notification_summary, name='notification-summary'),
    path('notifications/stats/', notification_stats, name='notification-stats'),
    path('notifications/<int:pk>/', notification_detail, name='notification-detail'),
    path('notifications/<int:pk>/status/', notification_status, name='notification-status'),
]
