from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['type', 'recipient', 'subject', 'template', 'status', 'sent_at', 'created_at']
    list_filter = ['type', 'status', 'template']
    search_fields = ['recipient', 'subject', 'message']
    readonly_fields = ['sent_at', 'created_at', 'updated_at']
