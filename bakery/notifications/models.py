from django.db import models


class Notification(models.Model):
    """Outgoing customer/staff message queued for a channel"""
    SMS = 'SMS'
    EMAIL = 'EMAIL'
    WHATSAPP = 'WHATSAPP'
    PUSH = 'PUSH'

    TYPE_CHOICES = [
        (SMS, 'SMS'),
        (EMAIL, 'Email'),
        (WHATSAPP, 'WhatsApp'),
        (PUSH, 'Push'),
    ]

    PENDING = 'PENDING'
    SENT = 'SENT'
    FAILED = 'FAILED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (SENT, 'Sent'),
        (FAILED, 'Failed'),
    ]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    recipient = models.CharField(max_length=255)
    subject = models.CharField(max_length=255, blank=True)
    message = models.TextField()
    template = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.type} to {self.recipient} ({self.status})"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
