from django.contrib.auth.models import AbstractUser
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class User(AbstractUser):
    """Staff account; authenticates with e-mail and carries a single role"""
    ADMIN = 'ADMIN'
    STORE_MANAGER = 'STORE_MANAGER'
    PRODUCTION_TEAM = 'PRODUCTION_TEAM'
    DELIVERY_TEAM = 'DELIVERY_TEAM'
    CASHIER = 'CASHIER'
    MANAGER = 'MANAGER'

    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (STORE_MANAGER, 'Store Manager'),
        (PRODUCTION_TEAM, 'Production Team'),
        (DELIVERY_TEAM, 'Delivery Team'),
        (CASHIER, 'Cashier'),
        (MANAGER, 'Manager'),
    ]

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=STORE_MANAGER)
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'users'
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'.strip() or self.email


class AuditLog(models.Model):
    """Audit trail of user actions"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('stock_adjust', 'Stock Adjust'),
        ('stock_transfer', 'Stock Transfer'),
        ('stock_receive', 'Stock Receive'),
        ('checkout', 'POS Checkout'),
        ('login', 'Login'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True)
    object_reference = models.CharField(max_length=255, blank=True, null=True)
    changes = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['model_name', 'object_id'], name='audit_model_object_idx'),
            models.Index(fields=['created_at'], name='audit_created_idx'),
        ]
