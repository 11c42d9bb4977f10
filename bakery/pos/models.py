from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from bakery.catalog.models import Product
from bakery.parties.models import Customer


class POSSession(models.Model):
    """Cashier shift at the till; a cashier has at most one active session"""
    cashier = models.ForeignKey('core.User', on_delete=models.PROTECT, related_name='pos_sessions')
    starting_cash = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                        validators=[MinValueValidator(Decimal('0'))])
    ending_cash = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_sales = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_transactions = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    start_time = models.DateTimeField(auto_now_add=True)
    end_time = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"Session {self.id} - {self.cashier.email}"

    class Meta:
        db_table = 'pos_sessions'
        ordering = ['-start_time', '-id']
        constraints = [
            models.UniqueConstraint(fields=['cashier'], condition=models.Q(is_active=True),
                                    name='uniq_active_pos_session'),
        ]


class POSOrder(models.Model):
    """Till sale"""
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    REFUNDED = 'REFUNDED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
        (REFUNDED, 'Refunded'),
    ]

    TAX_RATE = Decimal('8.00')

    order_number = models.CharField(max_length=50, unique=True)
    cashier = models.ForeignKey('core.User', on_delete=models.PROTECT, related_name='pos_orders')
    session = models.ForeignKey(POSSession, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='pos_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    change_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    is_offline = models.BooleanField(default=False)
    synced_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'pos_orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['is_offline', 'synced_at'], name='idx_pos_order_offline'),
        ]


class POSOrderItem(models.Model):
    order = models.ForeignKey(POSOrder, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='pos_order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.quantity} x {self.product.name}"

    class Meta:
        db_table = 'pos_order_items'
        ordering = ['id']


class POSPayment(models.Model):
    CASH = 'CASH'
    CARD = 'CARD'
    UPI = 'UPI'
    ONLINE = 'ONLINE'

    METHOD_CHOICES = [
        (CASH, 'Cash'),
        (CARD, 'Card'),
        (UPI, 'UPI'),
        (ONLINE, 'Online'),
    ]

    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('PAID', 'Paid'),
        ('FAILED', 'Failed'),
        ('REFUNDED', 'Refunded'),
    ]

    order = models.ForeignKey(POSOrder, on_delete=models.CASCADE, related_name='payments')
    method = models.CharField(max_length=10, choices=METHOD_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    reference = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='PAID')
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.method} {self.amount} for {self.order.order_number}"

    class Meta:
        db_table = 'pos_payments'
        ordering = ['created_at', 'id']


class POSReceipt(models.Model):
    PRINT = 'PRINT'
    EMAIL = 'EMAIL'
    SMS = 'SMS'

    TYPE_CHOICES = [
        (PRINT, 'Print'),
        (EMAIL, 'Email'),
        (SMS, 'SMS'),
    ]

    order = models.ForeignKey(POSOrder, on_delete=models.CASCADE, related_name='receipts')
    receipt_number = models.CharField(max_length=50, unique=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=PRINT)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.receipt_number

    class Meta:
        db_table = 'pos_receipts'
        ordering = ['-created_at', '-id']
