from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from bakery.catalog.models import Product
from bakery.parties.models import Customer


class Order(models.Model):
    """Customer order; totals are always derived from its items"""
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    IN_PRODUCTION = 'IN_PRODUCTION'
    READY_FOR_DELIVERY = 'READY_FOR_DELIVERY'
    OUT_FOR_DELIVERY = 'OUT_FOR_DELIVERY'
    DELIVERED = 'DELIVERED'
    CANCELLED = 'CANCELLED'
    RETURNED = 'RETURNED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (IN_PRODUCTION, 'In Production'),
        (READY_FOR_DELIVERY, 'Ready for Delivery'),
        (OUT_FOR_DELIVERY, 'Out for Delivery'),
        (DELIVERED, 'Delivered'),
        (CANCELLED, 'Cancelled'),
        (RETURNED, 'Returned'),
    ]

    PAYMENT_PENDING = 'PENDING'
    PAYMENT_PAID = 'PAID'
    PAYMENT_FAILED = 'FAILED'
    PAYMENT_REFUNDED = 'REFUNDED'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    DEFAULT_TAX_RATE = Decimal('18.00')

    order_number = models.CharField(max_length=50, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING, db_index=True)
    order_date = models.DateTimeField(auto_now_add=True, db_index=True)
    delivery_date = models.DateTimeField(null=True, blank=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_TAX_RATE,
                                   validators=[MinValueValidator(Decimal('0'))])
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-id']


class OrderItem(models.Model):
    """Line of an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.quantity} x {self.product.name}"

    def get_line_total(self):
        return self.unit_price * self.quantity

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class Delivery(models.Model):
    """Delivery run for an order"""
    SCHEDULED = 'SCHEDULED'
    IN_TRANSIT = 'IN_TRANSIT'
    DELIVERED = 'DELIVERED'
    FAILED = 'FAILED'
    RETURNED = 'RETURNED'

    STATUS_CHOICES = [
        (SCHEDULED, 'Scheduled'),
        (IN_TRANSIT, 'In Transit'),
        (DELIVERED, 'Delivered'),
        (FAILED, 'Failed'),
        (RETURNED, 'Returned'),
    ]

    delivery_number = models.CharField(max_length=50, unique=True)
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='deliveries')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='deliveries')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=SCHEDULED, db_index=True)
    scheduled_date = models.DateTimeField(db_index=True)
    actual_date = models.DateTimeField(null=True, blank=True)
    delivery_address = models.TextField()
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    driver_name = models.CharField(max_length=200, blank=True)
    vehicle_number = models.CharField(max_length=50, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.delivery_number

    class Meta:
        db_table = 'deliveries'
        ordering = ['scheduled_date', 'id']
        verbose_name_plural = 'deliveries'
