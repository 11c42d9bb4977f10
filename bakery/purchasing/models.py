from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from bakery.catalog.models import Product
from bakery.parties.models import Supplier
from bakery.locations.models import Warehouse


class PurchaseOrder(models.Model):
    """Purchase order to a supplier"""
    DRAFT = 'DRAFT'
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    ORDERED = 'ORDERED'
    PARTIALLY_RECEIVED = 'PARTIALLY_RECEIVED'
    RECEIVED = 'RECEIVED'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'

    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (PENDING, 'Pending'),
        (APPROVED, 'Approved'),
        (ORDERED, 'Ordered'),
        (PARTIALLY_RECEIVED, 'Partially Received'),
        (RECEIVED, 'Received'),
        (CANCELLED, 'Cancelled'),
        (COMPLETED, 'Completed'),
    ]

    EDITABLE_STATUSES = (DRAFT, PENDING, APPROVED, ORDERED)
    RECEIVABLE_STATUSES = (APPROVED, ORDERED, PARTIALLY_RECEIVED)
    TERMINAL_STATUSES = (CANCELLED, COMPLETED)

    po_number = models.CharField(max_length=50, unique=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchase_orders')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=DRAFT, db_index=True)
    order_date = models.DateField(default=timezone.localdate)
    expected_date = models.DateField(null=True, blank=True)
    received_date = models.DateField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.po_number

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-order_date', '-id']
        indexes = [
            models.Index(fields=['supplier', 'status'], name='idx_po_supplier_status'),
        ]


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='purchase_order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    received_qty = models.PositiveIntegerField(default=0)

    @property
    def remaining_qty(self):
        return self.quantity - self.received_qty

    def __str__(self):
        return f"{self.purchase_order.po_number}: {self.quantity} x {self.product.name}"

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']
        constraints = [
            models.CheckConstraint(condition=models.Q(received_qty__lte=models.F('quantity')),
                                   name='po_item_received_lte_quantity'),
        ]
