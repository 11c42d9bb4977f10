from django.db import models
from django.db.models import F, Q
from bakery.catalog.models import Product
from bakery.locations.models import Warehouse


class InventoryRecord(models.Model):
    """On-hand stock of a product (batch) in a warehouse"""
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='inventory_records')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='inventory_records')
    quantity = models.PositiveIntegerField(default=0)
    reserved_qty = models.PositiveIntegerField(default=0)
    location = models.CharField(max_length=100, blank=True)  # shelf / bin label
    batch_number = models.CharField(max_length=100, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_updated = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.sku} @ {self.warehouse.name}: {self.quantity}"

    @property
    def available_qty(self):
        return self.quantity - self.reserved_qty

    class Meta:
        db_table = 'inventory'
        ordering = ['id']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=F('reserved_qty')), name='inventory_reserved_lte_quantity'),
            models.UniqueConstraint(fields=['product', 'warehouse', 'batch_number'], name='uniq_inventory_product_wh_batch'),
        ]
        indexes = [
            models.Index(fields=['product', 'warehouse'], name='idx_inventory_product_wh'),
            models.Index(fields=['expiry_date'], name='idx_inventory_expiry'),
        ]


class InventoryMovement(models.Model):
    """Audit trail of every change to an inventory record"""
    ADD = 'ADD'
    REMOVE = 'REMOVE'
    SET = 'SET'
    TRANSFER_OUT = 'TRANSFER_OUT'
    TRANSFER_IN = 'TRANSFER_IN'
    RESERVE = 'RESERVE'
    RELEASE = 'RELEASE'
    RECEIVE = 'RECEIVE'
    SALE = 'SALE'

    MOVEMENT_TYPE_CHOICES = [
        (ADD, 'Stock Added'),
        (REMOVE, 'Stock Removed'),
        (SET, 'Stock Level Set'),
        (TRANSFER_OUT, 'Transfer Out'),
        (TRANSFER_IN, 'Transfer In'),
        (RESERVE, 'Reserved'),
        (RELEASE, 'Reservation Released'),
        (RECEIVE, 'Purchase Received'),
        (SALE, 'Sale'),
    ]

    REASON_CHOICES = [
        ('received', 'Stock Received'),
        ('damaged', 'Damaged Goods'),
        ('expired', 'Expired Items'),
        ('theft', 'Theft/Loss'),
        ('return', 'Customer Return'),
        ('transfer', 'Transfer'),
        ('count_error', 'Count Error'),
        ('correction', 'Correction'),
        ('sale', 'Sale'),
        ('other', 'Other'),
    ]

    inventory = models.ForeignKey(InventoryRecord, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.PositiveIntegerField()
    previous_quantity = models.PositiveIntegerField()
    new_quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=30, choices=REASON_CHOICES, default='other')
    reference = models.CharField(max_length=100, blank=True)  # PO / order number, counterpart record
    notes = models.TextField(blank=True)
    user = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_movements')
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.movement_type} {self.quantity} on inventory #{self.inventory_id}"

    class Meta:
        db_table = 'inventory_movements'
        ordering = ['-timestamp', '-id']
