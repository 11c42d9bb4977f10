from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """Product master: everything sold, baked or used as an ingredient"""
    CATEGORY_CHOICES = [
        ('BREAD', 'Bread'),
        ('PASTRY', 'Pastry'),
        ('CAKE', 'Cake'),
        ('COOKIE', 'Cookie'),
        ('BEVERAGE', 'Beverage'),
        ('SANDWICH', 'Sandwich'),
        ('SALAD', 'Salad'),
        ('OTHER', 'Other'),
    ]

    TAX_TYPE_CHOICES = [
        ('GST', 'GST'),
        ('VAT', 'VAT'),
        ('NONE', 'None'),
    ]

    UNIT_TYPE_CHOICES = [
        ('PIECE', 'Piece'),
        ('KG', 'Kilogram'),
        ('GRAM', 'Gram'),
        ('LITER', 'Liter'),
        ('ML', 'Millilitre'),
        ('PACK', 'Pack'),
        ('BOX', 'Box'),
    ]

    STATUS_ACTIVE = 'ACTIVE'
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('INACTIVE', 'Inactive'),
        ('DISCONTINUED', 'Discontinued'),
    ]

    sku = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    barcode = models.CharField(max_length=100, unique=True, blank=True, null=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='OTHER', db_index=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(Decimal('0'))])
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'),
                                   validators=[MinValueValidator(Decimal('0'))])
    tax_type = models.CharField(max_length=10, choices=TAX_TYPE_CHOICES, default='GST')
    unit_type = models.CharField(max_length=10, choices=UNIT_TYPE_CHOICES, default='PIECE')
    min_stock_level = models.PositiveIntegerField(default=0)
    max_stock_level = models.PositiveIntegerField(null=True, blank=True)
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    shelf_life = models.PositiveIntegerField(null=True, blank=True, help_text='Shelf life in days')
    image_url = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    class Meta:
        db_table = 'products'
        ordering = ['name']
