from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from bakery.catalog.models import Product
from bakery.core.utils import round_percent


class Recipe(models.Model):
    """Bill of ingredients for one batch of ``servings`` units"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    servings = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    prep_time = models.PositiveIntegerField(null=True, blank=True, help_text='Minutes')
    cook_time = models.PositiveIntegerField(null=True, blank=True, help_text='Minutes')
    instructions = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'recipes'
        ordering = ['name']


class RecipeItem(models.Model):
    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='recipe_items')
    quantity = models.DecimalField(max_digits=10, decimal_places=3, validators=[MinValueValidator(Decimal('0.001'))])
    unit = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.recipe.name}: {self.quantity} {self.unit} {self.product.name}"

    class Meta:
        db_table = 'recipe_items'
        ordering = ['id']


class Production(models.Model):
    """Production batch of a recipe"""
    PLANNED = 'PLANNED'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    ON_HOLD = 'ON_HOLD'

    STATUS_CHOICES = [
        (PLANNED, 'Planned'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
        (ON_HOLD, 'On Hold'),
    ]

    # Allowed next states; COMPLETED and CANCELLED are terminal
    TRANSITIONS = {
        PLANNED: {IN_PROGRESS, CANCELLED, ON_HOLD},
        IN_PROGRESS: {COMPLETED, CANCELLED, ON_HOLD},
        ON_HOLD: {PLANNED, IN_PROGRESS, CANCELLED},
        COMPLETED: set(),
        CANCELLED: set(),
    }

    batch_number = models.CharField(max_length=50, unique=True)
    recipe = models.ForeignKey(Recipe, on_delete=models.PROTECT, related_name='productions')
    planned_qty = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    actual_qty = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PLANNED, db_index=True)
    planned_date = models.DateTimeField(db_index=True)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='productions_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.batch_number} - {self.recipe.name}"

    @property
    def efficiency(self):
        """Actual output as a rounded percentage of the planned quantity"""
        if self.actual_qty is None:
            return 0
        return round_percent(self.actual_qty, self.planned_qty)

    def can_transition_to(self, status):
        return status in self.TRANSITIONS.get(self.status, set())

    class Meta:
        db_table = 'productions'
        ordering = ['-created_at', '-id']


class ProductionItem(models.Model):
    """Ingredient requirement of a batch"""
    production = models.ForeignKey(Production, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='production_items')
    planned_qty = models.PositiveIntegerField()
    actual_qty = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.production.batch_number}: {self.product.name} x {self.planned_qty}"

    class Meta:
        db_table = 'production_items'
        ordering = ['id']
