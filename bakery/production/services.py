"""
Production planning: batches, ingredient expansion, status workflow and the
planning reports built on top of them.
"""
import logging
import math
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from bakery.core.exceptions import InvalidTransition, NotFound, ValidationFailed
from bakery.core.utils import generate_sequence_number, round_percent
from bakery.inventory.models import InventoryRecord
from .models import Recipe, RecipeItem, Production, ProductionItem

logger = logging.getLogger(__name__)

SCHEDULE_DAYS = 7


def ingredient_requirement(recipe_item, planned_qty, servings):
    """Whole units of an ingredient needed for ``planned_qty`` units of a recipe"""
    servings = servings or 1
    return math.ceil(Decimal(recipe_item.quantity) * planned_qty / servings)


@transaction.atomic
def save_recipe(serializer, items=None):
    """Save a recipe; when ``items`` is given its ingredient list is replaced"""
    recipe = serializer.save()
    if items is not None:
        recipe.items.all().delete()
        RecipeItem.objects.bulk_create([RecipeItem(recipe=recipe, **item) for item in items])
    return recipe


@transaction.atomic
def create_production(user, recipe, planned_qty, planned_date, notes='', items=None):
    """
    Plan a batch. Without explicit ``items`` the ingredient lines are
    expanded from the recipe, scaled from its servings to ``planned_qty``.
    """
    if not recipe.is_active:
        raise ValidationFailed('Cannot plan a batch of an inactive recipe')
    if planned_qty <= 0:
        raise ValidationFailed('Planned quantity must be greater than zero')

    production = Production.objects.create(
        batch_number=generate_sequence_number(Production, 'batch_number', 'BATCH'),
        recipe=recipe,
        planned_qty=planned_qty,
        planned_date=planned_date,
        notes=notes or '',
        created_by=user,
    )

    if items:
        lines = [ProductionItem(production=production, product=item['product'], planned_qty=item['planned_qty'])
                 for item in items]
    else:
        lines = [
            ProductionItem(
                production=production,
                product=recipe_item.product,
                planned_qty=ingredient_requirement(recipe_item, planned_qty, recipe.servings),
            )
            for recipe_item in recipe.items.select_related('product')
        ]
    ProductionItem.objects.bulk_create(lines)

    logger.info(f"Production {production.batch_number} planned: {planned_qty} x {recipe.name}, {len(lines)} ingredients")
    return production


@transaction.atomic
def change_production_status(production_id, status, actual_qty=None, notes=None):
    """
    Move a batch along its workflow. IN_PROGRESS stamps the start date and
    COMPLETED the end date.
    """
    try:
        production = Production.objects.select_for_update().get(pk=production_id)
    except Production.DoesNotExist:
        raise NotFound('Production not found')

    if not production.can_transition_to(status):
        raise InvalidTransition(f'Cannot change production status from {production.status} to {status}')

    now = timezone.now()
    old_status = production.status
    production.status = status
    if status == Production.IN_PROGRESS and production.start_date is None:
        production.start_date = now
    if status == Production.COMPLETED:
        production.end_date = now
        if actual_qty is not None:
            production.actual_qty = actual_qty
    if notes:
        production.notes = notes
    production.save()

    logger.info(f"Production {production.batch_number} {old_status} -> {status}")
    return production


def production_schedule(days=SCHEDULE_DAYS):
    """Open batches planned from today for ``days`` days, keyed by date"""
    start = timezone.make_aware(datetime.combine(timezone.localdate(), time.min))
    productions = (Production.objects
                   .select_related('recipe')
                   .filter(planned_date__gte=start, planned_date__lt=start + timedelta(days=days),
                           status__in=[Production.PLANNED, Production.IN_PROGRESS, Production.ON_HOLD])
                   .order_by('planned_date', 'id'))

    schedule = {}
    for offset in range(days):
        schedule[(start + timedelta(days=offset)).date().isoformat()] = []
    for production in productions:
        day = timezone.localtime(production.planned_date).date().isoformat()
        schedule.setdefault(day, []).append(production)
    return schedule


def ingredient_alerts():
    """
    Ingredient shortages of PLANNED batches: total requirement per product
    compared with available stock across warehouses.
    """
    requirements = (ProductionItem.objects
                    .filter(production__status=Production.PLANNED)
                    .values('product_id', 'product__name', 'product__sku')
                    .annotate(required=Sum('planned_qty'))
                    .order_by('product__name'))

    alerts = []
    for row in requirements:
        stock = (InventoryRecord.objects
                 .filter(product_id=row['product_id'])
                 .aggregate(quantity=Sum('quantity'), reserved=Sum('reserved_qty')))
        available = (stock['quantity'] or 0) - (stock['reserved'] or 0)
        if available < row['required']:
            batches = list(Production.objects
                           .filter(status=Production.PLANNED, items__product_id=row['product_id'])
                           .values_list('batch_number', flat=True)
                           .distinct())
            alerts.append({
                'product_id': row['product_id'],
                'product_name': row['product__name'],
                'sku': row['product__sku'],
                'required': row['required'],
                'available': available,
                'shortage': row['required'] - available,
                'batches': sorted(batches),
            })
    return alerts


def efficiency_report(days=30):
    """Efficiency of batches completed in the last ``days`` days, overall and per recipe"""
    since = timezone.now() - timedelta(days=days)
    completed = list(Production.objects
                     .select_related('recipe')
                     .filter(status=Production.COMPLETED, end_date__gte=since)
                     .order_by('end_date'))

    by_recipe = {}
    for production in completed:
        entry = by_recipe.setdefault(production.recipe_id, {
            'recipe_id': production.recipe_id,
            'recipe_name': production.recipe.name,
            'batches': 0,
            'planned_qty': 0,
            'actual_qty': 0,
        })
        entry['batches'] += 1
        entry['planned_qty'] += production.planned_qty
        entry['actual_qty'] += production.actual_qty or 0

    for entry in by_recipe.values():
        entry['efficiency'] = round_percent(entry['actual_qty'], entry['planned_qty'])

    planned = sum(p.planned_qty for p in completed)
    actual = sum(p.actual_qty or 0 for p in completed)
    return {
        'days': days,
        'completed_batches': len(completed),
        'total_planned': planned,
        'total_actual': actual,
        'overall_efficiency': round_percent(actual, planned),
        'average_batch_efficiency': round_percent(sum(p.efficiency for p in completed), len(completed) * 100),
        'by_recipe': sorted(by_recipe.values(), key=lambda entry: entry['recipe_name']),
    }
