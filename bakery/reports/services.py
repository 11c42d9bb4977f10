"""
Report aggregates. Every figure is computed from stored records for a
trailing period; the results are cached per (report type, period) and the
cache is dropped on writes to the tracked models (see core.cache_signals).
"""
import logging
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone

from bakery.catalog.models import Product
from bakery.core.cache_utils import cached_query, REPORTS_CACHE_TTL, REPORTS_PREFIX
from bakery.core.utils import quantize_money
from bakery.inventory.models import InventoryMovement, InventoryRecord
from bakery.inventory.services import low_stock_products
from bakery.orders.models import Order, OrderItem, Delivery
from bakery.parties.models import Customer, Supplier
from bakery.pos.models import POSOrder, POSOrderItem
from bakery.production.models import Production
from bakery.purchasing.models import PurchaseOrder

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

PERIODS = {
    '1d': timedelta(days=1),
    '7d': timedelta(days=7),
    '30d': timedelta(days=30),
    '90d': timedelta(days=90),
    '1y': timedelta(days=365),
}
DEFAULT_PERIOD = '7d'

REVENUE_EXCLUDED_STATUSES = (Order.CANCELLED, Order.RETURNED)
EXPENSE_EXCLUDED_STATUSES = (PurchaseOrder.DRAFT, PurchaseOrder.CANCELLED)
OUTBOUND_MOVEMENTS = (InventoryMovement.REMOVE, InventoryMovement.SALE)

MONEY = DecimalField(max_digits=14, decimal_places=2)


def period_start(period):
    return timezone.now() - PERIODS[period]


def _money(value):
    return quantize_money(value or ZERO)


def _hours(durations):
    durations = [d for d in durations if d is not None and d >= timedelta(0)]
    if not durations:
        return 0
    total = sum(durations, timedelta(0))
    return round(total.total_seconds() / 3600 / len(durations), 2)


def _revenue_orders(start):
    return Order.objects.filter(order_date__gte=start).exclude(status__in=REVENUE_EXCLUDED_STATUSES)


def _completed_pos_orders(start):
    return POSOrder.objects.filter(created_at__gte=start, status=POSOrder.COMPLETED)


def _daily_sales(start):
    """Per-day order and POS revenue, oldest first, with empty days filled in"""
    days = defaultdict(lambda: {'revenue': ZERO, 'orders': 0})
    for row in (_revenue_orders(start)
                .annotate(day=TruncDate('order_date'))
                .values('day')
                .annotate(revenue=Sum('total_amount'), orders=Count('id'))):
        days[row['day']]['revenue'] += row['revenue'] or ZERO
        days[row['day']]['orders'] += row['orders']
    for row in (_completed_pos_orders(start)
                .annotate(day=TruncDate('created_at'))
                .values('day')
                .annotate(revenue=Sum('total_amount'), orders=Count('id'))):
        days[row['day']]['revenue'] += row['revenue'] or ZERO
        days[row['day']]['orders'] += row['orders']

    trend = []
    day = timezone.localdate(start)
    today = timezone.localdate()
    while day <= today:
        entry = days.get(day, {'revenue': ZERO, 'orders': 0})
        trend.append({'date': day.isoformat(), 'revenue': _money(entry['revenue']), 'orders': entry['orders']})
        day += timedelta(days=1)
    return trend


def _top_products(start, limit=5):
    """Best sellers by revenue across orders and completed POS sales"""
    totals = {}
    order_rows = (OrderItem.objects
                  .filter(order__in=_revenue_orders(start))
                  .values('product_id', 'product__name')
                  .annotate(quantity=Sum('quantity'), revenue=Sum('total_price')))
    pos_rows = (POSOrderItem.objects
                .filter(order__in=_completed_pos_orders(start))
                .values('product_id', 'product__name')
                .annotate(quantity=Sum('quantity'), revenue=Sum('total_price')))
    for row in list(order_rows) + list(pos_rows):
        entry = totals.setdefault(row['product_id'], {
            'product_id': row['product_id'], 'name': row['product__name'], 'sales': 0, 'revenue': ZERO,
        })
        entry['sales'] += row['quantity'] or 0
        entry['revenue'] += row['revenue'] or ZERO

    ranked = sorted(totals.values(), key=lambda entry: (-entry['revenue'], entry['name']))[:limit]
    for entry in ranked:
        entry['revenue'] = _money(entry['revenue'])
    return ranked


def _sales_revenue(start):
    order_revenue = _money(_revenue_orders(start).aggregate(total=Sum('total_amount'))['total'])
    pos_revenue = _money(_completed_pos_orders(start).aggregate(total=Sum('total_amount'))['total'])
    return order_revenue, pos_revenue


def overview_report(period):
    start = period_start(period)
    order_revenue, pos_revenue = _sales_revenue(start)
    return {
        'total_revenue': order_revenue + pos_revenue,
        'total_orders': Order.objects.filter(order_date__gte=start).count(),
        'total_pos_orders': _completed_pos_orders(start).count(),
        'total_products': Product.objects.count(),
        'total_customers': Customer.objects.count(),
        'low_stock_items': low_stock_products().count(),
        'pending_orders': Order.objects.filter(status__in=[Order.PENDING, Order.CONFIRMED]).count(),
        'completed_deliveries': Delivery.objects.filter(status=Delivery.DELIVERED, created_at__gte=start).count(),
        'active_suppliers': Supplier.objects.filter(is_active=True).count(),
        'sales_trend': _daily_sales(start),
        'top_products': _top_products(start),
    }


def sales_report(period):
    start = period_start(period)
    orders = Order.objects.filter(order_date__gte=start)
    revenue_orders = _revenue_orders(start)
    order_revenue, pos_revenue = _sales_revenue(start)
    revenue_count = revenue_orders.count()
    return {
        'total_revenue': order_revenue + pos_revenue,
        'order_revenue': order_revenue,
        'pos_revenue': pos_revenue,
        'total_orders': orders.count(),
        'average_order_value': _money(order_revenue / revenue_count) if revenue_count else ZERO,
        'order_status_breakdown': [
            {'status': row['status'], 'count': row['count']}
            for row in orders.values('status').annotate(count=Count('id')).order_by('status')
        ],
        'payment_status_breakdown': [
            {'payment_status': row['payment_status'], 'count': row['count']}
            for row in orders.values('payment_status').annotate(count=Count('id')).order_by('payment_status')
        ],
        'revenue_by_period': _daily_sales(start),
        'top_products': _top_products(start, limit=10),
    }


def inventory_report(period):
    start = period_start(period)
    records = InventoryRecord.objects.all()
    value = ExpressionWrapper(F('quantity') * F('product__cost_price'), output_field=MONEY)
    totals = records.aggregate(
        quantity=Coalesce(Sum('quantity'), 0),
        reserved=Coalesce(Sum('reserved_qty'), 0),
        value=Sum(value),
    )
    category_breakdown = [
        {
            'category': row['product__category'],
            'count': row['count'],
            'quantity': row['quantity'],
            'value': _money(row['value']),
        }
        for row in (records.values('product__category')
                    .annotate(count=Count('id'), quantity=Sum('quantity'), value=Sum(value))
                    .order_by('product__category'))
    ]
    top_moving_items = [
        {
            'product_id': row['inventory__product_id'],
            'name': row['inventory__product__name'],
            'quantity': row['quantity'],
            'value': _money(row['value']),
        }
        for row in (InventoryMovement.objects
                    .filter(timestamp__gte=start, movement_type__in=OUTBOUND_MOVEMENTS)
                    .values('inventory__product_id', 'inventory__product__name')
                    .annotate(
                        quantity=Sum('quantity'),
                        value=Sum(ExpressionWrapper(F('quantity') * F('inventory__product__selling_price'),
                                                    output_field=MONEY)),
                    )
                    .order_by('-quantity', 'inventory__product__name')[:10])
    ]
    return {
        'total_items': records.count(),
        'total_quantity': totals['quantity'],
        'reserved_quantity': totals['reserved'],
        'low_stock_items': low_stock_products().count(),
        'out_of_stock_items': records.filter(quantity=0).count(),
        'total_value': _money(totals['value']),
        'category_breakdown': category_breakdown,
        'top_moving_items': top_moving_items,
    }


def customer_report(period):
    start = period_start(period)
    in_period = Q(orders__order_date__gte=start) & ~Q(orders__status__in=REVENUE_EXCLUDED_STATUSES)
    customers = Customer.objects.annotate(
        period_orders=Count('orders', filter=in_period),
        period_revenue=Sum('orders__total_amount', filter=in_period),
    )
    segments = defaultdict(lambda: {'count': 0, 'revenue': ZERO})
    for row in customers.values('customer_type', 'period_revenue'):
        segment = segments[row['customer_type']]
        segment['count'] += 1
        segment['revenue'] += row['period_revenue'] or ZERO

    top_customers = [
        {
            'customer_id': customer.id,
            'name': customer.full_name,
            'orders': customer.period_orders,
            'revenue': _money(customer.period_revenue),
        }
        for customer in customers.filter(period_orders__gt=0).order_by('-period_revenue', 'id')[:10]
    ]
    return {
        'total_customers': Customer.objects.count(),
        'new_customers': Customer.objects.filter(created_at__gte=start).count(),
        'active_customers': customers.filter(period_orders__gt=0).count(),
        'customer_segments': [
            {'segment': name, 'count': data['count'], 'revenue': _money(data['revenue'])}
            for name, data in sorted(segments.items())
        ],
        'top_customers': top_customers,
    }


def production_report(period):
    start = period_start(period)
    batches = Production.objects.filter(created_at__gte=start).select_related('recipe')
    completed = batches.filter(status=Production.COMPLETED)

    durations = [end - begin for begin, end in completed.values_list('start_date', 'end_date')
                 if begin and end]
    efficiencies = [batch.efficiency for batch in completed]

    recipe_performance = [
        {
            'recipe_id': row['recipe_id'],
            'recipe': row['recipe__name'],
            'batches': row['batches'],
            'completed': row['completed'],
            'success_rate': round(row['completed'] / row['batches'] * 100, 2) if row['batches'] else 0,
        }
        for row in (batches.values('recipe_id', 'recipe__name')
                    .annotate(batches=Count('id'), completed=Count('id', filter=Q(status=Production.COMPLETED)))
                    .order_by('-batches', 'recipe__name'))
    ]
    production_trend = [
        {'date': row['day'].isoformat(), 'batches': row['batches'], 'quantity': row['quantity'] or 0}
        for row in (batches.annotate(day=TruncDate('created_at'))
                    .values('day')
                    .annotate(batches=Count('id'), quantity=Sum('actual_qty'))
                    .order_by('day'))
    ]
    return {
        'total_batches': batches.count(),
        'completed_batches': completed.count(),
        'cancelled_batches': batches.filter(status=Production.CANCELLED).count(),
        'average_production_hours': _hours(durations),
        'average_efficiency': round(sum(efficiencies) / len(efficiencies), 2) if efficiencies else 0,
        'recipe_performance': recipe_performance,
        'production_trend': production_trend,
    }


def delivery_report(period):
    start = period_start(period)
    deliveries = Delivery.objects.filter(created_at__gte=start)
    delivered = deliveries.filter(status=Delivery.DELIVERED, actual_date__isnull=False)
    durations = [actual - created for created, actual in delivered.values_list('created_at', 'actual_date')]

    areas = defaultdict(int)
    for zip_code, city in deliveries.values_list('zip_code', 'city'):
        areas[city or zip_code or 'UNKNOWN'] += 1
    top_areas = sorted(areas.items(), key=lambda item: (-item[1], item[0]))[:10]

    return {
        'total_deliveries': deliveries.count(),
        'completed_deliveries': deliveries.filter(status=Delivery.DELIVERED).count(),
        'failed_deliveries': deliveries.filter(status=Delivery.FAILED).count(),
        'average_delivery_hours': _hours(durations),
        'delivery_status_breakdown': [
            {'status': row['status'], 'count': row['count']}
            for row in deliveries.values('status').annotate(count=Count('id')).order_by('status')
        ],
        'top_delivery_areas': [{'area': area, 'deliveries': count} for area, count in top_areas],
    }


def financial_report(period):
    start = period_start(period)
    order_revenue, pos_revenue = _sales_revenue(start)
    total_revenue = order_revenue + pos_revenue

    purchase_orders = (PurchaseOrder.objects
                       .filter(order_date__gte=timezone.localdate(start))
                       .exclude(status__in=EXPENSE_EXCLUDED_STATUSES))
    total_expenses = _money(purchase_orders.aggregate(total=Sum('total_amount'))['total'])
    net_profit = total_revenue - total_expenses

    by_category = defaultdict(lambda: ZERO)
    for row in (OrderItem.objects.filter(order__in=_revenue_orders(start))
                .values('product__category').annotate(revenue=Sum('total_price'))):
        by_category[row['product__category']] += row['revenue'] or ZERO
    for row in (POSOrderItem.objects.filter(order__in=_completed_pos_orders(start))
                .values('product__category').annotate(revenue=Sum('total_price'))):
        by_category[row['product__category']] += row['revenue'] or ZERO

    return {
        'total_revenue': total_revenue,
        'order_revenue': order_revenue,
        'pos_revenue': pos_revenue,
        'total_expenses': total_expenses,
        'net_profit': net_profit,
        'profit_margin': round(net_profit / total_revenue * 100, 2) if total_revenue else 0,
        'revenue_by_category': [
            {'category': category, 'revenue': _money(revenue)}
            for category, revenue in sorted(by_category.items(), key=lambda item: (-item[1], item[0]))
        ],
        'expense_breakdown': [
            {'supplier_id': row['supplier_id'], 'supplier': row['supplier__name'], 'amount': _money(row['amount'])}
            for row in (purchase_orders.values('supplier_id', 'supplier__name')
                        .annotate(amount=Sum('total_amount'))
                        .order_by('-amount', 'supplier__name'))
        ],
    }


REPORT_BUILDERS = {
    'overview': overview_report,
    'sales': sales_report,
    'inventory': inventory_report,
    'customers': customer_report,
    'production': production_report,
    'delivery': delivery_report,
    'financial': financial_report,
}


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
def build_report(report_type, period):
    logger.info(f"Building {report_type} report for {period}")
    data = REPORT_BUILDERS[report_type](period)
    return {'type': report_type, 'period': period, **data}
