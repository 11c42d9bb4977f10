"""
Order and delivery operations.

Order totals are never accepted from the client: every write that touches
items recomputes subtotal, tax and total from the stored lines inside the
same transaction.
"""
import logging
from collections import OrderedDict
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from bakery.core.exceptions import InvalidTransition, NotFound, ValidationFailed
from bakery.core.utils import generate_sequence_number, quantize_money
from .models import Order, OrderItem, Delivery

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

DATE_RANGES = ('today', 'this_week', 'this_month', 'this_quarter')


def calculate_totals(lines, tax_rate):
    """
    Compute (subtotal, tax_amount, total_amount) for ``lines`` of
    ``(quantity, unit_price)`` at ``tax_rate`` percent.
    """
    subtotal = quantize_money(sum((Decimal(str(price)) * quantity for quantity, price in lines), ZERO))
    tax_amount = quantize_money(subtotal * Decimal(str(tax_rate)) / Decimal('100'))
    return subtotal, tax_amount, subtotal + tax_amount


def recalculate_order_totals(order):
    """Refresh the stored totals of ``order`` from its items"""
    lines = order.items.values_list('quantity', 'unit_price')
    order.subtotal, order.tax_amount, order.total_amount = calculate_totals(lines, order.tax_rate)
    order.save(update_fields=['subtotal', 'tax_amount', 'total_amount', 'updated_at'])
    return order


def date_range_start(name, now=None):
    """Start of the named reporting window in the current timezone"""
    now = timezone.localtime(now or timezone.now())
    today = now.date()
    if name == 'today':
        start = today
    elif name == 'this_week':
        start = today - timedelta(days=today.weekday())
    elif name == 'this_month':
        start = today.replace(day=1)
    elif name == 'this_quarter':
        start = today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
    else:
        raise ValidationFailed(f"Unknown date range '{name}'")
    return timezone.make_aware(datetime.combine(start, time.min))


def _locked_order(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFound('Order not found')


def _create_item(order, product, quantity, unit_price=None, notes=''):
    if quantity is None or quantity <= 0:
        raise ValidationFailed('Item quantity must be greater than zero')
    price = product.selling_price if unit_price is None else unit_price
    return OrderItem.objects.create(
        order=order,
        product=product,
        quantity=quantity,
        unit_price=price,
        total_price=quantize_money(Decimal(str(price)) * quantity),
        notes=notes or '',
    )


@transaction.atomic
def create_order(user, customer, items, tax_rate=None, notes='', delivery_date=None,
                 status=Order.PENDING, payment_status=Order.PAYMENT_PENDING):
    """Create an order with its items and computed totals in one transaction"""
    if not items:
        raise ValidationFailed('Order must contain at least one item')
    if not customer.is_active:
        raise ValidationFailed('Cannot create an order for an inactive customer')

    order = Order.objects.create(
        order_number=generate_sequence_number(Order, 'order_number', 'ORD'),
        customer=customer,
        status=status,
        payment_status=payment_status,
        tax_rate=Order.DEFAULT_TAX_RATE if tax_rate is None else tax_rate,
        delivery_date=delivery_date,
        notes=notes or '',
        created_by=user,
    )
    for item in items:
        _create_item(order, item['product'], item['quantity'], item.get('unit_price'), item.get('notes', ''))
    recalculate_order_totals(order)

    logger.info(
        f"Order {order.order_number} created for customer {customer.id}: "
        f"{len(items)} items, total {order.total_amount}"
    )
    return order


@transaction.atomic
def update_order(order_id, data):
    """
    Update order fields. When ``items`` is given the order's lines are
    replaced; totals are recomputed whenever items or the tax rate change.
    """
    order = _locked_order(order_id)
    items = data.pop('items', None)

    for field in ('customer', 'status', 'payment_status', 'tax_rate', 'delivery_date', 'notes'):
        if field in data:
            setattr(order, field, data[field])
    order.save()

    if items is not None:
        if not items:
            raise ValidationFailed('Order must contain at least one item')
        order.items.all().delete()
        for item in items:
            _create_item(order, item['product'], item['quantity'], item.get('unit_price'), item.get('notes', ''))

    if items is not None or 'tax_rate' in data:
        recalculate_order_totals(order)
    return order


@transaction.atomic
def set_order_status(order_id, status=None, payment_status=None):
    order = _locked_order(order_id)
    if status is None and payment_status is None:
        raise ValidationFailed('Provide status or payment_status')
    old = (order.status, order.payment_status)
    if status is not None:
        order.status = status
    if payment_status is not None:
        order.payment_status = payment_status
    order.save(update_fields=['status', 'payment_status', 'updated_at'])
    logger.info(f"Order {order.order_number} status {old[0]}/{old[1]} -> {order.status}/{order.payment_status}")
    return order


@transaction.atomic
def cancel_order(order_id):
    order = _locked_order(order_id)
    if order.status in (Order.DELIVERED, Order.CANCELLED):
        raise InvalidTransition(f'Cannot cancel an order that is {order.status}')
    order.status = Order.CANCELLED
    order.payment_status = Order.PAYMENT_REFUNDED
    order.save(update_fields=['status', 'payment_status', 'updated_at'])
    logger.info(f"Order {order.order_number} cancelled")
    return order


@transaction.atomic
def add_order_item(order_id, product, quantity, unit_price=None, notes=''):
    order = _locked_order(order_id)
    item = _create_item(order, product, quantity, unit_price, notes)
    recalculate_order_totals(order)
    return order, item


@transaction.atomic
def update_order_item(order_id, item_id, quantity=None, unit_price=None, notes=None):
    order = _locked_order(order_id)
    try:
        item = order.items.get(pk=item_id)
    except OrderItem.DoesNotExist:
        raise NotFound('Order item not found')

    if quantity is not None:
        if quantity <= 0:
            raise ValidationFailed('Item quantity must be greater than zero')
        item.quantity = quantity
    if unit_price is not None:
        item.unit_price = unit_price
    if notes is not None:
        item.notes = notes
    item.total_price = quantize_money(Decimal(str(item.unit_price)) * item.quantity)
    item.save()
    recalculate_order_totals(order)
    return order, item


@transaction.atomic
def delete_order_item(order_id, item_id):
    order = _locked_order(order_id)
    deleted, _ = order.items.filter(pk=item_id).delete()
    if not deleted:
        raise NotFound('Order item not found')
    recalculate_order_totals(order)
    return order


def _grouped(queryset, field):
    rows = queryset.values(field).annotate(count=Count('id'), revenue=Sum('total_amount')).order_by(field)
    return {
        row[field]: {'count': row['count'], 'revenue': quantize_money(row['revenue'])}
        for row in rows
    }


def order_summary():
    """Order counts and revenue by status, payment status and customer type"""
    orders = Order.objects.all()
    totals = orders.exclude(status__in=[Order.CANCELLED, Order.RETURNED]).aggregate(
        revenue=Sum('total_amount'), count=Count('id')
    )
    count = orders.count()
    revenue = quantize_money(totals['revenue'])
    return {
        'total_orders': count,
        'total_revenue': revenue,
        'average_order_value': quantize_money(revenue / totals['count']) if totals['count'] else ZERO,
        'by_status': _grouped(orders, 'status'),
        'by_payment_status': _grouped(orders, 'payment_status'),
        'by_customer_type': _grouped(orders, 'customer__customer_type'),
    }


# Deliveries

def _default_address(customer):
    address = (customer.addresses
               .filter(address_type='SHIPPING')
               .order_by('-is_default', 'id')
               .first())
    if address is not None:
        return {
            'delivery_address': address.address,
            'city': address.city,
            'state': address.state,
            'zip_code': address.zip_code,
            'phone': address.contact_phone or customer.phone,
        }
    return {
        'delivery_address': customer.address,
        'city': customer.city,
        'state': customer.state,
        'zip_code': customer.zip_code,
        'phone': customer.phone,
    }


@transaction.atomic
def create_delivery(order, scheduled_date, **fields):
    """Schedule a delivery; missing address fields are taken from the customer"""
    if order.status == Order.CANCELLED:
        raise ValidationFailed('Cannot schedule a delivery for a cancelled order')
    customer = fields.pop('customer', None) or order.customer
    defaults = _default_address(customer)
    for key, value in defaults.items():
        if not fields.get(key):
            fields[key] = value
    if not fields.get('delivery_address'):
        raise ValidationFailed('Delivery address is required')

    delivery = Delivery.objects.create(
        delivery_number=generate_sequence_number(Delivery, 'delivery_number', 'DEL'),
        order=order,
        customer=customer,
        scheduled_date=scheduled_date,
        **fields,
    )
    logger.info(f"Delivery {delivery.delivery_number} scheduled for order {order.order_number}")
    return delivery


@transaction.atomic
def set_delivery_status(delivery_id, status, notes=None):
    try:
        delivery = Delivery.objects.select_for_update().get(pk=delivery_id)
    except Delivery.DoesNotExist:
        raise NotFound('Delivery not found')
    delivery.status = status
    if status == Delivery.DELIVERED:
        delivery.actual_date = timezone.now()
    if notes:
        delivery.notes = notes
    delivery.save()
    logger.info(f"Delivery {delivery.delivery_number} -> {status}")
    return delivery


@transaction.atomic
def assign_driver(delivery_id, driver_name, vehicle_number=''):
    try:
        delivery = Delivery.objects.select_for_update().get(pk=delivery_id)
    except Delivery.DoesNotExist:
        raise NotFound('Delivery not found')
    if delivery.status in (Delivery.DELIVERED, Delivery.RETURNED):
        raise InvalidTransition(f'Cannot assign a driver to a delivery that is {delivery.status}')
    delivery.driver_name = driver_name
    delivery.vehicle_number = vehicle_number or delivery.vehicle_number
    delivery.status = Delivery.IN_TRANSIT
    delivery.save()
    return delivery


def delivery_routes(day):
    """Open deliveries of ``day`` grouped by zip code (or city), each group in time order"""
    start = timezone.make_aware(datetime.combine(day, time.min))
    deliveries = (Delivery.objects
                  .select_related('customer', 'order')
                  .filter(scheduled_date__gte=start, scheduled_date__lt=start + timedelta(days=1),
                          status__in=[Delivery.SCHEDULED, Delivery.IN_TRANSIT])
                  .order_by('scheduled_date', 'id'))

    routes = OrderedDict()
    for delivery in deliveries:
        area = delivery.zip_code or delivery.city or 'UNKNOWN'
        routes.setdefault(area, []).append(delivery)
    return routes


def delivery_summary():
    """Delivery counts by status and by driver with a success rate"""
    deliveries = Delivery.objects.all()
    by_status = {row['status']: row['count'] for row in
                 deliveries.values('status').annotate(count=Count('id')).order_by('status')}
    by_driver = {
        row['driver_name']: {'total': row['total'], 'delivered': row['delivered']}
        for row in (deliveries.exclude(driver_name='')
                    .values('driver_name')
                    .annotate(total=Count('id'), delivered=Count('id', filter=Q(status=Delivery.DELIVERED)))
                    .order_by('driver_name'))
    }
    finished = by_status.get(Delivery.DELIVERED, 0) + by_status.get(Delivery.FAILED, 0) + by_status.get(Delivery.RETURNED, 0)
    return {
        'total_deliveries': deliveries.count(),
        'by_status': by_status,
        'by_driver': by_driver,
        'success_rate': round(by_status.get(Delivery.DELIVERED, 0) / finished * 100, 2) if finished else 0,
    }
