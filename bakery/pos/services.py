"""
Point-of-sale operations: checkout, payments, receipts, cashier sessions,
offline sync and the daily till report.
"""
import logging
import random
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from bakery.core.exceptions import NotFound, ValidationFailed
from bakery.core.utils import quantize_money
from bakery.inventory.services import consume_stock
from .models import POSSession, POSOrder, POSOrderItem, POSPayment, POSReceipt

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
DUPLICATE_WINDOW_MINUTES = 5


def _timestamped_number(model, field_name, prefix):
    """``{prefix}-{YYYYMMDDHHMMSS}-{nnn}``, retried until unused"""
    while True:
        number = f"{prefix}-{timezone.localtime().strftime('%Y%m%d%H%M%S')}-{random.randint(0, 999):03d}"
        if not model.objects.filter(**{field_name: number}).exists():
            return number


def calculate_pos_totals(items):
    """
    (subtotal, tax_amount, total_amount) for cart ``items``. Line and order
    discounts are recorded on the order but do not reduce the totals.
    """
    subtotal = quantize_money(sum(
        (Decimal(str(item['unit_price'])) * item['quantity'] for item in items), ZERO
    ))
    tax_amount = quantize_money(subtotal * POSOrder.TAX_RATE / Decimal('100'))
    return subtotal, tax_amount, subtotal + tax_amount


def active_session(cashier):
    return POSSession.objects.filter(cashier=cashier, is_active=True).first()


@transaction.atomic
def _create_order(cashier, items, payments, customer=None, discount_amount=ZERO, notes='', is_offline=False):
    if not items:
        raise ValidationFailed('Cart is empty')

    subtotal, tax_amount, total_amount = calculate_pos_totals(items)
    paid_amount = quantize_money(sum((Decimal(str(p['amount'])) for p in payments), ZERO))
    if paid_amount < total_amount:
        raise ValidationFailed(
            f'Insufficient payment: total is {total_amount}, paid {paid_amount}'
        )

    order = POSOrder.objects.create(
        order_number=_timestamped_number(POSOrder, 'order_number', 'POS'),
        cashier=cashier,
        session=active_session(cashier),
        customer=customer,
        status=POSOrder.COMPLETED,
        subtotal=subtotal,
        discount_amount=discount_amount or ZERO,
        tax_amount=tax_amount,
        total_amount=total_amount,
        paid_amount=paid_amount,
        change_amount=paid_amount - total_amount,
        notes=notes or '',
        is_offline=is_offline,
    )
    POSOrderItem.objects.bulk_create([
        POSOrderItem(
            order=order,
            product=item['product'],
            quantity=item['quantity'],
            unit_price=item['unit_price'],
            discount=item.get('discount') or ZERO,
            total_price=quantize_money(Decimal(str(item['unit_price'])) * item['quantity']),
            notes=item.get('notes', ''),
        )
        for item in items
    ])
    now = timezone.now()
    POSPayment.objects.bulk_create([
        POSPayment(
            order=order,
            method=payment['method'],
            amount=payment['amount'],
            reference=payment.get('reference', ''),
            notes=payment.get('notes', ''),
            processed_at=now,
        )
        for payment in payments
    ])
    return order


def checkout(cashier, items, payments, **options):
    """
    Create a completed till sale with its items and payments in one
    transaction, then try to print a receipt. The sale is rejected when the
    payments do not cover the total.
    """
    order = _create_order(cashier, items, payments, **options)
    logger.info(
        f"POS order {order.order_number} by {cashier.email}: total {order.total_amount}, "
        f"paid {order.paid_amount}, change {order.change_amount}"
    )
    try:
        with transaction.atomic():
            generate_receipt(order, POSReceipt.PRINT)
    except Exception as exc:
        logger.warning(f"Receipt for POS order {order.order_number} could not be generated: {exc}")
    return order


@transaction.atomic
def add_payment(order_id, method, amount, reference='', notes=''):
    """Record a payment and refresh paid/change amounts and the order status"""
    try:
        order = POSOrder.objects.select_for_update().get(pk=order_id)
    except POSOrder.DoesNotExist:
        raise NotFound('POS order not found')
    if order.status in (POSOrder.CANCELLED, POSOrder.REFUNDED):
        raise ValidationFailed(f'Cannot add a payment to an order that is {order.status}')

    payment = POSPayment.objects.create(
        order=order, method=method, amount=amount, reference=reference or '', notes=notes or '',
        processed_at=timezone.now(),
    )
    order.paid_amount = quantize_money(order.payments.aggregate(total=Sum('amount'))['total'])
    order.change_amount = max(order.paid_amount - order.total_amount, ZERO)
    order.status = POSOrder.COMPLETED if order.paid_amount >= order.total_amount else POSOrder.IN_PROGRESS
    order.save(update_fields=['paid_amount', 'change_amount', 'status', 'updated_at'])
    return order, payment


def render_receipt(order):
    lines = [
        'Bakery Receipt',
        f'Order: {order.order_number}',
        f"Date: {timezone.localtime(order.created_at).strftime('%Y-%m-%d %H:%M')}",
        f'Cashier: {order.cashier.email}',
    ]
    if order.customer_id:
        lines.append(f'Customer: {order.customer.full_name}')
    lines.append('-' * 32)
    for item in order.items.select_related('product'):
        lines.append(f'{item.product.name} x{item.quantity} @ {item.unit_price} = {item.total_price}')
    lines.append('-' * 32)
    lines.extend([
        f'Subtotal: {order.subtotal}',
        f'Tax ({order.TAX_RATE}%): {order.tax_amount}',
        f'Total: {order.total_amount}',
    ])
    for payment in order.payments.all():
        lines.append(f'Paid ({payment.method}): {payment.amount}')
    lines.extend([f'Change: {order.change_amount}', '', 'Thank you for your purchase!'])
    return '\n'.join(lines)


def generate_receipt(order, receipt_type=POSReceipt.PRINT):
    return POSReceipt.objects.create(
        order=order,
        receipt_number=_timestamped_number(POSReceipt, 'receipt_number', 'RCP'),
        type=receipt_type,
        content=render_receipt(order),
    )


# Sessions

@transaction.atomic
def start_session(cashier, starting_cash=ZERO, notes=''):
    """Open a session, closing any session the cashier left active"""
    closed = (POSSession.objects
              .select_for_update()
              .filter(cashier=cashier, is_active=True)
              .update(is_active=False, end_time=timezone.now()))
    if closed:
        logger.info(f"Closed {closed} stale POS session(s) for {cashier.email}")
    return POSSession.objects.create(cashier=cashier, starting_cash=starting_cash, notes=notes or '')


@transaction.atomic
def end_session(session_id, cashier, ending_cash, notes=None):
    """Close a session and total its completed sales"""
    try:
        session = POSSession.objects.select_for_update().get(pk=session_id, cashier=cashier)
    except POSSession.DoesNotExist:
        raise NotFound('POS session not found')
    if not session.is_active:
        raise ValidationFailed('POS session is already closed')

    totals = session.orders.filter(status=POSOrder.COMPLETED).aggregate(sales=Sum('total_amount'), count=Count('id'))
    session.total_sales = quantize_money(totals['sales'])
    session.total_transactions = totals['count']
    session.ending_cash = ending_cash
    session.is_active = False
    session.end_time = timezone.now()
    if notes:
        session.notes = notes
    session.save()
    logger.info(f"POS session {session.id} closed: {session.total_transactions} sales, {session.total_sales}")
    return session


# Utilities

def sync_offline_orders(user):
    """
    Take stock for unsynced offline orders, earliest expiry first. Each order
    syncs in its own transaction; failures are reported and left unsynced.
    """
    pending = (POSOrder.objects
               .filter(is_offline=True, synced_at__isnull=True)
               .prefetch_related('items__product')
               .order_by('created_at', 'id'))
    synced, errors = 0, []
    for order in pending:
        try:
            with transaction.atomic():
                for item in order.items.all():
                    consume_stock(item.product, item.quantity, user, reference=order.order_number,
                                  notes='Offline POS sale')
                order.synced_at = timezone.now()
                order.save(update_fields=['synced_at', 'updated_at'])
        except ValidationFailed as exc:
            errors.append(f'Failed to sync order {order.order_number}: {exc.detail}')
        else:
            synced += 1
    if errors:
        logger.warning(f"Offline sync: {synced} synced, {len(errors)} failed")
    return {'synced': synced, 'errors': errors}


def recent_orders(customer_id=None, window_minutes=DUPLICATE_WINDOW_MINUTES):
    """Orders placed within the last ``window_minutes``, optionally for one customer"""
    since = timezone.now() - timedelta(minutes=window_minutes)
    orders = (POSOrder.objects
              .select_related('customer', 'cashier')
              .prefetch_related('items__product')
              .filter(created_at__gte=since)
              .order_by('-created_at', '-id'))
    if customer_id is not None:
        orders = orders.filter(customer_id=customer_id)
    return orders


def daily_report(day):
    """Completed till sales of one day"""
    start = timezone.make_aware(datetime.combine(day, time.min))
    orders = (POSOrder.objects
              .filter(status=POSOrder.COMPLETED, created_at__gte=start, created_at__lt=start + timedelta(days=1)))

    totals = orders.aggregate(sales=Sum('total_amount'), count=Count('id'))
    payments = POSPayment.objects.filter(order__in=orders)
    breakdown = {
        row['method']: quantize_money(row['amount'])
        for row in payments.values('method').annotate(amount=Sum('amount')).order_by('method')
    }
    top_products = [
        {
            'product_id': row['product_id'],
            'product_name': row['product__name'],
            'sku': row['product__sku'],
            'quantity': row['quantity'],
            'revenue': quantize_money(row['revenue']),
        }
        for row in (POSOrderItem.objects
                    .filter(order__in=orders)
                    .values('product_id', 'product__name', 'product__sku')
                    .annotate(quantity=Sum('quantity'), revenue=Sum('total_price'))
                    .order_by('-revenue', 'product__name')[:10])
    ]
    return {
        'date': day.isoformat(),
        'total_sales': quantize_money(totals['sales']),
        'total_orders': totals['count'],
        'total_transactions': payments.count(),
        'payment_method_breakdown': breakdown,
        'top_products': top_products,
    }
