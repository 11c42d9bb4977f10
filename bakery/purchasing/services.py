"""
Purchase order operations. The order total is recomputed from the items on
every item change; receiving books stock through the inventory services.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from bakery.core.exceptions import InvalidTransition, NotFound, ValidationFailed
from bakery.core.utils import generate_sequence_number, quantize_money
from bakery.inventory.services import receive_stock
from .models import PurchaseOrder, PurchaseOrderItem

logger = logging.getLogger(__name__)


def recalculate_po_total(purchase_order):
    purchase_order.total_amount = quantize_money(sum(
        (item.total_price for item in purchase_order.items.all()), Decimal('0.00')
    ))
    purchase_order.save(update_fields=['total_amount', 'updated_at'])
    return purchase_order


def _locked_po(po_id):
    try:
        return PurchaseOrder.objects.select_for_update().get(pk=po_id)
    except PurchaseOrder.DoesNotExist:
        raise NotFound('Purchase order not found')


def _require_editable(purchase_order):
    if purchase_order.status not in PurchaseOrder.EDITABLE_STATUSES:
        raise ValidationFailed(f'Items cannot be changed while the purchase order is {purchase_order.status}')


def _create_item(purchase_order, product, quantity, unit_price):
    return PurchaseOrderItem.objects.create(
        purchase_order=purchase_order,
        product=product,
        quantity=quantity,
        unit_price=unit_price,
        total_price=quantize_money(unit_price * quantity),
    )


@transaction.atomic
def create_purchase_order(user, supplier, items=(), **fields):
    if not supplier.is_active:
        raise ValidationFailed('Cannot order from an inactive supplier')
    purchase_order = PurchaseOrder.objects.create(
        po_number=generate_sequence_number(PurchaseOrder, 'po_number', 'PO'),
        supplier=supplier,
        created_by=user,
        **fields,
    )
    for item in items:
        _create_item(purchase_order, item['product'], item['quantity'], item['unit_price'])
    recalculate_po_total(purchase_order)
    logger.info(f"Purchase order {purchase_order.po_number} created for {supplier.name}: total {purchase_order.total_amount}")
    return purchase_order


@transaction.atomic
def set_po_status(po_id, status):
    purchase_order = _locked_po(po_id)
    if purchase_order.status in PurchaseOrder.TERMINAL_STATUSES:
        raise InvalidTransition(f'Purchase order is {purchase_order.status} and cannot change status')
    if status == PurchaseOrder.RECEIVED and purchase_order.received_date is None:
        purchase_order.received_date = timezone.localdate()
    old_status = purchase_order.status
    purchase_order.status = status
    purchase_order.save(update_fields=['status', 'received_date', 'updated_at'])
    logger.info(f"Purchase order {purchase_order.po_number} {old_status} -> {status}")
    return purchase_order


@transaction.atomic
def add_po_item(po_id, product, quantity, unit_price):
    purchase_order = _locked_po(po_id)
    _require_editable(purchase_order)
    item = _create_item(purchase_order, product, quantity, unit_price)
    recalculate_po_total(purchase_order)
    return purchase_order, item


@transaction.atomic
def update_po_item(po_id, item_id, quantity=None, unit_price=None):
    purchase_order = _locked_po(po_id)
    _require_editable(purchase_order)
    try:
        item = purchase_order.items.get(pk=item_id)
    except PurchaseOrderItem.DoesNotExist:
        raise NotFound('Purchase order item not found')

    if quantity is not None:
        if quantity < item.received_qty:
            raise ValidationFailed(f'Quantity cannot be below the {item.received_qty} units already received')
        item.quantity = quantity
    if unit_price is not None:
        item.unit_price = unit_price
    item.total_price = quantize_money(item.unit_price * item.quantity)
    item.save()
    recalculate_po_total(purchase_order)
    return purchase_order, item


@transaction.atomic
def delete_po_item(po_id, item_id):
    purchase_order = _locked_po(po_id)
    _require_editable(purchase_order)
    try:
        item = purchase_order.items.get(pk=item_id)
    except PurchaseOrderItem.DoesNotExist:
        raise NotFound('Purchase order item not found')
    if item.received_qty:
        raise ValidationFailed('Cannot delete an item that has already been received')
    item.delete()
    recalculate_po_total(purchase_order)
    return purchase_order


@transaction.atomic
def receive_po_item(po_id, item_id, quantity, user):
    """
    Receive ``quantity`` units of one line into the purchase order's
    warehouse, then set the order PARTIALLY_RECEIVED or RECEIVED.
    """
    purchase_order = _locked_po(po_id)
    if purchase_order.status not in PurchaseOrder.RECEIVABLE_STATUSES:
        raise InvalidTransition(f'Cannot receive goods on a purchase order that is {purchase_order.status}')
    if purchase_order.warehouse_id is None:
        raise ValidationFailed('Purchase order has no receiving warehouse')

    try:
        item = (PurchaseOrderItem.objects
                .select_for_update()
                .select_related('product')
                .get(pk=item_id, purchase_order=purchase_order))
    except PurchaseOrderItem.DoesNotExist:
        raise NotFound('Purchase order item not found')

    if quantity is None:
        quantity = item.remaining_qty
    if quantity <= 0:
        raise ValidationFailed('Nothing left to receive on this item')
    if quantity > item.remaining_qty:
        raise ValidationFailed(
            f'Cannot receive {quantity} units: only {item.remaining_qty} outstanding'
        )

    item.received_qty += quantity
    item.save(update_fields=['received_qty'])
    receive_stock(item.product, purchase_order.warehouse, quantity, user,
                  reference=purchase_order.po_number, notes=f'PO item #{item.id}')

    fully_received = not purchase_order.items.filter(received_qty__lt=F('quantity')).exists()
    purchase_order.status = PurchaseOrder.RECEIVED if fully_received else PurchaseOrder.PARTIALLY_RECEIVED
    if fully_received:
        purchase_order.received_date = timezone.localdate()
    purchase_order.save(update_fields=['status', 'received_date', 'updated_at'])

    logger.info(
        f"Received {quantity} x {item.product.sku} on {purchase_order.po_number} "
        f"({item.received_qty}/{item.quantity}); order now {purchase_order.status}"
    )
    return purchase_order, item
