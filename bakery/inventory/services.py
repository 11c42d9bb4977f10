"""
Stock mutations.

Every function that changes an inventory record runs in a transaction, locks
the rows it rewrites and appends an ``InventoryMovement`` for each change.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count, F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from bakery.catalog.models import Product
from bakery.core.cache_utils import cached_query, STOCK_SUMMARY_CACHE_TTL, STOCK_SUMMARY_PREFIX
from bakery.core.exceptions import Conflict, InsufficientStock, NotFound, ValidationFailed
from bakery.locations.models import Warehouse
from .models import InventoryRecord, InventoryMovement

logger = logging.getLogger(__name__)

ADJUST_ADD = 'add'
ADJUST_REMOVE = 'remove'
ADJUST_SET = 'set'
ADJUSTMENT_TYPES = (ADJUST_ADD, ADJUST_REMOVE, ADJUST_SET)

_ADJUSTMENT_MOVEMENTS = {
    ADJUST_ADD: InventoryMovement.ADD,
    ADJUST_REMOVE: InventoryMovement.REMOVE,
    ADJUST_SET: InventoryMovement.SET,
}


def _require_positive(quantity):
    if quantity is None or quantity <= 0:
        raise ValidationFailed('Quantity must be greater than zero')


def _locked_record(record_id):
    try:
        return (InventoryRecord.objects
                .select_for_update()
                .select_related('product', 'warehouse')
                .get(pk=record_id))
    except InventoryRecord.DoesNotExist:
        raise NotFound('Inventory record not found')


def _record_movement(record, movement_type, quantity, previous, user, reason='other', notes='', reference=''):
    return InventoryMovement.objects.create(
        inventory=record,
        movement_type=movement_type,
        quantity=quantity,
        previous_quantity=previous,
        new_quantity=record.quantity,
        reason=reason,
        reference=reference,
        notes=notes or '',
        user=user,
    )


@transaction.atomic
def create_inventory_record(user, product, warehouse, quantity=0, reserved_qty=0, **extra):
    """Open a new inventory record; initial stock is logged as an ADD movement"""
    if reserved_qty > quantity:
        raise ValidationFailed('Reserved quantity cannot exceed quantity')
    batch_number = extra.get('batch_number', '')
    if InventoryRecord.objects.filter(product=product, warehouse=warehouse, batch_number=batch_number).exists():
        raise Conflict(f"{product.sku} already has a record for batch '{batch_number}' in {warehouse.name}")
    record = InventoryRecord.objects.create(
        product=product, warehouse=warehouse, quantity=quantity, reserved_qty=reserved_qty, **extra
    )
    if quantity:
        _record_movement(record, InventoryMovement.ADD, quantity, 0, user, reason='received',
                         notes='Opening stock')
    return record


@transaction.atomic
def adjust_inventory(record_id, adjustment_type, quantity, reason, user, notes=''):
    """
    Apply an add / remove / set adjustment to one inventory record.

    ``remove`` may only take stock that is not reserved and is rejected,
    never clamped, when it asks for more. ``set`` cannot go below the
    reserved quantity.

    Returns (record, movement).
    """
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationFailed(f"Invalid adjustment type '{adjustment_type}'")
    _require_positive(quantity)

    record = _locked_record(record_id)
    previous = record.quantity

    if adjustment_type == ADJUST_ADD:
        record.quantity = previous + quantity
    elif adjustment_type == ADJUST_REMOVE:
        if quantity > record.available_qty:
            raise InsufficientStock(
                f"Cannot remove {quantity} units: only {record.available_qty} available "
                f"({record.reserved_qty} reserved)"
            )
        record.quantity = previous - quantity
    else:
        if quantity < record.reserved_qty:
            raise ValidationFailed(
                f"Cannot set stock to {quantity}: {record.reserved_qty} units are reserved"
            )
        record.quantity = quantity

    record.save(update_fields=['quantity', 'last_updated'])
    movement = _record_movement(record, _ADJUSTMENT_MOVEMENTS[adjustment_type], quantity, previous,
                                user, reason=reason, notes=notes)
    logger.info(
        f"Inventory #{record.id} ({record.product.sku}) {adjustment_type} {quantity}: "
        f"{previous} -> {record.quantity} [{reason}]"
    )
    return record, movement


@transaction.atomic
def transfer_inventory(record_id, to_warehouse_id, quantity, user, notes=''):
    """
    Move available stock from one inventory record to the same product in
    another warehouse.

    Both rows are locked in primary-key order; the destination record is
    created (copying batch and expiry) when the warehouse has none yet.

    Returns (source, destination).
    """
    _require_positive(quantity)

    source_info = (InventoryRecord.objects
                   .filter(pk=record_id)
                   .values('product_id', 'warehouse_id')
                   .first())
    if source_info is None:
        raise NotFound('Inventory record not found')

    try:
        to_warehouse = Warehouse.objects.get(pk=to_warehouse_id)
    except Warehouse.DoesNotExist:
        raise NotFound('Destination warehouse not found')
    if to_warehouse.pk == source_info['warehouse_id']:
        raise ValidationFailed('Destination warehouse must differ from the source warehouse')

    destination_id = (InventoryRecord.objects
                      .filter(product_id=source_info['product_id'], warehouse=to_warehouse)
                      .order_by('pk')
                      .values_list('pk', flat=True)
                      .first())

    lock_ids = sorted(pk for pk in (record_id, destination_id) if pk is not None)
    locked = {
        record.pk: record
        for record in (InventoryRecord.objects
                       .select_for_update()
                       .select_related('product', 'warehouse')
                       .filter(pk__in=lock_ids)
                       .order_by('pk'))
    }
    source = locked[int(record_id)]

    if quantity > source.available_qty:
        raise InsufficientStock(
            f"Insufficient stock for transfer: requested {quantity}, available {source.available_qty}"
        )

    source_previous = source.quantity
    source.quantity = source_previous - quantity
    source.save(update_fields=['quantity', 'last_updated'])

    if destination_id is not None:
        destination = locked[destination_id]
    else:
        # a concurrent transfer may have opened the record since the lookup
        opened, _ = InventoryRecord.objects.get_or_create(
            product=source.product,
            warehouse=to_warehouse,
            batch_number=source.batch_number,
            defaults={'quantity': 0, 'expiry_date': source.expiry_date},
        )
        destination = InventoryRecord.objects.select_for_update().get(pk=opened.pk)
    destination_previous = destination.quantity
    destination.quantity = destination_previous + quantity
    destination.save(update_fields=['quantity', 'last_updated'])

    _record_movement(source, InventoryMovement.TRANSFER_OUT, quantity, source_previous, user,
                     reason='transfer', notes=notes, reference=f'to inventory #{destination.pk}')
    _record_movement(destination, InventoryMovement.TRANSFER_IN, quantity, destination_previous, user,
                     reason='transfer', notes=notes, reference=f'from inventory #{source.pk}')

    logger.info(
        f"Transferred {quantity} x {source.product.sku} from {source.warehouse.name} "
        f"to {to_warehouse.name} (inventory #{source.pk} -> #{destination.pk})"
    )
    return source, destination


@transaction.atomic
def reserve_inventory(record_id, quantity, user, notes='', reference=''):
    """Set aside available stock for an unfulfilled order"""
    _require_positive(quantity)
    record = _locked_record(record_id)
    if quantity > record.available_qty:
        raise InsufficientStock(
            f"Cannot reserve {quantity} units: only {record.available_qty} available"
        )
    record.reserved_qty += quantity
    record.save(update_fields=['reserved_qty', 'last_updated'])
    _record_movement(record, InventoryMovement.RESERVE, quantity, record.quantity, user,
                     notes=notes, reference=reference)
    return record


@transaction.atomic
def release_reservation(record_id, quantity, user, notes='', reference=''):
    """Return reserved stock to the available pool"""
    _require_positive(quantity)
    record = _locked_record(record_id)
    if quantity > record.reserved_qty:
        raise ValidationFailed(
            f"Cannot release {quantity} units: only {record.reserved_qty} reserved"
        )
    record.reserved_qty -= quantity
    record.save(update_fields=['reserved_qty', 'last_updated'])
    _record_movement(record, InventoryMovement.RELEASE, quantity, record.quantity, user,
                     notes=notes, reference=reference)
    return record


@transaction.atomic
def receive_stock(product, warehouse, quantity, user, reference='', notes=''):
    """Book incoming goods into the product's first record in ``warehouse``"""
    _require_positive(quantity)
    record = (InventoryRecord.objects
              .select_for_update()
              .filter(product=product, warehouse=warehouse)
              .order_by('pk')
              .first())
    if record is None:
        opened, _ = InventoryRecord.objects.get_or_create(product=product, warehouse=warehouse, batch_number='')
        record = InventoryRecord.objects.select_for_update().get(pk=opened.pk)

    previous = record.quantity
    record.quantity = previous + quantity
    record.save(update_fields=['quantity', 'last_updated'])
    _record_movement(record, InventoryMovement.RECEIVE, quantity, previous, user,
                     reason='received', notes=notes, reference=reference)
    logger.info(f"Received {quantity} x {product.sku} into {warehouse.name} ({reference})")
    return record


@transaction.atomic
def consume_stock(product, quantity, user, reference='', notes=''):
    """
    Take ``quantity`` units of a product out of available stock across
    warehouses, earliest expiry first.
    """
    _require_positive(quantity)
    records = list(InventoryRecord.objects
                   .select_for_update()
                   .filter(product=product, quantity__gt=F('reserved_qty'))
                   .order_by(F('expiry_date').asc(nulls_last=True), 'pk'))

    available = sum(record.available_qty for record in records)
    if available < quantity:
        raise InsufficientStock(
            f"Insufficient stock for {product.sku}: requested {quantity}, available {available}"
        )

    remaining = quantity
    for record in records:
        if remaining == 0:
            break
        take = min(record.available_qty, remaining)
        previous = record.quantity
        record.quantity = previous - take
        record.save(update_fields=['quantity', 'last_updated'])
        _record_movement(record, InventoryMovement.SALE, take, previous, user,
                         reason='sale', notes=notes, reference=reference)
        remaining -= take


@cached_query(cache_ttl=STOCK_SUMMARY_CACHE_TTL, key_prefix=STOCK_SUMMARY_PREFIX)
def stock_summary(product_id=None):
    """Per-product totals across warehouses with a per-warehouse breakdown"""
    records = InventoryRecord.objects.select_related('product', 'warehouse').order_by('product_id', 'warehouse_id', 'pk')
    if product_id is not None:
        records = records.filter(product_id=product_id)

    summary = {}
    for record in records:
        entry = summary.setdefault(record.product_id, {
            'product_id': record.product_id,
            'product_name': record.product.name,
            'sku': record.product.sku,
            'min_stock_level': record.product.min_stock_level,
            'total_quantity': 0,
            'reserved_quantity': 0,
            'available_quantity': 0,
            'warehouses': [],
        })
        entry['total_quantity'] += record.quantity
        entry['reserved_quantity'] += record.reserved_qty
        entry['available_quantity'] += record.available_qty
        entry['warehouses'].append({
            'inventory_id': record.pk,
            'warehouse_id': record.warehouse_id,
            'warehouse_name': record.warehouse.name,
            'quantity': record.quantity,
            'reserved_qty': record.reserved_qty,
            'available_qty': record.available_qty,
            'batch_number': record.batch_number,
            'expiry_date': record.expiry_date.isoformat() if record.expiry_date else None,
        })

    for entry in summary.values():
        entry['is_low_stock'] = entry['total_quantity'] <= entry['min_stock_level']
    return list(summary.values())


def low_stock_products():
    """Stocked products whose total quantity is at or below their minimum level"""
    return (Product.objects
            .annotate(
                total_quantity=Coalesce(Sum('inventory_records__quantity'), Value(0)),
                record_count=Count('inventory_records'),
            )
            .filter(record_count__gt=0, total_quantity__lte=F('min_stock_level'))
            .order_by('total_quantity', 'name'))


def expiring_records(days=7):
    """Records with stock on hand whose batch expires within ``days`` days"""
    today = timezone.localdate()
    return (InventoryRecord.objects
            .select_related('product', 'warehouse')
            .filter(quantity__gt=0, expiry_date__isnull=False,
                    expiry_date__gte=today, expiry_date__lte=today + timedelta(days=days))
            .order_by('expiry_date', 'pk'))
