import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import InventoryFilter
from .models import InventoryRecord
from .serializers import (
    InventoryRecordSerializer, InventoryRecordUpdateSerializer, InventoryMovementSerializer,
    InventoryAdjustSerializer, InventoryTransferSerializer, InventoryReservationSerializer
)
from . import services

logger = logging.getLogger(__name__)


def _parse_days(request, default=7):
    try:
        days = int(request.query_params.get('days', default))
    except ValueError:
        return None
    return days if days >= 0 else None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_list_create(request):
    """List inventory records (filterable, paginated) or open a new record"""
    if request.method == 'GET':
        queryset = InventoryRecord.objects.select_related('product', 'warehouse')
        filterset = InventoryFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs.order_by('-last_updated', '-id'), InventoryRecordSerializer)

    serializer = InventoryRecordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    record = services.create_inventory_record(user=request.user, **serializer.validated_data)
    create_audit_log(request=request, action='create', model_name='InventoryRecord', object_id=record.id,
                     object_name=record.product.name, changes={'quantity': record.quantity})
    return Response(InventoryRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_detail(request, pk):
    """Retrieve, update metadata of, or delete an inventory record"""
    record = get_object_or_404(InventoryRecord.objects.select_related('product', 'warehouse'), pk=pk)

    if request.method == 'GET':
        return Response(InventoryRecordSerializer(record).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = InventoryRecordUpdateSerializer(record, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(InventoryRecordSerializer(record).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if record.reserved_qty:
            return Response({'detail': 'Cannot delete an inventory record with reserved stock'},
                            status=status.HTTP_400_BAD_REQUEST)
        record_id, product_name = record.id, record.product.name
        record.delete()
        create_audit_log(request=request, action='delete', model_name='InventoryRecord',
                         object_id=record_id, object_name=product_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_adjust(request, pk):
    """Add, remove or set stock on an inventory record"""
    serializer = InventoryAdjustSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    record, movement = services.adjust_inventory(
        pk, data['adjustment_type'], data['quantity'], data['reason'], request.user, notes=data['notes']
    )
    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='InventoryRecord',
        object_id=record.id,
        object_name=record.product.name,
        object_reference=record.product.sku,
        changes={
            'adjustment_type': data['adjustment_type'],
            'quantity': data['quantity'],
            'reason': data['reason'],
            'notes': data['notes'],
            'previous_quantity': movement.previous_quantity,
            'new_quantity': movement.new_quantity,
        }
    )
    return Response({
        'message': 'Inventory adjusted successfully',
        'inventory': InventoryRecordSerializer(record).data,
        'movement': InventoryMovementSerializer(movement).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_transfer(request, pk):
    """Transfer available stock to another warehouse"""
    serializer = InventoryTransferSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    source, destination = services.transfer_inventory(
        pk, data['to_warehouse_id'], data['quantity'], request.user, notes=data['notes']
    )
    create_audit_log(
        request=request,
        action='stock_transfer',
        model_name='InventoryRecord',
        object_id=source.id,
        object_name=source.product.name,
        object_reference=source.product.sku,
        changes={
            'quantity': data['quantity'],
            'from_warehouse': source.warehouse.name,
            'to_warehouse': destination.warehouse.name,
            'destination_inventory_id': destination.id,
        }
    )
    return Response({
        'message': 'Inventory transferred successfully',
        'source': InventoryRecordSerializer(source).data,
        'destination': InventoryRecordSerializer(destination).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_reserve(request, pk):
    """Reserve available stock on a record"""
    serializer = InventoryReservationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    record = services.reserve_inventory(pk, user=request.user, **serializer.validated_data)
    return Response(InventoryRecordSerializer(record).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_release(request, pk):
    """Release reserved stock on a record"""
    serializer = InventoryReservationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    record = services.release_reservation(pk, user=request.user, **serializer.validated_data)
    return Response(InventoryRecordSerializer(record).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_movements(request, pk):
    """Movement history of one inventory record, newest first"""
    record = get_object_or_404(InventoryRecord, pk=pk)
    return paginated_response(request, record.movements.select_related('user'), InventoryMovementSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_summary(request):
    """Stock per product across all warehouses"""
    product_id = request.query_params.get('product')
    if product_id is not None and not product_id.isdigit():
        return Response({'detail': 'product must be an integer id'}, status=status.HTTP_400_BAD_REQUEST)
    summary = services.stock_summary(int(product_id) if product_id else None)
    return Response({'results': summary, 'count': len(summary)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_low_stock(request):
    """Products whose total stock is at or below their minimum level"""
    products = services.low_stock_products()
    alerts = [
        {
            'product_id': product.id,
            'product_name': product.name,
            'sku': product.sku,
            'total_quantity': product.total_quantity,
            'min_stock_level': product.min_stock_level,
            'shortfall': max(product.min_stock_level - product.total_quantity, 0),
        }
        for product in products
    ]
    return Response({'results': alerts, 'count': len(alerts)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def inventory_expiring(request):
    """Batches expiring within ``days`` days (default 7)"""
    days = _parse_days(request)
    if days is None:
        return Response({'detail': 'days must be a non-negative integer'}, status=status.HTTP_400_BAD_REQUEST)
    records = services.expiring_records(days)
    serializer = InventoryRecordSerializer(records, many=True)
    return Response({'days': days, 'results': serializer.data, 'count': len(serializer.data)})
