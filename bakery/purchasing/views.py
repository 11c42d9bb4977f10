import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import AdminOnlyDelete, IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import PurchaseOrderFilter
from .models import PurchaseOrder
from .serializers import (
    PurchaseOrderSerializer, PurchaseOrderCreateSerializer, PurchaseOrderStatusSerializer,
    PurchaseOrderItemSerializer, PurchaseOrderItemInputSerializer, PurchaseOrderItemUpdateSerializer,
    ReceiveItemSerializer
)
from . import services

logger = logging.getLogger(__name__)


def _po_queryset():
    return PurchaseOrder.objects.select_related('supplier', 'warehouse').prefetch_related('items__product')


def _po_response(purchase_order, **kwargs):
    return Response(PurchaseOrderSerializer(_po_queryset().get(pk=purchase_order.pk)).data, **kwargs)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def purchase_order_list_create(request):
    """List purchase orders or raise a new one with its lines"""
    if request.method == 'GET':
        filterset = PurchaseOrderFilter(request.query_params, queryset=_po_queryset())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, PurchaseOrderSerializer)

    serializer = PurchaseOrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    purchase_order = services.create_purchase_order(user=request.user, **serializer.validated_data)
    create_audit_log(request=request, action='create', model_name='PurchaseOrder', object_id=purchase_order.id,
                     object_reference=purchase_order.po_number,
                     changes={'supplier': purchase_order.supplier.name, 'total_amount': purchase_order.total_amount})
    return _po_response(purchase_order, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager, AdminOnlyDelete])
def purchase_order_detail(request, pk):
    purchase_order = get_object_or_404(_po_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(PurchaseOrderSerializer(purchase_order).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PurchaseOrderSerializer(purchase_order, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='PurchaseOrder',
                             object_id=purchase_order.id, object_reference=purchase_order.po_number,
                             changes=request.data)
            return _po_response(purchase_order)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if purchase_order.items.filter(received_qty__gt=0).exists():
            return Response({'detail': 'Cannot delete a purchase order with received goods'},
                            status=status.HTTP_400_BAD_REQUEST)
        po_id, po_number = purchase_order.id, purchase_order.po_number
        purchase_order.delete()
        create_audit_log(request=request, action='delete', model_name='PurchaseOrder',
                         object_id=po_id, object_reference=po_number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def purchase_order_status(request, pk):
    purchase_order = get_object_or_404(PurchaseOrder, pk=pk)
    serializer = PurchaseOrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_status = purchase_order.status
    purchase_order = services.set_po_status(purchase_order.id, serializer.validated_data['status'])
    create_audit_log(request=request, action='status_change', model_name='PurchaseOrder',
                     object_id=purchase_order.id, object_reference=purchase_order.po_number,
                     changes={'status': {'old': old_status, 'new': purchase_order.status}})
    return _po_response(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def purchase_order_item_create(request, pk):
    get_object_or_404(PurchaseOrder, pk=pk)
    serializer = PurchaseOrderItemInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    purchase_order, item = services.add_po_item(pk, **serializer.validated_data)
    return Response({
        'item': PurchaseOrderItemSerializer(item).data,
        'purchase_order': PurchaseOrderSerializer(_po_queryset().get(pk=purchase_order.pk)).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def purchase_order_item_detail(request, pk, item_id):
    get_object_or_404(PurchaseOrder, pk=pk)

    if request.method == 'PATCH':
        serializer = PurchaseOrderItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        purchase_order, item = services.update_po_item(pk, item_id, **serializer.validated_data)
        return Response({
            'item': PurchaseOrderItemSerializer(item).data,
            'purchase_order': PurchaseOrderSerializer(_po_queryset().get(pk=purchase_order.pk)).data,
        })

    purchase_order = services.delete_po_item(pk, item_id)
    return _po_response(purchase_order)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def purchase_order_item_receive(request, pk, item_id):
    """Book delivered goods of one line into the receiving warehouse"""
    get_object_or_404(PurchaseOrder, pk=pk)
    serializer = ReceiveItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    purchase_order, item = services.receive_po_item(pk, item_id, serializer.validated_data['quantity'], request.user)
    create_audit_log(request=request, action='stock_receive', model_name='PurchaseOrder',
                     object_id=purchase_order.id, object_reference=purchase_order.po_number,
                     object_name=item.product.name,
                     changes={'item_id': item.id, 'received_qty': item.received_qty, 'status': purchase_order.status})
    return Response({
        'message': 'Goods received successfully',
        'item': PurchaseOrderItemSerializer(item).data,
        'purchase_order': PurchaseOrderSerializer(_po_queryset().get(pk=purchase_order.pk)).data,
    })
