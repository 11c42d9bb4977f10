import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date

from bakery.core.pagination import paginated_response
from bakery.core.permissions import AdminOnlyDelete, IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import OrderFilter, DeliveryFilter
from .models import Order, Delivery
from .serializers import (
    OrderSerializer, OrderWriteSerializer, OrderStatusSerializer,
    OrderItemSerializer, OrderItemInputSerializer, OrderItemUpdateSerializer,
    DeliverySerializer, DeliveryUpdateSerializer, DeliveryStatusSerializer, DriverAssignmentSerializer
)
from . import services

logger = logging.getLogger(__name__)


def _order_queryset():
    return Order.objects.select_related('customer', 'created_by').prefetch_related('items__product')


# Order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_list_create(request):
    """List orders (filterable, paginated) or create an order with its items"""
    if request.method == 'GET':
        filterset = OrderFilter(request.query_params, queryset=_order_queryset())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, OrderSerializer)

    serializer = OrderWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.create_order(user=request.user, **serializer.validated_data)
    create_audit_log(request=request, action='create', model_name='Order', object_id=order.id,
                     object_reference=order.order_number,
                     changes={'total_amount': order.total_amount, 'items': order.items.count()})
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager, AdminOnlyDelete])
def order_detail(request, pk):
    """Retrieve, update or (admin only) delete an order"""
    order = get_object_or_404(_order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = OrderWriteSerializer(data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        services.update_order(order.id, dict(serializer.validated_data))
        create_audit_log(request=request, action='update', model_name='Order', object_id=order.id,
                         object_reference=order.order_number,
                         changes={key: value for key, value in request.data.items() if key != 'items'})
        return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)
    else:  # DELETE
        order_id, order_number = order.id, order.order_number
        order.delete()
        create_audit_log(request=request, action='delete', model_name='Order',
                         object_id=order_id, object_reference=order_number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_status(request, pk):
    """Change the order status and/or payment status"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old = {'status': order.status, 'payment_status': order.payment_status}
    order = services.set_order_status(order.id, **serializer.validated_data)
    create_audit_log(request=request, action='status_change', model_name='Order', object_id=order.id,
                     object_reference=order.order_number,
                     changes={'old': old, 'new': {'status': order.status, 'payment_status': order.payment_status}})
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_cancel(request, pk):
    """Cancel an order and mark its payment refunded"""
    order = get_object_or_404(Order, pk=pk)
    order = services.cancel_order(order.id)
    create_audit_log(request=request, action='status_change', model_name='Order', object_id=order.id,
                     object_reference=order.order_number,
                     changes={'status': order.status, 'payment_status': order.payment_status})
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_item_create(request, pk):
    get_object_or_404(Order, pk=pk)
    serializer = OrderItemInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order, item = services.add_order_item(pk, **serializer.validated_data)
    return Response({
        'item': OrderItemSerializer(item).data,
        'order': OrderSerializer(_order_queryset().get(pk=order.pk)).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_item_detail(request, pk, item_id):
    """Update or remove one line; the order totals follow"""
    get_object_or_404(Order, pk=pk)

    if request.method == 'PATCH':
        serializer = OrderItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order, item = services.update_order_item(pk, item_id, **serializer.validated_data)
        return Response({
            'item': OrderItemSerializer(item).data,
            'order': OrderSerializer(_order_queryset().get(pk=order.pk)).data,
        })

    order = services.delete_order_item(pk, item_id)
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def order_summary(request):
    return Response(services.order_summary())


# Delivery views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def delivery_list_create(request):
    """List deliveries or schedule one for an order"""
    if request.method == 'GET':
        queryset = Delivery.objects.select_related('order', 'customer')
        filterset = DeliveryFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, DeliverySerializer)

    serializer = DeliverySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    data.pop('status', None)
    delivery = services.create_delivery(data.pop('order'), data.pop('scheduled_date'), **data)
    create_audit_log(request=request, action='create', model_name='Delivery', object_id=delivery.id,
                     object_reference=delivery.delivery_number,
                     changes={'order': delivery.order.order_number})
    return Response(DeliverySerializer(delivery).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager, AdminOnlyDelete])
def delivery_detail(request, pk):
    delivery = get_object_or_404(Delivery.objects.select_related('order', 'customer'), pk=pk)

    if request.method == 'GET':
        return Response(DeliverySerializer(delivery).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = DeliveryUpdateSerializer(delivery, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(DeliverySerializer(delivery).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        delivery_id, number = delivery.id, delivery.delivery_number
        delivery.delete()
        create_audit_log(request=request, action='delete', model_name='Delivery',
                         object_id=delivery_id, object_reference=number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def delivery_status(request, pk):
    delivery = get_object_or_404(Delivery, pk=pk)
    serializer = DeliveryStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_status = delivery.status
    delivery = services.set_delivery_status(delivery.id, **serializer.validated_data)
    create_audit_log(request=request, action='status_change', model_name='Delivery', object_id=delivery.id,
                     object_reference=delivery.delivery_number,
                     changes={'status': {'old': old_status, 'new': delivery.status}})
    return Response(DeliverySerializer(delivery).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def delivery_assign(request, pk):
    """Assign a driver; the delivery goes in transit"""
    get_object_or_404(Delivery, pk=pk)
    serializer = DriverAssignmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    delivery = services.assign_driver(pk, **serializer.validated_data)
    return Response(DeliverySerializer(delivery).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def delivery_routes(request):
    """Open deliveries of ``date`` (default today) grouped into routes by area"""
    raw_date = request.query_params.get('date')
    day = parse_date(raw_date) if raw_date else timezone.localdate()
    if day is None:
        return Response({'detail': 'date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    routes = [
        {
            'area': area,
            'delivery_count': len(deliveries),
            'deliveries': DeliverySerializer(deliveries, many=True).data,
        }
        for area, deliveries in services.delivery_routes(day).items()
    ]
    return Response({'date': day.isoformat(), 'routes': routes, 'count': len(routes)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def delivery_summary(request):
    return Response(services.delivery_summary())
