import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date

from bakery.core.models import User
from bakery.core.pagination import paginated_response
from bakery.core.utils import create_audit_log
from .filters import POSOrderFilter, POSPaymentFilter
from .models import POSSession, POSOrder, POSPayment, POSReceipt
from .serializers import (
    POSSessionSerializer, SessionStartSerializer, SessionEndSerializer,
    POSOrderSerializer, CheckoutSerializer, POSOrderUpdateSerializer,
    POSPaymentSerializer, POSReceiptSerializer, ReceiptCreateSerializer, POSUtilitySerializer
)
from . import services

logger = logging.getLogger(__name__)


def _pos_order_queryset():
    return (POSOrder.objects
            .select_related('cashier', 'customer', 'session')
            .prefetch_related('items__product', 'payments'))


# POS order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def pos_order_list_create(request):
    """List till sales or check out a new one"""
    if request.method == 'GET':
        filterset = POSOrderFilter(request.query_params, queryset=_pos_order_queryset())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, POSOrderSerializer)

    serializer = CheckoutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    order = services.checkout(request.user, data.pop('items'), data.pop('payments'), **data)
    create_audit_log(request=request, action='create', model_name='POSOrder', object_id=order.id,
                     object_reference=order.order_number,
                     changes={'total_amount': order.total_amount, 'paid_amount': order.paid_amount})
    return Response(POSOrderSerializer(_pos_order_queryset().get(pk=order.pk)).data,
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def pos_order_detail(request, pk):
    """Retrieve a till sale or change its status/notes"""
    order = get_object_or_404(_pos_order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(POSOrderSerializer(order).data)

    serializer = POSOrderUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    changes = {}
    for field, value in serializer.validated_data.items():
        old_value = getattr(order, field)
        if old_value != value:
            changes[field] = {'old': old_value, 'new': value}
            setattr(order, field, value)
    if changes:
        order.save()
        create_audit_log(request=request, action='update', model_name='POSOrder', object_id=order.id,
                         object_reference=order.order_number, changes=changes)
    return Response(POSOrderSerializer(_pos_order_queryset().get(pk=order.pk)).data)


# Payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def pos_payment_list_create(request):
    """List payments (``?order=``) or add a payment to an open order"""
    if request.method == 'GET':
        payments = POSPayment.objects.select_related('order')
        filterset = POSPaymentFilter(request.query_params, queryset=payments)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, POSPaymentSerializer)

    serializer = POSPaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    order, payment = services.add_payment(
        data['order'].id, data['method'], data['amount'],
        reference=data.get('reference', ''), notes=data.get('notes', ''),
    )
    create_audit_log(request=request, action='create', model_name='POSPayment', object_id=payment.id,
                     object_reference=order.order_number,
                     changes={'method': payment.method, 'amount': payment.amount, 'order_status': order.status})
    return Response({
        'payment': POSPaymentSerializer(payment).data,
        'order': POSOrderSerializer(_pos_order_queryset().get(pk=order.pk)).data,
    }, status=status.HTTP_201_CREATED)


# Receipt views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def pos_receipt_list_create(request):
    """Receipts of one order (``?order=``) or generate a new receipt"""
    if request.method == 'GET':
        order_id = request.query_params.get('order')
        if not order_id or not order_id.isdigit():
            return Response({'detail': 'order query parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
        receipts = POSReceipt.objects.select_related('order').filter(order_id=int(order_id))
        return Response(POSReceiptSerializer(receipts, many=True).data)

    serializer = ReceiptCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    receipt = services.generate_receipt(serializer.validated_data['order'], serializer.validated_data['type'])
    return Response(POSReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


# Session views
@api_view(['GET', 'POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def pos_session(request):
    """
    GET: session history of the current cashier (admins and store managers may
    pass ``?cashier=``). POST: start a session. PATCH: end a session.
    """
    if request.method == 'GET':
        cashier_id = request.user.id
        requested = request.query_params.get('cashier')
        if requested and request.user.role in (User.ADMIN, User.STORE_MANAGER):
            if not requested.isdigit():
                return Response({'detail': 'cashier must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
            cashier_id = int(requested)
        sessions = POSSession.objects.select_related('cashier').filter(cashier_id=cashier_id)
        return paginated_response(request, sessions, POSSessionSerializer)

    if request.method == 'POST':
        serializer = SessionStartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = services.start_session(request.user, **serializer.validated_data)
        create_audit_log(request=request, action='create', model_name='POSSession', object_id=session.id,
                         object_reference=f'Session {session.id}',
                         changes={'starting_cash': session.starting_cash})
        return Response(POSSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    serializer = SessionEndSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    session_id = data.get('session_id')
    if session_id is None:
        active = services.active_session(request.user)
        if active is None:
            return Response({'detail': 'No active session'}, status=status.HTTP_404_NOT_FOUND)
        session_id = active.id
    session = services.end_session(session_id, request.user, data['ending_cash'], data.get('notes'))
    create_audit_log(request=request, action='update', model_name='POSSession', object_id=session.id,
                     object_reference=f'Session {session.id}',
                     changes={'ending_cash': session.ending_cash, 'total_sales': session.total_sales})
    return Response(POSSessionSerializer(session).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pos_session_active(request):
    session = services.active_session(request.user)
    return Response({'session': POSSessionSerializer(session).data if session else None})


# Utilities
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pos_utils(request):
    """``action``: ``sync`` pushes offline sales into stock; ``check-duplicates`` lists recent orders"""
    serializer = POSUtilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if data['action'] == 'sync':
        result = services.sync_offline_orders(request.user)
        return Response(result)

    orders = services.recent_orders(data.get('customer'), data['time_window'])
    return Response({
        'time_window': data['time_window'],
        'has_duplicates': len(orders) > 1,
        'orders': POSOrderSerializer(orders, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pos_daily_report(request):
    """Till totals for ``?date=YYYY-MM-DD`` (default today)"""
    raw_date = request.query_params.get('date')
    day = parse_date(raw_date) if raw_date else timezone.localdate()
    if day is None:
        return Response({'detail': 'date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.daily_report(day))
