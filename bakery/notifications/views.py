import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import IsAdminOrStoreManager
from .filters import NotificationFilter
from .models import Notification
from .serializers import (
    NotificationSerializer, NotificationCreateSerializer, NotificationBulkSerializer, NotificationStatusSerializer
)
from .templates import list_templates
from . import services

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_list_create(request):
    """List notifications or queue one (raw or rendered from a template)"""
    if request.method == 'GET':
        filterset = NotificationFilter(request.query_params, queryset=Notification.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, NotificationSerializer)

    serializer = NotificationCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    notification = services.create_notification(serializer.validated_data)
    return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_detail(request, pk):
    notification = get_object_or_404(Notification, pk=pk)

    if request.method == 'GET':
        return Response(NotificationSerializer(notification).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = NotificationSerializer(notification, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        notification.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_status(request, pk):
    """Mark a notification PENDING, SENT (stamps sent_at) or FAILED"""
    get_object_or_404(Notification, pk=pk)
    serializer = NotificationStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    notification = services.set_notification_status(pk, **serializer.validated_data)
    return Response(NotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_bulk(request):
    """Queue many notifications; each entry succeeds or fails on its own"""
    serializer = NotificationBulkSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    valid, results = [], []
    for index, payload in enumerate(serializer.validated_data['notifications']):
        entry = NotificationCreateSerializer(data=payload)
        if entry.is_valid():
            valid.append((index, entry.validated_data))
        else:
            results.append({'index': index, 'success': False, 'error': entry.errors})

    created = services.create_bulk_notifications([data for _, data in valid])
    for (index, _), result in zip(valid, created):
        result['index'] = index
        if result['success']:
            result['notification'] = NotificationSerializer(result['notification']).data
        results.append(result)
    results.sort(key=lambda result: result['index'])

    created_count = sum(1 for result in results if result['success'])
    return Response({
        'created': created_count,
        'failed': len(results) - created_count,
        'results': results,
    }, status=status.HTTP_201_CREATED if created_count else status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_templates(request):
    templates = list_templates()
    return Response({'results': templates, 'count': len(templates)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_summary(request):
    return Response(services.notification_summary())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def notification_stats(request):
    """Daily counts and success rate over ``days`` days (default 7)"""
    try:
        days = int(request.query_params.get('days', 7))
    except ValueError:
        days = 0
    if not 1 <= days <= 366:
        return Response({'detail': 'days must be an integer between 1 and 366'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.notification_stats(days))
