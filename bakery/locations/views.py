import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db.models import Q

from bakery.core.pagination import paginated_response
from bakery.core.permissions import IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .models import Warehouse
from .serializers import WarehouseSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def warehouse_list_create(request):
    """List warehouses or create a new warehouse"""
    if request.method == 'GET':
        warehouses = Warehouse.objects.all()
        search = request.query_params.get('search')
        if search:
            warehouses = warehouses.filter(Q(name__icontains=search) | Q(city__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            warehouses = warehouses.filter(is_active=is_active.lower() in ('true', '1'))
        return paginated_response(request, warehouses.order_by('name'), WarehouseSerializer)

    serializer = WarehouseSerializer(data=request.data)
    if serializer.is_valid():
        warehouse = serializer.save()
        logger.info(f"Warehouse {warehouse.name} created by {request.user.email}")
        create_audit_log(request=request, action='create', model_name='Warehouse',
                         object_id=warehouse.id, object_name=warehouse.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def warehouse_detail(request, pk):
    """Retrieve, update or delete a warehouse"""
    warehouse = get_object_or_404(Warehouse, pk=pk)

    if request.method == 'GET':
        return Response(WarehouseSerializer(warehouse).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WarehouseSerializer(warehouse, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        warehouse_id, warehouse_name = warehouse.id, warehouse.name
        warehouse.delete()
        create_audit_log(request=request, action='delete', model_name='Warehouse',
                         object_id=warehouse_id, object_name=warehouse_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def warehouse_status(request, pk):
    """Toggle a warehouse between active and inactive"""
    warehouse = get_object_or_404(Warehouse, pk=pk)
    if 'is_active' in request.data:
        warehouse.is_active = str(request.data['is_active']).lower() in ('true', '1')
    else:
        warehouse.is_active = not warehouse.is_active
    warehouse.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='Warehouse',
                     object_id=warehouse.id, object_name=warehouse.name,
                     changes={'is_active': warehouse.is_active})
    return Response(WarehouseSerializer(warehouse).data)
