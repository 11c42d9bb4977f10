import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import IsAdmin, IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import CustomerFilter, SupplierFilter
from .models import Customer, CustomerAddress, Supplier
from .serializers import (
    CustomerSerializer, CustomerCreateSerializer, CustomerStatusSerializer, CustomerTypeSerializer,
    CustomerAddressSerializer, CustomerRegistrationSerializer, SupplierSerializer
)
from .services import register_customer, save_address

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Storefront customer self-registration"""
    serializer = CustomerRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    customer = register_customer(serializer.validated_data)
    return Response({
        'message': 'Registration successful',
        'customer': {
            'id': customer.id,
            'first_name': customer.first_name,
            'last_name': customer.last_name,
            'email': customer.email,
            'customer_type': customer.customer_type,
        }
    }, status=status.HTTP_201_CREATED)


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def customer_list_create(request):
    """List customers (filterable, paginated) or create a customer"""
    if request.method == 'GET':
        filterset = CustomerFilter(request.query_params, queryset=Customer.objects.prefetch_related('addresses'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs.order_by('-created_at', '-id'), CustomerSerializer)

    serializer = CustomerCreateSerializer(data=request.data)
    if serializer.is_valid():
        customer = serializer.save()
        create_audit_log(request=request, action='create', model_name='Customer',
                         object_id=customer.id, object_name=customer.full_name)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Customer',
                             object_id=customer.id, object_name=customer.full_name, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        customer_id, customer_name = customer.id, customer.full_name
        customer.delete()
        create_audit_log(request=request, action='delete', model_name='Customer',
                         object_id=customer_id, object_name=customer_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdmin])
def customer_status(request, pk):
    """Activate or soft-deactivate a customer"""
    customer = get_object_or_404(Customer, pk=pk)
    serializer = CustomerStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    customer.is_active = serializer.validated_data['is_active']
    customer.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Customer {customer.id} {'activated' if customer.is_active else 'deactivated'}")
    create_audit_log(request=request, action='status_change', model_name='Customer', object_id=customer.id,
                     object_name=customer.full_name, changes={'is_active': customer.is_active})
    return Response(CustomerSerializer(customer).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdmin])
def customer_type(request, pk):
    """Change a customer's type (INDIVIDUAL, B2B, COMMUNITY)"""
    customer = get_object_or_404(Customer, pk=pk)
    serializer = CustomerTypeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_type = customer.customer_type
    customer.customer_type = serializer.validated_data['customer_type']
    customer.save(update_fields=['customer_type', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='Customer', object_id=customer.id,
                     object_name=customer.full_name,
                     changes={'customer_type': {'old': old_type, 'new': customer.customer_type}})
    return Response(CustomerSerializer(customer).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def customer_address_list_create(request, pk):
    """List or add addresses of a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        serializer = CustomerAddressSerializer(customer.addresses.all(), many=True)
        return Response(serializer.data)

    serializer = CustomerAddressSerializer(data=request.data)
    if serializer.is_valid():
        address = save_address(serializer, customer)
        return Response(CustomerAddressSerializer(address).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def customer_address_detail(request, pk, address_id):
    """Retrieve, update or delete one address of a customer"""
    address = get_object_or_404(CustomerAddress, pk=address_id, customer_id=pk)

    if request.method == 'GET':
        return Response(CustomerAddressSerializer(address).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerAddressSerializer(address, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            address = save_address(serializer, address.customer)
            return Response(CustomerAddressSerializer(address).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        address.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    if request.method == 'GET':
        filterset = SupplierFilter(request.query_params, queryset=Supplier.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs.order_by('name'), SupplierSerializer)

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        supplier = serializer.save()
        create_audit_log(request=request, action='create', model_name='Supplier',
                         object_id=supplier.id, object_name=supplier.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        supplier_id, supplier_name = supplier.id, supplier.name
        supplier.delete()
        create_audit_log(request=request, action='delete', model_name='Supplier',
                         object_id=supplier_id, object_name=supplier_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def supplier_status(request, pk):
    """Toggle a supplier between active and inactive"""
    supplier = get_object_or_404(Supplier, pk=pk)
    if 'is_active' in request.data:
        supplier.is_active = str(request.data['is_active']).lower() in ('true', '1')
    else:
        supplier.is_active = not supplier.is_active
    supplier.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='Supplier', object_id=supplier.id,
                     object_name=supplier.name, changes={'is_active': supplier.is_active})
    return Response(SupplierSerializer(supplier).data)
