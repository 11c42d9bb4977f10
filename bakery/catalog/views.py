import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer, PublicProductSerializer, ProductStatusSerializer

logger = logging.getLogger(__name__)

PUBLIC_PRODUCTS_MAX = 100


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def product_list_create(request):
    """List products (filterable, paginated) or create a product"""
    if request.method == 'GET':
        filterset = ProductFilter(request.query_params, queryset=Product.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-created_at', '-id')
        return paginated_response(request, queryset, ProductSerializer)

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        logger.info(f"Product {product.sku} created by {request.user.email}")
        create_audit_log(request=request, action='create', model_name='Product',
                         object_id=product.id, object_name=product.name, object_reference=product.sku)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Product',
                             object_id=product.id, object_name=product.name, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_id, product_name = product.id, product.name
        product.delete()
        create_audit_log(request=request, action='delete', model_name='Product',
                         object_id=product_id, object_name=product_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def product_status(request, pk):
    """Change a product's lifecycle status"""
    product = get_object_or_404(Product, pk=pk)
    serializer = ProductStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_status = product.status
    product.status = serializer.validated_data['status']
    product.save(update_fields=['status', 'updated_at'])
    create_audit_log(request=request, action='status_change', model_name='Product', object_id=product.id,
                     object_name=product.name, changes={'status': {'old': old_status, 'new': product.status}})
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_list(request):
    """Storefront listing: active products only, optional category and limit"""
    queryset = Product.objects.filter(status=Product.STATUS_ACTIVE)

    category = request.query_params.get('category')
    if category:
        queryset = queryset.filter(category=category.upper())

    try:
        limit = int(request.query_params.get('limit', PUBLIC_PRODUCTS_MAX))
    except ValueError:
        return Response({'detail': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    limit = max(1, min(limit, PUBLIC_PRODUCTS_MAX))

    products = queryset.order_by('category', 'name')[:limit]
    return Response({'products': PublicProductSerializer(products, many=True).data})
