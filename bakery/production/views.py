import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from bakery.core.pagination import paginated_response
from bakery.core.permissions import AdminOnlyDelete, IsAdminOrStoreManager
from bakery.core.utils import create_audit_log
from .filters import RecipeFilter, ProductionFilter
from .models import Recipe, Production
from .serializers import (
    RecipeSerializer, ProductionSerializer, ProductionCreateSerializer,
    ProductionUpdateSerializer, ProductionStatusSerializer
)
from . import services

logger = logging.getLogger(__name__)


def _production_queryset():
    return Production.objects.select_related('recipe').prefetch_related('items__product')


def _days_param(request, default):
    try:
        days = int(request.query_params.get('days', default))
    except ValueError:
        return None
    return days if days > 0 else None


# Recipe views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def recipe_list_create(request):
    if request.method == 'GET':
        filterset = RecipeFilter(request.query_params, queryset=Recipe.objects.prefetch_related('items__product'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, RecipeSerializer)

    serializer = RecipeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    recipe = services.save_recipe(serializer, serializer.validated_data.get('items', []))
    create_audit_log(request=request, action='create', model_name='Recipe', object_id=recipe.id,
                     object_name=recipe.name)
    return Response(RecipeSerializer(recipe).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager, AdminOnlyDelete])
def recipe_detail(request, pk):
    """Retrieve, update or (admin only) delete a recipe"""
    recipe = get_object_or_404(Recipe, pk=pk)

    if request.method == 'GET':
        return Response(RecipeSerializer(recipe).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RecipeSerializer(recipe, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        recipe = services.save_recipe(serializer, serializer.validated_data.get('items'))
        create_audit_log(request=request, action='update', model_name='Recipe', object_id=recipe.id,
                         object_name=recipe.name)
        return Response(RecipeSerializer(recipe).data)
    else:  # DELETE
        recipe_id, recipe_name = recipe.id, recipe.name
        recipe.delete()
        create_audit_log(request=request, action='delete', model_name='Recipe',
                         object_id=recipe_id, object_name=recipe_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Production views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def production_list_create(request):
    """List production batches or plan a new one"""
    if request.method == 'GET':
        filterset = ProductionFilter(request.query_params, queryset=_production_queryset())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, filterset.qs, ProductionSerializer)

    serializer = ProductionCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    production = services.create_production(user=request.user, **serializer.validated_data)
    create_audit_log(request=request, action='create', model_name='Production', object_id=production.id,
                     object_name=production.recipe.name, object_reference=production.batch_number,
                     changes={'planned_qty': production.planned_qty})
    return Response(ProductionSerializer(_production_queryset().get(pk=production.pk)).data,
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager, AdminOnlyDelete])
def production_detail(request, pk):
    production = get_object_or_404(_production_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ProductionSerializer(production).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductionUpdateSerializer(production, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(ProductionSerializer(_production_queryset().get(pk=production.pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        production_id, batch_number = production.id, production.batch_number
        production.delete()
        create_audit_log(request=request, action='delete', model_name='Production',
                         object_id=production_id, object_reference=batch_number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def production_status(request, pk):
    """Move a batch along PLANNED / IN_PROGRESS / ON_HOLD / COMPLETED / CANCELLED"""
    production = get_object_or_404(Production, pk=pk)
    serializer = ProductionStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_status = production.status
    production = services.change_production_status(production.id, **serializer.validated_data)
    create_audit_log(request=request, action='status_change', model_name='Production', object_id=production.id,
                     object_reference=production.batch_number,
                     changes={'status': {'old': old_status, 'new': production.status}})
    return Response(ProductionSerializer(_production_queryset().get(pk=production.pk)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def production_schedule(request):
    """Open batches for the next seven days grouped by day"""
    schedule = services.production_schedule()
    return Response({
        'days': [
            {
                'date': day,
                'count': len(productions),
                'total_planned_qty': sum(p.planned_qty for p in productions),
                'productions': ProductionSerializer(productions, many=True).data,
            }
            for day, productions in schedule.items()
        ]
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def production_alerts(request):
    alerts = services.ingredient_alerts()
    return Response({'results': alerts, 'count': len(alerts)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def production_efficiency(request):
    days = _days_param(request, 30)
    if days is None:
        return Response({'detail': 'days must be a positive integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.efficiency_report(days))
