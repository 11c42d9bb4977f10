import django_filters
from django.db.models import Q
from .models import Recipe, Production


class RecipeFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = Recipe
        fields = ['search', 'is_active']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))


class ProductionFilter(django_filters.FilterSet):
    """Filter for production batch lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Production.STATUS_CHOICES)
    recipe = django_filters.NumberFilter(field_name='recipe_id')
    date_from = django_filters.DateFilter(field_name='planned_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='planned_date', lookup_expr='date__lte')

    class Meta:
        model = Production
        fields = ['search', 'status', 'recipe', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(batch_number__icontains=search) |
            Q(recipe__name__icontains=search) |
            Q(recipe__description__icontains=search)
        )
