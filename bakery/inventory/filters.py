import django_filters
from django.db.models import F, Q
from bakery.catalog.models import Product
from .models import InventoryRecord


class InventoryFilter(django_filters.FilterSet):
    """Filter for inventory record lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    product = django_filters.NumberFilter(field_name='product_id')
    warehouse = django_filters.NumberFilter(field_name='warehouse_id')
    category = django_filters.ChoiceFilter(field_name='product__category', choices=Product.CATEGORY_CHOICES)
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')
    out_of_stock = django_filters.BooleanFilter(method='filter_out_of_stock', label='Out of Stock')

    class Meta:
        model = InventoryRecord
        fields = ['search', 'product', 'warehouse', 'category', 'low_stock', 'out_of_stock']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(product__name__icontains=search) |
            Q(product__sku__icontains=search) |
            Q(batch_number__icontains=search) |
            Q(location__icontains=search)
        )

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        condition = Q(quantity__lte=F('product__min_stock_level'))
        return queryset.filter(condition) if value else queryset.exclude(condition)

    def filter_out_of_stock(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(quantity=0) if value else queryset.filter(quantity__gt=0)
