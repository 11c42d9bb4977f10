import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for Product lists"""

    # Basic search - name, SKU, barcode, description
    search = django_filters.CharFilter(method='filter_search', label='Search')

    category = django_filters.ChoiceFilter(choices=Product.CATEGORY_CHOICES)
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    unit_type = django_filters.ChoiceFilter(choices=Product.UNIT_TYPE_CHOICES)
    min_price = django_filters.NumberFilter(field_name='selling_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='selling_price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['search', 'category', 'status', 'unit_type', 'min_price', 'max_price']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) |
            Q(sku__icontains=search) |
            Q(barcode__iexact=search) |
            Q(description__icontains=search)
        )
