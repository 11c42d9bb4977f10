import django_filters
from django.db.models import Q
from .models import PurchaseOrder


class PurchaseOrderFilter(django_filters.FilterSet):
    """Filter for purchase order lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=PurchaseOrder.STATUS_CHOICES)
    supplier = django_filters.NumberFilter(field_name='supplier_id')
    warehouse = django_filters.NumberFilter(field_name='warehouse_id')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='lte')

    class Meta:
        model = PurchaseOrder
        fields = ['search', 'status', 'supplier', 'warehouse', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(po_number__icontains=search) |
            Q(supplier__name__icontains=search) |
            Q(notes__icontains=search)
        )
