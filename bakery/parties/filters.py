import django_filters
from django.db.models import Q
from .models import Customer, Supplier


class CustomerFilter(django_filters.FilterSet):
    """Filter for Customer lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    customer_type = django_filters.ChoiceFilter(choices=Customer.CUSTOMER_TYPE_CHOICES)
    is_active = django_filters.BooleanFilter()
    city = django_filters.CharFilter(lookup_expr='iexact')

    class Meta:
        model = Customer
        fields = ['search', 'customer_type', 'is_active', 'city']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search) |
            Q(email__icontains=search) |
            Q(phone__icontains=search) |
            Q(company_name__icontains=search)
        )


class SupplierFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = Supplier
        fields = ['search', 'is_active']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) |
            Q(contact_person__icontains=search) |
            Q(email__icontains=search)
        )
