import django_filters
from django.db.models import Q
from bakery.parties.models import Customer
from .models import Order, Delivery
from .services import DATE_RANGES, date_range_start


class OrderFilter(django_filters.FilterSet):
    """Filter for Order lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Order.PAYMENT_STATUS_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    customer_type = django_filters.ChoiceFilter(field_name='customer__customer_type',
                                                choices=Customer.CUSTOMER_TYPE_CHOICES)
    date_range = django_filters.ChoiceFilter(method='filter_date_range',
                                             choices=[(name, name) for name in DATE_RANGES])
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='date__lte')

    class Meta:
        model = Order
        fields = ['search', 'status', 'payment_status', 'customer', 'customer_type', 'date_range']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=search) |
            Q(customer__first_name__icontains=search) |
            Q(customer__last_name__icontains=search) |
            Q(customer__email__icontains=search)
        )

    def filter_date_range(self, queryset, name, value):
        return queryset.filter(order_date__gte=date_range_start(value))


class DeliveryFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Delivery.STATUS_CHOICES)
    order = django_filters.NumberFilter(field_name='order_id')
    driver_name = django_filters.CharFilter(lookup_expr='icontains')
    date = django_filters.DateFilter(field_name='scheduled_date', lookup_expr='date')

    class Meta:
        model = Delivery
        fields = ['search', 'status', 'order', 'driver_name', 'date']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(delivery_number__icontains=search) |
            Q(order__order_number__icontains=search) |
            Q(tracking_number__icontains=search) |
            Q(city__icontains=search)
        )
