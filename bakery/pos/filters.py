import django_filters
from .models import POSOrder, POSPayment


class POSOrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=POSOrder.STATUS_CHOICES)
    cashier = django_filters.NumberFilter(field_name='cashier_id')
    session = django_filters.NumberFilter(field_name='session_id')
    customer = django_filters.NumberFilter(field_name='customer_id')
    is_offline = django_filters.BooleanFilter()
    date = django_filters.DateFilter(field_name='created_at', lookup_expr='date')
    search = django_filters.CharFilter(field_name='order_number', lookup_expr='icontains')

    class Meta:
        model = POSOrder
        fields = ['status', 'cashier', 'session', 'customer', 'is_offline', 'date', 'search']


class POSPaymentFilter(django_filters.FilterSet):
    order = django_filters.NumberFilter(field_name='order_id')
    method = django_filters.ChoiceFilter(choices=POSPayment.METHOD_CHOICES)

    class Meta:
        model = POSPayment
        fields = ['order', 'method']
