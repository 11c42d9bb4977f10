import django_filters
from django.db.models import Q
from .models import Notification


class NotificationFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(choices=Notification.TYPE_CHOICES)
    status = django_filters.ChoiceFilter(choices=Notification.STATUS_CHOICES)
    template = django_filters.CharFilter()

    class Meta:
        model = Notification
        fields = ['search', 'type', 'status', 'template']

    def filter_search(self, queryset, name, value):
        search = value.strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(recipient__icontains=search) |
            Q(subject__icontains=search) |
            Q(message__icontains=search)
        )
