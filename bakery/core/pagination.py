"""Page/limit pagination shared by the list endpoints"""
from django.conf import settings
from django.core.paginator import Paginator
from rest_framework.response import Response


def _positive_int(raw, default):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginated_response(request, queryset, serializer_class, context=None):
    """
    Serialize one page of ``queryset`` selected by the ``page`` and ``limit``
    query parameters.
    """
    page = _positive_int(request.query_params.get('page'), 1)
    limit = min(
        _positive_int(request.query_params.get('limit'), settings.API_PAGE_SIZE),
        settings.API_MAX_PAGE_SIZE,
    )

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj.object_list, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })
