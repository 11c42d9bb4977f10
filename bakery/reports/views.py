import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone

from bakery.core.permissions import IsAdminOrStoreManager
from .serializers import ReportQuerySerializer, ReportExportSerializer
from .services import build_report

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrStoreManager])
def reports(request):
    """
    GET ``?type=&period=`` returns the report. POST exports the same report
    as a downloadable JSON file with generation metadata.
    """
    if request.method == 'GET':
        serializer = ReportQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return Response(build_report(data['type'], data['period']))

    serializer = ReportExportSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    generated_at = timezone.now()
    payload = dict(build_report(data['type'], data['period']))
    payload['metadata'] = {
        'generated_at': generated_at.isoformat(),
        'generated_by': request.user.id,
        'report_type': data['type'],
        'period': data['period'],
        'format': data['format'],
    }
    logger.info(f"Report {data['type']}/{data['period']} exported by {request.user.email}")

    filename = f"{data['type']}-report-{data['period']}-{generated_at:%Y%m%d%H%M%S}.json"
    response = Response(payload, status=status.HTTP_200_OK)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
