"""
Domain errors raised by the service layer and the DRF exception handler
that turns them into JSON responses.
"""
import logging

from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors a service reports back to the caller"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request could not be processed.'

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationFailed(ServiceError):
    default_detail = 'Invalid input.'


class InsufficientStock(ValidationFailed):
    default_detail = 'Insufficient stock available.'


class InvalidTransition(ValidationFailed):
    default_detail = 'Status change not allowed.'


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'


def api_exception_handler(exc, context):
    """
    Render domain errors as ``{"detail": ...}``, defer to DRF for its own
    exceptions, and log anything else before answering with a generic 500.
    """
    if isinstance(exc, ServiceError):
        return Response({'detail': exc.detail}, status=exc.status_code)

    if isinstance(exc, ProtectedError):
        return Response(
            {'detail': 'This record is referenced by other records and cannot be deleted.'},
            status=status.HTTP_409_CONFLICT,
        )

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'
    logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
    return Response(
        {'detail': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
