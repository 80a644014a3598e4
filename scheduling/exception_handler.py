"""DRF exception handler that renders domain and model validation errors."""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import ConflictException, DomainException

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainException):
        # Conflicts (full session, duplicate booking) are expected outcomes.
        if not isinstance(exc, ConflictException):
            logger.info("Request rejected: %s (%s)", exc.message, exc.code)
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        details = exc.message_dict if hasattr(exc, 'error_dict') else {'non_field_errors': exc.messages}
        return Response(
            {'error': 'Invalid data', 'code': 'validation_error', 'details': details},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return exception_handler(exc, context)
