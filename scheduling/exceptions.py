"""
Domain-specific exceptions for the scheduling app.

These exceptions carry a stable machine-readable code and are turned into
HTTP responses by scheduling.exception_handler at the API layer.
"""

from typing import Any, Dict, Optional

from rest_framework import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = 'domain_error'

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.message,
            'code': self.code,
            'details': self.details,
        }


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'validation_error'


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'not_found'


class ConflictException(DomainException):
    """Raised when a request conflicts with the current state of the data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = 'conflict'


class RecurrenceConfigurationError(ValidationException):
    """A series or exception record cannot be expanded as stored."""

    default_code = 'invalid_recurrence'


class InvalidWindowError(ValidationException):
    default_code = 'invalid_window'


class InvalidBookingError(ValidationException):
    default_code = 'invalid_booking'


class OccurrenceNotFoundError(NotFoundException):
    default_code = 'occurrence_not_found'


class SessionFullError(ConflictException):
    """The occurrence has no seats left."""

    default_code = 'session_full'


class DuplicateBookingError(ConflictException):
    """The client already holds a live booking for the occurrence."""

    default_code = 'duplicate_booking'
