"""
Service layer for scheduling write operations.

Staff actions on sessions, series and exceptions, plus the booking lifecycle
around admission. Reads go through scheduling.catalog, new bookings through
scheduling.admission.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from django.db import DEFAULT_DB_ALIAS, transaction

from .admission import BookingAdmission
from .catalog import SessionCatalog
from .exceptions import (
    InvalidBookingError,
    OccurrenceNotFoundError,
    ValidationException,
)
from .models import Booking, ClassSession, SessionException, StudioClass
from .recurrence import occurrence_on
from .types import (
    BOOKING_CANCELLED,
    EXCEPTION_MODIFIED,
    PATTERN_CUSTOM,
    ClientIdentity,
    ContactUpdateData,
    PaymentDetails,
    SeriesUpdateData,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def create_class_session(
    studio_id,
    studio_class: StudioClass,
    start_time: datetime,
    is_recurring: bool = False,
    recurrence_pattern: Optional[str] = None,
    recurrence_end_date: Optional[date] = None,
    custom_weekdays: Optional[List[int]] = None
) -> ClassSession:
    """
    Create a one-off session or a recurring series.

    Args:
        studio_id: Owning studio
        studio_class: Class the session is for (must belong to the studio)
        start_time: Session start, or the series anchor
        is_recurring: Whether this is a series
        recurrence_pattern: daily, weekly, biweekly, monthly or custom
        recurrence_end_date: Inclusive last date of the series
        custom_weekdays: Weekdays (0=Sunday) for custom series

    Returns:
        Created ClassSession instance

    Raises:
        ValidationException: If the class belongs to another studio
        django.core.exceptions.ValidationError: If the model validation fails
    """
    if str(studio_class.studio_id) != str(studio_id):
        raise ValidationException("Class not found for this studio")

    session = ClassSession.objects.create(
        studio_id=studio_id,
        studio_class=studio_class,
        start_time=start_time,
        is_recurring=is_recurring,
        recurrence_pattern=recurrence_pattern if is_recurring else None,
        recurrence_end_date=recurrence_end_date if is_recurring else None,
        custom_weekdays=sorted(set(custom_weekdays or [])) if is_recurring else [],
    )

    logger.info(
        "Created %s session %s for class %s",
        'recurring' if is_recurring else 'one-off',
        session.id,
        studio_class.id,
    )
    return session


@transaction.atomic
def update_series(series: ClassSession, update_data: SeriesUpdateData) -> ClassSession:
    """
    Edit an entire series in place.

    Existing exceptions and bookings keep their original dates; occurrences
    that no longer exist under the new rule simply stop being listed.

    Args:
        series: Recurring ClassSession to update
        update_data: SeriesUpdateData with fields to update

    Returns:
        Updated ClassSession instance

    Raises:
        ValidationException: If the session is not an active series
    """
    if not series.is_recurring:
        raise ValidationException("Only recurring sessions can be edited as a series")

    if series.is_cancelled:
        raise ValidationException("Cannot edit a cancelled series")

    fields_to_update = {
        'start_time': update_data.start_time,
        'recurrence_pattern': update_data.recurrence_pattern,
        'recurrence_end_date': update_data.recurrence_end_date,
        'custom_weekdays': update_data.custom_weekdays,
    }
    _apply_field_updates(series, fields_to_update)

    if update_data.clear_end_date:
        series.recurrence_end_date = None

    if series.recurrence_pattern != PATTERN_CUSTOM:
        series.custom_weekdays = []
    else:
        series.custom_weekdays = sorted(set(series.custom_weekdays or []))

    series.save()
    logger.info("Updated series %s", series.id)
    return series


@transaction.atomic
def cancel_session(session: ClassSession) -> ClassSession:
    """
    Soft-delete a one-off session or a whole series.

    Args:
        session: ClassSession instance to cancel

    Returns:
        Updated ClassSession instance

    Raises:
        ValidationException: If the session is already cancelled
    """
    if session.is_cancelled:
        raise ValidationException("Session is already cancelled")

    session.is_cancelled = True
    session.save()

    logger.info("Cancelled session %s", session.id)
    return session


@transaction.atomic
def upsert_exception(
    series: ClassSession,
    original_date: date,
    exception_type: str,
    modified_start_time: Optional[datetime] = None
) -> SessionException:
    """
    Create or update the exception for one occurrence of a series.

    A second call for the same date updates the existing record.

    Args:
        series: Recurring ClassSession
        original_date: Date of the occurrence in the un-overridden series
        exception_type: 'modified' or 'cancelled'
        modified_start_time: New start time (required for 'modified')

    Returns:
        The stored SessionException

    Raises:
        ValidationException: If the session is not an active series
        OccurrenceNotFoundError: If the series has no occurrence on that date
    """
    if not series.is_recurring or series.is_cancelled:
        raise ValidationException("Exceptions can only be added to an active series")

    if occurrence_on(series.recurrence_rule, original_date) is None:
        raise OccurrenceNotFoundError(
            "The series has no occurrence on this date",
            details={
                'session_id': str(series.id),
                'original_date': original_date.isoformat(),
            },
        )

    exception, created = SessionException.objects.update_or_create(
        series=series,
        original_date=original_date,
        defaults={
            'studio_id': series.studio_id,
            'exception_type': exception_type,
            'modified_start_time': (
                modified_start_time if exception_type == EXCEPTION_MODIFIED else None
            ),
        },
    )

    logger.info(
        "%s %s exception for series %s on %s",
        'Created' if created else 'Updated',
        exception_type,
        series.id,
        original_date,
    )
    return exception


def admit_booking(
    studio_id,
    session_id,
    session_date: date,
    client: ClientIdentity,
    payment: Optional[PaymentDetails] = None,
    using: str = DEFAULT_DB_ALIAS
) -> Booking:
    """
    Book one occurrence, taking its capacity from the class.

    Args:
        studio_id: Studio the session must belong to
        session_id: ClassSession id
        session_date: Original date of the occurrence
        client: Who the booking is for
        payment: Requested status and payment fields
        using: Database alias

    Returns:
        The created Booking

    Raises:
        OccurrenceNotFoundError: If the session does not run on that date
        SessionFullError / DuplicateBookingError: If admission rejects it
    """
    occurrence = SessionCatalog(using=using).get_occurrence(
        session_id, session_date, studio_id=studio_id
    )
    return BookingAdmission(using=using).admit(
        session_id=occurrence.session_id,
        session_date=occurrence.original_date,
        client=client,
        capacity=occurrence.capacity,
        payment=payment,
        studio_id=studio_id,
    )


def list_bookings(
    studio_id,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    class_id=None
) -> List[Booking]:
    """
    Get a studio's bookings, newest first.

    Args:
        studio_id: Studio whose bookings are listed
        status: Optional status filter ('confirmed', 'pending', 'cancelled')
        start_date: Optional first occurrence date (inclusive)
        end_date: Optional last occurrence date (inclusive)
        class_id: Optional StudioClass filter

    Returns:
        List of Booking instances

    Raises:
        ValidationException: If start_date is after end_date
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationException("Start date must not be after end date")

    queryset = (
        Booking.objects.for_studio(studio_id)
        .with_status(status)
        .session_date_between(start_date, end_date)
        .for_class(class_id)
    )
    return list(queryset)


@transaction.atomic
def cancel_booking(booking: Booking) -> Booking:
    """
    Cancel a booking, freeing its seat.

    Args:
        booking: Booking instance to cancel

    Returns:
        Updated Booking instance

    Raises:
        InvalidBookingError: If the booking is already cancelled
    """
    if booking.status == BOOKING_CANCELLED:
        raise InvalidBookingError("Booking is already cancelled")

    booking.status = BOOKING_CANCELLED
    booking.save(update_fields=['status', 'updated_at'])

    logger.info("Cancelled booking %s", booking.id)
    return booking


@transaction.atomic
def update_booking_contact(booking: Booking, update_data: ContactUpdateData) -> Booking:
    """
    Edit contact and payment details of a booking. Never changes its status.

    Args:
        booking: Booking instance to update
        update_data: ContactUpdateData with fields to update

    Returns:
        Updated Booking instance
    """
    if update_data.amount is not None and update_data.amount < 0:
        raise InvalidBookingError("Amount cannot be negative")

    fields_to_update = {
        'client_name': update_data.client_name,
        'client_email': (
            update_data.client_email.strip().lower()
            if update_data.client_email is not None else None
        ),
        'client_phone': update_data.client_phone,
        'payment_status': update_data.payment_status,
        'amount': update_data.amount,
    }
    _apply_field_updates(booking, fields_to_update)

    booking.save()
    return booking


def _apply_field_updates(obj, fields: dict) -> None:
    """Apply field updates to object if values are not None."""
    for field_name, value in fields.items():
        if value is not None:
            setattr(obj, field_name, value)
