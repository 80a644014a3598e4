"""
Capacity-gated booking admission.

The duplicate check, the seat count and the insert run in one transaction
while holding the BookingSlot row lock of the occurrence. Counts computed by
the catalog are never reused here: they are stale as soon as they are read.
"""

import logging
from datetime import date
from typing import Optional

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from .exceptions import (
    DuplicateBookingError,
    InvalidBookingError,
    OccurrenceNotFoundError,
    SessionFullError,
)
from .models import Booking, BookingSlot, ClassSession, Client, SessionException
from .types import (
    BOOKING_CONFIRMED,
    BOOKING_PENDING,
    PAYMENT_PAID,
    PAYMENT_REFUNDED,
    PAYMENT_UNPAID,
    ClientIdentity,
    PaymentDetails,
)

logger = logging.getLogger(__name__)

ADMISSIBLE_STATUSES = (BOOKING_CONFIRMED, BOOKING_PENDING)
PAYMENT_STATUSES = (PAYMENT_PAID, PAYMENT_UNPAID, PAYMENT_REFUNDED)


class BookingAdmission:
    """Admits or rejects new bookings against an occurrence's capacity."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def admit(
        self,
        session_id,
        session_date: date,
        client: ClientIdentity,
        capacity: int,
        payment: Optional[PaymentDetails] = None,
        studio_id=None
    ) -> Booking:
        """
        Create a booking if the client has none yet and a seat is free.

        Args:
            session_id: ClassSession id
            session_date: Original date of the occurrence being booked
            client: Who the booking is for
            capacity: Seats the occurrence offers
            payment: Requested status and payment fields
            studio_id: Optional owner check

        Returns:
            The created Booking

        Raises:
            DuplicateBookingError: The client already holds a live booking
            SessionFullError: No seat is left
            InvalidBookingError: The request itself is malformed
            OccurrenceNotFoundError: The session does not exist or the date was cancelled
        """
        payment = payment or PaymentDetails()
        _validate_request(client, capacity, payment)

        with transaction.atomic(using=self.using):
            session = self._get_session(session_id, studio_id)
            self._lock_slot(session, session_date)

            if session.is_recurring:
                self._ensure_not_cancelled(session, session_date)

            client_record = self._resolve_client(session.studio_id, client)

            bookings = Booking.objects.using(self.using).active().for_occurrence(
                session.id, session_date
            )

            if bookings.for_client_identity(client_record.email, client_record.phone).exists():
                logger.info(
                    "Booking rejected (duplicate_booking): session %s on %s, client %s",
                    session.id, session_date, client_record.id,
                )
                raise DuplicateBookingError(
                    "Client already has a booking for this session",
                    details=_occurrence_details(session.id, session_date),
                )

            taken = bookings.count()
            if taken >= capacity:
                logger.info(
                    "Booking rejected (session_full): session %s on %s, %d/%d seats taken",
                    session.id, session_date, taken, capacity,
                )
                raise SessionFullError(
                    "Class session is full",
                    details={
                        **_occurrence_details(session.id, session_date),
                        'capacity': capacity,
                    },
                )

            booking = self._insert_booking(session, session_date, client_record, payment)

        logger.info(
            "Booking %s admitted: session %s on %s (%d/%d seats taken)",
            booking.id, session.id, session_date, taken + 1, capacity,
        )
        return booking

    def _get_session(self, session_id, studio_id) -> ClassSession:
        queryset = ClassSession.objects.db_manager(self.using).active()
        if studio_id is not None:
            queryset = queryset.for_studio(studio_id)

        try:
            return queryset.only('id', 'studio_id', 'is_recurring').get(pk=session_id)
        except ClassSession.DoesNotExist:
            raise OccurrenceNotFoundError(
                "Class session not found or cancelled",
                details={'session_id': str(session_id)},
            )

    def _lock_slot(self, session: ClassSession, session_date: date) -> BookingSlot:
        """Take the row lock that serializes admissions for one occurrence."""
        slots = BookingSlot.objects.using(self.using)
        slot, _ = slots.get_or_create(session_id=session.id, session_date=session_date)
        return slots.select_for_update().get(pk=slot.pk)

    def _ensure_not_cancelled(self, series: ClassSession, session_date: date) -> None:
        """Reject dates a staff exception cancelled after the caller looked them up."""
        cancelled = (
            SessionException.objects.using(self.using)
            .filter(series_id=series.id, original_date=session_date)
            .cancelled()
            .exists()
        )
        if cancelled:
            raise OccurrenceNotFoundError(
                "The session does not run on this date",
                details=_occurrence_details(series.id, session_date),
            )

    def _resolve_client(self, studio_id, client: ClientIdentity) -> Client:
        """Find or create the studio's client; one row per (email, phone)."""
        email = _normalize_email(client.email)
        phone = (client.phone or '').strip()
        name = client.name.strip()

        # get_or_create re-reads the row when a concurrent insert wins the
        # unique constraint.
        record, created = Client.objects.using(self.using).get_or_create(
            studio_id=studio_id,
            email=email,
            phone=phone,
            defaults={'name': name},
        )

        if not created and record.name != name:
            record.name = name
            record.save(using=self.using, update_fields=['name', 'updated_at'])
        return record

    def _insert_booking(
        self,
        session: ClassSession,
        session_date: date,
        client_record: Client,
        payment: PaymentDetails
    ) -> Booking:
        try:
            with transaction.atomic(using=self.using):
                return Booking.objects.using(self.using).create(
                    studio_id=session.studio_id,
                    session_id=session.id,
                    session_date=session_date,
                    client=client_record,
                    client_name=client_record.name,
                    client_email=client_record.email,
                    client_phone=client_record.phone,
                    status=payment.status,
                    payment_status=payment.payment_status,
                    amount=payment.amount,
                )
        except IntegrityError as exc:
            # Only the live-booking unique constraint can fire here.
            raise DuplicateBookingError(
                "Client already has a booking for this session",
                details=_occurrence_details(session.id, session_date),
            ) from exc


def _validate_request(client: ClientIdentity, capacity: int, payment: PaymentDetails) -> None:
    if not client.name or not client.name.strip():
        raise InvalidBookingError("Client name is required")

    if not client.email or '@' not in client.email:
        raise InvalidBookingError("A valid client email is required")

    if capacity < 0:
        raise InvalidBookingError("Capacity cannot be negative")

    if payment.status not in ADMISSIBLE_STATUSES:
        raise InvalidBookingError(
            f"New bookings must be confirmed or pending, not {payment.status!r}"
        )

    if payment.payment_status not in PAYMENT_STATUSES:
        raise InvalidBookingError(f"Unknown payment status: {payment.payment_status!r}")

    if payment.amount is None or payment.amount < 0:
        raise InvalidBookingError("Amount must be zero or more")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _occurrence_details(session_id, session_date: date) -> dict:
    return {
        'session_id': str(session_id),
        'session_date': session_date.isoformat(),
    }
