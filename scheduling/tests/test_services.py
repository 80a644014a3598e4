"""
Tests for the scheduling service layer.
"""

import uuid
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from scheduling.catalog import SessionCatalog
from scheduling.exceptions import (
    InvalidBookingError,
    OccurrenceNotFoundError,
    SessionFullError,
    ValidationException,
)
from scheduling.models import SessionException
from scheduling.services import (
    admit_booking,
    cancel_booking,
    cancel_session,
    create_class_session,
    list_bookings,
    update_booking_contact,
    update_series,
    upsert_exception,
)
from scheduling.types import ClientIdentity, ContactUpdateData, PaymentDetails, SeriesUpdateData

from .helpers import aware, make_booking, make_class, make_one_off, make_series


@override_settings(TIME_ZONE='UTC')
class CreateClassSessionTests(TestCase):

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id)

    def test_create_one_off(self):
        session = create_class_session(self.studio_id, self.studio_class, aware(2024, 11, 6, 18, 0))

        self.assertFalse(session.is_recurring)
        self.assertIsNone(session.recurrence_pattern)
        self.assertEqual(session.custom_weekdays, [])

    def test_create_custom_series_sorts_weekdays(self):
        session = create_class_session(
            self.studio_id,
            self.studio_class,
            aware(2024, 11, 4, 9, 0),
            is_recurring=True,
            recurrence_pattern='custom',
            custom_weekdays=[5, 1, 3, 1]
        )

        self.assertEqual(session.custom_weekdays, [1, 3, 5])
        self.assertEqual(session.weekday_names, ['Monday', 'Wednesday', 'Friday'])

    def test_custom_series_needs_weekdays(self):
        with self.assertRaises(ValidationError):
            create_class_session(
                self.studio_id,
                self.studio_class,
                aware(2024, 11, 4, 9, 0),
                is_recurring=True,
                recurrence_pattern='custom'
            )

    def test_series_needs_pattern(self):
        with self.assertRaises(ValidationError):
            create_class_session(
                self.studio_id, self.studio_class, aware(2024, 11, 4, 9, 0), is_recurring=True
            )

    def test_end_date_before_anchor(self):
        with self.assertRaises(ValidationError):
            create_class_session(
                self.studio_id,
                self.studio_class,
                aware(2024, 11, 4, 9, 0),
                is_recurring=True,
                recurrence_pattern='weekly',
                recurrence_end_date=date(2024, 11, 1)
            )

    def test_class_of_other_studio(self):
        with self.assertRaises(ValidationException):
            create_class_session(uuid.uuid4(), self.studio_class, aware(2024, 11, 6, 18, 0))


@override_settings(TIME_ZONE='UTC')
class SeriesServiceTests(TestCase):
    """Test update_series, cancel_session and upsert_exception."""

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id)
        self.series = make_series(self.studio_class, aware(2024, 11, 4, 9, 0))
        self.window = (aware(2024, 11, 4, 0, 0), aware(2024, 11, 24, 23, 59))

    def test_upsert_updates_existing_exception(self):
        upsert_exception(self.series, date(2024, 11, 11), 'modified', aware(2024, 11, 11, 10, 0))
        exception = upsert_exception(self.series, date(2024, 11, 11), 'cancelled')

        self.assertEqual(SessionException.objects.count(), 1)
        self.assertEqual(exception.exception_type, 'cancelled')
        self.assertIsNone(exception.modified_start_time)
        self.assertEqual(exception.studio_id, self.studio_id)

    def test_upsert_on_date_without_occurrence(self):
        with self.assertRaises(OccurrenceNotFoundError):
            upsert_exception(self.series, date(2024, 11, 12), 'cancelled')

    def test_upsert_on_one_off(self):
        one_off = make_one_off(self.studio_class, aware(2024, 11, 6, 18, 0))

        with self.assertRaises(ValidationException):
            upsert_exception(one_off, date(2024, 11, 6), 'cancelled')

    def test_update_series_retimes_all_occurrences(self):
        update_series(self.series, SeriesUpdateData(start_time=aware(2024, 11, 4, 18, 0)))

        occurrences = SessionCatalog().list_occurrences(self.studio_id, *self.window)

        self.assertEqual(len(occurrences), 3)
        self.assertTrue(all(o.start_time.hour == 18 for o in occurrences))

    def test_update_series_switches_pattern(self):
        self.series = update_series(
            self.series,
            SeriesUpdateData(recurrence_pattern='custom', custom_weekdays=[3, 1])
        )
        self.assertEqual(self.series.custom_weekdays, [1, 3])

        self.series = update_series(self.series, SeriesUpdateData(recurrence_pattern='daily'))
        self.series.refresh_from_db()
        self.assertEqual(self.series.recurrence_pattern, 'daily')
        self.assertEqual(self.series.custom_weekdays, [])

    def test_update_series_sets_and_clears_end_date(self):
        update_series(self.series, SeriesUpdateData(recurrence_end_date=date(2024, 11, 11)))
        occurrences = SessionCatalog().list_occurrences(self.studio_id, *self.window)
        self.assertEqual(len(occurrences), 2)

        update_series(self.series, SeriesUpdateData(clear_end_date=True))
        self.series.refresh_from_db()
        self.assertIsNone(self.series.recurrence_end_date)

    def test_update_series_rejects_one_off(self):
        one_off = make_one_off(self.studio_class, aware(2024, 11, 6, 18, 0))

        with self.assertRaises(ValidationException):
            update_series(one_off, SeriesUpdateData(recurrence_pattern='weekly'))

    def test_cancel_session_twice(self):
        cancel_session(self.series)

        self.series.refresh_from_db()
        self.assertTrue(self.series.is_cancelled)
        with self.assertRaises(ValidationException):
            cancel_session(self.series)

    def test_cancelled_series_rejects_edits_and_exceptions(self):
        cancel_session(self.series)

        with self.assertRaises(ValidationException):
            update_series(self.series, SeriesUpdateData(recurrence_pattern='daily'))
        with self.assertRaises(ValidationException):
            upsert_exception(self.series, date(2024, 11, 11), 'cancelled')


@override_settings(TIME_ZONE='UTC')
class BookingServiceTests(TestCase):
    """Test admit_booking, cancel_booking and update_booking_contact."""

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id, capacity=1)
        self.series = make_series(self.studio_class, aware(2024, 11, 4, 9, 0))

    def test_admit_booking_uses_class_capacity(self):
        admit_booking(
            self.studio_id,
            self.series.id,
            date(2024, 11, 11),
            ClientIdentity(name='Ann', email='ann@example.com')
        )

        with self.assertRaises(SessionFullError):
            admit_booking(
                self.studio_id,
                self.series.id,
                date(2024, 11, 11),
                ClientIdentity(name='Bob', email='bob@example.com')
            )

    def test_admit_booking_on_cancelled_date(self):
        upsert_exception(self.series, date(2024, 11, 11), 'cancelled')

        with self.assertRaises(OccurrenceNotFoundError):
            admit_booking(
                self.studio_id,
                self.series.id,
                date(2024, 11, 11),
                ClientIdentity(name='Ann', email='ann@example.com')
            )

    def test_admit_booking_on_date_without_occurrence(self):
        with self.assertRaises(OccurrenceNotFoundError):
            admit_booking(
                self.studio_id,
                self.series.id,
                date(2024, 11, 12),
                ClientIdentity(name='Ann', email='ann@example.com')
            )

    def test_cancel_booking_is_terminal(self):
        booking = make_booking(self.series, date(2024, 11, 11))

        cancel_booking(booking)
        booking.refresh_from_db()
        self.assertEqual(booking.status, 'cancelled')

        with self.assertRaises(InvalidBookingError):
            cancel_booking(booking)

    def test_contact_update_keeps_status(self):
        booking = admit_booking(
            self.studio_id,
            self.series.id,
            date(2024, 11, 11),
            ClientIdentity(name='Ann', email='ann@example.com'),
            payment=PaymentDetails(status='pending')
        )

        update_booking_contact(booking, ContactUpdateData(
            client_name='Ann Smith',
            client_email='ANN.SMITH@example.com',
            payment_status='paid',
            amount=Decimal('30.00')
        ))

        booking.refresh_from_db()
        self.assertEqual(booking.status, 'pending')
        self.assertEqual(booking.client_name, 'Ann Smith')
        self.assertEqual(booking.client_email, 'ann.smith@example.com')
        self.assertEqual(booking.payment_status, 'paid')
        self.assertEqual(booking.amount, Decimal('30.00'))

    def test_contact_update_rejects_negative_amount(self):
        booking = make_booking(self.series, date(2024, 11, 11))

        with self.assertRaises(InvalidBookingError):
            update_booking_contact(booking, ContactUpdateData(amount=Decimal('-5')))


@override_settings(TIME_ZONE='UTC')
class ListBookingsTests(TestCase):

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id)
        self.series = make_series(self.studio_class, aware(2024, 11, 4, 9, 0))

    def test_filters_combine(self):
        kept = make_booking(self.series, date(2024, 11, 11))
        make_booking(self.series, date(2024, 11, 11), status='cancelled')
        make_booking(self.series, date(2024, 11, 18))
        other_class = make_class(self.studio_id, name='Barre')
        make_booking(make_series(other_class, aware(2024, 11, 4, 9, 0)), date(2024, 11, 11))

        bookings = list_bookings(
            self.studio_id,
            status='confirmed',
            start_date=date(2024, 11, 11),
            end_date=date(2024, 11, 11),
            class_id=self.studio_class.id
        )

        self.assertEqual([b.id for b in bookings], [kept.id])

    def test_inverted_range(self):
        with self.assertRaises(ValidationException):
            list_bookings(self.studio_id, start_date=date(2024, 11, 12), end_date=date(2024, 11, 4))
