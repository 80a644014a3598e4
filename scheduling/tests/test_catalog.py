"""
Tests for occurrence listing and batched booking counts.
"""

import uuid
from datetime import date

from django.test import TestCase, override_settings

from scheduling.catalog import BookingCounter, SessionCatalog
from scheduling.exceptions import InvalidWindowError, OccurrenceNotFoundError
from scheduling.services import cancel_session, upsert_exception

from .helpers import aware, make_booking, make_class, make_one_off, make_series


@override_settings(TIME_ZONE='UTC')
class ListOccurrencesTests(TestCase):
    """Test SessionCatalog.list_occurrences."""

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id, capacity=8)
        self.series = make_series(self.studio_class, aware(2024, 11, 4, 9, 0))
        self.catalog = SessionCatalog()
        self.window = (aware(2024, 11, 4, 0, 0), aware(2024, 11, 24, 23, 59, 59))

    def test_weekly_series_with_cancelled_and_retimed_weeks(self):
        """Test week two cancelled and week three moved to 10:00."""
        upsert_exception(self.series, date(2024, 11, 11), 'cancelled')
        upsert_exception(self.series, date(2024, 11, 18), 'modified', aware(2024, 11, 18, 10, 0))

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual(len(occurrences), 2)

        first, moved = occurrences
        self.assertEqual(first.start_time, aware(2024, 11, 4, 9, 0))
        self.assertFalse(first.is_exception)
        self.assertEqual(first.original_date, date(2024, 11, 4))

        self.assertEqual(moved.start_time, aware(2024, 11, 18, 10, 0))
        self.assertTrue(moved.is_exception)
        self.assertEqual(moved.original_date, date(2024, 11, 18))

    def test_occurrences_carry_class_details(self):
        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual(len(occurrences), 3)
        occurrence = occurrences[0]
        self.assertEqual(occurrence.session_id, self.series.id)
        self.assertEqual(occurrence.studio_id, self.studio_id)
        self.assertEqual(occurrence.class_id, self.studio_class.id)
        self.assertEqual(occurrence.class_name, 'Reformer Pilates')
        self.assertEqual(occurrence.capacity, 8)
        self.assertEqual(occurrence.duration_minutes, 50)
        self.assertTrue(occurrence.is_recurring)

    def test_one_off_sessions_are_merged_in_start_order(self):
        one_off = make_one_off(self.studio_class, aware(2024, 11, 6, 18, 0))
        make_one_off(self.studio_class, aware(2024, 12, 6, 18, 0))

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual(len(occurrences), 4)
        self.assertEqual(occurrences[1].session_id, one_off.id)
        self.assertFalse(occurrences[1].is_recurring)
        self.assertEqual(occurrences[1].original_date, date(2024, 11, 6))

        starts = [o.start_time for o in occurrences]
        self.assertEqual(starts, sorted(starts))

    def test_cancelled_sessions_are_not_listed(self):
        one_off = make_one_off(self.studio_class, aware(2024, 11, 6, 18, 0))
        cancel_session(one_off)
        cancel_session(self.series)

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual(occurrences, [])

    def test_class_filter(self):
        other_class = make_class(self.studio_id, name='Hot Yoga')
        make_series(other_class, aware(2024, 11, 5, 7, 0), pattern='daily')

        occurrences = self.catalog.list_occurrences(
            self.studio_id, *self.window, class_id=self.studio_class.id
        )

        self.assertEqual(len(occurrences), 3)
        self.assertTrue(all(o.class_id == self.studio_class.id for o in occurrences))

    def test_other_studios_are_not_listed(self):
        other_class = make_class(uuid.uuid4())
        make_series(other_class, aware(2024, 11, 5, 7, 0), pattern='daily')

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual(len(occurrences), 3)

    def test_bookings_counted_per_occurrence(self):
        make_booking(self.series, date(2024, 11, 4))
        make_booking(self.series, date(2024, 11, 4), status='pending')
        make_booking(self.series, date(2024, 11, 4), status='cancelled')
        make_booking(self.series, date(2024, 11, 11))

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertEqual([o.bookings_count for o in occurrences], [2, 1, 0])
        self.assertEqual(occurrences[0].spots_left, 6)
        self.assertFalse(occurrences[0].is_full)

    def test_retimed_occurrence_keeps_its_bookings(self):
        """Test that bookings follow the original date when an occurrence moves."""
        make_booking(self.series, date(2024, 11, 18))
        upsert_exception(self.series, date(2024, 11, 18), 'modified', aware(2024, 11, 19, 12, 0))

        occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)
        moved = occurrences[-1]

        self.assertEqual(moved.start_time, aware(2024, 11, 19, 12, 0))
        self.assertEqual(moved.bookings_count, 1)

    def test_full_occurrence(self):
        small_class = make_class(self.studio_id, capacity=1, name='Private')
        session = make_one_off(small_class, aware(2024, 11, 7, 12, 0))
        make_booking(session, date(2024, 11, 7))

        occurrences = self.catalog.list_occurrences(
            self.studio_id, *self.window, class_id=small_class.id
        )

        self.assertTrue(occurrences[0].is_full)
        self.assertEqual(occurrences[0].spots_left, 0)

    def test_query_count_does_not_grow_with_series(self):
        """Test that three series and a one-off are listed in four queries."""
        make_series(self.studio_class, aware(2024, 11, 5, 7, 0), pattern='daily')
        make_series(self.studio_class, aware(2024, 11, 1, 19, 0), pattern='custom', weekdays=[2, 4])
        make_one_off(self.studio_class, aware(2024, 11, 8, 12, 0))
        upsert_exception(self.series, date(2024, 11, 11), 'cancelled')
        make_booking(self.series, date(2024, 11, 4))

        with self.assertNumQueries(4):
            occurrences = self.catalog.list_occurrences(self.studio_id, *self.window)

        self.assertGreater(len(occurrences), 20)

    def test_inverted_window(self):
        with self.assertRaises(InvalidWindowError):
            self.catalog.list_occurrences(
                self.studio_id, aware(2024, 11, 10, 0, 0), aware(2024, 11, 4, 0, 0)
            )


@override_settings(TIME_ZONE='UTC')
class BookingCounterTests(TestCase):
    """Test BookingCounter.count_for."""

    def setUp(self):
        studio_id = uuid.uuid4()
        studio_class = make_class(studio_id)
        self.series = make_series(studio_class, aware(2024, 11, 4, 9, 0), pattern='daily')
        self.one_off = make_one_off(studio_class, aware(2024, 11, 5, 18, 0))
        self.counter = BookingCounter()

    def test_exact_counts_and_zeros(self):
        make_booking(self.series, date(2024, 11, 4))
        make_booking(self.series, date(2024, 11, 4))
        make_booking(self.one_off, date(2024, 11, 5))

        pairs = [
            (self.series.id, date(2024, 11, 4)),
            (self.series.id, date(2024, 11, 6)),
            (self.one_off.id, date(2024, 11, 5)),
        ]
        with self.assertNumQueries(1):
            counts = self.counter.count_for(pairs)

        self.assertEqual(counts, {
            (self.series.id, date(2024, 11, 4)): 2,
            (self.series.id, date(2024, 11, 6)): 0,
            (self.one_off.id, date(2024, 11, 5)): 1,
        })

    def test_only_requested_pairs_are_returned(self):
        """Test that bookings on unrequested (session, date) combinations are not reported."""
        make_booking(self.series, date(2024, 11, 5))
        make_booking(self.one_off, date(2024, 11, 5))

        pairs = [
            (self.series.id, date(2024, 11, 4)),
            (self.one_off.id, date(2024, 11, 5)),
        ]
        counts = self.counter.count_for(pairs)

        self.assertEqual(counts, {
            (self.series.id, date(2024, 11, 4)): 0,
            (self.one_off.id, date(2024, 11, 5)): 1,
        })

    def test_cancelled_bookings_are_not_counted(self):
        make_booking(self.series, date(2024, 11, 4), status='cancelled')
        make_booking(self.series, date(2024, 11, 4), status='pending')

        counts = self.counter.count_for([(self.series.id, date(2024, 11, 4))])

        self.assertEqual(counts[(self.series.id, date(2024, 11, 4))], 1)

    def test_empty_input_runs_no_query(self):
        with self.assertNumQueries(0):
            self.assertEqual(self.counter.count_for([]), {})


@override_settings(TIME_ZONE='UTC')
class GetOccurrenceTests(TestCase):
    """Test SessionCatalog.get_occurrence."""

    def setUp(self):
        self.studio_id = uuid.uuid4()
        self.studio_class = make_class(self.studio_id, capacity=4)
        self.series = make_series(self.studio_class, aware(2024, 11, 4, 9, 0))
        self.catalog = SessionCatalog()

    def test_series_occurrence(self):
        make_booking(self.series, date(2024, 11, 11))

        occurrence = self.catalog.get_occurrence(self.series.id, date(2024, 11, 11))

        self.assertEqual(occurrence.start_time, aware(2024, 11, 11, 9, 0))
        self.assertEqual(occurrence.capacity, 4)
        self.assertEqual(occurrence.bookings_count, 1)

    def test_retimed_occurrence(self):
        upsert_exception(self.series, date(2024, 11, 11), 'modified', aware(2024, 11, 11, 17, 0))

        occurrence = self.catalog.get_occurrence(self.series.id, date(2024, 11, 11))

        self.assertEqual(occurrence.start_time, aware(2024, 11, 11, 17, 0))
        self.assertTrue(occurrence.is_exception)

    def test_date_without_occurrence(self):
        with self.assertRaises(OccurrenceNotFoundError):
            self.catalog.get_occurrence(self.series.id, date(2024, 11, 12))

    def test_cancelled_date(self):
        upsert_exception(self.series, date(2024, 11, 11), 'cancelled')

        with self.assertRaises(OccurrenceNotFoundError):
            self.catalog.get_occurrence(self.series.id, date(2024, 11, 11))

    def test_one_off_only_on_its_date(self):
        one_off = make_one_off(self.studio_class, aware(2024, 11, 6, 18, 0))

        occurrence = self.catalog.get_occurrence(one_off.id, date(2024, 11, 6))
        self.assertFalse(occurrence.is_recurring)

        with self.assertRaises(OccurrenceNotFoundError):
            self.catalog.get_occurrence(one_off.id, date(2024, 11, 7))

    def test_wrong_studio(self):
        with self.assertRaises(OccurrenceNotFoundError):
            self.catalog.get_occurrence(self.series.id, date(2024, 11, 11), studio_id=uuid.uuid4())

    def test_unknown_session(self):
        with self.assertRaises(OccurrenceNotFoundError):
            self.catalog.get_occurrence(uuid.uuid4(), date(2024, 11, 11))
