"""
Read side of the schedule: occurrence listing and batched booking counts.

SessionCatalog answers "what runs in this window, and how full is it" with a
fixed number of queries: one per source table plus one booking count for the
whole window, however many series the studio has.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Count
from django.utils import timezone

from .exceptions import InvalidWindowError, OccurrenceNotFoundError
from .models import Booking, ClassSession, SessionException
from .overlay import apply_exceptions
from .recurrence import expand, occurrence_on
from .types import Occurrence, SessionDateKey

logger = logging.getLogger(__name__)


class BookingCounter:
    """Counts live (non-cancelled) bookings per (session, date) pair."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def count_for(self, pairs: Iterable[SessionDateKey]) -> Dict[SessionDateKey, int]:
        """
        Count bookings for every requested pair in a single query.

        Args:
            pairs: (session_id, session_date) tuples

        Returns:
            Dict with an entry for every requested pair; unbooked pairs map to 0
        """
        counts = dict.fromkeys(set(pairs), 0)
        if not counts:
            return counts

        session_ids = {session_id for session_id, _ in counts}
        session_dates = {session_date for _, session_date in counts}

        rows = (
            Booking.objects.using(self.using)
            .active()
            .for_pairs(session_ids, session_dates)
            .order_by()
            .values('session_id', 'session_date')
            .annotate(total=Count('id'))
        )

        # The IN/IN filter is a superset of the pairs; keep only what was asked.
        for row in rows:
            key = (row['session_id'], row['session_date'])
            if key in counts:
                counts[key] = row['total']

        return counts


class SessionCatalog:
    """Expands, overlays and annotates the sessions of one studio."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS, counter: Optional[BookingCounter] = None):
        self.using = using
        self.counter = counter or BookingCounter(using=using)

    def list_occurrences(
        self,
        studio_id,
        window_start: datetime,
        window_end: datetime,
        class_id=None
    ) -> List[Occurrence]:
        """
        List every occurrence of a studio's classes inside a window.

        Args:
            studio_id: Studio whose schedule is listed
            window_start: Inclusive window start (aware datetime)
            window_end: Inclusive window end (aware datetime)
            class_id: Optional StudioClass filter

        Returns:
            Occurrences sorted by effective start time, each carrying its
            class capacity and live booking count

        Raises:
            InvalidWindowError: If window_start is after window_end
            RecurrenceConfigurationError: If a stored series cannot be expanded
        """
        if window_start > window_end:
            raise InvalidWindowError("Window start must not be after window end")

        sessions = ClassSession.objects.db_manager(self.using)
        series_list = list(
            sessions.active_series(studio_id, class_id).select_related('studio_class')
        )
        one_time_sessions = list(
            sessions.active_one_time_in_range(studio_id, window_start, window_end, class_id)
            .select_related('studio_class')
        )
        exceptions = list(
            SessionException.objects.using(self.using)
            .for_studio(studio_id)
            .original_date_between(_local_date(window_start), _local_date(window_end))
        )

        exceptions_by_series = defaultdict(list)
        for exception in exceptions:
            exceptions_by_series[exception.series_id].append(exception)

        occurrences = []
        for series in series_list:
            instants = expand(series.recurrence_rule, window_start, window_end)
            for occurrence in apply_exceptions(series.id, instants, exceptions_by_series[series.id]):
                occurrences.append(_with_class_details(occurrence, series))

        for session in one_time_sessions:
            occurrences.append(_with_class_details(_one_time_occurrence(session), session))

        counts = self.counter.count_for(occurrence.key for occurrence in occurrences)
        for occurrence in occurrences:
            occurrence.bookings_count = counts[occurrence.key]

        occurrences.sort(key=lambda occurrence: occurrence.start_time)

        logger.debug(
            "Listed %d occurrences for studio %s (%d series, %d one-off, %d exceptions)",
            len(occurrences),
            studio_id,
            len(series_list),
            len(one_time_sessions),
            len(exceptions),
        )
        return occurrences

    def get_occurrence(self, session_id, session_date: date, studio_id=None) -> Occurrence:
        """
        Resolve the occurrence of a session on one calendar date.

        Args:
            session_id: ClassSession id (series or one-off)
            session_date: Original date of the occurrence
            studio_id: Optional owner check

        Returns:
            The annotated Occurrence

        Raises:
            OccurrenceNotFoundError: If the session does not run on that date
        """
        queryset = ClassSession.objects.db_manager(self.using).active()
        if studio_id is not None:
            queryset = queryset.for_studio(studio_id)

        try:
            session = queryset.select_related('studio_class').get(pk=session_id)
        except ClassSession.DoesNotExist:
            raise OccurrenceNotFoundError(
                "Class session not found or cancelled",
                details={'session_id': str(session_id)},
            )

        if session.is_recurring:
            occurrence = self._series_occurrence(session, session_date)
        else:
            occurrence = _one_time_occurrence(session)
            if occurrence.original_date != session_date:
                occurrence = None

        if occurrence is None:
            raise OccurrenceNotFoundError(
                "The session does not run on this date",
                details={
                    'session_id': str(session_id),
                    'session_date': session_date.isoformat(),
                },
            )

        _with_class_details(occurrence, session)
        occurrence.bookings_count = self.counter.count_for([occurrence.key])[occurrence.key]
        return occurrence

    def _series_occurrence(self, series: ClassSession, session_date: date) -> Optional[Occurrence]:
        instant = occurrence_on(series.recurrence_rule, session_date)
        if instant is None:
            return None

        exceptions = SessionException.objects.using(self.using).filter(
            series=series,
            original_date=session_date
        )
        overlaid = apply_exceptions(series.id, [instant], exceptions)
        return overlaid[0] if overlaid else None


def _one_time_occurrence(session: ClassSession) -> Occurrence:
    return Occurrence(
        session_id=session.id,
        start_time=session.start_time,
        original_date=_local_date(session.start_time),
        is_recurring=False,
    )


def _with_class_details(occurrence: Occurrence, session: ClassSession) -> Occurrence:
    studio_class = session.studio_class
    occurrence.studio_id = session.studio_id
    occurrence.class_id = studio_class.id
    occurrence.class_name = studio_class.name
    occurrence.duration_minutes = studio_class.duration_minutes
    occurrence.capacity = studio_class.capacity
    return occurrence


def _local_date(value: datetime) -> date:
    """Calendar date of value in the current time zone."""
    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()
