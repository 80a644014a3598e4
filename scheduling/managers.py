"""
Custom managers and querysets for scheduling models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models


class ClassSessionQuerySet(models.QuerySet):
    """Custom queryset for ClassSession model with chainable methods."""

    def for_studio(self, studio_id):
        """Get sessions owned by a studio."""
        return self.filter(studio_id=studio_id)

    def active(self):
        """Get sessions that have not been cancelled."""
        return self.filter(is_cancelled=False)

    def recurring(self):
        """Get recurring series."""
        return self.filter(is_recurring=True)

    def one_time(self):
        """Get one-off sessions."""
        return self.filter(is_recurring=False)

    def for_class(self, class_id):
        """
        Get sessions of one class.

        Args:
            class_id: StudioClass id, or None for no filtering
        """
        if class_id is None:
            return self
        return self.filter(studio_class_id=class_id)

    def in_range(self, start_datetime, end_datetime):
        """
        Get sessions starting within a datetime range (inclusive).

        Args:
            start_datetime: datetime object
            end_datetime: datetime object
        """
        return self.filter(
            start_time__gte=start_datetime,
            start_time__lte=end_datetime
        )


class ClassSessionManager(models.Manager):
    """Custom manager for ClassSession model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return ClassSessionQuerySet(self.model, using=self._db)

    def for_studio(self, studio_id):
        return self.get_queryset().for_studio(studio_id)

    def active(self):
        return self.get_queryset().active()

    def recurring(self):
        return self.get_queryset().recurring()

    def one_time(self):
        return self.get_queryset().one_time()

    def active_series(self, studio_id, class_id=None):
        """Active recurring series of a studio, optionally for one class."""
        return (
            self.get_queryset()
            .for_studio(studio_id)
            .recurring()
            .active()
            .for_class(class_id)
        )

    def active_one_time_in_range(self, studio_id, start_datetime, end_datetime, class_id=None):
        """Active one-off sessions of a studio starting inside the window."""
        return (
            self.get_queryset()
            .for_studio(studio_id)
            .one_time()
            .active()
            .for_class(class_id)
            .in_range(start_datetime, end_datetime)
        )


class SessionExceptionQuerySet(models.QuerySet):
    """Custom queryset for SessionException model."""

    def for_studio(self, studio_id):
        return self.filter(studio_id=studio_id)

    def original_date_between(self, start_date, end_date):
        """
        Get exceptions overriding dates within a range (inclusive).

        Args:
            start_date: date object
            end_date: date object
        """
        return self.filter(
            original_date__gte=start_date,
            original_date__lte=end_date
        )

    def cancelled(self):
        return self.filter(exception_type='cancelled')


class BookingQuerySet(models.QuerySet):
    """Custom queryset for Booking model."""

    def active(self):
        """Bookings that still hold a seat (anything not cancelled)."""
        return self.exclude(status='cancelled')

    def for_occurrence(self, session_id, session_date):
        return self.filter(session_id=session_id, session_date=session_date)

    def for_pairs(self, session_ids, session_dates):
        """
        Superset filter for a batch of (session, date) pairs.

        Callers narrow the result to the exact pairs they asked for.
        """
        return self.filter(
            session_id__in=session_ids,
            session_date__in=session_dates
        )

    def for_studio(self, studio_id):
        return self.filter(studio_id=studio_id)

    def with_status(self, status):
        """
        Get bookings in one status.

        Args:
            status: Booking status, or None for no filtering
        """
        if status is None:
            return self
        return self.filter(status=status)

    def session_date_between(self, start_date=None, end_date=None):
        """Get bookings for occurrences within a date range (inclusive, open ends allowed)."""
        queryset = self
        if start_date is not None:
            queryset = queryset.filter(session_date__gte=start_date)
        if end_date is not None:
            queryset = queryset.filter(session_date__lte=end_date)
        return queryset

    def for_class(self, class_id):
        if class_id is None:
            return self
        return self.filter(session__studio_class_id=class_id)

    def for_client_identity(self, email, phone):
        """Bookings held by whoever is identified by this email and phone."""
        return self.filter(client__email=email, client__phone=phone)
