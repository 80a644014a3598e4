"""
Models for the studio scheduling system.

Occurrences are never stored. A ClassSession is either a one-off session or a
recurring series; the dated occurrences of a series are derived at read time
from its recurrence rule plus its SessionException rows. Bookings point at a
ClassSession and the calendar date of the occurrence they are for.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .managers import (
    BookingQuerySet,
    ClassSessionManager,
    SessionExceptionQuerySet,
)
from .types import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_PENDING,
    EXCEPTION_CANCELLED,
    EXCEPTION_MODIFIED,
    PATTERN_BIWEEKLY,
    PATTERN_CUSTOM,
    PATTERN_DAILY,
    PATTERN_MONTHLY,
    PATTERN_WEEKLY,
    PAYMENT_PAID,
    PAYMENT_REFUNDED,
    PAYMENT_UNPAID,
    WEEKDAY_NAMES,
    RecurrenceRule,
)


class StudioClass(models.Model):
    """
    Class metadata (name, capacity, duration, price).

    Maintained by the studio's plain CRUD screens; scheduling only reads it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    instructor = models.CharField(max_length=200, blank=True, default='')
    duration_minutes = models.PositiveIntegerField(default=60)
    capacity = models.PositiveIntegerField(default=10)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'studio classes'

    def __str__(self):
        return self.name


class ClassSession(models.Model):
    """
    A scheduled session of a class.

    One-off sessions: is_recurring = False, start_time is the session itself.
    Recurring series: is_recurring = True, start_time is the anchor whose time
    of day every occurrence inherits.
    """

    PATTERN_CHOICES = [
        (PATTERN_DAILY, 'Daily'),
        (PATTERN_WEEKLY, 'Weekly'),
        (PATTERN_BIWEEKLY, 'Every two weeks'),
        (PATTERN_MONTHLY, 'Monthly'),
        (PATTERN_CUSTOM, 'Custom weekdays'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio_id = models.UUIDField(db_index=True)
    studio_class = models.ForeignKey(
        StudioClass,
        on_delete=models.PROTECT,
        related_name='sessions'
    )

    start_time = models.DateTimeField()
    is_recurring = models.BooleanField(default=False)
    recurrence_pattern = models.CharField(
        max_length=20,
        choices=PATTERN_CHOICES,
        null=True,
        blank=True
    )
    recurrence_end_date = models.DateField(
        null=True,
        blank=True,
        help_text="Last date the series runs (inclusive, null = no end date)"
    )
    custom_weekdays = models.JSONField(
        default=list,
        blank=True,
        help_text="Weekdays for custom series (0=Sunday, 6=Saturday)"
    )

    is_cancelled = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClassSessionManager()

    class Meta:
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['studio_id', 'is_recurring', 'is_cancelled'], name='session_studio_kind_idx'),
            models.Index(fields=['studio_id', 'start_time'], name='session_studio_start_idx'),
        ]

    def __str__(self):
        local_start = timezone.localtime(self.start_time).strftime('%Y-%m-%d %H:%M')
        if self.is_recurring:
            return f"{self.studio_class} - {self.recurrence_pattern} from {local_start}"
        return f"{self.studio_class} - {local_start}"

    @property
    def recurrence_rule(self):
        """RecurrenceRule for the expander, anchored in the current time zone."""
        return RecurrenceRule(
            anchor=timezone.localtime(self.start_time),
            pattern=self.recurrence_pattern,
            end_date=self.recurrence_end_date,
            weekdays=tuple(self.custom_weekdays or ()),
        )

    @property
    def weekday_names(self):
        return [WEEKDAY_NAMES[day] for day in sorted(self.custom_weekdays or []) if 0 <= day <= 6]

    def clean(self):
        """Validate series/one-off consistency."""
        super().clean()

        if not self.is_recurring:
            if self.recurrence_pattern or self.recurrence_end_date or self.custom_weekdays:
                raise ValidationError(
                    'One-time sessions cannot carry recurrence settings.'
                )
            return

        if not self.recurrence_pattern:
            raise ValidationError({
                'recurrence_pattern': 'Recurring sessions need a recurrence pattern.'
            })

        if self.recurrence_pattern == PATTERN_CUSTOM:
            weekdays = self.custom_weekdays or []
            if not weekdays:
                raise ValidationError({
                    'custom_weekdays': 'Custom recurrence needs at least one weekday.'
                })
            if any(not isinstance(day, int) or not 0 <= day <= 6 for day in weekdays):
                raise ValidationError({
                    'custom_weekdays': 'Weekdays must be between 0 (Sunday) and 6 (Saturday).'
                })
        elif self.custom_weekdays:
            raise ValidationError({
                'custom_weekdays': 'Weekdays are only used by custom recurrence.'
            })

        if self.recurrence_end_date and self.start_time:
            if self.recurrence_end_date < timezone.localtime(self.start_time).date():
                raise ValidationError({
                    'recurrence_end_date': 'End date cannot be before the first session.'
                })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class SessionException(models.Model):
    """
    A staff override of one occurrence of a series.

    original_date is the date the occurrence has in the un-overridden series;
    it is also the date bookings for the occurrence are stored under.
    """

    TYPE_CHOICES = [
        (EXCEPTION_MODIFIED, 'Modified'),
        (EXCEPTION_CANCELLED, 'Cancelled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio_id = models.UUIDField(db_index=True)
    series = models.ForeignKey(
        ClassSession,
        on_delete=models.CASCADE,
        related_name='exceptions'
    )
    original_date = models.DateField()
    exception_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    modified_start_time = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SessionExceptionQuerySet.as_manager()

    class Meta:
        ordering = ['original_date']
        constraints = [
            models.UniqueConstraint(
                fields=['series', 'original_date'],
                name='unique_exception_per_series_date'
            ),
        ]
        indexes = [
            models.Index(fields=['studio_id', 'original_date'], name='exception_studio_date_idx'),
        ]

    def __str__(self):
        return f"{self.series_id} {self.original_date} [{self.exception_type}]"

    def clean(self):
        super().clean()

        if self.exception_type == EXCEPTION_MODIFIED and self.modified_start_time is None:
            raise ValidationError({
                'modified_start_time': 'A modified occurrence needs a new start time.'
            })

        if self.exception_type == EXCEPTION_CANCELLED and self.modified_start_time is not None:
            raise ValidationError({
                'modified_start_time': 'A cancelled occurrence has no start time.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class Client(models.Model):
    """A studio's customer; email (lower-cased) plus phone identify one person."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=40, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['studio_id', 'email', 'phone'],
                name='unique_client_identity_per_studio'
            ),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"


class Booking(models.Model):
    """
    A seat on one occurrence.

    Bookings are never deleted; cancelling sets status to 'cancelled' and
    frees the seat.
    """

    STATUS_CHOICES = [
        (BOOKING_CONFIRMED, 'Confirmed'),
        (BOOKING_PENDING, 'Pending'),
        (BOOKING_CANCELLED, 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_UNPAID, 'Unpaid'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    studio_id = models.UUIDField(db_index=True)
    session = models.ForeignKey(
        ClassSession,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    session_date = models.DateField(
        help_text="Original date of the booked occurrence"
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    client_name = models.CharField(max_length=200)
    client_email = models.EmailField()
    client_phone = models.CharField(max_length=40, blank=True, default='')

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=BOOKING_CONFIRMED
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_UNPAID
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'session_date', 'client'],
                condition=~models.Q(status=BOOKING_CANCELLED),
                name='unique_live_booking_per_client'
            ),
        ]
        indexes = [
            models.Index(fields=['session', 'session_date', 'status'], name='booking_occurrence_idx'),
        ]

    def __str__(self):
        return f"{self.client_name} - {self.session_id} on {self.session_date} [{self.status}]"

    @property
    def is_cancelled(self):
        return self.status == BOOKING_CANCELLED


class BookingSlot(models.Model):
    """
    Lock row for one occurrence.

    Admission locks this row before counting seats, so concurrent bookings
    for the same (session, date) run one after another.
    """

    session = models.ForeignKey(
        ClassSession,
        on_delete=models.CASCADE,
        related_name='booking_slots'
    )
    session_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'session_date'],
                name='unique_slot_per_occurrence'
            ),
        ]

    def __str__(self):
        return f"{self.session_id} on {self.session_date}"
