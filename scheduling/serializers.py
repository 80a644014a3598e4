"""
Serializers for the scheduling API.
"""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from .models import Booking, ClassSession, SessionException
from .types import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_PENDING,
    EXCEPTION_CANCELLED,
    EXCEPTION_MODIFIED,
    PATTERN_CUSTOM,
    PAYMENT_PAID,
    PAYMENT_REFUNDED,
    PAYMENT_UNPAID,
    RECURRENCE_PATTERNS,
)


class OccurrenceSerializer(serializers.Serializer):
    """Serializer for the read-time Occurrence projection (output only)."""

    session_id = serializers.UUIDField()
    studio_id = serializers.UUIDField()
    class_id = serializers.UUIDField()
    class_name = serializers.CharField()
    start_time = serializers.DateTimeField()
    end_time = serializers.SerializerMethodField()
    original_date = serializers.DateField()
    duration_minutes = serializers.IntegerField()
    is_recurring = serializers.BooleanField()
    is_exception = serializers.BooleanField()
    capacity = serializers.IntegerField()
    bookings_count = serializers.IntegerField()
    spots_left = serializers.IntegerField()
    is_full = serializers.BooleanField()

    def get_end_time(self, occurrence):
        end_time = occurrence.start_time + timedelta(minutes=occurrence.duration_minutes)
        return serializers.DateTimeField().to_representation(end_time)


class OccurrenceQuerySerializer(serializers.Serializer):
    """
    Query parameters for occurrence listings.

    start defaults to now and end to start + SCHEDULING_DEFAULT_DAYS_AHEAD.
    """

    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)
    class_id = serializers.UUIDField(required=False)

    def validate(self, data):
        start = data.get('start') or timezone.now()
        end = data.get('end') or start + timedelta(days=settings.SCHEDULING_DEFAULT_DAYS_AHEAD)

        if start > end:
            raise serializers.ValidationError(
                "Start datetime must not be after end datetime."
            )

        data['start'] = start
        data['end'] = end
        return data


class PublicOccurrenceQuerySerializer(OccurrenceQuerySerializer):
    """The public booking page always sends an explicit window."""

    start = serializers.DateTimeField()
    end = serializers.DateTimeField()


class ClassSessionReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying ClassSession (output)."""

    class_id = serializers.UUIDField(source='studio_class_id', read_only=True)
    class_name = serializers.CharField(source='studio_class.name', read_only=True)
    weekday_names = serializers.ReadOnlyField()

    class Meta:
        model = ClassSession
        fields = [
            'id',
            'studio_id',
            'class_id',
            'class_name',
            'start_time',
            'is_recurring',
            'recurrence_pattern',
            'recurrence_end_date',
            'custom_weekdays',
            'weekday_names',
            'is_cancelled',
            'created_at',
            'updated_at',
        ]


class ClassSessionCreateSerializer(serializers.Serializer):
    """Serializer for creating a one-off session or a recurring series."""

    class_id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    is_recurring = serializers.BooleanField(default=False)
    recurrence_pattern = serializers.ChoiceField(
        choices=RECURRENCE_PATTERNS,
        required=False,
        allow_null=True
    )
    recurrence_end_date = serializers.DateField(required=False, allow_null=True)
    custom_weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
        default=list
    )

    def validate(self, data):
        if not data.get('is_recurring'):
            return data

        pattern = data.get('recurrence_pattern')
        if not pattern:
            raise serializers.ValidationError({
                'recurrence_pattern': 'Recurring sessions need a recurrence pattern.'
            })

        if pattern == PATTERN_CUSTOM and not data.get('custom_weekdays'):
            raise serializers.ValidationError({
                'custom_weekdays': 'Custom recurrence needs at least one weekday.'
            })

        return data


class SeriesUpdateSerializer(serializers.Serializer):
    """Serializer for "edit entire series" requests."""

    start_time = serializers.DateTimeField(required=False)
    recurrence_pattern = serializers.ChoiceField(choices=RECURRENCE_PATTERNS, required=False)
    recurrence_end_date = serializers.DateField(required=False, allow_null=True)
    custom_weekdays = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False
    )


class SessionExceptionReadSerializer(serializers.ModelSerializer):

    class Meta:
        model = SessionException
        fields = [
            'id',
            'studio_id',
            'series',
            'original_date',
            'exception_type',
            'modified_start_time',
            'created_at',
            'updated_at',
        ]


class SessionExceptionWriteSerializer(serializers.Serializer):
    """Serializer for retiming or cancelling one occurrence of a series."""

    original_date = serializers.DateField()
    exception_type = serializers.ChoiceField(choices=[EXCEPTION_MODIFIED, EXCEPTION_CANCELLED])
    modified_start_time = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, data):
        if data['exception_type'] == EXCEPTION_MODIFIED and not data.get('modified_start_time'):
            raise serializers.ValidationError({
                'modified_start_time': 'A modified occurrence needs a new start time.'
            })
        return data


class BookingReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Booking (output)."""

    session_id = serializers.UUIDField(read_only=True)
    client_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'studio_id',
            'session_id',
            'session_date',
            'client_id',
            'client_name',
            'client_email',
            'client_phone',
            'status',
            'payment_status',
            'amount',
            'created_at',
            'updated_at',
        ]


class BookingListQuerySerializer(serializers.Serializer):
    """Query parameters for the staff booking roster."""

    status = serializers.ChoiceField(
        choices=[BOOKING_CONFIRMED, BOOKING_PENDING, BOOKING_CANCELLED],
        required=False
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    class_id = serializers.UUIDField(required=False)

    def validate(self, data):
        start_date = data.get('start_date')
        end_date = data.get('end_date')
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError(
                "Start date must not be after end date."
            )
        return data


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for booking one occurrence."""

    session_id = serializers.UUIDField()
    session_date = serializers.DateField()
    client_name = serializers.CharField(max_length=200)
    client_email = serializers.EmailField()
    client_phone = serializers.CharField(max_length=40, required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(
        choices=[BOOKING_CONFIRMED, BOOKING_PENDING],
        default=BOOKING_CONFIRMED
    )
    payment_status = serializers.ChoiceField(
        choices=[PAYMENT_PAID, PAYMENT_UNPAID, PAYMENT_REFUNDED],
        default=PAYMENT_UNPAID
    )
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))


class PublicBookingCreateSerializer(BookingCreateSerializer):
    """Public booking page requests name the studio in the body."""

    studio_id = serializers.UUIDField()


class BookingUpdateSerializer(serializers.Serializer):
    """Serializer for editing a booking's contact and payment details."""

    client_name = serializers.CharField(max_length=200, required=False)
    client_email = serializers.EmailField(required=False)
    client_phone = serializers.CharField(max_length=40, required=False, allow_blank=True)
    payment_status = serializers.ChoiceField(
        choices=[PAYMENT_PAID, PAYMENT_UNPAID, PAYMENT_REFUNDED],
        required=False
    )
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
