"""Shared builders for scheduling tests."""

import uuid
from datetime import datetime

from django.utils import timezone

from scheduling.models import Booking, ClassSession, Client, StudioClass


def aware(*args):
    """Aware datetime in the current time zone."""
    return timezone.make_aware(datetime(*args))


def make_class(studio_id, capacity=10, name='Reformer Pilates', duration_minutes=50):
    return StudioClass.objects.create(
        studio_id=studio_id,
        name=name,
        capacity=capacity,
        duration_minutes=duration_minutes,
        price=25
    )


def make_series(studio_class, start_time, pattern='weekly', end_date=None, weekdays=None):
    return ClassSession.objects.create(
        studio_id=studio_class.studio_id,
        studio_class=studio_class,
        start_time=start_time,
        is_recurring=True,
        recurrence_pattern=pattern,
        recurrence_end_date=end_date,
        custom_weekdays=weekdays or []
    )


def make_one_off(studio_class, start_time):
    return ClassSession.objects.create(
        studio_id=studio_class.studio_id,
        studio_class=studio_class,
        start_time=start_time,
        is_recurring=False
    )


def make_booking(session, session_date, email=None, status='confirmed'):
    email = email or f'{uuid.uuid4().hex[:8]}@example.com'
    client = Client.objects.create(
        studio_id=session.studio_id,
        name='Test Client',
        email=email
    )
    return Booking.objects.create(
        studio_id=session.studio_id,
        session=session,
        session_date=session_date,
        client=client,
        client_name=client.name,
        client_email=client.email,
        status=status
    )
