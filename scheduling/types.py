"""
Data types and constants for the studio scheduling system.

This module contains:
- Constants shared by models, the recurrence engine and the booking path
- DTOs (Data Transfer Objects) for service layer operations
- The read-time Occurrence projection
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID


PATTERN_DAILY = 'daily'
PATTERN_WEEKLY = 'weekly'
PATTERN_BIWEEKLY = 'biweekly'
PATTERN_MONTHLY = 'monthly'
PATTERN_CUSTOM = 'custom'

RECURRENCE_PATTERNS = (
    PATTERN_DAILY,
    PATTERN_WEEKLY,
    PATTERN_BIWEEKLY,
    PATTERN_MONTHLY,
    PATTERN_CUSTOM,
)

# Step size in days for the fixed-interval patterns (monthly is calendar based).
INTERVAL_DAYS = {
    PATTERN_DAILY: 1,
    PATTERN_WEEKLY: 7,
    PATTERN_BIWEEKLY: 14,
}

# Weekday numbering used by custom patterns: 0=Sunday .. 6=Saturday.
WEEKDAY_NAMES = (
    'Sunday',
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
)

EXCEPTION_MODIFIED = 'modified'
EXCEPTION_CANCELLED = 'cancelled'

BOOKING_CONFIRMED = 'confirmed'
BOOKING_PENDING = 'pending'
BOOKING_CANCELLED = 'cancelled'

PAYMENT_PAID = 'paid'
PAYMENT_UNPAID = 'unpaid'
PAYMENT_REFUNDED = 'refunded'

SessionDateKey = Tuple[UUID, date]


@dataclass(frozen=True)
class RecurrenceRule:
    """Everything the expander needs to know about one series."""
    anchor: datetime
    pattern: str
    end_date: Optional[date] = None
    weekdays: Tuple[int, ...] = ()


@dataclass
class Occurrence:
    """
    One concrete, bookable class instance for a query window.

    Built per request and never stored. original_date is the calendar date the
    occurrence had before any exception retimed it, and is the key bookings
    are counted against.
    """
    session_id: UUID
    start_time: datetime
    original_date: date
    is_recurring: bool = True
    is_exception: bool = False
    studio_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    class_name: str = ''
    duration_minutes: int = 0
    capacity: int = 0
    bookings_count: int = 0

    @property
    def key(self) -> SessionDateKey:
        return (self.session_id, self.original_date)

    @property
    def spots_left(self) -> int:
        return max(self.capacity - self.bookings_count, 0)

    @property
    def is_full(self) -> bool:
        return self.bookings_count >= self.capacity


@dataclass
class ClientIdentity:
    """DTO for the person a booking is made for."""
    name: str
    email: str
    phone: str = ''


@dataclass
class PaymentDetails:
    """DTO for the status and payment fields of a new booking."""
    status: str = BOOKING_CONFIRMED
    payment_status: str = PAYMENT_UNPAID
    amount: Decimal = Decimal('0')


@dataclass
class SeriesUpdateData:
    """DTO for "edit entire series" operations."""
    start_time: Optional[datetime] = None
    recurrence_pattern: Optional[str] = None
    recurrence_end_date: Optional[date] = None
    custom_weekdays: Optional[List[int]] = field(default=None)
    clear_end_date: bool = False


@dataclass
class ContactUpdateData:
    """DTO for booking contact/payment edits."""
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    payment_status: Optional[str] = None
    amount: Optional[Decimal] = None
