"""
Recurrence expansion.

Turns one recurring series into the concrete start instants that fall inside
a query window. Nothing here touches the database: the input is a
RecurrenceRule and two datetimes, the output a sorted list of datetimes.

All stepping happens on naive wall-clock values in the anchor's time zone and
the zone is attached again at the end, so a 09:00 class stays at 09:00 on
both sides of a DST change.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from .exceptions import RecurrenceConfigurationError
from .types import (
    INTERVAL_DAYS,
    PATTERN_CUSTOM,
    PATTERN_MONTHLY,
    RECURRENCE_PATTERNS,
    RecurrenceRule,
)


def expand(
    rule: RecurrenceRule,
    window_start: datetime,
    window_end: datetime
) -> List[datetime]:
    """
    Expand a recurrence rule over [window_start, window_end].

    Args:
        rule: RecurrenceRule of the series
        window_start: Inclusive lower bound
        window_end: Inclusive upper bound

    Returns:
        Strictly increasing list of start instants, each at the anchor's
        time of day

    Raises:
        RecurrenceConfigurationError: If the pattern or weekday set is invalid
    """
    validate_rule(rule)

    tz = rule.anchor.tzinfo
    anchor = _wall_clock(rule.anchor, tz)
    start = _wall_clock(window_start, tz)
    end = _wall_clock(window_end, tz)

    if start > end:
        return []

    cutoff = None
    if rule.end_date is not None:
        cutoff = datetime.combine(rule.end_date, anchor.time())

    if rule.pattern == PATTERN_CUSTOM:
        candidates = _expand_custom(anchor, start, end, cutoff, rule.weekdays)
    else:
        candidates = _expand_fixed(rule.pattern, anchor, start, end, cutoff)

    lower = _localize(start, tz)
    upper = _localize(end, tz)
    return [
        instant
        for instant in (_localize(value, tz) for value in candidates)
        if lower <= instant <= upper
    ]


def occurrence_on(rule: RecurrenceRule, day: date) -> Optional[datetime]:
    """Return the series' instant on a calendar day, or None if it has none."""
    day_start = datetime.combine(day, time.min)
    day_end = datetime.combine(day, time.max)
    instants = expand(rule, day_start, day_end)
    return instants[0] if instants else None


def validate_rule(rule: RecurrenceRule) -> None:
    """Raise RecurrenceConfigurationError for patterns we cannot expand."""
    if rule.pattern not in RECURRENCE_PATTERNS:
        raise RecurrenceConfigurationError(
            f"Unknown recurrence pattern: {rule.pattern!r}",
            details={'pattern': rule.pattern},
        )

    if rule.pattern == PATTERN_CUSTOM:
        invalid = [day for day in rule.weekdays if not 0 <= day <= 6]
        if invalid:
            raise RecurrenceConfigurationError(
                "Custom weekdays must be between 0 (Sunday) and 6 (Saturday)",
                details={'weekdays': list(rule.weekdays)},
            )


def sunday_based_weekday(day: date) -> int:
    """Weekday number with 0=Sunday, as stored on custom series."""
    return (day.weekday() + 1) % 7


def _expand_fixed(
    pattern: str,
    anchor: datetime,
    start: datetime,
    end: datetime,
    cutoff: Optional[datetime]
) -> Iterator[datetime]:
    step = _step_function(pattern, anchor)
    index = _first_index(pattern, anchor, start)

    current = step(index)
    while current < start:
        index += 1
        current = step(index)

    while current <= end and (cutoff is None or current <= cutoff):
        yield current
        index += 1
        current = step(index)


def _step_function(pattern: str, anchor: datetime) -> Callable[[int], datetime]:
    """Map an occurrence index to its wall-clock instant."""
    if pattern == PATTERN_MONTHLY:
        # Counted from the anchor each time so a 31st does not drift to the 28th.
        return lambda index: anchor + relativedelta(months=index)

    interval = timedelta(days=INTERVAL_DAYS[pattern])
    return lambda index: anchor + interval * index


def _first_index(pattern: str, anchor: datetime, start: datetime) -> int:
    """Closed-form index of the last occurrence at or before the window start."""
    if start <= anchor:
        return 0

    if pattern == PATTERN_MONTHLY:
        months = (start.year - anchor.year) * 12 + (start.month - anchor.month)
        return max(months - 1, 0)

    return (start - anchor) // timedelta(days=INTERVAL_DAYS[pattern])


def _expand_custom(
    anchor: datetime,
    start: datetime,
    end: datetime,
    cutoff: Optional[datetime],
    weekdays
) -> Iterator[datetime]:
    if not weekdays:
        return

    wanted = set(weekdays)
    time_of_day = anchor.time()
    current_date = start.date()

    while current_date <= end.date():
        if sunday_based_weekday(current_date) in wanted:
            instant = datetime.combine(current_date, time_of_day)
            if cutoff is not None and instant > cutoff:
                return
            if instant >= anchor and start <= instant <= end:
                yield instant
        current_date += timedelta(days=1)


def _wall_clock(value: datetime, tz: Optional[tzinfo]) -> datetime:
    """Naive wall-clock representation of value in the anchor's zone."""
    if value.tzinfo is None:
        return value

    if tz is None:
        raise RecurrenceConfigurationError(
            "A series with a naive anchor cannot be expanded over an aware window"
        )

    return value.astimezone(tz).replace(tzinfo=None)


def _localize(value: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        return value
    return value.replace(tzinfo=tz)
