"""
Exception overlay.

Applies staff overrides to the instants a series expanded to. Exceptions are
matched on the calendar date the occurrence would have had without the
override, because a "modified" exception may move the time (or the day).
"""

from datetime import date, datetime
from typing import Dict, Iterable, List

from .exceptions import RecurrenceConfigurationError
from .types import EXCEPTION_CANCELLED, EXCEPTION_MODIFIED, Occurrence


def apply_exceptions(
    series_id,
    instants: Iterable[datetime],
    exceptions: Iterable
) -> List[Occurrence]:
    """
    Build the effective occurrences of one series.

    Args:
        series_id: Identity of the series the instants belong to
        instants: Output of recurrence.expand for the series
        exceptions: Exception records (anything with series_id, original_date,
                    exception_type and modified_start_time); records of other
                    series are skipped

    Returns:
        List of Occurrence in the order of the input instants, cancelled
        dates removed and modified dates retimed

    Raises:
        RecurrenceConfigurationError: If an exception record is malformed
    """
    by_date = _index_by_original_date(series_id, exceptions)

    occurrences = []
    for instant in instants:
        original_date = instant.date()
        exception = by_date.get(original_date)

        if exception is None:
            occurrences.append(Occurrence(
                session_id=series_id,
                start_time=instant,
                original_date=original_date,
            ))
        elif exception.exception_type == EXCEPTION_MODIFIED:
            occurrences.append(Occurrence(
                session_id=series_id,
                start_time=exception.modified_start_time,
                original_date=original_date,
                is_exception=True,
            ))

    return occurrences


def _index_by_original_date(series_id, exceptions: Iterable) -> Dict[date, object]:
    indexed = {}
    for exception in exceptions:
        if exception.series_id != series_id:
            continue

        _validate_exception(exception)

        if exception.original_date in indexed:
            raise RecurrenceConfigurationError(
                "More than one exception for the same occurrence date",
                details={
                    'series_id': str(series_id),
                    'original_date': exception.original_date.isoformat(),
                },
            )
        indexed[exception.original_date] = exception

    return indexed


def _validate_exception(exception) -> None:
    if exception.exception_type == EXCEPTION_CANCELLED:
        return

    if exception.exception_type != EXCEPTION_MODIFIED:
        raise RecurrenceConfigurationError(
            f"Unknown exception type: {exception.exception_type!r}"
        )

    if exception.modified_start_time is None:
        raise RecurrenceConfigurationError(
            "A modified exception needs a replacement start time",
            details={'original_date': exception.original_date.isoformat()},
        )
