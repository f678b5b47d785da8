"""
Conversion of booked appointments into occupied intervals.
"""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Collection, Dict, Iterable, List

from pendulum import DateTime

from .exceptions import DataSourceError
from .models import DEFAULT_APPOINTMENT_DURATION_MINUTES, AppointmentRecord, TimeRange
from .timezone import parse_date, parse_wall_time, to_instant

logger = logging.getLogger(__name__)

CANCELLED_STATUSES = ("cancelled", "canceled", "cancelada")


def is_cancelled(status: str, cancelled_statuses: Collection[str] = CANCELLED_STATUSES) -> bool:
    return (status or "").strip().lower() in cancelled_statuses


def appointment_to_interval(record: AppointmentRecord, tz: str) -> TimeRange:
    """
    Convert one appointment into the absolute range it blocks.

    Raises:
        DataSourceError: If the row cannot be interpreted. A row we cannot read
            must not turn into free time.
    """
    duration = record.duration_minutes
    if duration is None:
        duration = DEFAULT_APPOINTMENT_DURATION_MINUTES

    try:
        start = to_instant(parse_date(record.date), parse_wall_time(record.time), tz)
    except ValueError as exc:
        raise DataSourceError(f"Malformed appointment row {record!r}: {exc}") from exc

    if duration <= 0:
        raise DataSourceError(f"Appointment on {record.date} {record.time} has non-positive duration {duration}")

    return TimeRange(start=start, end=start.add(minutes=duration))


def occupied_intervals(
    records: Iterable[AppointmentRecord],
    tz: str,
    cancelled_statuses: Collection[str] = CANCELLED_STATUSES
) -> List[TimeRange]:
    """Convert non-cancelled appointments into occupied intervals."""
    intervals: List[TimeRange] = []
    skipped = 0

    for record in records:
        if is_cancelled(record.status, cancelled_statuses):
            skipped += 1
            continue
        intervals.append(appointment_to_interval(record, tz))

    if skipped:
        logger.debug("Ignored %d cancelled appointment(s)", skipped)

    return intervals


def group_by_local_date(intervals: Iterable[TimeRange], tz: str) -> Dict[str, List[TimeRange]]:
    """
    Bucket intervals by every local date ("YYYY-MM-DD") they touch.

    An appointment running past midnight blocks time on both days.
    """
    grouped: Dict[str, List[TimeRange]] = defaultdict(list)

    for interval in intervals:
        first_day = interval.start.in_timezone(tz).date()
        last_day = interval.end.subtract(microseconds=1).in_timezone(tz).date()

        day = first_day
        while day <= last_day:
            grouped[day.isoformat()].append(interval)
            day = day + timedelta(days=1)

    return dict(grouped)


def overlapping(intervals: Iterable[TimeRange], start: DateTime, end: DateTime) -> List[TimeRange]:
    """Keep the intervals that overlap [start, end)."""
    return [interval for interval in intervals if interval.start < end and start < interval.end]
