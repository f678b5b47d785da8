"""
Time and timezone normalization.

Every conversion from a wall-clock date and time to an absolute instant goes
through this module, so the interval code only ever compares timezone-aware
pendulum DateTimes expressed in the clinic's zone.

Daylight-saving transitions are resolved here and nowhere else: a wall time
that is skipped by a spring-forward transition is moved forward past the gap,
and a wall time that occurs twice resolves to its second occurrence
(pendulum's ``fold=1``).
"""

import re
from datetime import date, time
from typing import List, Tuple

import pendulum
from pendulum import DateTime

DEFAULT_TIMEZONE = "America/Tegucigalpa"

_DST_FOLD = 1

MIN_YEAR = 1900
MAX_YEAR = 9998

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def validate_timezone(name: str) -> str:
    """Return ``name`` if it is a known IANA timezone, else raise ValueError."""
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError, OSError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc
    return name


def parse_wall_time(value: str) -> time:
    """
    Parse a wall-clock time string.

    Accepts "HH:MM" and "HH:MM:SS" (the database returns the latter).
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM or HH:MM:SS")

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return time(hour=hour, minute=minute, second=second)


def parse_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" string into a real calendar date."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    parsed = date.fromisoformat(value)
    _check_year(parsed.year)
    return parsed


def parse_month(value: str) -> Tuple[int, int]:
    """Parse a "YYYY-MM" string into ``(year, month)``."""
    match = _MONTH_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid month {value!r}, expected YYYY-MM")

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 01 and 12, got {match.group(2)}")
    _check_year(year)
    return year, month


def _check_year(year: int) -> None:
    # The day before and the month after must stay representable
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")


def to_instant(day: date, wall_time: time, tz: str) -> DateTime:
    """Combine a calendar date and a wall-clock time into an absolute instant."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall_time.hour,
        wall_time.minute,
        wall_time.second,
        tz=tz,
        fold=_DST_FOLD,
    )


def local_midnight(day: date, tz: str) -> DateTime:
    """Start of ``day`` on the clinic's wall clock."""
    return to_instant(day, time(0, 0), tz)


def days_in_month(year: int, month: int, tz: str) -> List[DateTime]:
    """
    Return every day of the month as a local-midnight DateTime.

    Iteration happens on the local calendar, so month boundaries follow the
    clinic's wall clock rather than UTC.
    """
    days: List[DateTime] = []
    current = pendulum.datetime(year, month, 1, tz=tz)

    while current.month == month:
        days.append(current)
        current = current.add(days=1)

    return days


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return the first day of the month and the first day of the next month."""
    first = date(year, month, 1)
    if month == 12:
        return first, date(year + 1, 1, 1)
    return first, date(year, month + 1, 1)


def sunday_based_weekday(day: date) -> int:
    """Weekday number with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


def format_wall_time(instant: DateTime, tz: str) -> str:
    """Format an instant as "HH:MM" on the clinic's wall clock."""
    return instant.in_timezone(tz).format("HH:mm")
