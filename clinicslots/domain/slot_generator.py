"""
Bookable start times for a single day.

Unlike the month evaluator this enumerates a fixed grid of candidate starts
and tests each against the occupied intervals, because callers need literal
start times rather than a yes/no verdict.
"""

from datetime import date
from typing import List, Sequence

from pendulum import DateTime

from .intervals import materialize_windows
from .models import TimeRange, WindowsByWeekday
from .timezone import format_wall_time, sunday_based_weekday


def generate_slots(
    windows_by_weekday: WindowsByWeekday,
    occupied: Sequence[TimeRange],
    day: date,
    duration_minutes: int,
    granularity_minutes: int,
    timezone: str
) -> List[str]:
    """
    List the "HH:MM" start times at which ``duration_minutes`` can be booked.

    For every window on the day's weekday, candidates start at the window
    start and advance by ``granularity_minutes`` while the whole appointment
    still ends inside the window. A candidate survives when it does not
    overlap any occupied interval; touching an interval is allowed.

    Returns:
        Sorted, deduplicated start times across all windows
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    if granularity_minutes <= 0:
        raise ValueError(f"granularity_minutes must be positive, got {granularity_minutes}")

    windows = windows_by_weekday.get(sunday_based_weekday(day), ())
    accepted: set[str] = set()

    for work in materialize_windows(windows, day, timezone):
        candidate = work.start

        while candidate.add(minutes=duration_minutes) <= work.end:
            if is_free(candidate, duration_minutes, occupied):
                accepted.add(format_wall_time(candidate, timezone))
            candidate = candidate.add(minutes=granularity_minutes)

    return sorted(accepted)


def is_free(start: DateTime, duration_minutes: int, occupied: Sequence[TimeRange]) -> bool:
    """Check that [start, start + duration) overlaps none of the occupied ranges."""
    candidate = TimeRange(start=start, end=start.add(minutes=duration_minutes))
    return not any(candidate.overlaps(busy) for busy in occupied)
