"""
Month availability: which days can still fit an appointment of a given length.
"""

from datetime import date
from typing import Callable, List, Mapping, Optional, Sequence

from .intervals import compute_gaps, materialize_windows
from .models import DayResult, TimeRange, WindowsByWeekday, WorkingWindow
from .timezone import days_in_month, sunday_based_weekday


def evaluate_month(
    windows_by_weekday: WindowsByWeekday,
    occupied_by_date: Mapping[str, Sequence[TimeRange]],
    year: int,
    month: int,
    duration_minutes: int,
    timezone: str,
    on_day: Optional[Callable[[DayResult, Sequence[WorkingWindow], int], None]] = None
) -> List[DayResult]:
    """
    Evaluate every calendar day of a month.

    A day without windows is never bookable, whatever its appointment load.
    Otherwise each window is checked on its own and the day can fit the
    request as soon as one window has a gap of at least ``duration_minutes``.

    Args:
        windows_by_weekday: Working windows keyed by weekday (0=Sunday)
        occupied_by_date: Co-work occupied intervals keyed by "YYYY-MM-DD"
        year: Target year
        month: Target month (1-12)
        duration_minutes: Requested appointment length
        timezone: Clinic timezone used for the local calendar
        on_day: Optional callback receiving each result with the day's
            windows and appointment count (used for debug logging)

    Returns:
        One DayResult per day, ascending by date
    """
    results: List[DayResult] = []

    for day in days_in_month(year, month, timezone):
        date_key = day.format("YYYY-MM-DD")
        weekday = sunday_based_weekday(day)
        windows = windows_by_weekday.get(weekday, ())
        occupied = occupied_by_date.get(date_key, ())

        if not windows:
            result = DayResult(
                date=date_key,
                weekday=weekday,
                is_working_day=False,
                can_fit_requested_duration=False,
            )
        else:
            result = DayResult(
                date=date_key,
                weekday=weekday,
                is_working_day=True,
                can_fit_requested_duration=window_fits(
                    windows, occupied, day.date(), duration_minutes, timezone
                ),
            )

        if on_day is not None:
            on_day(result, windows, len(occupied))
        results.append(result)

    return results


def window_fits(
    windows: Sequence[WorkingWindow],
    occupied: Sequence[TimeRange],
    day: date,
    duration_minutes: int,
    timezone: str
) -> bool:
    """Return True if any single window has a gap of at least ``duration_minutes``."""
    for work in materialize_windows(windows, day, timezone):
        gaps = compute_gaps(work.start, work.end, occupied)
        if any(gap.duration_minutes >= duration_minutes for gap in gaps):
            return True

    return False
