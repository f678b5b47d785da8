"""
Interval algebra over absolute time ranges.

Pure functions without any external dependencies (no API calls, no database,
no I/O). Both the month evaluator and the slot generator build on these.
"""

import logging
from datetime import date
from typing import Iterable, List

from pendulum import DateTime

from .models import Gap, TimeRange, WorkingWindow

logger = logging.getLogger(__name__)


def merge_intervals(intervals: Iterable[TimeRange]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent time ranges.

    The result is sorted, non-overlapping and non-touching.

    Example: [09:00-10:00, 10:00-11:00, 10:30-12:00] -> [09:00-12:00]
    """
    sorted_ranges = sorted(intervals, key=lambda r: (r.start, r.end))
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]

    for current in sorted_ranges[1:]:
        last = merged[-1]

        # Overlapping or adjacent (no gap): extend the last range
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = TimeRange(start=last.start, end=current.end)
        else:
            merged.append(current)

    return merged


def clip_to_window(
    intervals: Iterable[TimeRange],
    window_start: DateTime,
    window_end: DateTime
) -> List[TimeRange]:
    """
    Clip ranges to [window_start, window_end).

    Ranges entirely outside the window are dropped; ranges crossing a
    boundary are cut at the boundary.
    """
    clipped: List[TimeRange] = []

    for interval in intervals:
        start = max(interval.start, window_start)
        end = min(interval.end, window_end)
        if start < end:
            clipped.append(TimeRange(start=start, end=end))

    return clipped


def compute_gaps(
    window_start: DateTime,
    window_end: DateTime,
    occupied: Iterable[TimeRange]
) -> List[Gap]:
    """
    Subtract occupied ranges from a working window, yielding the free gaps.

    Example:
    Window: 08:00 - 12:00
    Occupied: [09:00-10:00, 09:30-10:30]
    Result: [08:00-09:00 (60), 10:30-12:00 (90)]
    """
    if window_start >= window_end:
        raise ValueError(f"Window start {window_start} must be before window end {window_end}")

    merged = merge_intervals(clip_to_window(occupied, window_start, window_end))

    gaps: List[Gap] = []
    cursor = window_start

    for busy in merged:
        if cursor < busy.start:
            gaps.append(_gap(cursor, busy.start))
        cursor = max(cursor, busy.end)

    if cursor < window_end:
        gaps.append(_gap(cursor, window_end))

    return gaps


def _gap(start: DateTime, end: DateTime) -> Gap:
    return Gap(
        start=start,
        end=end,
        duration_minutes=int((end - start).total_seconds() // 60),
    )


def materialize_windows(
    windows: Iterable[WorkingWindow],
    day: date,
    timezone: str
) -> List[TimeRange]:
    """
    Turn a day's working windows into absolute ranges.

    A window that collapses on this date (start no longer before end after
    timezone resolution) is skipped and logged instead of failing the day.
    """
    ranges: List[TimeRange] = []

    for window in windows:
        try:
            ranges.append(window.on_date(day, timezone))
        except ValueError as exc:
            logger.warning("Skipping window %s on %s: %s", window, day.isoformat(), exc)

    return ranges
