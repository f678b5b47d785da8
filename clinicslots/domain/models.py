"""
Domain models for working windows, occupied intervals and availability results.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from pendulum import DateTime

from .exceptions import InvalidWindowError
from .timezone import parse_wall_time, to_instant

DEFAULT_APPOINTMENT_DURATION_MINUTES = 60


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and other.start < self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeRange(start=max(self.start, other.start), end=min(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


# An occupied interval is a time range blocked by a booked appointment.
OccupiedInterval = TimeRange


@dataclass(frozen=True)
class Gap:
    """A maximal free sub-interval of a working window."""
    start: DateTime
    end: DateTime
    duration_minutes: int


@dataclass(frozen=True)
class WorkingWindow:
    """
    A bookable wall-clock range on a weekday.

    Weekdays are numbered 0=Sunday ... 6=Saturday.
    """
    weekday: int
    start_time: time
    end_time: time

    def __post_init__(self):
        if not 0 <= self.weekday <= 6:
            raise InvalidWindowError(f"Weekday must be between 0 and 6, got {self.weekday}")
        if self.start_time >= self.end_time:
            raise InvalidWindowError(
                f"Window start {self.start_time:%H:%M} must be before end {self.end_time:%H:%M}"
            )

    @classmethod
    def from_row(cls, row: "ScheduleRow") -> "WorkingWindow":
        """Build a window from a raw schedule row, raising InvalidWindowError if malformed."""
        if not isinstance(row.weekday, int) or isinstance(row.weekday, bool):
            raise InvalidWindowError(f"Weekday must be an integer, got {row.weekday!r}")
        try:
            start_time = parse_wall_time(row.start_time)
            end_time = parse_wall_time(row.end_time)
        except ValueError as exc:
            raise InvalidWindowError(str(exc)) from exc
        return cls(weekday=row.weekday, start_time=start_time, end_time=end_time)

    def on_date(self, day: date, tz: str) -> TimeRange:
        """Materialize the window on a concrete date as an absolute time range."""
        return TimeRange(
            start=to_instant(day, self.start_time, tz),
            end=to_instant(day, self.end_time, tz),
        )

    def __str__(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass(frozen=True)
class ScheduleRow:
    """Raw schedule row as stored upstream; not validated."""
    weekday: int
    start_time: str
    end_time: str


@dataclass(frozen=True)
class CalendarGroup:
    """Clinicians sharing one calendar's working windows."""
    calendar_id: str
    clinician_ids: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class AppointmentRecord:
    """Raw booked appointment row."""
    date: str
    time: str
    duration_minutes: Optional[int] = DEFAULT_APPOINTMENT_DURATION_MINUTES
    status: str = ""


class ScheduleSource(str, Enum):
    """Where the working windows of a request come from."""
    EXPLICIT_CALENDAR = "explicit_calendar"
    AGGREGATED_CALENDARS = "aggregated_calendars"
    LEGACY_PER_CLINICIAN = "legacy_per_clinician"


WindowsByWeekday = Dict[int, Tuple[WorkingWindow, ...]]


@dataclass(frozen=True)
class ResolvedSchedule:
    """Authoritative working windows and co-work set for one request."""
    source: ScheduleSource
    clinician_id: str
    windows_by_weekday: WindowsByWeekday
    co_work_clinician_ids: Tuple[str, ...]
    calendar_ids: Tuple[str, ...] = field(default_factory=tuple)

    def windows_for(self, weekday: int) -> Tuple[WorkingWindow, ...]:
        return self.windows_by_weekday.get(weekday, ())

    @property
    def window_count(self) -> int:
        return sum(len(windows) for windows in self.windows_by_weekday.values())


@dataclass(frozen=True)
class DayResult:
    """Availability verdict for one calendar day."""
    date: str
    weekday: int
    is_working_day: bool
    can_fit_requested_duration: bool
