"""
Domain layer - Pure availability logic without external dependencies.
"""

from .day_evaluator import evaluate_month
from .intervals import compute_gaps, merge_intervals
from .models import (
    AppointmentRecord,
    CalendarGroup,
    DayResult,
    Gap,
    OccupiedInterval,
    ResolvedSchedule,
    ScheduleRow,
    ScheduleSource,
    TimeRange,
    WorkingWindow,
)
from .slot_generator import generate_slots

__all__ = [
    "AppointmentRecord",
    "CalendarGroup",
    "DayResult",
    "Gap",
    "OccupiedInterval",
    "ResolvedSchedule",
    "ScheduleRow",
    "ScheduleSource",
    "TimeRange",
    "WorkingWindow",
    "compute_gaps",
    "evaluate_month",
    "generate_slots",
    "merge_intervals",
]
