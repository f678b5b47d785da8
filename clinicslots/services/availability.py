"""
Application service answering the two availability questions.

The service does all I/O up front (schedule resolution, co-work expansion,
one appointment fetch) and then hands an immutable snapshot to the pure
domain functions. This keeps the API and CLI thin and lets tests plug in
simple store stubs.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Collection, Sequence

from ..domain.day_evaluator import evaluate_month
from ..domain.models import DayResult, WorkingWindow
from ..domain.occupancy import CANCELLED_STATUSES, group_by_local_date, occupied_intervals, overlapping
from ..domain.slot_generator import generate_slots
from ..domain.timezone import DEFAULT_TIMEZONE, local_midnight, month_bounds, sunday_based_weekday
from .schedule_resolver import ScheduleResolver
from .schemas import (
    DayAvailability,
    DaySlotsRequest,
    DaySlotsResponse,
    MonthAvailabilityRequest,
    MonthAvailabilityResponse,
)
from .stores import (
    AppointmentStoreProtocol,
    CalendarMembershipStoreProtocol,
    ScheduleStoreProtocol,
)

logger = logging.getLogger(__name__)

# Appointments dated the day before may run past midnight into the range
APPOINTMENT_LOOKBACK = timedelta(days=1)


class AvailabilityService:
    """
    Orchestrates data retrieval and availability computation.

    Store failures propagate as ``DataSourceError``; they are never turned
    into an empty appointment list.
    """

    def __init__(
        self,
        schedule_store: ScheduleStoreProtocol,
        membership_store: CalendarMembershipStoreProtocol,
        appointment_store: AppointmentStoreProtocol,
        *,
        clinic_timezone: str = DEFAULT_TIMEZONE,
        granularity_minutes: int = 30,
        cancelled_statuses: Collection[str] = CANCELLED_STATUSES,
    ) -> None:
        self._resolver = ScheduleResolver(schedule_store, membership_store)
        self._appointment_store = appointment_store
        self.clinic_timezone = clinic_timezone
        self.granularity_minutes = granularity_minutes
        self._cancelled_statuses = tuple(cancelled_statuses)

    @classmethod
    def from_store(cls, store, **kwargs) -> "AvailabilityService":
        """Build a service from one object implementing all three store protocols."""
        return cls(store, store, store, **kwargs)

    def month_availability(self, request: MonthAvailabilityRequest) -> MonthAvailabilityResponse:
        """Evaluate every day of the requested month."""
        timezone = request.timezone or self.clinic_timezone
        year, month = request.year_month

        logger.info(
            "Month availability: clinician=%s month=%s duration=%d tz=%s calendar=%s",
            request.clinicianId,
            request.month,
            request.durationMinutes,
            timezone,
            request.calendarId,
        )

        schedule = self._resolver.resolve(request.clinicianId, request.calendarId)

        first_day, next_month = month_bounds(year, month)
        records = self._appointment_store.list_appointments(
            schedule.co_work_clinician_ids, first_day - APPOINTMENT_LOOKBACK, next_month
        )
        intervals = overlapping(
            occupied_intervals(records, timezone, self._cancelled_statuses),
            local_midnight(first_day, timezone),
            local_midnight(next_month, timezone),
        )

        if request.debug:
            logger.info(
                "Schedule source=%s windows=%d co-work clinicians=%d appointments=%d",
                schedule.source.value,
                schedule.window_count,
                len(schedule.co_work_clinician_ids),
                len(intervals),
            )

        days = evaluate_month(
            schedule.windows_by_weekday,
            group_by_local_date(intervals, timezone),
            year,
            month,
            request.durationMinutes,
            timezone,
            on_day=_log_day if request.debug else None,
        )

        return MonthAvailabilityResponse(
            clinicianId=request.clinicianId,
            month=request.month,
            durationMinutes=request.durationMinutes,
            timezone=timezone,
            days=[DayAvailability.from_result(day) for day in days],
        )

    def day_slots(self, request: DaySlotsRequest) -> DaySlotsResponse:
        """List bookable start times on the requested day."""
        timezone = self.clinic_timezone
        day = request.day

        logger.info(
            "Day slots: clinician=%s date=%s duration=%d calendar=%s",
            request.clinicianId,
            request.date,
            request.durationMinutes,
            request.calendarId,
        )

        schedule = self._resolver.resolve(request.clinicianId, request.calendarId)

        if not schedule.windows_for(sunday_based_weekday(day)):
            # Non-working day: nothing to book, no appointments needed
            return DaySlotsResponse(slots=[])

        next_day = day + timedelta(days=1)
        records = self._appointment_store.list_appointments(
            schedule.co_work_clinician_ids, day - APPOINTMENT_LOOKBACK, next_day
        )
        intervals = overlapping(
            occupied_intervals(records, timezone, self._cancelled_statuses),
            local_midnight(day, timezone),
            local_midnight(next_day, timezone),
        )

        slots = generate_slots(
            schedule.windows_by_weekday,
            intervals,
            day,
            request.durationMinutes,
            self.granularity_minutes,
            timezone,
        )

        logger.debug("Found %d slot(s) on %s", len(slots), request.date)
        return DaySlotsResponse(slots=slots)


def _log_day(result: DayResult, windows: Sequence[WorkingWindow], appointment_count: int) -> None:
    if not result.is_working_day:
        logger.info("%s (dow=%d): no schedule", result.date, result.weekday)
        return

    logger.info(
        "%s (dow=%d): windows=[%s] appointments=%d canFit=%s",
        result.date,
        result.weekday,
        ", ".join(str(window) for window in windows),
        appointment_count,
        result.can_fit_requested_duration,
    )
