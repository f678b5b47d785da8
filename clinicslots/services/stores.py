"""
Protocols describing the data-access collaborators the service layer needs.

Implementations raise ``DataSourceError`` when a fetch fails; they must never
answer a failed fetch with an empty list.
"""

from __future__ import annotations

from datetime import date
from typing import List, Protocol, Sequence

from ..domain.models import AppointmentRecord, CalendarGroup, ScheduleRow


class ScheduleStoreProtocol(Protocol):
    """Working-hour rows per calendar or per clinician."""

    def list_calendar_windows(self, calendar_ids: Sequence[str]) -> List[ScheduleRow]:
        """Return the schedule rows of the given calendars."""

    def list_clinician_windows(self, clinician_id: str) -> List[ScheduleRow]:
        """Return the clinician's own (legacy) schedule rows."""


class CalendarMembershipStoreProtocol(Protocol):
    """Which clinicians share which calendars."""

    def list_clinician_calendars(self, clinician_id: str) -> List[str]:
        """Return ids of calendars the clinician is actively assigned to."""

    def list_calendar_groups(self, calendar_ids: Sequence[str]) -> List[CalendarGroup]:
        """Return the active members of each calendar."""


class AppointmentStoreProtocol(Protocol):
    """Booked appointments."""

    def list_appointments(
        self,
        clinician_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[AppointmentRecord]:
        """Return non-cancelled appointments with start_date <= date < end_date."""
