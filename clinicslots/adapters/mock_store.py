"""
In-memory clinic data store for running without Supabase.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..domain.models import AppointmentRecord, CalendarGroup, ScheduleRow
from ..domain.occupancy import CANCELLED_STATUSES, is_cancelled

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_clinic_data.json"


class MockClinicStore:
    """
    Store that serves calendars, schedules and appointments from a JSON document.

    This store loads realistic clinic data from mock_clinic_data.json (or a
    dict passed in directly), for demos and tests that should not need a
    Supabase project.

    Document layout:
    {
        "calendars": [{"id", "members": [{"doctor_id", "is_active"}], "schedules": [...]}],
        "doctors": [{"id", "schedules": [{"day_of_week", "start_time", "end_time"}]}],
        "appointments": [{"doctor_id", "date", "time", "duration_minutes", "status"}]
    }
    """

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        data_file: Optional[Path] = None,
        cancelled_statuses: Sequence[str] = CANCELLED_STATUSES
    ):
        """
        Initialize the mock store.

        Args:
            data: Clinic document; takes precedence over ``data_file``
            data_file: JSON file to load, defaults to the bundled sample
            cancelled_statuses: Statuses excluded from appointment lookups
        """
        if data is None:
            data = self._load_data(data_file or DEFAULT_DATA_FILE)

        self.cancelled_statuses = tuple(cancelled_statuses)
        self.calendars: List[Dict[str, Any]] = list(data.get("calendars", []))
        self.doctors: List[Dict[str, Any]] = list(data.get("doctors", []))
        self.appointments: List[Dict[str, Any]] = list(data.get("appointments", []))

    @staticmethod
    def _load_data(data_file: Path) -> Dict[str, Any]:
        """Load mock clinic data from a JSON file."""
        if not data_file.exists():
            raise FileNotFoundError(f"Mock data file not found: {data_file}")

        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Mock data in {data_file} must be a JSON object")
        return data

    def list_clinician_calendars(self, clinician_id: str) -> List[str]:
        return [
            calendar["id"]
            for calendar in self.calendars
            for member in calendar.get("members", [])
            if member.get("doctor_id") == clinician_id and member.get("is_active", True)
        ]

    def list_calendar_groups(self, calendar_ids: Sequence[str]) -> List[CalendarGroup]:
        groups: List[CalendarGroup] = []

        for calendar in self.calendars:
            if calendar["id"] not in calendar_ids:
                continue
            active = frozenset(
                member["doctor_id"]
                for member in calendar.get("members", [])
                if member.get("is_active", True)
            )
            groups.append(CalendarGroup(calendar_id=calendar["id"], clinician_ids=active))

        return groups

    def list_calendar_windows(self, calendar_ids: Sequence[str]) -> List[ScheduleRow]:
        rows: List[ScheduleRow] = []
        for calendar in self.calendars:
            if calendar["id"] in calendar_ids:
                rows.extend(_schedule_rows(calendar.get("schedules", [])))
        return rows

    def list_clinician_windows(self, clinician_id: str) -> List[ScheduleRow]:
        for doctor in self.doctors:
            if doctor["id"] == clinician_id:
                return _schedule_rows(doctor.get("schedules", []))
        return []

    def list_appointments(
        self,
        clinician_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[AppointmentRecord]:
        start_key, end_key = start_date.isoformat(), end_date.isoformat()
        records: List[AppointmentRecord] = []

        for appointment in self.appointments:
            if appointment.get("doctor_id") not in clinician_ids:
                continue
            if not start_key <= appointment.get("date", "") < end_key:
                continue
            if is_cancelled(appointment.get("status", ""), self.cancelled_statuses):
                continue
            records.append(
                AppointmentRecord(
                    date=appointment["date"],
                    time=appointment["time"],
                    duration_minutes=appointment.get("duration_minutes"),
                    status=appointment.get("status", ""),
                )
            )

        logger.debug("Mock store returned %d appointment(s)", len(records))
        return records


def _schedule_rows(schedules: List[Dict[str, Any]]) -> List[ScheduleRow]:
    return [
        ScheduleRow(
            weekday=schedule["day_of_week"],
            start_time=schedule["start_time"],
            end_time=schedule["end_time"],
        )
        for schedule in schedules
    ]
