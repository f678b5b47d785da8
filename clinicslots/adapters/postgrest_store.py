"""
Supabase (PostgREST) client implementing the schedule, membership and
appointment stores.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from ..domain.exceptions import DataSourceError
from ..domain.models import AppointmentRecord, CalendarGroup, ScheduleRow
from ..domain.occupancy import CANCELLED_STATUSES

logger = logging.getLogger(__name__)

Params = List[Tuple[str, str]]


class PostgrestStore:
    """
    Reads clinic data through the PostgREST API exposed by Supabase.

    Tables used:
    - calendar_doctors (calendar_id, doctor_id, is_active)
    - calendar_schedules (calendar_id, day_of_week, start_time, end_time)
    - doctor_schedules (doctor_id, day_of_week, start_time, end_time)
    - appointments (doctor_id, date, time, duration_minutes, status)
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 30.0,
        cancelled_statuses: Sequence[str] = CANCELLED_STATUSES,
        session: requests.Session | None = None
    ):
        """
        Initialize the PostgREST client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            service_key: Service role key (bypasses row level security)
            timeout: Per-request timeout in seconds
            cancelled_statuses: Statuses excluded from the appointment query
            session: Optional requests session (tests inject one)
        """
        self.base_url = base_url.rstrip("/") + self.REST_PATH
        self.timeout = timeout
        self.cancelled_statuses = tuple(cancelled_statuses)
        self.session = session or requests.Session()
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Accept": "application/json",
        }

    # Calendar membership

    def list_clinician_calendars(self, clinician_id: str) -> List[str]:
        rows = self._get(
            "calendar_doctors",
            [
                ("select", "calendar_id"),
                ("doctor_id", f"eq.{clinician_id}"),
                ("is_active", "eq.true"),
            ],
        )
        try:
            return [str(row["calendar_id"]) for row in rows]
        except (KeyError, TypeError) as exc:
            raise DataSourceError(f"Malformed calendar_doctors row: {exc}") from exc

    def list_calendar_groups(self, calendar_ids: Sequence[str]) -> List[CalendarGroup]:
        if not calendar_ids:
            return []

        rows = self._get(
            "calendar_doctors",
            [
                ("select", "calendar_id,doctor_id"),
                ("calendar_id", _in_filter(calendar_ids)),
                ("is_active", "eq.true"),
            ],
        )

        members: Dict[str, set] = {str(calendar_id): set() for calendar_id in calendar_ids}
        try:
            for row in rows:
                members.setdefault(str(row["calendar_id"]), set()).add(str(row["doctor_id"]))
        except (KeyError, TypeError) as exc:
            raise DataSourceError(f"Malformed calendar_doctors row: {exc}") from exc

        return [
            CalendarGroup(calendar_id=calendar_id, clinician_ids=frozenset(clinicians))
            for calendar_id, clinicians in members.items()
        ]

    # Schedules

    def list_calendar_windows(self, calendar_ids: Sequence[str]) -> List[ScheduleRow]:
        if not calendar_ids:
            return []

        rows = self._get(
            "calendar_schedules",
            [
                ("select", "day_of_week,start_time,end_time"),
                ("calendar_id", _in_filter(calendar_ids)),
            ],
        )
        return _schedule_rows(rows)

    def list_clinician_windows(self, clinician_id: str) -> List[ScheduleRow]:
        rows = self._get(
            "doctor_schedules",
            [
                ("select", "day_of_week,start_time,end_time"),
                ("doctor_id", f"eq.{clinician_id}"),
            ],
        )
        return _schedule_rows(rows)

    # Appointments

    def list_appointments(
        self,
        clinician_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[AppointmentRecord]:
        if not clinician_ids:
            return []

        params: Params = [
            ("select", "date,time,duration_minutes,status"),
            ("doctor_id", _in_filter(clinician_ids)),
            ("date", f"gte.{start_date.isoformat()}"),
            ("date", f"lt.{end_date.isoformat()}"),
        ]
        if self.cancelled_statuses:
            quoted = ",".join(f'"{status}"' for status in self.cancelled_statuses)
            params.append(("status", f"not.in.({quoted})"))

        rows = self._get("appointments", params)

        try:
            return [
                AppointmentRecord(
                    date=str(row["date"]),
                    time=str(row["time"]),
                    duration_minutes=_optional_int(row.get("duration_minutes")),
                    status=str(row.get("status") or ""),
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"Malformed appointment row: {exc}") from exc

    def _get(self, table: str, params: Params) -> List[Dict[str, Any]]:
        """
        Run a GET against a table.

        Raises:
            DataSourceError: On transport failure, non-2xx status or a body
                that is not a JSON array
        """
        url = f"{self.base_url}/{table}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            logger.error("Error fetching %s: %s", table, e)
            raise DataSourceError(f"Failed to fetch {table}: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from {table}: {e}") from e

        if not isinstance(data, list):
            raise DataSourceError(f"Unexpected response from {table}: expected a list")

        logger.debug("Fetched %d row(s) from %s", len(data), table)
        return data


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _in_filter(values: Iterable[str]) -> str:
    return "in.(" + ",".join(str(value) for value in values) + ")"


def _schedule_rows(rows: Iterable[Dict[str, Any]]) -> List[ScheduleRow]:
    """Map raw rows to ScheduleRow; validation happens in the resolver."""
    schedule_rows: List[ScheduleRow] = []

    for row in rows:
        try:
            weekday = int(row["day_of_week"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping schedule row without a usable day_of_week: %r", row)
            continue
        schedule_rows.append(
            ScheduleRow(
                weekday=weekday,
                start_time=str(row.get("start_time") or ""),
                end_time=str(row.get("end_time") or ""),
            )
        )

    return schedule_rows
