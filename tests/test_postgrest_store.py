"""
Tests for the Supabase (PostgREST) store, with a mocked HTTP session.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from clinicslots.adapters.postgrest_store import PostgrestStore
from clinicslots.domain.exceptions import DataSourceError
from clinicslots.domain.models import AppointmentRecord, CalendarGroup, ScheduleRow


def _store(payload):
    response = MagicMock()
    response.json.return_value = payload
    session = MagicMock()
    session.get.return_value = response
    return PostgrestStore("https://clinic.supabase.co/", "service-key", timeout=5, session=session), session


class TestPostgrestStore:
    """Tests for PostgrestStore."""

    def test_clinician_windows_query(self):
        store, session = _store([
            {"day_of_week": 1, "start_time": "08:00:00", "end_time": "12:00:00"},
        ])

        rows = store.list_clinician_windows("doc-1")

        assert rows == [ScheduleRow(weekday=1, start_time="08:00:00", end_time="12:00:00")]
        args, kwargs = session.get.call_args
        assert args[0] == "https://clinic.supabase.co/rest/v1/doctor_schedules"
        assert ("doctor_id", "eq.doc-1") in kwargs["params"]
        assert kwargs["headers"]["apikey"] == "service-key"
        assert kwargs["headers"]["Authorization"] == "Bearer service-key"
        assert kwargs["timeout"] == 5

    def test_schedule_rows_without_weekday_are_skipped(self):
        store, _ = _store([
            {"day_of_week": None, "start_time": "08:00:00", "end_time": "12:00:00"},
            {"day_of_week": "2", "start_time": "08:00:00", "end_time": "12:00:00"},
        ])

        rows = store.list_calendar_windows(["cal-1"])

        assert rows == [ScheduleRow(weekday=2, start_time="08:00:00", end_time="12:00:00")]

    def test_calendar_windows_use_in_filter(self):
        store, session = _store([])

        store.list_calendar_windows(["cal-1", "cal-2"])

        _, kwargs = session.get.call_args
        assert ("calendar_id", "in.(cal-1,cal-2)") in kwargs["params"]

    def test_empty_id_lists_skip_the_request(self):
        store, session = _store([])

        assert store.list_calendar_windows([]) == []
        assert store.list_calendar_groups([]) == []
        assert store.list_appointments([], date(2024, 11, 1), date(2024, 12, 1)) == []
        session.get.assert_not_called()

    def test_clinician_calendars_only_active(self):
        store, session = _store([{"calendar_id": "cal-1"}, {"calendar_id": "cal-2"}])

        assert store.list_clinician_calendars("doc-1") == ["cal-1", "cal-2"]
        _, kwargs = session.get.call_args
        assert ("is_active", "eq.true") in kwargs["params"]

    def test_calendar_groups_include_empty_calendars(self):
        store, _ = _store([
            {"calendar_id": "cal-1", "doctor_id": "doc-1"},
            {"calendar_id": "cal-1", "doctor_id": "doc-2"},
        ])

        groups = store.list_calendar_groups(["cal-1", "cal-2"])

        assert groups == [
            CalendarGroup(calendar_id="cal-1", clinician_ids=frozenset({"doc-1", "doc-2"})),
            CalendarGroup(calendar_id="cal-2", clinician_ids=frozenset()),
        ]

    def test_appointment_query_and_mapping(self):
        store, session = _store([
            {"date": "2024-11-25", "time": "09:00:00", "duration_minutes": 30, "status": "agendada"},
            {"date": "2024-11-26", "time": "10:00:00", "duration_minutes": None, "status": None},
        ])

        records = store.list_appointments(["doc-1", "doc-2"], date(2024, 11, 1), date(2024, 12, 1))

        assert records == [
            AppointmentRecord(date="2024-11-25", time="09:00:00", duration_minutes=30, status="agendada"),
            AppointmentRecord(date="2024-11-26", time="10:00:00", duration_minutes=None, status=""),
        ]
        _, kwargs = session.get.call_args
        params = kwargs["params"]
        assert ("doctor_id", "in.(doc-1,doc-2)") in params
        assert ("date", "gte.2024-11-01") in params
        assert ("date", "lt.2024-12-01") in params
        assert ("status", 'not.in.("cancelled","canceled","cancelada")') in params

    def test_malformed_appointment_row(self):
        store, _ = _store([{"time": "09:00:00"}])

        with pytest.raises(DataSourceError, match="Malformed appointment row"):
            store.list_appointments(["doc-1"], date(2024, 11, 1), date(2024, 12, 1))

    def test_transport_failure(self):
        store, session = _store([])
        session.get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(DataSourceError, match="Failed to fetch appointments"):
            store.list_appointments(["doc-1"], date(2024, 11, 1), date(2024, 12, 1))

    def test_http_error_status(self):
        store, session = _store([])
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("503")

        with pytest.raises(DataSourceError):
            store.list_clinician_calendars("doc-1")

    def test_invalid_json(self):
        store, session = _store([])
        session.get.return_value.json.side_effect = ValueError("Expecting value")

        with pytest.raises(DataSourceError, match="Invalid JSON"):
            store.list_clinician_windows("doc-1")

    def test_non_list_body(self):
        store, _ = _store({"message": "permission denied"})

        with pytest.raises(DataSourceError, match="expected a list"):
            store.list_clinician_windows("doc-1")
