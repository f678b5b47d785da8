"""
Tests for schedule resolution and co-work expansion.
"""

import logging
from datetime import time

import pytest

from clinicslots.domain.exceptions import DataSourceError
from clinicslots.domain.models import ScheduleRow, ScheduleSource
from clinicslots.services.schedule_resolver import ScheduleResolver, build_windows_by_weekday

from stubs import CAL_AFTERNOON, CAL_MORNING, DOC_A, DOC_B, DOC_C, StubClinicStore


def _store(**kwargs) -> StubClinicStore:
    defaults = dict(
        memberships=[
            (CAL_MORNING, DOC_A),
            (CAL_MORNING, DOC_B),
            (CAL_AFTERNOON, DOC_A),
        ],
        calendar_rows={
            CAL_MORNING: [ScheduleRow(1, "08:00:00", "12:00:00")],
            CAL_AFTERNOON: [ScheduleRow(1, "14:00:00", "17:00:00"), ScheduleRow(2, "15:00:00", "19:00:00")],
        },
        clinician_rows={
            DOC_A: [ScheduleRow(6, "08:00:00", "12:00:00")],
            DOC_C: [ScheduleRow(3, "09:00:00", "13:00:00")],
        },
    )
    defaults.update(kwargs)
    return StubClinicStore(**defaults)


def _resolver(store: StubClinicStore) -> ScheduleResolver:
    return ScheduleResolver(schedule_store=store, membership_store=store)


class TestScheduleResolver:
    """Tests for ScheduleResolver.resolve."""

    def test_explicit_calendar_uses_only_that_calendar(self):
        store = _store()

        schedule = _resolver(store).resolve(DOC_B, CAL_MORNING)

        assert schedule.source is ScheduleSource.EXPLICIT_CALENDAR
        assert schedule.calendar_ids == (CAL_MORNING,)
        assert [str(w) for w in schedule.windows_for(1)] == ["08:00-12:00"]
        assert schedule.windows_for(2) == ()
        assert set(schedule.co_work_clinician_ids) == {DOC_A, DOC_B}
        assert store.called("list_clinician_calendars") == []
        assert store.called("list_clinician_windows") == []

    def test_requester_is_always_in_co_work_set(self):
        """Test that a clinician outside the explicit calendar still blocks on their own bookings."""
        schedule = _resolver(_store()).resolve(DOC_C, CAL_MORNING)

        assert schedule.co_work_clinician_ids[0] == DOC_C
        assert set(schedule.co_work_clinician_ids) == {DOC_A, DOC_B, DOC_C}

    def test_aggregates_all_member_calendars(self):
        """Test that windows of every calendar are combined but kept separate."""
        store = _store()

        schedule = _resolver(store).resolve(DOC_A)

        assert schedule.source is ScheduleSource.AGGREGATED_CALENDARS
        assert schedule.calendar_ids == (CAL_MORNING, CAL_AFTERNOON)
        assert [str(w) for w in schedule.windows_for(1)] == ["08:00-12:00", "14:00-17:00"]
        assert [str(w) for w in schedule.windows_for(2)] == ["15:00-19:00"]
        assert schedule.co_work_clinician_ids[0] == DOC_A
        assert set(schedule.co_work_clinician_ids) == {DOC_A, DOC_B}
        assert len(schedule.co_work_clinician_ids) == 2

    def test_calendar_membership_ignores_legacy_rows(self):
        """Test that a calendar member's own schedule rows are never mixed in."""
        store = _store()

        schedule = _resolver(store).resolve(DOC_A)

        assert schedule.windows_for(6) == ()
        assert store.called("list_clinician_windows") == []

    def test_member_of_calendar_without_windows_gets_no_windows(self):
        store = _store(calendar_rows={})

        schedule = _resolver(store).resolve(DOC_A)

        assert schedule.source is ScheduleSource.AGGREGATED_CALENDARS
        assert schedule.windows_by_weekday == {}

    def test_legacy_mode_without_memberships(self):
        store = _store()

        schedule = _resolver(store).resolve(DOC_C)

        assert schedule.source is ScheduleSource.LEGACY_PER_CLINICIAN
        assert schedule.co_work_clinician_ids == (DOC_C,)
        assert schedule.calendar_ids == ()
        assert [str(w) for w in schedule.windows_for(3)] == ["09:00-13:00"]

    def test_duplicate_memberships_are_collapsed(self, caplog):
        store = _store(memberships=[(CAL_MORNING, DOC_A), (CAL_MORNING, DOC_A)])

        with caplog.at_level(logging.WARNING):
            schedule = _resolver(store).resolve(DOC_A)

        assert schedule.calendar_ids == (CAL_MORNING,)
        assert schedule.co_work_clinician_ids == (DOC_A,)
        assert "duplicate" in caplog.text

    def test_store_failure_propagates(self):
        store = _store(failing=["list_clinician_calendars"])

        with pytest.raises(DataSourceError):
            _resolver(store).resolve(DOC_A)


class TestBuildWindowsByWeekday:
    """Tests for build_windows_by_weekday."""

    def test_invalid_rows_are_skipped(self, caplog):
        rows = [
            ScheduleRow(1, "12:00", "08:00"),
            ScheduleRow(1, "10:00", "10:00"),
            ScheduleRow(9, "08:00", "09:00"),
            ScheduleRow(1, "bad", "09:00"),
            ScheduleRow(1, "14:00", "17:00"),
        ]

        with caplog.at_level(logging.WARNING):
            windows = build_windows_by_weekday(rows)

        assert list(windows) == [1]
        assert len(windows[1]) == 1
        assert windows[1][0].start_time == time(14, 0)
        assert caplog.text.count("Skipping invalid schedule row") == 4

    def test_windows_sorted_by_start(self):
        rows = [ScheduleRow(1, "14:00", "17:00"), ScheduleRow(1, "08:00", "12:00")]

        windows = build_windows_by_weekday(rows)

        assert [str(w) for w in windows[1]] == ["08:00-12:00", "14:00-17:00"]
