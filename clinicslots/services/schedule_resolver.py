"""
Resolution of the authoritative working windows and co-work set for a request.

Precedence, applied once per request:

1. An explicit calendar: that calendar's windows; co-work set is every
   clinician actively assigned to it.
2. Otherwise, if the clinician belongs to calendars: the windows of all of
   them, each kept as a separate window; co-work set is the union of their
   members.
3. Otherwise (legacy mode): the clinician's own schedule rows; co-work set is
   the clinician alone.

Branches never mix. Membership alone decides between 2 and 3.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..domain.exceptions import InvalidWindowError
from ..domain.models import (
    ResolvedSchedule,
    ScheduleRow,
    ScheduleSource,
    WindowsByWeekday,
    WorkingWindow,
)
from .stores import CalendarMembershipStoreProtocol, ScheduleStoreProtocol

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """Turns (clinician, optional calendar) into a ResolvedSchedule."""

    def __init__(
        self,
        schedule_store: ScheduleStoreProtocol,
        membership_store: CalendarMembershipStoreProtocol,
    ) -> None:
        self._schedule_store = schedule_store
        self._membership_store = membership_store

    def resolve(self, clinician_id: str, calendar_id: Optional[str] = None) -> ResolvedSchedule:
        if calendar_id:
            return self._resolve_calendars(
                clinician_id, [calendar_id], ScheduleSource.EXPLICIT_CALENDAR
            )

        calendar_ids = _unique(
            self._membership_store.list_clinician_calendars(clinician_id),
            what=f"calendar membership of clinician {clinician_id}",
        )
        if calendar_ids:
            return self._resolve_calendars(
                clinician_id, calendar_ids, ScheduleSource.AGGREGATED_CALENDARS
            )

        rows = self._schedule_store.list_clinician_windows(clinician_id)
        resolved = ResolvedSchedule(
            source=ScheduleSource.LEGACY_PER_CLINICIAN,
            clinician_id=clinician_id,
            windows_by_weekday=build_windows_by_weekday(rows),
            co_work_clinician_ids=(clinician_id,),
        )
        _log_resolution(resolved)
        return resolved

    def _resolve_calendars(
        self,
        clinician_id: str,
        calendar_ids: Sequence[str],
        source: ScheduleSource,
    ) -> ResolvedSchedule:
        rows = self._schedule_store.list_calendar_windows(calendar_ids)
        groups = self._membership_store.list_calendar_groups(calendar_ids)

        co_work: List[str] = [clinician_id]
        for group in groups:
            co_work.extend(sorted(group.clinician_ids))

        resolved = ResolvedSchedule(
            source=source,
            clinician_id=clinician_id,
            windows_by_weekday=build_windows_by_weekday(rows),
            co_work_clinician_ids=_unique(co_work),
            calendar_ids=tuple(calendar_ids),
        )
        _log_resolution(resolved)
        return resolved


def build_windows_by_weekday(rows: Iterable[ScheduleRow]) -> WindowsByWeekday:
    """
    Validate raw rows and group them by weekday, ordered by start time.

    Malformed rows are skipped with a warning; one bad row must not make a
    clinician unbookable.
    """
    grouped: Dict[int, List[WorkingWindow]] = defaultdict(list)

    for row in rows:
        try:
            window = WorkingWindow.from_row(row)
        except InvalidWindowError as exc:
            logger.warning("Skipping invalid schedule row %r: %s", row, exc)
            continue
        grouped[window.weekday].append(window)

    return {
        weekday: tuple(sorted(windows, key=lambda w: (w.start_time, w.end_time)))
        for weekday, windows in sorted(grouped.items())
    }


def _unique(ids: Iterable[str], what: str = "") -> Tuple[str, ...]:
    seen: List[str] = []
    duplicates = 0
    for identifier in ids:
        if identifier in seen:
            duplicates += 1
            continue
        seen.append(identifier)

    if duplicates and what:
        logger.warning("Collapsed %d duplicate entries in %s", duplicates, what)

    return tuple(seen)


def _log_resolution(resolved: ResolvedSchedule) -> None:
    logger.debug(
        "Resolved schedule for %s: source=%s calendars=%s windows=%d co-work=%d",
        resolved.clinician_id,
        resolved.source.value,
        list(resolved.calendar_ids),
        resolved.window_count,
        len(resolved.co_work_clinician_ids),
    )
