"""
Service layer helpers that orchestrate data stores and domain logic.
"""

from .availability import AvailabilityService
from .schedule_resolver import ScheduleResolver
from .stores import (
    AppointmentStoreProtocol,
    CalendarMembershipStoreProtocol,
    ScheduleStoreProtocol,
)

__all__ = [
    "AppointmentStoreProtocol",
    "AvailabilityService",
    "CalendarMembershipStoreProtocol",
    "ScheduleResolver",
    "ScheduleStoreProtocol",
]
