"""
Request and response contracts for the two availability operations.

Both transports (query parameters and JSON bodies) go through
``parse_request`` so malformed input is rejected before any store is hit.
"""

from __future__ import annotations

import uuid
from typing import Any, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.exceptions import FieldError, RequestValidationError
from ..domain.models import DayResult
from ..domain.timezone import parse_date, parse_month, validate_timezone

MIN_MONTH_DURATION = 1
MIN_SLOT_DURATION = 15
MAX_DURATION = 480
DEFAULT_SLOT_DURATION = 60

RequestT = TypeVar("RequestT", bound=BaseModel)


def _canonical_uuid(value: str, field_name: str) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValueError(f"{field_name} must be a valid UUID") from None


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _ClinicianRequest(BaseModel):
    """Fields shared by both requests."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    clinicianId: str = Field(validation_alias=AliasChoices("clinicianId", "doctorId"))
    calendarId: Optional[str] = None

    @field_validator("clinicianId")
    @classmethod
    def validate_clinician_id(cls, value: str) -> str:
        return _canonical_uuid(value, "clinicianId")

    @field_validator("calendarId", mode="before")
    @classmethod
    def blank_calendar_id(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("calendarId")
    @classmethod
    def validate_calendar_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _canonical_uuid(value, "calendarId")


class MonthAvailabilityRequest(_ClinicianRequest):
    """Which days of a month can still fit an appointment."""
    month: str
    durationMinutes: int = Field(ge=MIN_MONTH_DURATION, le=MAX_DURATION)
    timezone: Optional[str] = None  # None means the clinic timezone
    debug: bool = False

    @field_validator("month")
    @classmethod
    def validate_month(cls, value: str) -> str:
        parse_month(value)
        return value

    @field_validator("timezone", mode="before")
    @classmethod
    def blank_timezone(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("timezone")
    @classmethod
    def validate_tz(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return validate_timezone(value)

    @property
    def year_month(self) -> Tuple[int, int]:
        return parse_month(self.month)


class DaySlotsRequest(_ClinicianRequest):
    """Bookable start times on one day."""
    date: str
    durationMinutes: int = Field(
        default=DEFAULT_SLOT_DURATION, ge=MIN_SLOT_DURATION, le=MAX_DURATION
    )

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        parse_date(value)
        return value

    @property
    def day(self):
        return parse_date(self.date)


class DayAvailability(BaseModel):
    date: str
    weekday: int
    isWorkingDay: bool
    canFitRequestedDuration: bool

    @classmethod
    def from_result(cls, result: DayResult) -> "DayAvailability":
        return cls(
            date=result.date,
            weekday=result.weekday,
            isWorkingDay=result.is_working_day,
            canFitRequestedDuration=result.can_fit_requested_duration,
        )


class MonthAvailabilityResponse(BaseModel):
    clinicianId: str
    month: str
    durationMinutes: int
    timezone: str
    days: List[DayAvailability]


class DaySlotsResponse(BaseModel):
    slots: List[str]


def parse_request(model: Type[RequestT], raw: Any) -> RequestT:
    """
    Validate raw transport input into a request model.

    Raises:
        RequestValidationError: Listing every offending field
    """
    if not isinstance(raw, Mapping):
        raise RequestValidationError([FieldError(field="body", message="Expected a JSON object")])

    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise RequestValidationError(_field_errors(exc)) from exc


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "request"
        errors.append(FieldError(field=location, message=error.get("msg", "Invalid value")))
    return errors
