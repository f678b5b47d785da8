"""
Domain-specific exception hierarchy for the clinic availability engine.
"""

from dataclasses import dataclass
from typing import List, Sequence


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


@dataclass(frozen=True)
class FieldError:
    """A single offending input field."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class RequestValidationError(AvailabilityError):
    """Raised when request input is malformed. Never reaches a data source."""

    def __init__(self, errors: Sequence[FieldError]):
        self.errors: List[FieldError] = list(errors)
        fields = ", ".join(error.field for error in self.errors) or "request"
        super().__init__(f"Invalid input: {fields}")


class DataSourceError(AvailabilityError):
    """Raised when schedule, membership or appointment data cannot be fetched or parsed."""


class InvalidWindowError(AvailabilityError, ValueError):
    """Raised when a working window violates its invariants."""
