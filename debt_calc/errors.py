"""Exceptions raised by the debt calculator.

Every error derives from :class:`DebtCalcError`, itself a ``ValueError``, so
callers that only care about "bad input" can catch a single type. Validation
errors carry the name of the offending field.
"""

from __future__ import annotations

from datetime import datetime


class DebtCalcError(ValueError):
    """Base class for all debt calculator errors."""


class ValidationError(DebtCalcError):
    """Raised when a configuration field is missing or malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class SchemaError(ValidationError):
    """Wrong schema version or a malformed property/agreement/timeline/payment."""


class TimestampParseError(ValidationError):
    """A timestamp or date field could not be parsed."""


class EmptyTimelineError(SchemaError):
    """The reference rate timeline has no entries."""

    def __init__(self, field: str = "repoRateTimeline") -> None:
        super().__init__(field, "must contain at least one rate change")


class NoRateDefinedError(DebtCalcError):
    """A rate was requested for an instant before the first rate change."""

    def __init__(self, at: datetime) -> None:
        super().__init__(f"No reference rate defined for {at.isoformat()}")
        self.at = at


class InvalidAsOfError(DebtCalcError):
    """The requested ``as_of`` instant precedes the registration date."""

    def __init__(self, as_of: datetime, registration_start: datetime) -> None:
        super().__init__(
            f"as_of {as_of.isoformat()} cannot be before registration date "
            f"{registration_start.date().isoformat()}"
        )
        self.as_of = as_of
        self.registration_start = registration_start
