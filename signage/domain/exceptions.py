"""Centralized exception hierarchy for the signage scheduler.

All domain and service exceptions inherit from :class:`SignageError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``signage/utils/http.safe_route``) maps
these to the correct HTTP status codes automatically.

Hierarchy
---------
::

    SignageError (base: maps to 500)
    ├── ValidationError               (400: bad input from caller)
    │   ├── MalformedInputError       (400: unparseable date/time/weekday)
    │   └── ScheduleValidationError   (422: aggregated field errors)
    │       └── ScheduleConflictError (409: overlaps an active schedule)
    ├── NotFoundError                 (404: entity does not exist)
    ├── ConflictError                 (409: duplicate / state conflict)
    ├── ServiceError                  (500: business-logic failure)
    │   └── RepositoryError           (500: database / persistence)
    └── ConfigurationError            (500: missing / invalid config)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SignageError(Exception):
    """Base exception for all signage scheduler errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging and API error bodies.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(SignageError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(SignageError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(SignageError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(SignageError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ConfigurationError(SignageError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500


# ── Schedule validation ──────────────────────────────────────────────


class ValidationCode(str, Enum):
    """Kinds of schedule validation failure."""

    MALFORMED_INPUT = "malformed_input"
    DURATION_TOO_SHORT = "duration_too_short"
    DURATION_TOO_LONG = "duration_too_long"
    PRIORITY_OUT_OF_RANGE = "priority_out_of_range"
    REQUIRED = "required"
    NOT_IN_FUTURE = "not_in_future"
    INVALID_ORDERING = "invalid_ordering"
    SCHEDULE_CONFLICT = "schedule_conflict"
    EMPTY_RECURRENCE = "empty_recurrence"
    INVALID_REFERENCE = "invalid_reference"
    TOO_LONG = "too_long"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class FieldError:
    """A single violated rule, keyed by the field path it applies to."""

    field: str
    code: ValidationCode
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


class MalformedInputError(ValidationError):
    """A date, time or weekday value could not be parsed."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message, detail={"field": field_name})
        self.field = field_name

    def to_field_error(self) -> FieldError:
        return FieldError(self.field, ValidationCode.MALFORMED_INPUT, str(self))


class ScheduleValidationError(ValidationError):
    """One or more schedule rules failed.

    Carries every violated rule at once so a client can highlight all
    problems in a single round trip.
    """

    http_status: int = 422
    error_type: str = "validation"

    def __init__(
        self,
        errors: list[FieldError],
        message: str = "Invalid schedule data",
        *,
        conflicts: list[dict[str, Any]] | None = None,
    ) -> None:
        self.errors = list(errors)
        self.conflicts = list(conflicts or [])
        super().__init__(message, detail=self.to_dict())

    @property
    def codes(self) -> set[ValidationCode]:
        return {error.code for error in self.errors}

    def has_code(self, code: ValidationCode, field_name: str | None = None) -> bool:
        return any(
            error.code == code and (field_name is None or error.field == field_name)
            for error in self.errors
        )

    def errors_by_field(self) -> dict[str, list[dict[str, Any]]]:
        grouped: dict[str, list[dict[str, Any]]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.to_dict())
        return grouped

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.error_type,
            "errors": self.errors_by_field(),
        }
        if self.conflicts:
            payload["conflicts"] = self.conflicts
        return payload


class ScheduleConflictError(ScheduleValidationError):
    """The schedule overlaps one or more active schedules of the tenant (HTTP 409)."""

    http_status: int = 409
    error_type: str = "conflict"
