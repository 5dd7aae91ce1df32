"""
Structural Schedule Rules
=========================

Small, independent checks run before any conflict detection. Each rule
looks at a subset of the raw schedule fields and returns zero or more
:class:`FieldError` objects; rules never raise for bad input, so the caller
can run all of them and report every problem at once.

A value that cannot be parsed is reported by the field parser, not by the
rules: a rule that cannot read its input skips silently.
"""

from __future__ import annotations

import datetime
from typing import Any, Callable, Iterable, Mapping

from signage.domain.exceptions import FieldError, MalformedInputError, ValidationCode
from signage.domain.schedules.intervals import (
    MINUTES_PER_DAY,
    duration_minutes,
    parse_date,
    parse_days_of_week,
    weekday_index,
)
from signage.utils.time import coerce_datetime, utc_now

MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = MINUTES_PER_DAY
MIN_PRIORITY = 1
MAX_PRIORITY = 10


class ScheduleRule:
    """Base class for a structural rule."""

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        raise NotImplementedError


def run_rules(rules: Iterable[ScheduleRule], fields: Mapping[str, Any]) -> list[FieldError]:
    """Run every rule and collect all errors (no short-circuit)."""
    errors: list[FieldError] = []
    for rule in rules:
        errors.extend(rule.check(fields))
    return errors


class DurationRule(ScheduleRule):
    """Daily window must last between 5 minutes and 24 hours, wrap-aware."""

    def __init__(
        self,
        min_minutes: int = MIN_DURATION_MINUTES,
        max_minutes: int = MAX_DURATION_MINUTES,
        start_field: str = "start_time",
        end_field: str = "end_time",
    ) -> None:
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes
        self.start_field = start_field
        self.end_field = end_field

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        try:
            duration = duration_minutes(fields.get(self.start_field), fields.get(self.end_field))
        except MalformedInputError:
            return []
        if duration is None:
            return []

        context = {"duration_minutes": duration}
        if duration < self.min_minutes:
            return [
                FieldError(
                    self.start_field,
                    ValidationCode.DURATION_TOO_SHORT,
                    f"Minimum schedule duration is {self.min_minutes} minutes.",
                    context,
                )
            ]
        if duration > self.max_minutes:
            return [
                FieldError(
                    self.start_field,
                    ValidationCode.DURATION_TOO_LONG,
                    f"Maximum schedule duration is {self.max_minutes // 60} hours.",
                    context,
                )
            ]
        return []


def coerce_priority(value: Any) -> int | None:
    """Return *value* as an int priority, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        raw = value.strip()
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


class PriorityRule(ScheduleRule):
    """Priority must be a whole number in ``[1, 10]``."""

    def __init__(
        self,
        field: str = "priority",
        minimum: int = MIN_PRIORITY,
        maximum: int = MAX_PRIORITY,
        required: bool = True,
    ) -> None:
        self.field = field
        self.minimum = minimum
        self.maximum = maximum
        self.required = required

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        value = fields.get(self.field)
        if value is None or value == "":
            if self.required:
                return [FieldError(self.field, ValidationCode.REQUIRED, "Priority is required.")]
            return []

        priority = coerce_priority(value)
        if priority is None:
            return [
                FieldError(self.field, ValidationCode.PRIORITY_OUT_OF_RANGE, "Priority must be a number.")
            ]
        if not self.minimum <= priority <= self.maximum:
            return [
                FieldError(
                    self.field,
                    ValidationCode.PRIORITY_OUT_OF_RANGE,
                    f"Priority must be between {self.minimum} and {self.maximum}.",
                    {"priority": priority},
                )
            ]
        return []


class FutureDateTimeRule(ScheduleRule):
    """Instant must lie strictly more than one minute in the future.

    Optionally the instant must be strictly after the value of
    ``after_field`` (an end paired with its start) or strictly before the
    value of ``before_field`` (a start paired with its end).
    """

    def __init__(
        self,
        field: str,
        *,
        allow_null: bool = False,
        after_field: str | None = None,
        before_field: str | None = None,
        tolerance: datetime.timedelta = datetime.timedelta(minutes=1),
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.field = field
        self.allow_null = allow_null
        self.after_field = after_field
        self.before_field = before_field
        self.tolerance = tolerance
        self.clock = clock

    def _now(self) -> datetime.datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)
        return now

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        value = fields.get(self.field)
        if value is None or value == "":
            if self.allow_null:
                return []
            return [FieldError(self.field, ValidationCode.REQUIRED, "This field is required.")]

        instant = coerce_datetime(value)
        if instant is None:
            return [FieldError(self.field, ValidationCode.MALFORMED_INPUT, "Invalid date/time.")]

        if instant <= self._now() + self.tolerance:
            return [FieldError(self.field, ValidationCode.NOT_IN_FUTURE, "Date/time must be in the future.")]

        if self.after_field:
            other = coerce_datetime(fields.get(self.after_field))
            if other is not None and instant <= other:
                return [
                    FieldError(
                        self.field,
                        ValidationCode.INVALID_ORDERING,
                        f"{self.field} must be after {self.after_field}.",
                    )
                ]

        if self.before_field:
            other = coerce_datetime(fields.get(self.before_field))
            if other is not None and instant >= other:
                return [
                    FieldError(
                        self.field,
                        ValidationCode.INVALID_ORDERING,
                        f"{self.field} must be before {self.before_field}.",
                    )
                ]
        return []


def _safe_date(value: Any) -> datetime.date | None:
    try:
        return parse_date(value)
    except MalformedInputError:
        return None


class DateOrderRule(ScheduleRule):
    """End date must not precede start date."""

    def __init__(self, start_field: str = "start_date", end_field: str = "end_date") -> None:
        self.start_field = start_field
        self.end_field = end_field

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        start = _safe_date(fields.get(self.start_field))
        end = _safe_date(fields.get(self.end_field))
        if start and end and end < start:
            return [
                FieldError(
                    self.end_field,
                    ValidationCode.INVALID_ORDERING,
                    "End date must be on or after the start date.",
                )
            ]
        return []


class StartDateNotPastRule(ScheduleRule):
    """A new schedule may not start before today."""

    def __init__(
        self,
        today: Callable[[], datetime.date],
        field: str = "start_date",
    ) -> None:
        self.today = today
        self.field = field

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        start = _safe_date(fields.get(self.field))
        if start is not None and start < self.today():
            return [
                FieldError(
                    self.field,
                    ValidationCode.NOT_IN_FUTURE,
                    "Start date must be today or later.",
                )
            ]
        return []


class RecurrenceCoverageRule(ScheduleRule):
    """A bounded date range must contain at least one of the selected weekdays."""

    def check(self, fields: Mapping[str, Any]) -> list[FieldError]:
        start = _safe_date(fields.get("start_date"))
        end = _safe_date(fields.get("end_date"))
        try:
            days = parse_days_of_week(fields.get("days_of_week"))
        except MalformedInputError:
            return []
        if not days or not start or not end or end < start:
            return []

        span = min((end - start).days, 6)
        for offset in range(span + 1):
            if weekday_index(start + datetime.timedelta(days=offset)) in days:
                return []
        return [
            FieldError(
                "days_of_week",
                ValidationCode.EMPTY_RECURRENCE,
                "The selected period does not include any of the selected weekdays.",
            )
        ]
