"""
Schedule Validation Service
===========================

Validate-before-persist gate for playlist schedules.

A call runs in two phases:

1. Structural checks: identity fields, date/time/weekday parsing and the
   structural rules. Every failure is collected so the caller gets one
   aggregated report.
2. Only when phase 1 is clean: playlist ownership, then conflict detection
   against the tenant's active schedules (the only repository reads).

Nothing is written here; the caller persists the returned
:class:`ValidatedSchedule`.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping

from pydantic import ValidationError as PydanticValidationError

from signage.domain.exceptions import (
    FieldError,
    MalformedInputError,
    ScheduleConflictError,
    ScheduleValidationError,
    ValidationCode,
)
from signage.domain.schedules.conflicts import OverrideAnalysis, analyze_override, detect_conflicts
from signage.domain.schedules.intervals import ScheduleInterval, parse_date, parse_days_of_week, parse_time
from signage.domain.schedules.rules import (
    DateOrderRule,
    DurationRule,
    PriorityRule,
    RecurrenceCoverageRule,
    ScheduleRule,
    StartDateNotPastRule,
    coerce_priority,
    run_rules,
)
from signage.domain.schedules.schedule_entity import PlaylistSchedule
from signage.schemas.schedule import ScheduleIdentityFields, field_errors_from_pydantic

if TYPE_CHECKING:
    from signage.domain.schedules.repository import ScheduleRepository

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = (
    "playlist_id",
    "tenant_id",
    "name",
    "start_date",
    "end_date",
    "start_time",
    "end_time",
    "days_of_week",
    "priority",
    "is_active",
)

_INTERVAL_PARSERS: tuple[tuple[str, Callable[[Any, str], Any]], ...] = (
    ("start_date", parse_date),
    ("end_date", parse_date),
    ("start_time", parse_time),
    ("end_time", parse_time),
    ("days_of_week", parse_days_of_week),
)


@dataclass
class ValidatedSchedule:
    """Normalized schedule fields that passed every rule."""

    tenant_id: int
    playlist_id: int
    name: str
    start_date: datetime.date | None
    end_date: datetime.date | None
    start_time: str | None
    end_time: str | None
    days_of_week: list[int] | None
    priority: int
    is_active: bool = True

    @property
    def interval(self) -> ScheduleInterval:
        return ScheduleInterval.from_schedule(self)

    def to_schedule(self, schedule_id: int | None = None) -> PlaylistSchedule:
        return PlaylistSchedule(
            schedule_id=schedule_id,
            tenant_id=self.tenant_id,
            playlist_id=self.playlist_id,
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            start_time=self.start_time,
            end_time=self.end_time,
            days_of_week=self.days_of_week,
            priority=self.priority,
            is_active=self.is_active,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "playlist_id": self.playlist_id,
            "name": self.name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "days_of_week": self.days_of_week,
            "priority": self.priority,
            "is_active": self.is_active,
        }


def conflict_error(conflicts: list[PlaylistSchedule]) -> ScheduleConflictError:
    """Build the error reported when *conflicts* overlap a candidate."""
    names = ", ".join(c.name for c in conflicts)
    error = FieldError(
        "name",
        ValidationCode.SCHEDULE_CONFLICT,
        f"Schedule conflicts with existing schedules: {names}",
        {"schedule_ids": [c.schedule_id for c in conflicts]},
    )
    return ScheduleConflictError(
        [error],
        message="Schedule conflicts with existing schedules",
        conflicts=[c.summary() for c in conflicts],
    )


class ScheduleValidationService:
    """
    Validate raw schedule fields against structural rules and the tenant's
    active schedules.

    Args:
        repository: Source of active schedules and playlist ownership
        min_duration: Shortest allowed daily window, in minutes
        max_duration: Longest allowed daily window, in minutes
        today: Supplier of the current local date (start-date check)
    """

    def __init__(
        self,
        repository: "ScheduleRepository",
        *,
        min_duration: int = 5,
        max_duration: int = 1440,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.repository = repository
        self.today = today
        self._rules: list[ScheduleRule] = [
            DurationRule(min_minutes=min_duration, max_minutes=max_duration),
            PriorityRule(),
            DateOrderRule(),
            RecurrenceCoverageRule(),
        ]
        self._start_date_rule = StartDateNotPastRule(today=lambda: self.today())

    # ==================== Field extraction ====================

    @staticmethod
    def extract_fields(fields: Mapping[str, Any], tenant_id: int | None = None) -> dict[str, Any]:
        """Keep the recognized schedule keys; fill tenant_id from context when absent."""
        data = {key: fields[key] for key in SCHEDULE_FIELDS if key in fields}
        if data.get("tenant_id") in (None, "") and tenant_id is not None:
            data["tenant_id"] = tenant_id
        return data

    # ==================== Validation ====================

    def validate_structure(
        self,
        fields: Mapping[str, Any],
        *,
        tenant_id: int | None = None,
        check_start_date: bool = True,
    ) -> ValidatedSchedule:
        """
        Run every check that needs no repository access.

        Raises:
            ScheduleValidationError: With every failed rule at once
        """
        data = self.extract_fields(fields, tenant_id)
        errors: list[FieldError] = []

        identity: ScheduleIdentityFields | None = None
        try:
            identity = ScheduleIdentityFields.model_validate(data)
        except PydanticValidationError as exc:
            errors.extend(field_errors_from_pydantic(exc))

        parsed: dict[str, Any] = {}
        for name, parser in _INTERVAL_PARSERS:
            try:
                parsed[name] = parser(data.get(name), name)
            except MalformedInputError as exc:
                errors.append(exc.to_field_error())

        errors.extend(run_rules(self._rules, data))
        if check_start_date:
            errors.extend(self._start_date_rule.check(data))

        if errors or identity is None:
            logger.debug("Schedule failed structural validation: %s", [(e.field, e.code.value) for e in errors])
            raise ScheduleValidationError(errors)

        start_time = parsed["start_time"]
        end_time = parsed["end_time"]
        return ValidatedSchedule(
            tenant_id=identity.tenant_id,
            playlist_id=identity.playlist_id,
            name=identity.name,
            start_date=parsed["start_date"],
            end_date=parsed["end_date"],
            start_time=start_time.strftime("%H:%M") if start_time else None,
            end_time=end_time.strftime("%H:%M") if end_time else None,
            days_of_week=parsed["days_of_week"] or None,
            priority=coerce_priority(data["priority"]),
            is_active=identity.is_active,
        )

    def check_playlist_reference(self, validated: ValidatedSchedule) -> None:
        """The playlist must exist and belong to the schedule's tenant."""
        owner = self.repository.get_playlist_tenant_id(validated.playlist_id)
        if owner is None or owner != validated.tenant_id:
            raise ScheduleValidationError(
                [
                    FieldError(
                        "playlist_id",
                        ValidationCode.INVALID_REFERENCE,
                        "Playlist not found.",
                    )
                ]
            )

    def find_conflicts(
        self,
        candidate: ValidatedSchedule | PlaylistSchedule,
        exclude_id: int | None = None,
    ) -> list[PlaylistSchedule]:
        existing = self.repository.find_active_schedules(candidate.tenant_id, exclude_id)
        return detect_conflicts(candidate.interval, existing, exclude_schedule_id=exclude_id)

    def validate_schedule(
        self,
        fields: Mapping[str, Any],
        exclude_id: int | None = None,
        *,
        tenant_id: int | None = None,
        check_start_date: bool | None = None,
    ) -> ValidatedSchedule:
        """
        Validate a candidate schedule for persistence.

        Args:
            fields: Raw schedule fields; unknown keys are ignored
            exclude_id: ID of the schedule being updated (self-exclusion)
            tenant_id: Caller's tenant, used when fields carry none
            check_start_date: Reject a start date before today; defaults
                to True for new schedules and False for updates

        Returns:
            The normalized schedule fields

        Raises:
            ScheduleValidationError: Structural failures or unknown playlist (422)
            ScheduleConflictError: Overlap with an active schedule (409)
        """
        if check_start_date is None:
            check_start_date = exclude_id is None

        validated = self.validate_structure(fields, tenant_id=tenant_id, check_start_date=check_start_date)
        self.check_playlist_reference(validated)

        conflicts = self.find_conflicts(validated, exclude_id)
        if conflicts:
            logger.info(
                "Rejected schedule %r for tenant %s: overlaps %s",
                validated.name,
                validated.tenant_id,
                [c.schedule_id for c in conflicts],
            )
            raise conflict_error(conflicts)

        return validated

    def validate_update(
        self,
        existing: PlaylistSchedule,
        updates: Mapping[str, Any],
    ) -> ValidatedSchedule:
        """Merge *updates* into a stored schedule and validate the result."""
        merged = {key: value for key, value in existing.to_dict().items() if key in SCHEDULE_FIELDS}
        merged.update({key: updates[key] for key in SCHEDULE_FIELDS if key in updates and key != "tenant_id"})
        merged["tenant_id"] = existing.tenant_id
        return self.validate_schedule(merged, exclude_id=existing.schedule_id, tenant_id=existing.tenant_id)

    def check_conflicts(
        self,
        fields: Mapping[str, Any],
        exclude_id: int | None = None,
        *,
        tenant_id: int | None = None,
    ) -> OverrideAnalysis:
        """
        Report which overlapping schedules the candidate's priority could
        displace, without raising on conflicts.

        Raises:
            ScheduleValidationError: When the interval fields cannot be parsed
                or the priority is outside [1, 10]
        """
        data = self.extract_fields(fields, tenant_id)
        try:
            interval = ScheduleInterval.from_fields(
                start_date=data.get("start_date"),
                end_date=data.get("end_date"),
                start_time=data.get("start_time"),
                end_time=data.get("end_time"),
                days_of_week=data.get("days_of_week"),
            )
        except MalformedInputError as exc:
            raise ScheduleValidationError([exc.to_field_error()]) from exc

        priority_errors = PriorityRule(required=False).check(data)
        if priority_errors:
            raise ScheduleValidationError(priority_errors)
        priority = coerce_priority(data.get("priority") or 1)

        existing = self.repository.find_active_schedules(data.get("tenant_id"), exclude_id)
        conflicts = detect_conflicts(interval, existing, exclude_schedule_id=exclude_id)
        return analyze_override(priority, conflicts)
