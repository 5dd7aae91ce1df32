"""
Playlist Schedule Service
=========================

Application service behind the schedule API.

Features:
- Validate-then-persist create/update under a per-tenant lock
- Enable/disable without deletion (enabling re-validates for conflicts)
- Duplicate, bulk activate/deactivate/delete
- Day-by-day preview of a draft schedule with its conflicts
- Create with override: lower-priority conflicts are deactivated
- Resolution of the schedule playing at a given instant
- Audit trail of every change
"""

from __future__ import annotations

import datetime
import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping

from signage.domain.exceptions import (
    FieldError,
    NotFoundError,
    ScheduleConflictError,
    ScheduleValidationError,
    ValidationCode,
    ValidationError,
)
from signage.domain.schedules.conflicts import OverrideAnalysis
from signage.domain.schedules.intervals import ScheduleInterval, weekday_index
from signage.domain.schedules.resolver import ActiveScheduleResolver
from signage.domain.schedules.schedule_entity import PlaylistSchedule
from signage.enums import BulkAction, ScheduleAuditAction, ScheduleStatus
from signage.services.application.schedule_validation_service import (
    SCHEDULE_FIELDS,
    ScheduleValidationService,
)

if TYPE_CHECKING:
    from infrastructure.logging.audit import AuditLogger
    from signage.domain.schedules.repository import ScheduleRepository

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
COPY_SUFFIX = " (Copy)"


class ScheduleService:
    """
    Playlist schedule operations scoped to one tenant per call.

    Architecture:
    - Every read and write goes through the repository
    - Validation is delegated to ScheduleValidationService
    - Writes of one tenant are serialized by a per-tenant lock, so two
      requests cannot both pass conflict detection against the same snapshot
    """

    def __init__(
        self,
        repository: "ScheduleRepository",
        validation_service: ScheduleValidationService,
        *,
        audit_logger: "AuditLogger" | None = None,
        resolver: ActiveScheduleResolver | None = None,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
        preview_max_days: int = 31,
    ) -> None:
        """
        Initialize schedule service.

        Args:
            repository: ScheduleRepository for persistence
            validation_service: Validation gate run before every write
            audit_logger: Optional audit trail for schedule changes
            resolver: Active schedule resolver
            clock: Supplier of the current wall-clock time of the players
            preview_max_days: Longest allowed preview
        """
        self.repository = repository
        self.validation = validation_service
        self.audit_logger = audit_logger
        self.resolver = resolver or ActiveScheduleResolver()
        self.clock = clock
        self.preview_max_days = preview_max_days

        self._tenant_locks: dict[int, threading.Lock] = {}
        self._tenant_locks_guard = threading.Lock()

    # ==================== Locking ====================

    @contextmanager
    def tenant_lock(self, tenant_id: int) -> Iterator[None]:
        """Serialize validate-then-persist sequences of one tenant."""
        with self._tenant_locks_guard:
            lock = self._tenant_locks.setdefault(tenant_id, threading.Lock())
        with lock:
            yield

    # ==================== Audit ====================

    def _audit(
        self,
        actor: str,
        action: ScheduleAuditAction,
        schedule: PlaylistSchedule,
        outcome: str = "success",
        **metadata: Any,
    ) -> None:
        if not self.audit_logger:
            return
        self.audit_logger.log_event(
            actor=actor,
            action=action.value,
            resource=f"schedule:{schedule.schedule_id}",
            outcome=outcome,
            tenant_id=schedule.tenant_id,
            playlist_id=schedule.playlist_id,
            name=schedule.name,
            **metadata,
        )

    # ==================== Queries ====================

    def list_schedules(
        self,
        tenant_id: int,
        *,
        playlist_id: int | None = None,
        status: ScheduleStatus | str | None = None,
        search: str | None = None,
    ) -> list[PlaylistSchedule]:
        """List a tenant's schedules, highest priority first."""
        is_active = None
        if status:
            try:
                is_active = ScheduleStatus(status).is_active
            except ValueError:
                raise ValidationError(f"Unknown status filter: {status!r}") from None
        return self.repository.list_by_tenant(
            tenant_id,
            playlist_id=playlist_id,
            is_active=is_active,
            search=search or None,
        )

    def get_schedule(self, tenant_id: int, schedule_id: int) -> PlaylistSchedule:
        """
        Get a schedule of the tenant.

        Raises:
            NotFoundError: Unknown ID or a schedule of another tenant
        """
        schedule = self.repository.get_by_id(schedule_id)
        if schedule is None or schedule.tenant_id != tenant_id:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return schedule

    # ==================== Writes ====================

    def _persist_new(self, tenant_id: int, fields: Mapping[str, Any]) -> PlaylistSchedule:
        data = dict(fields)
        data["tenant_id"] = tenant_id
        validated = self.validation.validate_schedule(data, tenant_id=tenant_id)
        return self.repository.create(validated.to_schedule())

    def create_schedule(
        self,
        tenant_id: int,
        fields: Mapping[str, Any],
        *,
        actor: str = "system",
    ) -> PlaylistSchedule:
        """
        Validate and create a schedule.

        Raises:
            ScheduleValidationError: Invalid fields (422)
            ScheduleConflictError: Overlaps an active schedule (409)
        """
        with self.tenant_lock(tenant_id):
            created = self._persist_new(tenant_id, fields)

        self._audit(actor, ScheduleAuditAction.CREATED, created)
        logger.info("Created schedule '%s' (ID=%s) for tenant %s", created.name, created.schedule_id, tenant_id)
        return created

    def update_schedule(
        self,
        tenant_id: int,
        schedule_id: int,
        updates: Mapping[str, Any],
        *,
        actor: str = "system",
    ) -> PlaylistSchedule:
        """
        Merge *updates* into a schedule, re-validate and persist.

        The schedule never conflicts with its own stored state.
        """
        with self.tenant_lock(tenant_id):
            existing = self.get_schedule(tenant_id, schedule_id)
            before = existing.to_dict()
            validated = self.validation.validate_update(existing, updates)

            schedule = validated.to_schedule(schedule_id)
            schedule.created_at = existing.created_at
            updated = self.repository.update(schedule)
            if updated is None:
                raise NotFoundError(f"Schedule {schedule_id} not found")

        after = updated.to_dict()
        changed = sorted(key for key in SCHEDULE_FIELDS if before.get(key) != after.get(key))
        self._audit(actor, ScheduleAuditAction.UPDATED, updated, changed_fields=changed)
        logger.info("Updated schedule %s (%s)", schedule_id, ", ".join(changed) or "no changes")
        return updated

    def delete_schedule(self, tenant_id: int, schedule_id: int, *, actor: str = "system") -> None:
        with self.tenant_lock(tenant_id):
            schedule = self.get_schedule(tenant_id, schedule_id)
            if not self.repository.delete(schedule_id):
                raise NotFoundError(f"Schedule {schedule_id} not found")

        self._audit(actor, ScheduleAuditAction.DELETED, schedule)

    def _change_active(
        self,
        tenant_id: int,
        schedule_id: int,
        is_active: bool | None,
        actor: str,
    ) -> PlaylistSchedule:
        """Set is_active (None flips it). Enabling re-runs validation."""
        with self.tenant_lock(tenant_id):
            schedule = self.get_schedule(tenant_id, schedule_id)
            if is_active is None:
                is_active = not schedule.is_active
            if schedule.is_active == is_active:
                return schedule
            if is_active:
                self.validation.validate_update(schedule, {"is_active": True})
            self.repository.set_active(schedule_id, is_active)
            schedule.is_active = is_active

        action = ScheduleAuditAction.ACTIVATED if is_active else ScheduleAuditAction.DEACTIVATED
        self._audit(actor, action, schedule)
        return schedule

    def set_schedule_active(
        self,
        tenant_id: int,
        schedule_id: int,
        is_active: bool,
        *,
        actor: str = "system",
    ) -> PlaylistSchedule:
        """
        Enable or disable a schedule.

        Enabling re-runs validation: a schedule disabled while another one
        took its slot cannot come back as an overlap.
        """
        return self._change_active(tenant_id, schedule_id, is_active, actor)

    def toggle_schedule(self, tenant_id: int, schedule_id: int, *, actor: str = "system") -> PlaylistSchedule:
        """Flip is_active."""
        return self._change_active(tenant_id, schedule_id, None, actor)

    def duplicate_schedule(
        self,
        tenant_id: int,
        schedule_id: int,
        overrides: Mapping[str, Any] | None = None,
        *,
        actor: str = "system",
    ) -> PlaylistSchedule:
        """
        Copy a schedule, applying *overrides*.

        Without a name override the copy is named "<name> (Copy)". The copy
        goes through full creation validation, so copying an active schedule
        unchanged is reported as a conflict with its source.
        """
        overrides = dict(overrides or {})
        with self.tenant_lock(tenant_id):
            source = self.get_schedule(tenant_id, schedule_id)
            data = {key: value for key, value in source.to_dict().items() if key in SCHEDULE_FIELDS}
            data.update({key: overrides[key] for key in SCHEDULE_FIELDS if key in overrides})
            if "name" not in overrides:
                data["name"] = f"{source.name}{COPY_SUFFIX}"
            created = self._persist_new(tenant_id, data)

        self._audit(actor, ScheduleAuditAction.DUPLICATED, created, source_schedule_id=schedule_id)
        return created

    def bulk_action(
        self,
        tenant_id: int,
        action: BulkAction | str,
        schedule_ids: list[int],
        *,
        actor: str = "system",
    ) -> dict[str, Any]:
        """
        Apply *action* to each schedule independently.

        Returns:
            ``{"action", "succeeded": [ids], "failed": [{"schedule_id", "error", ...}]}``
        """
        try:
            action = BulkAction(action)
        except ValueError:
            raise ValidationError(f"Unknown bulk action: {action!r}") from None
        succeeded: list[int] = []
        failed: list[dict[str, Any]] = []

        for schedule_id in dict.fromkeys(schedule_ids):
            try:
                if action is BulkAction.DELETE:
                    self.delete_schedule(tenant_id, schedule_id, actor=actor)
                else:
                    self.set_schedule_active(
                        tenant_id,
                        schedule_id,
                        action is BulkAction.ACTIVATE,
                        actor=actor,
                    )
                succeeded.append(schedule_id)
            except NotFoundError as exc:
                failed.append({"schedule_id": schedule_id, "error": str(exc)})
            except ScheduleValidationError as exc:
                failed.append({"schedule_id": schedule_id, "error": str(exc), **exc.to_dict()})

        logger.info(
            "Bulk %s for tenant %s: %d succeeded, %d failed",
            action.value,
            tenant_id,
            len(succeeded),
            len(failed),
        )
        return {"action": action.value, "succeeded": succeeded, "failed": failed}

    # ==================== Override ====================

    def check_conflicts(
        self,
        tenant_id: int,
        fields: Mapping[str, Any],
        exclude_id: int | None = None,
    ) -> OverrideAnalysis:
        data = dict(fields)
        data["tenant_id"] = tenant_id
        return self.validation.check_conflicts(data, exclude_id, tenant_id=tenant_id)

    def create_with_override(
        self,
        tenant_id: int,
        fields: Mapping[str, Any],
        *,
        actor: str = "system",
    ) -> tuple[PlaylistSchedule, list[PlaylistSchedule]]:
        """
        Create a schedule, deactivating the lower-priority schedules it overlaps.

        Schedules of equal or higher priority block the override. An
        inactive candidate displaces nothing and is created like any other
        schedule. When the insert fails, the deactivated schedules are
        switched back on before the error propagates.

        Returns:
            The created schedule and the schedules that were deactivated

        Raises:
            ScheduleConflictError: Blocked by equal or higher priority (409)
        """
        data = dict(fields)
        data["tenant_id"] = tenant_id

        with self.tenant_lock(tenant_id):
            # Nothing is deactivated for an invalid candidate
            validated = self.validation.validate_structure(data, tenant_id=tenant_id)
            self.validation.check_playlist_reference(validated)
            if not validated.is_active:
                created = self._persist_new(tenant_id, data)
                self._audit(actor, ScheduleAuditAction.CREATED, created)
                return created, []

            analysis = self.validation.check_conflicts(data, tenant_id=tenant_id)
            if analysis.has_conflicts:
                names = ", ".join(s.name for s in analysis.blocked_by)
                raise ScheduleConflictError(
                    [
                        FieldError(
                            "priority",
                            ValidationCode.SCHEDULE_CONFLICT,
                            f"Cannot override schedules with higher or equal priority: {names}",
                            {"schedule_ids": [s.schedule_id for s in analysis.blocked_by]},
                        )
                    ],
                    message="Cannot override schedules with higher or equal priority",
                    conflicts=[s.summary() for s in analysis.blocked_by],
                )

            deactivated: list[PlaylistSchedule] = []
            try:
                for schedule in analysis.can_override:
                    self.repository.set_active(schedule.schedule_id, False)
                    schedule.is_active = False
                    deactivated.append(schedule)
                created = self._persist_new(tenant_id, data)
            except Exception:
                logger.warning(
                    "Override for tenant %s failed; re-enabling %s",
                    tenant_id,
                    [s.schedule_id for s in deactivated],
                )
                for schedule in deactivated:
                    self.repository.set_active(schedule.schedule_id, True)
                    schedule.is_active = True
                raise

        for schedule in analysis.can_override:
            self._audit(actor, ScheduleAuditAction.DEACTIVATED, schedule, overridden_by=created.schedule_id)
        self._audit(
            actor,
            ScheduleAuditAction.OVERRIDDEN,
            created,
            overridden=[s.schedule_id for s in analysis.can_override],
        )
        return created, analysis.can_override

    # ==================== Preview & resolution ====================

    def preview(
        self,
        tenant_id: int,
        fields: Mapping[str, Any],
        days: int = 7,
        *,
        exclude_id: int | None = None,
    ) -> dict[str, Any]:
        """
        Day-by-day preview of a draft schedule starting today.

        Returns:
            ``{"days": [{"date", "day_name", "schedules": [...]}], "conflicts": [...]}``
        """
        if not 1 <= days <= self.preview_max_days:
            raise ScheduleValidationError(
                [
                    FieldError(
                        "days",
                        ValidationCode.MALFORMED_INPUT,
                        f"Preview length must be between 1 and {self.preview_max_days} days.",
                    )
                ]
            )

        data = self.validation.extract_fields(fields, tenant_id)
        data["tenant_id"] = tenant_id
        analysis = self.check_conflicts(tenant_id, data, exclude_id)
        draft = PlaylistSchedule(
            tenant_id=tenant_id,
            name=str(data.get("name") or "New schedule"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            days_of_week=data.get("days_of_week"),
        )
        interval: ScheduleInterval = draft.interval
        entry = {
            "name": draft.name,
            "time_range": draft.formatted_time_range(),
            "priority": data.get("priority", 1),
        }

        today = self.clock().date()
        timeline = []
        for offset in range(days):
            day = today + datetime.timedelta(days=offset)
            runs = interval.dates.contains(day) and weekday_index(day) in interval.days
            timeline.append(
                {
                    "date": day.isoformat(),
                    "day_name": DAY_NAMES[weekday_index(day)],
                    "schedules": [entry] if runs else [],
                }
            )

        conflicts = analysis.blocked_by + analysis.can_override
        conflicts.sort(key=lambda s: s.schedule_id or 0)
        return {"days": timeline, "conflicts": [s.summary() for s in conflicts]}

    def resolve_active(self, tenant_id: int, at: datetime.datetime | None = None) -> PlaylistSchedule | None:
        """Schedule playing for the tenant at *at* (defaults to now)."""
        at = at or self.clock()
        schedules = self.repository.find_active_schedules(tenant_id)
        return self.resolver.resolve(schedules, at)
