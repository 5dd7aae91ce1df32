"""
Schedule Enumerations
=====================

Enums used by the schedule service, API and audit trail.
"""

from enum import Enum


class BulkAction(str, Enum):
    """Actions accepted by the bulk schedule endpoint."""

    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


class ScheduleStatus(str, Enum):
    """Status filter for schedule listings."""

    ACTIVE = "active"
    INACTIVE = "inactive"

    def __str__(self) -> str:
        return self.value

    @property
    def is_active(self) -> bool:
        return self is ScheduleStatus.ACTIVE


class ScheduleAuditAction(str, Enum):
    """Audit trail action names for schedule changes."""

    CREATED = "schedule.created"
    UPDATED = "schedule.updated"
    DELETED = "schedule.deleted"
    ACTIVATED = "schedule.activated"
    DEACTIVATED = "schedule.deactivated"
    DUPLICATED = "schedule.duplicated"
    OVERRIDDEN = "schedule.overridden"

    def __str__(self) -> str:
        return self.value
