"""
Enums Module
============

Enumeration types for the signage scheduler.
"""

from signage.enums.schedule import BulkAction, ScheduleAuditAction, ScheduleStatus

__all__ = [
    "BulkAction",
    "ScheduleAuditAction",
    "ScheduleStatus",
]
