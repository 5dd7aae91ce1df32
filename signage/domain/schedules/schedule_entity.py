"""
Playlist Schedule Entity
========================

Recurring rule that activates a playlist on a tenant's players:
- Optional inclusive date range
- Optional days-of-week recurrence (0=Sunday, 6=Saturday)
- Optional daily time window, possibly wrapping past midnight
- Priority (1-10) for tie-breaking at resolution time
- Enable/disable without deletion
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from signage.domain.schedules.intervals import (
    ScheduleInterval,
    duration_minutes,
    parse_date,
    parse_days_of_week,
    parse_time,
)

DAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass
class PlaylistSchedule:
    """
    Recurring playlist schedule for a tenant.

    Attributes:
        schedule_id: Unique identifier (None for new schedules)
        tenant_id: Owning tenant; conflict checks are scoped to it
        playlist_id: Playlist activated by this schedule
        name: Display label
        start_date: First day the schedule applies (inclusive, optional)
        end_date: Last day the schedule applies (inclusive, optional)
        start_time: Daily start in HH:MM format (optional)
        end_time: Daily end in HH:MM format (optional, may wrap past midnight)
        days_of_week: Active weekdays, 0=Sunday; None or empty means every day
        priority: 1-10, higher wins when several schedules match
        is_active: Only active schedules are checked and resolved
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    # Identity
    schedule_id: int | None = None
    tenant_id: int = 0
    playlist_id: int = 0
    name: str = ""

    # Date range
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None

    # Time window
    start_time: str | None = None
    end_time: str | None = None
    days_of_week: list[int] | None = None

    priority: int = 1
    is_active: bool = True

    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def __post_init__(self):
        """Coerce serialized values into their native types."""
        self.start_date = parse_date(self.start_date, "start_date")
        self.end_date = parse_date(self.end_date, "end_date")
        start = parse_time(self.start_time, "start_time")
        end = parse_time(self.end_time, "end_time")
        self.start_time = start.strftime("%H:%M") if start else None
        self.end_time = end.strftime("%H:%M") if end else None
        self.days_of_week = parse_days_of_week(self.days_of_week) or None

    @property
    def interval(self) -> ScheduleInterval:
        return ScheduleInterval.from_schedule(self)

    def duration_minutes(self) -> int | None:
        """Wrap-aware daily duration, or None without a full time window."""
        return duration_minutes(self.start_time, self.end_time)

    def is_active_at(self, at: datetime.datetime) -> bool:
        """Check whether the schedule applies at the given local instant."""
        if not self.is_active:
            return False
        return self.interval.contains(at)

    def has_conflict_with(self, other: "PlaylistSchedule") -> bool:
        """Overlap test against another schedule of the same tenant."""
        if self.tenant_id != other.tenant_id:
            return False
        return self.interval.overlaps(other.interval)

    # ==================== Formatting ====================

    def formatted_time_range(self) -> str:
        if not self.start_time and not self.end_time:
            return "All day"
        start = self.start_time or "Start of day"
        end = self.end_time or "End of day"
        return f"{start} - {end}"

    def formatted_date_range(self) -> str:
        if not self.start_date and not self.end_date:
            return "Unbounded"
        start = self.start_date.strftime("%d/%m/%Y") if self.start_date else "No start date"
        end = self.end_date.strftime("%d/%m/%Y") if self.end_date else "No end date"
        return f"{start} - {end}"

    def formatted_days_of_week(self) -> str:
        if not self.days_of_week:
            return "Every day"
        return ", ".join(DAY_ABBREVIATIONS[day] for day in self.days_of_week)

    def summary(self) -> dict[str, Any]:
        """Short description used in conflict reports."""
        return {
            "schedule_id": self.schedule_id,
            "name": self.name,
            "playlist_id": self.playlist_id,
            "priority": self.priority,
            "time_range": self.formatted_time_range(),
            "date_range": self.formatted_date_range(),
            "days": self.formatted_days_of_week(),
        }

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Convert schedule to dictionary for serialization."""
        return {
            "schedule_id": self.schedule_id,
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
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "PlaylistSchedule":
        """Create PlaylistSchedule from dictionary."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.datetime.fromisoformat(created_at)

        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.datetime.fromisoformat(updated_at)

        return PlaylistSchedule(
            schedule_id=data.get("schedule_id"),
            tenant_id=data.get("tenant_id", 0),
            playlist_id=data.get("playlist_id", 0),
            name=data.get("name", ""),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            days_of_week=data.get("days_of_week"),
            priority=data.get("priority", 1),
            is_active=bool(data.get("is_active", True)),
            created_at=created_at,
            updated_at=updated_at,
        )
